from __future__ import annotations

from winprovision.main import main as core_main


def main(argv: list[str] | None = None) -> int:
    # Delegates to the core CLI so both entrypoints behave identically.
    return core_main(argv)


if __name__ == "__main__":
    raise SystemExit(main())
