"""Show file name extensions in Explorer."""

from __future__ import annotations

from winprovision.lib.registry import set_dword

KEY = r"Software\Microsoft\Windows\CurrentVersion\Explorer\Advanced"


def run(params: dict, dry_run: bool) -> str:
    if dry_run:
        return f"Would set HKCU\\{KEY}\\HideFileExt = 0"
    set_dword(KEY, "HideFileExt", 0)
    return "File extensions are now visible"
