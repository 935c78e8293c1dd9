from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..models import WingetConfig
from .command import fmt_argv

logger = logging.getLogger(__name__)

# APPINSTALLER_CLI_ERROR_PACKAGE_ALREADY_INSTALLED, APPINSTALLER_CLI_ERROR_UPDATE_NOT_APPLICABLE
_ALREADY_INSTALLED_HRESULTS = (0x8A15002B, 0x8A150061)

# winget reports HRESULTs as unsigned on some hosts and signed 32-bit on others.
ALREADY_INSTALLED_EXIT_CODES = frozenset(
    [code for code in _ALREADY_INSTALLED_HRESULTS] + [code - (1 << 32) for code in _ALREADY_INSTALLED_HRESULTS]
)

# Best-effort only: wording differs between winget versions and locales.
ALREADY_INSTALLED_MARKERS = (
    "already installed",
    "no available upgrade found",
    "no newer package versions are available",
)


def build_install_argv(cfg: WingetConfig) -> list[str]:
    argv = ["winget", "install", "--id", cfg.package_id, "--exact"]
    if cfg.source:
        argv += ["--source", cfg.source]
    if cfg.scope:
        argv += ["--scope", cfg.scope]
    argv += [
        "--silent",
        "--accept-package-agreements",
        "--accept-source-agreements",
    ]
    if cfg.override is not None:
        argv += ["--override", cfg.override]
    return argv


def format_command(argv: Sequence[str]) -> str:
    return fmt_argv(argv)


def is_already_installed(returncode: int, output: Optional[str] = None) -> bool:
    """Return True if winget's result means the package is already present.

    Exit codes are authoritative; the text scan is a fallback for versions that
    exit with a generic failure code.
    """

    if returncode in ALREADY_INSTALLED_EXIT_CODES:
        return True
    if output:
        lowered = output.lower()
        for marker in ALREADY_INSTALLED_MARKERS:
            if marker in lowered:
                logger.debug("Matched already-installed marker %r", marker)
                return True
    return False
