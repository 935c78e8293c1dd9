from __future__ import annotations

import logging
from typing import Callable

from .command import run_cmd

logger = logging.getLogger(__name__)


def restart_explorer(*, dry_run: bool = False) -> None:
    # taskkill exits non-zero when explorer is not running; that is fine.
    run_cmd(["taskkill", "/f", "/im", "explorer.exe"], check=False, dry_run=dry_run)
    run_cmd(["cmd", "/c", "start", "", "explorer.exe"], check=False, dry_run=dry_run)


def prompt_restart_explorer(
    *,
    assume_yes: bool = False,
    dry_run: bool = False,
    ask: Callable[[str], str] = input,
) -> bool:
    """Ask once whether to restart Explorer so shell tweaks take effect."""

    if not assume_yes:
        try:
            answer = ask("Some tweaks need Explorer to restart. Restart now? [y/N] ").strip().lower()
        except EOFError:
            # No console attached; treat as "no".
            answer = ""
        if answer not in {"y", "yes"}:
            logger.info("Explorer restart declined")
            return False

    restart_explorer(dry_run=dry_run)
    logger.info("Explorer restarted")
    return True
