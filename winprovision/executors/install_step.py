from __future__ import annotations

import subprocess
from dataclasses import replace

from ..lib.command import run_cmd
from ..lib.files import atomic_write_text
from ..lib.winget import build_install_argv, format_command, is_already_installed
from ..models import AppItem, Outcome, RunMode, Step
from .base import (
    NOTE_ALREADY_INSTALLED,
    NOTE_DRY_RUN,
    RunContext,
    mock_outcome,
    unknown_mode,
)


class InstallStepExecutor:
    step_type = "app"

    def run(self, step: Step, item: AppItem, ctx: RunContext) -> Outcome:
        log = ctx.logger
        cfg = item.winget
        if "override" in step.parameters:
            cfg = replace(cfg, override=step.parameters["override"])
        argv = build_install_argv(cfg)
        command = format_command(argv)

        if ctx.mode is RunMode.DRY_RUN:
            log.info("[%s] dry-run: %s", step.id, command)
            return Outcome.ok(command=command, notes=(NOTE_DRY_RUN,))

        if ctx.mode is RunMode.MOCK:
            return mock_outcome(step.id, ctx, command=command)

        if ctx.mode is RunMode.REAL:
            return self._run_real(step, argv, command, ctx)

        raise unknown_mode(ctx.mode)

    def _run_real(self, step: Step, argv: list[str], command: str, ctx: RunContext) -> Outcome:
        log = ctx.logger
        log_path = ctx.step_log_path(step.id)
        targets = (str(log_path),)

        try:
            res = run_cmd(argv, check=False, timeout=ctx.winget_timeout, log=log)
        except FileNotFoundError:
            return Outcome.failed("winget executable not found", command=command)
        except subprocess.TimeoutExpired:
            return Outcome.failed(f"winget timed out after {ctx.winget_timeout}s", command=command)

        atomic_write_text(log_path, f"> {command}\n{res.output}\n[exit {res.returncode}]\n")

        if res.returncode == 0:
            log.info("[%s] installed", step.id)
            return Outcome.ok(command=command, target_paths=targets)

        if is_already_installed(res.returncode, res.output):
            log.info("[%s] already installed (exit %s)", step.id, res.returncode)
            return Outcome.ok(command=command, notes=(NOTE_ALREADY_INSTALLED,), target_paths=targets)

        log.error("[%s] winget failed with exit code %s", step.id, res.returncode)
        return Outcome.failed(
            f"winget exited with code {res.returncode}",
            exit_code=res.returncode,
            command=command,
            target_paths=targets,
        )
