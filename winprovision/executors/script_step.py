from __future__ import annotations

from ..errors import ScriptNotFoundError
from ..lib.scripts import invoke_script, merge_parameters, resolve_script
from ..models import Outcome, RunMode, ScriptItem, Step
from .base import NOTE_DRY_RUN, RunContext, mock_outcome, unknown_mode


class ScriptStepExecutor:
    step_type = "script"

    def run(self, step: Step, item: ScriptItem, ctx: RunContext) -> Outcome:
        log = ctx.logger
        cfg = item.script

        try:
            path = resolve_script(ctx.project_root, cfg.path)
        except ScriptNotFoundError as e:
            log.error("[%s] %s", step.id, e)
            return Outcome.failed(str(e))

        # Parameters come from the plan snapshot only, never the live catalog.
        params = merge_parameters(step.parameters)
        command = f"{path.name} {params!r}"
        targets = (str(path),)
        explorer = bool(cfg.restart_explorer)

        if ctx.mode is RunMode.MOCK:
            return mock_outcome(step.id, ctx, command=command, explorer_required=explorer)

        if ctx.mode is RunMode.DRY_RUN:
            dry_run = True
        elif ctx.mode is RunMode.REAL:
            dry_run = False
        else:
            raise unknown_mode(ctx.mode)

        try:
            lines = invoke_script(path, params, dry_run=dry_run)
        except Exception as e:
            log.error("[%s] script failed: %s", step.id, e)
            return Outcome.failed(str(e) or type(e).__name__, command=command, target_paths=targets)

        for line in lines:
            log.info("[%s] %s", step.id, line)

        notes = (NOTE_DRY_RUN,) if dry_run else ()
        return Outcome.ok(command=command, notes=notes, target_paths=targets, explorer_required=explorer)
