from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, FrozenSet, Iterable, Optional

from .errors import IntegrityError
from .executors import RunContext, select_executor
from .models import CatalogItem, Outcome, Plan, ResumeOption, State, StepError, StepStatus, utcnow
from .state_store import find_step, save_state, update_step, verify_state

logger = logging.getLogger(__name__)

ELIGIBLE_STATUSES: Dict[ResumeOption, FrozenSet[StepStatus]] = {
    ResumeOption.ALL: frozenset({StepStatus.PENDING, StepStatus.IN_PROGRESS, StepStatus.FAILED}),
    ResumeOption.RESUME_PENDING: frozenset({StepStatus.PENDING, StepStatus.IN_PROGRESS}),
    ResumeOption.RERUN_FAILED: frozenset({StepStatus.FAILED}),
}


@dataclass(frozen=True)
class RunSummary:
    attempted: int
    succeeded: int
    failed: int
    pending: int
    stopped_at: Optional[str] = None
    explorer_restart_requested: bool = False

    @property
    def ok(self) -> bool:
        return self.failed == 0 and self.stopped_at is None


def eligible_statuses(resume: ResumeOption | str | None) -> FrozenSet[StepStatus]:
    if resume is None:
        return ELIGIBLE_STATUSES[ResumeOption.ALL]
    return ELIGIBLE_STATUSES[ResumeOption(resume)]


def run_plan(
    plan: Plan,
    state: State,
    items: Iterable[CatalogItem],
    ctx: RunContext,
    *,
    state_path: str | Path,
    resume: ResumeOption | str | None = ResumeOption.ALL,
    restart_explorer: Optional[Callable[[], object]] = None,
) -> RunSummary:
    """Run plan steps in stored order, persisting state after every change.

    The caller hands over ``state`` for the duration of the run. Stops at the
    first failed step. Integrity errors propagate; anything an executor raises
    is recorded as a step failure.
    """

    log = ctx.logger
    verify_state(plan, state)

    eligible = eligible_statuses(resume)
    catalog = {it.id: it for it in items}

    attempted = succeeded = failed = 0
    stopped_at: Optional[str] = None
    explorer_needed = False

    def persist() -> None:
        save_state(state_path, state)

    for step in plan.steps:
        current = find_step(state, step.id)
        # verify_state ran up front; an executor can still drop entries mid-run.
        if current is None:
            log.warning("Step %s missing from state; skipping", step.id)
            continue

        if current.status not in eligible:
            log.info("Skipping step %s (%s)", step.id, current.status.value)
            continue

        item = catalog.get(step.id)
        if item is None:
            log.error("Catalog item %s not found; stopping run", step.id)
            now = utcnow()
            update_step(
                state,
                step.id,
                status=StepStatus.FAILED,
                started_at=now,
                ended_at=now,
                error=StepError(message=f"Catalog item not found for planned step {step.id}"),
            )
            persist()
            attempted += 1
            failed += 1
            stopped_at = step.id
            break

        executor = select_executor(step, item)

        attempted += 1
        log.info("Running step %s (%s, mode=%s)", step.id, step.type, ctx.mode.value)
        update_step(state, step.id, status=StepStatus.IN_PROGRESS, started_at=utcnow(), ended_at=None)
        persist()

        try:
            outcome = executor.run(step, item, ctx)
        except IntegrityError:
            raise
        except Exception as e:
            log.exception("Step %s raised", step.id)
            outcome = Outcome.failed(f"Unexpected error: {e}")

        target_path = "; ".join(outcome.target_paths) or None

        if outcome.success:
            update_step(
                state,
                step.id,
                status=StepStatus.SUCCEEDED,
                ended_at=utcnow(),
                error=None,
                notes=list(outcome.notes),
                command=outcome.command,
                target_path=target_path,
            )
            persist()
            succeeded += 1
            explorer_needed = explorer_needed or outcome.explorer_required
            log.info("Step %s succeeded", step.id)
            continue

        update_step(
            state,
            step.id,
            status=StepStatus.FAILED,
            ended_at=utcnow(),
            error=outcome.error or StepError(message="Step failed"),
            notes=list(outcome.notes),
            command=outcome.command,
            target_path=target_path,
        )
        persist()
        failed += 1
        stopped_at = step.id
        log.error("Step %s failed: %s; stopping", step.id, (outcome.error.message if outcome.error else ""))
        break

    if explorer_needed:
        log.info("Explorer restart requested by completed steps")
        if restart_explorer is not None:
            # Every step is already recorded; a failed restart must not lose the summary.
            try:
                restart_explorer()
            except Exception:
                log.exception("Explorer restart failed")

    pending = sum(1 for s in state.steps if s.status in {StepStatus.PENDING, StepStatus.IN_PROGRESS})
    summary = RunSummary(
        attempted=attempted,
        succeeded=succeeded,
        failed=failed,
        pending=pending,
        stopped_at=stopped_at,
        explorer_restart_requested=explorer_needed,
    )
    log.info(
        "Run finished: attempted=%d succeeded=%d failed=%d pending=%d",
        attempted,
        succeeded,
        failed,
        pending,
    )
    return summary
