from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Optional

from .errors import IntegrityError, StepNotFoundError
from .lib.env import PATHS
from .lib.files import move_into, read_json, write_json
from .models import Plan, State, StateStep, StepStatus, utcnow
from .plan import compute_plan_hash

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = frozenset(
    {"status", "started_at", "ended_at", "error", "notes", "command", "target_path"}
)

INCOMPLETE_STATUSES = frozenset({StepStatus.PENDING, StepStatus.IN_PROGRESS, StepStatus.FAILED})


def init_state(plan: Plan) -> State:
    """Fresh ledger for a plan: every step Pending, index-aligned with plan.steps."""

    steps = [StateStep(id=s.id) for s in plan.steps]
    state = State(plan_hash=compute_plan_hash(plan.steps), started_at=utcnow(), steps=steps)
    verify_state(plan, state)
    return state


def find_step(state: State, step_id: str) -> Optional[StateStep]:
    for s in state.steps:
        if s.id == step_id:
            return s
    return None


def update_step(state: State, step_id: str, **fields: Any) -> StateStep:
    """Apply only the supplied fields to one step.

    ``error=None`` clears a previous error; omitting ``error`` leaves it alone.
    """

    unknown = set(fields) - _UPDATABLE_FIELDS
    if unknown:
        raise TypeError(f"Unknown state step field(s): {', '.join(sorted(unknown))}")

    step = find_step(state, step_id)
    if step is None:
        raise StepNotFoundError(step_id)

    if "status" in fields:
        fields["status"] = StepStatus(fields["status"])
    if "notes" in fields:
        fields["notes"] = list(fields["notes"] or [])

    for key, value in fields.items():
        setattr(step, key, value)
    return step


def verify_state(plan: Plan, state: State) -> None:
    expected = compute_plan_hash(plan.steps)
    if state.plan_hash != expected:
        raise IntegrityError(f"State plan hash {state.plan_hash} does not match plan ({expected})")
    if len(state.steps) != len(plan.steps):
        raise IntegrityError(
            f"State has {len(state.steps)} step(s) but plan has {len(plan.steps)}"
        )
    for i, (ps, ss) in enumerate(zip(plan.steps, state.steps)):
        if ps.id != ss.id:
            raise IntegrityError(f"Step {i} mismatch: plan={ps.id} state={ss.id}")


def save_state(path: str | Path, state: State) -> None:
    write_json(path, state.to_dict())


def load_state(path: str | Path) -> Optional[State]:
    p = Path(path)
    if not p.exists():
        return None
    return State.from_dict(read_json(p))


def pending_steps(state: State) -> List[StateStep]:
    return [s for s in state.steps if s.status in {StepStatus.PENDING, StepStatus.IN_PROGRESS}]


def failed_steps(state: State) -> List[StateStep]:
    return [s for s in state.steps if s.status == StepStatus.FAILED]


def has_incomplete_steps(state: State) -> bool:
    return any(s.status in INCOMPLETE_STATUSES for s in state.steps)


def archive_artifacts(artifacts_dir: str | Path) -> Optional[Path]:
    """Move the previous run's files aside so a fresh plan can start."""

    root = Path(artifacts_dir)
    names = [PATHS.plan_file, PATHS.state_file, PATHS.report_file, PATHS.logs_dir]
    present = [root / n for n in names if (root / n).exists()]
    if not present:
        return None

    dest = root / PATHS.archive_dir / utcnow().strftime("%Y%m%dT%H%M%S%fZ")
    for p in present:
        move_into(p, dest)
    logger.info("Archived %d artifact(s) to %s", len(present), dest)
    return dest
