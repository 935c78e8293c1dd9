from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from ..errors import IntegrityError
from ..models import Outcome, RunMode

NOTE_DRY_RUN = "dryRun"
NOTE_MOCK = "mock"
NOTE_SIMULATED_FAILURE = "simulatedFailure"
NOTE_ALREADY_INSTALLED = "alreadyInstalled"


@dataclass(frozen=True)
class RunContext:
    """Everything an executor needs besides the step and its catalog item.

    ``fail_step_id`` is a test hook: in Mock mode the matching step fails.
    """

    mode: RunMode
    artifacts_dir: Path
    project_root: Path
    logger: logging.Logger
    fail_step_id: Optional[str] = None
    mock_delay: Tuple[float, float] = (0.2, 1.0)
    winget_timeout: Optional[float] = 1800.0
    logs_dir: Optional[Path] = None

    def __post_init__(self) -> None:
        if not isinstance(self.mode, RunMode):
            object.__setattr__(self, "mode", RunMode(self.mode))

    def step_log_path(self, step_id: str) -> Path:
        logs = Path(self.logs_dir) if self.logs_dir else Path(self.artifacts_dir) / "logs"
        return logs / f"{step_id}.log"


def unknown_mode(mode: object) -> IntegrityError:
    return IntegrityError(f"Unknown run mode: {mode!r}")


def mock_outcome(step_id: str, ctx: RunContext, *, command: Optional[str] = None, explorer_required: bool = False) -> Outcome:
    if ctx.fail_step_id is not None and ctx.fail_step_id == step_id:
        ctx.logger.warning("[%s] simulated failure", step_id)
        return Outcome.failed(
            f"Simulated failure for {step_id}",
            command=command,
            notes=(NOTE_MOCK, NOTE_SIMULATED_FAILURE),
        )

    lo, hi = ctx.mock_delay
    if hi > 0:
        time.sleep(random.uniform(max(lo, 0.0), hi))
    ctx.logger.info("[%s] mock success", step_id)
    return Outcome.ok(command=command, notes=(NOTE_MOCK,), explorer_required=explorer_required)
