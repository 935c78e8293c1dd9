from __future__ import annotations

import platform
from dataclasses import dataclass

from ..models import Environment


@dataclass(frozen=True)
class Paths:
    artifacts_default: str = "artifacts"
    plan_file: str = "plan.json"
    state_file: str = "state.json"
    report_file: str = "report.json"
    logs_dir: str = "logs"
    archive_dir: str = "archive"
    run_log: str = "run.log"


PATHS = Paths()


def capture_environment() -> Environment:
    return Environment(computer_name=platform.node(), os_version=platform.platform())
