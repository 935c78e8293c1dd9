"""Typed records shared by the plan builder, state store, executors and runner.

Persisted shapes (plan.json / state.json) use camelCase keys; the dataclasses
here use snake_case and convert in ``to_dict`` / ``from_dict``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

PLAN_VERSION = "1.0"
STATE_VERSION = "1.0"


class StepStatus(str, enum.Enum):
    PENDING = "Pending"
    IN_PROGRESS = "InProgress"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    SKIPPED = "Skipped"


class RunMode(str, enum.Enum):
    DRY_RUN = "DryRun"
    MOCK = "Mock"
    REAL = "Real"


class ResumeOption(str, enum.Enum):
    ALL = "All"
    RESUME_PENDING = "ResumePending"
    RERUN_FAILED = "RerunFailed"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_ts(ts: Optional[datetime]) -> Optional[str]:
    if ts is None:
        return None
    return ts.isoformat()


def parse_ts(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value)


# ---------------------------------------------------------------------------
# Catalog items (read-only input)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WingetConfig:
    package_id: str
    source: Optional[str] = "winget"
    scope: Optional[str] = None
    override: Optional[str] = None


@dataclass(frozen=True)
class ScriptConfig:
    path: str
    parameters: Dict[str, Any] = field(default_factory=dict)
    restart_explorer: bool = False


@dataclass(frozen=True)
class AppItem:
    id: str
    name: str
    effective_priority: int
    winget: WingetConfig
    description: str = ""
    type: str = field(default="app", init=False)

    @property
    def category(self) -> str:
        return self.id.split(".", 1)[0]


@dataclass(frozen=True)
class ScriptItem:
    id: str
    name: str
    effective_priority: int
    script: ScriptConfig
    description: str = ""
    type: str = field(default="script", init=False)

    @property
    def category(self) -> str:
        return self.id.split(".", 1)[0]


CatalogItem = Union[AppItem, ScriptItem]


def sort_key(item: CatalogItem) -> tuple:
    # Ids are unique, so the trailing id makes this a total order.
    return (item.effective_priority, item.category, item.name, item.id)


# ---------------------------------------------------------------------------
# Plan
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Step:
    id: str
    type: str
    parameters: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "type": self.type, "parameters": dict(self.parameters)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Step":
        return cls(id=str(data["id"]), type=str(data["type"]), parameters=dict(data.get("parameters") or {}))


@dataclass(frozen=True)
class Environment:
    computer_name: str
    os_version: str

    def to_dict(self) -> Dict[str, Any]:
        return {"computerName": self.computer_name, "osVersion": self.os_version}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Environment":
        return cls(computer_name=str(data.get("computerName") or ""), os_version=str(data.get("osVersion") or ""))


@dataclass(frozen=True)
class Plan:
    generated_at: datetime
    environment: Environment
    steps: tuple
    plan_version: str = PLAN_VERSION

    def to_dict(self) -> Dict[str, Any]:
        return {
            "planVersion": self.plan_version,
            "generatedAt": format_ts(self.generated_at),
            "environment": self.environment.to_dict(),
            "steps": [s.to_dict() for s in self.steps],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Plan":
        return cls(
            plan_version=str(data.get("planVersion") or PLAN_VERSION),
            generated_at=parse_ts(data.get("generatedAt")) or utcnow(),
            environment=Environment.from_dict(data.get("environment") or {}),
            steps=tuple(Step.from_dict(s) for s in data.get("steps") or []),
        )


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StepError:
    message: str
    exit_code: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"message": self.message}
        if self.exit_code is not None:
            d["exitCode"] = self.exit_code
        return d

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["StepError"]:
        if not data:
            return None
        code = data.get("exitCode")
        return cls(message=str(data.get("message") or ""), exit_code=int(code) if code is not None else None)


@dataclass
class StateStep:
    id: str
    status: StepStatus = StepStatus.PENDING
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    error: Optional[StepError] = None
    notes: List[str] = field(default_factory=list)
    command: Optional[str] = None
    target_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status.value,
            "startedAt": format_ts(self.started_at),
            "endedAt": format_ts(self.ended_at),
            "error": self.error.to_dict() if self.error else None,
            "notes": list(self.notes),
            "command": self.command,
            "targetPath": self.target_path,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StateStep":
        return cls(
            id=str(data["id"]),
            status=StepStatus(data.get("status") or StepStatus.PENDING.value),
            started_at=parse_ts(data.get("startedAt")),
            ended_at=parse_ts(data.get("endedAt")),
            error=StepError.from_dict(data.get("error")),
            notes=[str(n) for n in data.get("notes") or []],
            command=data.get("command"),
            target_path=data.get("targetPath"),
        )


@dataclass
class State:
    plan_hash: str
    started_at: datetime
    steps: List[StateStep]
    state_version: str = STATE_VERSION

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stateVersion": self.state_version,
            "planHash": self.plan_hash,
            "startedAt": format_ts(self.started_at),
            "steps": [s.to_dict() for s in self.steps],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "State":
        return cls(
            state_version=str(data.get("stateVersion") or STATE_VERSION),
            plan_hash=str(data["planHash"]),
            started_at=parse_ts(data.get("startedAt")) or utcnow(),
            steps=[StateStep.from_dict(s) for s in data.get("steps") or []],
        )


# ---------------------------------------------------------------------------
# Executor outcome
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Outcome:
    success: bool
    command: Optional[str] = None
    error: Optional[StepError] = None
    notes: tuple = ()
    target_paths: tuple = ()
    explorer_required: bool = False

    @classmethod
    def ok(cls, *, command: Optional[str] = None, notes=(), target_paths=(), explorer_required: bool = False) -> "Outcome":
        return cls(
            success=True,
            command=command,
            notes=tuple(notes),
            target_paths=tuple(target_paths),
            explorer_required=explorer_required,
        )

    @classmethod
    def failed(
        cls,
        message: str,
        *,
        exit_code: Optional[int] = None,
        command: Optional[str] = None,
        notes=(),
        target_paths=(),
    ) -> "Outcome":
        return cls(
            success=False,
            command=command,
            error=StepError(message=message, exit_code=exit_code),
            notes=tuple(notes),
            target_paths=tuple(target_paths),
        )
