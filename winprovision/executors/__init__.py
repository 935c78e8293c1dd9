from ..errors import IntegrityError
from ..models import CatalogItem, Outcome, Step
from .base import RunContext
from .install_step import InstallStepExecutor
from .script_step import ScriptStepExecutor

EXECUTORS = {
    InstallStepExecutor.step_type: InstallStepExecutor(),
    ScriptStepExecutor.step_type: ScriptStepExecutor(),
}


def select_executor(step: Step, item: CatalogItem):
    executor = EXECUTORS.get(step.type)
    if executor is None:
        raise IntegrityError(f"Unknown step type {step.type!r} for {step.id}")
    if item.type != step.type:
        raise IntegrityError(f"Step {step.id} is {step.type!r} but catalog item is {item.type!r}")
    return executor


def execute_step(step: Step, item: CatalogItem, ctx: RunContext) -> Outcome:
    return select_executor(step, item).run(step, item, ctx)


__all__ = [
    "EXECUTORS",
    "InstallStepExecutor",
    "RunContext",
    "ScriptStepExecutor",
    "execute_step",
    "select_executor",
]
