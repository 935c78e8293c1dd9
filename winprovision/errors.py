from __future__ import annotations


class ProvisionError(RuntimeError):
    pass


class IntegrityError(ProvisionError):
    """Plan/state/catalog pairing can no longer be trusted."""


class StepNotFoundError(IntegrityError, KeyError):
    def __init__(self, step_id: str) -> None:
        super().__init__(f"Step not found in state: {step_id}")
        self.step_id = step_id

    def __str__(self) -> str:
        return str(self.args[0])


class ScriptNotFoundError(ProvisionError, FileNotFoundError):
    pass


class CatalogError(ProvisionError, ValueError):
    pass
