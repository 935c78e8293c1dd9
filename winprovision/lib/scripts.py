"""Loading and invoking provisioning scripts.

A provisioning script is a ``.py`` file exposing::

    def run(params: dict, dry_run: bool) -> str | list[str] | None

It reports failure only by raising. With ``dry_run=True`` it must not change
the machine. Anything it prints or returns is treated as informational output.
"""

from __future__ import annotations

import contextlib
import importlib.util
import io
import logging
from pathlib import Path
from types import ModuleType
from typing import Any, Dict, List, Mapping, Optional

from ..errors import ScriptNotFoundError

logger = logging.getLogger(__name__)

SCRIPT_SUFFIX = ".py"


def resolve_script(project_root: str | Path, rel_path: str) -> Path:
    p = (Path(project_root) / rel_path).resolve()
    if p.suffix.lower() != SCRIPT_SUFFIX:
        raise ScriptNotFoundError(f"Script not found: {rel_path} (expected a {SCRIPT_SUFFIX} file)")
    if not p.is_file():
        raise ScriptNotFoundError(f"Script not found: {p}")
    return p


def merge_parameters(parameters: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    return {str(k): v for k, v in (parameters or {}).items()}


def load_script(path: Path) -> ModuleType:
    name = f"winprovision_script_{path.stem}"
    spec = importlib.util.spec_from_file_location(name, str(path))
    if spec is None or spec.loader is None:
        raise ScriptNotFoundError(f"Script not found: {path} (not importable)")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    if not callable(getattr(module, "run", None)):
        raise AttributeError(f"{path.name} does not define run(params, dry_run)")
    return module


def invoke_script(path: Path, params: Dict[str, Any], *, dry_run: bool) -> List[str]:
    """Run a script and return its informational output lines."""

    module = load_script(path)
    buf = io.StringIO()
    with contextlib.redirect_stdout(buf):
        returned = module.run(dict(params), dry_run=dry_run)

    lines = [ln for ln in buf.getvalue().splitlines() if ln.strip()]
    if isinstance(returned, str):
        lines.extend(ln for ln in returned.splitlines() if ln.strip())
    elif returned is not None:
        lines.extend(str(r) for r in returned)
    return lines
