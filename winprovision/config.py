from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .lib.env import PATHS


@dataclass(frozen=True)
class RunConfig:
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def artifacts_dir(self) -> str:
        return str(((self.raw.get("paths") or {}).get("artifacts_dir")) or PATHS.artifacts_default)

    @property
    def project_root(self) -> str:
        return str(((self.raw.get("paths") or {}).get("project_root")) or Path.cwd())

    @property
    def log_path(self) -> str:
        configured = (self.raw.get("paths") or {}).get("log_path")
        return str(configured or Path(self.artifacts_dir) / "winprovision.log")

    @property
    def mock_delay(self) -> Tuple[float, float]:
        d = (self.raw.get("mock") or {}).get("delay") or [0.2, 1.0]
        lo, hi = float(d[0]), float(d[1])
        return (min(lo, hi), max(lo, hi))

    @property
    def winget_timeout(self) -> Optional[float]:
        t = (self.raw.get("winget") or {}).get("timeout", 1800)
        return float(t) if t else None

    def with_overrides(self, **paths: Optional[str]) -> "RunConfig":
        merged = dict(self.raw)
        p = dict(merged.get("paths") or {})
        p.update({k: v for k, v in paths.items() if v})
        merged["paths"] = p
        return RunConfig(raw=merged)


def load_run_config(path: Optional[str]) -> RunConfig:
    if path is None:
        return RunConfig()

    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(path)

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ValueError("winprovision config must be YAML")

    try:
        import yaml  # type: ignore
    except Exception as e:
        raise RuntimeError("PyYAML is required to read the winprovision config") from e

    raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError("winprovision config must contain a mapping/object")

    return RunConfig(raw=raw)
