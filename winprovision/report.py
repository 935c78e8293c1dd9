from __future__ import annotations

from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Optional

from .lib.files import read_json, write_json
from .models import Plan, State, StepStatus, format_ts, utcnow
from .runner import RunSummary


def build_report(plan: Plan, state: State, summary: RunSummary) -> Dict[str, Any]:
    return {
        "generatedAt": format_ts(utcnow()),
        "planHash": state.plan_hash,
        "environment": plan.environment.to_dict(),
        "summary": asdict(summary),
        "steps": [s.to_dict() for s in state.steps],
    }


def write_report(path: str | Path, plan: Plan, state: State, summary: RunSummary) -> Dict[str, Any]:
    report = build_report(plan, state, summary)
    write_json(path, report)
    return report


def load_report(path: str | Path) -> Optional[Dict[str, Any]]:
    p = Path(path)
    if not p.exists():
        return None
    return read_json(p)


def render_report(report: Dict[str, Any]) -> str:
    summary = report.get("summary") or {}
    lines = [
        f"Plan {report.get('planHash')}:"
        f" attempted={summary.get('attempted', 0)}"
        f" succeeded={summary.get('succeeded', 0)}"
        f" failed={summary.get('failed', 0)}"
        f" pending={summary.get('pending', 0)}",
    ]

    for s in report.get("steps") or []:
        status = s.get("status")
        line = f"  [{status}] {s.get('id')}"
        if s.get("notes"):
            line += f" ({', '.join(s['notes'])})"
        lines.append(line)
        if status == StepStatus.FAILED.value and s.get("error"):
            err = s["error"]
            detail = err.get("message", "")
            if err.get("exitCode") is not None:
                detail += f" (exit code {err['exitCode']})"
            lines.append(f"      error: {detail}")

    if summary.get("failed"):
        lines.append("Fix the failure, then run `winprovision resume --rerun-failed`.")
    elif summary.get("pending"):
        lines.append("Steps remain pending; run `winprovision resume` to continue.")
    return "\n".join(lines)
