from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Iterable, Sequence, Union

from .lib.env import capture_environment
from .lib.files import read_json, write_json
from .models import AppItem, CatalogItem, Plan, ScriptItem, Step, sort_key, utcnow

logger = logging.getLogger(__name__)

HASH_LENGTH = 12


def _snapshot_parameters(item: CatalogItem) -> dict:
    if isinstance(item, AppItem):
        return {"override": item.winget.override}
    if isinstance(item, ScriptItem):
        return dict(item.script.parameters)
    raise TypeError(f"Unsupported catalog item: {item!r}")


def build_plan(all_items: Sequence[CatalogItem], selected_ids: Iterable[str]) -> Plan:
    """Build the ordered plan for a selection.

    Unknown and duplicate ids are ignored. Steps are ordered by
    (priority, category, display name) and never reordered afterwards.
    """

    wanted = set(selected_ids)
    chosen = sorted((it for it in all_items if it.id in wanted), key=sort_key)

    unknown = wanted - {it.id for it in chosen}
    if unknown:
        logger.warning("Ignoring unknown selection ids: %s", ",".join(sorted(unknown)))

    steps = tuple(Step(id=it.id, type=it.type, parameters=_snapshot_parameters(it)) for it in chosen)
    plan = Plan(generated_at=utcnow(), environment=capture_environment(), steps=steps)
    logger.info("Built plan with %d step(s): %s", len(steps), ",".join(s.id for s in steps))
    return plan


def compute_plan_hash(steps: Iterable[Union[Step, str]]) -> str:
    ids = [s if isinstance(s, str) else s.id for s in steps]
    # JSON encoding keeps ids containing separators from colliding.
    digest = hashlib.sha256(json.dumps(ids).encode("utf-8")).hexdigest()
    return digest[:HASH_LENGTH]


def save_plan(path: str | Path, plan: Plan) -> None:
    write_json(path, plan.to_dict())


def load_plan(path: str | Path) -> Plan | None:
    p = Path(path)
    if not p.exists():
        return None
    return Plan.from_dict(read_json(p))
