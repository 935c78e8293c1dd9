"""Catalog and profile loading.

Catalogs are YAML or JSON documents::

    defaults:
      priority: 100
    items:
      - id: browsers.firefox
        type: app
        name: Firefox
        priority: 10
        winget: {id: Mozilla.Firefox, scope: machine}
      - id: tweaks.file-extensions
        type: script
        name: Show file extensions
        script: {path: scripts/tweaks/show_file_extensions.py, restartExplorer: true}

Profiles preselect ids and override per-item settings::

    select: [browsers.firefox]
    overrides:
      browsers.firefox: {override: "/S"}
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Sequence

from .errors import CatalogError
from .models import AppItem, CatalogItem, ScriptConfig, ScriptItem, WingetConfig, sort_key

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY = 100

_ID_RE = re.compile(r"^[A-Za-z0-9_-]+\.[A-Za-z0-9_.-]+$")


@dataclass(frozen=True)
class Profile:
    select: List[str] = field(default_factory=list)
    overrides: Dict[str, Dict[str, Any]] = field(default_factory=dict)


def _load_document(path: str | Path) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(str(path))

    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in {".yaml", ".yml"}:
        try:
            import yaml  # type: ignore
        except Exception as e:  # pragma: no cover
            raise RuntimeError("PyYAML is required to read YAML catalogs") from e
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)

    if not isinstance(data, dict):
        raise CatalogError(f"{p.name} must contain a mapping/object")
    return data


def _parse_item(raw: Dict[str, Any], default_priority: int) -> CatalogItem:
    item_id = str(raw.get("id") or "")
    if not _ID_RE.match(item_id):
        raise CatalogError(f"Invalid item id {item_id!r} (expected category.name)")

    name = str(raw.get("name") or item_id.split(".", 1)[1])
    priority = raw.get("priority")
    effective = int(priority) if priority is not None else int(default_priority)
    description = str(raw.get("description") or "")
    kind = raw.get("type")

    if kind == "app":
        w = raw.get("winget")
        if not isinstance(w, dict) or not w.get("id"):
            raise CatalogError(f"{item_id}: app items need a winget block with an id")
        winget = WingetConfig(
            package_id=str(w["id"]),
            source=w.get("source", "winget"),
            scope=w.get("scope"),
            override=w.get("override"),
        )
        return AppItem(id=item_id, name=name, effective_priority=effective, winget=winget, description=description)

    if kind == "script":
        s = raw.get("script")
        if not isinstance(s, dict) or not s.get("path"):
            raise CatalogError(f"{item_id}: script items need a script block with a path")
        params = s.get("parameters") or {}
        if not isinstance(params, dict):
            raise CatalogError(f"{item_id}: script parameters must be a mapping")
        script = ScriptConfig(
            path=str(s["path"]),
            parameters=dict(params),
            restart_explorer=bool(s.get("restartExplorer", False)),
        )
        return ScriptItem(id=item_id, name=name, effective_priority=effective, script=script, description=description)

    raise CatalogError(f"{item_id}: unknown item type {kind!r}")


def load_catalog(path: str | Path) -> List[CatalogItem]:
    data = _load_document(path)
    defaults = data.get("defaults") or {}
    default_priority = int(defaults.get("priority", DEFAULT_PRIORITY))

    raw_items = data.get("items") or []
    if not isinstance(raw_items, list):
        raise CatalogError("catalog items must be a list")

    items: List[CatalogItem] = []
    seen: set[str] = set()
    for raw in raw_items:
        if not isinstance(raw, dict):
            raise CatalogError("catalog items must be mappings")
        item = _parse_item(raw, default_priority)
        if item.id in seen:
            raise CatalogError(f"Duplicate catalog id: {item.id}")
        seen.add(item.id)
        items.append(item)

    items.sort(key=sort_key)
    logger.info("Loaded %d catalog item(s) from %s", len(items), path)
    return items


def load_profile(path: str | Path) -> Profile:
    data = _load_document(path)
    select = data.get("select") or []
    overrides = data.get("overrides") or {}
    if not isinstance(select, list) or not isinstance(overrides, dict):
        raise CatalogError("profile select must be a list and overrides a mapping")
    return Profile(select=[str(s) for s in select], overrides={str(k): dict(v or {}) for k, v in overrides.items()})


def apply_profile(items: Sequence[CatalogItem], profile: Profile) -> List[CatalogItem]:
    """Return items with profile overrides applied; originals are untouched."""

    out: List[CatalogItem] = []
    for item in items:
        ov = profile.overrides.get(item.id)
        if not ov:
            out.append(item)
            continue
        if isinstance(item, AppItem) and "override" in ov:
            item = replace(item, winget=replace(item.winget, override=ov["override"]))
        elif isinstance(item, ScriptItem) and "parameters" in ov:
            merged = {**item.script.parameters, **(ov["parameters"] or {})}
            item = replace(item, script=replace(item.script, parameters=merged))
        out.append(item)
    return out
