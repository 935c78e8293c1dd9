import json

import pytest

from winprovision.catalog import Profile, apply_profile, load_catalog, load_profile
from winprovision.errors import CatalogError
from winprovision.models import AppItem, ScriptItem

CATALOG_YAML = """
defaults:
  priority: 70
items:
  - id: tweaks.dark-mode
    type: script
    name: Dark mode
    priority: 200
    script:
      path: scripts/tweaks/dark_mode.py
      parameters: {apps: true, system: true}
      restartExplorer: true
  - id: dev.git
    type: app
    name: Git
    winget: {id: Git.Git, override: "/VERYSILENT"}
  - id: runtimes.vcredist
    type: app
    name: VC++
    priority: 10
    winget: {id: Microsoft.VCRedist.2015+.x64, scope: machine}
"""


def _write(tmp_path, name, text):
    p = tmp_path / name
    p.write_text(text, encoding="utf-8")
    return p


def test_load_catalog_yaml(tmp_path):
    items = load_catalog(_write(tmp_path, "catalog.yaml", CATALOG_YAML))

    assert [it.id for it in items] == ["runtimes.vcredist", "dev.git", "tweaks.dark-mode"]

    vc, git, dark = items
    assert isinstance(vc, AppItem) and vc.winget.scope == "machine" and vc.winget.source == "winget"
    assert git.effective_priority == 70
    assert git.winget.override == "/VERYSILENT"
    assert git.category == "dev"
    assert isinstance(dark, ScriptItem)
    assert dark.script.restart_explorer is True
    assert dark.script.parameters == {"apps": True, "system": True}


def test_load_catalog_json(tmp_path):
    doc = {"items": [{"id": "browsers.firefox", "type": "app", "winget": {"id": "Mozilla.Firefox"}}]}
    items = load_catalog(_write(tmp_path, "catalog.json", json.dumps(doc)))

    assert items[0].name == "firefox"
    assert items[0].effective_priority == 100


@pytest.mark.parametrize(
    "item,match",
    [
        ({"id": "nodot", "type": "app", "winget": {"id": "X"}}, "category.name"),
        ({"id": "a.b", "type": "driver"}, "unknown item type"),
        ({"id": "a.b", "type": "app"}, "winget"),
        ({"id": "a.b", "type": "script", "script": {}}, "path"),
    ],
)
def test_load_catalog_rejects_bad_items(tmp_path, item, match):
    path = _write(tmp_path, "catalog.json", json.dumps({"items": [item]}))

    with pytest.raises(CatalogError, match=match):
        load_catalog(path)


def test_load_catalog_rejects_duplicates(tmp_path):
    item = {"id": "a.b", "type": "app", "winget": {"id": "X"}}
    path = _write(tmp_path, "catalog.json", json.dumps({"items": [item, item]}))

    with pytest.raises(CatalogError, match="Duplicate"):
        load_catalog(path)


def test_load_catalog_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_catalog(tmp_path / "nope.yaml")


def test_apply_profile_clones_items(tmp_path):
    items = load_catalog(_write(tmp_path, "catalog.yaml", CATALOG_YAML))
    profile = load_profile(
        _write(
            tmp_path,
            "profile.yaml",
            "select: [dev.git]\n"
            "overrides:\n"
            "  dev.git: {override: /SILENT}\n"
            "  tweaks.dark-mode: {parameters: {system: false}}\n",
        )
    )

    out = apply_profile(items, profile)

    assert profile.select == ["dev.git"]
    by_id = {it.id: it for it in out}
    assert by_id["dev.git"].winget.override == "/SILENT"
    assert by_id["tweaks.dark-mode"].script.parameters == {"apps": True, "system": False}
    assert by_id["runtimes.vcredist"] is items[0]

    # originals untouched
    assert items[1].winget.override == "/VERYSILENT"
    assert items[2].script.parameters == {"apps": True, "system": True}


def test_apply_empty_profile_is_identity(tmp_path):
    items = load_catalog(_write(tmp_path, "catalog.yaml", CATALOG_YAML))

    assert apply_profile(items, Profile()) == items
