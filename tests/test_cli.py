import json

import pytest

from winprovision.main import main

CATALOG = """
items:
  - id: runtimes.base
    type: app
    name: Base runtime
    priority: 1
    winget: {id: Vendor.Base}
  - id: apps.editor
    type: app
    name: Editor
    priority: 2
    winget: {id: Vendor.Editor}
  - id: tweaks.echo
    type: script
    name: Echo
    priority: 3
    script: {path: scripts/echo.py, restartExplorer: true}
"""


@pytest.fixture
def cli_env(tmp_path, scripts_root, monkeypatch):
    # Root handlers would outlive pytest's per-test capture streams.
    monkeypatch.setattr("winprovision.main.configure_logging", lambda **kwargs: kwargs["log_path"])
    catalog = tmp_path / "catalog.yaml"
    catalog.write_text(CATALOG, encoding="utf-8")
    config = tmp_path / "winprovision.yaml"
    config.write_text(
        "paths:\n"
        f"  project_root: {scripts_root.as_posix()}\n"
        "mock:\n"
        "  delay: [0, 0]\n",
        encoding="utf-8",
    )
    artifacts = tmp_path / "artifacts"
    base = ["--config", str(config), "--artifacts", str(artifacts)]
    return base, str(catalog), artifacts


def _state(artifacts):
    raw = json.loads((artifacts / "state.json").read_text(encoding="utf-8"))
    return {s["id"]: s["status"] for s in raw["steps"]}


def test_cli_dry_run_all(cli_env, capsys):
    base, catalog, artifacts = cli_env

    rc = main(base + ["run", "--catalog", catalog, "--select", "tweaks.echo", "runtimes.base", "apps.editor"])

    assert rc == 0
    plan = json.loads((artifacts / "plan.json").read_text(encoding="utf-8"))
    assert [s["id"] for s in plan["steps"]] == ["runtimes.base", "apps.editor", "tweaks.echo"]
    assert set(_state(artifacts).values()) == {"Succeeded"}
    assert (artifacts / "logs" / "run.log").exists()
    assert "succeeded=3" in capsys.readouterr().out


def test_cli_failure_then_resume(cli_env, capsys):
    base, catalog, artifacts = cli_env
    select = ["--select", "runtimes.base", "apps.editor", "tweaks.echo"]

    rc = main(base + ["run", "--catalog", catalog, *select, "--mode", "mock", "--fail-step", "apps.editor"])
    assert rc == 1
    assert _state(artifacts) == {
        "runtimes.base": "Succeeded",
        "apps.editor": "Failed",
        "tweaks.echo": "Pending",
    }
    assert "Simulated failure for apps.editor" in capsys.readouterr().out

    # An unfinished run blocks a new plan unless --fresh is given.
    assert main(base + ["run", "--catalog", catalog, *select, "--mode", "mock"]) == 2

    assert main(base + ["resume", "--catalog", catalog, "--rerun-failed", "--mode", "mock"]) == 0
    assert _state(artifacts)["apps.editor"] == "Succeeded"
    assert _state(artifacts)["tweaks.echo"] == "Pending"

    assert main(base + ["resume", "--catalog", catalog, "--mode", "mock"]) == 0
    assert set(_state(artifacts).values()) == {"Succeeded"}

    capsys.readouterr()
    assert main(base + ["report"]) == 0
    assert "pending=0" in capsys.readouterr().out


def test_cli_fresh_archives_previous_run(cli_env):
    base, catalog, artifacts = cli_env

    main(base + ["run", "--catalog", catalog, "--select", "runtimes.base", "--mode", "mock", "--fail-step", "runtimes.base"])
    rc = main(base + ["run", "--catalog", catalog, "--select", "apps.editor", "--fresh"])

    assert rc == 0
    assert _state(artifacts) == {"apps.editor": "Succeeded"}
    archived = list((artifacts / "archive").iterdir())
    assert len(archived) == 1
    assert (archived[0] / "state.json").exists()


def test_cli_resume_without_state(cli_env, capsys):
    base, catalog, _ = cli_env

    assert main(base + ["resume", "--catalog", catalog]) == 2
    assert "Nothing to resume" in capsys.readouterr().out


def test_cli_empty_selection(cli_env):
    base, catalog, artifacts = cli_env

    assert main(base + ["run", "--catalog", catalog]) == 0
    assert _state(artifacts) == {}
