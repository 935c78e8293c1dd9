import logging
from pathlib import Path

import pytest

from winprovision.executors import RunContext
from winprovision.models import (
    AppItem,
    Environment,
    Plan,
    RunMode,
    ScriptConfig,
    ScriptItem,
    Step,
    WingetConfig,
    utcnow,
)
from winprovision.plan import build_plan


@pytest.fixture
def make_app():
    def _make(item_id, *, name=None, priority=100, package_id=None, **winget):
        return AppItem(
            id=item_id,
            name=name or item_id.split(".", 1)[1],
            effective_priority=priority,
            winget=WingetConfig(package_id=package_id or f"Vendor.{item_id}", **winget),
        )

    return _make


@pytest.fixture
def make_script():
    def _make(item_id, path, *, name=None, priority=100, parameters=None, restart_explorer=False):
        return ScriptItem(
            id=item_id,
            name=name or item_id.split(".", 1)[1],
            effective_priority=priority,
            script=ScriptConfig(path=path, parameters=dict(parameters or {}), restart_explorer=restart_explorer),
        )

    return _make


@pytest.fixture
def make_ctx(tmp_path):
    def _make(mode=RunMode.MOCK, *, fail_step_id=None, project_root=None):
        return RunContext(
            mode=mode,
            artifacts_dir=tmp_path / "artifacts",
            project_root=Path(project_root or tmp_path),
            logger=logging.getLogger("winprovision.test"),
            fail_step_id=fail_step_id,
            mock_delay=(0.0, 0.0),
        )

    return _make


@pytest.fixture
def three_apps(make_app):
    return [
        make_app("apps.a", priority=1),
        make_app("apps.b", priority=2),
        make_app("apps.c", priority=3),
    ]


@pytest.fixture
def three_step_plan(three_apps):
    return build_plan(three_apps, [it.id for it in three_apps])


@pytest.fixture
def state_path(tmp_path):
    return tmp_path / "artifacts" / "state.json"


@pytest.fixture
def scripts_root(tmp_path):
    root = tmp_path / "project"
    (root / "scripts").mkdir(parents=True)
    (root / "scripts" / "echo.py").write_text(
        "def run(params, dry_run):\n"
        "    print('dry_run=%s' % dry_run)\n"
        "    return 'params=%s' % sorted(params.items())\n",
        encoding="utf-8",
    )
    (root / "scripts" / "touch.py").write_text(
        "from pathlib import Path\n"
        "\n"
        "def run(params, dry_run):\n"
        "    if not dry_run:\n"
        "        Path(params['marker']).write_text('touched')\n"
        "    return ['ok']\n",
        encoding="utf-8",
    )
    (root / "scripts" / "boom.py").write_text(
        "def run(params, dry_run):\n"
        "    raise RuntimeError('registry key is locked')\n",
        encoding="utf-8",
    )
    (root / "scripts" / "legacy.ps1").write_text("Write-Host hi\n", encoding="utf-8")
    return root


def manual_plan(*steps):
    return Plan(generated_at=utcnow(), environment=Environment("host", "os"), steps=tuple(steps))


@pytest.fixture
def plan_of():
    def _make(*pairs):
        return manual_plan(*(Step(id=i, type=t, parameters={}) for i, t in pairs))

    return _make
