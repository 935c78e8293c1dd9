from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional, Sequence

from .catalog import Profile, apply_profile, load_catalog, load_profile
from .config import RunConfig, load_run_config
from .executors import RunContext
from .lib.env import PATHS
from .lib.explorer import prompt_restart_explorer
from .logging_utils import configure_logging, run_logger
from .models import CatalogItem, Plan, ResumeOption, RunMode, State
from .plan import build_plan, load_plan, save_plan
from .report import load_report, render_report, write_report
from .runner import run_plan
from .state_store import archive_artifacts, has_incomplete_steps, init_state, load_state, save_state

logger = logging.getLogger(__name__)

MODES = {
    "dry-run": RunMode.DRY_RUN,
    "mock": RunMode.MOCK,
    "real": RunMode.REAL,
}

EXIT_OK = 0
EXIT_STEP_FAILED = 1
EXIT_USAGE = 2


def _artifact(cfg: RunConfig, name: str) -> Path:
    return Path(cfg.artifacts_dir) / name


def _load_items(catalog_path: str, profile_path: Optional[str]) -> tuple[List[CatalogItem], Profile]:
    items = load_catalog(catalog_path)
    profile = load_profile(profile_path) if profile_path else Profile()
    return apply_profile(items, profile), profile


def execute(
    *,
    cfg: RunConfig,
    plan: Plan,
    state: State,
    items: Sequence[CatalogItem],
    mode: RunMode,
    resume: ResumeOption,
    fail_step_id: Optional[str] = None,
    assume_yes: bool = False,
) -> int:
    """Run a plan against the artifacts directory and write the report."""

    state_path = _artifact(cfg, PATHS.state_file)
    logs_dir = _artifact(cfg, PATHS.logs_dir)

    with run_logger(logs_dir / PATHS.run_log) as log:
        ctx = RunContext(
            mode=mode,
            artifacts_dir=Path(cfg.artifacts_dir),
            project_root=Path(cfg.project_root),
            logger=log,
            fail_step_id=fail_step_id,
            mock_delay=cfg.mock_delay,
            winget_timeout=cfg.winget_timeout,
            logs_dir=logs_dir,
        )
        try:
            summary = run_plan(
                plan,
                state,
                items,
                ctx,
                state_path=state_path,
                resume=resume,
                # Outside Real mode the restart is only logged, so never prompt.
                restart_explorer=lambda: prompt_restart_explorer(
                    assume_yes=assume_yes or mode is not RunMode.REAL,
                    dry_run=mode is not RunMode.REAL,
                ),
            )
        except Exception:
            log.exception("Run aborted")
            raise
        finally:
            save_state(state_path, state)

    report = write_report(_artifact(cfg, PATHS.report_file), plan, state, summary)
    print(render_report(report))
    return EXIT_OK if summary.ok else EXIT_STEP_FAILED


def cmd_run(args: argparse.Namespace, cfg: RunConfig) -> int:
    items, profile = _load_items(args.catalog, args.profile)
    selected = args.select if args.select else profile.select

    previous = load_state(_artifact(cfg, PATHS.state_file))
    if previous is not None and has_incomplete_steps(previous) and not args.fresh:
        print(
            "An unfinished run exists in "
            f"{cfg.artifacts_dir}. Use `winprovision resume` to continue, "
            "`winprovision resume --rerun-failed` to retry failures, "
            "`winprovision report` to view it, or `run --fresh` to start over."
        )
        return EXIT_USAGE

    archived = archive_artifacts(cfg.artifacts_dir)
    if archived is not None:
        logger.info("Previous run archived to %s", archived)

    plan = build_plan(items, selected)
    state = init_state(plan)
    save_plan(_artifact(cfg, PATHS.plan_file), plan)
    save_state(_artifact(cfg, PATHS.state_file), state)

    return execute(
        cfg=cfg,
        plan=plan,
        state=state,
        items=items,
        mode=MODES[args.mode],
        resume=ResumeOption.ALL,
        fail_step_id=args.fail_step,
        assume_yes=bool(args.yes),
    )


def cmd_resume(args: argparse.Namespace, cfg: RunConfig) -> int:
    plan = load_plan(_artifact(cfg, PATHS.plan_file))
    state = load_state(_artifact(cfg, PATHS.state_file))
    if plan is None or state is None:
        print(f"Nothing to resume in {cfg.artifacts_dir}")
        return EXIT_USAGE

    items, _ = _load_items(args.catalog, args.profile)
    resume = ResumeOption.RERUN_FAILED if args.rerun_failed else ResumeOption.RESUME_PENDING

    return execute(
        cfg=cfg,
        plan=plan,
        state=state,
        items=items,
        mode=MODES[args.mode],
        resume=resume,
        fail_step_id=args.fail_step,
        assume_yes=bool(args.yes),
    )


def cmd_report(args: argparse.Namespace, cfg: RunConfig) -> int:
    report = load_report(_artifact(cfg, PATHS.report_file))
    if report is None:
        print(f"No report found in {cfg.artifacts_dir}")
        return EXIT_STEP_FAILED
    print(render_report(report))
    return EXIT_OK


def _add_exec_args(sp: argparse.ArgumentParser) -> None:
    sp.add_argument("--catalog", required=True, help="Catalog file (yaml|json)")
    sp.add_argument("--profile", default=None, help="Profile with preselection and overrides")
    sp.add_argument("--mode", choices=sorted(MODES), default="dry-run")
    sp.add_argument("--fail-step", default=None, help="Mock mode only: force this step id to fail")
    sp.add_argument("--yes", action="store_true", help="Do not prompt before restarting Explorer")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="winprovision")
    p.add_argument("--config", default=None, help="Path to winprovision.yaml")
    p.add_argument("--artifacts", default=None, help="Artifacts directory (plan, state, logs)")
    p.add_argument("--log", default=None, help="Path to the process log")
    p.add_argument("-v", "--verbose", action="store_true")

    sub = p.add_subparsers(dest="cmd", required=True)

    sp = sub.add_parser("run", help="Build a new plan from a selection and run it")
    _add_exec_args(sp)
    sp.add_argument("--select", nargs="*", default=None, help="Catalog ids to include")
    sp.add_argument("--fresh", action="store_true", help="Archive an unfinished run and start over")
    sp.set_defaults(func=cmd_run)

    sp = sub.add_parser("resume", help="Continue the run in the artifacts directory")
    _add_exec_args(sp)
    sp.add_argument("--rerun-failed", action="store_true", help="Only re-run failed steps")
    sp.set_defaults(func=cmd_resume)

    sp = sub.add_parser("report", help="Show the last run report")
    sp.set_defaults(func=cmd_report)

    return p


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    cfg = load_run_config(args.config).with_overrides(artifacts_dir=args.artifacts)
    configure_logging(
        log_path=args.log or cfg.log_path,
        level=logging.DEBUG if args.verbose else logging.INFO,
    )

    return int(args.func(args, cfg))


if __name__ == "__main__":
    raise SystemExit(main())
