from __future__ import annotations

import contextlib
import logging
import os
from pathlib import Path
from typing import Iterable, Iterator, List, Optional

DEFAULT_LOG_PATH = "artifacts/winprovision.log"
FALLBACK_LOG_NAME = "winprovision.log"
RUN_LOGGER_NAME = "winprovision.run"

_FORMAT = logging.Formatter(
    fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S%z",
)


def _installed_file_handler(root: logging.Logger) -> Optional[logging.FileHandler]:
    for h in root.handlers:
        if getattr(h, "winprovision_owned", False) and isinstance(h, logging.FileHandler):
            return h
    return None


def _open_log_file(candidates: Iterable[Path]) -> logging.FileHandler:
    error: Optional[OSError] = None
    for candidate in candidates:
        try:
            candidate.parent.mkdir(parents=True, exist_ok=True)
            return logging.FileHandler(candidate, encoding="utf-8")
        except OSError as e:
            error = e
    assert error is not None
    raise error


def configure_logging(
    log_path: str | Path = DEFAULT_LOG_PATH,
    level: int = logging.INFO,
    also_console: bool = True,
) -> str:
    """Attach the process log file (and optionally stderr) to the root logger.

    Idempotent: a second call keeps the handlers from the first. When the
    requested file cannot be opened, ``./winprovision.log`` is used instead.
    Returns the path of the file being written.
    """

    root = logging.getLogger()
    root.setLevel(level)

    existing = _installed_file_handler(root)
    if existing is not None:
        return existing.baseFilename

    requested = Path(log_path)
    file_handler = _open_log_file([requested, Path.cwd() / FALLBACK_LOG_NAME])
    handlers: List[logging.Handler] = [file_handler]
    if also_console:
        handlers.append(logging.StreamHandler())

    for h in handlers:
        h.setFormatter(_FORMAT)
        h.winprovision_owned = True  # type: ignore[attr-defined]
        root.addHandler(h)

    actual = file_handler.baseFilename
    if actual != os.path.abspath(requested):
        logging.getLogger(__name__).warning("Cannot write %s; logging to %s", requested, actual)
    return actual


@contextlib.contextmanager
def run_logger(log_path: str | Path, *, level: int = logging.INFO) -> Iterator[logging.Logger]:
    """Per-run logger with its own file, opened here and closed on exit.

    Records still propagate to the root handlers set up by configure_logging().
    """

    p = Path(log_path)
    p.parent.mkdir(parents=True, exist_ok=True)

    log = logging.getLogger(RUN_LOGGER_NAME)
    log.setLevel(level)
    handler = logging.FileHandler(p, encoding="utf-8")
    handler.setFormatter(_FORMAT)
    log.addHandler(handler)
    log.info("Run log opened: %s", p)
    try:
        yield log
    finally:
        log.info("Run log closed")
        log.removeHandler(handler)
        handler.close()
