"""Logging setup shared by the web app, the CLI and the alert sweep."""
from __future__ import annotations

import logging
import os
import sys
from datetime import datetime
from pathlib import Path

_DEFAULT_LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
_DATE_FMT = "%Y-%m-%d %H:%M:%S"

# SDK loggers that log every HTTP request at INFO
_NOISY_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "openai", "google_genai", "urllib3")

_configured = False


def get_logger(name: str) -> logging.Logger:
    """Return a named logger; configures root handlers on first call."""
    global _configured
    if not _configured:
        configure()
        _configured = True
    return logging.getLogger(name)


def configure(level: str | None = None, log_dir: Path | None = None) -> None:
    """Attach a stdout handler and a daily file handler to the root logger.

    LOG_LEVEL picks the console level; JOBNADO_LOG_DIR moves the log files,
    and JOBNADO_LOG_DIR=- disables the file handler entirely.
    """
    level_name = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    numeric = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    root.setLevel(numeric)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric, logging.WARNING))

    if root.handlers:
        return

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(numeric)
    console.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FMT))
    root.addHandler(console)

    env_dir = os.environ.get("JOBNADO_LOG_DIR", "").strip()
    if env_dir == "-":
        return
    target = log_dir or (Path(env_dir) if env_dir else _DEFAULT_LOG_DIR)
    try:
        target.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(
            target / f"jobnado_{datetime.now().strftime('%Y-%m-%d')}.log",
            encoding="utf-8",
        )
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FMT))
        root.addHandler(fh)
    except OSError:
        # read-only deployments (serverless) keep console logging only
        pass
