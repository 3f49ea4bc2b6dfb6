#!/usr/bin/env python3
"""
Run the job-alert sweep daily at ALERT_RUN_HOUR_UTC and email every active subscriber.

Usage:
  - Cron (recommended): python setup_cron.py, which installs
      0 <hour> * * * cd /path/to/project && .venv/bin/python run_alerts.py --once
  - Or keep this script running: python run_alerts.py
"""
from __future__ import annotations

import sys
import time
from datetime import datetime, timedelta, timezone
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from jobnado.config import ConfigError, load_settings
from jobnado.log import get_logger
from jobnado.services import build_sweep
from jobnado.sweep import SweepResult

log = get_logger(__name__)


def run_once() -> list[SweepResult]:
    sweep = build_sweep(load_settings())
    results = sweep.run()
    for r in results:
        log.info("  %-28s %-24s %-26s jobs=%d %s", r.email, r.role, r.status, r.jobs_found, r.error)
    return results


def next_run(hour: int, now: datetime | None = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    target = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if now >= target:
        target += timedelta(days=1)
    return target


def main() -> None:
    hour = load_settings().alert_run_hour_utc
    log.info("Scheduler: alert sweep daily at %02d:00 UTC", hour)
    while True:
        target = next_run(hour)
        wait_secs = (target - datetime.now(timezone.utc)).total_seconds()
        log.info("Next sweep at %s (in %.1f hours)", target.isoformat(), wait_secs / 3600)
        time.sleep(max(wait_secs, 0))
        try:
            run_once()
        except ConfigError as exc:
            log.error("Sweep not run: %s", exc)


if __name__ == "__main__":
    if "--once" in sys.argv:
        try:
            run_once()
        except ConfigError as exc:
            log.error("%s", exc)
            sys.exit(1)
        sys.exit(0)
    main()
