#!/usr/bin/env python3
"""
Install a cron entry that runs the alert sweep daily at ALERT_RUN_HOUR_UTC (from .env).
Cron uses the host clock, so run this on a host set to UTC.
Run once: python setup_cron.py
"""
from __future__ import annotations

import os
import subprocess
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).resolve().parent
load_dotenv(ROOT / ".env")
hour = int(os.environ.get("ALERT_RUN_HOUR_UTC", "8"))
venv_python = ROOT / ".venv" / "bin" / "python"
run_script = ROOT / "run_alerts.py"
entry = f"0 {hour} * * * cd {ROOT} && {venv_python} {run_script} --once"
MARKER = "run_alerts.py --once"


def _write_crontab_file(content: str) -> None:
    path = ROOT / "crontab.txt"
    path.write_text(content + "\n", encoding="utf-8")
    print(f"Wrote {path}")


def main() -> int:
    if not venv_python.exists():
        print("Error: .venv not found. Run: python -m venv .venv && pip install -e .")
        return 1
    try:
        out = subprocess.run(["crontab", "-l"], capture_output=True, text=True, timeout=5)
        existing = (out.stdout or "").strip() if out.returncode == 0 else ""
        if entry in existing:
            print("Cron entry already present. No change.")
            return 0
        # replace an entry for another hour instead of adding a second sweep
        kept = [line for line in existing.splitlines() if MARKER not in line]
        new_crontab = "\n".join(kept + [entry]).strip()
        proc = subprocess.run(["crontab", "-"], input=new_crontab, capture_output=True, text=True, timeout=5)
        if proc.returncode != 0:
            _write_crontab_file(new_crontab)
            print("Could not install crontab automatically. Run manually:")
            print(f"  crontab {ROOT / 'crontab.txt'}")
            return 1
        print(f"Cron installed: alert sweep daily at {hour:02d}:00 UTC")
        print(f"  Entry: {entry}")
        return 0
    except subprocess.TimeoutExpired:
        _write_crontab_file(entry)
        print("Crontab timed out. To install manually, run:")
        print(f"  crontab {ROOT / 'crontab.txt'}")
        return 1
    except FileNotFoundError:
        print("crontab not found. On Windows use Task Scheduler; on Mac/Linux ensure cron is available.")
        _write_crontab_file(entry)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
