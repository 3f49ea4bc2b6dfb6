"""Persisted job alerts: CSV (local) or Supabase (hosted) storage, plus subscribe/unsubscribe."""
from __future__ import annotations

import csv
import fcntl
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Protocol

import requests

from jobnado.config import DATA_DIR
from jobnado.log import get_logger
from jobnado.mailer import EmailPayload, EmailSender, render_confirmation_email
from jobnado.models import Alert
from jobnado.retry import linear_backoff, retry

log = get_logger(__name__)

HEADERS: list[str] = [
    "id", "email", "role", "country", "frequency",
    "is_active", "last_alerted_at", "created_at",
]
TABLE = "job_alerts"


class AlertStoreError(RuntimeError):
    """The alert store could not be read or written."""


class AlertStore(Protocol):
    def insert(self, alert: Alert) -> Alert: ...

    def select_active(self) -> list[Alert]: ...

    def update_last_alerted(self, alert_id: str, when: datetime) -> None: ...

    def deactivate(self, email: str, role: str | None = None) -> int: ...


def _parse_ts(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        log.warning("Unparseable timestamp in alert store: %r", value)
        return None


def _from_row(row: dict) -> Alert:
    active = row.get("is_active")
    if isinstance(active, str):
        active = active.strip().lower() in ("1", "true", "yes")
    return Alert(
        id=str(row["id"]),
        email=row["email"],
        role=row["role"],
        country=row["country"],
        frequency=row.get("frequency") or "daily",
        is_active=bool(active),
        last_alerted_at=_parse_ts(row.get("last_alerted_at")),
        created_at=_parse_ts(row.get("created_at")) or datetime.now(timezone.utc),
    )


def _to_row(alert: Alert) -> dict[str, str]:
    return {
        "id": alert.id or "",
        "email": alert.email,
        "role": alert.role,
        "country": alert.country,
        "frequency": alert.frequency,
        "is_active": "true" if alert.is_active else "false",
        "last_alerted_at": alert.last_alerted_at.isoformat() if alert.last_alerted_at else "",
        "created_at": alert.created_at.isoformat(),
    }


# ── CSV store ────────────────────────────────────────────────────────────


def _lock(f, exclusive: bool = True) -> None:
    """Advisory file lock (Unix fcntl)."""
    try:
        fcntl.flock(f.fileno(), fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH)
    except (OSError, AttributeError):
        pass


def _unlock(f) -> None:
    try:
        fcntl.flock(f.fileno(), fcntl.LOCK_UN)
    except (OSError, AttributeError):
        pass


class CsvAlertStore:
    def __init__(self, path: Path | None = None) -> None:
        self.path = path or DATA_DIR / "alerts.csv"

    def _ensure(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            with open(self.path, "w", newline="", encoding="utf-8") as f:
                _lock(f)
                csv.writer(f).writerow(HEADERS)
                f.flush()
                _unlock(f)
            log.info("Created alert store → %s", self.path.name)

    def _read(self) -> list[dict[str, str]]:
        self._ensure()
        with open(self.path, "r", encoding="utf-8") as f:
            _lock(f, exclusive=False)
            rows = list(csv.DictReader(f))
            _unlock(f)
        return rows

    def _rewrite(self, mutate: Callable[[list[dict[str, str]]], int]) -> int:
        """Read, mutate and rewrite the file under one exclusive lock.

        *mutate* edits the rows in place and returns how many it changed;
        nothing is written when that is 0.
        """
        self._ensure()
        with open(self.path, "r+", newline="", encoding="utf-8") as f:
            _lock(f)
            try:
                rows = list(csv.DictReader(f))
                changed = mutate(rows)
                if changed:
                    f.seek(0)
                    f.truncate()
                    w = csv.DictWriter(f, fieldnames=HEADERS)
                    w.writeheader()
                    w.writerows(rows)
                    f.flush()
            finally:
                _unlock(f)
        return changed

    def insert(self, alert: Alert) -> Alert:
        self._ensure()
        alert.id = alert.id or uuid.uuid4().hex[:12]
        with open(self.path, "a", newline="", encoding="utf-8") as f:
            _lock(f)
            csv.DictWriter(f, fieldnames=HEADERS).writerow(_to_row(alert))
            f.flush()
            _unlock(f)
        log.debug("Stored alert %s: %s in %s for %s", alert.id, alert.role, alert.country, alert.email)
        return alert

    def all(self) -> list[Alert]:
        alerts: list[Alert] = []
        for row in self._read():
            try:
                alerts.append(_from_row(row))
            except (KeyError, ValueError) as exc:
                log.warning("Skipping malformed alert row %r: %s", row.get("id"), exc)
        return alerts

    def select_active(self) -> list[Alert]:
        return [a for a in self.all() if a.is_active]

    def update_last_alerted(self, alert_id: str, when: datetime) -> None:
        def stamp(rows: list[dict[str, str]]) -> int:
            for r in rows:
                if r.get("id") == alert_id:
                    r["last_alerted_at"] = when.isoformat()
                    return 1
            return 0

        if not self._rewrite(stamp):
            raise AlertStoreError(f"alert {alert_id} not found")

    def deactivate(self, email: str, role: str | None = None) -> int:
        def switch_off(rows: list[dict[str, str]]) -> int:
            changed = 0
            for r in rows:
                if r.get("email", "").lower() != email.lower():
                    continue
                if role and r.get("role", "").lower() != role.lower():
                    continue
                if r.get("is_active") == "true":
                    r["is_active"] = "false"
                    changed += 1
            return changed

        return self._rewrite(switch_off)


# ── Supabase store ───────────────────────────────────────────────────────

_TRANSIENT = (requests.ConnectionError, requests.Timeout)


class SupabaseAlertStore:
    """``job_alerts`` table through the PostgREST API."""

    def __init__(self, url: str, key: str, session: requests.Session | None = None, timeout: float = 15.0) -> None:
        self.base = url.rstrip("/") + f"/rest/v1/{TABLE}"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
        })

    @retry(max_attempts=3, backoff=linear_backoff(1.0), retryable=_TRANSIENT)
    def _request(self, method: str, params: dict | None = None, json: object = None,
                 prefer: str | None = None) -> requests.Response:
        headers = {"Prefer": prefer} if prefer else None
        r = self.session.request(method, self.base, params=params, json=json,
                                 headers=headers, timeout=self.timeout)
        if not r.ok:
            raise AlertStoreError(f"Supabase {method} failed ({r.status_code}): {r.text[:150]}")
        return r

    def insert(self, alert: Alert) -> Alert:
        r = self._request(
            "POST",
            json=[{
                "email": alert.email,
                "role": alert.role,
                "country": alert.country,
                "frequency": alert.frequency,
                "is_active": alert.is_active,
            }],
            prefer="return=representation",
        )
        rows = r.json() or []
        if rows:
            alert.id = str(rows[0].get("id", ""))
        return alert

    def select_active(self) -> list[Alert]:
        r = self._request("GET", params={"select": "*", "is_active": "eq.true"})
        return [_from_row(row) for row in r.json()]

    def update_last_alerted(self, alert_id: str, when: datetime) -> None:
        self._request(
            "PATCH",
            params={"id": f"eq.{alert_id}"},
            json={"last_alerted_at": when.isoformat()},
        )

    def deactivate(self, email: str, role: str | None = None) -> int:
        params = {"email": f"eq.{email}", "is_active": "eq.true"}
        if role:
            params["role"] = f"eq.{role}"
        r = self._request("PATCH", params=params, json={"is_active": False},
                          prefer="return=representation")
        return len(r.json() or [])


# ── Subscription flow ────────────────────────────────────────────────────


def subscribe(
    store: AlertStore,
    artifacts,
    *,
    email: str,
    role: str,
    country: str,
    frequency: str = "daily",
    sender: EmailSender | None = None,
    from_addr: str = "",
) -> str:
    """Store the alert, generate a confirmation and email it when possible.

    A store or email failure is logged; the user still gets the confirmation
    message back.
    """
    alert = Alert(email=email.strip(), role=role.strip(), country=country.strip(), frequency=frequency)
    try:
        store.insert(alert)
        log.info("Alert subscribed: %s in %s (%s)", alert.role, alert.country, alert.frequency)
    except (AlertStoreError, OSError, requests.RequestException) as exc:
        log.error("Could not store alert for %s: %s", alert.email, exc)

    message = artifacts.generate_alert_confirmation(alert.role, alert.country, alert.email)

    if sender is None:
        log.info("No email sender configured — confirmation not emailed")
        return message
    ok, info = sender.send(
        EmailPayload(
            from_addr=from_addr,
            to=alert.email,
            subject=f"JobNado Radar Activated: {alert.role}",
            html=render_confirmation_email(message, alert.role, alert.country, alert.frequency),
        )
    )
    if not ok:
        log.warning("Confirmation email to %s failed: %s", alert.email, info)
    return message


def unsubscribe(store: AlertStore, email: str, role: str | None = None) -> int:
    count = store.deactivate(email, role)
    log.info("Deactivated %d alert(s) for %s", count, email)
    return count
