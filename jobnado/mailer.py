"""Email delivery for alert digests and subscription confirmations."""
from __future__ import annotations

import re
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import parseaddr
from html import escape
from typing import Protocol, Sequence

import requests

from jobnado.log import get_logger

log = get_logger(__name__)

RESEND_URL = "https://api.resend.com/emails"


@dataclass
class EmailPayload:
    from_addr: str
    to: str
    subject: str
    html: str


class EmailSender(Protocol):
    def send(self, payload: EmailPayload) -> tuple[bool, str]: ...


def _html_to_text(html: str) -> str:
    text = re.sub(r"<(br|/p|/li|/h\d|/div)[^>]*>", "\n", html, flags=re.IGNORECASE)
    text = re.sub(r"<[^>]+>", "", text)
    text = re.sub(r"\n\s*\n+", "\n\n", text)
    return text.strip()


class SmtpSender:
    """STARTTLS SMTP delivery. One attempt per send; callers decide on retries."""

    def __init__(self, host: str, port: int, user: str, password: str, timeout: float = 20.0) -> None:
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.timeout = timeout

    def send(self, payload: EmailPayload) -> tuple[bool, str]:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = payload.subject
        msg["From"] = payload.from_addr
        msg["To"] = payload.to
        msg.attach(MIMEText(_html_to_text(payload.html), "plain", "utf-8"))
        msg.attach(MIMEText(payload.html, "html", "utf-8"))

        envelope_from = parseaddr(payload.from_addr)[1] or self.user
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                server.starttls()
                server.login(self.user, self.password)
                server.sendmail(envelope_from, [payload.to], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            log.error("Email to %s failed: %s", payload.to, e)
            return False, str(e)[:150]
        log.info("Email sent to %s", payload.to)
        return True, "Email sent"


class ResendSender:
    """Delivery through the Resend HTTP API."""

    def __init__(self, api_key: str, timeout: float = 20.0, session: requests.Session | None = None) -> None:
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def send(self, payload: EmailPayload) -> tuple[bool, str]:
        try:
            r = self.session.post(
                RESEND_URL,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={
                    "from": payload.from_addr,
                    "to": payload.to,
                    "subject": payload.subject,
                    "html": payload.html,
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            log.error("Email to %s failed: %s", payload.to, e)
            return False, str(e)[:150]
        if not r.ok:
            log.error("Email to %s rejected (%d): %s", payload.to, r.status_code, r.text[:150])
            return False, r.text[:150]
        log.info("Email sent to %s", payload.to)
        return True, "Email sent"


# ── Templates ────────────────────────────────────────────────────────────

_SHELL = """<div style="background-color:#0f172a;padding:40px;font-family:'Courier New',monospace;color:#e2e8f0;border-radius:16px;">
<div style="text-align:center;margin-bottom:30px;">
<h1 style="color:#818cf8;letter-spacing:4px;margin:0;">JobNado AI</h1>
<span style="font-size:10px;color:#64748b;text-transform:uppercase;letter-spacing:2px;">Orbital Job Uplink</span>
</div>
<div style="background:#1e293b;border:1px solid #334155;border-radius:8px;padding:20px;margin-bottom:24px;">
{body}
</div>
<table style="width:100%;font-size:12px;color:#94a3b8;border-top:1px solid #334155;padding-top:20px;">
{facts}
</table>
<p style="text-align:center;margin-top:30px;font-size:10px;color:#475569;">{footer}</p>
</div>"""


def _facts(pairs: Sequence[tuple[str, str]]) -> str:
    cells = [
        f'<td style="padding:4px 0">{escape(k)}: <span style="color:#cbd5e1">{escape(v)}</span></td>'
        for k, v in pairs
    ]
    rows = ["<tr>" + "".join(cells[i:i + 2]) + "</tr>" for i in range(0, len(cells), 2)]
    return "\n".join(rows)


def render_alert_email(role: str, country: str, jobs: Sequence[dict]) -> str:
    """HTML digest listing each job as a link."""
    items = "".join(
        f'<li style="margin:6px 0"><a href="{escape(str(j.get("url") or "#"), quote=True)}" '
        f'style="color:#a5b4fc"><strong>{escape(str(j.get("title", "")))}</strong> '
        f'at {escape(str(j.get("company") or "Unknown Company"))}</a></li>'
        for j in jobs
    )
    body = (
        f'<p style="margin:0 0 16px 0;line-height:1.6;font-size:16px;color:#fff;">'
        f"Scan complete for <strong>{escape(country)}</strong>. Found {len(jobs)} new targets:</p>"
        f'<ul style="margin:0;padding-left:20px;color:#cbd5e1;">{items}</ul>'
    )
    facts = _facts([
        ("TARGET", role), ("SECTOR", country),
        ("STATUS", f"{len(jobs)} Found"), ("UPLINK", "Active"),
    ])
    return _SHELL.format(body=body, facts=facts, footer="Sent by your JobNado job alert")


def render_confirmation_email(message: str, role: str, country: str, frequency: str) -> str:
    body = f'<p style="margin:0;line-height:1.6;font-size:16px;color:#fff;">{escape(message)}</p>'
    facts = _facts([
        ("TARGET", role), ("SECTOR", country),
        ("FREQ", frequency), ("UPLINK", "Active"),
    ])
    return _SHELL.format(body=body, facts=facts, footer="You subscribed to JobNado job alerts")
