"""Best-effort country detection from the caller's public IP.

Providers are tried in order until one returns a country name.
"""
from __future__ import annotations

from typing import Callable, Optional, Sequence

import requests

from jobnado.log import get_logger

log = get_logger(__name__)

Provider = Callable[[], Optional[str]]
_TIMEOUT = 5


def _ipapi_co() -> str | None:
    r = requests.get("https://ipapi.co/json/", timeout=_TIMEOUT)
    r.raise_for_status()
    return r.json().get("country_name")


def _ipwho_is() -> str | None:
    r = requests.get("https://ipwho.is/", timeout=_TIMEOUT)
    r.raise_for_status()
    data = r.json()
    return data.get("country") if data.get("success", True) else None


def _ip_api_com() -> str | None:
    r = requests.get("http://ip-api.com/json/", timeout=_TIMEOUT)
    r.raise_for_status()
    data = r.json()
    return data.get("country") if data.get("status") == "success" else None


DEFAULT_PROVIDERS: tuple[Provider, ...] = (_ipapi_co, _ipwho_is, _ip_api_com)


def detect_country(providers: Sequence[Provider] = DEFAULT_PROVIDERS) -> str | None:
    for provider in providers:
        name = getattr(provider, "__name__", "provider")
        try:
            country = provider()
        except (requests.RequestException, ValueError) as exc:
            log.debug("Geolocation via %s failed: %s", name, exc)
            continue
        if country and str(country).strip():
            log.info("Detected country %s via %s", country, name)
            return str(country).strip()
    return None
