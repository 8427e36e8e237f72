from __future__ import annotations

import os
import sys
import requests
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from core.config import settings


load_dotenv()


def _base_url() -> str:
    return settings.api_base_url.rstrip("/")


def _post(path: str, params: Optional[Dict[str, Any]] = None, timeout: int = 300) -> Optional[Dict[str, Any]]:
    url = f"{_base_url()}{path}"
    try:
        r = requests.post(url, params=params, timeout=timeout)
    except requests.RequestException as exc:
        print(f"[CRON:SLOTS] Request to {path} failed: {exc}")
        return None
    if r.status_code >= 400:
        print(f"[CRON:SLOTS] {path} returned status={r.status_code} body={r.text[:200]}")
        return None
    return r.json()


def generate_slots(days: Optional[int] = None) -> Optional[Dict[str, Any]]:
    params = {"days": days} if days else None
    body = _post("/api/appointments/generate-slots", params=params)
    summary = (body or {}).get("summary") or {}
    if body is not None:
        print(
            f"[CRON:SLOTS] Generated slots professionals={summary.get('professionals')} "
            f"created={summary.get('slotsCreated')} days={summary.get('days')}"
        )
    return body


def reconcile_slots(days: Optional[int] = None) -> Optional[Dict[str, Any]]:
    params = {"days": days} if days else None
    body = _post("/api/timeslots/reconcile", params=params)
    summary = (body or {}).get("summary") or {}
    if body is not None:
        print(f"[CRON:SLOTS] Reconciled booked={summary.get('booked')} freed={summary.get('freed')}")
    return body


def main() -> int:
    days_env = os.getenv("SLOT_HORIZON_DAYS")
    days = int(days_env) if days_env and days_env.isdigit() else None
    generated = generate_slots(days)
    reconciled = reconcile_slots(days)
    return 0 if generated is not None and reconciled is not None else 1


if __name__ == "__main__":
    sys.exit(main())
