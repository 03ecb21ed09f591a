import json
import logging
import time

import httpx
from django.utils import timezone

from .notify import new_alert_id, severity_for
from .signer import signed_headers
from ..models import AlertChannel, AlertDelivery

logger = logging.getLogger("callmeter.alerts")

USER_AGENT = "CallMeter-Alert/1.0"


def channel_secret(channel: AlertChannel) -> bytes:
    """
    DEV: secret stocké en "plain:xxxxx".
    PROD: remplacer par un déchiffrement (Vault/KMS).
    """
    secret = channel.secret
    if secret.startswith("plain:"):
        secret = secret.split("plain:", 1)[1]
    return secret.encode("utf-8")


def build_alert(alert_id: str, event: str, company_id: int | None, data: dict) -> dict:
    return {
        "id": alert_id,
        "event": event,
        "severity": severity_for(event),
        "company_id": company_id,
        "data": data,
        "raised_at": timezone.now().isoformat(),
    }


def send_alert(channel: AlertChannel, event: str, data: dict, company_id: int | None = None,
               attempt: int = 1, alert_id: str | None = None) -> AlertDelivery:
    """
    POST signé d'une alerte vers un canal (appelé par la tâche Celery), journalisé en AlertDelivery.
    Les erreurs de transport httpx sont enregistrées, jamais propagées.
    """
    alert = build_alert(alert_id or new_alert_id(), event, company_id, data)
    body = json.dumps(alert, separators=(",", ":"), ensure_ascii=False, default=str).encode("utf-8")
    headers = {
        "Content-Type": "application/json",
        "User-Agent": USER_AGENT,
        **signed_headers(channel_secret(channel), alert, body),
    }

    t0 = time.perf_counter()
    status_code = None
    err = ""
    try:
        with httpx.Client(timeout=channel.timeout_s, verify=True) as client:
            resp = client.post(channel.url, headers=headers, content=body)
        status_code = resp.status_code
        if not 200 <= status_code < 300:
            err = f"HTTP {status_code}: {resp.text[:500]}"
    except httpx.HTTPError as e:
        err = str(e) or e.__class__.__name__
    duration_ms = int((time.perf_counter() - t0) * 1000)
    ok = status_code is not None and not err

    if not ok:
        logger.warning("alert %s (%s) to channel %s failed (attempt %s): %s",
                       alert["id"], event, channel.id, attempt, err)

    return AlertDelivery.objects.create(
        channel=channel,
        alert_id=alert["id"],
        event=event,
        severity=alert["severity"],
        url=channel.url,
        attempt=attempt,
        headers=headers,
        payload=alert,
        status_code=status_code,
        ok=ok,
        error=err,
        duration_ms=duration_ms,
    )
