import hashlib
import hmac
import time

# Entêtes des alertes sortantes
HDR_ID = "X-Alert-Id"
HDR_EVT = "X-Alert-Event"
HDR_SEVERITY = "X-Alert-Severity"
HDR_TS = "X-Alert-Timestamp"
HDR_SIG = "X-Alert-Signature"

SCHEME = "v1"
DEFAULT_TOLERANCE_S = 300


def alert_signature(secret: bytes, alert_id: str, ts: int, body: bytes) -> str:
    """
    "v1=" + hex(HMAC_SHA256(secret, f"{ts}.{alert_id}." + body))
    L'id d'alerte est stable entre les tentatives; le timestamp (secondes) change à chaque envoi.
    """
    mac = hmac.new(secret, f"{ts}.{alert_id}.".encode("utf-8") + body, hashlib.sha256)
    return f"{SCHEME}={mac.hexdigest()}"


def signed_headers(secret: bytes, alert: dict, body: bytes, ts: int | None = None) -> dict:
    ts = int(time.time()) if ts is None else ts
    return {
        HDR_ID: alert["id"],
        HDR_EVT: alert["event"],
        HDR_SEVERITY: alert["severity"],
        HDR_TS: str(ts),
        HDR_SIG: alert_signature(secret, alert["id"], ts, body),
    }


def verify_alert(secret: bytes, headers: dict, body: bytes, tolerance_s: int = DEFAULT_TOLERANCE_S,
                 now: int | None = None) -> bool:
    """
    Contrôle côté récepteur: signature valide et timestamp dans la fenêtre de tolérance (anti-rejeu).
    """
    alert_id, ts, sig = headers.get(HDR_ID), headers.get(HDR_TS), headers.get(HDR_SIG)
    if not (alert_id and ts and sig) or not str(ts).isdigit():
        return False
    now = int(time.time()) if now is None else now
    if abs(now - int(ts)) > tolerance_s:
        return False
    expected = alert_signature(secret, alert_id, int(ts), body)
    return hmac.compare_digest(expected.encode("utf-8"), str(sig).encode("utf-8"))
