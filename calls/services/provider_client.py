"""
Client REST du provider voix (lecture des appels).
Instancié explicitement par l'appelant (commande de resync, tests) puis fermé; aucun état global.
"""
import logging

import httpx
from django.conf import settings

logger = logging.getLogger("callmeter.calls")


class ProviderError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ProviderClient:
    def __init__(self, *, base_url: str, api_key: str, timeout_s: float = 10,
                 transport: httpx.BaseTransport | None = None):
        if not api_key:
            raise ProviderError("provider API key is not configured")
        self._client = httpx.Client(
            base_url=base_url,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
                "User-Agent": "CallMeter/1.0",
            },
            timeout=timeout_s,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, transport: httpx.BaseTransport | None = None) -> "ProviderClient":
        return cls(
            base_url=settings.PROVIDER_API_BASE_URL,
            api_key=settings.PROVIDER_API_KEY,
            timeout_s=settings.PROVIDER_TIMEOUT_S,
            transport=transport,
        )

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def close(self):
        self._client.close()

    def _get(self, path: str, params: dict | None = None):
        try:
            resp = self._client.get(path, params=params)
        except httpx.HTTPError as e:
            raise ProviderError(f"GET {path} failed: {e}") from e
        if resp.status_code >= 400:
            raise ProviderError(f"GET {path} -> HTTP {resp.status_code}: {resp.text[:200]}",
                                status_code=resp.status_code)
        return resp.json()

    def get_call(self, call_id: str) -> dict:
        return self._get(f"/call/{call_id}")

    def list_calls(self, *, limit: int = 100, created_after: str | None = None) -> list[dict]:
        params = {"limit": limit}
        if created_after:
            params["createdAtGt"] = created_after
        return self._get("/call", params=params)


def as_end_of_call_message(call: dict) -> dict:
    """Objet appel de l'API REST -> message end-of-call-report équivalent au webhook."""
    artifact = call.get("artifact") or {}
    return {
        "type": "end-of-call-report",
        "call": call,
        "endedReason": call.get("endedReason"),
        "transcript": artifact.get("transcript", call.get("transcript")),
        "summary": (call.get("analysis") or {}).get("summary", call.get("summary")),
        "recordingUrl": artifact.get("recordingUrl", call.get("recordingUrl")),
        "cost": call.get("costBreakdown", call.get("cost")),
    }
