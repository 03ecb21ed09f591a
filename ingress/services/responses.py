from django.conf import settings


def acknowledgement() -> dict:
    return {"received": True}


def assistant_config(agent_config: dict) -> dict:
    """Configuration d'agent renvoyée au provider pour un appel autorisé."""
    assistant = {
        "firstMessage": agent_config.get("first_message") or "",
        "model": dict(agent_config.get("model") or {}),
        "voice": dict(agent_config.get("voice") or {}),
    }
    system_prompt = agent_config.get("system_prompt")
    if system_prompt:
        assistant["model"]["messages"] = [{"role": "system", "content": system_prompt}]
    if agent_config.get("name"):
        assistant["name"] = agent_config["name"]
    return {"assistant": assistant}


def _spoken_hangup(message: str) -> dict:
    return {"assistant": {"firstMessage": message, "endCallAfterSpoken": True}}


def decline() -> dict:
    """Refus Spend-Guard: message prononcé puis raccroché, aucun agent connecté."""
    return _spoken_hangup(settings.CALLMETER_DECLINE_MESSAGE)


def unconfigured() -> dict:
    return _spoken_hangup(settings.CALLMETER_UNCONFIGURED_MESSAGE)
