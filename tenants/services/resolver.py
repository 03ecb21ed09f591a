from dataclasses import dataclass, field
from typing import Optional

from tenants.models import Agent, PhoneNumber


@dataclass
class ResolvedTenant:
    company_id: int
    agent_id: Optional[int]
    agent_config: dict = field(default_factory=dict)


def _agent_config(agent: Agent) -> dict:
    return {
        "name": agent.name,
        "provider_assistant_id": agent.provider_assistant_id,
        "system_prompt": agent.system_prompt,
        "first_message": agent.first_message,
        "model": agent.model_config,
        "voice": agent.voice_config,
    }


def resolve_by_phone_number(number: str | None, *, require_agent: bool = True) -> ResolvedTenant | None:
    """
    Numéro appelé -> (tenant, agent). None si le numéro est inconnu, inactif,
    rattaché à un tenant suspendu, ou sans agent actif (quand require_agent).
    """
    if not number:
        return None
    pn = (PhoneNumber.objects
          .select_related("company", "agent")
          .filter(number=number, is_active=True)
          .first())
    if pn is None or not pn.company.is_active:
        return None

    agent = pn.agent if (pn.agent and pn.agent.active) else None
    if agent is None:
        if require_agent:
            return None
        return ResolvedTenant(company_id=pn.company_id, agent_id=None)
    return ResolvedTenant(company_id=pn.company_id, agent_id=agent.id, agent_config=_agent_config(agent))


def resolve_by_assistant_id(assistant_id: str | None) -> ResolvedTenant | None:
    """call.assistantId -> tenant (utilisé pour l'audit des function-call)."""
    if not assistant_id:
        return None
    agent = Agent.objects.filter(provider_assistant_id=assistant_id).first()
    if agent is None:
        return None
    return ResolvedTenant(company_id=agent.company_id, agent_id=agent.id, agent_config=_agent_config(agent))
