import logging

from django.db import IntegrityError, transaction
from django.db.models import DateTimeField, Value
from django.db.models.functions import Coalesce
from django.utils.timezone import now

from calls.models import Call
from calls.services.classifier import classify_sentiment, priority_for, resolution_from_ended_reason
from ingress.events import CallRef, EndOfCallReport, StatusUpdate
from tenants.services.resolver import ResolvedTenant, resolve_by_assistant_id, resolve_by_phone_number

logger = logging.getLogger("callmeter.calls")

# statut provider -> état du cycle de vie; les statuts absents sont acquittés sans effet
STATUS_MAP = {
    "queued": Call.STATE_PENDING,
    "ringing": Call.STATE_RINGING,
    "in-progress": Call.STATE_IN_PROGRESS,
    "forwarding": Call.STATE_IN_PROGRESS,
    "ended": Call.STATE_RESOLVED,
    "failed": Call.STATE_FAILED,
}

_RANK = {
    Call.STATE_PENDING: 0,
    Call.STATE_RINGING: 1,
    Call.STATE_IN_PROGRESS: 2,
}
NON_TERMINAL_STATES = tuple(_RANK)

UNKNOWN_CALLER = "Unknown"


def allowed_prior_states(target: str) -> tuple:
    """
    États à partir desquels `target` peut être écrit par un status-update.
    - cible terminale: tout état non terminal, ou la même valeur (re-livraison)
    - cible non terminale: uniquement depuis un état de rang inférieur ou égal
      (pending < ringing < in_progress). Un appel ne recule jamais entre états non
      terminaux: un "ringing" livré après "in-progress" est ignoré.
    Le end-of-call-report ne passe pas par ici: il réécrit toujours l'état terminal.
    """
    if target in Call.TERMINAL_STATES:
        return NON_TERMINAL_STATES + (target,)
    rank = _RANK[target]
    return tuple(s for s, r in _RANK.items() if r <= rank)


def _resolve(ref: CallRef) -> ResolvedTenant | None:
    return (resolve_by_phone_number(ref.phone_number, require_agent=False)
            or resolve_by_assistant_id(ref.assistant_id))


def _stamp(fields: dict, state: str, ts) -> dict:
    if state == Call.STATE_IN_PROGRESS:
        fields["started_at"] = Coalesce("started_at", Value(ts, output_field=DateTimeField()))
    elif state in Call.TERMINAL_STATES:
        fields["ended_at"] = Coalesce("ended_at", Value(ts, output_field=DateTimeField()))
    return fields


def _insert(ref: CallRef, state: str, ts, **fields) -> Call | None:
    """
    Première écriture pour un provider_call_id inconnu.
    Retourne None si une livraison concurrente a inséré la ligne entre-temps.
    """
    tenant = _resolve(ref)
    if tenant is None:
        logger.warning("call %s: no tenant for number=%s assistant=%s",
                       ref.id, ref.phone_number, ref.assistant_id)
    defaults = {
        "company_id": tenant.company_id if tenant else None,
        "agent_id": tenant.agent_id if tenant else None,
        "caller_number": ref.customer_number or UNKNOWN_CALLER,
        "recipient_number": ref.phone_number or "",
        "call_type": Call.TYPE_INBOUND,
        "lifecycle_state": state,
    }
    if state == Call.STATE_IN_PROGRESS:
        defaults["started_at"] = ts
    elif state in Call.TERMINAL_STATES:
        defaults["ended_at"] = ts
    defaults.update(fields)
    try:
        with transaction.atomic():
            return Call.objects.create(provider_call_id=ref.id, **defaults)
    except IntegrityError:
        logger.info("call %s inserted concurrently; retrying as update", ref.id)
        return None


def apply_status_update(event: StatusUpdate) -> Call | None:
    """
    Upsert monotone sur provider_call_id: UPDATE conditionné par l'état courant,
    INSERT si aucun appel n'existe. Un état terminal n'est jamais régressé.
    """
    target = STATUS_MAP.get((event.status or "").lower())
    if target is None:
        logger.info("call %s: status %r ignored", event.call.id, event.status)
        return None

    ts = now()
    allowed = allowed_prior_states(target)
    qs = Call.objects.filter(provider_call_id=event.call.id, lifecycle_state__in=allowed)
    updates = _stamp({"lifecycle_state": target, "updated_at": ts}, target, ts)

    if qs.update(**updates):
        return Call.objects.get(provider_call_id=event.call.id)

    existing = Call.objects.filter(provider_call_id=event.call.id).first()
    if existing is not None:
        logger.info("call %s: transition %s -> %s refused", event.call.id, existing.lifecycle_state, target)
        return existing

    call = _insert(event.call, target, ts)
    if call is not None:
        logger.info("call %s created in state %s", event.call.id, target)
        return call

    qs.update(**updates)
    return Call.objects.get(provider_call_id=event.call.id)


def apply_end_of_call_report(event: EndOfCallReport) -> Call:
    """
    Rapport de fin d'appel (source de vérité): écrase durée, transcript, résumé, coût, tags,
    quel que soit l'état courant. Peut être le tout premier événement vu pour l'appel.
    L'état devient la résolution déduite de endedReason (terminal -> terminal autorisé).
    """
    ref = event.call
    ts = now()
    resolution = resolution_from_ended_reason(event.ended_reason)
    sentiment = classify_sentiment(event.transcript, event.summary)

    fields = {
        "lifecycle_state": resolution,
        "duration_seconds": max(0, event.duration_seconds),
        "ended_reason": (event.ended_reason or "")[:128],
        "transcript": event.transcript,
        "summary": event.summary,
        "recording_url": event.recording_url,
        "cost_breakdown": event.cost_breakdown,
        "sentiment": sentiment,
        "priority": priority_for(resolution, sentiment),
    }

    if not Call.objects.filter(provider_call_id=ref.id).exists():
        call = _insert(ref, resolution, ts, **fields)
        if call is not None:
            logger.info("call %s created from end-of-call report (%s)", ref.id, resolution)
            return call

    updates = _stamp(dict(fields, updated_at=ts), resolution, ts)
    tenant = _resolve(ref)
    if tenant is not None:
        updates["company_id"] = tenant.company_id
        updates["agent_id"] = tenant.agent_id
    if ref.customer_number:
        updates["caller_number"] = ref.customer_number
    if ref.phone_number:
        updates["recipient_number"] = ref.phone_number

    Call.objects.filter(provider_call_id=ref.id).update(**updates)
    logger.info("call %s completed: %s, %ss", ref.id, resolution, fields["duration_seconds"])
    return Call.objects.get(provider_call_id=ref.id)
