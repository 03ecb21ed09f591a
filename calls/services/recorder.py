import logging

from calls.models import Call, FunctionCallEvent, TranscriptSegment
from ingress.events import FunctionCall, TranscriptSegment as TranscriptEvent
from tenants.services.resolver import resolve_by_assistant_id

logger = logging.getLogger("callmeter.calls")


def record_transcript_segment(event: TranscriptEvent) -> TranscriptSegment | None:
    """
    Append-only: seuls les segments "final" sont stockés.
    L'appel doit déjà exister (jamais de placeholder créé ici); sinon le segment est abandonné.
    """
    if not event.is_final:
        return None
    call_pk = (Call.objects
               .filter(provider_call_id=event.call.id)
               .values_list("id", flat=True)
               .first())
    if call_pk is None:
        logger.warning("transcript segment dropped: call %s not found yet", event.call.id)
        return None
    return TranscriptSegment.objects.create(call_id=call_pk, role=event.role, content=event.transcript)


def record_function_call(event: FunctionCall) -> FunctionCallEvent:
    tenant = resolve_by_assistant_id(event.call.assistant_id)
    if tenant is None:
        logger.info("function-call %s: unknown assistant %s", event.name, event.call.assistant_id)
    return FunctionCallEvent.objects.create(
        company_id=tenant.company_id if tenant else None,
        agent_id=tenant.agent_id if tenant else None,
        provider_call_id=event.call.id or "",
        function_name=event.name[:128],
        parameters=event.parameters,
    )
