import logging

from alerts.services.notify import raise_alert, EVT_SETTLEMENT_FAILED
from billing.services.guard import check_company
from calls.models import DeclinedCall
from calls.services.lifecycle import apply_end_of_call_report, apply_status_update
from calls.services.recorder import record_function_call, record_transcript_segment
from calls.tasks import settle_call_task
from tenants.services.resolver import resolve_by_phone_number
from ..events import (
    AssistantRequest, EndOfCallReport, Event, FunctionCall, StatusUpdate, TranscriptSegment, UnknownEvent,
)
from . import responses

logger = logging.getLogger("callmeter.ingress")


def handle_assistant_request(event: AssistantRequest) -> dict:
    tenant = resolve_by_phone_number(event.call.phone_number)
    if tenant is None:
        logger.warning("assistant-request for unconfigured number %s", event.call.phone_number)
        return responses.unconfigured()

    decision = check_company(tenant.company_id)
    if not decision.allowed:
        logger.info("call %s declined for company %s: insufficient funds", event.call.id, tenant.company_id)
        if event.call.id:
            DeclinedCall.objects.get_or_create(provider_call_id=event.call.id,
                                               defaults={"company_id": tenant.company_id})
        return responses.decline()

    logger.info("call %s allowed for company %s (%s)", event.call.id, tenant.company_id, decision.value)
    return responses.assistant_config(tenant.agent_config)


def handle_status_update(event: StatusUpdate) -> dict:
    apply_status_update(event)
    return responses.acknowledgement()


def _schedule_settlement(provider_call_id: str, company_id: int | None):
    try:
        settle_call_task.delay(provider_call_id)
    except Exception as e:
        logger.exception("could not schedule settlement for call %s", provider_call_id)
        raise_alert(EVT_SETTLEMENT_FAILED, {"provider_call_id": provider_call_id, "error": str(e)},
                    company_id=company_id)


def handle_end_of_call_report(event: EndOfCallReport) -> dict:
    call = apply_end_of_call_report(event)
    if DeclinedCall.is_declined(call.provider_call_id):
        logger.info("call %s was declined at assistant-request; not billed", call.provider_call_id)
        return responses.acknowledgement()
    if call.duration_seconds and call.billed_at is None:
        _schedule_settlement(call.provider_call_id, call.company_id)
    return responses.acknowledgement()


def handle_transcript(event: TranscriptSegment) -> dict:
    record_transcript_segment(event)
    return responses.acknowledgement()


def handle_function_call(event: FunctionCall) -> dict:
    record_function_call(event)
    return responses.acknowledgement()


def handle_unknown(event: UnknownEvent) -> dict:
    logger.info("unhandled event type %r acknowledged", event.type)
    return responses.acknowledgement()


HANDLERS = {
    AssistantRequest: handle_assistant_request,
    StatusUpdate: handle_status_update,
    EndOfCallReport: handle_end_of_call_report,
    TranscriptSegment: handle_transcript,
    FunctionCall: handle_function_call,
    UnknownEvent: handle_unknown,
}


def dispatch(event: Event) -> dict:
    """
    Exécute le handler du type d'événement et retourne le corps de réponse provider.
    Hors assistant-request, un échec de traitement est loggé et l'événement reste acquitté.
    """
    handler = HANDLERS[type(event)]
    if isinstance(event, AssistantRequest):
        return handler(event)
    try:
        return handler(event)
    except Exception:
        logger.exception("%s handler failed for call %s", event.type, getattr(getattr(event, "call", None), "id", None))
        return responses.acknowledgement()
