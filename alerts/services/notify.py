import logging
import uuid

from django.db import DatabaseError

from ..models import AlertChannel

logger = logging.getLogger("callmeter.alerts")

# Événements émis par le core
EVT_WALLET_MISSING = "billing.wallet_missing"
EVT_SETTLEMENT_FAILED = "billing.settlement_failed"
EVT_LEDGER_DRIFT = "billing.ledger_drift"
EVT_TEST_PING = "test.ping"

EVENT_SEVERITY = {
    EVT_WALLET_MISSING: AlertChannel.SEVERITY_CRITICAL,
    EVT_SETTLEMENT_FAILED: AlertChannel.SEVERITY_CRITICAL,
    EVT_LEDGER_DRIFT: AlertChannel.SEVERITY_WARNING,
}


def severity_for(event: str) -> str:
    return EVENT_SEVERITY.get(event, AlertChannel.SEVERITY_INFO)


def new_alert_id() -> str:
    return f"al_{uuid.uuid4().hex}"


def raise_alert(event: str, data: dict, company_id: int | None = None) -> int:
    """
    Log + mise en file d'une alerte vers chaque canal actif abonné (événement, tenant, sévérité).
    Toutes les livraisons d'une même alerte partagent son id.
    Ne lève jamais: base indisponible ou échec de mise en file sont loggés
    (le log reste le canal de dernier recours).
    Retourne le nombre de canaux notifiés.
    """
    from ..tasks import deliver_alert_task

    alert_id = new_alert_id()
    severity = severity_for(event)
    log = logger.error if severity == AlertChannel.SEVERITY_CRITICAL else logger.warning
    log("ALERT %s %s [%s] company=%s data=%s", alert_id, event, severity, company_id, data)
    try:
        channels = list(AlertChannel.objects.filter(active=True))
    except DatabaseError:
        logger.exception("could not load alert channels for %s", event)
        return 0

    sent = 0
    for channel in channels:
        if not channel.accepts(event, company_id, severity):
            continue
        try:
            deliver_alert_task.delay(channel.id, event, data, company_id=company_id, attempt=1,
                                     alert_id=alert_id)
            sent += 1
        except Exception:
            logger.exception("could not enqueue alert %s for channel %s", event, channel.id)
    return sent
