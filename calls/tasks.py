import logging
from dataclasses import asdict

from celery import shared_task
from django.db import DatabaseError

from alerts.services.notify import raise_alert, EVT_SETTLEMENT_FAILED
from usage.services.metering import meter_call
from .models import Call

logger = logging.getLogger("callmeter.billing")


@shared_task(bind=True, autoretry_for=(DatabaseError,), retry_backoff=True, max_retries=5)
def settle_call_task(self, provider_call_id: str):
    """
    Facturation d'un appel terminé, hors du chemin de réponse du webhook.
    Les erreurs base sont rejouées par Celery (le marqueur billed_at est annulé avec la transaction);
    les autres échecs sont loggés et remontés au canal d'alerte.
    """
    call = Call.objects.filter(provider_call_id=provider_call_id).first()
    if call is None:
        logger.warning("settlement skipped: call %s not found", provider_call_id)
        return None

    try:
        result = meter_call(call)
    except DatabaseError:
        raise
    except Exception as e:
        logger.exception("settlement failed for call %s", provider_call_id)
        raise_alert(EVT_SETTLEMENT_FAILED, {
            "provider_call_id": provider_call_id,
            "error": str(e),
        }, company_id=call.company_id)
        return None
    return asdict(result) if result else None
