import logging
import math

from celery import shared_task

from .models import AlertChannel
from .services.notify import new_alert_id
from .services.sender import send_alert

logger = logging.getLogger("callmeter.alerts")


@shared_task(bind=True, max_retries=10, default_retry_delay=5)
def deliver_alert_task(self, channel_id: int, event: str, data: dict, company_id: int | None = None,
                       attempt: int = 1, alert_id: str | None = None):
    """
    Livraison d'une alerte opérateur; retry exponentiel borné par channel.max_retries.
    Après le dernier échec l'alerte ne subsiste que dans les logs et le journal AlertDelivery.
    Les tentatives successives réutilisent le même alert_id (dédoublonnage côté récepteur).
    """
    channel = AlertChannel.objects.filter(id=channel_id, active=True).first()
    if channel is None:
        logger.info("alert %s dropped: channel %s missing or inactive", event, channel_id)
        return False

    alert_id = alert_id or new_alert_id()
    delivery = send_alert(channel, event, data, company_id=company_id, attempt=attempt, alert_id=alert_id)
    if delivery.ok:
        return True

    if attempt >= (channel.max_retries or 0):
        logger.error("alert %s (%s) to channel %s abandoned after %s attempt(s)", alert_id, event, channel_id, attempt)
        return False

    countdown = int((channel.backoff_s or 5) * math.pow(2, attempt - 1))  # 5,10,20,40...
    raise self.retry(countdown=countdown, args=(channel_id, event, data),
                     kwargs={"company_id": company_id, "attempt": attempt + 1, "alert_id": alert_id})
