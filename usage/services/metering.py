import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_CEILING

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils.timezone import now

from alerts.services.notify import raise_alert, EVT_WALLET_MISSING
from billing.models import UsagePeriod, Wallet
from billing.services import ledger
from billing.services.allowance import (
    AllowanceSplit, active_subscription, current_usage_period, split_allowance, voice_minute_limit,
)
from calls.models import Call, DeclinedCall
from tenants.models import Company
from usage.models import UsageLog

logger = logging.getLogger("callmeter.billing")


@dataclass
class MeteringResult:
    provider_call_id: str
    call_minutes: int
    covered_minutes: int
    overage_minutes: int
    cost_cents: int
    plan_slug: str | None
    charged: bool
    wallet_missing: bool = False


def billable_minutes(duration_seconds: int) -> int:
    """Facturation au plafond: toute minute entamée est due (301s -> 6 min)."""
    if duration_seconds <= 0:
        return 0
    return -(-duration_seconds // 60)


def overage_cost_cents(overage_minutes: int, rate_per_minute: Decimal) -> int:
    cents = Decimal(overage_minutes) * Decimal(rate_per_minute) * 100
    return int(cents.to_integral_value(rounding=ROUND_CEILING))


def meter_call(call: Call, at: datetime | None = None) -> MeteringResult | None:
    """
    Comptabilise un appel terminé, au plus une fois:
      minutes -> compteur de la période courante, dépassement -> débit wallet, UsageLog systématique.
    Retourne None si rien n'est à facturer (durée nulle, tenant inconnu, appel refusé ou déjà facturé).
    """
    duration = call.duration_seconds or 0
    if duration <= 0:
        return None
    if call.company_id is None:
        logger.warning("call %s has no resolved company; usage not metered", call.provider_call_id)
        return None
    if DeclinedCall.is_declined(call.provider_call_id):
        logger.info("call %s was declined by the spend guard; usage not metered", call.provider_call_id)
        return None

    at = at or now()
    minutes = billable_minutes(duration)
    pending_alerts = []

    with transaction.atomic():
        # marqueur "billed": UPDATE conditionnel, un seul gagnant même en cas de livraisons concurrentes
        claimed = Call.objects.filter(pk=call.pk, billed_at__isnull=True).update(billed_at=at)
        if not claimed:
            logger.info("call %s already billed; duplicate report ignored", call.provider_call_id)
            return None

        subscription = active_subscription(call.company_id)
        plan = subscription.plan if subscription else None
        period = current_usage_period(subscription, at, for_update=True) if subscription else None

        if plan is not None and plan.is_unlimited:
            split = split_allowance(call_minutes=minutes, limit=None,
                                    used=period.voice_minutes_used if period else 0)
        elif period is None:
            if subscription is not None:
                logger.warning("no current usage period for subscription %s; billing call %s as overage",
                               subscription.id, call.provider_call_id)
            split = AllowanceSplit(covered=0, overage=minutes, limit=voice_minute_limit(plan), used_before=0)
        else:
            split = split_allowance(call_minutes=minutes, limit=plan.voice_minutes, used=period.voice_minutes_used)

        if period is not None:
            UsagePeriod.objects.filter(pk=period.pk).update(voice_minutes_used=F("voice_minutes_used") + minutes)

        rate = plan.overage_rate_per_minute if plan else settings.CALLMETER_DEFAULT_OVERAGE_RATE
        cost = overage_cost_cents(split.overage, rate) if split.overage else 0
        plan_slug = plan.slug if plan else None

        charged = False
        wallet_missing = False
        if cost > 0:
            wallet_id = Wallet.objects.filter(company_id=call.company_id).values_list("id", flat=True).first()
            if wallet_id is None:
                wallet_missing = True
                logger.error("no wallet for company %s: %s cents of overage for call %s not debited",
                             call.company_id, cost, call.provider_call_id)
                pending_alerts.append((EVT_WALLET_MISSING, {
                    "provider_call_id": call.provider_call_id,
                    "cost_cents": cost,
                    "overage_minutes": split.overage,
                }))
            else:
                ledger.debit(
                    wallet_id, cost, call.provider_call_id,
                    f"Voice call overage ({split.overage} min, plan {plan_slug or 'pay-as-you-go'})",
                )
                charged = True

        UsageLog.objects.create(
            company_id=call.company_id,
            resource_type=UsageLog.RESOURCE_VOICE_INBOUND,
            quantity=minutes,
            cost_cents=cost,
            reference_id=call.provider_call_id,
            meta={
                "provider_call_id": call.provider_call_id,
                "duration_seconds": duration,
                "overage_minutes": split.overage,
                "plan_id": plan_slug,
                "charged": charged,
            },
        )
        Company.objects.filter(pk=call.company_id).update(last_usage_at=at)

    for event, data in pending_alerts:
        raise_alert(event, data, company_id=call.company_id)

    return MeteringResult(
        provider_call_id=call.provider_call_id,
        call_minutes=minutes,
        covered_minutes=split.covered,
        overage_minutes=split.overage,
        cost_cents=cost,
        plan_slug=plan_slug,
        charged=charged,
        wallet_missing=wallet_missing,
    )
