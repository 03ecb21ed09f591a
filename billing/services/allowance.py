import logging
from dataclasses import dataclass
from datetime import datetime

from django.utils.timezone import now

from billing.models import Subscription, UsagePeriod
from tenants.models import Plan

logger = logging.getLogger("callmeter.billing")


@dataclass
class AllowanceSplit:
    covered: int
    overage: int
    limit: int | None  # None => illimité
    used_before: int


def active_subscription(company_id: int) -> Subscription | None:
    """Abonnement `active` du tenant (le plus récent s'il y en a plusieurs)."""
    subs = list(Subscription.objects.select_related("plan")
                .filter(company_id=company_id, status=Subscription.STATUS_ACTIVE)
                .order_by("-created_at")[:2])
    if len(subs) > 1:
        logger.warning("multiple active subscriptions for company %s; using %s", company_id, subs[0].id)
    return subs[0] if subs else None


def current_usage_period(subscription: Subscription, at: datetime | None = None,
                         for_update: bool = False) -> UsagePeriod | None:
    """Période dont l'intervalle [period_start, period_end[ contient `at`."""
    at = at or now()
    qs = UsagePeriod.objects.filter(subscription=subscription, period_start__lte=at, period_end__gt=at)
    if for_update:
        qs = qs.select_for_update()
    return qs.order_by("-period_start").first()


def voice_minute_limit(plan: Plan | None) -> int | None:
    if plan is None:
        return 0  # pas de plan => pay-as-you-go, aucune minute incluse
    return plan.voice_minutes


def split_allowance(*, call_minutes: int, limit: int | None, used: int) -> AllowanceSplit:
    """
    Répartit les minutes d'un appel entre forfait et hors-forfait.
    limit=None (illimité) ne produit jamais de dépassement.
    """
    if limit is None:
        return AllowanceSplit(covered=call_minutes, overage=0, limit=None, used_before=used)
    remaining = max(0, limit - used)
    covered = min(remaining, call_minutes)
    return AllowanceSplit(covered=covered, overage=call_minutes - covered, limit=limit, used_before=used)
