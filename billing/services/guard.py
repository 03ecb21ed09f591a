from enum import Enum

from billing.models import Subscription, Wallet
from billing.services.allowance import active_subscription


class GuardDecision(str, Enum):
    ALLOW = "allow"
    ALLOW_ENTERPRISE = "allow_enterprise"
    REJECT = "reject"

    @property
    def allowed(self) -> bool:
        return self is not GuardDecision.REJECT


def decide(*, subscription: Subscription | None, wallet_balance: int | None) -> GuardDecision:
    """
    Autorisation pré-appel, sans effet de bord:
      1. plan illimité (enterprise) -> ALLOW_ENTERPRISE
      2. solde wallet > 0          -> ALLOW
      3. sinon                     -> REJECT (message de refus + raccroché, aucune facturation)
    Un wallet absent compte comme un solde nul.
    """
    if (subscription is not None
            and subscription.status == Subscription.STATUS_ACTIVE
            and subscription.plan.is_unlimited):
        return GuardDecision.ALLOW_ENTERPRISE
    if wallet_balance is not None and wallet_balance > 0:
        return GuardDecision.ALLOW
    return GuardDecision.REJECT


def check_company(company_id: int) -> GuardDecision:
    """Charge abonnement + solde du tenant puis applique decide()."""
    subscription = active_subscription(company_id)
    balance = (Wallet.objects
               .filter(company_id=company_id)
               .values_list("balance", flat=True)
               .first())
    return decide(subscription=subscription, wallet_balance=balance)
