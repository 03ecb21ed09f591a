import logging
from dataclasses import dataclass

from django.db.models import F, Sum
from django.utils.timezone import now

from billing.exceptions import WalletNotFound
from billing.models import Wallet, WalletTransaction

logger = logging.getLogger("callmeter.billing")


@dataclass
class Reconciliation:
    wallet_id: int
    balance: int
    ledger_total: int

    @property
    def drift(self) -> int:
        return self.balance - self.ledger_total

    @property
    def ok(self) -> bool:
        return self.drift == 0


def _apply(wallet_id: int, delta: int, *, type: str, reference_id: str, description: str) -> WalletTransaction:
    # UPDATE wallets SET balance = balance + delta : jamais de lecture/écriture côté application
    updated = Wallet.objects.filter(id=wallet_id).update(balance=F("balance") + delta, updated_at=now())
    if not updated:
        raise WalletNotFound(wallet_id=wallet_id)
    return WalletTransaction.objects.create(
        wallet_id=wallet_id,
        amount=delta,
        type=type,
        reference_id=reference_id or "",
        description=description[:255],
    )


def debit(wallet_id: int, amount_cents: int, reference_id: str, description: str) -> WalletTransaction:
    """Débit atomique (usage) + une ligne WalletTransaction négative."""
    if amount_cents <= 0:
        raise ValueError("debit amount must be positive")
    tx = _apply(wallet_id, -amount_cents, type=WalletTransaction.TYPE_USAGE,
                reference_id=reference_id, description=description)
    logger.info("wallet %s debited %s cents (ref=%s)", wallet_id, amount_cents, reference_id)
    return tx


def credit(wallet_id: int, amount_cents: int, reference_id: str = "", description: str = "",
           type: str = WalletTransaction.TYPE_TOPUP) -> WalletTransaction:
    """Recharge ou remboursement."""
    if amount_cents <= 0:
        raise ValueError("credit amount must be positive")
    if type not in (WalletTransaction.TYPE_TOPUP, WalletTransaction.TYPE_REFUND):
        raise ValueError(f"invalid credit type: {type}")
    tx = _apply(wallet_id, amount_cents, type=type, reference_id=reference_id, description=description)
    logger.info("wallet %s credited %s cents (%s)", wallet_id, amount_cents, type)
    return tx


def reconcile_wallet(wallet: Wallet) -> Reconciliation:
    wallet.refresh_from_db(fields=["balance"])
    total = wallet.transactions.aggregate(total=Sum("amount"))["total"] or 0
    return Reconciliation(wallet_id=wallet.id, balance=wallet.balance, ledger_total=total)
