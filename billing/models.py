from django.db import models
from django.db.models import Q


class Subscription(models.Model):
    """
    Abonnement d'un tenant à un Plan.
    Au plus un abonnement `active` par tenant (garanti par le provisioning; le metering lit le plus récent).
    """
    STATUS_TRIALING = "trialing"
    STATUS_ACTIVE = "active"
    STATUS_PAST_DUE = "past_due"
    STATUS_CANCELED = "canceled"
    STATUS_CHOICES = [
        (STATUS_TRIALING, "Trialing"),
        (STATUS_ACTIVE, "Active"),
        (STATUS_PAST_DUE, "Past due"),
        (STATUS_CANCELED, "Canceled"),
    ]

    company = models.ForeignKey("tenants.Company", on_delete=models.CASCADE, related_name="subscriptions")
    plan = models.ForeignKey("tenants.Plan", on_delete=models.PROTECT, related_name="subscriptions")
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_ACTIVE, db_index=True)
    provider_subscription_id = models.CharField(max_length=128, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "billing_subscriptions"
        indexes = [models.Index(fields=["company", "status"])]

    def __str__(self) -> str:
        return f"Subscription(c={self.company_id}, plan={self.plan_id}, {self.status})"


class UsagePeriod(models.Model):
    """
    Compteur d'usage d'un abonnement pour une fenêtre de facturation [period_start, period_end[.
    voice_minutes_used ne fait que croître dans la période (incréments atomiques F()).
    """
    subscription = models.ForeignKey(Subscription, on_delete=models.CASCADE, related_name="usage_periods")
    period_start = models.DateTimeField()
    period_end = models.DateTimeField()
    voice_minutes_used = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "billing_usage_periods"
        indexes = [models.Index(fields=["subscription", "period_start", "period_end"])]
        constraints = [
            models.CheckConstraint(condition=Q(period_end__gt=models.F("period_start")), name="usage_period_non_empty"),
        ]

    def __str__(self) -> str:
        return f"UsagePeriod(s={self.subscription_id}, {self.period_start:%Y-%m-%d}..{self.period_end:%Y-%m-%d})"


class Wallet(models.Model):
    """
    Solde prépayé d'un tenant (centimes). Toute mutation passe par billing.services.ledger.
    """
    company = models.OneToOneField("tenants.Company", on_delete=models.CASCADE, related_name="wallet")
    balance = models.BigIntegerField(default=0)
    currency = models.CharField(max_length=3, default="USD")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "wallets"

    def __str__(self) -> str:
        return f"Wallet(c={self.company_id}, balance={self.balance})"


class WalletTransaction(models.Model):
    """
    Journal immuable des mouvements d'un wallet.
    - amount: delta signé en centimes (négatif pour un débit)
    - reference_id: identifiant de l'appel provider (usage) ou de la recharge
    Invariant: somme(amount) == Wallet.balance.
    """
    TYPE_USAGE = "usage"
    TYPE_TOPUP = "topup"
    TYPE_REFUND = "refund"
    TYPE_CHOICES = [
        (TYPE_USAGE, "Usage"),
        (TYPE_TOPUP, "Top-up"),
        (TYPE_REFUND, "Refund"),
    ]

    wallet = models.ForeignKey(Wallet, on_delete=models.PROTECT, related_name="transactions")
    amount = models.BigIntegerField()
    type = models.CharField(max_length=16, choices=TYPE_CHOICES)
    reference_id = models.CharField(max_length=128, blank=True, default="")
    description = models.CharField(max_length=255, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "wallet_transactions"
        indexes = [models.Index(fields=["wallet", "created_at"])]
        constraints = [
            # un appel ne peut être débité qu'une fois
            models.UniqueConstraint(
                fields=["wallet", "reference_id"],
                condition=Q(type="usage"),
                name="wallet_usage_once_per_reference",
            ),
        ]

    def __str__(self) -> str:
        return f"WalletTransaction(w={self.wallet_id}, {self.type}, {self.amount})"
