from django.db import models


class AlertChannel(models.Model):
    """
    Canal d'alerte opérateur (réconciliation manuelle des échecs de facturation).
    - url: endpoint HTTP(s) de l'outil d'astreinte / observabilité
    - secret: secret HMAC ("plain:xxxxx" en DEV)
    - events: événements souscrits (ex: ["billing.wallet_missing","billing.settlement_failed"]); vide = tous
    - company: optionnel, restreint le canal aux alertes d'un tenant
    - min_severity: sévérité minimale transmise (info < warning < critical)
    - timeout_s / max_retries / backoff_s: politique d'envoi
    """
    SEVERITY_INFO = "info"
    SEVERITY_WARNING = "warning"
    SEVERITY_CRITICAL = "critical"
    SEVERITY_CHOICES = [
        (SEVERITY_INFO, "Info"),
        (SEVERITY_WARNING, "Warning"),
        (SEVERITY_CRITICAL, "Critical"),
    ]
    SEVERITY_RANK = {SEVERITY_INFO: 0, SEVERITY_WARNING: 1, SEVERITY_CRITICAL: 2}

    name = models.CharField(max_length=100)
    company = models.ForeignKey("tenants.Company", on_delete=models.CASCADE, null=True, blank=True,
                                related_name="alert_channels")
    url = models.URLField()
    secret = models.CharField(max_length=255)
    events = models.JSONField(default=list, blank=True)
    min_severity = models.CharField(max_length=16, choices=SEVERITY_CHOICES, default=SEVERITY_INFO)
    active = models.BooleanField(default=True)
    timeout_s = models.PositiveIntegerField(default=10)
    max_retries = models.PositiveIntegerField(default=5)
    backoff_s = models.PositiveIntegerField(default=5)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "alert_channels"

    def __str__(self) -> str:
        return f"AlertChannel({self.name}, active={self.active})"

    def accepts(self, event: str, company_id: int | None, severity: str = SEVERITY_INFO) -> bool:
        if self.company_id is not None and self.company_id != company_id:
            return False
        if self.SEVERITY_RANK.get(severity, 0) < self.SEVERITY_RANK.get(self.min_severity, 0):
            return False
        return not self.events or event in self.events


class AlertDelivery(models.Model):
    """
    Historique des envois d'alertes (journal immuable).
    - alert_id: identifiant de l'alerte, commun à toutes ses tentatives
    - attempt: n° tentative (1..N)
    - status_code: code HTTP reçu (null si exception)
    - error: texte d'erreur si exception
    """
    channel = models.ForeignKey(AlertChannel, on_delete=models.SET_NULL, null=True, blank=True, related_name="deliveries")
    alert_id = models.CharField(max_length=40, blank=True, default="", db_index=True)
    event = models.CharField(max_length=64)
    severity = models.CharField(max_length=16, default=AlertChannel.SEVERITY_INFO)
    url = models.URLField()
    attempt = models.PositiveIntegerField(default=1)
    headers = models.JSONField(default=dict, blank=True)
    payload = models.JSONField(default=dict, blank=True)

    status_code = models.IntegerField(null=True, blank=True)
    ok = models.BooleanField(default=False)
    error = models.TextField(blank=True, default="")
    duration_ms = models.IntegerField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "alert_deliveries"
        indexes = [
            models.Index(fields=["event", "created_at"]),
            models.Index(fields=["created_at"]),
        ]

    def __str__(self) -> str:
        return f"AlertDelivery(ch={self.channel_id}, ev={self.event}, ok={self.ok}, attempt={self.attempt})"
