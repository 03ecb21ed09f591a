from django.db import models


class UsageLog(models.Model):
    """
    Enregistrement analytique d'un événement facturable (écrit une fois, jamais modifié).
    - company: qui consomme
    - resource_type: 'voice_inbound' | ...
    - quantity: minutes facturées (plafond des secondes / 60)
    - cost_cents: montant hors forfait débité (0 si couvert par le forfait)
    - reference_id: identifiant provider de l'appel (unique par resource_type)
    - meta: {provider_call_id, duration_seconds, overage_minutes, plan_id, ...}
    """
    RESOURCE_VOICE_INBOUND = "voice_inbound"

    company = models.ForeignKey("tenants.Company", on_delete=models.CASCADE, related_name="usage_logs")
    resource_type = models.CharField(max_length=64, db_index=True)
    quantity = models.PositiveIntegerField(default=0)
    cost_cents = models.BigIntegerField(default=0)
    reference_id = models.CharField(max_length=128, null=True, blank=True)
    meta = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "usage_logs"
        indexes = [
            models.Index(fields=["company", "resource_type", "created_at"]),
            models.Index(fields=["company", "created_at"]),
        ]
        constraints = [
            models.UniqueConstraint(fields=["resource_type", "reference_id"], name="usage_log_once_per_reference"),
        ]

    def __str__(self) -> str:
        return f"{self.company_id}:{self.resource_type}@{self.created_at:%Y-%m-%d %H:%M:%S}"
