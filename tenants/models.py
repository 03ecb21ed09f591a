from django.db import models


class Plan(models.Model):
    """
    Plan tarifaire (starter/professional/professional_plus/enterprise, etc.)
    - slug: identifiant stable (référencé par les abonnements)
    - voice_minutes: allocation mensuelle de minutes voix (None = illimité)
    - overage_rate_per_minute: prix d'une minute hors forfait, en dollars
    - quotas: JSON pour les autres ressources (ex: {"sms_messages": 1500, "phone_numbers": 1})
    """
    name = models.CharField(max_length=100)
    slug = models.SlugField(max_length=100, unique=True, db_index=True)
    active = models.BooleanField(default=True)

    voice_minutes = models.PositiveIntegerField(null=True, blank=True)
    overage_rate_per_minute = models.DecimalField(max_digits=8, decimal_places=4, default="0.35")

    quotas = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "plans"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.slug} ({'active' if self.active else 'inactive'})"

    @property
    def is_unlimited(self) -> bool:
        return self.voice_minutes is None


class Company(models.Model):
    """
    Tenant: unité de facturation et d'isolation des données.
    - status: ACTIVE|SUSPENDED (un tenant suspendu ne reçoit plus d'appels)
    - metadata: JSON libre (tags, référent, ...)
    - last_usage_at: mis à jour par le metering à chaque appel facturé
    """
    STATUS_ACTIVE = "active"
    STATUS_SUSPENDED = "suspended"
    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_SUSPENDED, "Suspended"),
    ]

    name = models.CharField(max_length=150, unique=True)
    support_email = models.EmailField(blank=True, default="")
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    last_usage_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "companies"
        ordering = ["-created_at"]
        verbose_name_plural = "companies"

    def __str__(self) -> str:
        return self.name

    @property
    def is_active(self) -> bool:
        return self.status == self.STATUS_ACTIVE


class Agent(models.Model):
    """
    Agent IA (assistant provider) d'un tenant.
    provider_assistant_id: identifiant côté provider (call.assistantId des webhooks).
    """
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="agents")
    name = models.CharField(max_length=150)
    provider_assistant_id = models.CharField(max_length=128, unique=True, null=True, blank=True)
    system_prompt = models.TextField(blank=True, default="")
    first_message = models.CharField(max_length=500, blank=True, default="")
    model_config = models.JSONField(default=dict, blank=True)
    voice_config = models.JSONField(default=dict, blank=True)
    active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "agents"
        indexes = [models.Index(fields=["company", "active"])]

    def __str__(self) -> str:
        return f"{self.company_id}:{self.name}"


class PhoneNumber(models.Model):
    """
    Numéro entrant provisionné; relie un numéro à un tenant et (optionnellement) à un agent.
    Un numéro sans agent actif n'est pas routable.
    """
    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name="phone_numbers")
    agent = models.ForeignKey(Agent, on_delete=models.SET_NULL, null=True, blank=True, related_name="phone_numbers")
    number = models.CharField(max_length=32, unique=True, db_index=True)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "phone_numbers"

    def __str__(self) -> str:
        return self.number
