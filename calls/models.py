from django.db import models


class Call(models.Model):
    """
    Un appel téléphonique, identifié par provider_call_id (clé d'idempotence de toutes les écritures).
    - lifecycle_state: pending -> {ringing, in_progress} -> {resolved, escalated, failed}
      aucun retour depuis un état terminal
    - cost_breakdown: JSON provider stocké tel quel
    - billed_at: marqueur "déjà facturé" (posé une seule fois par le metering)
    """
    STATE_PENDING = "pending"
    STATE_RINGING = "ringing"
    STATE_IN_PROGRESS = "in_progress"
    STATE_RESOLVED = "resolved"
    STATE_ESCALATED = "escalated"
    STATE_FAILED = "failed"
    STATE_CHOICES = [
        (STATE_PENDING, "Pending"),
        (STATE_RINGING, "Ringing"),
        (STATE_IN_PROGRESS, "In progress"),
        (STATE_RESOLVED, "Resolved"),
        (STATE_ESCALATED, "Escalated"),
        (STATE_FAILED, "Failed"),
    ]
    TERMINAL_STATES = (STATE_RESOLVED, STATE_ESCALATED, STATE_FAILED)

    SENTIMENT_POSITIVE = "positive"
    SENTIMENT_NEUTRAL = "neutral"
    SENTIMENT_NEGATIVE = "negative"
    SENTIMENT_CHOICES = [
        (SENTIMENT_POSITIVE, "Positive"),
        (SENTIMENT_NEUTRAL, "Neutral"),
        (SENTIMENT_NEGATIVE, "Negative"),
    ]

    PRIORITY_LOW = "low"
    PRIORITY_MEDIUM = "medium"
    PRIORITY_HIGH = "high"
    PRIORITY_CRITICAL = "critical"
    PRIORITY_CHOICES = [
        (PRIORITY_LOW, "Low"),
        (PRIORITY_MEDIUM, "Medium"),
        (PRIORITY_HIGH, "High"),
        (PRIORITY_CRITICAL, "Critical"),
    ]

    TYPE_INBOUND = "inbound"

    provider_call_id = models.CharField(max_length=128, unique=True, db_index=True)
    company = models.ForeignKey("tenants.Company", on_delete=models.SET_NULL, null=True, blank=True,
                                related_name="calls")
    agent = models.ForeignKey("tenants.Agent", on_delete=models.SET_NULL, null=True, blank=True,
                              related_name="calls")
    caller_number = models.CharField(max_length=32, blank=True, default="")
    recipient_number = models.CharField(max_length=32, blank=True, default="")
    call_type = models.CharField(max_length=16, default=TYPE_INBOUND)

    lifecycle_state = models.CharField(max_length=16, choices=STATE_CHOICES, default=STATE_PENDING, db_index=True)
    duration_seconds = models.PositiveIntegerField(null=True, blank=True)
    ended_reason = models.CharField(max_length=128, blank=True, default="")
    transcript = models.TextField(null=True, blank=True)
    summary = models.TextField(null=True, blank=True)
    recording_url = models.URLField(max_length=1024, null=True, blank=True)
    sentiment = models.CharField(max_length=16, choices=SENTIMENT_CHOICES, null=True, blank=True)
    priority = models.CharField(max_length=16, choices=PRIORITY_CHOICES, default=PRIORITY_MEDIUM)
    cost_breakdown = models.JSONField(null=True, blank=True)

    billed_at = models.DateTimeField(null=True, blank=True)
    started_at = models.DateTimeField(null=True, blank=True)
    ended_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "calls"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["company", "created_at"]),
            models.Index(fields=["company", "lifecycle_state"]),
        ]

    def __str__(self) -> str:
        return f"Call({self.provider_call_id}, {self.lifecycle_state})"

    @property
    def is_terminal(self) -> bool:
        return self.lifecycle_state in self.TERMINAL_STATES


class TranscriptSegment(models.Model):
    """Segment de transcription final (les partiels ne sont jamais stockés)."""
    call = models.ForeignKey(Call, on_delete=models.CASCADE, related_name="segments")
    role = models.CharField(max_length=32)
    content = models.TextField()
    is_final = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "call_transcript_segments"
        ordering = ["created_at", "id"]


class FunctionCallEvent(models.Model):
    """
    Audit d'un function-call provider (l'exécution elle-même est déléguée).
    company/agent résolus depuis call.assistantId, null si inconnu.
    """
    company = models.ForeignKey("tenants.Company", on_delete=models.SET_NULL, null=True, blank=True,
                                related_name="function_calls")
    agent = models.ForeignKey("tenants.Agent", on_delete=models.SET_NULL, null=True, blank=True,
                              related_name="function_calls")
    provider_call_id = models.CharField(max_length=128, blank=True, default="", db_index=True)
    function_name = models.CharField(max_length=128)
    parameters = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "call_function_events"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.function_name}@{self.provider_call_id or '-'}"


class DeclinedCall(models.Model):
    """
    Appel refusé par le Spend-Guard à l'assistant-request.
    Pas de ligne Call: seul l'identifiant provider est retenu pour que le
    end-of-call-report du message de refus ne soit jamais facturé.
    """
    provider_call_id = models.CharField(max_length=128, unique=True)
    company = models.ForeignKey("tenants.Company", on_delete=models.SET_NULL, null=True, blank=True,
                                related_name="declined_calls")
    reason = models.CharField(max_length=32, default="insufficient_funds")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "call_declines"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"DeclinedCall({self.provider_call_id})"

    @classmethod
    def is_declined(cls, provider_call_id: str | None) -> bool:
        return bool(provider_call_id) and cls.objects.filter(provider_call_id=provider_call_id).exists()
