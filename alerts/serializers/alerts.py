from rest_framework import serializers

from alerts.models import AlertChannel, AlertDelivery


class AlertChannelOutSerializer(serializers.ModelSerializer):
    class Meta:
        model = AlertChannel
        fields = ("id", "name", "company", "url", "events", "min_severity", "active", "timeout_s", "max_retries",
                  "backoff_s", "created_at", "updated_at")
        read_only_fields = ("id", "created_at", "updated_at")

class AlertChannelUpsertSerializer(serializers.ModelSerializer):
    class Meta:
        model = AlertChannel
        fields = ("name", "company", "url", "secret", "events", "min_severity", "active", "timeout_s", "max_retries",
                  "backoff_s")

class AlertDeliveryOutSerializer(serializers.ModelSerializer):
    class Meta:
        model = AlertDelivery
        fields = (
            "id", "alert_id", "channel", "event", "severity", "url", "attempt", "headers",
            "payload", "status_code", "ok", "error", "duration_ms", "created_at"
        )
        read_only_fields = fields
