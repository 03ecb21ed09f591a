from rest_framework import serializers

from usage.models import UsageLog


class UsageLogOutSerializer(serializers.ModelSerializer):
    class Meta:
        model = UsageLog
        fields = ("id", "company", "resource_type", "quantity", "cost_cents", "reference_id", "meta", "created_at")
        read_only_fields = fields
