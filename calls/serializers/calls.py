from rest_framework import serializers

from calls.models import Call, TranscriptSegment, FunctionCallEvent


class TranscriptSegmentOutSerializer(serializers.ModelSerializer):
    class Meta:
        model = TranscriptSegment
        fields = ("id", "role", "content", "created_at")
        read_only_fields = fields


class CallOutSerializer(serializers.ModelSerializer):
    class Meta:
        model = Call
        fields = (
            "id", "provider_call_id", "company", "agent", "caller_number", "recipient_number", "call_type",
            "lifecycle_state", "duration_seconds", "ended_reason", "summary", "recording_url",
            "sentiment", "priority", "cost_breakdown", "billed_at", "started_at", "ended_at",
            "created_at", "updated_at",
        )
        read_only_fields = fields


class CallDetailSerializer(CallOutSerializer):
    segments = TranscriptSegmentOutSerializer(many=True, read_only=True)

    class Meta(CallOutSerializer.Meta):
        fields = CallOutSerializer.Meta.fields + ("transcript", "segments")
        read_only_fields = fields


class FunctionCallEventOutSerializer(serializers.ModelSerializer):
    class Meta:
        model = FunctionCallEvent
        fields = ("id", "company", "agent", "provider_call_id", "function_name", "parameters", "created_at")
        read_only_fields = fields
