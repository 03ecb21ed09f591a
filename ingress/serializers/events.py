import json
import math

from rest_framework import serializers

from ..events import (
    ASSISTANT_REQUEST, STATUS_UPDATE, END_OF_CALL_REPORT, TRANSCRIPT, FUNCTION_CALL,
    AssistantRequest, CallRef, EndOfCallReport, Event, FunctionCall, MalformedEvent,
    StatusUpdate, TranscriptSegment, UnknownEvent,
)

# Les noms de champs suivent le JSON du provider (camelCase); les champs inconnus sont ignorés.


class NumberRefSerializer(serializers.Serializer):
    number = serializers.CharField(required=False, allow_null=True, allow_blank=True)


class RecordingSerializer(serializers.Serializer):
    url = serializers.CharField(required=False, allow_null=True, allow_blank=True)


class CallSerializer(serializers.Serializer):
    id = serializers.CharField(required=False, allow_null=True)
    status = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    assistantId = serializers.CharField(required=False, allow_null=True)
    phoneNumber = NumberRefSerializer(required=False, allow_null=True)
    customer = NumberRefSerializer(required=False, allow_null=True)
    duration = serializers.FloatField(required=False, allow_null=True, min_value=0)
    endedReason = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    cost = serializers.JSONField(required=False, allow_null=True)
    costBreakdown = serializers.JSONField(required=False, allow_null=True)
    startedAt = serializers.DateTimeField(required=False, allow_null=True)
    endedAt = serializers.DateTimeField(required=False, allow_null=True)


def _call_ref(call: dict) -> CallRef:
    return CallRef(
        id=call.get("id"),
        status=call.get("status") or None,
        phone_number=(call.get("phoneNumber") or {}).get("number") or None,
        customer_number=(call.get("customer") or {}).get("number") or None,
        assistant_id=call.get("assistantId"),
    )


def _require_call_id(call: dict | None) -> dict:
    if not call or not call.get("id"):
        raise serializers.ValidationError("call.id is required")
    return call


def _round_seconds(value: float) -> int:
    return int(math.floor(value + 0.5))


class AssistantRequestSerializer(serializers.Serializer):
    call = CallSerializer()

    def validate_call(self, value):
        if not (value.get("phoneNumber") or {}).get("number"):
            raise serializers.ValidationError("call.phoneNumber.number is required")
        return value

    def to_event(self) -> AssistantRequest:
        return AssistantRequest(call=_call_ref(self.validated_data["call"]))


class StatusUpdateSerializer(serializers.Serializer):
    call = CallSerializer()
    status = serializers.CharField(required=False, allow_null=True, allow_blank=True)

    def validate_call(self, value):
        return _require_call_id(value)

    def validate(self, attrs):
        if not (attrs.get("status") or attrs["call"].get("status")):
            raise serializers.ValidationError("call.status is required")
        return attrs

    def to_event(self) -> StatusUpdate:
        call = self.validated_data["call"]
        return StatusUpdate(call=_call_ref(call), status=self.validated_data.get("status") or call["status"])


class EndOfCallReportSerializer(serializers.Serializer):
    call = CallSerializer()
    durationSeconds = serializers.FloatField(required=False, allow_null=True, min_value=0)
    endedReason = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    transcript = serializers.JSONField(required=False, allow_null=True)
    summary = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    recording = RecordingSerializer(required=False, allow_null=True)
    recordingUrl = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    cost = serializers.JSONField(required=False, allow_null=True)

    def validate_call(self, value):
        return _require_call_id(value)

    def _duration(self) -> int:
        """call.duration, sinon message.durationSeconds, sinon endedAt - startedAt."""
        data = self.validated_data
        call = data["call"]
        if call.get("duration") is not None:
            return _round_seconds(call["duration"])
        if data.get("durationSeconds") is not None:
            return _round_seconds(data["durationSeconds"])
        started, ended = call.get("startedAt"), call.get("endedAt")
        if started and ended and ended > started:
            return _round_seconds((ended - started).total_seconds())
        return 0

    def to_event(self) -> EndOfCallReport:
        data = self.validated_data
        call = data["call"]
        transcript = data.get("transcript")
        if transcript is not None and not isinstance(transcript, str):
            transcript = json.dumps(transcript, ensure_ascii=False)
        cost = call.get("cost")
        if cost is None:
            cost = call.get("costBreakdown")
        if cost is None:
            cost = data.get("cost")
        return EndOfCallReport(
            call=_call_ref(call),
            duration_seconds=self._duration(),
            ended_reason=call.get("endedReason") or data.get("endedReason") or None,
            cost_breakdown=cost,
            transcript=transcript or None,
            summary=data.get("summary") or None,
            recording_url=(data.get("recording") or {}).get("url") or data.get("recordingUrl") or None,
        )


class TranscriptSerializer(serializers.Serializer):
    call = CallSerializer()
    role = serializers.CharField()
    transcript = serializers.CharField(allow_blank=True)
    transcriptType = serializers.ChoiceField(choices=["partial", "final"])

    def validate_call(self, value):
        return _require_call_id(value)

    def to_event(self) -> TranscriptSegment:
        data = self.validated_data
        return TranscriptSegment(
            call=_call_ref(data["call"]),
            role=data["role"],
            transcript=data["transcript"],
            transcript_type=data["transcriptType"],
        )


class FunctionCallBodySerializer(serializers.Serializer):
    name = serializers.CharField()
    parameters = serializers.DictField(required=False, default=dict)


class FunctionCallSerializer(serializers.Serializer):
    call = CallSerializer(required=False, default=dict)
    functionCall = FunctionCallBodySerializer()

    def to_event(self) -> FunctionCall:
        data = self.validated_data
        return FunctionCall(
            call=_call_ref(data.get("call") or {}),
            name=data["functionCall"]["name"],
            parameters=data["functionCall"].get("parameters") or {},
        )


EVENT_SERIALIZERS = {
    ASSISTANT_REQUEST: AssistantRequestSerializer,
    STATUS_UPDATE: StatusUpdateSerializer,
    END_OF_CALL_REPORT: EndOfCallReportSerializer,
    TRANSCRIPT: TranscriptSerializer,
    FUNCTION_CALL: FunctionCallSerializer,
}


def decode_event(payload) -> Event:
    """
    Enveloppe provider {"message": {...}} (ou message nu) -> événement typé.
    Type inconnu -> UnknownEvent (acquitté sans effet de bord).
    """
    if not isinstance(payload, dict):
        raise MalformedEvent("payload must be a JSON object")
    message = payload.get("message", payload)
    if not isinstance(message, dict):
        raise MalformedEvent("message must be a JSON object")
    event_type = message.get("type")
    if not isinstance(event_type, str) or not event_type:
        raise MalformedEvent("missing event type")

    serializer_class = EVENT_SERIALIZERS.get(event_type)
    if serializer_class is None:
        return UnknownEvent(type=event_type, raw=message)

    ser = serializer_class(data=message)
    if not ser.is_valid():
        raise MalformedEvent(f"invalid {event_type} payload", ser.errors)
    return ser.to_event()
