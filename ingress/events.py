from dataclasses import dataclass, field
from typing import Any, Optional, Union

# Types d'événements provider connus
ASSISTANT_REQUEST = "assistant-request"
STATUS_UPDATE = "status-update"
END_OF_CALL_REPORT = "end-of-call-report"
TRANSCRIPT = "transcript"
FUNCTION_CALL = "function-call"


class MalformedEvent(ValueError):
    """Payload non décodable ou ne respectant pas le schéma de son type."""

    def __init__(self, message: str, errors: Any = None):
        super().__init__(message)
        self.errors = errors


@dataclass(frozen=True)
class CallRef:
    id: Optional[str]
    status: Optional[str] = None
    phone_number: Optional[str] = None
    customer_number: Optional[str] = None
    assistant_id: Optional[str] = None


@dataclass(frozen=True)
class AssistantRequest:
    call: CallRef
    type: str = ASSISTANT_REQUEST


@dataclass(frozen=True)
class StatusUpdate:
    call: CallRef
    status: str
    type: str = STATUS_UPDATE


@dataclass(frozen=True)
class EndOfCallReport:
    call: CallRef
    duration_seconds: int
    ended_reason: Optional[str] = None
    cost_breakdown: Any = None  # stocké tel quel
    transcript: Optional[str] = None
    summary: Optional[str] = None
    recording_url: Optional[str] = None
    type: str = END_OF_CALL_REPORT


@dataclass(frozen=True)
class TranscriptSegment:
    call: CallRef
    role: str
    transcript: str
    transcript_type: str
    type: str = TRANSCRIPT

    @property
    def is_final(self) -> bool:
        return self.transcript_type == "final"


@dataclass(frozen=True)
class FunctionCall:
    call: CallRef
    name: str
    parameters: dict = field(default_factory=dict)
    type: str = FUNCTION_CALL


@dataclass(frozen=True)
class UnknownEvent:
    type: str
    raw: dict = field(default_factory=dict)


Event = Union[AssistantRequest, StatusUpdate, EndOfCallReport, TranscriptSegment, FunctionCall, UnknownEvent]
