import json
import logging

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema, OpenApiExample, OpenApiResponse
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from core.permissions.provider_signed import ProviderSignedPermission
from .auth.signature import ProviderSignatureAuthentication
from .serializers.events import decode_event
from .services.dispatcher import dispatch

logger = logging.getLogger("callmeter.ingress")

PROCESSING_FAILED = {"error": "Webhook processing failed"}


@extend_schema(
    tags=["Provider webhooks"],
    request=OpenApiTypes.OBJECT,
    responses={
        200: OpenApiResponse(description="Configuration d'agent, refus, ou {\"received\": true}"),
        401: OpenApiResponse(description="Signature absente ou invalide"),
        500: OpenApiResponse(description="Payload non décodable"),
    },
    examples=[
        OpenApiExample(
            "end-of-call-report",
            value={
                "message": {
                    "type": "end-of-call-report",
                    "call": {"id": "call_123", "duration": 301, "endedReason": "customer-ended-call",
                             "phoneNumber": {"number": "+15550001111"}, "customer": {"number": "+15559998888"}},
                    "transcript": "Thanks, that was great.",
                    "summary": "Customer asked about opening hours.",
                    "recording": {"url": "https://recordings.example.com/call_123.wav"},
                }
            },
            request_only=True,
        ),
        OpenApiExample(
            "Refus (solde insuffisant)",
            value={"assistant": {"firstMessage": "We're sorry, ...", "endCallAfterSpoken": True}},
            response_only=True,
        ),
    ],
)
class ProviderWebhookView(APIView):
    """
    POST /webhooks/provider
    Auth: signature HMAC du corps brut (x-vapi-signature)
    Toujours 200 pour les issues métier; 401 signature; 500 payload malformé.
    """
    authentication_classes = [ProviderSignatureAuthentication]
    permission_classes = [ProviderSignedPermission]

    def post(self, request):
        try:
            payload = json.loads(request.body or b"")
            event = decode_event(payload)
        except ValueError as e:  # JSONDecodeError, MalformedEvent
            logger.error("malformed webhook payload: %s %s", e, getattr(e, "errors", ""))
            return Response(PROCESSING_FAILED, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        return Response(dispatch(event), status=status.HTTP_200_OK)
