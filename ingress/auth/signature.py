import hashlib
import hmac
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from django.conf import settings
from rest_framework import exceptions
from rest_framework.authentication import BaseAuthentication

logger = logging.getLogger("callmeter.ingress")

SIGNATURE_PREFIX = "sha256="


def compute_signature(raw_body: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()


def verify(raw_body: bytes, signature_header: str | None, secret: str) -> bool:
    """
    HMAC-SHA256 hex du corps brut, préfixe "sha256=" optionnel; comparaison à temps constant.
    Un en-tête non ASCII (Django décode les en-têtes en latin-1) est simplement invalide.
    """
    if not signature_header:
        return False
    received = signature_header.strip()
    if received.lower().startswith(SIGNATURE_PREFIX):
        received = received[len(SIGNATURE_PREFIX):]
    if not received.isascii():
        return False
    expected = compute_signature(raw_body or b"", secret)
    return hmac.compare_digest(expected.encode("ascii"), received.lower().encode("ascii"))


@dataclass
class ProviderPrincipal:
    verified: bool
    is_authenticated: bool = True


class ProviderSignatureAuthentication(BaseAuthentication):
    """
    Authentifie les webhooks provider par signature du corps brut (en-tête x-vapi-signature).
    Sans secret configuré: mode non sécurisé explicite, la requête passe (loggé à chaque appel).
    """

    def authenticate(self, request) -> Optional[Tuple[ProviderPrincipal, None]]:
        secret = settings.PROVIDER_WEBHOOK_SECRET
        if not secret:
            logger.warning("PROVIDER_WEBHOOK_SECRET not set: webhook accepted without signature check")
            return (ProviderPrincipal(verified=False), None)

        header = request.META.get(settings.PROVIDER_SIGNATURE_HEADER)
        if not header:
            raise exceptions.AuthenticationFailed("Missing signature")
        # request.body: octets exacts reçus, avant tout parsing JSON
        if not verify(request.body, header, secret):
            raise exceptions.AuthenticationFailed("Invalid signature")
        return (ProviderPrincipal(verified=True), None)

    def authenticate_header(self, request) -> str:
        return "Signature"
