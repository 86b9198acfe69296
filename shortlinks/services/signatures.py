"""HMAC signature helpers for the identity-mapping endpoint."""

import hashlib
import hmac
from typing import Iterable, Optional

from shortlinks.services.exceptions import (
    SecretNotConfiguredError,
    SignatureInvalidError,
    SignatureMissingError,
)


def signing_payload(fields: Iterable[str]) -> str:
    """Join the signed fields with a pipe, in order."""
    return "|".join(fields)


def compute_signature(secret: str, payload: str) -> str:
    """Hex encoded HMAC-SHA256 of payload keyed with secret."""
    return hmac.new(
        secret.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256
    ).hexdigest()


class SignatureVerifier:
    """
    Verify caller-supplied signatures against a server-held secret.

    A verifier without a secret rejects every request.
    """

    def __init__(self, secret: Optional[str]):
        self.secret = secret

    @property
    def enabled(self) -> bool:
        return bool(self.secret)

    def verify(self, fields: Iterable[str], signature: Optional[str]) -> None:
        """
        Check signature for the pipe-joined fields.

        Raises:
            SecretNotConfiguredError: If no secret is configured
            SignatureMissingError: If the caller sent no signature
            SignatureInvalidError: If the signature does not match
        """
        if not self.enabled:
            raise SecretNotConfiguredError("Signature secret is not configured")
        if not signature:
            raise SignatureMissingError("Missing signature")

        expected = compute_signature(self.secret, signing_payload(fields))
        if not hmac.compare_digest(expected, signature.strip().lower()):
            raise SignatureInvalidError("Invalid signature")
