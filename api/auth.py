"""Bearer credential gate.

Accepts either the static shared secret (MCP_SERVER_TOKEN) or a JWT signed
with JWT_SECRET. The development shortcut accepts the shared secret before
any token verification; it is an audit point and logs a warning when on.
"""

import hmac
import logging
from dataclasses import dataclass, field
from typing import Any

from fastapi import Request
from jose import JWTError, jwt

from pipeline.config import AuthConfig
from pipeline.errors import EmptyCredential, InvalidCredential, MissingCredential

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "
EXPECTED_FORMAT = "Bearer <token>"
CREDENTIAL_HINT = "Make sure you are using the correct MCP_SERVER_TOKEN or a valid JWT token"


@dataclass(frozen=True)
class Identity:
    """Caller identity established by the gate."""

    id: str
    role: str | None = None
    claims: dict[str, Any] = field(default_factory=dict)


SYSTEM_IDENTITY = Identity(id="system", role="admin")


class AccessGate:
    """Validates the Authorization header of inbound requests."""

    def __init__(self, config: AuthConfig) -> None:
        self.shared_secret = config.shared_secret
        self.signing_key = config.signing_key
        self.algorithm = config.algorithm
        self.development = config.development

        if self.development and self.shared_secret:
            logger.warning(
                "Development auth bypass enabled: the shared secret is accepted "
                "without token verification"
            )

    def authenticate(self, header: str | None) -> Identity:
        """Return the identity for an Authorization header value.

        Raises:
            MissingCredential: Header absent or not a Bearer credential
            EmptyCredential: Bearer value is blank
            InvalidCredential: Neither a valid token nor the shared secret
        """
        if not header or not header.startswith(BEARER_PREFIX):
            raise MissingCredential(
                "Authorization header must use the Bearer scheme",
                extra={
                    "expected_format": EXPECTED_FORMAT,
                    "received_header": "Bearer ***" if header else "none",
                },
            )

        credential = header[len(BEARER_PREFIX):]
        if not credential.strip():
            raise EmptyCredential(
                "Bearer credential is empty",
                extra={"expected_format": EXPECTED_FORMAT},
            )

        if self.development and self._is_shared_secret(credential):
            return SYSTEM_IDENTITY

        try:
            claims = self._verify(credential)
        except JWTError as e:
            if self._is_shared_secret(credential):
                return SYSTEM_IDENTITY
            logger.info("Rejected bearer credential: %s", e)
            raise InvalidCredential(str(e), extra={"hint": CREDENTIAL_HINT}) from e

        subject = claims.get("id") or claims.get("sub") or "unknown"
        return Identity(id=str(subject), role=claims.get("role"), claims=claims)

    def _verify(self, credential: str) -> dict[str, Any]:
        if not self.signing_key:
            raise JWTError("No signing key configured")
        return jwt.decode(credential, self.signing_key, algorithms=[self.algorithm])

    def _is_shared_secret(self, credential: str) -> bool:
        if not self.shared_secret:
            return False
        return hmac.compare_digest(credential.encode(), self.shared_secret.encode())


def require_identity(request: Request) -> Identity:
    """FastAPI dependency guarding the agent routes."""
    gate: AccessGate = request.app.state.gate
    identity = gate.authenticate(request.headers.get("Authorization"))
    request.state.identity = identity
    return identity
