"""
ES256 token signing.

Holds the account's elliptic-curve private key and mints the compact JWTs
the Maps Server API accepts as authorization tokens.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import jwt
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from ..config.logger_module import log_debug, log_error
from ..pipeline.pipeline_errors import SigningError


ALGORITHM = "ES256"

# Upper bound the service accepts for a signed token's lifetime
DEFAULT_MAX_LIFETIME_SECONDS = 3600


@dataclass(frozen=True)
class SigningKey:
    """
    Private key plus the identifiers that tie a token to an account.

    Attributes:
        team_id: Developer team identifier, sent as the `iss` claim
        key_id: Identifier of the key, sent as the `kid` header
        private_key: P-256 private key
    """

    team_id: str
    key_id: str
    private_key: ec.EllipticCurvePrivateKey

    def __post_init__(self):
        if not self.team_id or not self.team_id.strip():
            raise SigningError("team_id is required to sign tokens")
        if not self.key_id or not self.key_id.strip():
            raise SigningError("key_id is required to sign tokens")
        if not isinstance(self.private_key, ec.EllipticCurvePrivateKey):
            raise SigningError(f"ES256 needs an elliptic-curve key, got {type(self.private_key).__name__}")
        if not isinstance(self.private_key.curve, ec.SECP256R1):
            raise SigningError(f"ES256 needs a P-256 key, got curve {self.private_key.curve.name}")

    def __repr__(self) -> str:
        return f"SigningKey(team_id={self.team_id!r}, key_id={self.key_id!r})"

    @classmethod
    def from_pem(cls, pem: Union[str, bytes], team_id: str, key_id: str) -> "SigningKey":
        """
        Load a key from PEM text (PKCS#8 or SEC1, unencrypted).

        Raises:
            SigningError: If the PEM cannot be parsed
        """
        if isinstance(pem, str):
            pem = pem.strip().replace("\\n", "\n").encode("utf-8")
        try:
            private_key = serialization.load_pem_private_key(pem, password=None)
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            log_error(f"Failed to load signing key {key_id}: {e}")
            raise SigningError(f"Could not load private key {key_id}: {e}")
        return cls(team_id=team_id, key_id=key_id, private_key=private_key)

    @classmethod
    def from_file(cls, path: Union[str, Path], team_id: str, key_id: str) -> "SigningKey":
        """Load a key from a .p8/.pem file."""
        try:
            pem = Path(path).read_bytes()
        except OSError as e:
            raise SigningError(f"Could not read private key file {path}: {e}")
        return cls.from_pem(pem, team_id=team_id, key_id=key_id)


class TokenSigner:
    """Signs token claims with a SigningKey."""

    def __init__(self, signing_key: SigningKey, max_lifetime_seconds: int = DEFAULT_MAX_LIFETIME_SECONDS):
        if max_lifetime_seconds <= 0:
            raise ValueError(f"max_lifetime_seconds must be positive, got {max_lifetime_seconds}")
        self.signing_key = signing_key
        self.max_lifetime_seconds = max_lifetime_seconds

    def build_claims(self, issued_at: int, expires_at: int, origin: Optional[str] = None) -> Dict[str, Any]:
        claims: Dict[str, Any] = {
            "iss": self.signing_key.team_id,
            "iat": issued_at,
            "exp": expires_at,
        }
        if origin:
            claims["origin"] = origin
        return claims

    def sign(self, issued_at: float, expires_at: float, origin: Optional[str] = None) -> str:
        """
        Produce a signed token.

        Args:
            issued_at: Epoch seconds the token becomes valid
            expires_at: Epoch seconds the token expires
            origin: Optional origin restriction claim

        Returns:
            Compact JWT string

        Raises:
            SigningError: If the lifetime is invalid or signing fails
        """
        iat = int(issued_at)
        exp = int(expires_at)
        if exp <= iat:
            raise SigningError(f"Token expiry ({exp}) must be after issue time ({iat})")
        if exp - iat > self.max_lifetime_seconds:
            raise SigningError(
                f"Token lifetime {exp - iat}s exceeds the maximum of {self.max_lifetime_seconds}s"
            )

        headers = {"kid": self.signing_key.key_id, "typ": "JWT"}
        try:
            token = jwt.encode(
                self.build_claims(iat, exp, origin),
                self.signing_key.private_key,
                algorithm=ALGORITHM,
                headers=headers,
            )
        except (jwt.PyJWTError, ValueError, TypeError) as e:
            log_error(f"Signing with key {self.signing_key.key_id} failed: {e}")
            raise SigningError(f"Failed to sign token: {e}")

        log_debug(f"Signed token with key {self.signing_key.key_id}, valid {exp - iat}s")
        return token
