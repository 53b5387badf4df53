"""
Token signing and caching for the Maps Server API.

Main classes:
- SigningKey: P-256 key plus team/key identifiers
- TokenSigner: Mints ES256 JWTs
- TokenManager: Thread-safe cache that refreshes tokens before expiry
- AccessTokenExchanger: Trades signed tokens for access tokens
"""

from .auth_exchange import AccessTokenExchanger, TokenResponse
from .auth_signer import SigningKey, TokenSigner
from .auth_token_manager import Token, TokenManager

__all__ = [
    "SigningKey",
    "TokenSigner",
    "Token",
    "TokenManager",
    "AccessTokenExchanger",
    "TokenResponse",
]
