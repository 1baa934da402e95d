"""
Sealing of authentication results.

A result is first signed as a JWT (JWS) with the bridge signing key, and the
compact signed token is then placed in the ``njwt`` claim of a JWE encrypted
to the relying party. Signing happens first: the plaintext claims are only
readable with the relying party's decryption key, and the signature can still
be checked after decryption.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Protocol

import jwt
from jwcrypto import jwe, jwk
from jwcrypto.common import JWException

from .exceptions import PackagingError
from .keys import KeyType, PrivateKey, PublicKey, load_private_key, load_public_key

logger = logging.getLogger(__name__)

RESULT_SUBJECT = "id-contact-attributes"
CONTENT_ENCRYPTION = "A128CBC-HS256"
NESTED_TOKEN_CLAIM = "njwt"
DEFAULT_RESULT_VALIDITY = 300


class Signer(Protocol):
    """Anything that can produce a compact JWS for a claim set."""

    algorithm: str

    def sign(self, claims: dict[str, Any], headers: dict[str, Any] | None = None) -> str:
        ...


class Encrypter(Protocol):
    """Anything that can produce a compact JWE for a claim set."""

    algorithm: str

    def encrypt(self, claims: dict[str, Any], headers: dict[str, Any] | None = None) -> str:
        ...


class JwsSigner:
    """PyJWT based signer for RSA (RS256) and EC (ES256) private keys."""

    def __init__(self, private_key: PrivateKey, algorithm: str) -> None:
        self._private_key = private_key
        self.algorithm = algorithm

    @classmethod
    def from_pem(cls, key_type: KeyType, pem: str | bytes) -> JwsSigner:
        return cls(load_private_key(pem, key_type), key_type.signing_algorithm)

    @property
    def public_key(self) -> PublicKey:
        return self._private_key.public_key()

    def sign(self, claims: dict[str, Any], headers: dict[str, Any] | None = None) -> str:
        try:
            return jwt.encode(claims, self._private_key, algorithm=self.algorithm, headers=headers)
        except (jwt.PyJWTError, ValueError, TypeError) as e:
            raise PackagingError(f"Could not sign token: {e}") from e


class JweEncrypter:
    """jwcrypto based encrypter for RSA (RSA-OAEP) and EC (ECDH-ES) public keys."""

    def __init__(
        self, public_key: jwk.JWK, algorithm: str, encryption: str = CONTENT_ENCRYPTION
    ) -> None:
        self._public_key = public_key
        self.algorithm = algorithm
        self.encryption = encryption

    @classmethod
    def from_pem(cls, key_type: KeyType, pem: str | bytes) -> JweEncrypter:
        public_key = load_public_key(pem, key_type)
        return cls(jwk.JWK.from_pyca(public_key), key_type.key_management_algorithm)

    def encrypt(self, claims: dict[str, Any], headers: dict[str, Any] | None = None) -> str:
        protected = {**(headers or {}), "alg": self.algorithm, "enc": self.encryption}
        try:
            token = jwe.JWE(
                plaintext=json.dumps(claims).encode("utf-8"),
                protected=json.dumps(protected),
            )
            token.add_recipient(self._public_key)
            return token.serialize(compact=True)
        except (JWException, ValueError, TypeError) as e:
            raise PackagingError(f"Could not encrypt token: {e}") from e


class AuthStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class AuthResult:
    """Outcome of an authentication, as handed to the relying party."""

    status: AuthStatus
    attributes: dict[str, str] | None = field(default=None)
    reason: str | None = None

    @classmethod
    def success(cls, attributes: dict[str, str]) -> AuthResult:
        return cls(status=AuthStatus.SUCCESS, attributes=dict(attributes))

    @classmethod
    def failed(cls, reason: str) -> AuthResult:
        return cls(status=AuthStatus.FAILED, reason=reason)

    def to_claims(self) -> dict[str, Any]:
        claims: dict[str, Any] = {"status": self.status.value}
        if self.attributes is not None:
            claims["attributes"] = self.attributes
        if self.reason is not None:
            claims["reason"] = self.reason
        return claims


def seal_auth_result(
    result: AuthResult,
    signer: Signer,
    encrypter: Encrypter,
    validity: int = DEFAULT_RESULT_VALIDITY,
    now: datetime | None = None,
) -> str:
    """
    Sign and then encrypt an authentication result.

    Returns:
        Compact JWE whose ``njwt`` claim is the compact signed JWT

    Raises:
        PackagingError: If either step fails; no partial token is returned
    """
    issued_at = now or datetime.now(timezone.utc)
    claims = {
        "sub": RESULT_SUBJECT,
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + timedelta(seconds=validity)).timestamp()),
        **result.to_claims(),
    }
    signed = signer.sign(claims, headers={"typ": "JWT"})
    sealed = encrypter.encrypt(
        {NESTED_TOKEN_CLAIM: signed}, headers={"typ": "JWT", "cty": "JWT"}
    )
    logger.debug("Sealed %s authentication result", result.status.value)
    return sealed


def open_auth_result(
    token: str,
    decryption_key: jwk.JWK,
    verification_key: PublicKey,
    algorithms: list[str] | None = None,
) -> dict[str, Any]:
    """
    Decrypt a sealed result and verify the nested signed token.

    This is the relying party's side of ``seal_auth_result``.

    Returns:
        The verified claims of the inner token

    Raises:
        PackagingError: If decryption, parsing or signature verification fails
    """
    try:
        outer = jwe.JWE()
        outer.deserialize(token, key=decryption_key)
        nested = json.loads(outer.payload)[NESTED_TOKEN_CLAIM]
    except (JWException, ValueError, KeyError, TypeError) as e:
        raise PackagingError("Could not decrypt authentication result") from e

    try:
        claims = jwt.decode(
            nested,
            verification_key,
            algorithms=algorithms or ["RS256", "ES256"],
            options={"require": ["sub", "iat", "exp"]},
        )
    except jwt.PyJWTError as e:
        raise PackagingError(f"Could not verify authentication result: {e}") from e

    if claims["sub"] != RESULT_SUBJECT:
        raise PackagingError("Token is not an authentication result")
    return claims
