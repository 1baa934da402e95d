"""
Key material loading for the bridge.

Keys are configured as PEM strings tagged with their algorithm family. The
family decides which JOSE algorithm is used with the key, so a PEM that does
not match its declared family is rejected at load time.
"""

from __future__ import annotations

from enum import Enum

from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.hazmat.primitives.serialization import load_pem_private_key, load_pem_public_key

from .exceptions import ConfigurationError

PrivateKey = rsa.RSAPrivateKey | ec.EllipticCurvePrivateKey
PublicKey = rsa.RSAPublicKey | ec.EllipticCurvePublicKey


class KeyType(str, Enum):
    """Algorithm family of a configured key."""

    RSA = "RSA"
    EC = "EC"

    @property
    def signing_algorithm(self) -> str:
        return "RS256" if self is KeyType.RSA else "ES256"

    @property
    def key_management_algorithm(self) -> str:
        return "RSA-OAEP" if self is KeyType.RSA else "ECDH-ES"


def _expected_classes(key_type: KeyType, private: bool) -> tuple[type, ...]:
    if key_type is KeyType.RSA:
        return (rsa.RSAPrivateKey,) if private else (rsa.RSAPublicKey,)
    return (ec.EllipticCurvePrivateKey,) if private else (ec.EllipticCurvePublicKey,)


def load_private_key(pem: str | bytes, key_type: KeyType) -> PrivateKey:
    """
    Load a PEM encoded private key of the given family.

    Raises:
        ConfigurationError: If the PEM is malformed or of another family
    """
    if isinstance(pem, str):
        pem = pem.encode("utf-8")
    try:
        key = load_pem_private_key(pem, password=None)
    except (ValueError, TypeError) as e:
        msg = f"Invalid {key_type.value} private key - expected unencrypted PEM"
        raise ConfigurationError(msg) from e
    if not isinstance(key, _expected_classes(key_type, private=True)):
        msg = f"Configured private key is not an {key_type.value} key"
        raise ConfigurationError(msg)
    return key


def load_public_key(pem: str | bytes, key_type: KeyType) -> PublicKey:
    """
    Load a PEM encoded public key of the given family.

    Raises:
        ConfigurationError: If the PEM is malformed or of another family
    """
    if isinstance(pem, str):
        pem = pem.encode("utf-8")
    try:
        key = load_pem_public_key(pem)
    except (ValueError, TypeError) as e:
        msg = f"Invalid {key_type.value} public key - expected PEM"
        raise ConfigurationError(msg) from e
    if not isinstance(key, _expected_classes(key_type, private=False)):
        msg = f"Configured public key is not an {key_type.value} key"
        raise ConfigurationError(msg)
    return key
