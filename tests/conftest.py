"""
Test configuration for the auth-irma test suite.
"""

from __future__ import annotations

from typing import Any

import pytest
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from jwcrypto import jwk

from auth_irma.config import BridgeConfig
from tests.fixtures.irma_server import (
    ATTRIBUTES,
    INTERNAL_URL,
    IRMA_URL,
    SERVER_URL,
    UI_URL,
    FakeIrmaServer,
)
from tests.fixtures.keys import private_pem, public_pem


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")


def pytest_collection_modifyitems(config, items):
    """Add markers based on the test location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def ec_key() -> ec.EllipticCurvePrivateKey:
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture(scope="session")
def other_ec_key() -> ec.EllipticCurvePrivateKey:
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture
def raw_config(rsa_key, ec_key) -> dict[str, Any]:
    """Configuration encrypting to an RSA key and signing with an EC key."""
    return {
        "server_url": SERVER_URL + "/",
        "internal_url": INTERNAL_URL,
        "ui_irma_url": UI_URL,
        "attributes": ATTRIBUTES,
        "irma_server": {"url": IRMA_URL, "auth_token": "irma-secret"},
        "encryption_pubkey": {"type": "RSA", "key": public_pem(rsa_key)},
        "signing_privkey": {"type": "EC", "key": private_pem(ec_key)},
    }


@pytest.fixture
def bridge_config(raw_config) -> BridgeConfig:
    return BridgeConfig.from_dict(raw_config)


@pytest.fixture
def decryption_key(rsa_key) -> jwk.JWK:
    """Relying party key that opens sealed results."""
    return jwk.JWK.from_pyca(rsa_key)


@pytest.fixture
def verification_key(ec_key):
    return ec_key.public_key()


@pytest.fixture
def irma() -> FakeIrmaServer:
    return FakeIrmaServer()
