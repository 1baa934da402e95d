import pytest
import yaml

from auth_irma.config import BridgeConfig, ServiceConfig, load_config
from auth_irma.exceptions import ConfigurationError
from auth_irma.jwe import JweEncrypter, JwsSigner
from tests.fixtures.keys import private_pem, public_pem


def test_config_loads_keys_and_mapping(bridge_config):
    assert bridge_config.server_url == "https://bridge.test"
    assert bridge_config.internal_url == "http://bridge.internal"
    assert bridge_config.irma_server.auth_token == "irma-secret"
    assert bridge_config.attributes.identifiers("fullname") == (
        "pbdf.gemeente.personalData.fullname",
    )
    assert isinstance(bridge_config.signer, JwsSigner)
    assert bridge_config.signer.algorithm == "ES256"
    assert isinstance(bridge_config.encrypter, JweEncrypter)
    assert bridge_config.encrypter.algorithm == "RSA-OAEP"
    assert bridge_config.result_validity == 300


def test_internal_url_defaults_to_server_url(raw_config):
    del raw_config["internal_url"]

    assert BridgeConfig.from_dict(raw_config).internal_url == "https://bridge.test"


def test_config_from_yaml_file(tmp_path, raw_config):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(raw_config, sort_keys=False), encoding="utf-8")

    config = load_config(ServiceConfig(config_path=str(path)))

    assert list(config.attributes) == ["email", "fullname", "city"]


def test_missing_config_path():
    with pytest.raises(ConfigurationError, match="No configuration file specified"):
        load_config(ServiceConfig(config_path=None))


def test_unreadable_config_file(tmp_path):
    with pytest.raises(ConfigurationError, match="Could not open"):
        BridgeConfig.from_file(tmp_path / "missing.yaml")


def test_invalid_yaml():
    with pytest.raises(ConfigurationError, match="Could not parse"):
        BridgeConfig.from_string("server_url: [unclosed")


def test_validation_errors_do_not_echo_values(raw_config):
    raw_config["irma_server"] = {"auth_token": "super-secret-token"}

    with pytest.raises(ConfigurationError) as exc_info:
        BridgeConfig.from_dict(raw_config)

    assert "irma_server.url" in exc_info.value.message
    assert "super-secret-token" not in exc_info.value.message
    assert exc_info.value.__cause__ is None


def test_unknown_fields_are_rejected(raw_config):
    raw_config["attribute"] = {}

    with pytest.raises(ConfigurationError, match="attribute"):
        BridgeConfig.from_dict(raw_config)


def test_unknown_key_type(raw_config):
    raw_config["signing_privkey"]["type"] = "DSA"

    with pytest.raises(ConfigurationError, match="signing_privkey.type"):
        BridgeConfig.from_dict(raw_config)


def test_malformed_key_material(raw_config):
    raw_config["encryption_pubkey"]["key"] = "-----BEGIN PUBLIC KEY-----\nbm9wZQ==\n-----END PUBLIC KEY-----\n"

    with pytest.raises(ConfigurationError, match="Invalid RSA public key"):
        BridgeConfig.from_dict(raw_config)


def test_key_family_must_match(raw_config, rsa_key, ec_key):
    raw_config["signing_privkey"] = {"type": "RSA", "key": private_pem(ec_key)}

    with pytest.raises(ConfigurationError, match="not an RSA key"):
        BridgeConfig.from_dict(raw_config)

    raw_config["signing_privkey"] = {"type": "EC", "key": private_pem(ec_key)}
    raw_config["encryption_pubkey"] = {"type": "EC", "key": public_pem(rsa_key)}

    with pytest.raises(ConfigurationError, match="not an EC key"):
        BridgeConfig.from_dict(raw_config)


def test_empty_attribute_mapping_is_rejected(raw_config):
    raw_config["attributes"] = {"email": []}

    with pytest.raises(ConfigurationError):
        BridgeConfig.from_dict(raw_config)


def test_result_validity_must_be_positive(raw_config):
    raw_config["result_validity"] = 0

    with pytest.raises(ConfigurationError, match="result_validity"):
        BridgeConfig.from_dict(raw_config)


def test_secrets_are_not_in_repr(bridge_config, raw_config):
    text = repr(bridge_config)

    assert "PRIVATE KEY" not in text
    assert "https://bridge.test" in text


def test_service_config_from_env(monkeypatch):
    monkeypatch.setenv("CONFIG", "/etc/auth-irma/config.yaml")
    monkeypatch.setenv("AUTH_IRMA_PORT", "9000")
    monkeypatch.setenv("METRICS_ENABLED", "false")

    service = ServiceConfig.from_env()

    assert service.config_path == "/etc/auth-irma/config.yaml"
    assert service.port == 9000
    assert service.metrics_enabled is False


@pytest.mark.parametrize("port", ["http", "80.5", "0", "70000"])
def test_invalid_port_is_a_configuration_error(monkeypatch, port):
    monkeypatch.setenv("AUTH_IRMA_PORT", port)

    with pytest.raises(ConfigurationError, match="AUTH_IRMA_PORT"):
        ServiceConfig.from_env()
