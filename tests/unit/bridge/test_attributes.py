import pytest

from auth_irma.attributes import AttributeMapper
from auth_irma.exceptions import ConfigurationError, DuplicateAttribute, UnknownAttribute
from tests.fixtures.irma_server import ATTRIBUTES


@pytest.fixture
def mapper():
    return AttributeMapper(ATTRIBUTES)


def test_single_attribute_becomes_one_disjunction(mapper):
    assert mapper.map_attributes(["email"]) == [
        [["pbdf.pbdf.email.email"], ["pbdf.sidn-pbdf.email.email"]],
    ]


def test_request_order_is_preserved(mapper):
    condiscon = mapper.map_attributes(["city", "email", "fullname"])

    assert condiscon == [
        [["pbdf.gemeente.address.city"]],
        [["pbdf.pbdf.email.email"], ["pbdf.sidn-pbdf.email.email"]],
        [["pbdf.gemeente.personalData.fullname"]],
    ]


def test_empty_request_maps_to_empty_condiscon(mapper):
    assert mapper.map_attributes([]) == []


@pytest.mark.parametrize(
    "attributes",
    [["phone"], ["email", "phone"], ["email", "fullname", "phone", "bsn"]],
)
def test_unknown_attribute_fails_without_partial_result(mapper, attributes):
    with pytest.raises(UnknownAttribute) as exc_info:
        mapper.map_attributes(attributes)

    assert exc_info.value.attribute == "phone"
    assert exc_info.value.status_code == 400
    assert "phone" in str(exc_info.value)


def test_identifiers_lookup_fails_closed(mapper):
    assert mapper.identifiers("fullname") == ("pbdf.gemeente.personalData.fullname",)
    with pytest.raises(UnknownAttribute):
        mapper.identifiers("Email")


def test_empty_identifier_set_is_a_configuration_error():
    with pytest.raises(ConfigurationError, match="has no IRMA attributes"):
        AttributeMapper({"email": ["pbdf.pbdf.email.email"], "phone": []})


def test_mapper_does_not_share_configuration_lists():
    identifiers = ["pbdf.pbdf.email.email"]
    mapper = AttributeMapper({"email": identifiers})
    identifiers.append("evil.issuer.email.email")

    assert mapper.identifiers("email") == ("pbdf.pbdf.email.email",)
    assert "email" in mapper
    assert len(mapper) == 1


@pytest.mark.parametrize("attributes", [["email", "email"], ["email", "city", "fullname", "city"]])
def test_repeated_attribute_is_rejected(mapper, attributes):
    with pytest.raises(DuplicateAttribute) as exc_info:
        mapper.map_attributes(attributes)

    assert exc_info.value.attribute == attributes[-1]
    assert exc_info.value.status_code == 400
