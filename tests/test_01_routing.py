import pytest

from fedentitlement.exception import EntitlementError
from fedentitlement.exception import MalformedRelayHint
from fedentitlement.exception import MissingRoutingKey
from fedentitlement.routing import extract_routing_key

BROKER = "https://keycloak.example.org/auth/realms/example"
DESTINATION = "https://sp.example.org/shibboleth"


def test_direct():
    assert extract_routing_key("clientA", DESTINATION, BROKER) == "clientA"


def test_direct_with_dots():
    # Not the broker, the relay state is used as is
    assert extract_routing_key("x.y.clientB", DESTINATION, BROKER) == "x.y.clientB"


def test_broker():
    assert extract_routing_key("x.y.clientB", BROKER, BROKER) == "clientB"


def test_broker_client_id_with_dots():
    assert extract_routing_key("x.y.client.with.dots", BROKER, BROKER) == "client.with.dots"


def test_broker_too_few_fields():
    with pytest.raises(MalformedRelayHint):
        extract_routing_key("x.y", BROKER, BROKER)


def test_broker_empty_client_id():
    with pytest.raises(MalformedRelayHint):
        extract_routing_key("x.y.", BROKER, BROKER)


@pytest.mark.parametrize("relay_hint", ["", None])
def test_missing(relay_hint):
    with pytest.raises(MissingRoutingKey):
        extract_routing_key(relay_hint, DESTINATION, BROKER)


def test_missing_with_broker():
    with pytest.raises(MissingRoutingKey):
        extract_routing_key("", BROKER, BROKER)


def test_no_broker_configured():
    assert extract_routing_key("x.y.clientB", None, None) == "x.y.clientB"
    assert extract_routing_key("x.y", DESTINATION) == "x.y"


def test_errors_are_entitlement_errors():
    assert issubclass(MissingRoutingKey, EntitlementError)
    assert issubclass(MalformedRelayHint, EntitlementError)
