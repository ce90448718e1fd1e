import pytest

from fedentitlement.context import EvaluationContext
from fedentitlement.engine import evaluate
from fedentitlement.exception import InvalidContext
from fedentitlement.exception import MalformedRelayHint
from fedentitlement.exception import MissingRoutingKey
from fedentitlement.qualification import BLACKLISTED
from fedentitlement.qualification import ENTITY_ATTRIBUTES_MATCHED
from fedentitlement.qualification import IDP_WHITELISTED
from fedentitlement.qualification import NO_MATCH
from fedentitlement.registry import PolicyRegistry
from fedentitlement.rule import PolicyRule

IDP = "https://idp.example/"
BROKER = "https://keycloak.example.org/auth/realms/example"
SP = "https://sp.example.org/shibboleth"

MEMBER = "urn:example:vo:member"


def test_whitelisted_idp():
    rule = PolicyRule(output_attribute_name="eduPersonEntitlement", granted_values=[MEMBER],
                      idp_whitelist=[IDP])
    context = EvaluationContext(idp_entity_id=IDP, user_attributes={})
    result = evaluate(context, PolicyRegistry.single(rule))
    assert result.applied is True
    assert result.criterion == IDP_WHITELISTED
    assert result.error is None
    assert result.added == [MEMBER]
    assert context.user_attributes["eduPersonEntitlement"] == [MEMBER]


def test_entity_attributes_matched():
    rule = PolicyRule(granted_values=[MEMBER],
                      required_entity_attributes={"assurance": {"sirtfi"}})
    context = EvaluationContext(idp_entity_id=IDP,
                                idp_entity_attributes={"assurance": {"sirtfi", "other"}})
    result = evaluate(context, PolicyRegistry.single(rule))
    assert result.applied is True
    assert result.criterion == ENTITY_ATTRIBUTES_MATCHED
    assert context.user_attributes == {"eduPersonEntitlement": [MEMBER]}


def test_entity_attributes_not_matched():
    rule = PolicyRule(granted_values=[MEMBER],
                      required_entity_attributes={"assurance": {"sirtfi"}})
    _attributes = {"mail": ["a@example.org"]}
    context = EvaluationContext(idp_entity_id=IDP,
                                idp_entity_attributes={"assurance": {"other"}},
                                user_attributes=_attributes)
    result = evaluate(context, PolicyRegistry.single(rule))
    assert result.applied is False
    assert result.criterion == NO_MATCH
    assert result.rule_found
    assert _attributes == {"mail": ["a@example.org"]}


def test_blacklisted():
    rule = PolicyRule(granted_values=[MEMBER], idp_blacklist=[IDP], idp_whitelist=[IDP])
    context = EvaluationContext(idp_entity_id=IDP)
    result = evaluate(context, PolicyRegistry.single(rule))
    assert result.applied is False
    assert result.criterion == BLACKLISTED
    assert context.user_attributes == {}


def test_single_tenant_ignores_relay_state():
    rule = PolicyRule(granted_values=[MEMBER], idp_whitelist=[IDP])
    context = EvaluationContext(idp_entity_id=IDP)
    result = evaluate(context, PolicyRegistry.single(rule))
    assert result.applied is True
    assert result.routing_key == ""


def _multi_tenant():
    return PolicyRegistry({
        "clientA": PolicyRule(granted_values=["urn:a"], idp_whitelist=[IDP]),
        "clientB": PolicyRule(granted_values=["urn:b"], idp_whitelist=[IDP]),
    }, broker_entity_id=BROKER)


def test_multi_tenant_direct():
    context = EvaluationContext(idp_entity_id=IDP, relay_hint="clientA",
                                destination_entity_id=SP)
    result = evaluate(context, _multi_tenant())
    assert result.applied is True
    assert result.routing_key == "clientA"
    assert context.user_attributes == {"eduPersonEntitlement": ["urn:a"]}


def test_multi_tenant_broker():
    context = EvaluationContext(idp_entity_id=IDP, relay_hint="abc.def.clientB",
                                destination_entity_id=BROKER)
    result = evaluate(context, _multi_tenant())
    assert result.applied is True
    assert result.routing_key == "clientB"
    assert context.user_attributes == {"eduPersonEntitlement": ["urn:b"]}


def test_multi_tenant_broker_in_context():
    registry = PolicyRegistry({"clientB": PolicyRule(granted_values=["urn:b"],
                                                     idp_whitelist=[IDP])})
    context = EvaluationContext(idp_entity_id=IDP, relay_hint="abc.def.clientB",
                                destination_entity_id=BROKER, broker_entity_id=BROKER)
    result = evaluate(context, registry)
    assert result.routing_key == "clientB"
    assert result.applied is True


def test_multi_tenant_no_rule():
    _attributes = {"eduPersonEntitlement": ["urn:z"]}
    context = EvaluationContext(idp_entity_id=IDP, relay_hint="clientC",
                                user_attributes=_attributes)
    result = evaluate(context, _multi_tenant())
    assert result.applied is False
    assert result.criterion is None
    assert result.rule_found is False
    assert result.error is None
    assert result.routing_key == "clientC"
    assert _attributes == {"eduPersonEntitlement": ["urn:z"]}


def test_multi_tenant_missing_relay_state():
    context = EvaluationContext(idp_entity_id=IDP)
    result = evaluate(context, _multi_tenant())
    assert result.applied is False
    assert isinstance(result.error, MissingRoutingKey)
    assert context.user_attributes == {}


def test_multi_tenant_malformed_relay_state():
    context = EvaluationContext(idp_entity_id=IDP, relay_hint="abc.def",
                                destination_entity_id=BROKER)
    result = evaluate(context, _multi_tenant())
    assert isinstance(result.error, MalformedRelayHint)
    assert "error" in result.to_dict()


def test_evaluate_twice_duplicates():
    rule = PolicyRule(granted_values=[MEMBER], idp_whitelist=[IDP])
    registry = PolicyRegistry.single(rule)
    context = EvaluationContext(idp_entity_id=IDP)
    evaluate(context, registry)
    evaluate(context, registry)
    assert context.user_attributes["eduPersonEntitlement"] == [MEMBER, MEMBER]


def test_entitlement_cascade():
    # A value granted by one rule qualifies the user for another
    registry_a = PolicyRegistry.single(PolicyRule(granted_values=["urn:a"], idp_whitelist=[IDP]))
    registry_b = PolicyRegistry.single(PolicyRule(granted_values=["urn:b"],
                                                  entitlement_whitelist=["urn:a"]))
    context = EvaluationContext(idp_entity_id=IDP)
    assert evaluate(context, registry_b).applied is False
    assert evaluate(context, registry_a).applied is True
    assert evaluate(context, registry_b).applied is True
    assert context.user_attributes["eduPersonEntitlement"] == ["urn:a", "urn:b"]


@pytest.mark.parametrize("kwargs", [
    {"idp_entity_id": ""},
    {"idp_entity_id": None},
    {"idp_entity_id": IDP, "user_attributes": ["urn:a"]},
    {"idp_entity_id": IDP, "idp_entity_attributes": ["sirtfi"]},
    {"idp_entity_id": IDP, "relay_hint": 42},
])
def test_invalid_context(kwargs):
    with pytest.raises(InvalidContext):
        EvaluationContext(**kwargs)


def test_default_routing_key_in_multi_tenant_registry():
    registry = PolicyRegistry({"": PolicyRule(granted_values=["urn:a"], idp_whitelist=[IDP])},
                              multi_tenant=True)
    result = evaluate(EvaluationContext(idp_entity_id=IDP), registry)
    assert isinstance(result.error, MissingRoutingKey)

    context = EvaluationContext(idp_entity_id=IDP)
    result = evaluate(context, registry, multi_tenant=False)
    assert result.applied is True
    assert context.user_attributes == {"eduPersonEntitlement": ["urn:a"]}
