import logging
from collections.abc import Mapping
from typing import Tuple

from fedentitlement.context import EvaluationContext
from fedentitlement.rule import PolicyRule

logger = logging.getLogger(__name__)

BLACKLISTED = "blacklisted"
IDP_WHITELISTED = "idp-whitelisted"
ENTITY_ATTRIBUTES_MATCHED = "entity-attributes-matched"
ENTITLEMENT_INHERITED = "entitlement-inherited"
NO_MATCH = "no-match"

ACCEPTING_CRITERIA = [IDP_WHITELISTED, ENTITY_ATTRIBUTES_MATCHED, ENTITLEMENT_INHERITED]


def _is_value_collection(val):
    return isinstance(val, (list, tuple, set, frozenset))


def entity_attribute_diff(required: Mapping, actual: Mapping) -> dict:
    """
    Calculates which of the required entity attribute values that are not
    published by the entity.

    :param required: Attribute URI to required values
    :param actual: Attribute URI to values published about the entity
    :return: Attribute URI to the set of values that are missing. Empty if all
        the required values are present.
    """
    diff = {}
    for key, values in required.items():
        _actual = actual.get(key) if actual else None
        if not _actual or not _is_value_collection(_actual):
            diff[key] = set(values)
        else:
            # only string values count, anything else in the metadata is ignored
            _published = {v for v in _actual if isinstance(v, str)}
            _missing = set(values).difference(_published)
            if _missing:
                diff[key] = _missing
    return diff


def qualifies(context: EvaluationContext, rule: PolicyRule) -> Tuple[bool, str]:
    """
    Decides if the user qualifies for what the rule grants.
    The order of the tests matters: the blacklist overrides everything, the
    IdP whitelist overrides the attribute based tests.

    :param context: An EvaluationContext instance
    :param rule: A PolicyRule instance
    :return: Tuple of decision and the name of the criterion that decided it
    """
    _idp = context.idp_entity_id
    logger.debug(f"IdP={_idp!r}")

    if _idp in rule.idp_blacklist:
        return False, BLACKLISTED

    if _idp in rule.idp_whitelist:
        return True, IDP_WHITELISTED

    if rule.required_entity_attributes:
        _diff = entity_attribute_diff(rule.required_entity_attributes,
                                      context.idp_entity_attributes)
        if not _diff:
            return True, ENTITY_ATTRIBUTES_MATCHED
        logger.debug(f"Missing entity attributes: {_diff}")

    if rule.entitlement_whitelist:
        _current = [v for v in context.user_values(rule.output_attribute_name)
                    if isinstance(v, str)]
        if rule.entitlement_whitelist.intersection(_current):
            return True, ENTITLEMENT_INHERITED

    return False, NO_MATCH
