import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Iterator
from typing import Optional

from fedentitlement.exception import InvalidRuleConfiguration
from fedentitlement.rule import PolicyRule

logger = logging.getLogger(__name__)

# Routing key used by single tenant deployments
DEFAULT_ROUTING_KEY = ""


class PolicyRegistry(Mapping):
    """
    Read-only mapping from routing key to PolicyRule. Built once at
    configuration time, shared by all evaluations.

    :param rules: Routing key to PolicyRule
    :param broker_entity_id: Entity ID of a known broker/bridge SP
    :param multi_tenant: Whether the routing key is taken from the relay state.
        If not given a registry with only the default routing key is single tenant.
    """

    def __init__(self,
                 rules: Optional[dict] = None,
                 broker_entity_id: Optional[str] = None,
                 multi_tenant: Optional[bool] = None):
        _rules = {}
        for key, rule in (rules or {}).items():
            if not isinstance(key, str):
                raise InvalidRuleConfiguration(f"Routing key {key!r} not a string")
            if not isinstance(rule, PolicyRule):
                raise InvalidRuleConfiguration(f"Rule for {key!r} not a PolicyRule")
            _rules[key] = rule

        self._rules = MappingProxyType(_rules)
        self._broker_entity_id = broker_entity_id
        if multi_tenant is None:
            multi_tenant = set(_rules.keys()) != {DEFAULT_ROUTING_KEY}
        self._multi_tenant = bool(multi_tenant)

    @classmethod
    def single(cls, rule: PolicyRule):
        """A registry for a single tenant deployment."""
        return cls({DEFAULT_ROUTING_KEY: rule}, multi_tenant=False)

    @property
    def broker_entity_id(self) -> Optional[str]:
        return self._broker_entity_id

    @property
    def multi_tenant(self) -> bool:
        return self._multi_tenant

    def __getitem__(self, key) -> PolicyRule:
        return self._rules[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self):
        return f"PolicyRegistry({sorted(self._rules.keys())!r})"


def lookup(registry: PolicyRegistry, routing_key: str) -> Optional[PolicyRule]:
    """
    Find the rule that applies to a routing key.

    :param registry: A PolicyRegistry instance
    :param routing_key: Tenant/client identifier
    :return: A PolicyRule instance or None if no policy applies to this tenant
    """
    _rule = registry.get(routing_key)
    if _rule is None:
        logger.info(f"No entitlement rule for {routing_key!r}")
    return _rule
