from types import MappingProxyType
from typing import Iterable
from typing import Mapping
from typing import Optional

DEFAULT_ATTRIBUTE_NAME = "eduPersonEntitlement"


def freeze_entity_attributes(entity_attributes: Optional[Mapping]) -> Mapping:
    """
    Turns a mapping of attribute URI to values into a read-only mapping of
    attribute URI to frozenset.
    """
    if not entity_attributes:
        return MappingProxyType({})

    return MappingProxyType({k: frozenset(v) for k, v in entity_attributes.items()})


class PolicyRule(object):
    """
    Describes one derived attribute and the conditions under which it is
    granted. Instances are immutable.
    """

    __slots__ = ("_output_attribute_name", "_granted_values", "_idp_blacklist",
                 "_idp_whitelist", "_required_entity_attributes", "_entitlement_whitelist",
                 "_deduplicate")

    def __init__(self,
                 output_attribute_name: Optional[str] = DEFAULT_ATTRIBUTE_NAME,
                 granted_values: Optional[Iterable[str]] = None,
                 idp_blacklist: Optional[Iterable[str]] = None,
                 idp_whitelist: Optional[Iterable[str]] = None,
                 required_entity_attributes: Optional[Mapping] = None,
                 entitlement_whitelist: Optional[Iterable[str]] = None,
                 deduplicate: Optional[bool] = False):
        object.__setattr__(self, "_output_attribute_name",
                           output_attribute_name or DEFAULT_ATTRIBUTE_NAME)
        object.__setattr__(self, "_granted_values", tuple(granted_values or ()))
        object.__setattr__(self, "_idp_blacklist", frozenset(idp_blacklist or ()))
        object.__setattr__(self, "_idp_whitelist", frozenset(idp_whitelist or ()))
        object.__setattr__(self, "_required_entity_attributes",
                           freeze_entity_attributes(required_entity_attributes))
        object.__setattr__(self, "_entitlement_whitelist",
                           frozenset(entitlement_whitelist or ()))
        object.__setattr__(self, "_deduplicate", bool(deduplicate))

    def __setattr__(self, key, value):
        raise AttributeError(f"{self.__class__.__name__} is immutable")

    def __delattr__(self, item):
        raise AttributeError(f"{self.__class__.__name__} is immutable")

    @property
    def output_attribute_name(self) -> str:
        return self._output_attribute_name

    @property
    def granted_values(self) -> tuple:
        return self._granted_values

    @property
    def idp_blacklist(self) -> frozenset:
        return self._idp_blacklist

    @property
    def idp_whitelist(self) -> frozenset:
        return self._idp_whitelist

    @property
    def required_entity_attributes(self) -> Mapping:
        return self._required_entity_attributes

    @property
    def entitlement_whitelist(self) -> frozenset:
        return self._entitlement_whitelist

    @property
    def deduplicate(self) -> bool:
        return self._deduplicate

    def is_vacuous(self) -> bool:
        # Nothing to match on, this rule will never accept
        return not (self._idp_whitelist or self._required_entity_attributes
                    or self._entitlement_whitelist)

    def _key(self):
        return (self._output_attribute_name, self._granted_values, self._idp_blacklist,
                self._idp_whitelist,
                frozenset(self._required_entity_attributes.items()),
                self._entitlement_whitelist, self._deduplicate)

    def __eq__(self, other):
        if not isinstance(other, PolicyRule):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __repr__(self):
        return (f"PolicyRule(output_attribute_name={self._output_attribute_name!r}, "
                f"granted_values={list(self._granted_values)!r})")

    def to_dict(self) -> dict:
        return {
            "attributeName": self._output_attribute_name,
            "capability": list(self._granted_values),
            "idpBlacklist": sorted(self._idp_blacklist),
            "idpWhitelist": sorted(self._idp_whitelist),
            "entityAttributeWhitelist": {k: sorted(v) for k, v in
                                         self._required_entity_attributes.items()},
            "entitlementWhitelist": sorted(self._entitlement_whitelist),
        }
