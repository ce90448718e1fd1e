""" Classes describing the configuration of entitlement rules and filters."""

from idpyoidc.message import Message
from idpyoidc.message import OPTIONAL_LIST_OF_STRINGS
from idpyoidc.message import SINGLE_OPTIONAL_STRING
from idpyoidc.message.oidc import SINGLE_OPTIONAL_BOOLEAN
from idpyoidc.message.oidc import SINGLE_OPTIONAL_DICT

# Old names used by the single purpose GGUS and RCauth filters
ALIASES = {
    "entitlement": "capability",
    "entityIds": "idpWhitelist",
    "minEntityAttributes": "entityAttributeWhitelist",
    "entityAttributes": "entityAttributeWhitelist",
}

LIST_PARAMETERS = ["capability", "idpBlacklist", "idpWhitelist", "entitlementWhitelist"]
DICT_PARAMETERS = ["entityAttributeWhitelist", "minEntityAttributes", "entityAttributes"]


def is_list_of_strings(val):
    if not isinstance(val, list):
        return False
    for item in val:
        if not isinstance(item, str):
            return False
    return True


def verify_rule_shape(conf: dict):
    """
    Checks the types of the rule parameters as they appear in the
    configuration. Raises ValueError on the first mismatch.
    """
    _name = conf.get("attributeName")
    if _name is not None and (not isinstance(_name, str) or not _name):
        raise ValueError("'attributeName' not a non empty string literal")

    for param in LIST_PARAMETERS + ["entitlement", "entityIds"]:
        _val = conf.get(param)
        if _val is not None and not is_list_of_strings(_val):
            raise ValueError(f"'{param}' not a list of string literals")

    for param in DICT_PARAMETERS:
        _val = conf.get(param)
        if _val is None:
            continue
        if not isinstance(_val, dict):
            raise ValueError(f"'{param}' not a dictionary")
        for attr, values in _val.items():
            if not isinstance(attr, str) or not is_list_of_strings(values):
                raise ValueError(
                    f"'{param}': value of '{attr}' not a list of string literals")


def verify_filter_shape(conf: dict):
    """
    Checks the types of the filter parameters as they appear in the
    configuration. Raises ValueError on the first mismatch.
    """
    for param in ["keycloakSp", "brokerEntityId", "preset"]:
        _val = conf.get(param)
        if _val is not None and not isinstance(_val, str):
            raise ValueError(f"'{param}' not a string")

    for param in ["rule", "metadata_provider"]:
        _val = conf.get(param)
        if _val is not None and not isinstance(_val, dict):
            raise ValueError(f"'{param}' not a dictionary")

    _clients = conf.get("clients")
    if _clients is not None:
        if not isinstance(_clients, dict):
            raise ValueError("'clients' not a dictionary")
        for client_id, client_conf in _clients.items():
            if not isinstance(client_conf, dict):
                raise ValueError(f"Configuration of client '{client_id}' not a dictionary")

    _dedup = conf.get("deduplicate")
    if _dedup is not None and not isinstance(_dedup, bool):
        raise ValueError("'deduplicate' not a boolean")

    _sources = [p for p in ["clients", "rule", "preset"] if p in conf]
    if len(_sources) > 1:
        raise ValueError(f"Only one of 'clients', 'rule' and 'preset' allowed: {_sources}")


class RuleConfiguration(Message):
    """The configuration of one entitlement rule."""
    c_param = {
        "attributeName": SINGLE_OPTIONAL_STRING,
        "capability": OPTIONAL_LIST_OF_STRINGS,
        "idpBlacklist": OPTIONAL_LIST_OF_STRINGS,
        "idpWhitelist": OPTIONAL_LIST_OF_STRINGS,
        "entityAttributeWhitelist": SINGLE_OPTIONAL_DICT,
        "entitlementWhitelist": OPTIONAL_LIST_OF_STRINGS,
        # aliases
        "entitlement": OPTIONAL_LIST_OF_STRINGS,
        "entityIds": OPTIONAL_LIST_OF_STRINGS,
        "minEntityAttributes": SINGLE_OPTIONAL_DICT,
        "entityAttributes": SINGLE_OPTIONAL_DICT,
    }

    def verify(self, **kwargs):
        super(RuleConfiguration, self).verify(**kwargs)

        for alias, name in ALIASES.items():
            if alias in self and name in self:
                raise ValueError(f"'{alias}' and '{name}' can not both be used")

        verify_rule_shape(dict(self.items()))
        return True

    def normalized(self) -> dict:
        """
        Returns the configuration with the aliases replaced by the canonical
        parameter names.
        """
        res = {}
        for key, val in self.items():
            res[ALIASES.get(key, key)] = val
        return res


class FilterConfiguration(Message):
    """The configuration of an entitlement filter."""
    c_param = {
        "keycloakSp": SINGLE_OPTIONAL_STRING,
        "brokerEntityId": SINGLE_OPTIONAL_STRING,
        "clients": SINGLE_OPTIONAL_DICT,
        "rule": SINGLE_OPTIONAL_DICT,
        "preset": SINGLE_OPTIONAL_STRING,
        "metadata_provider": SINGLE_OPTIONAL_DICT,
        "deduplicate": SINGLE_OPTIONAL_BOOLEAN,
    }

    def verify(self, **kwargs):
        super(FilterConfiguration, self).verify(**kwargs)

        if "keycloakSp" in self and "brokerEntityId" in self:
            raise ValueError("'keycloakSp' and 'brokerEntityId' can not both be used")

        verify_filter_shape(dict(self.items()))
        return True

    @property
    def broker_entity_id(self):
        return self.get("keycloakSp") or self.get("brokerEntityId")
