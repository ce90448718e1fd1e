import logging
from typing import Dict
from typing import List
from typing import Optional

from idpyoidc.configure import Base
from idpyoidc.exception import MessageException
from idpyoidc.server.util import execute
from idpyoidc.util import load_config_file

from fedentitlement.defaults import PRESETS
from fedentitlement.exception import InvalidRuleConfiguration
from fedentitlement.message import FilterConfiguration
from fedentitlement.message import RuleConfiguration
from fedentitlement.message import verify_filter_shape
from fedentitlement.message import verify_rule_shape
from fedentitlement.metadata import DictMetadataProvider
from fedentitlement.registry import DEFAULT_ROUTING_KEY
from fedentitlement.registry import PolicyRegistry
from fedentitlement.rule import PolicyRule

logger = logging.getLogger(__name__)

DEFAULT_DIR_ATTRIBUTE_NAMES = ["base_dir"]

CONFIG_ERRORS = (MessageException, ValueError, TypeError)


def rule_from_config(conf: dict, deduplicate: Optional[bool] = False) -> PolicyRule:
    """
    Creates a PolicyRule from its configuration.

    :param conf: The rule configuration
    :param deduplicate: Whether values already present should be skipped
    :return: A PolicyRule instance
    """
    if not isinstance(conf, dict):
        raise InvalidRuleConfiguration("Rule configuration not a dictionary")

    try:
        # Message would turn a single string into a list
        verify_rule_shape(conf)
        _conf = RuleConfiguration(**conf)
        _conf.verify()
    except CONFIG_ERRORS as err:
        logger.error(f"Configuration error: {err}")
        raise InvalidRuleConfiguration(str(err)) from err

    _spec = _conf.normalized()
    return PolicyRule(
        output_attribute_name=_spec.get("attributeName"),
        granted_values=_spec.get("capability") or [],
        idp_blacklist=_spec.get("idpBlacklist") or [],
        idp_whitelist=_spec.get("idpWhitelist") or [],
        required_entity_attributes=_spec.get("entityAttributeWhitelist") or {},
        entitlement_whitelist=_spec.get("entitlementWhitelist") or [],
        deduplicate=deduplicate
    )


def _filter_configuration(conf: dict) -> FilterConfiguration:
    if not isinstance(conf, dict):
        raise InvalidRuleConfiguration("Filter configuration not a dictionary")

    try:
        verify_filter_shape(conf)
        _conf = FilterConfiguration(
            **{k: v for k, v in conf.items() if k in FilterConfiguration.c_param})
        _conf.verify()
    except CONFIG_ERRORS as err:
        logger.error(f"Configuration error: {err}")
        raise InvalidRuleConfiguration(str(err)) from err
    return _conf


def registry_from_config(conf: dict) -> PolicyRegistry:
    """
    Builds a PolicyRegistry from a filter configuration.

    A configuration with 'clients' has one rule per client ID and routes on
    the relay state. Otherwise there is one global rule given as 'rule', as a
    named 'preset' or as rule parameters directly in the configuration.

    :param conf: The filter configuration
    :return: A PolicyRegistry instance
    """
    _conf = _filter_configuration(conf)
    _dedup = conf.get("deduplicate", False)

    if "clients" in conf:
        rules = {}
        for client_id, client_conf in conf["clients"].items():
            try:
                rules[client_id] = rule_from_config(client_conf, deduplicate=_dedup)
            except InvalidRuleConfiguration as err:
                raise InvalidRuleConfiguration(f"Client '{client_id}': {err}") from err
    elif "preset" in conf:
        try:
            _preset = PRESETS[conf["preset"]]
        except KeyError:
            raise InvalidRuleConfiguration(f"Unknown preset '{conf['preset']}'")
        rules = {DEFAULT_ROUTING_KEY: rule_from_config(_preset, deduplicate=_dedup)}
    elif "rule" in conf:
        rules = {DEFAULT_ROUTING_KEY: rule_from_config(conf["rule"], deduplicate=_dedup)}
    else:
        _rule_conf = {k: v for k, v in conf.items() if k in RuleConfiguration.c_param}
        rules = {DEFAULT_ROUTING_KEY: rule_from_config(_rule_conf, deduplicate=_dedup)}

    for key, rule in rules.items():
        if rule.is_vacuous():
            logger.warning(f"Rule {key!r} has nothing to match on and will never be granted")

    return PolicyRegistry(rules, broker_entity_id=_conf.broker_entity_id,
                          multi_tenant="clients" in conf)


def metadata_provider_from_config(spec: Optional[dict]):
    """
    Instantiates a metadata provider.

    :param spec: Either a dictionary with 'class' and 'kwargs' or a dictionary
        with SAML style metadata per entity ID.
    """
    if not spec:
        return None

    if "class" in spec:
        return execute(spec)

    return DictMetadataProvider(metadata=spec)


def preset_registry(name: str, deduplicate: Optional[bool] = False) -> PolicyRegistry:
    """A single tenant registry with one of the predefined rules."""
    return registry_from_config({"preset": name, "deduplicate": deduplicate})


class EntitlementConfiguration(Base):
    """Entitlement filter configuration"""

    def __init__(self,
                 conf: Dict,
                 base_path: Optional[str] = '',
                 file_attributes: Optional[List[str]] = None,
                 domain: Optional[str] = "",
                 port: Optional[int] = 0,
                 dir_attributes: Optional[List[str]] = None,
                 ):
        dir_attributes = dir_attributes or DEFAULT_DIR_ATTRIBUTE_NAMES

        Base.__init__(self, conf=conf, base_path=base_path, file_attributes=file_attributes,
                      dir_attributes=dir_attributes, domain=domain, port=port)

        self.registry = registry_from_config(conf)
        self.metadata_provider = metadata_provider_from_config(conf.get("metadata_provider"))
        self.multi_tenant = self.registry.multi_tenant


def load_configuration(filename: str, base_path: Optional[str] = "") -> EntitlementConfiguration:
    """
    Reads a JSON or YAML configuration file.
    If the file has an 'entitlement' section that is used.
    """
    _conf = load_config_file(filename)
    if "entitlement" in _conf:
        _conf = _conf["entitlement"]
    return EntitlementConfiguration(_conf, base_path=base_path)
