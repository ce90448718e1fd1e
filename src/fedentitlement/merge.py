import logging

from fedentitlement.context import EvaluationContext
from fedentitlement.rule import PolicyRule

logger = logging.getLogger(__name__)


def apply(context: EvaluationContext, rule: PolicyRule) -> list:
    """
    Adds the values granted by a rule to the user's attributes.
    Existing values are kept in order. Unless the rule asks for deduplication
    values are appended even if they are already present.

    :param context: An EvaluationContext instance
    :param rule: The PolicyRule that was accepted
    :return: The list of values that was added
    """
    _name = rule.output_attribute_name
    _values = context.user_attributes.get(_name)
    if _values is None:
        _values = []
        context.user_attributes[_name] = _values
    elif not isinstance(_values, list):
        # A single value or a tuple, keep the content
        if isinstance(_values, str):
            _values = [_values] if _values else []
        else:
            _values = list(_values)
        context.user_attributes[_name] = _values

    if rule.deduplicate:
        _added = [v for v in rule.granted_values if v not in _values]
        # the granted values themselves may contain duplicates
        _added = list(dict.fromkeys(_added))
    else:
        _added = list(rule.granted_values)

    _values.extend(_added)
    logger.debug(f"Adding capability {_added} to {_name}")
    return _added
