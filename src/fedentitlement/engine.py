import logging
from typing import Optional

from fedentitlement import merge
from fedentitlement.context import EvaluationContext
from fedentitlement.exception import EntitlementError
from fedentitlement.qualification import qualifies
from fedentitlement.registry import DEFAULT_ROUTING_KEY
from fedentitlement.registry import lookup
from fedentitlement.registry import PolicyRegistry
from fedentitlement.routing import extract_routing_key

logger = logging.getLogger(__name__)


class EvaluationResult(object):
    """
    The outcome of evaluating one authentication event.

    :param applied: True if values were added to the user's attributes
    :param criterion: Name of the criterion that decided, None if no rule applied
    :param routing_key: The routing key used to find the rule
    :param error: The routing error if routing failed
    :param added: The values that were added
    """

    def __init__(self,
                 applied: bool = False,
                 criterion: Optional[str] = None,
                 routing_key: Optional[str] = None,
                 error: Optional[EntitlementError] = None,
                 added: Optional[list] = None):
        self.applied = applied
        self.criterion = criterion
        self.routing_key = routing_key
        self.error = error
        self.added = added or []

    @property
    def rule_found(self):
        return self.criterion is not None

    def to_dict(self):
        res = {"applied": self.applied, "criterion": self.criterion}
        if self.routing_key is not None:
            res["routing_key"] = self.routing_key
        if self.error is not None:
            res["error"] = f"{self.error.__class__.__name__}: {self.error}"
        if self.added:
            res["added"] = self.added
        return res

    def __repr__(self):
        return f"EvaluationResult({self.to_dict()})"


def routing_key(context: EvaluationContext,
                registry: PolicyRegistry,
                multi_tenant: Optional[bool] = None) -> str:
    if multi_tenant is None:
        multi_tenant = registry.multi_tenant
    if not multi_tenant:
        return DEFAULT_ROUTING_KEY

    return extract_routing_key(context.relay_hint, context.destination_entity_id,
                               context.broker_entity_id or registry.broker_entity_id)


def evaluate(context: EvaluationContext,
             registry: PolicyRegistry,
             multi_tenant: Optional[bool] = None) -> EvaluationResult:
    """
    Find the rule that applies to this authentication event, decide if the user
    qualifies and if so add the granted values to the user's attributes.

    Routing errors are returned in the result, it's up to the caller to pass
    them on to the host pipeline.

    :param context: An EvaluationContext instance
    :param registry: A PolicyRegistry instance
    :param multi_tenant: Overrides the routing mode of the registry
    :return: An EvaluationResult instance
    """
    try:
        _key = routing_key(context, registry, multi_tenant)
    except EntitlementError as err:
        logger.error(f"Routing failed: {err}")
        return EvaluationResult(error=err)

    _rule = lookup(registry, _key)
    if _rule is None:
        return EvaluationResult(routing_key=_key)

    _qualified, _criterion = qualifies(context, _rule)
    logger.debug(f"Routing key={_key!r}, qualified={_qualified}, criterion={_criterion}")
    if not _qualified:
        return EvaluationResult(criterion=_criterion, routing_key=_key)

    _added = merge.apply(context, _rule)
    return EvaluationResult(applied=True, criterion=_criterion, routing_key=_key, added=_added)
