from collections.abc import MutableMapping
from typing import Callable
from typing import Optional
from typing import Union

from fedentitlement.configure import EntitlementConfiguration
from fedentitlement.engine import evaluate
from fedentitlement.engine import EvaluationResult
from fedentitlement.metadata import MetadataProvider
from fedentitlement.registry import PolicyRegistry
from fedentitlement.state import context_from_state
from fedentitlement.state import store_into_state


class AttributeFilter(object):
    """
    Attribute filter run by the host authentication pipeline once per
    authentication event. Evaluates the entitlement rules and adds the
    granted values to the user's attributes.

    :param registry: A PolicyRegistry instance
    :param metadata_provider: Where to find the entity attributes of remote IdPs
    :param broker_entity_id: Entity ID of a known broker/bridge SP. Overrides
        the one in the registry.
    :param multi_tenant: Whether the routing key is taken from the relay state.
        Defaults to the routing mode of the registry.
    """

    def __init__(self,
                 registry: PolicyRegistry,
                 metadata_provider: Optional[Union[MetadataProvider, Callable]] = None,
                 broker_entity_id: Optional[str] = None,
                 multi_tenant: Optional[bool] = None):
        self.registry = registry
        self.metadata_provider = metadata_provider
        self.broker_entity_id = broker_entity_id or registry.broker_entity_id
        if multi_tenant is None:
            multi_tenant = registry.multi_tenant
        self.multi_tenant = multi_tenant

    @classmethod
    def from_configuration(cls, config: EntitlementConfiguration):
        return cls(config.registry, metadata_provider=config.metadata_provider,
                   multi_tenant=config.multi_tenant)

    def evaluate_state(self, state: MutableMapping) -> EvaluationResult:
        """
        Evaluates the state. Routing errors are returned in the result.

        :param state: The authentication state
        :return: An EvaluationResult instance
        """
        _context = context_from_state(state, self.metadata_provider, self.broker_entity_id)
        _result = evaluate(_context, self.registry, self.multi_tenant)
        if _result.applied:
            store_into_state(_context, state)
        return _result

    def process(self, state: MutableMapping) -> EvaluationResult:
        """
        Same as evaluate_state but routing errors are raised so the pipeline
        can abort the attribute release.

        :param state: The authentication state
        :return: An EvaluationResult instance
        """
        _result = self.evaluate_state(state)
        if _result.error is not None:
            raise _result.error
        return _result
