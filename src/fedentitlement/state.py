"""
Translation between a SimpleSAMLphp style authentication state and an
EvaluationContext.
"""
import logging
from collections.abc import Mapping
from collections.abc import MutableMapping
from typing import Callable
from typing import Optional
from typing import Union

from fedentitlement.context import EvaluationContext
from fedentitlement.exception import InvalidContext
from fedentitlement.metadata import entity_attributes_from_metadata
from fedentitlement.metadata import MetadataProvider

logger = logging.getLogger(__name__)

BRIDGE_IDP = "saml:sp:IdP"
RELAY_STATE = "saml:RelayState"


def _lookup(metadata_provider, entity_id):
    if metadata_provider is None:
        logger.warning(f"No metadata provider, can not find entity attributes for {entity_id}")
        return {}
    if isinstance(metadata_provider, MetadataProvider):
        return metadata_provider.lookup_entity_attributes(entity_id)
    return metadata_provider(entity_id)


def context_from_state(state: MutableMapping,
                       metadata_provider: Optional[Union[MetadataProvider, Callable]] = None,
                       broker_entity_id: Optional[str] = None) -> EvaluationContext:
    """
    Builds an EvaluationContext from the authentication state.

    If the module is active on a bridge the state will contain the entity ID
    of the remote IdP and the IdP's metadata has to be looked up. Otherwise the
    source metadata in the state is the IdP's.

    :param state: The authentication state
    :param metadata_provider: Where to find entity attributes of remote IdPs
    :param broker_entity_id: Entity ID of a known broker/bridge SP
    :return: An EvaluationContext instance
    """
    if not isinstance(state, MutableMapping):
        raise InvalidContext("State not a mapping")

    _bridge_idp = state.get(BRIDGE_IDP)
    if _bridge_idp:
        _idp_entity_id = _bridge_idp
        _entity_attributes = _lookup(metadata_provider, _idp_entity_id)
    else:
        _source = state.get("Source")
        if not isinstance(_source, Mapping) or not _source.get("entityid"):
            raise InvalidContext("State missing Source entityid")
        _idp_entity_id = _source["entityid"]
        _entity_attributes = entity_attributes_from_metadata(_source)

    _attributes = state.get("Attributes")
    if _attributes is None:
        _attributes = {}
        state["Attributes"] = _attributes
    elif not isinstance(_attributes, MutableMapping):
        raise InvalidContext("State Attributes not a mapping")

    _destination = state.get("Destination")
    if isinstance(_destination, Mapping):
        _destination_entity_id = _destination.get("entityid")
    else:
        _destination_entity_id = None

    return EvaluationContext(
        idp_entity_id=_idp_entity_id,
        idp_entity_attributes=_entity_attributes,
        user_attributes=_attributes,
        relay_hint=state.get(RELAY_STATE) or None,
        destination_entity_id=_destination_entity_id,
        broker_entity_id=broker_entity_id
    )


def store_into_state(context: EvaluationContext, state: MutableMapping):
    state["Attributes"] = context.user_attributes
