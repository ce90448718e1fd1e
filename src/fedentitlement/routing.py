import logging
from typing import Optional

from fedentitlement.exception import MalformedRelayHint
from fedentitlement.exception import MissingRoutingKey

logger = logging.getLogger(__name__)

# A broker packs the client id as the third field: <x>.<y>.<client_id>
BROKER_FIELDS = 3


def extract_routing_key(relay_hint: Optional[str],
                        destination_entity_id: Optional[str] = None,
                        broker_entity_id: Optional[str] = None) -> str:
    """
    Derive the tenant/client routing key from the relay state.

    :param relay_hint: The relay state that came with the request
    :param destination_entity_id: The entity the response is for
    :param broker_entity_id: Entity ID of a known broker/bridge SP
    :return: The routing key
    """
    if not relay_hint:
        logger.error("Request missing relay state")
        raise MissingRoutingKey("Request missing saml:RelayState")

    if broker_entity_id and destination_entity_id == broker_entity_id:
        _parts = relay_hint.split(".", BROKER_FIELDS - 1)
        if len(_parts) < BROKER_FIELDS or not _parts[BROKER_FIELDS - 1]:
            logger.error(f"Could not extract client ID from relay state {relay_hint!r}")
            raise MalformedRelayHint("Could not extract client ID from saml:RelayState")
        return _parts[BROKER_FIELDS - 1]

    return relay_hint
