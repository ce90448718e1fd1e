from collections.abc import Mapping
from collections.abc import MutableMapping
from typing import Optional

from fedentitlement.exception import InvalidContext


class EvaluationContext(object):
    """
    Per request information the engine works on. Created by the host pipeline
    for each authentication event. The user attributes are owned by the caller
    and are updated in place when a rule is applied.

    :param idp_entity_id: Entity ID of the IdP that authenticated the user
    :param idp_entity_attributes: Entity attributes published about that IdP
    :param user_attributes: The attributes released about the user
    :param relay_hint: Relay state, carries the routing key
    :param destination_entity_id: The SP the response is meant for
    :param broker_entity_id: Entity ID of a known broker/bridge SP
    """

    def __init__(self,
                 idp_entity_id: str,
                 idp_entity_attributes: Optional[Mapping] = None,
                 user_attributes: Optional[MutableMapping] = None,
                 relay_hint: Optional[str] = None,
                 destination_entity_id: Optional[str] = None,
                 broker_entity_id: Optional[str] = None):
        if not idp_entity_id or not isinstance(idp_entity_id, str):
            raise InvalidContext("IdP entity ID missing")

        if idp_entity_attributes is None:
            idp_entity_attributes = {}
        elif not isinstance(idp_entity_attributes, Mapping):
            raise InvalidContext("IdP entity attributes not a mapping")

        if user_attributes is None:
            user_attributes = {}
        elif not isinstance(user_attributes, MutableMapping):
            raise InvalidContext("User attributes not a mutable mapping")

        for param, val in [("relay hint", relay_hint),
                           ("destination entity ID", destination_entity_id),
                           ("broker entity ID", broker_entity_id)]:
            if val is not None and not isinstance(val, str):
                raise InvalidContext(f"The {param} is not a string")

        self.idp_entity_id = idp_entity_id
        self.idp_entity_attributes = idp_entity_attributes
        self.user_attributes = user_attributes
        self.relay_hint = relay_hint
        self.destination_entity_id = destination_entity_id
        self.broker_entity_id = broker_entity_id

    def user_values(self, attribute_name: str) -> list:
        _values = self.user_attributes.get(attribute_name)
        if not _values:
            return []
        if isinstance(_values, str):
            return [_values]
        return list(_values)

    def __repr__(self):
        return f"EvaluationContext(idp_entity_id={self.idp_entity_id!r})"
