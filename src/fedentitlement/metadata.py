"""
Sources of the entity attributes published about identity providers.
"""
import json
import logging
import os
from typing import Callable
from typing import Optional
from urllib.parse import quote_plus

from cryptojwt.exception import JWKESTException
from cryptojwt.jws.jws import factory
from cryptojwt.jwt import JWT
from cryptojwt.key_jar import KeyJar

logger = logging.getLogger(__name__)

ASSURANCE_CERTIFICATION = "urn:oasis:names:tc:SAML:attribute:assurance-certification"
ENTITY_CATEGORY = "http://macedir.org/entity-category"
ENTITY_CATEGORY_SUPPORT = "http://macedir.org/entity-category-support"


def entity_attributes_from_metadata(metadata: Optional[dict]) -> dict:
    """
    Picks out the entity attributes from SAML style entity metadata.

    :param metadata: Metadata as a dictionary
    :return: Attribute URI to list of values
    """
    if not metadata:
        return {}
    _attrs = metadata.get("EntityAttributes")
    if not isinstance(_attrs, dict):
        return {}
    return _attrs


class MetadataProvider(object):

    def lookup_entity_attributes(self, entity_id: str) -> dict:
        raise NotImplementedError()

    def __call__(self, entity_id: str) -> dict:
        return self.lookup_entity_attributes(entity_id)


class DictMetadataProvider(MetadataProvider):
    """
    Metadata kept in memory.

    :param metadata: Entity ID to SAML style metadata
    """

    def __init__(self, metadata: Optional[dict] = None, **kwargs):
        self.metadata = metadata or {}

    def lookup_entity_attributes(self, entity_id: str) -> dict:
        return entity_attributes_from_metadata(self.metadata.get(entity_id))

    def __contains__(self, entity_id):
        return entity_id in self.metadata


class FileMetadataProvider(MetadataProvider):
    """
    One JSON document per entity in a directory. The file name is the quoted
    entity ID with a '.json' suffix.

    :param base_dir: The directory where the files are
    """

    def __init__(self, base_dir: str, **kwargs):
        self.base_dir = base_dir

    def file_name(self, entity_id: str) -> str:
        return os.path.join(self.base_dir, "{}.json".format(quote_plus(entity_id)))

    def read_metadata(self, entity_id: str) -> Optional[dict]:
        _file_name = self.file_name(entity_id)
        if not os.path.isfile(_file_name):
            logger.debug(f"No metadata file for {entity_id}")
            return None

        with open(_file_name) as fp:
            return json.loads(fp.read())

    def lookup_entity_attributes(self, entity_id: str) -> dict:
        return entity_attributes_from_metadata(self.read_metadata(entity_id))

    def store(self, entity_id: str, metadata: dict):
        with open(self.file_name(entity_id), "w") as fp:
            fp.write(json.dumps(metadata))


def verify_self_signed_signature(token: str) -> dict:
    """
    Verify signature using only keys in the entity configuration.
    Will raise exception if signature verification fails.

    :param token: Signed JWT
    :return: Payload of the signed JWT
    """
    payload = factory(token).jwt.payload()
    keyjar = KeyJar()
    keyjar.import_jwks(payload['jwks'], payload['iss'])

    _jwt = JWT(key_jar=keyjar)
    return _jwt.unpack(token)


def trust_mark_id(trust_mark) -> Optional[str]:
    if isinstance(trust_mark, dict):
        return trust_mark.get("trust_mark_id") or trust_mark.get("id")

    _payload = factory(trust_mark).jwt.payload()
    return _payload.get("trust_mark_id") or _payload.get("id")


class EntityConfigurationProvider(MetadataProvider):
    """
    Entity attributes derived from an OpenID Federation entity configuration.
    The IDs of the trust marks the entity publishes are listed under
    *trust_mark_attribute*. Entity attributes published in the federation_entity
    metadata are added.

    :param entity_configurations: Entity ID to signed entity configuration
    :param fetch: Function that returns the signed entity configuration of an entity
    :param trust_mark_attribute: The attribute URI the trust mark IDs are listed under
    :param trust_mark_verifier: Function that given a trust mark and the entity ID
        returns True if the trust mark can be trusted
    """

    def __init__(self,
                 entity_configurations: Optional[dict] = None,
                 fetch: Optional[Callable] = None,
                 trust_mark_attribute: Optional[str] = ASSURANCE_CERTIFICATION,
                 trust_mark_verifier: Optional[Callable] = None,
                 **kwargs):
        self.entity_configurations = entity_configurations or {}
        self.fetch = fetch
        self.trust_mark_attribute = trust_mark_attribute
        self.trust_mark_verifier = trust_mark_verifier

    def get_entity_configuration(self, entity_id: str) -> Optional[str]:
        _jws = self.entity_configurations.get(entity_id)
        if _jws is None and self.fetch:
            _jws = self.fetch(entity_id)
        return _jws

    def _trust_mark_ids(self, entity_configuration: dict, entity_id: str) -> list:
        res = []
        for _tm in entity_configuration.get("trust_marks", []):
            _id = trust_mark_id(_tm)
            if not _id:
                continue
            if self.trust_mark_verifier:
                _token = _tm.get("trust_mark") if isinstance(_tm, dict) else _tm
                if not self.trust_mark_verifier(_token, entity_id):
                    logger.warning(f"Trust mark {_id} for {entity_id} could not be verified")
                    continue
            if _id not in res:
                res.append(_id)
        return res

    def lookup_entity_attributes(self, entity_id: str) -> dict:
        _jws = self.get_entity_configuration(entity_id)
        if not _jws:
            return {}

        try:
            _conf = verify_self_signed_signature(_jws)
        except JWKESTException as err:
            logger.warning(f"Could not verify entity configuration for {entity_id}: {err}")
            return {}

        if _conf.get("iss") != entity_id or _conf.get("sub") != entity_id:
            logger.warning(f"Entity configuration not about {entity_id}")
            return {}

        res = {}
        try:
            _published = _conf["metadata"]["federation_entity"]["entity_attributes"]
        except KeyError:
            pass
        else:
            for key, values in _published.items():
                res[key] = list(values)

        _ids = self._trust_mark_ids(_conf, entity_id)
        if _ids:
            _values = res.setdefault(self.trust_mark_attribute, [])
            _values.extend([v for v in _ids if v not in _values])

        return res
