from fedentitlement.metadata import ASSURANCE_CERTIFICATION
from fedentitlement.metadata import ENTITY_CATEGORY_SUPPORT

REFEDS_SIRTFI = "https://refeds.org/sirtfi"
REFEDS_RESEARCH_AND_SCHOLARSHIP = "http://refeds.org/category/research-and-scholarship"

# Entitlement for access to the GGUS helpdesk
GGUS = {
    "attributeName": "eduPersonEntitlement",
    "entitlement": [
        "urn:mace:egi.eu:aai.egi.eu:helpdesk",
        "urn:mace:egi.eu:res:helpdesk#aai.egi.eu",
    ],
    "idpBlacklist": [],
    "idpWhitelist": [
        "https://sso.egi.eu/edugainidp/shibboleth",
        "https://idp.admin.grnet.gr/idp/shibboleth",
        "https://www.egi.eu/idp/shibboleth",
    ],
    "minEntityAttributes": {
        ASSURANCE_CERTIFICATION: [REFEDS_SIRTFI],
    },
    "entitlementWhitelist": [
        "urn:mace:egi.eu:elixir-europe.org:member@vo.elixir-europe.org",
        "urn:mace:egi.eu:group:vo.elixir-europe.org:role=member#elixir-europe.org",
    ],
}

# Entitlement for access to the RCauth.eu CA
RCAUTH = {
    "attributeName": "eduPersonEntitlement",
    "entitlement": [
        "urn:mace:egi.eu:res:rcauth#aai.egi.eu",
    ],
    "entityIds": [
        "https://sso.egi.eu/edugainidp/shibboleth",
    ],
    "entityAttributes": {
        ENTITY_CATEGORY_SUPPORT: [REFEDS_RESEARCH_AND_SCHOLARSHIP],
        ASSURANCE_CERTIFICATION: [REFEDS_SIRTFI],
    },
}

PRESETS = {
    "GGUS": GGUS,
    "RCauth": RCAUTH,
}
