class EntitlementError(Exception):
    pass


class MissingRoutingKey(EntitlementError):
    pass


class MalformedRelayHint(EntitlementError):
    pass


class InvalidRuleConfiguration(EntitlementError):
    pass


class InvalidContext(EntitlementError):
    pass
