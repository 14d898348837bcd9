class XmrigIdleError(Exception):
    """Base class for xmrig-idle errors."""


class IdleQueryError(XmrigIdleError):
    """The idle-time backend is unreachable or rejected the query."""


class RpcError(XmrigIdleError):
    """A remote control call failed (network, authentication or remote error)."""


class ConfigurationError(XmrigIdleError):
    """Invalid startup parameters. Fatal before the loop starts."""
