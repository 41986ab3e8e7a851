"""Exceptions raised by the Rocket.Chat adapter."""


class RelayError(Exception):
    """Base class for adapter errors."""


class ConfigError(RelayError):
    """Invalid configuration, raised before any network activity."""


class TransportError(RelayError):
    """The realtime connection failed or a server method returned an error."""


class LoginError(RelayError):
    """Login was rejected or could not be performed."""


class SubscribeError(RelayError):
    """Subscribing to the message stream failed."""
