# src/thread_relay/errors.py
"""Exception types raised by the relay."""


class RelayError(Exception):
    """Base class for relay failures."""


class ConfigurationError(RelayError):
    """Raised when a required secret or token is not configured."""


class DeliveryError(RelayError):
    """Raised when Slack rejects a response_url delivery."""

    def __init__(self, status_code: int, body: str):
        super().__init__(f"response_url delivery failed ({status_code}): {body}")
        self.status_code = status_code
        self.body = body
