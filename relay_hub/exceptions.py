"""
Relay Hub Exceptions

Custom exception classes for error handling
"""


class RelayError(Exception):
    """Base Relay Hub exception"""

    def __init__(self, message: str, error_code: str = "RELAY000", details: dict = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary format"""
        return {
            "error_code": self.error_code,
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


# Channel errors
class ChannelError(RelayError):
    """Channel transport error"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, "CHAN001", details)


class ChannelClosedError(ChannelError):
    """Channel closed error (remote close or failed read/write)"""

    def __init__(self, message: str = "Channel closed", details: dict = None):
        super().__init__(message, details)
        self.error_code = "CHAN002"


# Outbox errors
class OutboxError(RelayError):
    """Outbox error"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, "OUTBOX001", details)


class OutboxFullError(OutboxError):
    """Outbox full error"""

    def __init__(self, message: str = "Outbox is full", details: dict = None):
        super().__init__(message, details)
        self.error_code = "OUTBOX002"


class OutboxClosedError(OutboxError):
    """Outbox closed error"""

    def __init__(self, message: str = "Outbox is closed", details: dict = None):
        super().__init__(message, details)
        self.error_code = "OUTBOX003"


# Connection errors
class ConnectionStateError(RelayError):
    """Connection used in a lifecycle state that does not allow the operation"""

    def __init__(self, connection_id: str, state: str, details: dict = None):
        message = f"Connection {connection_id} cannot be registered in state {state}"
        super().__init__(message, "CONN001", details)
        self.connection_id = connection_id
        self.state = state


# Configuration errors
class ConfigurationError(RelayError):
    """Configuration error"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, "CONFIG001", details)


class InvalidConfigurationError(ConfigurationError):
    """Invalid configuration error"""

    def __init__(self, key: str, value, details: dict = None):
        message = f"Invalid configuration: {key} = {value}"
        super().__init__(message, details)
        self.error_code = "CONFIG002"
        self.key = key
        self.value = value


# Server errors
class ServerError(RelayError):
    """Server error"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, "SERVER001", details)


class ServerOverloadError(ServerError):
    """Server overload error"""

    def __init__(self, message: str = "Server overloaded", details: dict = None):
        super().__init__(message, details)
        self.error_code = "SERVER002"


# Utility functions
def create_error_message(error: RelayError) -> dict:
    """Create error message format"""
    return {"type": "error", "payload": error.to_dict()}


# Error code mapping
ERROR_CODE_MAP = {
    "RELAY000": RelayError,
    "CHAN001": ChannelError,
    "CHAN002": ChannelClosedError,
    "OUTBOX001": OutboxError,
    "OUTBOX002": OutboxFullError,
    "OUTBOX003": OutboxClosedError,
    "CONN001": ConnectionStateError,
    "CONFIG001": ConfigurationError,
    "CONFIG002": InvalidConfigurationError,
    "SERVER001": ServerError,
    "SERVER002": ServerOverloadError,
}
