"""Domain exceptions shared by services and routers."""


class RiftRelayError(RuntimeError):
    """Base exception for Rift Relay service errors."""


class GameValidationError(RiftRelayError):
    """Raised when input is malformed or out of range (unknown perk, locked perk, ...)."""


class AuthorizationError(RiftRelayError):
    """Raised when an anonymous caller attempts a mutating operation."""


class NotFoundError(RiftRelayError):
    """Raised when a run session or saved state does not exist."""


class SessionExpiredError(RiftRelayError):
    """Raised when a run ticket is used after its expiry. The session is already deleted."""


class StoreUnavailableError(RiftRelayError):
    """Raised when the backing store is unavailable or times out. Safe to retry."""
