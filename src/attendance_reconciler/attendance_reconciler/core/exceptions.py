class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NormalizationError(DomainError):
    """A device record has no usable identity or timestamp. Dropped per record."""


class IdentityResolutionError(DomainError):
    """No employee in the facility matches the event."""


class NoShiftAssignedError(DomainError):
    """The matched employee has no resolvable shift."""


class DeviceUnavailable(DomainError):
    """The device gateway could not be reached or returned an unusable payload."""


class DeviceTimeout(DeviceUnavailable):
    """The device gateway did not answer within the configured timeout."""


class ConcurrencyConflict(DomainError):
    """An AttendanceDay was modified concurrently and retries were exhausted."""


class BreakProtocolViolation(DomainError):
    """A manual break operation is not allowed in the current day state."""
