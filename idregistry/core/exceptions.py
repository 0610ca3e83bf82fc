"""Custom exception classes for the application."""

from typing import Any


class IdRegistryError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


# Configuration Errors
class ConfigurationError(IdRegistryError):
    """Missing or invalid startup configuration."""

    pass


# Request Errors
class InvalidRequestError(IdRegistryError):
    """Request failed validation."""

    pass


class InvalidOwnerError(InvalidRequestError):
    """Owner is empty or contains characters outside letters, digits and underscore."""

    def __init__(self, owner: str) -> None:
        super().__init__(
            "Owner must be non-empty and contain only letters, digits or underscore",
            details={"owner": owner},
        )


class AdminAuthorizationError(IdRegistryError):
    """Admin secret missing or wrong."""

    def __init__(self) -> None:
        super().__init__("Invalid or missing admin secret")


class IdNotFoundError(IdRegistryError):
    """No active record for this ID."""

    def __init__(self, record_id: str) -> None:
        super().__init__(f"ID not found: {record_id}", details={"id": record_id})


class ServiceSuspendedError(IdRegistryError):
    """Mutating operation rejected while the suspend gate is closed."""

    def __init__(self) -> None:
        super().__init__("Server is temporarily suspended for maintenance")


# Allocation Errors
class AllocationError(IdRegistryError):
    """Base class for allocation failures."""

    pass


class GenerationExhaustedError(AllocationError):
    """No unused, non-numeric candidate found within the attempt budget."""

    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(
            f"Failed to generate unique ID after {attempts} attempts. "
            "Database may be very full.",
            details={"attempts": attempts},
        )


class AllocationConflictError(AllocationError):
    """Every insert attempt lost a uniqueness race to a concurrent allocation."""

    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(
            f"ID insert conflicted with concurrent allocations {attempts} times",
            details={"insert_attempts": attempts},
        )


# Storage Errors
class StorageError(IdRegistryError):
    """Non-transient storage failure."""

    pass


class StorageUnavailableError(StorageError):
    """Connection pool exhausted or storage unreachable."""

    pass
