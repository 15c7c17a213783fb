"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    reason = "DOMAIN_ERROR"

    def __init__(self, message: str, reason: str | None = None):
        super().__init__(message)
        if reason is not None:
            self.reason = reason


class NotFoundError(DomainException):
    """Referenced vehicle, yard, staff member or client does not exist"""

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource.capitalize()} '{identifier}' not found", reason=resource.upper())
        self.resource = resource
        self.identifier = identifier


class ConflictError(DomainException):
    """Operation conflicts with current state (duplicate key, full yard, existing link)"""

    DUPLICATE_PLATE = "DUPLICATE_PLATE"
    DUPLICATE_YARD = "DUPLICATE_YARD"
    DUPLICATE_STAFF = "DUPLICATE_STAFF"
    DUPLICATE_CLIENT = "DUPLICATE_CLIENT"
    NO_SLOT_AVAILABLE = "NO_SLOT_AVAILABLE"
    VEHICLE_ALREADY_LINKED = "VEHICLE_ALREADY_LINKED"
    CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"


class ValidationError(DomainException):
    """Input violates a business rule"""

    MALFORMED_PLATE = "MALFORMED_PLATE"
    STAFF_NOT_IN_TARGET_YARD = "STAFF_NOT_IN_TARGET_YARD"
    SLOTS_BELOW_OCCUPIED = "SLOTS_BELOW_OCCUPIED"
    INVALID_TOTAL_SLOTS = "INVALID_TOTAL_SLOTS"
    YARD_NOT_EMPTY = "YARD_NOT_EMPTY"


class PersistenceError(DomainException):
    """Storage layer failed; never reported as a missing record"""

    reason = "INTERNAL_ERROR"
