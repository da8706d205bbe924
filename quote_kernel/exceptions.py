"""
Typed exception hierarchy for the quote kernel.

Callers catch by type, never by message.  Every exception carries:
  1. a static ``code`` class attribute (machine-readable, API-safe)
  2. a ``user_message`` category text for the view layer
  3. its context as attributes (quote id, field, statuses, ...)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    QuoteKernelError (base)
    |
    +-- ValidationError               "your input is invalid"
    |
    +-- IllegalTransitionError        "this quote cannot be transitioned"
    |   +-- ConcurrentTransitionError
    |
    +-- PersistenceError              "a server error occurred, please retry"
    |
    +-- NotFoundError
    |   +-- QuoteNotFoundError
    |
    +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Validation      | VALIDATION_ERROR            | Negative amount, discount > total,
                |                             | tax rate outside [0, 100], bad reference
----------------|-----------------------------|-----------------------------------------
Transition      | ILLEGAL_TRANSITION          | Operation not allowed from current status
                | CONCURRENT_TRANSITION       | Stored status changed under the caller
----------------|-----------------------------|-----------------------------------------
Persistence     | PERSISTENCE_ERROR           | Flush / commit failure, rolled back
----------------|-----------------------------|-----------------------------------------
Lookup          | QUOTE_NOT_FOUND             | Unknown id or quote of another tenant
----------------|-----------------------------|-----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION      | Derived amount or project link written
                |                             | outside the kernel services

===============================================================================
HANDLING PATTERN
===============================================================================

    try:
        lifecycle.accept(tenant_id, quote_id, actor_id)
    except ValidationError as e:
        return 422, {"code": e.code, "field": e.field, "message": e.user_message}
    except IllegalTransitionError as e:
        return 409, {"code": e.code, "status": e.current_status}
    except PersistenceError as e:
        return 503, {"code": e.code, "message": e.user_message}
"""


class QuoteKernelError(Exception):
    """
    Base exception for all quote kernel errors.

    All subclasses must define a ``code`` class attribute.
    """

    code: str = "QUOTE_KERNEL_ERROR"
    user_message: str = "An unexpected error occurred."


# Validation


class ValidationError(QuoteKernelError):
    """Malformed or out-of-range input, rejected before any write."""

    code: str = "VALIDATION_ERROR"
    user_message: str = "Your input is invalid."

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


# Transitions


class IllegalTransitionError(QuoteKernelError):
    """Operation requested from a status that forbids it."""

    code: str = "ILLEGAL_TRANSITION"
    user_message: str = "This quote cannot be transitioned right now."

    def __init__(self, quote_id: str, current_status: str, requested_action: str):
        self.quote_id = quote_id
        self.current_status = current_status
        self.requested_action = requested_action
        super().__init__(
            f"Cannot {requested_action} quote {quote_id} "
            f"from status '{current_status}'"
        )


class ConcurrentTransitionError(IllegalTransitionError):
    """
    The stored status no longer matches the expected pre-state.

    Another request transitioned the quote between our read and our write.
    """

    code: str = "CONCURRENT_TRANSITION"

    def __init__(self, quote_id: str, expected_status: str, requested_action: str):
        self.expected_status = expected_status
        super().__init__(quote_id, expected_status, requested_action)
        self.args = (
            f"Quote {quote_id} left status '{expected_status}' before "
            f"{requested_action} could be applied",
        )


# Persistence


class PersistenceError(QuoteKernelError):
    """Transaction or commit failure.  Nothing was retained."""

    code: str = "PERSISTENCE_ERROR"
    user_message: str = "A server error occurred, please retry."

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Persistence failure during {operation}: {reason}")


# Lookup


class NotFoundError(QuoteKernelError):
    """Base exception for missing entities."""

    code: str = "NOT_FOUND"
    user_message: str = "The requested record does not exist."


class QuoteNotFoundError(NotFoundError):
    """Quote does not exist within the given tenant."""

    code: str = "QUOTE_NOT_FOUND"

    def __init__(self, quote_id: str, tenant_id: str):
        self.quote_id = quote_id
        self.tenant_id = tenant_id
        super().__init__(f"Quote {quote_id} not found for tenant {tenant_id}")


# Immutability


class ImmutabilityViolationError(QuoteKernelError):
    """A protected column was written outside the kernel services."""

    code: str = "IMMUTABILITY_VIOLATION"
    user_message: str = "A server error occurred, please retry."

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )
