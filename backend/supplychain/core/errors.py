"""Business-rule errors raised by the core services.

Every error carries a stable ``code`` and a ``context`` dict with the values
needed to render a user message. None of them is retried automatically.
"""

from typing import Any, Dict, Optional


class SupplyChainError(Exception):
    """Base class for all business-rule violations."""

    code = "error"
    status_code = 400

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.context: Dict[str, Any] = context
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "detail": self.message,
            "code": self.code,
            "context": {k: _jsonable(v) for k, v in self.context.items()},
        }


def _jsonable(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


class NotFound(SupplyChainError):
    code = "not_found"
    status_code = 404

    def __init__(self, entity: str, entity_id: Optional[Any] = None, **context: Any):
        message = f"{entity} not found" if entity_id is None else f"{entity} {entity_id} not found"
        super().__init__(message, entity=entity, entity_id=entity_id, **context)


class InvalidState(SupplyChainError):
    code = "invalid_state"
    status_code = 409


class InvalidSrnState(InvalidState):
    code = "invalid_srn_state"


class InsufficientAvailable(SupplyChainError):
    code = "insufficient_available"
    status_code = 409


class InsufficientBlocked(SupplyChainError):
    code = "insufficient_blocked"
    status_code = 409


class InvalidQuantity(SupplyChainError):
    code = "invalid_quantity"
    status_code = 422


class EmptyOperation(InvalidQuantity):
    code = "empty_operation"


class DuplicateReference(SupplyChainError):
    code = "duplicate_reference"
    status_code = 409


class DuplicateBatch(DuplicateReference):
    code = "duplicate_batch"


class ImmutableFieldViolation(SupplyChainError):
    code = "immutable_field"
    status_code = 409


class Unauthorized(SupplyChainError):
    code = "unauthorized"
    status_code = 403


class ValidationFailure(SupplyChainError):
    code = "validation_failure"
    status_code = 422


class InvalidDateRange(ValidationFailure):
    code = "invalid_date_range"


class ReceivedExceedsExpected(ValidationFailure):
    code = "received_exceeds_expected"


class MaterialInactive(ValidationFailure):
    code = "material_inactive"
