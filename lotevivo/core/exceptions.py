class LoteVivoError(Exception):
    """Base exception for LoteVivo application.

    Subclasses carry the HTTP status and a stable machine-readable code so the
    API layer can render them without knowing each type.
    """

    status_code: int = 500
    code: str = "internal_error"
    default_message: str = "Internal error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(LoteVivoError):
    """Raised when input is malformed before any read or write happens."""

    status_code = 422
    code = "validation_error"
    default_message = "Invalid input"


class PermissionDeniedError(LoteVivoError):
    """Raised when the caller's role does not allow the operation."""

    status_code = 403
    code = "forbidden"
    default_message = "Forbidden"


class NotFoundError(LoteVivoError):
    """Raised when a referenced entity does not exist within the caller's tenant."""

    status_code = 404
    code = "not_found"
    default_message = "Not found"


class LotNotFoundError(NotFoundError):
    code = "lot_not_found"
    default_message = "Lot not found"


class StageNotFoundError(NotFoundError):
    code = "stage_not_found"
    default_message = "Stage not found"


class ConflictError(LoteVivoError):
    """Raised when the request collides with the current state."""

    status_code = 409
    code = "conflict"
    default_message = "Conflict"


class LotAlreadyInStageError(ConflictError):
    code = "lot_already_in_stage"
    default_message = "Lot is already in this stage"


class ConcurrentTransitionError(ConflictError):
    code = "lot_changed_concurrently"
    default_message = "Lot stage changed concurrently, reload and retry"


class LotBusyError(ConflictError):
    code = "lot_busy"
    default_message = "Another stage transition is in progress for this lot"


class DuplicateStageCodeError(ConflictError):
    code = "duplicate_stage_code"
    default_message = "A stage with this code already exists in this chain"


class InactiveStageError(LoteVivoError):
    """Raised when the destination stage exists but has been retired."""

    status_code = 422
    code = "stage_inactive"
    default_message = "Destination stage is inactive"
