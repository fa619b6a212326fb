from fastapi import HTTPException
from app.constants.error_codes import ErrorCode


class AppException(HTTPException):
    def __init__(
        self,
        status_code: int,
        message: str,
        error_code: ErrorCode,
        details: dict | None = None,
    ):
        super().__init__(status_code=status_code, detail=message)
        self.error_code = error_code
        self.details = details


# -------------------------
# BUSINESS OUTCOMES
# -------------------------
class NotFoundError(AppException):
    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.NOT_FOUND):
        super().__init__(404, message, error_code)


class EligibilityError(AppException):
    """A discount code was rejected. The message is safe to show to an operator."""

    def __init__(self, reason, message: str):
        super().__init__(
            400,
            message,
            ErrorCode.DISCOUNT_NOT_ELIGIBLE,
            details={"reason": reason.value},
        )
        self.reason = reason


class DuplicateApplicationError(AppException):
    def __init__(self, receipt_id, discount_id: int):
        super().__init__(
            409,
            "Discount already applied to this receipt",
            ErrorCode.DISCOUNT_ALREADY_APPLIED,
            details={"receipt_id": receipt_id, "discount_id": discount_id},
        )


class InvalidTransitionError(AppException):
    def __init__(self, current, requested):
        super().__init__(
            400,
            f"Cannot move item from {current.value} to {requested.value}",
            ErrorCode.ITEM_INVALID_TRANSITION,
            details={"current": current.value, "requested": requested.value},
        )


class ConcurrencyConflictError(AppException):
    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.CONFLICT):
        super().__init__(409, message, error_code)


class PreconditionError(AppException):
    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.RECEIPT_INVALID_STATE):
        super().__init__(409, message, error_code)


# -------------------------
# INFRASTRUCTURE
# -------------------------
class DependencyError(AppException):
    """The data store could not be reached. Safe to retry."""

    def __init__(self, message: str = "Data store unavailable"):
        super().__init__(503, message, ErrorCode.DEPENDENCY_ERROR)
