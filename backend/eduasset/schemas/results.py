"""
EduAsset - Action Result Schemas
Typed success/failure records returned across the public API surface
"""
from typing import Any, List, Optional

from pydantic import BaseModel, Field, computed_field

from eduasset.services.backends.errors import (
    BackendError,
    NotConfiguredError,
    PermissionDeniedError,
    RecordNotFoundError,
)


class ErrorCode:
    """Error codes carried by failed results."""
    NOT_CONFIGURED = "NOT_CONFIGURED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    INVALID = "INVALID"
    BACKEND_ERROR = "BACKEND_ERROR"


NOT_CONFIGURED_MESSAGE = "No spreadsheet or database is connected to this workspace."
PERMISSION_MESSAGE = (
    "Access to the workspace storage was denied. Share the spreadsheet with the "
    "service account or re-check the Firebase configuration."
)
RETRY_MESSAGE = "The storage backend could not complete the request. Please try again later."


class ActionResult(BaseModel):
    """Outcome of one operation (or one step of a multi-step sync)."""
    success: bool
    step: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    warning: Optional[str] = None
    id: Optional[str] = None
    count: Optional[int] = None
    data: Optional[Any] = None

    @classmethod
    def ok(cls, step: Optional[str] = None, **kwargs) -> "ActionResult":
        return cls(success=True, step=step, **kwargs)

    @classmethod
    def fail(cls, error: str, error_code: str, step: Optional[str] = None) -> "ActionResult":
        return cls(success=False, step=step, error=error, error_code=error_code)

    @classmethod
    def from_exception(cls, exc: Exception, step: Optional[str] = None) -> "ActionResult":
        """Convert an adapter/repository exception into a failed result."""
        if isinstance(exc, NotConfiguredError):
            return cls.fail(NOT_CONFIGURED_MESSAGE, ErrorCode.NOT_CONFIGURED, step)
        if isinstance(exc, PermissionDeniedError):
            message = exc.message if exc.message and exc.message != "PERMISSION_DENIED" else PERMISSION_MESSAGE
            return cls.fail(message, ErrorCode.PERMISSION_DENIED, step)
        if isinstance(exc, RecordNotFoundError):
            return cls.fail(exc.message, ErrorCode.NOT_FOUND, step)
        if isinstance(exc, ValueError):
            return cls.fail(str(exc), ErrorCode.INVALID, step)
        if isinstance(exc, BackendError) and exc.message:
            return cls.fail(exc.message, ErrorCode.BACKEND_ERROR, step)
        return cls.fail(RETRY_MESSAGE, ErrorCode.BACKEND_ERROR, step)


class SyncResult(BaseModel):
    """
    Two-phase outcome: the primary mutation plus its best-effort
    consistency steps. Secondary failures never change primary.
    """
    primary: ActionResult
    secondary: List[ActionResult] = Field(default_factory=list)

    @computed_field
    @property
    def success(self) -> bool:
        return self.primary.success

    def secondary_step(self, step: str) -> Optional[ActionResult]:
        for result in self.secondary:
            if result.step == step:
                return result
        return None
