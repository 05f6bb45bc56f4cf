"""
EduAsset - Router Helpers
Translation of engine results into HTTP responses
"""
from typing import Union

from fastapi import HTTPException, status

from eduasset.schemas.results import ActionResult, ErrorCode, SyncResult

# NOT_CONFIGURED is deliberately absent: pages render an empty state from a 200 body
ERROR_STATUS = {
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.PERMISSION_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorCode.INVALID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.BACKEND_ERROR: status.HTTP_502_BAD_GATEWAY,
}

Result = Union[ActionResult, SyncResult]


def respond(result: Result) -> Result:
    """Return the result, or raise HTTPException when its primary step failed."""
    primary = result.primary if isinstance(result, SyncResult) else result
    if not primary.success and primary.error_code in ERROR_STATUS:
        raise HTTPException(status_code=ERROR_STATUS[primary.error_code], detail=primary.error)
    return result
