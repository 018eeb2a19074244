"""Domain exceptions raised by the query engine and entity models."""

from enum import Enum


class ErrorCode(str, Enum):
    """Stable error codes surfaced to callers."""

    PROJECT_TRYOUT_STATUS_UPDATE_FAIL = "PROJECT_TRYOUT_STATUS_UPDATE_FAIL"
    UNSUPPORTED_PIPELINE_STAGE = "UNSUPPORTED_PIPELINE_STAGE"


class ForbiddenOperationError(Exception):
    """Raised when a requested mutation is not allowed in the current state."""

    def __init__(self, code: ErrorCode, detail: str | None = None):
        self.code = code
        self.detail = detail
        super().__init__(detail or code.value)


class UnsupportedStageError(Exception):
    """Raised when a store cannot express a pipeline stage."""

    def __init__(self, stage: object, reason: str):
        self.code = ErrorCode.UNSUPPORTED_PIPELINE_STAGE
        self.stage = stage
        super().__init__(f"{type(stage).__name__}: {reason}")
