from fastapi import HTTPException


class ValidationError(HTTPException):
    """Bad or missing request fields"""

    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)


class InvalidPostTypeError(ValidationError):
    def __init__(self, detail: str = "Invalid post type."):
        super().__init__(detail)
        self.status_code = 403


class NotFoundError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=404, detail=detail)


class ForbiddenError(HTTPException):
    """Acting user does not own the resource"""

    def __init__(self, detail: str = "Access is denied."):
        super().__init__(status_code=401, detail=detail)


class UpstreamError(HTTPException):
    """
    S3 failure. The upstream message is passed through as the detail
    so the client sees what the blob store reported.
    """

    def __init__(self, detail: str, status_code: int = 500):
        super().__init__(status_code=status_code, detail=detail)


class InternalError(HTTPException):
    def __init__(self, detail: str = "Internal server error"):
        super().__init__(status_code=500, detail=detail)
