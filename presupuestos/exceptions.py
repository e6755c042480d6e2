from typing import List, Optional

from fastapi import HTTPException, status


class AppException(HTTPException):
    """Base application exception"""

    def __init__(self, status_code: int, detail: str, cause: Optional[BaseException] = None):
        super().__init__(status_code=status_code, detail=detail)
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.detail} ({type(self.cause).__name__}: {self.cause})"
        return str(self.detail)


class NotFoundError(AppException):
    def __init__(self, detail: str = "Resource not found", cause: Optional[BaseException] = None):
        super().__init__(status.HTTP_404_NOT_FOUND, detail, cause)


class BadRequestError(AppException):
    def __init__(self, detail: str = "Bad request"):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail)


class InternalServerError(AppException):
    def __init__(self, detail: str = "Internal server error", cause: Optional[BaseException] = None):
        super().__init__(status.HTTP_500_INTERNAL_SERVER_ERROR, detail, cause)


class RecordReadError(InternalServerError):
    def __init__(self, detail: str = "Could not load records", cause: Optional[BaseException] = None):
        super().__init__(detail, cause)


class RecordWriteError(InternalServerError):
    def __init__(self, detail: str = "Could not save the record", cause: Optional[BaseException] = None):
        super().__init__(detail, cause)


class RecordDeleteError(AppException):
    """Row delete failed. Reported as 404 when the row was already gone."""

    def __init__(self, detail: str = "Could not delete the record", cause: Optional[BaseException] = None):
        code = status.HTTP_404_NOT_FOUND if isinstance(cause, NotFoundError) else status.HTTP_500_INTERNAL_SERVER_ERROR
        super().__init__(code, detail, cause)


class StorageReadError(InternalServerError):
    def __init__(self, detail: str = "Could not read the file", cause: Optional[BaseException] = None):
        super().__init__(detail, cause)


class StorageWriteError(InternalServerError):
    def __init__(self, detail: str = "Could not upload the file", cause: Optional[BaseException] = None):
        super().__init__(detail, cause)


class StorageDeleteError(InternalServerError):
    def __init__(self, detail: str = "Could not delete the stored files", cause: Optional[BaseException] = None):
        super().__init__(detail, cause)


class AttachmentWriteError(InternalServerError):
    """
    A file in a multi-file batch could not be persisted.

    ``index`` is the position of the failing file in the submitted sequence,
    ``step`` is either ``"upload"`` or ``"record"``, and ``persisted`` holds
    the attachments that were fully stored before the failure.
    """

    def __init__(
        self,
        index: int,
        file_name: str,
        step: str,
        cause: AppException,
        persisted: Optional[List] = None,
        budget_id: Optional[str] = None,
    ):
        super().__init__(f"Could not save attachment '{file_name}'", cause)
        self.budget_id = budget_id
        self.index = index
        self.file_name = file_name
        self.step = step
        self.persisted = list(persisted or [])
