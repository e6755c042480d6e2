"""
Conversion of multipart uploads into AttachmentUpload values.
"""
from datetime import date
from typing import List, Optional, Type, TypeVar

from fastapi import UploadFile
from pydantic import ValidationError

from presupuestos.config import settings
from presupuestos.exceptions import BadRequestError
from presupuestos.schemas.attachment import AttachmentUpload
from presupuestos.schemas.budget import BudgetBase

BudgetFields = TypeVar("BudgetFields", bound=BudgetBase)


def parse_budget_fields(
    schema: Type[BudgetFields],
    title: str,
    deadline: date,
    details: Optional[str],
) -> BudgetFields:
    try:
        return schema(title=title, deadline=deadline, details=details)
    except ValidationError as e:
        messages = "; ".join(error["msg"] for error in e.errors())
        raise BadRequestError(messages)


def raise_too_large(file_name: str) -> None:
    max_size_mb = settings.MAX_UPLOAD_SIZE / (1024 * 1024)
    raise BadRequestError(f"File '{file_name}' exceeds the {max_size_mb:.0f}MB limit")


async def read_uploads(files: Optional[List[UploadFile]]) -> List[AttachmentUpload]:
    """
    Read every submitted file into memory, keeping submission order.

    Parts without a filename (an empty file input) are skipped. Files above
    MAX_UPLOAD_SIZE are rejected before anything is stored.
    """
    uploads = []
    for upload in files or []:
        if not upload.filename:
            continue
        # Size known from the multipart parser is checked before reading the body
        if upload.size is not None and upload.size > settings.MAX_UPLOAD_SIZE:
            raise_too_large(upload.filename)
        content = await upload.read()
        if len(content) > settings.MAX_UPLOAD_SIZE:
            raise_too_large(upload.filename)
        uploads.append(AttachmentUpload(
            file_name=upload.filename,
            content=content,
            mime_type=upload.content_type or None,
        ))
    return uploads
