from typing import Optional
from datetime import datetime
from pydantic import BaseModel, computed_field

from presupuestos.utils.file_utils import format_file_size


class AttachmentUpload(BaseModel):
    """A file submitted for storage, in the order the user picked it"""
    file_name: str
    content: bytes
    mime_type: Optional[str] = None

    @property
    def size_bytes(self) -> int:
        return len(self.content)


class AttachmentResponse(BaseModel):
    id: str
    budget_id: str
    file_name: str
    storage_path: str
    mime_type: Optional[str] = None
    size_bytes: int
    created_at: datetime

    @computed_field
    @property
    def size_label(self) -> str:
        return format_file_size(self.size_bytes)

    class Config:
        from_attributes = True
