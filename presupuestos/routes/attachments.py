import uuid
from urllib.parse import quote

from fastapi import APIRouter, Depends, Response, status

from presupuestos.dependencies import get_attachment_manager
from presupuestos.logging_config import get_logger
from presupuestos.services.attachment_manager import AttachmentManager
from presupuestos.utils.storage_paths import CONTROL_CHARS

logger = get_logger(__name__)
router = APIRouter(prefix="/attachments", tags=["attachments"])


def content_disposition(file_name: str) -> str:
    # ASCII fallback plus the RFC 5987 form for non-ASCII names
    fallback = CONTROL_CHARS.sub("", file_name)
    fallback = fallback.encode("ascii", "replace").decode("ascii").replace('"', "'")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(file_name)}"


@router.get("/{attachment_id}/download")
async def download_attachment(
    attachment_id: uuid.UUID,
    manager: AttachmentManager = Depends(get_attachment_manager)
):
    """Download an attachment under its original file name"""
    attachment = await manager.get_attachment(str(attachment_id))
    content = await manager.download_attachment(attachment)
    return Response(
        content=content,
        media_type=attachment.mime_type or "application/octet-stream",
        headers={"Content-Disposition": content_disposition(attachment.file_name)},
    )


@router.delete("/{attachment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_attachment(
    attachment_id: uuid.UUID,
    manager: AttachmentManager = Depends(get_attachment_manager)
):
    """Delete an attachment's file and record"""
    attachment = await manager.get_attachment(str(attachment_id))
    await manager.remove_attachment(attachment)
    logger.info(f"Attachment {attachment_id} of budget {attachment.budget_id} deleted")
    return None
