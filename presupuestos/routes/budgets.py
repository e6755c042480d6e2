import uuid
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from presupuestos.dependencies import get_attachment_manager
from presupuestos.logging_config import get_logger
from presupuestos.routes.uploads import parse_budget_fields, read_uploads
from presupuestos.schemas.attachment import AttachmentResponse
from presupuestos.schemas.budget import BudgetCreate, BudgetDetailResponse, BudgetResponse, BudgetUpdate
from presupuestos.services.attachment_manager import AttachmentManager

logger = get_logger(__name__)
router = APIRouter(prefix="/budgets", tags=["budgets"])


@router.get("", response_model=List[BudgetResponse])
async def list_budgets(manager: AttachmentManager = Depends(get_attachment_manager)):
    """Get all budgets, newest first"""
    return await manager.list_budgets()


@router.post("", response_model=BudgetDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_budget(
    title: str = Form(...),
    deadline: date = Form(...),
    details: Optional[str] = Form(None),
    files: Optional[List[UploadFile]] = File(None),
    manager: AttachmentManager = Depends(get_attachment_manager)
):
    """Create a budget and upload its files"""
    fields = parse_budget_fields(BudgetCreate, title, deadline, details)
    uploads = await read_uploads(files)

    budget = await manager.create_budget_with_attachments(fields, uploads)
    logger.info(f"Budget {budget.id} created with {len(uploads)} files")
    attachments = await manager.list_attachments(budget.id)
    return BudgetDetailResponse.from_budget(budget, attachments)


@router.get("/{budget_id}", response_model=BudgetDetailResponse)
async def get_budget(
    budget_id: uuid.UUID,
    manager: AttachmentManager = Depends(get_attachment_manager)
):
    """Get a budget with its attachments"""
    budget = await manager.get_budget(str(budget_id))
    attachments = await manager.list_attachments(budget.id)
    return BudgetDetailResponse.from_budget(budget, attachments)


@router.put("/{budget_id}", response_model=BudgetDetailResponse)
async def update_budget(
    budget_id: uuid.UUID,
    title: str = Form(...),
    deadline: date = Form(...),
    details: Optional[str] = Form(None),
    files: Optional[List[UploadFile]] = File(None),
    manager: AttachmentManager = Depends(get_attachment_manager)
):
    """Update a budget's fields, then append any new files"""
    fields = parse_budget_fields(BudgetUpdate, title, deadline, details)
    uploads = await read_uploads(files)

    budget = await manager.update_budget(str(budget_id), fields)
    if uploads:
        await manager.add_attachments(budget.id, uploads)

    attachments = await manager.list_attachments(budget.id)
    return BudgetDetailResponse.from_budget(budget, attachments)


@router.delete("/{budget_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_budget(
    budget_id: uuid.UUID,
    manager: AttachmentManager = Depends(get_attachment_manager)
):
    """Delete a budget and all of its files"""
    await manager.delete_budget_cascade(str(budget_id))
    logger.info(f"Budget {budget_id} deleted")
    return None


@router.get("/{budget_id}/attachments", response_model=List[AttachmentResponse])
async def list_budget_attachments(
    budget_id: uuid.UUID,
    manager: AttachmentManager = Depends(get_attachment_manager)
):
    """Get a budget's attachments in upload order"""
    return await manager.list_attachments(str(budget_id))


@router.post("/{budget_id}/attachments", response_model=List[AttachmentResponse], status_code=status.HTTP_201_CREATED)
async def add_budget_attachments(
    budget_id: uuid.UUID,
    files: List[UploadFile] = File(...),
    manager: AttachmentManager = Depends(get_attachment_manager)
):
    """Append files to an existing budget"""
    budget = await manager.get_budget(str(budget_id))
    uploads = await read_uploads(files)
    return await manager.add_attachments(budget.id, uploads)
