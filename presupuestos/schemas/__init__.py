from presupuestos.schemas.attachment import AttachmentUpload, AttachmentResponse
from presupuestos.schemas.budget import (
    BudgetCreate,
    BudgetUpdate,
    BudgetResponse,
    BudgetDetailResponse,
)

__all__ = [
    "AttachmentUpload",
    "AttachmentResponse",
    "BudgetCreate",
    "BudgetUpdate",
    "BudgetResponse",
    "BudgetDetailResponse",
]
