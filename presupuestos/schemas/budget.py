from typing import List, Optional
from datetime import date, datetime
from pydantic import BaseModel, computed_field, field_validator

from presupuestos.schemas.attachment import AttachmentResponse
from presupuestos.utils.date_utils import days_remaining, is_overdue


class BudgetBase(BaseModel):
    title: str
    details: Optional[str] = None
    deadline: date

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title must not be empty")
        return v

    @field_validator("details")
    @classmethod
    def empty_details_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v


class BudgetCreate(BudgetBase):
    pass


class BudgetUpdate(BudgetBase):
    """Full overwrite of the editable fields"""
    pass


class BudgetResponse(BudgetBase):
    id: str
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def is_overdue(self) -> bool:
        return is_overdue(self.deadline)

    @computed_field
    @property
    def days_remaining(self) -> int:
        return days_remaining(self.deadline)

    class Config:
        from_attributes = True


class BudgetDetailResponse(BudgetResponse):
    attachments: List[AttachmentResponse] = []

    @classmethod
    def from_budget(cls, budget: BudgetResponse, attachments: List[AttachmentResponse]) -> "BudgetDetailResponse":
        values = budget.model_dump(exclude={"is_overdue", "days_remaining"})
        return cls(**values, attachments=attachments)
