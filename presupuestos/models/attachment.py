import uuid
from sqlalchemy import BigInteger, CheckConstraint, Column, DateTime, ForeignKey, String, Uuid
from presupuestos.db import Base
from presupuestos.models.budget import utcnow


class Attachment(Base):
    __tablename__ = "attachments"

    id = Column(Uuid(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    budget_id = Column(Uuid(as_uuid=False), ForeignKey('budgets.id', ondelete='CASCADE'), nullable=False, index=True)
    file_name = Column(String, nullable=False)
    storage_path = Column(String, nullable=False, unique=True)
    mime_type = Column(String, nullable=True)
    size_bytes = Column(BigInteger, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("size_bytes >= 0", name="ck_attachments_size_bytes"),
    )
