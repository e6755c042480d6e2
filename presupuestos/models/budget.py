import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Date, DateTime, String, Text, Uuid
from sqlalchemy.orm import relationship
from presupuestos.db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Budget(Base):
    __tablename__ = "budgets"

    id = Column(Uuid(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    title = Column(String, nullable=False)
    details = Column(Text, nullable=True)
    deadline = Column(Date, nullable=False)

    # Python-side defaults keep sub-second ordering on every backend
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    # Rows are removed by the ON DELETE CASCADE rule, not by the ORM
    attachments = relationship(
        "Attachment",
        backref="budget",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Attachment.created_at",
    )
