from presupuestos.db import Base
from presupuestos.models.budget import Budget
from presupuestos.models.attachment import Attachment

__all__ = [
    "Base",
    "Budget",
    "Attachment",
]
