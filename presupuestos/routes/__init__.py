from fastapi import APIRouter

api_router = APIRouter()

# Import route modules here
from presupuestos.routes import budgets, attachments

api_router.include_router(budgets.router)
api_router.include_router(attachments.router)
