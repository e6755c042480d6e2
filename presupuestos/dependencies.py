from fastapi import Request

from presupuestos.services.attachment_manager import AttachmentManager


def get_attachment_manager(request: Request) -> AttachmentManager:
    """Manager built at startup and shared by all requests"""
    return request.app.state.attachment_manager
