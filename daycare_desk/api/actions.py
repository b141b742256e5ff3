"""
Action log and notification endpoints.
"""
from typing import List

from fastapi import APIRouter, Depends

from daycare_desk.api.deps import get_lifecycle
from daycare_desk.domain.services import LifecycleService
from daycare_desk.schemas.records import ActionLog
from daycare_desk.schemas.requests import ActionCreate, NotificationRequest, NotificationResponse

router = APIRouter(prefix="/api", tags=["actions"])


@router.get("/actions", response_model=List[ActionLog])
def list_actions(lifecycle: LifecycleService = Depends(get_lifecycle)):
    """Get all action logs, newest first."""
    return lifecycle.list_actions()


@router.post("/actions", response_model=ActionLog, status_code=201)
def log_action(request: ActionCreate, lifecycle: LifecycleService = Depends(get_lifecycle)):
    """
    Record a parent notification and send it.
    The log is returned even when the webhook could not be reached.
    """
    return lifecycle.log_action(request.model_dump())


@router.post("/notifications", response_model=NotificationResponse)
def send_notification(request: NotificationRequest, lifecycle: LifecycleService = Depends(get_lifecycle)):
    """Send a one-off message to a phone number without writing an action log."""
    timestamp = lifecycle.send_notification(request.phone, request.message, request.child_name)
    return {"success": True, "timestamp": timestamp}
