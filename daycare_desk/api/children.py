"""
Front-desk child endpoints: check-in, daily and history views, check-out and
parent notifications about a specific child.
All endpoints require an authenticated session.
"""
import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Response

from daycare_desk.api.deps import get_lifecycle
from daycare_desk.domain.services import LifecycleService
from daycare_desk.schemas.records import ActionLog, Child
from daycare_desk.schemas.requests import ChildCreate, NotifyRequest, SummaryResponse

router = APIRouter(prefix="/api/children", tags=["children"])


@router.get("", response_model=List[Child])
def list_children(status: Optional[str] = None, lifecycle: LifecycleService = Depends(get_lifecycle)):
    """
    Get today's children, most recently registered first.
    Pass status=active for the dashboard or status=picked_up for the archive.
    """
    return lifecycle.list_children(status)


@router.get("/history", response_model=List[Child])
def list_history(date: Optional[datetime.date] = None, lifecycle: LifecycleService = Depends(get_lifecycle)):
    """Get every persisted child, or only those checked in on the given date."""
    return lifecycle.list_history(date)


@router.get("/summary", response_model=SummaryResponse)
def summary(lifecycle: LifecycleService = Depends(get_lifecycle)):
    """Dashboard counters and the children due for pickup in the next half hour."""
    return lifecycle.summary()


@router.get("/{child_id}", response_model=Child)
def get_child(child_id: str, lifecycle: LifecycleService = Depends(get_lifecycle)):
    return lifecycle.get_child(child_id)


@router.post("", response_model=Child, status_code=201)
def register_child(request: ChildCreate, lifecycle: LifecycleService = Depends(get_lifecycle)):
    """
    Check a child in.
    The child gets the next daily ID and starts out active.
    """
    return lifecycle.register_child(request.model_dump())


@router.delete("/{child_id}", status_code=204)
def check_out(child_id: str, lifecycle: LifecycleService = Depends(get_lifecycle)):
    """
    Check a child out (status becomes picked_up).
    The record stays available in the archive and history views.
    """
    lifecycle.check_out(child_id)
    return Response(status_code=204)


@router.post("/{child_id}/notify", response_model=ActionLog, status_code=201)
def notify_parent(child_id: str, request: NotifyRequest, lifecycle: LifecycleService = Depends(get_lifecycle)):
    """
    Notify the child's primary contact.
    Without a message the configured template for the action type is sent.
    """
    return lifecycle.notify_parent(child_id, request.action_type, request.message)
