from typing import Dict

from fastapi import APIRouter, Depends

from daycare_desk.api.deps import get_lifecycle
from daycare_desk.domain.services import LifecycleService
from daycare_desk.schemas.requests import SettingUpdate

router = APIRouter(prefix="/api/settings", tags=["settings"])


@router.get("", response_model=Dict[str, str])
def get_settings(lifecycle: LifecycleService = Depends(get_lifecycle)):
    """Get the webhook URL, message templates and other settings."""
    return lifecycle.get_settings()


@router.put("/{key}", response_model=Dict[str, str])
def update_setting(key: str, request: SettingUpdate, lifecycle: LifecycleService = Depends(get_lifecycle)):
    """Create or update one setting and return the full set."""
    return lifecycle.update_setting(key, request.value)
