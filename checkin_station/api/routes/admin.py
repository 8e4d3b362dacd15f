# =======================================================================================
# checkin_station/api/routes/admin.py - Superadmin Endpoints
# =======================================================================================
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from ...models.schemas import (
    EventStatusUpdate, MessageResponse, Registration, RoleAssignRequest, RoleUpdateRequest,
    UserProfile,
)
from ...services.api_client import BackendClient
from ...utils.validators import validate_role_assignment
from ..dependencies import get_client, require_superadmin

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_superadmin)])


@router.get("/admin/users", response_model=List[UserProfile])
def list_users(query: Optional[str] = None, client: BackendClient = Depends(get_client)):
    """All users, or those matching `query`."""
    if query:
        return client.search_users(query)
    return client.list_users()


@router.put("/admin/users/{user_id}/role", response_model=MessageResponse)
def update_user_role(
    user_id: str, request: RoleUpdateRequest, client: BackendClient = Depends(get_client)
):
    client.update_user_role(user_id, request.role)
    logger.info("[admin] Role of %s set to %s", user_id, request.role.value)
    return MessageResponse(message="Role updated successfully")


@router.delete("/admin/users/{user_id}", response_model=MessageResponse)
def delete_user(user_id: str, client: BackendClient = Depends(get_client)):
    client.delete_user(user_id)
    logger.info("[admin] Deleted user %s", user_id)
    return MessageResponse(message="User deleted successfully")


@router.put("/admin/events/{event_id}/status", response_model=MessageResponse)
def update_event_status(
    event_id: str, request: EventStatusUpdate, client: BackendClient = Depends(get_client)
):
    client.update_event_status(event_id, request.status.value)
    return MessageResponse(message=f"Event marked {request.status.value}")


@router.delete("/admin/events/{event_id}", response_model=MessageResponse)
def delete_event(event_id: str, client: BackendClient = Depends(get_client)):
    client.delete_event(event_id)
    logger.info("[admin] Deleted event %s", event_id)
    return MessageResponse(message="Event deleted successfully")


@router.get("/admin/registrations/recent", response_model=List[Registration])
def recent_registrations(
    limit: int = Query(100, ge=1, le=1000), client: BackendClient = Depends(get_client)
):
    return client.recent_registrations(limit)


@router.get("/admin/overview")
def overview(client: BackendClient = Depends(get_client)) -> Dict[str, Any]:
    return client.admin_overview()


@router.get("/admin/roles")
def role_assignments(client: BackendClient = Depends(get_client)) -> Dict[str, Any]:
    """Staff users with their roles, plus the events they can be scoped to."""
    return client.list_role_assignments()


@router.put("/admin/roles/assign", response_model=MessageResponse)
def assign_role(request: RoleAssignRequest, client: BackendClient = Depends(get_client)):
    validate_role_assignment(request.role, request.eventIds)
    message = client.assign_role(request.email, request.role, request.eventIds)
    logger.info("[admin] %s assigned %s", request.email, request.role.value)
    return MessageResponse(message=message)


@router.delete("/admin/roles/{user_id}", response_model=MessageResponse)
def revoke_role(user_id: str, client: BackendClient = Depends(get_client)):
    return MessageResponse(message=client.revoke_role(user_id))
