# =======================================================================================
# checkin_station/api/routes/events.py - Event Catalog & Registration Endpoints
# =======================================================================================
from typing import List

from fastapi import APIRouter, Depends
from ...models.schemas import Event, Registration, RegistrationData, UserWithRegistrations
from ...services.api_client import BackendClient
from ...utils.validators import RegistrationValidator
from ..dependencies import get_client, require_token

router = APIRouter()


@router.get("/events", response_model=List[Event])
def list_events(client: BackendClient = Depends(get_client)):
    """Upcoming events (cached for a few minutes)."""
    return client.fetch_events()


@router.get("/workshops", response_model=List[Event])
def list_workshops(client: BackendClient = Depends(get_client)):
    return client.fetch_workshops()


@router.get("/events/{event_id}", response_model=Event)
def get_event(event_id: str, client: BackendClient = Depends(get_client)):
    return client.fetch_event(event_id)


@router.post("/events/{event_id}/register", response_model=Registration)
def register_for_event(
    event_id: str,
    data: RegistrationData,
    _token: str = Depends(require_token),
    client: BackendClient = Depends(get_client),
):
    """Validate locally (team bounds, single leader), then submit."""
    event = client.fetch_event(event_id)
    RegistrationValidator.validate(data, event)
    return client.register_for_event(data)


@router.get("/me", response_model=UserWithRegistrations)
def my_registrations(
    _token: str = Depends(require_token), client: BackendClient = Depends(get_client)
):
    return client.fetch_user_with_registrations()
