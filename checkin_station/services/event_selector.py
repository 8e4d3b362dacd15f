# =======================================================================================
# checkin_station/services/event_selector.py - Session Check-in Event Selection
# =======================================================================================
import logging
from typing import List, Optional

from ..models.schemas import Event
from ..utils.exceptions import EventNotFoundError

logger = logging.getLogger(__name__)


class EventSelector:
    """Active (upcoming/ongoing) events an event manager can scan for."""

    def __init__(self, client):
        self.client = client
        self.events: List[Event] = []
        self.selected: Optional[Event] = None

    def load(self) -> List[Event]:
        """Fetch the catalog once and keep only active events."""
        catalog = self.client.fetch_all_events()
        self.events = [e for e in catalog if e.is_active]
        logger.info("[events] %d of %d events available for session check-in", len(self.events), len(catalog))
        return self.events

    def find(self, event_id: str) -> Event:
        for event in self.events:
            if event.id == event_id:
                return event
        raise EventNotFoundError(f"Event {event_id} is not open for check-in")

    def select(self, event_id: str) -> Event:
        self.selected = self.find(event_id)
        return self.selected

    def clear(self):
        self.selected = None
