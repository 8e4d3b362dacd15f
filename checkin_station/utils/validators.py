# =======================================================================================
# checkin_station/utils/validators.py - Validation Helpers
# =======================================================================================

from typing import List, Optional, Tuple
from .exceptions import FormValidationError
from ..models.enums import Role
from ..models.schemas import Event, RegistrationData, TeamMember


class RegistrationValidator:
    """Validates registration forms before they are submitted to the backend."""

    @staticmethod
    def team_bounds(event: Event) -> Tuple[int, int]:
        """Return (min, max) team size for an event; 1..1 when unset."""
        if event.teamSize is None:
            return 1, 1
        return event.teamSize.min, event.teamSize.max

    @staticmethod
    def validate_individual(data: RegistrationData) -> bool:
        """Individual registrations need a phone number and a college."""
        if not (data.phoneNumber or "").strip() or not (data.college or "").strip():
            raise FormValidationError("Phone number and college are required")
        return True

    @staticmethod
    def validate_team(data: RegistrationData, event: Event) -> bool:
        """Validate team name, size bounds, leader count and member fields."""
        if not event.isTeamEvent:
            raise FormValidationError("This event does not accept team registrations")

        if not (data.teamName or "").strip():
            raise FormValidationError("Team name is required")

        members = data.teamMembers or []
        min_size, max_size = RegistrationValidator.team_bounds(event)

        if len(members) < min_size:
            raise FormValidationError(f"Minimum {min_size} team members required")

        if len(members) > max_size:
            raise FormValidationError(f"Maximum {max_size} team members allowed")

        leaders = sum(1 for m in members if m.isLeader)
        if leaders != 1:
            raise FormValidationError("Exactly one team leader is required")

        for member in members:
            if not all(
                (value or "").strip()
                for value in (member.name, member.email, member.phoneNumber, member.college)
            ):
                raise FormValidationError(
                    "All team members must have name, email, phone, and college"
                )

        return True

    @staticmethod
    def validate(data: RegistrationData, event: Event) -> bool:
        if data.eventId != event.id:
            raise FormValidationError("Registration does not match the selected event")
        if data.isTeamRegistration:
            return RegistrationValidator.validate_team(data, event)
        return RegistrationValidator.validate_individual(data)


class TeamBuilder:
    """Editing helpers for the team member list; the first member starts as leader."""

    def __init__(self, event: Event, leader: Optional[TeamMember] = None):
        self.event = event
        first = (leader or TeamMember()).model_copy(update={"isLeader": True})
        self.members: List[TeamMember] = [first]

    def add_member(self, member: Optional[TeamMember] = None) -> TeamMember:
        _, max_size = RegistrationValidator.team_bounds(self.event)
        if len(self.members) >= max_size:
            raise FormValidationError(f"Maximum {max_size} team members allowed")
        new_member = (member or TeamMember()).model_copy(update={"isLeader": False})
        self.members.append(new_member)
        return new_member

    def remove_member(self, index: int) -> TeamMember:
        if self.members[index].isLeader:
            raise FormValidationError("Cannot remove team leader")
        return self.members.pop(index)

    def set_leader(self, index: int):
        # raises IndexError for an unknown member before touching anything
        self.members[index]
        self.members = [
            m.model_copy(update={"isLeader": i == index}) for i, m in enumerate(self.members)
        ]

    def build(self, team_name: str) -> RegistrationData:
        data = RegistrationData(
            eventId=self.event.id,
            isTeamRegistration=True,
            teamName=team_name,
            teamMembers=list(self.members),
        )
        RegistrationValidator.validate_team(data, self.event)
        return data


def validate_role_assignment(role: Role, event_ids: List[str]) -> bool:
    """Event managers must be scoped to at least one event."""
    if role == Role.EVENT_MANAGER and not event_ids:
        raise FormValidationError("Event managers must be assigned at least one event")
    return True


def validate_account_form(password: str, confirm_password: str) -> bool:
    if password != confirm_password:
        raise FormValidationError("Passwords do not match")
    return True
