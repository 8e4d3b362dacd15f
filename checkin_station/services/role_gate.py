# =======================================================================================
# checkin_station/services/role_gate.py - Scanner Route Access Control
# =======================================================================================
from typing import Dict, FrozenSet
import logging

from ..models.enums import (
    CHECKIN_HUB_ROUTE, DASHBOARD_ROUTE, LOGIN_ROUTE, CheckInType, GateStatus, Role,
)
from ..models.schemas import GateDecision
from ..utils.exceptions import NotAuthenticatedError
from .session_context import SessionContext

logger = logging.getLogger(__name__)

SCANNER_ROLES: Dict[CheckInType, FrozenSet[Role]] = {
    CheckInType.BUILDING: frozenset({Role.REGISTRATION_TEAM, Role.SUPERADMIN}),
    CheckInType.SESSION: frozenset({Role.EVENT_MANAGER, Role.SUPERADMIN}),
}

ROLE_LABELS = {
    CheckInType.BUILDING: "building check-in",
    CheckInType.SESSION: "session check-in",
}


class RoleGate:
    """
    Decides whether a scanner route is reachable for the current operator.
    Advisory only: the backend re-validates the role on every check-in call.
    """

    @staticmethod
    def can_scan(role: Role, check_in_type: CheckInType) -> bool:
        return role in SCANNER_ROLES[check_in_type]

    def evaluate(self, session: SessionContext, check_in_type: CheckInType) -> GateDecision:
        if not session.token:
            return GateDecision(
                status=GateStatus.LOGIN_REQUIRED, redirect=LOGIN_ROUTE, message="Please log in"
            )

        try:
            lookup = session.load_profile()
        except NotAuthenticatedError:
            return GateDecision(
                status=GateStatus.LOGIN_REQUIRED,
                redirect=LOGIN_ROUTE,
                message="Session expired. Please log in again.",
            )

        if lookup.offline:
            # cached profile is display-only; never authorises
            return GateDecision(
                status=GateStatus.OFFLINE,
                profile=lookup.profile,
                message="Server is offline. Please try again later.",
            )

        profile = lookup.profile
        if not self.can_scan(profile.role_enum, check_in_type):
            allowed = " or ".join(sorted(r.value for r in SCANNER_ROLES[check_in_type]))
            logger.info("[gate] %s denied %s (role=%s)", profile.email, check_in_type.value, profile.role)
            return GateDecision(
                status=GateStatus.ACCESS_DENIED,
                profile=profile,
                redirect=DASHBOARD_ROUTE,
                message=f"You need {allowed} role to access the {ROLE_LABELS[check_in_type]} scanner.",
            )

        return GateDecision(status=GateStatus.ALLOWED, profile=profile)


def landing_for(role: Role) -> str:
    """Route the check-in hub sends an operator to, by role."""
    if role == Role.REGISTRATION_TEAM:
        return "/checkin/building"
    if role == Role.EVENT_MANAGER:
        return "/checkin/session"
    if role == Role.SUPERADMIN:
        return CHECKIN_HUB_ROUTE
    return DASHBOARD_ROUTE
