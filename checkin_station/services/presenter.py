# =======================================================================================
# checkin_station/services/presenter.py - Check-in Result & Stats Presentation
# =======================================================================================
from typing import List, Optional

from ..models.enums import Outcome
from ..models.schemas import ResultView, ScanResult, ScanStats, StatTile, default_avatar_url

SCAN_NEXT_ACTION = "Scan Next QR Code"

_OUTCOME_STYLE = {
    Outcome.SUCCESS: ("success", "Check-in Successful!", "Checked in: "),
    Outcome.ALREADY_CHECKED_IN: ("warning", "Already Checked In", "Originally checked in: "),
    Outcome.FAILED: ("error", "Check-in Failed", "Checked in: "),
}

_TEXT_MARKERS = {
    "success": "[OK]",
    "warning": "[!!]",
    "error": "[XX]",
    "processing": "[..]",
}


def present_result(result: Optional[ScanResult], processing: bool = False) -> Optional[ResultView]:
    """Map an outcome to its view. `processing` wins over any previous result."""
    if processing:
        return ResultView(tone="processing", title="Processing", message="Processing check-in...")

    if result is None:
        return None

    tone, title, timestamp_label = _OUTCOME_STYLE[result.outcome]
    avatar = None
    if result.user is not None:
        avatar = result.user.picture or default_avatar_url(result.user.name)

    return ResultView(
        tone=tone,
        title=title,
        message=result.message,
        attendee=result.user,
        avatarUrl=avatar,
        event=result.event,
        timestamp=f"{timestamp_label}{result.timestamp}" if result.timestamp else None,
        action=SCAN_NEXT_ACTION,
    )


def present_stats(stats: ScanStats) -> List[StatTile]:
    return [
        StatTile(label="Total Scans", value=stats.total, tone="primary"),
        StatTile(label="Successful", value=stats.successful, tone="success"),
        StatTile(label="Already In", value=stats.alreadyCheckedIn, tone="warning"),
        StatTile(label="Failed", value=stats.failed, tone="error"),
    ]


def render_result_text(view: Optional[ResultView]) -> str:
    """Plain-text rendering of a result view for terminal operators."""
    if view is None:
        return ""

    lines = [f"{_TEXT_MARKERS[view.tone]} {view.title}", f"    {view.message}"]
    if view.attendee is not None:
        contact = f" <{view.attendee.email}>" if view.attendee.email else ""
        lines.append(f"    Attendee: {view.attendee.name}{contact}")
    if view.event is not None:
        details = ", ".join(x for x in (view.event.venue, view.event.date) if x)
        lines.append(f"    Event: {view.event.title}" + (f" ({details})" if details else ""))
    if view.timestamp:
        lines.append(f"    {view.timestamp}")
    if view.action:
        lines.append(f"    -> {view.action}")
    return "\n".join(lines)


def render_stats_text(tiles: List[StatTile]) -> str:
    return " | ".join(f"{tile.label}: {tile.value}" for tile in tiles)
