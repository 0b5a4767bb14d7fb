"""Board meetings, minutes voting and attendance RSVPs.

Votes and RSVPs are read-then-update-or-insert with no unique
constraint behind them; two concurrent first votes by the same user can
both insert.
"""

import logging
from datetime import date, datetime, time, timezone
from typing import Any, Dict, List, Optional

from supabase import Client

logger = logging.getLogger(__name__)

MEETINGS_TABLE = "meetings"
MINUTES_TABLE = "meeting_minutes"
ATTENDEES_TABLE = "meeting_attendees"
MINUTE_VOTES_TABLE = "meeting_minute_votes"


def combine_date_time(meeting_date: date, meeting_time: time) -> str:
    """``2025-03-04`` + ``18:30`` -> ``2025-03-04T18:30:00``; seconds are dropped."""
    return f"{meeting_date.isoformat()}T{meeting_time.strftime('%H:%M')}:00"


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        logger.warning("Unparseable meeting_date: %r", value)
        return None


def _is_upcoming(meeting: dict, now: datetime) -> bool:
    when = _parse_timestamp(meeting.get("meeting_date"))
    if when is None:
        return False
    if when.tzinfo is None:
        return when >= now.replace(tzinfo=None)
    return when >= now


def minutes_tally(votes: List[dict], minute_id: str, user_id: Optional[str] = None) -> Dict[str, Any]:
    """Count one minutes item's votes by choice, plus the caller's vote."""
    item_votes = [v for v in votes if v.get("minute_id") == minute_id]
    user_vote = next(
        (v.get("vote") for v in item_votes if user_id and v.get("user_id") == user_id),
        None,
    )
    return {
        "approve": sum(1 for v in item_votes if v.get("vote") == "approve"),
        "deny": sum(1 for v in item_votes if v.get("vote") == "deny"),
        "discuss": sum(1 for v in item_votes if v.get("vote") == "discuss"),
        "total": len(item_votes),
        "user_vote": user_vote,
    }


# ============================================================================
# Meetings
# ============================================================================


def list_meetings(client: Client, now: Optional[datetime] = None) -> Dict[str, List[dict]]:
    """All meetings latest first, split into upcoming and past."""
    now = now or datetime.now(timezone.utc)
    rows = (
        client.table(MEETINGS_TABLE)
        .select("*")
        .order("meeting_date", desc=True)
        .execute()
    ).data or []
    return {
        "upcoming": [m for m in rows if _is_upcoming(m, now)],
        "past": [m for m in rows if not _is_upcoming(m, now)],
    }


def create_meeting(client: Client, data: Dict[str, Any], created_by: str) -> dict:
    row = {
        "title": data["title"],
        "description": data.get("description"),
        "meeting_date": combine_date_time(data["meeting_date"], data["meeting_time"]),
        "location": data.get("location"),
        "meeting_type": data.get("meeting_type") or "board",
        "created_by": created_by,
    }
    response = client.table(MEETINGS_TABLE).insert(row).execute()
    logger.info("Meeting created: %s on %s", row["title"], row["meeting_date"])
    return response.data[0] if response.data else row


def get_meeting(client: Client, meeting_id: str) -> dict:
    response = (
        client.table(MEETINGS_TABLE)
        .select("*")
        .eq("id", meeting_id)
        .limit(1)
        .execute()
    )
    if not response.data:
        raise ValueError("Meeting not found")
    return response.data[0]


def get_meeting_detail(client: Client, meeting_id: str, user_id: str) -> Dict[str, Any]:
    """Meeting with its minutes (each tallied), attendees and caller's RSVP."""
    meeting = get_meeting(client, meeting_id)
    minutes = (
        client.table(MINUTES_TABLE)
        .select("*")
        .eq("meeting_id", meeting_id)
        .order("created_at", desc=True)
        .execute()
    ).data or []
    attendees = (
        client.table(ATTENDEES_TABLE)
        .select("*")
        .eq("meeting_id", meeting_id)
        .execute()
    ).data or []

    votes: List[dict] = []
    if minutes:
        votes = (
            client.table(MINUTE_VOTES_TABLE)
            .select("*")
            .in_("minute_id", [m["id"] for m in minutes])
            .execute()
        ).data or []

    my_rsvp = next(
        (a.get("rsvp_status") for a in attendees if a.get("user_id") == user_id),
        None,
    )
    return {
        "meeting": meeting,
        "minutes": [
            {**m, "tally": minutes_tally(votes, m["id"], user_id)} for m in minutes
        ],
        "attendees": attendees,
        "my_rsvp": my_rsvp,
    }


# ============================================================================
# Minutes
# ============================================================================


def add_minutes(
    client: Client,
    meeting_id: str,
    minutes_text: str,
    document_url: Optional[str],
    uploaded_by: str,
) -> dict:
    get_meeting(client, meeting_id)
    row = {
        "meeting_id": meeting_id,
        "minutes_text": minutes_text,
        "document_url": document_url if document_url else None,
        "uploaded_by": uploaded_by,
        "status": "pending",
    }
    response = client.table(MINUTES_TABLE).insert(row).execute()
    logger.info("Minutes uploaded for meeting %s by %s", meeting_id, uploaded_by)
    return response.data[0] if response.data else row


def get_minutes(client: Client, minute_id: str) -> dict:
    response = (
        client.table(MINUTES_TABLE)
        .select("*")
        .eq("id", minute_id)
        .limit(1)
        .execute()
    )
    if not response.data:
        raise ValueError("Minutes not found")
    return response.data[0]


def vote_on_minutes(
    client: Client,
    minute_id: str,
    user_id: str,
    vote: str,
    comment: Optional[str] = None,
) -> dict:
    """Update the caller's existing vote on a minutes item, or insert one."""
    get_minutes(client, minute_id)
    existing = (
        client.table(MINUTE_VOTES_TABLE)
        .select("*")
        .eq("minute_id", minute_id)
        .eq("user_id", user_id)
        .limit(1)
        .execute()
    ).data

    if existing:
        response = (
            client.table(MINUTE_VOTES_TABLE)
            .update({"vote": vote, "comment": comment})
            .eq("id", existing[0]["id"])
            .execute()
        )
    else:
        response = (
            client.table(MINUTE_VOTES_TABLE)
            .insert(
                {
                    "minute_id": minute_id,
                    "user_id": user_id,
                    "vote": vote,
                    "comment": comment,
                }
            )
            .execute()
        )
    logger.info("Minutes vote %s on %s by %s", vote, minute_id, user_id)
    return response.data[0] if response.data else {}


def update_minutes_status(client: Client, minute_id: str, status: str) -> dict:
    get_minutes(client, minute_id)
    response = (
        client.table(MINUTES_TABLE)
        .update({"status": status})
        .eq("id", minute_id)
        .execute()
    )
    if not response.data:
        raise ValueError("Minutes not found")
    return response.data[0]


# ============================================================================
# Attendance
# ============================================================================


def set_rsvp(client: Client, meeting_id: str, user_id: str, rsvp_status: str) -> dict:
    get_meeting(client, meeting_id)
    existing = (
        client.table(ATTENDEES_TABLE)
        .select("*")
        .eq("meeting_id", meeting_id)
        .eq("user_id", user_id)
        .limit(1)
        .execute()
    ).data

    if existing:
        response = (
            client.table(ATTENDEES_TABLE)
            .update({"rsvp_status": rsvp_status})
            .eq("id", existing[0]["id"])
            .execute()
        )
    else:
        response = (
            client.table(ATTENDEES_TABLE)
            .insert(
                {
                    "meeting_id": meeting_id,
                    "user_id": user_id,
                    "rsvp_status": rsvp_status,
                }
            )
            .execute()
        )
    return response.data[0] if response.data else {}
