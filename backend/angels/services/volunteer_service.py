"""Volunteer opportunities, RSVPs and announcements.

Capacity is tracked by ``filled_spots`` on the opportunity row and is
adjusted read-then-write after each RSVP change; there is no locking, so
two simultaneous sign-ups for the last spot can both succeed.
"""

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from supabase import Client

logger = logging.getLogger(__name__)

OPPORTUNITIES_TABLE = "volunteer_opportunities"
RSVPS_TABLE = "volunteer_rsvps"
PROFILES_TABLE = "volunteer_profiles"
ANNOUNCEMENTS_TABLE = "volunteer_announcements"

ANNOUNCEMENT_LIMIT = 10


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _event_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        logger.warning("Unparseable event_date: %r", value)
        return None


def spots_remaining(opportunity: dict) -> int:
    return max(0, (opportunity.get("total_spots") or 0) - (opportunity.get("filled_spots") or 0))


# ============================================================================
# Public listing
# ============================================================================


def list_open_opportunities(client: Client) -> List[dict]:
    """Active and full opportunities, soonest first."""
    rows = (
        client.table(OPPORTUNITIES_TABLE)
        .select("*")
        .in_("status", ["active", "full"])
        .order("event_date")
        .execute()
    ).data or []
    return [{**row, "spots_remaining": spots_remaining(row)} for row in rows]


def get_opportunity(client: Client, opportunity_id: str) -> dict:
    response = (
        client.table(OPPORTUNITIES_TABLE)
        .select("*")
        .eq("id", opportunity_id)
        .limit(1)
        .execute()
    )
    if not response.data:
        raise ValueError("Opportunity not found")
    return response.data[0]


# ============================================================================
# Volunteer dashboard
# ============================================================================


def get_dashboard(client: Client, profile: dict, today: Optional[date] = None) -> Dict[str, Any]:
    """RSVPs split into upcoming and past, plus recent announcements."""
    today = today or date.today()
    rsvps = (
        client.table(RSVPS_TABLE)
        .select("*, opportunity:volunteer_opportunities(*)")
        .eq("volunteer_id", profile["id"])
        .execute()
    ).data or []

    def when(rsvp: dict) -> date:
        return _event_date((rsvp.get("opportunity") or {}).get("event_date")) or date.min

    upcoming = sorted(
        (r for r in rsvps if r.get("status") == "confirmed" and when(r) >= today),
        key=when,
    )
    past = sorted((r for r in rsvps if when(r) < today), key=when, reverse=True)

    announcements = (
        client.table(ANNOUNCEMENTS_TABLE)
        .select("*")
        .order("created_at", desc=True)
        .limit(ANNOUNCEMENT_LIMIT)
        .execute()
    ).data or []
    marked = [
        {**a, "is_read": profile["id"] in (a.get("read_by") or [])}
        for a in announcements
    ]
    return {
        "profile": profile,
        "upcoming_rsvps": upcoming,
        "past_rsvps": past,
        "announcements": marked,
        "unread_count": sum(1 for a in marked if not a["is_read"]),
    }


def _set_filled_spots(client: Client, opportunity: dict, filled: int) -> None:
    """Write a new filled count and flip status between active and full."""
    total = opportunity.get("total_spots") or 0
    updates: Dict[str, Any] = {"filled_spots": filled}
    status = opportunity.get("status")
    if status == "active" and total and filled >= total:
        updates["status"] = "full"
    elif status == "full" and filled < total:
        updates["status"] = "active"
    client.table(OPPORTUNITIES_TABLE).update(updates).eq("id", opportunity["id"]).execute()


def create_rsvp(
    client: Client, profile_id: str, opportunity_id: str, notes: Optional[str] = None
) -> dict:
    """Sign a volunteer up for an opportunity.

    Only a cancelled RSVP for the same pair is re-confirmed; a confirmed
    or attended one keeps its spot and its hours as they are.

    Raises:
        ValueError: If the opportunity is not found, not active, already
            full, or the volunteer already holds a confirmed or attended
            RSVP.
    """
    opportunity = get_opportunity(client, opportunity_id)
    if opportunity.get("status") != "active":
        raise ValueError("This opportunity is not accepting sign-ups")
    if (opportunity.get("filled_spots") or 0) >= (opportunity.get("total_spots") or 0):
        raise ValueError("This opportunity is full")

    existing = (
        client.table(RSVPS_TABLE)
        .select("*")
        .eq("opportunity_id", opportunity_id)
        .eq("volunteer_id", profile_id)
        .limit(1)
        .execute()
    ).data
    if existing:
        current = existing[0].get("status")
        if current == "confirmed":
            raise ValueError("You have already signed up for this opportunity")
        if current != "cancelled":
            raise ValueError("Your attendance is already recorded for this opportunity")

    if existing:
        response = (
            client.table(RSVPS_TABLE)
            .update(
                {
                    "status": "confirmed",
                    "rsvp_date": _now_iso(),
                    "cancellation_date": None,
                    "notes": notes,
                }
            )
            .eq("id", existing[0]["id"])
            .execute()
        )
    else:
        response = (
            client.table(RSVPS_TABLE)
            .insert(
                {
                    "opportunity_id": opportunity_id,
                    "volunteer_id": profile_id,
                    "status": "confirmed",
                    "rsvp_date": _now_iso(),
                    "notes": notes,
                }
            )
            .execute()
        )

    _set_filled_spots(client, opportunity, (opportunity.get("filled_spots") or 0) + 1)
    logger.info("Volunteer %s signed up for %s", profile_id, opportunity_id)
    return response.data[0] if response.data else {}


def cancel_rsvp(client: Client, rsvp_id: str, profile_id: str) -> dict:
    """Cancel the caller's confirmed RSVP and release its spot.

    ``filled_spots`` never drops below zero. Cancelling an already
    cancelled RSVP is a no-op.

    Raises:
        ValueError: If the RSVP is not found or attendance was already
            recorded against it.
        PermissionError: If the RSVP belongs to another volunteer.
    """
    response = (
        client.table(RSVPS_TABLE)
        .select("*")
        .eq("id", rsvp_id)
        .limit(1)
        .execute()
    )
    if not response.data:
        raise ValueError("RSVP not found")
    rsvp = response.data[0]
    if rsvp.get("volunteer_id") != profile_id:
        raise PermissionError("You can only cancel your own RSVPs")
    if rsvp.get("status") == "cancelled":
        return rsvp
    if rsvp.get("status") != "confirmed":
        raise ValueError("Only confirmed RSVPs can be cancelled")

    updated = (
        client.table(RSVPS_TABLE)
        .update({"status": "cancelled", "cancellation_date": _now_iso()})
        .eq("id", rsvp_id)
        .execute()
    ).data

    try:
        opportunity = get_opportunity(client, rsvp["opportunity_id"])
    except ValueError:
        logger.warning("RSVP %s points at a missing opportunity", rsvp_id)
    else:
        _set_filled_spots(
            client, opportunity, max(0, (opportunity.get("filled_spots") or 0) - 1)
        )
    logger.info("Volunteer %s cancelled RSVP %s", profile_id, rsvp_id)
    return updated[0] if updated else rsvp


def mark_announcement_read(client: Client, announcement_id: str, profile_id: str) -> bool:
    """Add the profile to ``read_by`` once; returns False if already read."""
    response = (
        client.table(ANNOUNCEMENTS_TABLE)
        .select("*")
        .eq("id", announcement_id)
        .limit(1)
        .execute()
    )
    if not response.data:
        raise ValueError("Announcement not found")
    read_by = response.data[0].get("read_by") or []
    if profile_id in read_by:
        return False
    (
        client.table(ANNOUNCEMENTS_TABLE)
        .update({"read_by": [*read_by, profile_id]})
        .eq("id", announcement_id)
        .execute()
    )
    return True


# ============================================================================
# Administration
# ============================================================================


def get_admin_overview(client: Client) -> Dict[str, Any]:
    opportunities = (
        client.table(OPPORTUNITIES_TABLE).select("*").order("event_date").execute()
    ).data or []
    rsvps = (
        client.table(RSVPS_TABLE).select("*, volunteer:volunteer_profiles(*)").execute()
    ).data or []
    volunteers = (
        client.table(PROFILES_TABLE).select("*").order("full_name").execute()
    ).data or []
    announcements = (
        client.table(ANNOUNCEMENTS_TABLE)
        .select("*")
        .order("created_at", desc=True)
        .limit(ANNOUNCEMENT_LIMIT)
        .execute()
    ).data or []

    with_rsvps = []
    for opp in opportunities:
        opp_rsvps = [r for r in rsvps if r.get("opportunity_id") == opp["id"]]
        with_rsvps.append(
            {
                **opp,
                "spots_remaining": spots_remaining(opp),
                "rsvps": opp_rsvps,
                "confirmed_count": sum(1 for r in opp_rsvps if r.get("status") == "confirmed"),
            }
        )
    return {
        "opportunities": with_rsvps,
        "volunteers": volunteers,
        "announcements": announcements,
        "stats": {
            "total_volunteers": len(volunteers),
            "active_opportunities": sum(1 for o in opportunities if o.get("status") == "active"),
            "total_rsvps": len(rsvps),
            "total_hours": sum(float(v.get("hours_completed") or 0) for v in volunteers),
        },
    }


def create_opportunity(client: Client, data: Dict[str, Any], created_by: str) -> dict:
    row = {**data, "filled_spots": 0, "status": "active", "created_by": created_by}
    if isinstance(row.get("event_date"), date):
        row["event_date"] = row["event_date"].isoformat()
    response = client.table(OPPORTUNITIES_TABLE).insert(row).execute()
    logger.info("Volunteer opportunity created: %s", row.get("title"))
    return response.data[0] if response.data else row


def capacity_status(current_status: Optional[str], total_spots: int, filled_spots: int) -> Optional[str]:
    """Status after a capacity change; ``cancelled`` stays as it is."""
    if current_status not in ("active", "full"):
        return current_status
    return "full" if filled_spots >= total_spots else "active"


def update_opportunity(client: Client, opportunity_id: str, updates: Dict[str, Any]) -> dict:
    """Apply a partial update.

    A new ``total_spots`` without an explicit ``status`` re-derives
    active/full from the current ``filled_spots``.
    """
    current = get_opportunity(client, opportunity_id)
    if not updates:
        raise ValueError("No fields to update")
    if isinstance(updates.get("event_date"), date):
        updates = {**updates, "event_date": updates["event_date"].isoformat()}
    if updates.get("total_spots") is not None and "status" not in updates:
        updates = {
            **updates,
            "status": capacity_status(
                current.get("status"),
                updates["total_spots"],
                current.get("filled_spots") or 0,
            ),
        }
    response = (
        client.table(OPPORTUNITIES_TABLE)
        .update(updates)
        .eq("id", opportunity_id)
        .execute()
    )
    if not response.data:
        raise ValueError("Opportunity not found")
    return response.data[0]


def delete_opportunity(client: Client, opportunity_id: str) -> None:
    get_opportunity(client, opportunity_id)
    client.table(OPPORTUNITIES_TABLE).delete().eq("id", opportunity_id).execute()
    logger.info("Volunteer opportunity %s deleted", opportunity_id)


def create_announcement(client: Client, data: Dict[str, Any], created_by: str) -> dict:
    row = {**data, "created_by": created_by, "read_by": []}
    response = client.table(ANNOUNCEMENTS_TABLE).insert(row).execute()
    return response.data[0] if response.data else row


def mark_attendance(client: Client, rsvp_id: str, hours_worked: float) -> dict:
    """Record attendance and credit the hours to the volunteer's total."""
    response = (
        client.table(RSVPS_TABLE)
        .select("*")
        .eq("id", rsvp_id)
        .limit(1)
        .execute()
    )
    if not response.data:
        raise ValueError("RSVP not found")
    rsvp = response.data[0]

    updated = (
        client.table(RSVPS_TABLE)
        .update({"status": "attended", "hours_worked": hours_worked})
        .eq("id", rsvp_id)
        .execute()
    ).data

    profiles = (
        client.table(PROFILES_TABLE)
        .select("*")
        .eq("id", rsvp["volunteer_id"])
        .limit(1)
        .execute()
    ).data
    if profiles:
        # Re-marking replaces the previous credit instead of adding twice
        previous = float(rsvp.get("hours_worked") or 0) if rsvp.get("status") == "attended" else 0
        total = float(profiles[0].get("hours_completed") or 0) - previous + hours_worked
        (
            client.table(PROFILES_TABLE)
            .update({"hours_completed": total})
            .eq("id", rsvp["volunteer_id"])
            .execute()
        )
    return updated[0] if updated else rsvp
