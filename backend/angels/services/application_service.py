"""Business logic for grant-application intake and staff review."""

import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from supabase import Client

from angels.models.application_models import (
    ApplicationStatus,
    BASE_FIELDS,
    CATEGORY_FIELDS,
    CATEGORY_SPECIFIC_COLUMNS,
    FieldError,
    ValidationResult,
    submission_adapter,
)

logger = logging.getLogger(__name__)

APPLICATIONS_TABLE = "applications"
VOTES_TABLE = "votes"
NOTES_TABLE = "application_notes"

VOTE_CHOICES = ("approve", "deny", "discuss")

# ---------------------------------------------------------------------------
# Allowed status transitions
# ---------------------------------------------------------------------------
ALLOWED_TRANSITIONS: dict[str, list[str]] = {
    "pending": ["under_review", "more_info_needed", "denied"],
    "under_review": ["recommended", "approved", "denied", "more_info_needed"],
    "more_info_needed": ["under_review", "pending"],
    "recommended": ["board_approved", "approved", "denied", "under_review"],
    # Terminal states -- no outgoing transitions
    "approved": [],
    "denied": [],
    "board_approved": [],
}

DECIDED_STATUSES = {"approved", "board_approved"}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def build_insert_row(form: Any) -> Dict[str, Any]:
    """Map a validated form onto the fixed ``applications`` insert shape.

    Every category-specific column is present; columns belonging to other
    categories are sent as null.
    """
    data = form.model_dump()
    application_type = data["application_type"]
    row: Dict[str, Any] = {
        "application_type": application_type,
        "status": ApplicationStatus.PENDING.value,
    }
    for field in BASE_FIELDS:
        row[field] = data.get(field)
    own_fields = CATEGORY_FIELDS[application_type]
    for column in CATEGORY_SPECIFIC_COLUMNS:
        row[column] = data.get(column) if column in own_fields else None
    return row


def validation_errors(exc: ValidationError) -> List[FieldError]:
    """Flatten pydantic errors to ``field`` / ``message`` pairs for the form."""
    errors = []
    for err in exc.errors():
        # Discriminated unions prefix the location with the tag value
        loc = [str(part) for part in err["loc"] if str(part) not in CATEGORY_FIELDS]
        message = err["msg"]
        if message.startswith("Value error, "):
            message = message[len("Value error, ") :]
        errors.append(FieldError(field=".".join(loc) or "application_type", message=message))
    return errors


def tally_votes(votes: List[dict]) -> Dict[str, int]:
    """Count vote rows grouped by choice."""
    counts = Counter(v.get("vote") for v in votes)
    return {
        "approve": counts.get("approve", 0),
        "deny": counts.get("deny", 0),
        "discuss": counts.get("discuss", 0),
        "total": len(votes),
    }


class ApplicationService:
    """Service layer for application intake and the staff dashboard.

    All methods are synchronous supabase-py calls; routers run them with
    ``asyncio.to_thread``.
    """

    # ------------------------------------------------------------------
    # validate / submit
    # ------------------------------------------------------------------

    @staticmethod
    def validate(payload: Dict[str, Any]) -> ValidationResult:
        """Run the per-category ruleset without writing anything."""
        try:
            submission_adapter.validate_python(payload)
        except ValidationError as e:
            return ValidationResult(valid=False, errors=validation_errors(e))
        return ValidationResult(valid=True)

    @staticmethod
    def submit(client: Client, form: Any) -> dict:
        """Insert one application row with status ``pending``.

        Args:
            client: Supabase client.
            form: A validated category form model.

        Returns:
            The inserted row as returned by PostgREST.
        """
        row = build_insert_row(form)
        response = client.table(APPLICATIONS_TABLE).insert(row).execute()
        inserted = response.data[0] if response.data else row
        logger.info(
            "Application submitted: type=%s id=%s",
            row["application_type"],
            inserted.get("id"),
        )
        return inserted

    # ------------------------------------------------------------------
    # list / stats / detail
    # ------------------------------------------------------------------

    @staticmethod
    def list_applications(
        client: Client,
        status: Optional[str] = None,
        application_type: Optional[str] = None,
    ) -> List[dict]:
        """Fetch every application newest first, then filter in memory."""
        response = (
            client.table(APPLICATIONS_TABLE)
            .select("*")
            .order("created_at", desc=True)
            .execute()
        )
        rows = response.data or []
        if status and status != "all":
            rows = [r for r in rows if r.get("status") == status]
        if application_type and application_type != "all":
            rows = [r for r in rows if r.get("application_type") == application_type]
        return rows

    @staticmethod
    def get_stats(client: Client) -> Dict[str, Any]:
        rows = ApplicationService.list_applications(client)
        by_status = Counter(r.get("status") for r in rows)
        return {
            "total": len(rows),
            "pending": by_status.get("pending", 0),
            "recommended": by_status.get("recommended", 0),
            "approved": sum(by_status.get(s, 0) for s in DECIDED_STATUSES),
            "by_status": dict(by_status),
        }

    @staticmethod
    def get_application(client: Client, application_id: str) -> dict:
        response = (
            client.table(APPLICATIONS_TABLE)
            .select("*")
            .eq("id", application_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            raise ValueError("Application not found")
        return response.data[0]

    @staticmethod
    def get_detail(client: Client, application_id: str, user_id: str) -> Dict[str, Any]:
        """Row, votes with tally and the caller's vote, and notes newest first."""
        application = ApplicationService.get_application(client, application_id)
        votes = (
            client.table(VOTES_TABLE)
            .select("*")
            .eq("application_id", application_id)
            .execute()
        ).data or []
        notes = (
            client.table(NOTES_TABLE)
            .select("*")
            .eq("application_id", application_id)
            .order("created_at", desc=True)
            .execute()
        ).data or []
        my_vote = next((v for v in votes if v.get("voter_id") == user_id), None)
        return {
            "application": application,
            "votes": votes,
            "tally": tally_votes(votes),
            "my_vote": my_vote,
            "notes": notes,
        }

    # ------------------------------------------------------------------
    # votes / notes / recommend
    # ------------------------------------------------------------------

    @staticmethod
    def cast_vote(
        client: Client,
        application_id: str,
        voter_id: str,
        vote: str,
        comment: Optional[str] = None,
    ) -> dict:
        """Upsert the caller's vote; one row per (application, voter).

        Votes never change the application's status and are accepted at
        any status, including after a decision.

        Raises:
            ValueError: If the vote choice is unknown or the application
                is not found.
        """
        if vote not in VOTE_CHOICES:
            raise ValueError(f"Invalid vote '{vote}'")
        ApplicationService.get_application(client, application_id)
        row = {
            "application_id": application_id,
            "voter_id": voter_id,
            "vote": vote,
            "comment": comment,
        }
        response = (
            client.table(VOTES_TABLE)
            .upsert(row, on_conflict="application_id,voter_id")
            .execute()
        )
        logger.info("Vote %s recorded on application %s", vote, application_id)
        return response.data[0] if response.data else row

    @staticmethod
    def add_note(client: Client, application_id: str, user_id: str, note: str) -> dict:
        if not note.strip():
            raise ValueError("Note cannot be empty")
        ApplicationService.get_application(client, application_id)
        row = {
            "application_id": application_id,
            "user_id": user_id,
            "note": note,
            "is_internal": True,
        }
        response = client.table(NOTES_TABLE).insert(row).execute()
        return response.data[0] if response.data else row

    @staticmethod
    def recommend(
        client: Client, application_id: str, user_id: str, summary: str
    ) -> dict:
        """Forward an application to the board with a written summary."""
        if not summary.strip():
            raise ValueError("Please provide a recommendation summary")
        ApplicationService.get_application(client, application_id)
        updates = {
            "status": ApplicationStatus.RECOMMENDED.value,
            "recommendation_summary": summary,
            "recommended_by": user_id,
            "recommended_at": _now_iso(),
            "updated_at": _now_iso(),
        }
        response = (
            client.table(APPLICATIONS_TABLE)
            .update(updates)
            .eq("id", application_id)
            .execute()
        )
        logger.info("Application %s recommended by %s", application_id, user_id)
        if not response.data:
            raise ValueError("Application not found")
        return response.data[0]

    # ------------------------------------------------------------------
    # update_status
    # ------------------------------------------------------------------

    @staticmethod
    def update_status(
        client: Client, application_id: str, new_status: str, changed_by: str
    ) -> dict:
        """Move an application along ALLOWED_TRANSITIONS.

        Raises:
            ValueError: If the application is not found or the transition
                is invalid.
        """
        application = ApplicationService.get_application(client, application_id)
        current = application.get("status", "pending")
        allowed = ALLOWED_TRANSITIONS.get(current, [])
        if new_status not in allowed:
            raise ValueError(
                f"Invalid status transition from '{current}' to '{new_status}'. "
                f"Allowed: {allowed}"
            )
        response = (
            client.table(APPLICATIONS_TABLE)
            .update({"status": new_status, "updated_at": _now_iso()})
            .eq("id", application_id)
            .execute()
        )
        logger.info(
            "Application %s status %s -> %s by %s",
            application_id,
            current,
            new_status,
            changed_by,
        )
        if not response.data:
            raise ValueError("Application not found")
        return response.data[0]
