"""Historical grants archive.

Administrators keep a ledger of past grants in the ``grants`` table,
separate from the online ``applications`` intake. Staff can search it
and export the filtered list to CSV (pandas).
"""

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from supabase import Client

logger = logging.getLogger(__name__)

GRANTS_TABLE = "grants"

CSV_COLUMNS = [
    "Date",
    "Applicant",
    "Organization",
    "Category",
    "Amount Requested",
    "Amount Approved",
    "Status",
    "Decision Date",
]


def _serialize(values: Dict[str, Any]) -> Dict[str, Any]:
    return {
        key: value.isoformat() if isinstance(value, (datetime, date)) else value
        for key, value in values.items()
    }


def filter_grants(
    grants: List[dict], search: Optional[str] = None, status: Optional[str] = None
) -> List[dict]:
    """Case-insensitive match on applicant, organization or description."""
    filtered = grants
    if search:
        term = search.lower()
        filtered = [
            g
            for g in filtered
            if term in (g.get("applicant_name") or "").lower()
            or term in (g.get("organization") or "").lower()
            or term in (g.get("description") or "").lower()
        ]
    if status and status != "all":
        filtered = [g for g in filtered if g.get("status") == status]
    return filtered


def list_grants(
    client: Client, search: Optional[str] = None, status: Optional[str] = None
) -> List[dict]:
    """All archive rows, newest application date first, filtered in memory."""
    rows = (
        client.table(GRANTS_TABLE)
        .select("*")
        .order("application_date", desc=True)
        .execute()
    ).data or []
    return filter_grants(rows, search, status)


def get_grant(client: Client, grant_id: str) -> dict:
    response = (
        client.table(GRANTS_TABLE).select("*").eq("id", grant_id).limit(1).execute()
    )
    if not response.data:
        raise ValueError("Grant not found")
    return response.data[0]


def create_grant(client: Client, data: Dict[str, Any], decided_by: str) -> dict:
    row = _serialize(data)
    row["status"] = row.get("status") or "approved"
    row["application_date"] = row.get("application_date") or datetime.now(
        timezone.utc
    ).isoformat()
    if row.get("amount_requested") is None:
        row["amount_requested"] = 0
    row["decided_by"] = decided_by
    response = client.table(GRANTS_TABLE).insert(row).execute()
    logger.info("Archive grant created for %s", row.get("applicant_name"))
    return response.data[0] if response.data else row


def update_grant(client: Client, grant_id: str, updates: Dict[str, Any]) -> dict:
    if not updates:
        raise ValueError("No fields to update")
    get_grant(client, grant_id)
    response = (
        client.table(GRANTS_TABLE)
        .update(_serialize(updates))
        .eq("id", grant_id)
        .execute()
    )
    return response.data[0] if response.data else {}


def delete_grant(client: Client, grant_id: str) -> None:
    get_grant(client, grant_id)
    client.table(GRANTS_TABLE).delete().eq("id", grant_id).execute()
    logger.info("Archive grant %s deleted", grant_id)


def export_filename(today: Optional[date] = None) -> str:
    today = today or datetime.now(timezone.utc).date()
    return f"grants-archive-{today.isoformat()}.csv"


def grants_to_csv(grants: List[dict]) -> str:
    """Render archive rows as CSV text with the spreadsheet headings.

    Raises:
        ValueError: If the DataFrame cannot be built.
    """
    import pandas as pd

    rows = [
        {
            "Date": g.get("application_date") or "",
            "Applicant": g.get("applicant_name") or "",
            "Organization": g.get("organization") or "",
            "Category": g.get("category") or "",
            "Amount Requested": g.get("amount_requested"),
            "Amount Approved": g.get("amount_approved") if g.get("amount_approved") is not None else "",
            "Status": g.get("status") or "",
            "Decision Date": g.get("decision_date") or "",
        }
        for g in grants
    ]
    try:
        df = pd.DataFrame(rows, columns=CSV_COLUMNS)
        csv_content = df.to_csv(index=False)
    except Exception as e:
        logger.error(f"Error generating grants CSV: {e}")
        raise ValueError(f"Failed to generate CSV export: {e}") from e
    logger.info(f"Generated CSV export for {len(grants)} grants")
    return csv_content
