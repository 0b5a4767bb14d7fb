"""Password sign-in and volunteer sign-up against Supabase Auth.

Sign-in and sign-up run on a throwaway anon-key client (``auth_client``)
so the shared service-role client never holds a user session. Profile
reads and writes go through the service-role client.
"""

import logging
from typing import Any, Dict, Optional

from supabase import Client

logger = logging.getLogger(__name__)

STAFF_ROLES = ("staff", "admin", "owner")

SIGNUP_FAILED_MESSAGE = (
    "Could not create account. The email may already be registered; "
    "try signing in instead."
)


class AuthenticationError(Exception):
    """Credentials were rejected by Supabase Auth."""


class NotStaffError(PermissionError):
    """Signed in successfully but the account has no staff role."""


def _session_payload(auth_response: Any, portal: str, role: Optional[str] = None) -> Dict[str, Any]:
    user = auth_response.user
    session = auth_response.session
    return {
        "access_token": session.access_token if session else None,
        "refresh_token": session.refresh_token if session else None,
        "expires_in": session.expires_in if session else None,
        "user_id": user.id,
        "email": user.email,
        "role": role,
        "portal": portal,
    }


def _sign_in(auth_client: Client, email: str, password: str) -> Any:
    try:
        response = auth_client.auth.sign_in_with_password(
            {"email": email, "password": password}
        )
    except Exception as e:
        logger.info("Sign-in rejected for %s: %s", email, type(e).__name__)
        raise AuthenticationError("Invalid email or password") from e
    if response is None or response.user is None or response.session is None:
        raise AuthenticationError("Invalid email or password")
    return response


def get_staff_role(client: Client, user_id: str) -> Optional[str]:
    rows = (
        client.table("user_profiles")
        .select("role")
        .eq("id", user_id)
        .limit(1)
        .execute()
    ).data
    return rows[0].get("role") if rows else None


def get_volunteer_profile(client: Client, user_id: str) -> Optional[dict]:
    rows = (
        client.table("volunteer_profiles")
        .select("*")
        .eq("user_id", user_id)
        .limit(1)
        .execute()
    ).data
    return rows[0] if rows else None


def staff_login(auth_client: Client, client: Client, email: str, password: str) -> Dict[str, Any]:
    """Sign in and require a staff, admin or owner profile.

    Raises:
        AuthenticationError: Bad credentials.
        NotStaffError: Valid account without a staff role; the fresh
            session is signed out again.
    """
    response = _sign_in(auth_client, email, password)
    role = get_staff_role(client, response.user.id)
    if role not in STAFF_ROLES:
        try:
            auth_client.auth.sign_out()
        except Exception as e:
            logger.warning("Sign-out after staff check failed: %s", e)
        raise NotStaffError("This account does not have staff access")
    logger.info("Staff sign-in: user=%s role=%s", response.user.id, role)
    return _session_payload(response, "staff", role)


def volunteer_login(auth_client: Client, email: str, password: str) -> Dict[str, Any]:
    response = _sign_in(auth_client, email, password)
    logger.info("Volunteer sign-in: user=%s", response.user.id)
    return _session_payload(response, "volunteer")


def volunteer_signup(auth_client: Client, client: Client, data: Dict[str, Any]) -> Dict[str, Any]:
    """Create the auth user, then the matching ``volunteer_profiles`` row.

    Raises:
        ValueError: If Supabase refuses the sign-up (e.g. email taken).
    """
    try:
        response = auth_client.auth.sign_up(
            {"email": data["email"], "password": data["password"]}
        )
    except Exception as e:
        logger.warning("Volunteer sign-up rejected: %s: %s", type(e).__name__, e)
        raise ValueError(SIGNUP_FAILED_MESSAGE) from e
    if response is None or response.user is None:
        raise ValueError(SIGNUP_FAILED_MESSAGE)

    profile = {
        "user_id": response.user.id,
        "full_name": data["full_name"],
        "email": data["email"],
        "phone": data.get("phone") or None,
        "notify_email": data.get("notify_email", True),
        "notify_sms": data.get("notify_sms", False),
        "interests": data.get("interests") or [],
        "hours_completed": 0,
    }
    client.table("volunteer_profiles").insert(profile).execute()
    logger.info("Volunteer account created: user=%s", response.user.id)

    payload = _session_payload(response, "volunteer")
    if payload["access_token"] is None:
        payload["message"] = "Account created! Check your email to confirm your address."
    else:
        payload["message"] = "Account created!"
    return payload


def logout(client: Client, access_token: str) -> None:
    """Revoke the caller's session server-side."""
    client.auth.admin.sign_out(access_token)
