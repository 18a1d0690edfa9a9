# =============================================================================
# parlor_core/auth/identity.py
# Current User Identity, Roles and Data Scope
# =============================================================================
"""
Sign-in itself is handled by Supabase Auth. This module only turns the
signed-in user into an Identity (user id, role, parlor) and derives the
Scope a repository is built with.

Role visibility:
- staff:       only records they own (clients they created, tasks assigned to them)
- admin:       every record of their parlor
- super_admin: every record of the selected parlor
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from parlor_core.logging import get_logger

logger = get_logger(__name__)


class Role(str, Enum):
    STAFF = "staff"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


@dataclass(frozen=True)
class Identity:
    """The signed-in user as seen by the data layer."""
    user_id: str
    role: Role = Role.STAFF
    parlor_id: Optional[str] = None
    name: Optional[str] = None

    @property
    def sees_only_own_records(self) -> bool:
        return self.role == Role.STAFF


@dataclass(frozen=True)
class Scope:
    """
    Filters a repository is bound to.

    Attributes:
        tenant_id: Parlor id every record must belong to (None = unscoped)
        owner_id: Restrict owner-scoped collections to this user (None = all)
    """
    tenant_id: Optional[str] = None
    owner_id: Optional[str] = None


def scope_for(identity: Optional[Identity], parlor_id: Optional[str] = None) -> Scope:
    """
    Derive the data scope for a user.

    Args:
        identity: Signed-in user (None = anonymous, local-only use)
        parlor_id: Parlor selected in the UI; super admins may pick any parlor,
            everyone else is pinned to their own

    Returns:
        Scope for building repositories
    """
    if identity is None:
        return Scope(tenant_id=parlor_id)

    if identity.role == Role.SUPER_ADMIN:
        tenant = parlor_id or identity.parlor_id
    else:
        tenant = identity.parlor_id

    owner = identity.user_id if identity.sees_only_own_records else None
    return Scope(tenant_id=tenant, owner_id=owner)


def parse_role(raw: Any) -> Role:
    """Map a stored role string to Role, defaulting to the least privileged."""
    try:
        return Role(str(raw).strip().lower())
    except ValueError:
        logger.warning(f"Unknown role {raw!r}; treating user as staff")
        return Role.STAFF


def resolve_identity(client) -> Optional[Identity]:
    """
    Build the Identity of the signed-in user from Supabase Auth and the
    `users` profile table.

    Args:
        client: supabase Client (or None when running local-only)

    Returns:
        Identity, or None if nobody is signed in or the profile is missing
    """
    if client is None:
        return None

    try:
        response = client.auth.get_user()
        user = getattr(response, "user", None)
        if user is None:
            return None

        profile = (
            client.table("users")
            .select("id, name, role, parlor_id")
            .eq("id", user.id)
            .limit(1)
            .execute()
        )
    except Exception as e:
        # No session, expired token or unreachable backend: treat as anonymous
        logger.warning(f"Could not resolve signed-in user: {e}")
        return None

    rows = profile.data or []
    if not rows:
        logger.warning(f"No profile row for user {user.id}")
        return None

    row = rows[0]
    return Identity(
        user_id=str(user.id),
        role=parse_role(row.get("role")),
        parlor_id=row.get("parlor_id"),
        name=row.get("name"),
    )


def visible_to(
    identity: Optional[Identity],
    records: Iterable[Dict[str, Any]],
    owner_field: Optional[str],
) -> List[Dict[str, Any]]:
    """
    Apply role-based visibility to an already loaded snapshot.

    Staff only see records whose owner_field matches their user id;
    admins and super admins see everything. Collections without an
    owner field are visible to everyone in the parlor.
    """
    records = list(records)
    if identity is None or owner_field is None or not identity.sees_only_own_records:
        return records
    return [r for r in records if r.get(owner_field) == identity.user_id]


def sign_in(client, email: str, password: str) -> Optional[Identity]:
    """
    Sign in with Supabase Auth email/password and resolve the Identity.

    Returns:
        Identity, or None when the credentials are refused or the backend fails
    """
    if client is None:
        return None

    try:
        client.auth.sign_in_with_password({"email": email, "password": password})
    except Exception as e:
        logger.warning(f"Sign-in failed for {email}: {e}")
        return None

    identity = resolve_identity(client)
    if identity is not None:
        logger.info(f"Signed in {identity.user_id} as {identity.role.value}")
    return identity


def sign_out(client) -> None:
    """End the Supabase Auth session, if any."""
    if client is None:
        return
    try:
        client.auth.sign_out()
    except Exception as e:
        logger.warning(f"Sign-out failed: {e}")
