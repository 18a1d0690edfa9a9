from parlor_core.auth.identity import (
    Role,
    Identity,
    Scope,
    scope_for,
    parse_role,
    resolve_identity,
    sign_in,
    sign_out,
    visible_to,
)

__all__ = [
    "Role",
    "Identity",
    "Scope",
    "scope_for",
    "parse_role",
    "resolve_identity",
    "sign_in",
    "sign_out",
    "visible_to",
]
