"""Authentication, sessions and row visibility rules."""

from src.auth.identity import Identity
from src.auth.policy import (
    AccessDenied,
    assert_admin,
    assert_container_visible,
    can_edit_client,
    can_view_client,
    can_view_container,
    client_visibility_clause,
    container_scope,
    scope_clauses,
)
from src.auth.sessions import (
    create_session,
    load_identity,
    revoke_session,
    revoke_user_sessions,
)

__all__ = [
    "Identity",
    # Policy
    "AccessDenied",
    "assert_admin",
    "assert_container_visible",
    "can_edit_client",
    "can_view_client",
    "can_view_container",
    "client_visibility_clause",
    "container_scope",
    "scope_clauses",
    # Sessions
    "create_session",
    "load_identity",
    "revoke_session",
    "revoke_user_sessions",
]
