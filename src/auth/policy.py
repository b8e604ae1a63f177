"""Row visibility rules evaluated on every request.

Clients are owner-scoped; containers are role-scoped:

- admin: every row
- operator: containers of the assigned client (plus owned clients)
- member: containers whose client the member owns

Container scope is expressed as a mapping of column name to required value
so the list query builder can apply it as mandatory equality filters before
any user-chosen filter.
"""

from collections.abc import Mapping
from typing import Any

from sqlalchemy import ColumnElement, or_

from src.auth.identity import Identity
from src.core.logging import get_logger
from src.models.client import Client

logger = get_logger(__name__)

CONTAINER_LIST_PATH = "/containers"


class AccessDenied(Exception):
    """Raised when an identity may not read or write a row.

    Attributes:
        message: User-facing notice text.
        redirect_to: Where the frontend should send the user.
    """

    def __init__(self, message: str, redirect_to: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.redirect_to = redirect_to


def container_scope(identity: Identity) -> dict[str, Any]:
    """Return mandatory equality filters restricting visible containers.

    Keys are column names of the container stats view. An operator without
    an assigned client gets ``client_id == None``, which matches nothing
    because every container references a client.

    Args:
        identity: Requesting identity.

    Returns:
        Column name to required value; empty for admins.
    """
    if identity.is_admin:
        return {}
    if identity.is_operator:
        return {"client_id": identity.client_id}
    return {"client_owner_id": identity.user_id}


def scope_clauses(
    columns: Mapping[str, ColumnElement[Any]],
    scope: Mapping[str, Any],
) -> list[ColumnElement[bool]]:
    """Translate a scope mapping into SQL equality clauses.

    Args:
        columns: Column lookup (e.g. ``subquery.c``) keyed by scope name.
        scope: Mapping produced by :func:`container_scope`.

    Returns:
        List of clauses to AND into a WHERE.

    Raises:
        KeyError: If the scope names a column the selectable lacks.
    """
    clauses: list[ColumnElement[bool]] = []
    for name, value in scope.items():
        column = columns[name]
        clauses.append(column.is_(None) if value is None else column == value)
    return clauses


def client_visibility_clause(identity: Identity) -> ColumnElement[bool] | None:
    """Return the WHERE clause limiting readable clients, or None for admins."""
    if identity.is_admin:
        return None
    clauses = [Client.owner_id == identity.user_id]
    if identity.is_operator and identity.client_id is not None:
        clauses.append(Client.id == identity.client_id)
    return or_(*clauses)


def can_view_client(identity: Identity, client: Client) -> bool:
    """Check read access to a single client row."""
    if identity.is_admin or client.owner_id == identity.user_id:
        return True
    return identity.is_operator and client.id == identity.client_id


def can_edit_client(identity: Identity, client: Client) -> bool:
    """Check write access to a single client row (owner or admin)."""
    return identity.is_admin or client.owner_id == identity.user_id


def can_view_container(
    identity: Identity,
    *,
    client_id: int,
    client_owner_id: int | None,
) -> bool:
    """Check visibility of one container given its client's references."""
    scope = container_scope(identity)
    actual = {"client_id": client_id, "client_owner_id": client_owner_id}
    return all(actual[name] == value and value is not None for name, value in scope.items())


def assert_container_visible(
    identity: Identity,
    *,
    container_id: int,
    client_id: int,
    client_owner_id: int | None,
) -> None:
    """Raise AccessDenied when the identity may not see the container."""
    if can_view_container(
        identity, client_id=client_id, client_owner_id=client_owner_id
    ):
        return
    logger.warning(
        "container_access_denied",
        container_id=container_id,
        container_client_id=client_id,
    )
    raise AccessDenied(
        "Access denied to this container",
        redirect_to=CONTAINER_LIST_PATH,
    )


def assert_admin(identity: Identity) -> None:
    """Raise AccessDenied unless the identity is an admin."""
    if not identity.is_admin:
        raise AccessDenied("Administrator role required")
