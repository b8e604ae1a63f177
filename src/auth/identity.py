"""Authenticated identity passed explicitly to data-access calls."""

from dataclasses import dataclass

from src.models.user import Role, User


@dataclass(frozen=True)
class Identity:
    """Who is making the request.

    Built once per request from the bearer session and handed to every
    query or policy check instead of living in process-wide state.

    Attributes:
        user_id: ID of the signed-in account.
        email: Account email.
        role: Account role driving row visibility.
        client_id: Assigned client for operator accounts.
        full_name: Display name, if known.
    """

    user_id: int
    email: str
    role: Role
    client_id: int | None = None
    full_name: str | None = None

    @property
    def is_admin(self) -> bool:
        """Return True when the identity bypasses row restrictions."""
        return self.role == Role.ADMIN

    @property
    def is_operator(self) -> bool:
        """Return True when the identity is pinned to a single client."""
        return self.role == Role.OPERATOR

    @classmethod
    def from_user(cls, user: User) -> "Identity":
        """Build an identity from a persisted account."""
        return cls(
            user_id=user.id,
            email=user.email,
            role=user.role,
            client_id=user.client_id,
            full_name=user.full_name,
        )
