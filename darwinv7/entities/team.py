from .base_entity import BaseEntity


class Team(BaseEntity):
    """A V7 team.

    Attributes:
        id: Numeric team identifier.
        name: Display name.
        slug: URL-safe identifier used by team-scoped endpoints.
    """

    id: int
    name: str | None = None
    slug: str | None = None
    default_role: str | None = None
    disabled: bool | None = None
    inserted_at: str | None = None
    updated_at: str | None = None


class TeamMember(BaseEntity):
    """A membership of a user in a team."""

    id: int
    user_id: int | None = None
    team_id: int | None = None
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    role: str | None = None

    def __str__(self) -> str:
        return f"{{id-{self.user_id}}}{self.first_name or ''} {self.last_name or ''} ({self.email or ''})"
