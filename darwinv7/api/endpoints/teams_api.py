import logging
from urllib.parse import quote

from darwinv7.api.base_api import ApiConfig, EntityBaseApi
from darwinv7.api.transport import TransportExecutor
from darwinv7.entities import Team, TeamMember, Workflow, WorkflowBuilder
from darwinv7.exceptions import ConfigError

_LOGGER = logging.getLogger(__name__)


class TeamsApi(EntityBaseApi[Team]):
    """API handler for team-related endpoints."""

    def __init__(self, config: ApiConfig, transport: TransportExecutor | None = None) -> None:
        super().__init__(config, Team, 'teams', transport)

    async def get_list(self) -> list[Team]:
        """Get the teams visible to the configured API key."""
        return await self._get_list()

    async def get_by_slug(self, slug: str) -> Team:
        """Get a team by its slug.

        Args:
            slug: The team slug, e.g. ``my-team``.

        Raises:
            HttpStatusError: With status 404 if no team has that slug.
        """
        return await self.get_by_id(slug)

    async def list_memberships(self) -> list[TeamMember]:
        """Get the members of the configured team."""
        return await self._make_list_request('memberships', TeamMember)

    async def find_members_by_email(self, email: str) -> list[TeamMember]:
        """Get the members whose email matches ``email`` (case-insensitive)."""
        members = await self.list_memberships()
        email = email.lower()
        return [m for m in members if m.email is not None and m.email.lower() == email]

    async def create_workflow(self,
                              workflow: WorkflowBuilder,
                              team: 'str | Team | None' = None) -> Workflow:
        """Create a workflow owned by a team.

        Args:
            workflow: Name and ordered stages of the new workflow.
            team: Team slug or Team. Defaults to the configured team.

        Returns:
            The created workflow, with the stages in the order they were sent.

        Raises:
            ConfigError: If ``team`` is a Team without a slug. Nothing is sent.
            EncodeError: If the stage graph is invalid. Nothing is sent.
        """
        if isinstance(team, Team):
            if not team.slug:
                raise ConfigError(f"Team {team.id} has no slug; fetch it with get_by_slug or pass the slug")
            team = team.slug
        team_slug = team or self.team_slug
        _LOGGER.info(f"Creating workflow '{workflow.name}' with {len(workflow.stages)} stages in team {team_slug}")
        return await self._make_request('POST',
                                        f"v2/teams/{quote(team_slug, safe='')}/workflows",
                                        response_type=Workflow,
                                        body=workflow)
