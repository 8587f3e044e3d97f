import logging
from typing import Optional

from .base_api import ApiConfig
from .endpoints import AnnotationClassesApi, DatasetsApi, ItemsApi, TeamsApi, WorkflowsApi
from .transport import TransportExecutor, create_transport
import darwinv7.configs
from darwinv7.exceptions import ConfigError

_LOGGER = logging.getLogger(__name__)


class Api:
    """Main API client that provides access to all endpoint handlers.

    All endpoint handlers share one transport. Use the client as an async
    context manager, or call :meth:`aclose`, to release the connections::

        async with Api(team_slug='my-team') as api:
            workflow = await api.workflows.get_by_id(workflow_id)
    """
    DEFAULT_SERVER_URL = 'https://darwin.v7labs.com/api'
    DARWIN_API_VENV_NAME = darwinv7.configs.ENV_VARS[darwinv7.configs.APIKEY_KEY]

    def __init__(self,
                 server_url: str | None = None,
                 api_key: Optional[str] = None,
                 team_slug: str | None = None,
                 timeout: float = 30.0,
                 transport: str | None = None,
                 verify_ssl: bool = True,
                 executor: TransportExecutor | None = None) -> None:
        """Initialize the API client.

        Arguments left as ``None`` are read from the environment, then from
        ``~/.darwin/config.yaml`` (see :func:`darwinv7.configs.get_value`).

        Args:
            server_url: Base URL for the API.
            api_key: API key for authentication.
            team_slug: Team used by team-scoped endpoints (items, workflows, annotation classes).
            timeout: Request timeout in seconds.
            transport: Network backend, ``'httpx'`` (default) or ``'aiohttp'``.
            verify_ssl: Whether TLS certificates are verified.
            executor: Transport executor to use instead of a built-in backend.

        Raises:
            ConfigError: If no API key is available or a setting is invalid.
        """
        if server_url is None:
            server_url = darwinv7.configs.get_value(darwinv7.configs.APIURL_KEY)
            if server_url is None:
                server_url = Api.DEFAULT_SERVER_URL
        if team_slug is None:
            team_slug = darwinv7.configs.get_value(darwinv7.configs.TEAM_KEY)
        if api_key is None:
            api_key = darwinv7.configs.get_value(darwinv7.configs.APIKEY_KEY, team=team_slug)
            if api_key is None:
                msg = f"API key not provided! Use the environment variable " + \
                    f"{Api.DARWIN_API_VENV_NAME}, a Darwin config.yaml or pass it as an argument."
                raise ConfigError(msg)
        if transport is None:
            transport = darwinv7.configs.get_value(darwinv7.configs.TRANSPORT_KEY) or 'httpx'

        self.config = ApiConfig(
            server_url=server_url,
            api_key=api_key,
            team_slug=team_slug,
            timeout=timeout,
            transport=transport,
            verify_ssl=verify_ssl
        )
        self._executor = executor
        # Initialize endpoint handlers
        self._teams = None
        self._datasets = None
        self._items = None
        self._annotation_classes = None
        self._workflows = None

    @classmethod
    def from_darwin_config(cls,
                           path: str | None = None,
                           team: str | None = None,
                           **kwargs) -> 'Api':
        """Create a client from a V7 ``config.yaml`` file.

        Args:
            path: Config file. Defaults to ``~/.darwin/config.yaml``.
            team: Team slug. Defaults to the file's default team.
            **kwargs: Other arguments of :class:`Api`.
        """
        config = darwinv7.configs.load_darwin_config(path).api_config(team)
        return cls(server_url=config.server_url,
                   api_key=config.api_key,
                   team_slug=config.team_slug,
                   **kwargs)

    @property
    def executor(self) -> TransportExecutor:
        """The transport shared by every endpoint handler."""
        if self._executor is None:
            self._executor = create_transport(self.config.transport,
                                              timeout=self.config.timeout,
                                              verify_ssl=self.config.verify_ssl)
        return self._executor

    @property
    def teams(self) -> TeamsApi:
        """Access to team-related endpoints."""
        if self._teams is None:
            self._teams = TeamsApi(self.config, self.executor)
        return self._teams

    @property
    def datasets(self) -> DatasetsApi:
        """Access to dataset-related endpoints."""
        if self._datasets is None:
            self._datasets = DatasetsApi(self.config, self.executor)
        return self._datasets

    @property
    def items(self) -> ItemsApi:
        """Access to item-related endpoints."""
        if self._items is None:
            self._items = ItemsApi(self.config, self.executor)
        return self._items

    @property
    def annotation_classes(self) -> AnnotationClassesApi:
        """Access to annotation class endpoints."""
        if self._annotation_classes is None:
            self._annotation_classes = AnnotationClassesApi(self.config, self.executor)
        return self._annotation_classes

    @property
    def workflows(self) -> WorkflowsApi:
        """Access to workflow endpoints."""
        if self._workflows is None:
            self._workflows = WorkflowsApi(self.config, self.executor)
        return self._workflows

    async def check_connection(self) -> None:
        """Make one request to check the server URL and API key.

        Raises:
            DarwinV7Exception: The failure of the request.
        """
        await self.teams.get_list()

    async def aclose(self) -> None:
        """Close the HTTP client connections."""
        if self._executor is not None:
            await self._executor.aclose()

    async def __aenter__(self) -> 'Api':
        """Context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        await self.aclose()
