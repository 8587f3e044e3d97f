"""Settings of the darwinv7 client.

:class:`~darwinv7.api.client.Api` arguments left out are looked up with
:func:`get_value`: first in the environment (``DARWIN_API_KEY``,
``DARWIN_API_URL``, ``DARWIN_TEAM``, ``DARWIN_TRANSPORT``), then in the V7
``config.yaml`` shared with other Darwin tools (``~/.darwin/config.yaml``),
read with :func:`load_darwin_config`.
"""
import yaml
import os
import logging
from dataclasses import dataclass, field
from typing import Dict, TYPE_CHECKING
from pathlib import Path
from darwinv7.exceptions import ConfigError

if TYPE_CHECKING:
    from darwinv7.api.base_api import ApiConfig

APIURL_KEY = 'default_api_url'
APIKEY_KEY = 'api_key'
TEAM_KEY = 'default_team'
TRANSPORT_KEY = 'transport'

ENV_VARS = {
    APIKEY_KEY: 'DARWIN_API_KEY',
    APIURL_KEY: 'DARWIN_API_URL',
    TEAM_KEY: 'DARWIN_TEAM',
    TRANSPORT_KEY: 'DARWIN_TRANSPORT',
}

_LOGGER = logging.getLogger(__name__)

DARWIN_CONFIG_FILE = Path.home() / '.darwin' / 'config.yaml'


def get_value(key: str,
              team: str | None = None,
              path: str | os.PathLike | None = None) -> str | None:
    """Look up one setting, the environment taking precedence over ``config.yaml``.

    Args:
        key: One of ``APIKEY_KEY``, ``APIURL_KEY``, ``TEAM_KEY`` or ``TRANSPORT_KEY``.
        team: Team whose API key is read from ``config.yaml``. Defaults to the file's default team.
        path: Darwin config file. Defaults to ``~/.darwin/config.yaml``; a missing file is not an error.

    Returns:
        The value, or ``None`` when no source defines it. The transport is only read from the environment.

    Raises:
        ConfigError: If ``key`` is unknown, or the config file exists but is invalid.
    """
    if key not in ENV_VARS:
        raise ConfigError(f"Unknown setting '{key}'. Choose one of: {', '.join(ENV_VARS)}")
    env_var = os.getenv(ENV_VARS[key])
    if env_var is not None:
        return env_var

    path = Path(path) if path is not None else DARWIN_CONFIG_FILE
    if key == TRANSPORT_KEY or not path.exists():
        return None
    config = load_darwin_config(path)
    if key == APIURL_KEY:
        return config.api_endpoint
    if key == TEAM_KEY:
        return config.default_team
    team_config = config.teams.get(team or config.default_team)
    return team_config.api_key if team_config is not None else None


@dataclass(frozen=True)
class TeamConfig:
    """A team entry of the V7 ``config.yaml``."""
    slug: str
    api_key: str | None = None
    datasets_dir: Path | None = None


@dataclass(frozen=True)
class DarwinConfig:
    """Contents of the V7 ``config.yaml``.

    Attributes:
        base_url: Web address of the Darwin instance.
        api_endpoint: Base URL of the API.
        default_team: Slug of the team used when none is given.
        teams: Team entries, keyed by slug.
    """
    base_url: str
    api_endpoint: str
    default_team: str
    teams: dict[str, TeamConfig] = field(default_factory=dict)

    def api_config(self, team: str | None = None, **kwargs) -> 'ApiConfig':
        """Build an :class:`~darwinv7.api.base_api.ApiConfig` for one team.

        Args:
            team: Team slug. Defaults to ``default_team``.
            **kwargs: Other ``ApiConfig`` fields (``timeout``, ``transport``, ...).

        Raises:
            ConfigError: If the team is unknown or has no API key.
        """
        from darwinv7.api.base_api import ApiConfig

        team = team or self.default_team
        if team not in self.teams:
            raise ConfigError(f"The requested team '{team}' is not found in the config")
        api_key = self.teams[team].api_key
        if not api_key:
            raise ConfigError(f"Api key not found in configuration for team '{team}'")
        return ApiConfig(server_url=self.api_endpoint, api_key=api_key, team_slug=team, **kwargs)


def _get_str(section: Dict, key: str, section_name: str) -> str:
    if key not in section:
        raise ConfigError(f"Missing '{key}' from '{section_name}' in config")
    value = section[key]
    if not isinstance(value, str):
        raise ConfigError(f"'{section_name}.{key}' cannot be represented as a string")
    return value


def parse_darwin_config(content: str) -> DarwinConfig:
    """Parse the text of a V7 ``config.yaml``.

    Raises:
        ConfigError: If the document is not valid YAML or misses a required entry.
    """
    try:
        document = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(f"Unable to parse config file: {e}") from e
    if not isinstance(document, dict):
        raise ConfigError("Unable to parse config file: expected a mapping")

    global_section = document.get('global')
    if not isinstance(global_section, dict):
        raise ConfigError("Missing 'global' from config")
    team_section = document.get('teams')
    if not isinstance(team_section, dict):
        raise ConfigError("Missing 'teams' from config")

    teams = {}
    for slug, entry in team_section.items():
        entry = entry or {}
        if not isinstance(entry, dict):
            raise ConfigError(f"Invalid entry for team '{slug}'")
        api_key = entry.get('api_key')
        if api_key is not None and not isinstance(api_key, str):
            raise ConfigError(f"Invalid api-key for team '{slug}'")
        datasets_dir = entry.get('datasets_dir')
        teams[str(slug)] = TeamConfig(slug=str(slug),
                                      api_key=api_key,
                                      datasets_dir=Path(datasets_dir) if datasets_dir else None)

    return DarwinConfig(base_url=_get_str(global_section, 'base_url', 'global'),
                        api_endpoint=_get_str(global_section, 'api_endpoint', 'global'),
                        default_team=_get_str(global_section, 'default_team', 'global'),
                        teams=teams)


def load_darwin_config(path: str | os.PathLike | None = None) -> DarwinConfig:
    """Read a V7 ``config.yaml`` file.

    Args:
        path: File to read. Defaults to ``~/.darwin/config.yaml``.

    Raises:
        ConfigError: If the file cannot be read or parsed.
    """
    path = Path(path) if path is not None else DARWIN_CONFIG_FILE
    try:
        content = path.read_text()
    except OSError as e:
        raise ConfigError(f"Unable to read config file {path}: {e}") from e
    _LOGGER.debug(f"Loaded Darwin configuration from {path}.")
    return parse_darwin_config(content)
