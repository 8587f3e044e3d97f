from pathlib import Path

import pytest

import darwinv7.configs as configs
from darwinv7.api.base_api import ApiConfig
from darwinv7.api.client import Api
from darwinv7.exceptions import ConfigError

_DARWIN_CONFIG = """
global:
  api_endpoint: https://darwin.v7labs.com/api
  base_url: https://darwin.v7labs.com
  default_team: my-team
teams:
  my-team:
    api_key: abc.123
    datasets_dir: /data/darwin
  other-team:
    datasets_dir: /data/other
"""


@pytest.fixture
def home_config(tmp_path: Path, monkeypatch) -> Path:
    """Location of the user's Darwin config file; the file itself is not created."""
    path = tmp_path / '.darwin' / 'config.yaml'
    monkeypatch.setattr(configs, 'DARWIN_CONFIG_FILE', path)
    for env_var in configs.ENV_VARS.values():
        monkeypatch.delenv(env_var, raising=False)
    return path


@pytest.fixture
def darwin_config_file(tmp_path: Path) -> Path:
    path = tmp_path / 'config.yaml'
    path.write_text(_DARWIN_CONFIG)
    return path


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


class TestConfigs:
    def test_nothing_configured(self, home_config: Path):
        for key in configs.ENV_VARS:
            assert configs.get_value(key) is None

    def test_env_vars(self, home_config: Path, monkeypatch):
        monkeypatch.setenv('DARWIN_API_KEY', 'env-key')
        monkeypatch.setenv('DARWIN_TRANSPORT', 'aiohttp')

        assert configs.get_value(configs.APIKEY_KEY) == 'env-key'
        assert configs.get_value(configs.TRANSPORT_KEY) == 'aiohttp'

    def test_values_from_darwin_config(self, home_config: Path):
        _write(home_config, _DARWIN_CONFIG)

        assert configs.get_value(configs.APIURL_KEY) == 'https://darwin.v7labs.com/api'
        assert configs.get_value(configs.TEAM_KEY) == 'my-team'
        assert configs.get_value(configs.APIKEY_KEY) == 'abc.123'
        assert configs.get_value(configs.APIKEY_KEY, team='other-team') is None
        assert configs.get_value(configs.APIKEY_KEY, team='ghost-team') is None
        assert configs.get_value(configs.TRANSPORT_KEY) is None

    def test_env_var_takes_precedence(self, home_config: Path, monkeypatch):
        _write(home_config, _DARWIN_CONFIG)
        monkeypatch.setenv('DARWIN_API_KEY', 'env-key')

        assert configs.get_value(configs.APIKEY_KEY) == 'env-key'

    def test_invalid_darwin_config(self, home_config: Path):
        _write(home_config, "teams: {}\n")
        with pytest.raises(ConfigError, match='global'):
            configs.get_value(configs.APIKEY_KEY)

    def test_unknown_key(self, home_config: Path):
        with pytest.raises(ConfigError, match='Unknown setting'):
            configs.get_value('password')

    def test_api_reads_environment(self, home_config: Path, monkeypatch):
        monkeypatch.setenv('DARWIN_API_KEY', 'env-key')
        monkeypatch.setenv('DARWIN_TEAM', 'env-team')
        monkeypatch.setenv('DARWIN_TRANSPORT', 'aiohttp')

        api = Api()

        assert api.config == ApiConfig(server_url=Api.DEFAULT_SERVER_URL,
                                       api_key='env-key',
                                       team_slug='env-team',
                                       transport='aiohttp')

    def test_api_reads_darwin_config(self, home_config: Path):
        _write(home_config, _DARWIN_CONFIG)

        api = Api()

        assert api.config.server_url == 'https://darwin.v7labs.com/api'
        assert api.config.team_slug == 'my-team'
        assert api.config.api_key == 'abc.123'
        assert api.config.transport == 'httpx'

    def test_api_key_of_selected_team(self, home_config: Path, monkeypatch):
        _write(home_config, _DARWIN_CONFIG)
        monkeypatch.setenv('DARWIN_TEAM', 'other-team')

        with pytest.raises(ConfigError, match='DARWIN_API_KEY'):
            Api()

    def test_api_without_key(self, home_config: Path):
        with pytest.raises(ConfigError, match='DARWIN_API_KEY'):
            Api()

    def test_api_invalid_url(self, home_config: Path):
        with pytest.raises(ConfigError):
            Api(server_url='wrong', api_key='key')


class TestDarwinConfigFile:
    def test_load(self, darwin_config_file: Path):
        config = configs.load_darwin_config(darwin_config_file)

        assert config.api_endpoint == 'https://darwin.v7labs.com/api'
        assert config.base_url == 'https://darwin.v7labs.com'
        assert config.default_team == 'my-team'
        assert config.teams['my-team'].api_key == 'abc.123'
        assert config.teams['my-team'].datasets_dir == Path('/data/darwin')
        assert config.teams['other-team'].api_key is None

    def test_api_config_for_default_team(self, darwin_config_file: Path):
        api_config = configs.load_darwin_config(darwin_config_file).api_config(timeout=10.0)

        assert api_config.server_url == 'https://darwin.v7labs.com/api'
        assert api_config.api_key == 'abc.123'
        assert api_config.team_slug == 'my-team'
        assert api_config.timeout == 10.0

    def test_team_without_api_key(self, darwin_config_file: Path):
        config = configs.load_darwin_config(darwin_config_file)
        with pytest.raises(ConfigError):
            config.api_config('other-team')

    def test_unknown_team(self, darwin_config_file: Path):
        config = configs.load_darwin_config(darwin_config_file)
        with pytest.raises(ConfigError, match='not found'):
            config.api_config('ghost-team')

    def test_api_from_darwin_config(self, darwin_config_file: Path):
        api = Api.from_darwin_config(str(darwin_config_file), transport='httpx')
        assert api.config.team_slug == 'my-team'
        assert api.config.api_key == 'abc.123'

    @pytest.mark.parametrize('content,message', [
        ("teams: {}\n", "global"),
        ("global:\n  api_endpoint: https://x.com/api\n  base_url: https://x.com\n  default_team: t\n", "teams"),
        ("global:\n  api_endpoint: https://x.com/api\n  default_team: t\nteams: {}\n", "base_url"),
        ("global:\n  api_endpoint: 3\n  base_url: https://x.com\n  default_team: t\nteams: {}\n", "string"),
        ("global: [unclosed\n", "parse"),
        ("just text", "parse"),
    ])
    def test_invalid_content(self, content: str, message: str):
        with pytest.raises(ConfigError, match=message):
            configs.parse_darwin_config(content)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match='Unable to read'):
            configs.load_darwin_config(tmp_path / 'missing.yaml')
