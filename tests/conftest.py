import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import pytest

from darwinv7.api.base_api import ApiConfig
from darwinv7.api.transport import RawResponse

TEST_URL = 'https://test_url.com/api'
TEST_API_KEY = 'test_api_key'
TEST_TEAM = 'my-team'


@dataclass
class SentRequest:
    method: str
    url: str
    headers: dict[str, str]
    body: bytes | None

    def json(self) -> Any:
        return json.loads(self.body) if self.body else None


@dataclass
class FakeTransport:
    """In-memory executor: replays queued responses and records what was sent."""
    responses: list[RawResponse] = field(default_factory=list)
    error: BaseException | None = None
    requests: list[SentRequest] = field(default_factory=list)
    closed: bool = False

    async def send(self,
                   method: str,
                   url: str,
                   headers: Mapping[str, str],
                   body: bytes | None = None) -> RawResponse:
        self.requests.append(SentRequest(method, url, dict(headers), body))
        if self.error is not None:
            raise self.error
        return self.responses.pop(0)

    async def aclose(self) -> None:
        self.closed = True


def json_response(payload: Any, status: int = 200) -> RawResponse:
    return RawResponse(status=status,
                       body=json.dumps(payload).encode('utf-8'),
                       headers={'content-type': 'application/json'})


@pytest.fixture
def api_config() -> ApiConfig:
    return ApiConfig(server_url=TEST_URL, api_key=TEST_API_KEY, team_slug=TEST_TEAM)


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()
