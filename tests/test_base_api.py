import asyncio
import logging

import pytest

from darwinv7.api.base_api import ApiConfig, BaseApi, encode_query_params, format_error_path
from darwinv7.api.endpoints import AnnotationClassesApi, ItemsApi, TeamsApi
from darwinv7.api.transport import RawResponse
from darwinv7.entities import AnnotationClass, Item, Page, PageRequest, StageBuilder, StageEdge, Team, Workflow
from darwinv7.entities import WorkflowBuilder
from darwinv7.exceptions import (ConfigError, DecodeError, EncodeError, HttpStatusError, TransportCancelledError,
                                 TransportError)
from conftest import TEST_API_KEY, TEST_URL, FakeTransport, json_response


class TestApiConfig:
    def test_strips_trailing_slash(self):
        config = ApiConfig(server_url=f"{TEST_URL}/", api_key='key')
        assert config.server_url == TEST_URL

    @pytest.mark.parametrize('server_url', ['wrong', 'ftp://test_url.com', 'https://', ''])
    def test_invalid_url(self, server_url: str):
        with pytest.raises(ConfigError):
            ApiConfig(server_url=server_url, api_key='key')

    def test_invalid_transport(self):
        with pytest.raises(ConfigError):
            ApiConfig(server_url=TEST_URL, api_key='key', transport='curl')

    def test_invalid_timeout(self):
        with pytest.raises(ConfigError):
            ApiConfig(server_url=TEST_URL, api_key='key', timeout=0)


class TestRequestBuilding:
    def test_query_params_keep_order_and_duplicates(self, api_config: ApiConfig, fake_transport: FakeTransport):
        api = BaseApi(api_config, fake_transport)
        url = api._build_url('items', [('b', 1), ('a', 2), ('b', 3), ('skip', None), ('flag', True)])
        assert url == f"{TEST_URL}/items?b=1&a=2&b=3&flag=true"

    def test_query_params_list_values_repeat_key(self):
        assert encode_query_params({'ids': [1, 2], 'name': 'x y'}) == 'ids=1&ids=2&name=x+y'

    def test_no_query(self, api_config: ApiConfig, fake_transport: FakeTransport):
        api = BaseApi(api_config, fake_transport)
        assert api._build_url('/teams', {'name_contains': None}) == f"{TEST_URL}/teams"

    @pytest.mark.asyncio
    async def test_api_key_sent_on_every_request(self, api_config: ApiConfig, fake_transport: FakeTransport):
        fake_transport.responses = [json_response([{'id': 1, 'slug': 'my-team'}]),
                                    json_response({'id': 1, 'slug': 'my-team'})]
        teams_api = TeamsApi(api_config, fake_transport)

        await teams_api.get_list()
        await teams_api.get_by_slug('my-team')

        assert len(fake_transport.requests) == 2
        for request in fake_transport.requests:
            assert request.headers['Authorization'] == f'ApiKey {TEST_API_KEY}'
            assert request.headers['Accept'] == 'application/json'
            assert request.headers['Content-Type'] == 'application/json'
        assert fake_transport.requests[1].url == f"{TEST_URL}/teams/my-team"

    @pytest.mark.asyncio
    async def test_missing_api_key(self, fake_transport: FakeTransport):
        api = TeamsApi(ApiConfig(server_url=TEST_URL), fake_transport)
        with pytest.raises(ConfigError):
            await api.get_list()
        assert fake_transport.requests == []

    @pytest.mark.asyncio
    async def test_missing_team_slug(self, fake_transport: FakeTransport):
        api = ItemsApi(ApiConfig(server_url=TEST_URL, api_key='key'), fake_transport)
        with pytest.raises(ConfigError):
            await api.get_page(7)
        assert fake_transport.requests == []

    def test_curl_command_masks_api_key(self, api_config: ApiConfig, fake_transport: FakeTransport):
        api = BaseApi(api_config, fake_transport)
        curl = api._generate_curl_command('POST',
                                          f"{TEST_URL}/datasets",
                                          api._build_headers(),
                                          b'{"name": "cars"}')
        assert TEST_API_KEY not in curl
        assert "'Authorization: ApiKey <YOUR-API-KEY>'" in curl
        assert curl.startswith('curl -X POST')
        assert """-d '{"name": "cars"}'""" in curl

    @pytest.mark.asyncio
    async def test_curl_command_logged_at_debug(self, api_config: ApiConfig, fake_transport: FakeTransport, caplog):
        fake_transport.responses = [json_response([])]
        with caplog.at_level(logging.DEBUG, logger='darwinv7.api.base_api'):
            await TeamsApi(api_config, fake_transport).get_list()
        assert any('Equivalent curl command' in r.message for r in caplog.records)
        assert all(TEST_API_KEY not in r.message for r in caplog.records)


class TestEncoding:
    @pytest.mark.asyncio
    async def test_nan_is_encode_error_and_nothing_is_sent(self, api_config: ApiConfig,
                                                           fake_transport: FakeTransport):
        api = BaseApi(api_config, fake_transport)
        with pytest.raises(EncodeError):
            await api._make_request('POST', 'datasets', body={'work_size': float('nan')})
        assert fake_transport.requests == []

    @pytest.mark.asyncio
    async def test_unserializable_body(self, api_config: ApiConfig, fake_transport: FakeTransport):
        api = BaseApi(api_config, fake_transport)
        with pytest.raises(EncodeError):
            await api._make_request('POST', 'datasets', body={'name': object()})
        assert fake_transport.requests == []

    @pytest.mark.asyncio
    async def test_invalid_stage_graph_is_encode_error(self, api_config: ApiConfig,
                                                       fake_transport: FakeTransport):
        annotate = StageBuilder(stage_type='annotate')
        annotate.edges.append(StageEdge(source_stage_id=annotate.id, target_stage_id='missing-stage'))
        builder = WorkflowBuilder(name='Broken', stages=[annotate, StageBuilder(stage_type='complete')])

        with pytest.raises(EncodeError):
            await TeamsApi(api_config, fake_transport).create_workflow(builder)
        assert fake_transport.requests == []

    @pytest.mark.asyncio
    async def test_payload_models_use_wire_names(self, api_config: ApiConfig, fake_transport: FakeTransport):
        builder = WorkflowBuilder.linear('Pipeline', ['annotate', 'complete'])
        fake_transport.responses = [json_response({'id': 'wf-1', 'name': 'Pipeline', 'stages': []})]

        await TeamsApi(api_config, fake_transport).create_workflow(builder)

        sent = fake_transport.requests[0].json()
        assert [s['type'] for s in sent['stages']] == ['annotate', 'complete']
        assert 'stage_type' not in sent['stages'][0]


class TestErrorMapping:
    @pytest.mark.asyncio
    async def test_cancellation(self, api_config: ApiConfig):
        transport = FakeTransport(error=asyncio.CancelledError())
        with pytest.raises(TransportCancelledError) as exc_info:
            await TeamsApi(api_config, transport).get_list()
        assert isinstance(exc_info.value, TransportError)
        assert isinstance(exc_info.value, asyncio.CancelledError)
        assert exc_info.value.cancelled

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self, api_config: ApiConfig):
        error = TransportError('Request error', cause='connection refused')
        transport = FakeTransport(error=error)
        with pytest.raises(TransportError) as exc_info:
            await TeamsApi(api_config, transport).get_list()
        assert exc_info.value is error
        assert not exc_info.value.cancelled
        assert 'connection refused' in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_foreign_executor_exception_is_wrapped(self, api_config: ApiConfig):
        transport = FakeTransport(error=OSError('network unreachable'))
        with pytest.raises(TransportError) as exc_info:
            await TeamsApi(api_config, transport).get_list()
        assert isinstance(exc_info.value.__cause__, OSError)

    @pytest.mark.asyncio
    async def test_error_body_is_never_decoded(self, api_config: ApiConfig):
        body = b'{"errors": {"code": "RATE_LIMITED", "message": "Too many requests"}}'
        transport = FakeTransport(responses=[RawResponse(status=429, body=body)])
        with pytest.raises(HttpStatusError) as exc_info:
            await TeamsApi(api_config, transport).get_by_slug('my-team')
        assert exc_info.value.status == 429
        assert exc_info.value.body == body.decode()
        assert exc_info.value.is_rate_limited

    @pytest.mark.asyncio
    async def test_non_json_error_body(self, api_config: ApiConfig):
        transport = FakeTransport(responses=[RawResponse(status=502, body=b'<html>Bad Gateway</html>')])
        with pytest.raises(HttpStatusError) as exc_info:
            await TeamsApi(api_config, transport).get_list()
        assert exc_info.value.status == 502
        assert exc_info.value.body == '<html>Bad Gateway</html>'
        assert exc_info.value.raw == b'<html>Bad Gateway</html>'

    @pytest.mark.asyncio
    async def test_undecodable_error_body_is_kept_raw(self, api_config: ApiConfig):
        body = b'\xff\xfeerror: quota \xe9xceeded'
        transport = FakeTransport(responses=[RawResponse(status=500, body=body)])
        with pytest.raises(HttpStatusError) as exc_info:
            await TeamsApi(api_config, transport).get_list()
        assert exc_info.value.raw == body
        assert 'quota' in exc_info.value.body

    @pytest.mark.asyncio
    async def test_missing_identity_reports_path(self, api_config: ApiConfig):
        payload = {'id': 'wf-1', 'stages': [{'id': 'stage-1', 'type': 'annotate'}, {'type': 'review'}]}
        transport = FakeTransport(responses=[json_response(payload)])
        api = BaseApi(api_config, transport)
        with pytest.raises(DecodeError) as exc_info:
            await api._make_request('GET', 'v2/teams/my-team/workflows/wf-1', response_type=Workflow)
        assert exc_info.value.path == 'stages[1].id'
        assert 'stage-1' in exc_info.value.snippet

    @pytest.mark.asyncio
    async def test_invalid_json(self, api_config: ApiConfig):
        transport = FakeTransport(responses=[RawResponse(status=200, body=b'{"id": 1,')])
        with pytest.raises(DecodeError) as exc_info:
            await TeamsApi(api_config, transport).get_by_slug('my-team')
        assert exc_info.value.path == '.'

    @pytest.mark.asyncio
    async def test_wrong_shape_at_root(self, api_config: ApiConfig):
        transport = FakeTransport(responses=[json_response(['not', 'a', 'team'])])
        with pytest.raises(DecodeError) as exc_info:
            await TeamsApi(api_config, transport).get_by_slug('my-team')
        assert exc_info.value.path == '.'

    @pytest.mark.asyncio
    async def test_list_envelope_path_prefix(self, api_config: ApiConfig):
        payload = {'annotation_classes': [{'id': 'not-a-number', 'name': 'car'}], 'type_counts': []}
        transport = FakeTransport(responses=[json_response(payload)])
        with pytest.raises(DecodeError) as exc_info:
            await AnnotationClassesApi(api_config, transport).get_list()
        assert exc_info.value.path == 'annotation_classes[0].id'

    def test_format_error_path(self):
        assert format_error_path(()) == '.'
        assert format_error_path(('stages', 1, 'id')) == 'stages[1].id'
        assert format_error_path((0, 'status')) == '[0].status'


class TestListResponses:
    @pytest.mark.parametrize('payload', [
        [{'id': 1, 'slug': 'a'}],
        {'data': [{'id': 1, 'slug': 'a'}]},
        {'items': [{'id': 1, 'slug': 'a'}]},
    ])
    @pytest.mark.asyncio
    async def test_envelopes(self, api_config: ApiConfig, payload):
        transport = FakeTransport(responses=[json_response(payload)])
        teams = await TeamsApi(api_config, transport).get_list()
        assert teams == [Team(id=1, slug='a')]

    @pytest.mark.asyncio
    async def test_object_instead_of_list(self, api_config: ApiConfig):
        transport = FakeTransport(responses=[json_response({'id': 1})])
        with pytest.raises(DecodeError):
            await TeamsApi(api_config, transport).get_list()

    @pytest.mark.asyncio
    async def test_page_request_params(self, api_config: ApiConfig):
        transport = FakeTransport(responses=[json_response({'items': [{'id': 'item-1'}],
                                                            'page': {'count': 3, 'next': 'abc', 'previous': None}})])
        api = BaseApi(api_config, transport)

        page = await api._make_page_request('v2/teams/my-team/items', Item,
                                            PageRequest(size=1, cursor='xyz'),
                                            params=[('dataset_ids', 7)])

        assert transport.requests[0].url == \
            f"{TEST_URL}/v2/teams/my-team/items?dataset_ids=7&page%5Bsize%5D=1&page%5Bfrom%5D=xyz"
        assert isinstance(page, Page)
        assert [i.id for i in page.items] == ['item-1']
        assert page.next == 'abc'
        assert page.count == 3
