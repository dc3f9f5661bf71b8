"""Tests for the httpx platform client and the services built on it."""

import json

import httpx
import pytest

from ctfbot.data_models.leaderboard import CompetitionQuery, PracticeQuery
from ctfbot.services.admin import AdminService
from ctfbot.services.challenges import ChallengeService
from ctfbot.services.leaderboard import LeaderboardService
from ctfbot.utils.exceptions import AuthError, NetworkError, ServerError, UnrecognizedEnvelopeError
from tests.factories import RecordingHandler


class TestPlatformClient:
    async def test_sends_bearer_token_and_decodes_json(self, make_client):
        handler = RecordingHandler({'GET /api/challenges/contests/': [{'id': 1}]})
        client = make_client(handler)
        assert await client.list('challenges/contests') == [{'id': 1}]
        request = handler.requests[0]
        assert request.headers['Authorization'] == 'Bearer secret'
        assert request.headers['Accept'] == 'application/json'

    async def test_no_authorization_header_without_token(self, make_client):
        handler = RecordingHandler({'GET /api/x/': []})
        client = make_client(handler, token="")
        await client.list('x')
        assert 'Authorization' not in handler.requests[0].headers

    async def test_query_params_are_forwarded(self, make_client):
        handler = RecordingHandler({'GET /api/x/': []})
        client = make_client(handler)
        await client.list('x', params={'page': 2, 'search': 'al'})
        assert handler.requests[0].url.params['page'] == '2'
        assert handler.requests[0].url.params['search'] == 'al'

    async def test_error_statuses_map_to_taxonomy(self, make_client):
        handler = RecordingHandler({
            'DELETE /api/users/groups/7/': httpx.Response(400, json={'error': 'Group has active contest'}),
            'DELETE /api/users/groups/8/': httpx.Response(403, json={}),
            'DELETE /api/users/groups/9/': httpx.Response(502, text="<html>Bad gateway</html>"),
        })
        client = make_client(handler)

        with pytest.raises(ServerError) as excinfo:
            await client.delete('users/groups', 7)
        assert excinfo.value.user_message == 'Group has active contest'
        assert excinfo.value.status == 400

        with pytest.raises(AuthError) as excinfo:
            await client.delete('users/groups', 8)
        assert excinfo.value.user_message == "Forbidden. You don't have permission to do that."

        with pytest.raises(ServerError) as excinfo:
            await client.delete('users/groups', 9)
        assert excinfo.value.user_message == "Server error. Please try again."
        assert excinfo.value.payload is None

    async def test_unknown_route_is_not_found(self, make_client):
        client = make_client(RecordingHandler())
        with pytest.raises(ServerError) as excinfo:
            await client.get('x', 1)
        assert excinfo.value.user_message == "Not found."

    async def test_transport_failures_become_network_errors(self, make_client):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)
        with pytest.raises(NetworkError) as excinfo:
            await client.list('x')
        assert excinfo.value.user_message == "Connectivity error. Check your connection and try again."

    async def test_timeouts_become_network_errors(self, make_client):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(NetworkError):
            await make_client(handler).list('x')

    async def test_write_helpers_use_expected_routes(self, make_client):
        handler = RecordingHandler({
            'POST /api/users/groups/': {'id': 3},
            'PATCH /api/users/groups/3/': {'id': 3},
            'POST /api/users/groups/3/remove-member/': {'detail': 'Removed.'},
            'DELETE /api/users/groups/3/': httpx.Response(204),
        })
        client = make_client(handler)
        await client.create('users/groups', {'name': 'g'})
        await client.update('users/groups', 3, {'name': 'h'})
        assert await client.action('users/groups', 3, 'remove-member', {'user_id': 5}) == {'detail': 'Removed.'}
        assert await client.delete('users/groups', 3) is None
        assert handler.paths() == [
            'POST /api/users/groups/',
            'PATCH /api/users/groups/3/',
            'POST /api/users/groups/3/remove-member/',
            'DELETE /api/users/groups/3/',
        ]


class TestServices:
    async def test_reads_retry_network_errors(self, make_client):
        attempts = []

        def handler(request):
            attempts.append(request)
            if len(attempts) < 3:
                raise httpx.ConnectError("flaky", request=request)
            return httpx.Response(200, json=[{'id': 1, 'name': 'G', 'members': []}])

        groups = await AdminService(make_client(handler)).list_groups()
        assert len(attempts) == 3
        assert groups[0].name == 'G'

    async def test_reads_do_not_retry_server_errors(self, make_client):
        handler = RecordingHandler({'GET /api/users/groups/': httpx.Response(500, json={})})
        with pytest.raises(ServerError):
            await AdminService(make_client(handler)).list_groups()
        assert len(handler.requests) == 1

    async def test_groups_accept_paginated_envelope(self, make_client):
        handler = RecordingHandler({'GET /api/users/groups/': {
            'count': 1, 'next': None, 'previous': None,
            'results': [{'id': 4, 'name': 'Red', 'members': [{'user_id': 1, 'username': 'alice'}]}],
        }})
        groups = await AdminService(make_client(handler)).list_groups()
        assert groups[0].members_count == 1
        assert groups[0].members[0].username == 'alice'

    async def test_unrecognized_list_envelope(self, make_client):
        handler = RecordingHandler({'GET /api/challenges/contests/': {'data': []}})
        with pytest.raises(UnrecognizedEnvelopeError):
            await AdminService(make_client(handler)).list_contests()

    async def test_remove_member_posts_user_id(self, make_client):
        handler = RecordingHandler({'POST /api/users/groups/4/remove-member/': {'detail': 'ok'}})
        await AdminService(make_client(handler)).remove_member(4, 12)
        assert json.loads(handler.requests[0].content) == {'user_id': 12}

    async def test_browser_data_loads_vocabularies_and_challenges(self, make_client):
        handler = RecordingHandler({
            'GET /api/challenges/categories/': [{'name': 'Web'}, {'name': 'Pwn'}, {'name': 'Web'}],
            'GET /api/challenges/difficulties/': {'results': [{'level': 'Easy'}, {'level': 'Hard'}]},
            'GET /api/challenges/challenges/': [
                {'id': 1, 'title': 'XSS', 'category': {'name': 'Web'}, 'difficulty': {'level': 'Easy'},
                 'active_contest': {'id': 2, 'name': 'Winter', 'start_time': '2025-01-10T00:00:00Z', 'end_time': '2025-01-20T00:00:00Z'}},
                {'id': 'bad', 'title': 'skipped'},
            ],
        })
        categories, difficulties, challenges = await ChallengeService(make_client(handler)).load_browser_data()
        assert categories == ['Web', 'Pwn']
        assert difficulties == ['Easy', 'Hard']
        assert [c.title for c in challenges] == ['XSS']
        assert challenges[0].active_contest.name == 'Winter'
        challenge_request = next(r for r in handler.requests if r.url.path == '/api/challenges/challenges/')
        assert challenge_request.url.params['type'] == 'competition'


class TestLeaderboardService:
    def test_build_params(self):
        service = LeaderboardService(client=None)
        assert service.build_params(PracticeQuery(page=2, page_size=20, search=" al ")) == {
            'mode': 'practice', 'page': 2, 'page_size': 20, 'search': 'al'
        }
        assert service.build_params(CompetitionQuery(contest_id=5)) == {
            'mode': 'competition', 'page': 1, 'page_size': 20, 'contest_id': 5
        }

    async def test_fetch_normalizes(self, make_client):
        handler = RecordingHandler({'GET /api/submissions/leaderboard/': {
            'results': [{'rank': 1, 'username': 'alice', 'solved': 2}], 'contest': None,
        }})
        page = await LeaderboardService(make_client(handler)).fetch(CompetitionQuery(contest_id=5, contest_name="W"))
        assert page.entries[0].contest_id == 5
        assert handler.requests[0].url.params['contest_id'] == '5'

    async def test_contest_options_are_cached_until_refresh(self, make_client):
        handler = RecordingHandler({'GET /api/challenges/contests/': [{'id': 1, 'name': 'Winter'}]})
        service = LeaderboardService(make_client(handler))
        first = await service.list_contests()
        second = await service.list_contests()
        assert first == second
        assert len(handler.requests) == 1
        await service.list_contests(refresh=True)
        assert len(handler.requests) == 2
        service.invalidate_contests()
        await service.list_contests()
        assert len(handler.requests) == 3

    async def test_expired_cache_refetches(self, make_client):
        handler = RecordingHandler({'GET /api/challenges/contests/': []})
        service = LeaderboardService(make_client(handler), contest_ttl=0)
        await service.list_contests()
        await service.list_contests()
        assert len(handler.requests) == 2
