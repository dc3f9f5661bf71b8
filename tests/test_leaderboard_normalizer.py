"""Tests for leaderboard envelope classification and row normalization."""

import pytest

from ctfbot.data_models.leaderboard import CompetitionQuery, EnvelopeShape, PracticeQuery
from ctfbot.services.leaderboard import (
    classify_envelope, normalize_contest_options, normalize_leaderboard, normalize_row
)
from ctfbot.utils.exceptions import UnrecognizedEnvelopeError

ROWS = [
    {'rank': 1, 'user': {'id': 10, 'username': 'alice'}, 'total_score': 300, 'solved': 3, 'last_solved_at': '2025-01-02T00:00:00Z'},
    {'rank': 2, 'username': 'bob', 'user_id': 11, 'score': 200, 'solved': 2, 'last_submission_at': '2025-01-01T00:00:00Z'},
]


class TestClassify:
    def test_flat(self):
        assert classify_envelope({'results': ROWS, 'contest': None}) == EnvelopeShape.FLAT

    def test_bare_list_is_flat(self):
        assert classify_envelope(ROWS) == EnvelopeShape.FLAT

    def test_paginated_wrapping_flat_envelope(self):
        payload = {'count': 2, 'next': None, 'previous': None, 'results': {'results': ROWS, 'contest': None}}
        assert classify_envelope(payload) == EnvelopeShape.PAGINATED

    def test_paginated_wrapping_rows(self):
        assert classify_envelope({'count': 2, 'next': None, 'previous': None, 'results': ROWS}) == EnvelopeShape.PAGINATED

    @pytest.mark.parametrize("payload", [
        None,
        "oops",
        {},
        {'results': None},
        {'count': 3, 'results': {'rows': []}},
        {'data': ROWS},
    ])
    def test_unrecognized(self, payload):
        with pytest.raises(UnrecognizedEnvelopeError):
            classify_envelope(payload)


class TestNormalizeRow:
    def test_nested_user_and_total_score_win(self):
        entry = normalize_row(
            {'rank': 3, 'user': {'id': 1, 'username': 'nested'}, 'username': 'flat', 'total_score': 50, 'score': 10, 'solved': 4},
            None, None
        )
        assert entry.username == 'nested'
        assert entry.user_id == 1
        assert entry.score == 50

    def test_fallbacks(self):
        entry = normalize_row({'solved': 7}, 5, "Winter")
        assert entry.rank == 0
        assert entry.username == "Unknown"
        assert entry.score == 7
        assert entry.solved == 7
        assert entry.last_submission_at is None
        assert (entry.contest_id, entry.contest_name) == (5, "Winter")

    def test_non_numeric_values_default(self):
        entry = normalize_row({'rank': 'first', 'solved': None, 'score': 'lots', 'username': '  '}, None, None)
        assert entry.rank == 0
        assert entry.solved == 0
        assert entry.score == 0
        assert entry.username == "Unknown"

    def test_last_submission_fallback(self):
        assert normalize_row({'last_submission_at': 'x'}, None, None).last_submission_at == 'x'
        assert normalize_row({'last_solved_at': 'a', 'last_submission_at': 'b'}, None, None).last_submission_at == 'a'


class TestNormalizeLeaderboard:
    def test_flat_envelope_uses_embedded_contest_in_practice(self):
        page = normalize_leaderboard({'results': ROWS, 'contest': {'id': 4, 'name': 'Embedded'}}, PracticeQuery())
        assert page.shape == EnvelopeShape.FLAT
        assert page.count == 2
        assert page.next is None and page.previous is None
        assert [e.username for e in page.entries] == ['alice', 'bob']
        assert {(e.contest_id, e.contest_name) for e in page.entries} == {(4, 'Embedded')}

    def test_competition_query_overrides_embedded_contest(self):
        query = CompetitionQuery(contest_id=9, contest_name="Requested")
        page = normalize_leaderboard({'results': ROWS, 'contest': {'id': 4, 'name': 'Embedded'}}, query)
        assert {(e.contest_id, e.contest_name) for e in page.entries} == {(9, 'Requested')}

    def test_paginated_envelope(self):
        payload = {
            'count': 41,
            'next': 'https://ctf.test/api/submissions/leaderboard/?page=3',
            'previous': 'https://ctf.test/api/submissions/leaderboard/?page=1',
            'results': {'results': ROWS, 'contest': None},
        }
        page = normalize_leaderboard(payload, PracticeQuery(page=2))
        assert page.shape == EnvelopeShape.PAGINATED
        assert page.count == 41
        assert page.next.endswith('page=3')
        assert page.previous.endswith('page=1')
        assert len(page.entries) == 2

    def test_non_dict_rows_are_skipped(self):
        page = normalize_leaderboard({'results': [ROWS[0], None, 'x']})
        assert [e.username for e in page.entries] == ['alice']

    def test_competition_query_requires_integer_contest(self):
        with pytest.raises(TypeError):
            CompetitionQuery(contest_id="7")
        with pytest.raises(TypeError):
            CompetitionQuery(contest_id=None)


def test_contest_options_drop_bad_ids_and_fall_back_on_names():
    options = normalize_contest_options([
        {'id': 1, 'name': 'Winter'},
        {'id': 2, 'name': '', 'slug': 'spring-ctf'},
        {'id': 3},
        {'id': 'abc', 'name': 'Broken'},
        {'name': 'No id'},
        'garbage',
    ])
    assert [(o.id, o.name) for o in options] == [(1, 'Winter'), (2, 'spring-ctf'), (3, 'Contest #3')]
