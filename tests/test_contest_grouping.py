"""Tests for status buckets and contest grouping."""

from ctfbot.utils.contest_grouping import (
    BUCKET_ONGOING, BUCKET_ORDER, BUCKET_OTHER, BUCKET_UPCOMING,
    annotate, bucket_of, group_by_contest, group_page, split_buckets
)
from ctfbot.utils.contest_status import ContestStatus
from tests.factories import NOW_MS, challenge, contest, ended_contest, ongoing_contest, upcoming_contest


def annotated(items):
    return annotate(items, NOW_MS, lambda c: c.active_contest)


class TestGroupByContest:
    def test_groups_are_lossless_and_no_contest_is_last(self):
        zeta = ongoing_contest(1, "zeta")
        alpha = ongoing_contest(2, "Alpha")
        items = [
            challenge(1, "a", None),
            challenge(2, "b", zeta),
            challenge(3, "c", alpha),
            challenge(4, "d", zeta),
            challenge(5, "e", None),
        ]
        groups = group_by_contest(annotated(items))

        assert [g.parent_label for g in groups] == ["Alpha", "zeta", "No Contest"]
        assert sum(len(g.entries) for g in groups) == len(items)
        assert [g.rank for g in groups] == [0, 1, 2]
        assert [e.item.id for e in groups[1].entries] == [2, 4]
        assert groups[-1].parent_key == "no-contest"

    def test_case_insensitive_ordering(self):
        items = [
            challenge(1, "x", ongoing_contest(1, "beta")),
            challenge(2, "y", ongoing_contest(2, "Alpha")),
            challenge(3, "z", ongoing_contest(3, "GAMMA")),
        ]
        assert [g.parent_label for g in group_by_contest(annotated(items))] == ["Alpha", "beta", "GAMMA"]

    def test_contest_without_name_uses_fallback_label(self):
        nameless = contest(9, "", "2025-01-10T00:00:00Z", "2025-01-20T00:00:00Z", slug="")
        groups = group_by_contest(annotated([challenge(1, "x", nameless)]))
        assert groups[0].parent_label == "Contest #9"
        assert groups[0].parent_key == "9"

    def test_empty_input(self):
        assert group_by_contest([]) == []


class TestBuckets:
    def test_bucket_of(self):
        assert bucket_of(ContestStatus.ONGOING) == BUCKET_ONGOING
        assert bucket_of(ContestStatus.UPCOMING) == BUCKET_UPCOMING
        assert bucket_of(ContestStatus.SCHEDULED) == BUCKET_UPCOMING
        assert bucket_of(ContestStatus.ENDED) == BUCKET_OTHER
        assert bucket_of(ContestStatus.NONE) == BUCKET_OTHER

    def test_bucket_order_is_fixed_even_when_empty(self):
        buckets = split_buckets(annotated([challenge(1, "x", ended_contest())]))
        assert list(buckets) == list(BUCKET_ORDER)
        assert buckets[BUCKET_ONGOING] == []
        assert buckets[BUCKET_UPCOMING] == []
        assert len(buckets[BUCKET_OTHER]) == 1

    def test_group_page_groups_each_bucket_independently(self):
        winter = ongoing_contest(1, "Winter")
        spring = upcoming_contest(2, "Spring")
        page = [
            challenge(1, "a", spring),
            challenge(2, "b", None),
            challenge(3, "c", winter),
            challenge(4, "d", ended_contest(3, "Autumn")),
            challenge(5, "e", spring),
        ]
        sections = group_page(annotated(page))

        assert [name for name, _ in sections] == list(BUCKET_ORDER)
        ongoing, upcoming, other = (groups for _, groups in sections)
        assert [g.parent_label for g in ongoing] == ["Winter"]
        assert [g.parent_label for g in upcoming] == ["Spring"]
        assert [e.item.id for e in upcoming[0].entries] == [1, 5]
        assert [g.parent_label for g in other] == ["Autumn", "No Contest"]
        assert sum(len(g.entries) for _, groups in sections for g in groups) == len(page)
