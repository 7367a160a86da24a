"""Tests for the bulk snapshot cache and its column index."""

import pytest

from censo_lookup.cache.snapshot import ColumnIndex, SnapshotCache, normalize_cell
from censo_lookup.models import Dimension, IndexMatch


class TestNormalizeCell:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("  123456 ", "123456"),
            (123456, "123456"),
            (123456.0, "123456"),
            (12.5, "12.5"),
            (True, "true"),
            ("RBAQ001", "RBAQ001"),
        ],
    )
    def test_normalizes(self, value, expected):
        assert normalize_cell(value) == expected


class TestColumnIndex:
    """Index build and O(1) lookups."""

    def test_found_and_not_found(self, sample_snapshot, header_fragments):
        index = ColumnIndex(header_fragments)
        index.build(sample_snapshot)

        assert index.lookup(Dimension.CEDULA, "123456") == IndexMatch(
            found=True, row_offset=1, row_number=2
        )
        assert index.lookup(Dimension.CEDULA, "987654").row_number == 3
        assert index.lookup(Dimension.CEDULA, "000") == IndexMatch(found=False)

    def test_matches_header_case_insensitively(self, header_fragments):
        index = ColumnIndex(header_fragments)
        index.build([["Nombre", "CEDULA"], ["Ana", "111"]])

        assert index.columns == {Dimension.CEDULA: 1}
        assert index.lookup(Dimension.CEDULA, "111").found

    def test_missing_column_cannot_answer(self, sample_snapshot, header_fragments):
        index = ColumnIndex(header_fragments)
        index.build(sample_snapshot)

        assert index.built
        assert index.indexed_dimensions == [Dimension.CEDULA]
        assert index.lookup(Dimension.CODIGO, "RBAQ1") is None

    def test_header_only_snapshot_not_built(self, header_fragments):
        index = ColumnIndex(header_fragments)
        index.build([["Numero de documento"]])

        assert not index.built
        assert index.lookup(Dimension.CEDULA, "123") is None

    def test_duplicate_values_last_row_wins(self, header_fragments):
        index = ColumnIndex(header_fragments)
        index.build([["cedula"], ["555"], ["777"], ["555"]])

        match = index.lookup(Dimension.CEDULA, "555")
        assert match.row_offset == 3
        assert match.row_number == 4

    def test_absent_and_short_rows_skipped(self, header_fragments):
        index = ColumnIndex(header_fragments)
        index.build([["Nombre", "cedula"], ["Ana"], ["Luis", None], ["Eva", "  "], ["Sol", 42.0]])

        assert index.lookup(Dimension.CEDULA, "").found is False
        assert index.lookup(Dimension.CEDULA, "42") == IndexMatch(True, 4, 5)

    def test_lookup_normalizes_query(self, sample_snapshot, header_fragments):
        index = ColumnIndex(header_fragments)
        index.build(sample_snapshot)

        assert index.lookup(Dimension.CEDULA, " 123456 ").found

    def test_rebuild_replaces_previous_entries(self, sample_snapshot, header_fragments):
        index = ColumnIndex(header_fragments)
        index.build(sample_snapshot)
        index.build([["cedula"], ["999"]])

        assert not index.lookup(Dimension.CEDULA, "123456").found
        assert index.lookup(Dimension.CEDULA, "999").found


class TestSnapshotCache:
    """TTL, invalidation and row-count change detection."""

    @pytest.fixture
    def cache(self, header_fragments, clock):
        return SnapshotCache(ttl_seconds=120, header_fragments=header_fragments, clock=clock)

    def test_empty_cache_is_invalid(self, cache):
        assert not cache.is_valid()
        assert cache.needs_update()
        assert cache.get() is None
        assert cache.age_seconds is None
        assert cache.stats.misses == 1

    def test_valid_within_ttl(self, cache, sample_snapshot, clock):
        cache.set(sample_snapshot)
        clock.advance(119)

        assert cache.is_valid()
        assert cache.get() == sample_snapshot
        assert cache.age_seconds == 119
        assert cache.stats.hits == 1

    def test_expires_after_ttl(self, cache, sample_snapshot, clock):
        cache.set(sample_snapshot)
        clock.advance(121)

        assert not cache.is_valid()
        assert cache.needs_update()
        assert cache.get() is None

    def test_invalidate_forces_refresh(self, cache, sample_snapshot):
        cache.set(sample_snapshot)
        cache.invalidate()

        assert cache.force_refresh
        assert not cache.is_valid()
        assert cache.needs_update()

    def test_set_clears_force_refresh(self, cache, sample_snapshot):
        cache.invalidate()
        cache.set(sample_snapshot)

        assert not cache.force_refresh
        assert cache.is_valid()

    def test_row_count_change_invalidates_immediately(self, cache, sample_snapshot):
        cache.set(sample_snapshot)
        cache.set(sample_snapshot + [["555555", "Eva"]])

        assert cache.force_refresh
        assert not cache.is_valid()
        assert cache.last_row_count == 4
        # The index still reflects the newest data
        assert cache.lookup(Dimension.CEDULA, "555555").found

    def test_same_row_count_stays_valid(self, cache, sample_snapshot):
        cache.set(sample_snapshot)
        cache.set([list(row) for row in sample_snapshot])

        assert cache.is_valid()

    def test_lookup_records_stats_when_answered(self, cache, sample_snapshot):
        assert cache.lookup(Dimension.CEDULA, "123456") is None
        assert cache.stats.total == 0

        cache.set(sample_snapshot)
        cache.lookup(Dimension.CEDULA, "123456")
        cache.lookup(Dimension.CEDULA, "000")

        assert cache.stats.hits == 1
        assert cache.stats.misses == 1

    def test_clear(self, cache, sample_snapshot):
        cache.set(sample_snapshot)
        cache.clear()

        assert not cache.is_valid()
        assert cache.last_row_count == 0
        assert not cache.index.built
