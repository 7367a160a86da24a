"""Tests for the endpoint pool / load balancer."""

import pytest

from censo_lookup.balancer import EndpointPool
from censo_lookup.exceptions import ConfigurationError


class TestEndpointPoolRotation:
    """Round-robin selection with healthy endpoints."""

    @pytest.fixture
    def pool(self, endpoints, clock):
        return EndpointPool(endpoints, cooldown_seconds=30, clock=clock)

    def test_empty_pool_raises(self, clock):
        pool = EndpointPool(clock=clock)
        with pytest.raises(ConfigurationError):
            pool.select_endpoint()

    def test_single_endpoint_always_returned(self, clock):
        pool = EndpointPool(["https://only.example.com/exec"], clock=clock)
        pool.mark_failed("https://only.example.com/exec")

        for _ in range(3):
            assert pool.select_endpoint() == "https://only.example.com/exec"
        assert pool.get_stats().current_index == 0

    def test_visits_each_endpoint_once_per_cycle(self, pool, endpoints):
        first_cycle = [pool.select_endpoint() for _ in endpoints]
        second_cycle = [pool.select_endpoint() for _ in endpoints]

        assert first_cycle == endpoints
        assert second_cycle == endpoints

    def test_configure_resets_cursor_and_failures(self, pool, endpoints):
        pool.select_endpoint()
        pool.mark_failed(endpoints[2])

        pool.configure(endpoints[:2])

        stats = pool.get_stats()
        assert stats.total == 2
        assert stats.failed == 0
        assert stats.current_index == 0
        assert pool.select_endpoint() == endpoints[0]


class TestEndpointPoolFailures:
    """Quarantine, cooldown recovery and the last-resort fallback."""

    @pytest.fixture
    def pool(self, endpoints, clock):
        return EndpointPool(endpoints, cooldown_seconds=30, clock=clock)

    def test_failed_endpoint_skipped_during_cooldown(self, pool, endpoints, clock):
        pool.mark_failed(endpoints[1])

        picks = [pool.select_endpoint() for _ in range(6)]
        clock.advance(29)
        picks += [pool.select_endpoint() for _ in range(6)]

        assert endpoints[1] not in picks
        assert set(picks) == {endpoints[0], endpoints[2]}

    def test_cooldown_is_strictly_greater(self, pool, endpoints, clock):
        pool.mark_failed(endpoints[0])
        clock.advance(30)

        assert pool.select_endpoint() == endpoints[1]
        assert pool.is_failed(endpoints[0])

    def test_recovers_after_cooldown_when_rotation_reaches_it(self, pool, endpoints, clock):
        assert pool.select_endpoint() == endpoints[0]
        pool.mark_failed(endpoints[1])
        clock.advance(31)

        assert pool.select_endpoint() == endpoints[1]
        assert not pool.is_failed(endpoints[1])
        assert pool.get_stats().failed == 0

    def test_all_failed_returns_first_endpoint(self, pool, endpoints, clock):
        pool.select_endpoint()  # cursor now at 1
        for endpoint in endpoints:
            pool.mark_failed(endpoint)
        clock.advance(5)

        assert pool.select_endpoint() == endpoints[0]

        stats = pool.get_stats()
        assert stats.failed == 3
        assert stats.current_index == 1
        assert pool.is_failed(endpoints[0])

    def test_mark_failed_keeps_endpoint_in_rotation(self, pool, endpoints):
        pool.mark_failed(endpoints[0])

        assert pool.endpoints == endpoints
        assert len(pool) == 3

    def test_reset_restores_everything(self, pool, endpoints):
        for endpoint in endpoints:
            pool.mark_failed(endpoint)

        pool.reset()

        assert [pool.select_endpoint() for _ in endpoints] == endpoints

    def test_stats(self, pool, endpoints):
        pool.mark_failed(endpoints[2])
        pool.mark_failed(endpoints[0])
        pool.select_endpoint()

        stats = pool.get_stats()
        assert stats.total == 3
        assert stats.failed == 2
        assert stats.available == 1
        assert stats.current_index == 2
        assert stats.failed_endpoints == sorted([endpoints[0], endpoints[2]])
