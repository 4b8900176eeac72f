"""Unit tests for the index readiness signal."""

import pytest

from docsite_search.search.readiness import IndexReadiness


@pytest.mark.unit
class TestIndexReadiness:
    def test_starts_not_ready(self):
        readiness = IndexReadiness()

        assert not readiness.is_ready
        assert not readiness

    def test_subscribers_see_each_transition_once(self):
        readiness = IndexReadiness()
        seen = []
        readiness.subscribe(seen.append)

        readiness.mark_ready()
        readiness.mark_ready()
        readiness.reset()
        readiness.reset()
        readiness.mark_ready()

        assert seen == [False, True, False, True]

    def test_subscribe_without_replay(self):
        readiness = IndexReadiness()
        readiness.mark_ready()
        seen = []

        readiness.subscribe(seen.append, replay=False)
        readiness.reset()

        assert seen == [False]

    def test_unsubscribe_stops_notifications(self):
        readiness = IndexReadiness()
        seen = []
        unsubscribe = readiness.subscribe(seen.append, replay=False)

        unsubscribe()
        unsubscribe()
        readiness.mark_ready()

        assert seen == []
        assert readiness.is_ready
