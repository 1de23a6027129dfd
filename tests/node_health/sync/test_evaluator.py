"""Tests for the two-stage sync state evaluation."""

from __future__ import annotations

from dataclasses import replace

import pytest
from hypothesis import given
from hypothesis import strategies as st

from node_health.errors import ProtocolError, TransientNetworkError
from node_health.sync import NodeState, assess, evaluate
from tests.node_health.helpers import NOW, make_sample

THRESHOLD = 60.0

timestamps = st.integers(min_value=0, max_value=2**40)
thresholds = st.integers(min_value=0, max_value=86_400)


class TestEvaluate:
    """First stage: poll outcome and syncing flag only."""

    def test_transient_error_is_unreachable(self) -> None:
        """A node that did not answer is UNREACHABLE."""
        assert evaluate(TransientNetworkError("refused")) is NodeState.UNREACHABLE

    def test_protocol_error_is_error(self) -> None:
        """A node that answered nonsense is ERROR."""
        assert evaluate(ProtocolError("bad json")) is NodeState.ERROR

    def test_syncing_flag(self) -> None:
        """The node's syncing flag maps straight to SYNCING."""
        assert evaluate(make_sample(is_syncing=True)) is NodeState.SYNCING

    def test_not_syncing_is_candidate_synced(self) -> None:
        """Not syncing is only a candidate: the head age is not looked at yet."""
        stale = make_sample(is_syncing=False, head_timestamp=0)
        assert evaluate(stale) is NodeState.SYNCED

    @pytest.mark.parametrize("flag", ["false", 0, None, "no"])
    def test_unparsed_flag_is_error(self, flag: object) -> None:
        """A flag that is not a real boolean never falls through to SYNCED."""
        sample = replace(make_sample(), is_syncing=flag)  # type: ignore[arg-type]
        assert evaluate(sample) is NodeState.ERROR


class TestAssess:
    """Both stages together."""

    def test_fresh_synced_node(self) -> None:
        """Synced with a 10-second-old head against a 60-second threshold."""
        sample = make_sample(head_timestamp=int(NOW) - 10)
        assert assess(sample, NOW, THRESHOLD) is NodeState.SYNCED

    def test_zombie_node(self) -> None:
        """Synced with a 120-second-old head is STALE."""
        sample = make_sample(head_timestamp=int(NOW) - 120)
        assert assess(sample, NOW, THRESHOLD) is NodeState.STALE

    def test_errors_pass_through(self) -> None:
        """Failures are not touched by the freshness check."""
        assert assess(TransientNetworkError("x"), NOW, THRESHOLD) is NodeState.UNREACHABLE
        assert assess(ProtocolError("x"), NOW, THRESHOLD) is NodeState.ERROR

    @given(head=timestamps, age=st.integers(min_value=0, max_value=86_400), threshold=thresholds)
    def test_fresh_head_is_synced(self, head: int, age: int, threshold: int) -> None:
        """Not syncing and head age within the threshold is always SYNCED."""
        age = min(age, threshold)
        sample = make_sample(is_syncing=False, head_timestamp=head)
        assert assess(sample, head + age, threshold) is NodeState.SYNCED

    @given(head=timestamps, excess=st.integers(min_value=1, max_value=10**9), threshold=thresholds)
    def test_old_head_is_stale(self, head: int, excess: int, threshold: int) -> None:
        """Not syncing and head age beyond the threshold is STALE, never SYNCED."""
        sample = make_sample(is_syncing=False, head_timestamp=head)
        assert assess(sample, head + threshold + excess, threshold) is NodeState.STALE

    @given(
        head=st.one_of(st.none(), timestamps),
        now=timestamps,
        threshold=thresholds,
    )
    def test_syncing_ignores_head_age(self, head: int | None, now: int, threshold: int) -> None:
        """A syncing node is SYNCING whatever its head age."""
        sample = make_sample(is_syncing=True, head_timestamp=head)
        assert assess(sample, now, threshold) is NodeState.SYNCING

    @given(
        syncing=st.booleans(),
        head=st.one_of(st.none(), timestamps),
        now=timestamps,
        threshold=thresholds,
    )
    def test_idempotent(self, syncing: bool, head: int | None, now: int, threshold: int) -> None:
        """The same sample assessed twice yields the same state."""
        sample = make_sample(is_syncing=syncing, head_timestamp=head)
        assert assess(sample, now, threshold) is assess(sample, now, threshold)
