"""
Poll/retry controller.

Drives one independent polling loop per selected target under a single
shared deadline.

Per-Target State Machine
------------------------
::

    PENDING --> POLLING --+--> CONVERGED
                          |
                          +--> TIMED_OUT

How It Works
------------
1. Poll the node through its adapter
2. Assess the outcome (evaluator, then freshness check)
3. Overwrite the target's current state
4. Stop if the state is favorable, otherwise sleep one interval
5. Repeat until converged or the deadline passes

Failed polls (unreachable node, bad response) never stop a loop early; they
are retried until the deadline. Each loop is the only writer of its own
TargetStatus, and the statuses are only read once every loop has returned,
so no locking is needed.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, auto

import httpx

from node_health import metrics
from node_health.adapters import RawSample, SampleAdapter, adapter_for
from node_health.errors import AdapterError, ProtocolError
from node_health.sync import NodeState, PollOutcome, assess, head_age
from node_health.targets import Layer, Target

from .config import VerifierConfig

logger = logging.getLogger(__name__)


class PollPhase(Enum):
    """Lifecycle of one target's polling loop."""

    PENDING = auto()
    """Loop not started yet."""

    POLLING = auto()
    """Loop running; no favorable state seen so far."""

    CONVERGED = auto()
    """A favorable state was reached before the deadline; polling stopped."""

    TIMED_OUT = auto()
    """The deadline passed before a favorable state was reached."""


@dataclass(slots=True)
class TargetStatus:
    """Mutable record of one target's progress, owned by its polling loop."""

    target: Target
    """The endpoint being polled."""

    phase: PollPhase = PollPhase.PENDING
    """Where the loop is in its lifecycle."""

    state: NodeState | None = None
    """Latest assessed state, or None if no poll completed before the deadline."""

    sample: RawSample | None = None
    """Latest successful sample."""

    attempts: int = 0
    """Polls completed before the deadline."""

    failure_streak: int = 0
    """Consecutive failed polls, reset by any successful sample."""

    converged_after: float | None = None
    """Seconds from run start to convergence."""


@dataclass(slots=True)
class PollController:
    """Runs every selected target's polling loop and collects the results."""

    config: VerifierConfig
    """Validated run settings."""

    transport: httpx.AsyncBaseTransport | None = None
    """Optional HTTP transport override handed to the default adapters."""

    adapter_factory: Callable[[Layer], SampleAdapter] | None = None
    """Optional adapter builder replacing the default per-layer adapters."""

    time_fn: Callable[[], float] = time.time
    """Wall-clock source for head age (injectable for testing)."""

    statuses: list[TargetStatus] = field(default_factory=list)
    """One record per selected target, in reporting order."""

    async def run(self) -> list[TargetStatus]:
        """
        Poll every target until it converges or the deadline passes.

        Returns as soon as every target has converged; it does not wait out
        the deadline.

        Returns:
            The final status of every selected target, EL before CL.
        """
        loop = asyncio.get_running_loop()
        started = loop.time()
        deadline = started + self.config.timeout

        self.statuses = [TargetStatus(target=target) for target in self.config.targets]
        logger.info(
            "Verifying %s (deadline %.0fs, interval %.1fs, pending %s)",
            ", ".join(str(status.target) for status in self.statuses),
            self.config.timeout,
            self.config.interval,
            "accepted" if self.config.accept_pending else "not accepted",
        )

        await asyncio.gather(
            *(self._poll_target(status, started, deadline) for status in self.statuses)
        )
        return self.statuses

    def _build_adapter(self, layer: Layer) -> SampleAdapter:
        if self.adapter_factory is not None:
            return self.adapter_factory(layer)
        return adapter_for(layer, self.config.request_timeout, self.transport)

    async def _poll_target(self, status: TargetStatus, started: float, deadline: float) -> None:
        """
        Polling loop for a single target.

        NOTE: A poll still in flight when the deadline passes is allowed to
        finish, but its result is discarded and no further poll is started.
        """
        loop = asyncio.get_running_loop()
        adapter = self._build_adapter(status.target.layer)
        status.phase = PollPhase.POLLING

        while True:
            outcome = await self._attempt(adapter, status.target)
            if loop.time() >= deadline:
                logger.debug("%s: discarding poll that finished after the deadline", status.target)
                break

            state = assess(outcome, self.time_fn(), self.config.stale_threshold)
            self._record(status, outcome, state)

            if state.is_favorable(self.config.accept_pending):
                status.phase = PollPhase.CONVERGED
                status.converged_after = loop.time() - started
                logger.info(
                    "%s: converged as %s after %d poll(s)",
                    status.target,
                    state.name,
                    status.attempts,
                )
                return

            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            await asyncio.sleep(min(self.config.interval, remaining))
            if loop.time() >= deadline:
                break

        status.phase = PollPhase.TIMED_OUT
        logger.warning(
            "%s: deadline reached, last state %s",
            status.target,
            status.state.name if status.state else "none (no poll completed)",
        )

    async def _attempt(self, adapter: SampleAdapter, target: Target) -> PollOutcome:
        try:
            return await adapter.sample(target)
        except AdapterError as exc:
            return exc

    def _record(self, status: TargetStatus, outcome: PollOutcome, state: NodeState) -> None:
        """Overwrite the target's current state and report progress."""
        target = status.target
        layer = target.layer.value

        status.attempts += 1
        status.state = state
        metrics.polls_total.labels(layer=layer, state=state.name).inc()
        metrics.target_state.labels(layer=layer).set(state.value)

        if isinstance(outcome, RawSample):
            status.sample = outcome
            status.failure_streak = 0

            detail = outcome.describe()
            if outcome.head_timestamp is not None:
                age = head_age(outcome.head_timestamp, self.time_fn())
                metrics.head_age_seconds.labels(layer=layer).set(age)
                detail += f", head age {age:.0f}s"
            logger.info("%s: %s (%s)", target, state.name, detail)
            return

        status.failure_streak += 1
        if isinstance(outcome, ProtocolError):
            # Logged every time: a wrong endpoint will not fix itself.
            logger.warning("%s: %s, is this the right endpoint? %s", target, state.name, outcome)
        elif status.failure_streak == 1:
            logger.warning("%s: %s: %s", target, state.name, outcome)
        else:
            logger.debug(
                "%s: still %s after %d attempts: %s",
                target,
                state.name,
                status.failure_streak,
                outcome,
            )
