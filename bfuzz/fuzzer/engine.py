"""Bounded-concurrency fuzzing engine."""
import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional, Set

from .classifier import ResponseClassifier
from .models import (
    AttemptOutcome,
    ConfigError,
    ErrorKind,
    Failure,
    ScanStats,
    ScanSummary,
    Success,
    TargetAddress,
)
from .probe import ProbeExecutor
from .reporter import BaseReporter
from .wordlist import MAX_PADDING, PayloadSource, Wordlist


@dataclass
class ScanSession:
    """Mutable state of one scan. Only the engine's supervising loop touches it."""
    reporter: BaseReporter
    total: int
    padding: int
    stats: ScanStats = field(default_factory=ScanStats)
    findings: List[Success] = field(default_factory=list)
    failures: List[Failure] = field(default_factory=list)
    started: float = field(default_factory=time.perf_counter)


class FuzzEngine:
    """
    Keeps up to ``batch_size`` probes in flight until the payload source
    runs dry, then drains the rest.

    Outcomes are handled in completion order. Every payload pulled from
    the source produces exactly one outcome.
    """

    def __init__(
        self,
        executor: ProbeExecutor,
        classifier: Optional[ResponseClassifier] = None,
        batch_size: int = 1000
    ):
        if batch_size < 1:
            raise ConfigError(f"batch size must be >= 1, got {batch_size}")
        self.executor = executor
        self.classifier = classifier or ResponseClassifier()
        self.batch_size = batch_size
        self.logger = logging.getLogger(__name__)

    async def run(self, source: PayloadSource, reporter: Optional[BaseReporter] = None) -> ScanSummary:
        """Fuzz the executor's target with every payload from ``source``."""
        total, max_length = source.open()
        session = ScanSession(
            reporter=reporter or BaseReporter(),
            total=total,
            padding=min(max_length, MAX_PADDING),
        )
        target = str(self.executor.target)
        self.logger.info(f"Fuzzing {target} with {total} payloads, batch size {self.batch_size}")
        session.reporter.on_start(target, total, self.batch_size)

        pending: Set[asyncio.Task] = set()

        def launch_next() -> bool:
            payload = source.next()
            if payload is None:
                return False
            pending.add(asyncio.create_task(self.executor.probe(payload)))
            session.stats.launched += 1
            session.stats.in_flight = len(pending)
            session.stats.peak_in_flight = max(session.stats.peak_in_flight, len(pending))
            return True

        try:
            while len(pending) < self.batch_size and launch_next():
                pass

            while pending:
                done, _ = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    pending.discard(task)
                    launch_next()
                    session.stats.in_flight = len(pending)
                    self._record(session, task.result())
        finally:
            source.close()
            session.reporter.close()
            if pending:
                for task in pending:
                    task.cancel()
                await asyncio.gather(*pending, return_exceptions=True)
                self.logger.info(f"Cancelled {len(pending)} in-flight probes")

        summary = self._summarize(session, target)
        self.logger.info(
            f"Fuzzing {target} finished in {summary.duration:.2f}s: "
            f"{summary.interesting} interesting, {summary.timeouts} timeouts, {summary.errors} errors"
        )
        session.reporter.on_complete(summary)
        return summary

    def _record(self, session: ScanSession, outcome: AttemptOutcome) -> None:
        stats = session.stats
        stats.completed += 1

        if isinstance(outcome, Success):
            if self.classifier.is_interesting(outcome.text):
                stats.interesting += 1
                session.findings.append(outcome)
                session.reporter.on_finding(outcome, session.padding)
            else:
                stats.suppressed += 1
        elif outcome.kind == ErrorKind.TIMEOUT:
            stats.timeouts += 1
        else:
            stats.errors += 1
            session.failures.append(outcome)
            self.logger.debug(
                f"Payload {outcome.payload!r} failed after {outcome.attempts} attempts: "
                f"{outcome.kind.value}: {outcome.message}"
            )
            session.reporter.on_error(outcome)

        session.reporter.on_progress(stats)

    def _summarize(self, session: ScanSession, target: str) -> ScanSummary:
        stats = session.stats
        return ScanSummary(
            target=target,
            total=session.total,
            completed=stats.completed,
            interesting=stats.interesting,
            suppressed=stats.suppressed,
            timeouts=stats.timeouts,
            errors=stats.errors,
            peak_in_flight=stats.peak_in_flight,
            duration=time.perf_counter() - session.started,
            findings=session.findings,
            failures=session.failures,
        )


async def fuzz(
    config,
    reporter: Optional[BaseReporter] = None,
    source: Optional[PayloadSource] = None
) -> ScanSummary:
    """Resolve the configured target and fuzz it with the configured wordlist."""
    if source is None:
        if not config.wordlist:
            raise ConfigError("No wordlist given")
        source = Wordlist(config.wordlist)

    target = await TargetAddress(config.host, config.port).resolve()
    executor = ProbeExecutor(
        target,
        newline=config.newline,
        retry_limit=config.retries,
        response_timeout=config.timeout,
        connect_timeout=config.connect_timeout,
        settle_delay=config.settle_delay,
    )
    engine = FuzzEngine(executor, ResponseClassifier.from_config(config), config.batch_size)
    return await engine.run(source, reporter)
