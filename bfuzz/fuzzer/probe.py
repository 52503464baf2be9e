"""Async TCP probe: connect, send one payload, read until the peer closes."""
import asyncio
import logging

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
)

from .models import (
    AttemptOutcome,
    Failure,
    ProbeConnectionError,
    ProbeError,
    ProbeIOError,
    ProbeTimeout,
    Success,
    TargetAddress,
)

logger = logging.getLogger(__name__)

READ_CHUNK = 4096
# Pause before retrying an attempt whose read timed out.
TIMEOUT_BACKOFF = 0.1


def _backoff(retry_state) -> float:
    """Only timeouts back off; connection and I/O failures retry immediately."""
    if isinstance(retry_state.outcome.exception(), ProbeTimeout):
        return TIMEOUT_BACKOFF
    return 0.0


class ProbeExecutor:
    """Sends payloads to a fixed target, retrying the whole connect-write-read cycle."""

    def __init__(
        self,
        target: TargetAddress,
        newline: bool = True,
        retry_limit: int = 3,
        response_timeout: float = 0.25,
        connect_timeout: float = 3.0,
        settle_delay: float = 0.1,
    ):
        self.target = target
        self.newline = newline
        self.retry_limit = retry_limit
        self.response_timeout = response_timeout
        self.connect_timeout = connect_timeout
        self.settle_delay = settle_delay

    async def probe(self, payload: str) -> AttemptOutcome:
        """
        Probe the target with one payload.

        Never raises for network conditions: exhausted retries come back
        as a Failure carrying the last error.
        """
        attempts = 0
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.retry_limit),
                wait=_backoff,
                retry=retry_if_exception_type(ProbeError),
                before_sleep=before_sleep_log(logger, logging.DEBUG),
                reraise=True,
            ):
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    response = await self._attempt(payload)
        except ProbeError as e:
            return Failure(payload=payload, kind=e.kind, message=str(e), attempts=attempts)

        return Success(payload=payload, response=response, attempts=attempts)

    async def _attempt(self, payload: str) -> bytes:
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(self.target.host, self.target.port),
                timeout=self.connect_timeout
            )
        except asyncio.TimeoutError as e:
            raise ProbeConnectionError(f"Connection to {self.target} timed out") from e
        except OSError as e:
            raise ProbeConnectionError(f"Could not connect to {self.target}: {e}") from e

        try:
            if self.settle_delay > 0:
                await asyncio.sleep(self.settle_delay)

            data = payload + "\n" if self.newline else payload
            try:
                writer.write(data.encode("utf-8"))
                await writer.drain()
            except OSError as e:
                raise ProbeIOError(f"Could not send payload: {e}") from e

            return await self._read_response(reader)
        finally:
            await self._close(writer)

    async def _read_response(self, reader: asyncio.StreamReader) -> bytes:
        """Accumulate reads until EOF; each read is bounded by the response timeout."""
        buffer = bytearray()
        while True:
            try:
                chunk = await asyncio.wait_for(reader.read(READ_CHUNK), timeout=self.response_timeout)
            except asyncio.TimeoutError as e:
                raise ProbeTimeout(
                    f"No response within {self.response_timeout * 1000:.0f}ms"
                ) from e
            except OSError as e:
                raise ProbeIOError(f"Could not read response: {e}") from e

            if not chunk:
                return bytes(buffer)
            buffer.extend(chunk)

    async def _close(self, writer: asyncio.StreamWriter) -> None:
        writer.close()
        try:
            await writer.wait_closed()
        except OSError as e:
            logger.debug(f"Error closing connection to {self.target}: {e}")
