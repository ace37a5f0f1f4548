import logging
import time
from typing import Callable, Optional

from ..config import PollingConfig
from ..db.transport import AthenaTransport
from ..errors import PollTimeout, QueryCancelled, QueryFailed
from ..state import PollState

logger = logging.getLogger(__name__)

UNKNOWN_FAILURE_MESSAGE = "Unknown query error"
CANCELLED_MESSAGE = "Query cancelled"


class ExecutionPoller:
    """
    Waits for an execution to reach a terminal state.

    The loop is a small state machine: it stays in PENDING for every
    non-terminal engine status and leaves on the first SUCCEEDED, FAILED or
    CANCELLED it observes. Between polls it sleeps for a fixed interval.
    Without a configured ceiling the wait is unbounded.
    """

    def __init__(
        self,
        transport: AthenaTransport,
        config: Optional[PollingConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        verbose: bool = False,
    ):
        self.transport = transport
        self.config = config or PollingConfig()
        self._sleep = sleep
        self._clock = clock
        self.verbose = verbose

    def await_completion(self, region: str, execution_id: str) -> None:
        """
        Returns once the execution succeeded.

        Raises QueryFailed with the engine's reason (or a generic message),
        QueryCancelled, or PollTimeout when a configured ceiling is hit.
        """
        state = PollState.PENDING
        polls = 0
        started = self._clock()

        while True:
            status = self.transport.get_query_execution(region, execution_id)
            polls += 1

            new_state = PollState.from_engine(status.state)
            logger.debug(f"Execution {execution_id} poll #{polls}: {status.state}")
            if new_state != state and self.verbose:
                logger.info(
                    f"Execution {execution_id} state changed: {state.value} -> {new_state.value}"
                )
            state = new_state

            if state == PollState.SUCCEEDED:
                return
            if state == PollState.FAILED:
                raise QueryFailed(status.reason or UNKNOWN_FAILURE_MESSAGE)
            if state == PollState.CANCELLED:
                raise QueryCancelled(CANCELLED_MESSAGE)

            self._check_ceilings(execution_id, polls, started)
            self._sleep(self.config.poll_interval_s)

    def _check_ceilings(self, execution_id: str, polls: int, started: float) -> None:
        max_polls = self.config.max_polls
        if max_polls is not None and polls >= max_polls:
            raise PollTimeout(
                f"Execution {execution_id} still pending after {polls} status checks"
            )

        max_wait = self.config.max_wait_s
        if max_wait is not None:
            elapsed = self._clock() - started
            if elapsed + self.config.poll_interval_s > max_wait:
                raise PollTimeout(
                    f"Execution {execution_id} still pending after {elapsed:.1f}s "
                    f"(limit {max_wait}s)"
                )
