"""
Propagation Monitor for submitted configuration changes.

After a mutating submission the configuration service reports the change as
PENDING until it has been distributed (COMPLETE) or rejected (DENIED). The
monitor polls the domain status at a fixed interval, within a timeout
budget, and exposes each poll as an outcome of a finite generator so the
caller decides how (and whether) to present progress.

State machine:
    PENDING -> COMPLETE | DENIED       (remote terminal states)
    PENDING -> TIMEOUT                 (budget exhausted, remote state unchanged)
    PENDING -> POLL_ERROR              (status fetch failed, no retry)
"""

import time
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

from .audit_logger import AuditLogger
from .enums import LogLevel, MonitorState, PropagationStatus
from .exceptions import GTMError, PollFetchError
from .models import DeploymentStatus

_TERMINAL_STATES = {
    PropagationStatus.COMPLETE: MonitorState.COMPLETE,
    PropagationStatus.DENIED: MonitorState.DENIED,
}


@dataclass
class PollOutcome:
    """One observation made by the monitor."""

    state: MonitorState
    status: DeploymentStatus
    elapsed_seconds: float = 0.0
    polls: int = 0
    error: Optional[PollFetchError] = None

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal

    def to_dict(self) -> dict:
        out = {
            "state": self.state.value,
            "status": self.status.to_dict(),
            "elapsedSeconds": self.elapsed_seconds,
            "polls": self.polls,
        }
        if self.error is not None:
            out["error"] = self.error.to_dict()
        return out


class PropagationMonitor:
    """
    Polls deployment status until a terminal state or the timeout budget.

    There is no cancellation other than budget exhaustion and no retry of a
    failed fetch.
    """

    def __init__(
        self,
        fetch_status: Callable[[], DeploymentStatus],
        poll_interval: float = 5.0,
        timeout: float = 300.0,
        sleep: Callable[[float], None] = time.sleep,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        """
        Initialize the monitor.

        Args:
            fetch_status: Re-fetches the deployment status of the domain
            poll_interval: Seconds between polls
            timeout: Total wait budget in seconds
            sleep: Sleep function (injected in tests)
            logger: Optional audit logger
        """
        if poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive: {poll_interval}")
        self._fetch_status = fetch_status
        self._interval = poll_interval
        self._timeout = timeout
        self._sleep = sleep
        self._logger = logger

    def poll(self, initial: DeploymentStatus) -> Iterator[PollOutcome]:
        """
        Yield one outcome per poll; the last outcome is terminal.

        A poll is only scheduled while the remaining budget covers a full
        interval, so a budget smaller than the interval ends at once with
        TIMEOUT and the initial status.

        Args:
            initial: Status returned by the mutating submission

        Yields:
            PollOutcome for each poll, ending with a terminal one
        """
        status = initial
        remaining = self._timeout
        elapsed = 0.0
        polls = 0

        if status.propagation_status in _TERMINAL_STATES:
            yield PollOutcome(_TERMINAL_STATES[status.propagation_status], status)
            return

        while status.propagation_status == PropagationStatus.PENDING and remaining >= self._interval:
            self._sleep(self._interval)
            remaining -= self._interval
            elapsed += self._interval
            polls += 1

            try:
                fetched = self._fetch_status()
            except GTMError as e:
                self._log(LogLevel.ERROR, "Unable to retrieve domain status", {
                    "change_id": status.change_id,
                    "error": e.message,
                })
                error = e if isinstance(e, PollFetchError) else PollFetchError(
                    code=e.code,
                    message=e.message,
                    details={**e.details, "change_id": status.change_id},
                )
                yield PollOutcome(MonitorState.POLL_ERROR, status, elapsed, polls, error)
                return

            status = fetched
            terminal = _TERMINAL_STATES.get(status.propagation_status)
            if terminal is not None:
                self._log(LogLevel.INFO, f"Change {terminal.value}", {
                    "change_id": status.change_id,
                    "polls": polls,
                })
                yield PollOutcome(terminal, status, elapsed, polls)
                return
            yield PollOutcome(MonitorState.PENDING, status, elapsed, polls)

        self._log(LogLevel.WARN, "Maximum wait time elapsed", {
            "change_id": status.change_id,
            "timeout_seconds": self._timeout,
        })
        yield PollOutcome(MonitorState.TIMEOUT, status, elapsed, polls)

    def wait(
        self,
        initial: DeploymentStatus,
        on_outcome: Optional[Callable[[PollOutcome], None]] = None,
    ) -> PollOutcome:
        """
        Drain the poll sequence and return its terminal outcome.

        ``on_outcome`` is called with every outcome, the terminal one included.
        """
        outcome = None
        for outcome in self.poll(initial):
            if on_outcome:
                on_outcome(outcome)
        assert outcome is not None
        return outcome

    def _log(self, level: LogLevel, message: str, data: dict) -> None:
        if self._logger:
            self._logger.log(level, "PropagationMonitor", message, data)
