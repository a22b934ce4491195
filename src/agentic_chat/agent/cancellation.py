"""Cooperative cancellation for agent runs."""


class RequestCancelledError(Exception):
    """Raised when a run observes that its cancellation token was set."""

    def __init__(self, message: str = "Request was cancelled") -> None:
        super().__init__(message)


class CancellationToken:
    """Level-triggered cancellation flag shared by the loop and its collaborators.

    The flag is polled, never awaited: the agent loop checks it at the start
    of every iteration and after every tool execution, and a streaming provider
    checks it between stream events.
    """

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def reset(self) -> None:
        self._cancelled = False

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise RequestCancelledError()
