"""Cooperative cancellation for deck loads."""


class LoadCancelledError(Exception):
    """Raised when a superseded load reaches a cancellation checkpoint.

    Never surfaced to the user; the controller treats it as a silent stop.
    """


class CancellationToken:
    """One-shot cancellation flag threaded through a single load.

    The feed loop checks the token at the head of every rotation attempt
    and again before a batch is committed, so a superseded load either
    commits a whole batch or nothing.
    """

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def is_cancelled(self) -> bool:
        """Whether cancel() has been called."""
        return self._cancelled

    def cancel(self) -> None:
        """Mark the load as superseded. Idempotent."""
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        """Raise LoadCancelledError if the token was cancelled.

        Raises:
            LoadCancelledError: If cancel() has been called.
        """
        if self._cancelled:
            raise LoadCancelledError("load superseded")
