"""Run log shared by the pipeline stages of a single hygiene run."""

import logging

logger = logging.getLogger(__name__)


class RunLog:
    """Collects the human-readable lines emitted during one run.

    Every line is also forwarded to a standard logger so it reaches the
    console handler configured by the CLI. The collected lines are what the
    optional run-log email contains.
    """

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._logger = log or logger
        self._entries: list[str] = []
        self.error_count = 0

    def info(self, message: str) -> None:
        self._entries.append(message)
        self._logger.info(message)

    def error(self, message: str) -> None:
        self._entries.append(message)
        self.error_count += 1
        self._logger.error(message)

    def snapshot(self) -> list[str]:
        """Copy of the lines recorded so far."""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
