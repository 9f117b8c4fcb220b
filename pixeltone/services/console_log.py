import logging
from typing import List


class SessionFilter(logging.Filter):
    """Pass only records tagged with one ``session_id`` (see LoggerAdapter extra)."""

    def __init__(self, session_id: str):
        super().__init__()
        self.session_id = session_id

    def filter(self, record: logging.LogRecord) -> bool:
        return getattr(record, "session_id", None) == self.session_id


class ConsoleLogHandler(logging.Handler):
    """
    Collects formatted log records as the lines of a console panel.
    Attach it to a logger; read the lines back with ``lines()``.
    With a ``session_id`` it keeps only that session's records.
    """

    def __init__(self, level=logging.INFO, max_lines: int | None = None, session_id: str | None = None):
        super().__init__(level)
        self.max_lines = max_lines
        self._lines: List[str] = []
        self.setFormatter(logging.Formatter("%(message)s"))
        if session_id is not None:
            self.addFilter(SessionFilter(session_id))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
        except Exception:
            self.handleError(record)
            return
        self._lines.append(msg)
        if self.max_lines is not None and len(self._lines) > self.max_lines:
            del self._lines[: len(self._lines) - self.max_lines]

    def lines(self) -> List[str]:
        return list(self._lines)

    def clear(self) -> None:
        self._lines.clear()

    def attach_to_logger(self, logger: logging.Logger) -> None:
        if self not in logger.handlers:
            logger.addHandler(self)

    def detach_from_logger(self, logger: logging.Logger) -> None:
        logger.removeHandler(self)
