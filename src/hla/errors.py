from __future__ import annotations


class LogAnalysisError(Exception):
    """Base class for every error raised while analyzing a log."""


class MalformedLine(LogAnalysisError, ValueError):
    def __init__(self, reason: str, line: str) -> None:
        super().__init__(f"{reason}: {line!r}")
        self.reason = reason
        self.line = line


class LineParseFailure(LogAnalysisError):
    """A line of *source* could not be parsed.

    The original :class:`MalformedLine` is kept on ``error`` and as
    the exception cause.
    """

    def __init__(
        self, source: str, line_number: int, error: Exception
    ) -> None:
        super().__init__(
            f"Failed to parse line {line_number} of {source}: {error}"
        )
        self.source = source
        self.line_number = line_number
        self.error = error


class EmptyInput(LogAnalysisError, ValueError):
    def __init__(self, source: str) -> None:
        super().__init__(f"Log {source} is empty")
        self.source = source
