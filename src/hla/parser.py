from __future__ import annotations

import ipaddress
import logging
import re
from datetime import datetime
from typing import Iterable, Protocol

from hla.errors import EmptyInput, LineParseFailure, MalformedLine
from hla.models import IPAddress, LogRecord
from hla.target import RequestTarget

logger = logging.getLogger(__name__)

# A log line is a sequence of quoted strings, bracketed groups and
# runs of non-space characters.
TOKEN_RE = re.compile(r'"[^"]*"|\[[^\]]*\]|\S+')

ADDRESS_INDEX = 0
TIMESTAMP_INDEX = 3
REQUEST_INDEX = 4
STATUS_INDEX = 5

# At least (highest index above) + 1.
MIN_TOKENS = 6

# Example: 10/Jul/2018:22:01:17 +0200
TIMESTAMP_FORMAT = "%d/%b/%Y:%H:%M:%S %z"
TIMESTAMP_RE = re.compile(
    r"\d{2}/[A-Za-z]{3}/\d{4}:\d{2}:\d{2}:\d{2} [+-]\d{4}"
)

# e.g. "GET http://example.net/faq/ HTTP/1.1"
REQUEST_RE = re.compile(
    r"(?P<method>\w+) (?P<target>\S+) HTTP/(?P<version>\S+)"
)

STATUS_RE = re.compile(r"\d+", re.ASCII)


def tokenize_line(line: str) -> list[str]:
    return TOKEN_RE.findall(line)


class LineParser(Protocol):
    def parse(self, line: str) -> LogRecord:
        ...


def _parse_address(token: str, line: str) -> IPAddress:
    try:
        return ipaddress.ip_address(token)
    except ValueError:
        raise MalformedLine(
            f"Invalid client address {token!r}", line
        ) from None


def _parse_timestamp(token: str, line: str) -> datetime:
    text = token.strip("[]")
    if TIMESTAMP_RE.fullmatch(text):
        try:
            return datetime.strptime(text, TIMESTAMP_FORMAT)
        except ValueError:
            pass
    raise MalformedLine(f"Invalid timestamp {text!r}", line)


def _parse_request(token: str, line: str) -> tuple[str, str]:
    summary = token.strip('"')
    match = REQUEST_RE.fullmatch(summary)
    if not match:
        raise MalformedLine(
            f"Invalid HTTP request summary {summary!r}", line
        )
    return match.group("method"), match.group("target")


def _parse_status(token: str, line: str) -> int:
    if not STATUS_RE.fullmatch(token):
        raise MalformedLine(f"Invalid status code {token!r}", line)
    try:
        return int(token)
    except ValueError:
        # past the interpreter's int string conversion limit
        raise MalformedLine(
            f"Invalid status code {token[:20]!r}...", line
        ) from None


class LogLineParser:
    """Parses Common/Combined Log Format lines.

    Fields past the status code (byte count, referer, user agent,
    anything else) are ignored.
    """

    def parse(self, line: str) -> LogRecord:
        tokens = tokenize_line(line)
        if len(tokens) < MIN_TOKENS:
            raise MalformedLine(
                "Too few fields (expected at least "
                f"{MIN_TOKENS}, got {len(tokens)})",
                line,
            )

        address = _parse_address(tokens[ADDRESS_INDEX], line)
        timestamp = _parse_timestamp(tokens[TIMESTAMP_INDEX], line)
        method, target = _parse_request(tokens[REQUEST_INDEX], line)
        status = _parse_status(tokens[STATUS_INDEX], line)
        return LogRecord(
            client_address=address,
            timestamp=timestamp,
            method=method,
            request_target=RequestTarget.from_raw(target),
            status_code=status,
        )


_default_parser = LogLineParser()


def parse_line(line: str) -> LogRecord:
    return _default_parser.parse(line)


def format_line(record: LogRecord) -> str:
    """Render *record* as a Common Log Format line."""
    timestamp = record.timestamp.strftime(TIMESTAMP_FORMAT)
    return (
        f"{record.client_address} - - [{timestamp}]"
        f' "{record.method} {record.request_target.raw} HTTP/1.1"'
        f" {record.status_code} -"
    )


class LogFileParser:
    def __init__(self, line_parser: LineParser | None = None) -> None:
        self._line_parser = line_parser or _default_parser

    def parse_all(
        self,
        lines: Iterable[str],
        source: str = "<input>",
    ) -> list[LogRecord]:
        """Parse every line of *source*.

        Raises :class:`EmptyInput` when *lines* yields nothing and
        :class:`LineParseFailure` on the first line that fails to
        parse.
        """
        records: list[LogRecord] = []
        line_number = 0
        for line in lines:
            line_number += 1
            try:
                records.append(self._line_parser.parse(line))
            except Exception as exc:
                raise LineParseFailure(
                    source, line_number, exc
                ) from exc

        if line_number == 0:
            raise EmptyInput(source)
        logger.debug("Parsed %d lines from %s", line_number, source)
        return records


def parse_all(
    lines: Iterable[str],
    source: str = "<input>",
    line_parser: LineParser | None = None,
) -> list[LogRecord]:
    return LogFileParser(line_parser).parse_all(lines, source=source)
