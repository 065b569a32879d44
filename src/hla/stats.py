from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field, replace
from ipaddress import IPv6Address
from typing import Iterable

from hla.models import IPAddress, LogRecord, TopEntry
from hla.parser import LineParser, LogFileParser

logger = logging.getLogger(__name__)

DEFAULT_TOP = 3


@dataclass
class TrafficSummary:
    total: int
    unique_clients: int
    top_clients: list[TopEntry]
    top_paths: list[TopEntry]
    top_urls: list[TopEntry] = field(default_factory=list)


def _top(counter: Counter, n: int) -> list[TopEntry]:
    if n <= 0:
        return []
    # most_common keeps first-encountered order for equal counts.
    return [TopEntry(key, count) for key, count in counter.most_common(n)]


def is_success(status_code: int) -> bool:
    return 200 <= status_code <= 299


def _is_successful_get(record: LogRecord) -> bool:
    return record.method == "GET" and is_success(record.status_code)


def count_unique_clients(records: Iterable[LogRecord]) -> int:
    return len({record.client_address for record in records})


def top_clients(
    records: Iterable[LogRecord], n: int = DEFAULT_TOP
) -> list[TopEntry]:
    counter: Counter[IPAddress] = Counter(
        record.client_address for record in records
    )
    return _top(counter, n)


def top_paths(
    records: Iterable[LogRecord], n: int = DEFAULT_TOP
) -> list[TopEntry]:
    """Most requested paths over successful GET requests.

    Scheme, host and query are dropped, so ``http://a/x?q=1`` and
    ``/x`` count as the same path.  ``*`` targets have no path and
    are skipped.
    """
    counter: Counter[str] = Counter()
    for record in records:
        if not _is_successful_get(record):
            continue
        path = record.path
        if path is None:
            continue
        counter[path] += 1
    return _top(counter, n)


def infer_hosts(records: Iterable[LogRecord]) -> dict[IPAddress, str]:
    """Map each client address to the single host it requested.

    Only absolute-form targets carry a host.  An address seen with
    two different hosts is ambiguous and gets no entry.
    """
    known: dict[IPAddress, str] = {}
    ambiguous: set[IPAddress] = set()
    for record in records:
        host = record.request_target.host
        address = record.client_address
        if host is None or address in ambiguous:
            continue
        current = known.get(address)
        if current is None:
            known[address] = host
        elif current != host:
            logger.debug(
                "Client %s has multiple hosts: %s, %s",
                address,
                current,
                host,
            )
            ambiguous.add(address)
            del known[address]
    return known


def enrich_records(
    records: Iterable[LogRecord],
    known_hosts: dict[IPAddress, str],
) -> list[LogRecord]:
    enriched = []
    for record in records:
        host = known_hosts.get(record.client_address)
        if host is not None and record.request_target.host is None:
            record = replace(record, inferred_host=host)
        enriched.append(record)
    return enriched


def url_with_host(record: LogRecord) -> str | None:
    """Absolute URL of *record*, without query.

    Falls back to the client address when no host is known, e.g.
    ``http://192.168.1.1/foo``.
    """
    path = record.path
    if path is None:
        return None
    host = record.host
    if host is None:
        address = record.client_address
        if isinstance(address, IPv6Address):
            host = f"[{address}]"
        else:
            host = str(address)
    elif ":" in host:
        host = f"[{host}]"
    return f"http://{host}{path}"


def top_urls_with_host(
    records: Iterable[LogRecord], n: int = DEFAULT_TOP
) -> list[TopEntry]:
    records = list(records)
    known_hosts = infer_hosts(records)
    logger.debug("Inferred hosts for %d clients", len(known_hosts))

    counter: Counter[str] = Counter()
    for record in enrich_records(records, known_hosts):
        if not _is_successful_get(record):
            continue
        url = url_with_host(record)
        if url is None:
            continue
        counter[url] += 1
    return _top(counter, n)


def summarize(
    lines: Iterable[str],
    top: int = DEFAULT_TOP,
    source: str = "<input>",
    with_host: bool = False,
    line_parser: LineParser | None = None,
) -> TrafficSummary:
    """Parse *lines* and compute every statistic.

    Parse errors propagate from :class:`LogFileParser`.
    """
    records = LogFileParser(line_parser).parse_all(lines, source=source)
    return TrafficSummary(
        total=len(records),
        unique_clients=count_unique_clients(records),
        top_clients=top_clients(records, top),
        top_paths=top_paths(records, top),
        top_urls=top_urls_with_host(records, top) if with_host else [],
    )
