from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from ipaddress import IPv4Address, IPv6Address
from typing import Any, NamedTuple, Union

from hla.target import RequestTarget

IPAddress = Union[IPv4Address, IPv6Address]


@dataclass(frozen=True)
class LogRecord:
    """One parsed request line.

    ``inferred_host`` is only ever set by the aggregator, on a copy
    of the record, when the client's host can be inferred from its
    other requests.
    """

    client_address: IPAddress
    timestamp: datetime
    method: str
    request_target: RequestTarget
    status_code: int
    inferred_host: str | None = None

    @property
    def path(self) -> str | None:
        return self.request_target.path

    @property
    def host(self) -> str | None:
        return self.request_target.host or self.inferred_host


class TopEntry(NamedTuple):
    key: Any
    count: int
