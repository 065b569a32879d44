from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from urllib.parse import SplitResult, urlsplit


class TargetForm(Enum):
    """Request-target forms from RFC 7230 section 5.3."""

    ABSOLUTE = "absolute"
    ORIGIN = "origin"
    ASTERISK = "asterisk"
    AUTHORITY = "authority"


def normalize_path(raw_path: str) -> str:
    return raw_path.split("#", 1)[0].split("?", 1)[0]


def _split_absolute(raw: str) -> SplitResult | None:
    if "://" not in raw:
        return None
    try:
        parts = urlsplit(raw)
    except ValueError:
        # e.g. an unbalanced IPv6 bracket in the netloc
        return None
    if not parts.scheme or not parts.netloc:
        return None
    return parts


def classify_target(raw: str) -> TargetForm:
    if raw == "*":
        return TargetForm.ASTERISK
    if _split_absolute(raw) is not None:
        return TargetForm.ABSOLUTE
    if raw.startswith("/"):
        return TargetForm.ORIGIN
    return TargetForm.AUTHORITY


def resolve_path(raw: str) -> str | None:
    """Resolve a raw request target to its absolute path.

    Query strings and fragments are dropped.  Returns ``None`` for
    ``*`` and for bare authorities such as ``example.com:443``.

    A scheme-less host followed by a path (``example.com/foo``) cannot
    be told apart from a relative path and resolves to
    ``/example.com/foo``.
    """
    form = classify_target(raw)
    if form is TargetForm.ASTERISK:
        return None
    if form is TargetForm.ABSOLUTE:
        parts = _split_absolute(raw)
        return parts.path or "/"
    if form is TargetForm.ORIGIN:
        return normalize_path(raw)
    if "/" not in raw:
        return None
    return "/" + normalize_path(raw)


def resolve_host(raw: str) -> str | None:
    """Host of an absolute-form target, lowercased, without port."""
    parts = _split_absolute(raw)
    if parts is None:
        return None
    try:
        return parts.hostname
    except ValueError:
        return None


@dataclass(frozen=True)
class RequestTarget:
    raw: str
    form: TargetForm

    @classmethod
    def from_raw(cls, raw: str) -> RequestTarget:
        return cls(raw=raw, form=classify_target(raw))

    @property
    def path(self) -> str | None:
        return resolve_path(self.raw)

    @property
    def host(self) -> str | None:
        return resolve_host(self.raw)
