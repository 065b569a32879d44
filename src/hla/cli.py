from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from hla.errors import LogAnalysisError
from hla.models import TopEntry
from hla.stats import DEFAULT_TOP, TrafficSummary, summarize


def _render_table(title: str, rows: list[TopEntry]) -> str:
    lines = [f"{title}:"]
    for key, count in rows:
        lines.append(f"    {key}: {count}")
    return "\n".join(lines)


def render_text(
    summary: TrafficSummary, top: int, with_host: bool = False
) -> str:
    sections = [
        "Number of unique client IP addresses: "
        f"{summary.unique_clients}",
        _render_table(
            f"Top {top} client IPs and associated request counts",
            summary.top_clients,
        ),
        _render_table(
            f"Top {top} URLs (in abs_path form) and associated "
            "request counts",
            summary.top_paths,
        ),
    ]
    if with_host:
        sections.append(
            _render_table(
                f"Top {top} URLs (including host) and associated "
                "request counts",
                summary.top_urls,
            )
        )
    return "\n".join(sections)


def render_json(summary: TrafficSummary) -> str:
    payload = {
        "total": summary.total,
        "unique_clients": summary.unique_clients,
        "top_clients": [
            [str(address), count]
            for address, count in summary.top_clients
        ],
        "top_paths": [list(entry) for entry in summary.top_paths],
        "top_urls": [list(entry) for entry in summary.top_urls],
    }
    return json.dumps(payload, indent=2)


def analyze(
    path: Path,
    top: int,
    as_json: bool,
    with_host: bool,
) -> int:
    try:
        lines = path.read_text(
            encoding="utf-8", errors="replace"
        ).splitlines()
    except FileNotFoundError:
        print(f"File not found: {path}", file=sys.stderr)
        return 2

    try:
        summary = summarize(
            lines, top=top, source=str(path), with_host=with_host
        )
    except LogAnalysisError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if as_json:
        print(render_json(summary))
    else:
        print(render_text(summary, top, with_host))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="HTTP access log analyzer"
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Debug logging on stderr",
    )
    subparsers = parser.add_subparsers(
        dest="command", required=True
    )

    ap = subparsers.add_parser(
        "analyze", help="Analyze an access log"
    )
    ap.add_argument(
        "logfile", type=Path, help="Path to access log"
    )
    ap.add_argument(
        "--top",
        type=int,
        default=DEFAULT_TOP,
        help=f"Top N results (default: {DEFAULT_TOP})",
    )
    ap.add_argument(
        "--json",
        action="store_true",
        help="JSON output",
    )
    ap.add_argument(
        "--with-host",
        action="store_true",
        help="Also rank URLs including the host, inferring it "
        "from other requests of the same client when missing",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "analyze":
        return analyze(
            args.logfile, args.top, args.json, args.with_host
        )

    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
