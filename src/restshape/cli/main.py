# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""restshape CLI."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from ..client import RequestClient
from ..config import ClientSettings, load_client_settings
from ..errors import RequestError, describe_error
from ..http.models import HttpMethod
from ..http.utils import CONTENT_TYPE_JSON
from ..log import setup_logging
from ..shapes import RAW_BYTES, UNTYPED_JSON, OutputShape, RecordList

def _parse_header(raw: str) -> tuple[str, str]:
    name, sep, value = raw.partition(":")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"Header must look like 'Name: value', got {raw!r}")
    return name.strip(), value.strip()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Issue one HTTP request and print the decoded response")
    parser.add_argument("base_url", help="Absolute base URL, e.g. https://api.example.com/v1")
    parser.add_argument("path", nargs="?", default="", help="Path relative to the base URL")
    parser.add_argument(
        "-X",
        "--method",
        default="GET",
        type=str.upper,
        choices=[m.value for m in HttpMethod],
        help="HTTP method (default: GET)",
    )
    parser.add_argument(
        "-H",
        "--header",
        action="append",
        default=[],
        type=_parse_header,
        help="Extra request header 'Name: value' (repeatable)",
    )
    parser.add_argument("-d", "--data", help="Raw request body; sent as JSON when it parses as JSON")
    parser.add_argument("--keypath", help="Read a JSON array from this top-level field of the response")
    parser.add_argument(
        "--raw",
        action="store_true",
        help="Write the response body bytes to stdout instead of pretty JSON",
    )
    parser.add_argument(
        "--ignore-ssl-errors",
        action="store_true",
        help="Skip TLS verification (useful for lab/self-signed targets)",
    )
    parser.add_argument(
        "--truncate",
        type=int,
        default=0,
        metavar="BYTES",
        help="Cap every string in JSON output at BYTES (default: 0, print in full)",
    )
    parser.add_argument("--timeout", type=float, help="Request timeout in seconds")
    parser.add_argument("--log-level", help="Logging level (default: RESTSHAPE_LOG_LEVEL or WARNING)")
    return parser


def _truncate_text_bytes(text: str, max_bytes: int) -> str:
    raw = text.encode("utf-8")
    if len(raw) <= max_bytes:
        return text
    suffix = "...[truncated]"
    keep = max_bytes - len(suffix.encode("utf-8"))
    if keep <= 0:
        return suffix[:max_bytes]
    return raw[:keep].decode("utf-8", errors="ignore") + suffix


def _truncate_for_cli(value: Any, *, max_bytes: int) -> Any:
    """Truncate long strings anywhere inside decoded JSON."""
    if isinstance(value, str):
        return _truncate_text_bytes(value, max_bytes)
    if isinstance(value, dict):
        return {k: _truncate_for_cli(v, max_bytes=max_bytes) for k, v in value.items()}
    if isinstance(value, list):
        return [_truncate_for_cli(v, max_bytes=max_bytes) for v in value]
    return value


def _print_json(data: Any, *, max_bytes: int = 0) -> None:
    if max_bytes > 0:
        data = _truncate_for_cli(data, max_bytes=max_bytes)
    json.dump(data, sys.stdout, indent=2, sort_keys=True)
    sys.stdout.write("\n")


def _select_shape(args: argparse.Namespace) -> OutputShape:
    if args.raw:
        return RAW_BYTES
    if args.keypath:
        return RecordList(dict, keypath=args.keypath)
    return UNTYPED_JSON


def _request_headers(args: argparse.Namespace) -> dict[str, str]:
    headers = dict(args.header)
    if args.data is not None and not any(name.lower() == "content-type" for name in headers):
        try:
            json.loads(args.data)
        except ValueError:
            pass
        else:
            headers["Content-Type"] = CONTENT_TYPE_JSON
    return headers


async def _run(args: argparse.Namespace, settings: ClientSettings) -> Any:
    async with RequestClient(args.base_url, settings=settings) as client:
        return await client.request(
            args.method,
            args.path,
            _select_shape(args),
            body=args.data,
            headers=_request_headers(args),
            timeout=args.timeout,
        )


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    settings: ClientSettings = load_client_settings()
    if args.ignore_ssl_errors:
        settings.verify_ssl = False

    try:
        result = asyncio.run(_run(args, settings))
    except (RequestError, ValueError) as exc:
        message = describe_error(exc) if isinstance(exc, RequestError) else str(exc)
        print(f"[restshape] {message}", file=sys.stderr)
        return 1

    if args.raw:
        sys.stdout.buffer.write(result)
        sys.stdout.flush()
    else:
        _print_json(result, max_bytes=args.truncate)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
