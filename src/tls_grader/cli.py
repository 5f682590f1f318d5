from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Sequence
from urllib.parse import urlsplit

from cryptography import x509

from . import __version__
from .config import TRUST_STORES, Settings
from .errors import InspectionError
from .fetch import inspect_host
from .models import Report
from .render import render_text
from .trust import load_trust_anchors


def _write_output(out_path: str | None, text: str) -> None:
    if out_path:
        Path(out_path).write_text(text + "\n", encoding="utf-8")
    else:
        print(text)


def parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="tls-grader",
        description="Inspect a host's TLS certificate chain and grade it A+ to F.",
    )
    p.add_argument("targets", nargs="*", metavar="TARGET", help="URL or hostname (e.g., example.com)")
    p.add_argument("--port", type=int, help="TLS port (default: 443)")
    p.add_argument("--timeout", type=float, help="Handshake timeout seconds (default: 10)")
    p.add_argument(
        "--store",
        choices=list(TRUST_STORES),
        help="Trust store for the trust verdict (default: mozilla)",
    )
    p.add_argument("--format", choices=["json", "text"], default="json", help="Output format (default: json)")
    p.add_argument("--out", "-o", help="Write output to file (default: stdout)")
    p.add_argument("--verbose", "-v", action="store_true", help="Debug logging on stderr")
    p.add_argument("--version", action="store_true", help="Print version and exit")
    return p.parse_args(argv)


def target_to_hostname(target: str) -> str:
    """
    Hostname of a URL or bare host ("example.com", "https://example.com/x").
    """
    target = target.strip()
    if not target:
        raise ValueError("Invalid URL format")
    url = target if target.startswith("http") else f"https://{target}"
    try:
        host = urlsplit(url).hostname
    except ValueError as e:
        raise ValueError("Invalid URL format") from e
    if not host:
        raise ValueError("Invalid URL format")
    try:
        # certificates carry A-labels; match what a browser URL parser yields
        return host.encode("idna").decode("ascii")
    except UnicodeError as e:
        raise ValueError("Invalid URL format") from e


def _payload(host: str, settings: Settings, outcome: Report | InspectionError) -> dict[str, Any]:
    ok = isinstance(outcome, Report)
    return {
        "target": host,
        "version": __version__,
        "trust_store": settings.trust_store,
        "result": outcome.to_dict() if ok else None,
        "errors": [] if ok else [outcome.to_dict()],
    }


def _render(host: str, outcome: Report | InspectionError) -> str:
    if isinstance(outcome, Report):
        return render_text(outcome)
    return f"{host}: {outcome.kind}: {outcome.message}"


async def _inspect_one(
    host: str, settings: Settings, anchors: Sequence[x509.Certificate]
) -> Report | InspectionError:
    try:
        return await inspect_host(host, settings=settings, anchors=anchors)
    except InspectionError as e:
        return e


async def inspect_all(
    hosts: Sequence[str], settings: Settings, anchors: Sequence[x509.Certificate]
) -> list[Report | InspectionError]:
    return list(await asyncio.gather(*(_inspect_one(h, settings, anchors) for h in hosts)))


def main(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)

    if args.version:
        print(__version__)
        return 0

    if not args.targets:
        print("Error: at least one target is required", file=sys.stderr)
        return 1

    try:
        settings = Settings.from_env().with_overrides(
            port=args.port, timeout=args.timeout, trust_store=args.store
        )
        hosts = [target_to_hostname(t) for t in args.targets]
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        anchors = load_trust_anchors(settings.trust_store)
    except (OSError, ValueError) as e:
        print(f"Error: cannot load {settings.trust_store} trust store: {e}", file=sys.stderr)
        return 1

    outcomes = asyncio.run(inspect_all(hosts, settings, anchors))

    if args.format == "text":
        text = "\n\n".join(_render(h, o) for h, o in zip(hosts, outcomes))
    else:
        payloads = [_payload(h, settings, o) for h, o in zip(hosts, outcomes)]
        text = json.dumps(payloads[0] if len(payloads) == 1 else payloads, indent=2, ensure_ascii=False)

    _write_output(args.out, text)
    return 0 if all(isinstance(o, Report) for o in outcomes) else 3


if __name__ == "__main__":
    raise SystemExit(main())
