"""Command-line entry point: run one generation and print the result.

    python -m genflow generate --provider flux --prompt "a lighthouse at dusk"
    python -m genflow providers
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
from typing import Any

from genflow.config import get_settings
from genflow.services.api_client import ApiClient
from genflow.services.cancellation import CancellationToken
from genflow.services.error_messages import resolve_generation_error_message
from genflow.services.progress import ProgressUpdate
from genflow.services.providers import PROVIDERS, GenerationRequest, get_provider, run_variant
from genflow.services.trackers import InMemoryJobTracker

logger = logging.getLogger("genflow")


def parse_option(raw: str) -> tuple[str, Any]:
    """``key=value``; the value is JSON-decoded when it parses."""
    key, sep, value = raw.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected key=value, got {raw!r}")
    try:
        return key, json.loads(value)
    except ValueError:
        return key, value


def parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="genflow", description="Run generation jobs.")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Submit one generation and wait for it.")
    gen.add_argument("--provider", required=True, choices=sorted(PROVIDERS))
    gen.add_argument("--prompt", required=True)
    gen.add_argument("--model", help="Defaults to the provider's default model.")
    gen.add_argument(
        "--option", action="append", default=[], type=parse_option, metavar="KEY=VALUE",
        help="Provider option, repeatable. Values are parsed as JSON when possible.",
    )
    gen.add_argument("--reference", action="append", default=None, help="Reference image URL.")
    gen.add_argument("--base-url", help="Generation API base URL.")
    gen.add_argument("--poll-interval", type=float)
    gen.add_argument("--poll-timeout", type=float)

    sub.add_parser("providers", help="List provider tags.")
    return parser.parse_args(argv)


def print_progress(update: ProgressUpdate) -> None:
    stage = f" ({update.stage})" if update.stage else ""
    print(f"[{update.status.value:>10}] {update.progress:5.1f}%{stage}", file=sys.stderr)


async def run_generate(args: argparse.Namespace) -> int:
    variant = get_provider(args.provider)
    request = GenerationRequest(
        prompt=args.prompt,
        model=args.model or variant.default_model,
        provider_options=dict(args.option),
        references=args.reference,
    )
    token = CancellationToken()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, token.cancel, "Interrupted")
    except NotImplementedError:
        logger.debug("SIGINT handler unavailable; Ctrl-C will abort without cleanup")

    client = ApiClient(args.base_url)
    tracker = InMemoryJobTracker()
    try:
        outcome = await run_variant(
            variant,
            request,
            tracker=tracker,
            on_progress=print_progress,
            cancel_token=token,
            poll_interval=args.poll_interval,
            poll_timeout=args.poll_timeout,
            client=client,
        )
    except Exception as exc:
        message = resolve_generation_error_message(exc)
        if message is None:
            print("Generation cancelled.", file=sys.stderr)
            return 130
        logger.debug("Generation failed", exc_info=True)
        print(f"Generation failed: {message}", file=sys.stderr)
        return 1
    finally:
        await client.aclose()

    print(outcome.result.model_dump_json(by_alias=True, exclude_none=True, indent=2))
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if args.command == "providers":
        for tag, variant in sorted(PROVIDERS.items()):
            print(f"{tag:10} {variant.media_type.value:6} {variant.default_model}")
        return 0

    return asyncio.run(run_generate(args))


if __name__ == "__main__":
    sys.exit(main())
