"""CLI entrypoint for precognition."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

import httpx

from precognition.client import PrecognitionClient, create_client
from precognition.errors import PrecognitionError
from precognition.helpers import resolve_method, to_simple_validation_errors
from precognition.runtime_config import RuntimeConfig, load_runtime_config
from precognition.settings import Settings

EXIT_VALID = 0
EXIT_INVALID = 1
EXIT_ERROR = 2


class CLIError(RuntimeError):
    """User-facing CLI error."""


def _parse_header(raw: str) -> tuple[str, str]:
    name, sep, value = raw.partition(":")
    if not sep or not name.strip():
        raise CLIError(f"invalid header {raw!r}; expected NAME:VALUE")
    return name.strip(), value.strip()


def _parse_data(raw: str) -> Any:
    if not raw:
        return None
    if raw.startswith("@"):
        path = Path(raw[1:]).expanduser()
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise CLIError(f"failed reading request data: {path}") from exc
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise CLIError(f"request data is not valid JSON: {exc}") from exc


def _payload_errors(response: httpx.Response) -> dict[str, str]:
    try:
        payload = response.json()
    except ValueError:
        return {}
    if not isinstance(payload, dict):
        return {}
    return to_simple_validation_errors(payload)


async def _run_check(client: PrecognitionClient, args: argparse.Namespace) -> dict[str, Any]:
    method = resolve_method(args.method)
    options: dict[str, Any] = {
        "headers": dict(_parse_header(value) for value in args.header),
        "on_precognition_success": lambda response, error: {
            "status": response.status_code,
            "valid": True,
            "errors": {},
        },
        "on_validation_error": lambda response, error: {
            "status": response.status_code,
            "valid": False,
            "errors": _payload_errors(response),
        },
    }
    if args.validate:
        options["validate"] = list(args.validate)
    if args.auto_parent_keys is not None:
        options["auto_validate_parent_keys"] = args.auto_parent_keys

    data = _parse_data(args.data)
    if method in {"post", "patch", "put"}:
        result = await getattr(client, method)(args.url, data, **options)
    else:
        result = await getattr(client, method)(args.url, **options)

    if isinstance(result, httpx.Response):
        raise CLIError(
            f"expected a 204 or 422 precognition answer, got status {result.status_code}"
        )
    return result


def _cmd_check(args: argparse.Namespace, runtime: RuntimeConfig) -> int:
    if runtime.config_path is not None:
        runtime = runtime.with_overrides(base_url=args.base_url or None)
        settings = Settings.from_runtime(runtime)
        headers = runtime.headers
    else:
        settings = Settings()
        if args.base_url:
            settings = settings.model_copy(update={"base_url": args.base_url})
        headers = {}

    async def _main() -> dict[str, Any]:
        async with create_client(settings, default_headers=headers) as client:
            return await _run_check(client, args)

    summary = asyncio.run(_main())
    if args.json:
        print(json.dumps(summary, indent=2, sort_keys=True))
    else:
        print(f"status={summary['status']} valid={str(summary['valid']).lower()}")
        for name, message in summary["errors"].items():
            print(f"  {name}: {message}")
    return EXIT_VALID if summary["valid"] else EXIT_INVALID


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="precognition")
    parser.add_argument(
        "--config",
        default="",
        help="Path to runtime config TOML.",
    )
    parser.add_argument(
        "--base-url",
        default="",
        help="Override the client base URL for this invocation.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    subparsers = parser.add_subparsers(dest="command")

    check = subparsers.add_parser("check", help="Send one precognitive validation request")
    check.add_argument("method", help="HTTP verb: get, post, patch, put or delete.")
    check.add_argument("url")
    check.add_argument("--data", default="", help="JSON body, or @path to a JSON file.")
    check.add_argument(
        "--validate",
        action="append",
        default=[],
        help="Field path to validate; repeat for several fields.",
    )
    check.add_argument(
        "--auto-parent-keys", dest="auto_parent_keys", action="store_true", default=None
    )
    check.add_argument("--no-auto-parent-keys", dest="auto_parent_keys", action="store_false")
    check.add_argument(
        "--header",
        action="append",
        default=[],
        help="Extra request header as NAME:VALUE; repeatable.",
    )
    check.add_argument("--json", action="store_true")
    check.set_defaults(func=_cmd_check)

    return parser


def _configure_logging(runtime: RuntimeConfig, verbose: bool) -> None:
    if verbose:
        runtime = runtime.with_overrides(log_level="DEBUG")
    logging.basicConfig(
        level=getattr(logging, runtime.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: list[str] | None = None) -> int:
    """Run the CLI."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    func = getattr(args, "func", None)
    if func is None:
        parser.print_help()
        return 0
    try:
        runtime = load_runtime_config(Path(args.config) if args.config else None)
        _configure_logging(runtime, args.verbose)
        return int(func(args, runtime))
    except (CLIError, PrecognitionError, httpx.HTTPError) as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
