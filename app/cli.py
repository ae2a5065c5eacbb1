"""Command line entry point for the supervisor services."""

from __future__ import annotations

import argparse
import asyncio
import sys

from app.config import AppConfig, get_app_config, load_app_config
from services.models import ModelPullError, pull_model
from services.process import ProcessError
from services.server import ServerError
from services.startup import ensure_configured_server, schedule_startup_tasks
from services.update import UpdateStatus, build_update_service, run_update_check
from shared.background import wait_for_background_tasks
from shared.logging_config import ensure_app_logging


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="zama", description=__doc__)
    parser.add_argument("--config", help="Path to an alternative app.json file.")
    parser.add_argument(
        "--verbose", action="store_true", help="Record debug messages in the log file."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("check-update", help="Check for and install an application update.")
    subparsers.add_parser("ensure-server", help="Start the local Ollama server if it is not running.")
    pull = subparsers.add_parser("pull", help="Download a model with 'ollama pull'.")
    pull.add_argument("model", help="Model name, e.g. 'llama3' or 'mistral:7b'.")
    subparsers.add_parser("startup", help="Run the startup update and server checks.")
    return parser.parse_args(argv)


async def _check_update(config: AppConfig) -> int:
    report = await run_update_check(build_update_service(config))
    print(report.message)
    return 0 if report.status is not UpdateStatus.FAILED else 1


async def _ensure_server(config: AppConfig) -> int:
    try:
        message = await ensure_configured_server(config)
    except ServerError as exc:
        print(f"Failed to start server: {exc}", file=sys.stderr)
        return 1
    print(message)
    return 0


async def _pull(config: AppConfig, model: str) -> int:
    def echo(stream_name: str, line: str) -> None:
        print(line, flush=True)

    try:
        await pull_model(model, executable=config.server.executable, on_line=echo)
    except (ModelPullError, ProcessError) as exc:
        print(str(exc), file=sys.stderr)
        return 1
    return 0


async def _startup(config: AppConfig) -> int:
    schedule_startup_tasks(
        config,
        on_update_complete=lambda report: print(report.message),
        on_server_complete=print,
    )
    await wait_for_background_tasks()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    ensure_app_logging(verbose=args.verbose)
    config = load_app_config(args.config) if args.config else get_app_config()

    if args.command == "check-update":
        return asyncio.run(_check_update(config))
    if args.command == "ensure-server":
        return asyncio.run(_ensure_server(config))
    if args.command == "pull":
        return asyncio.run(_pull(config, args.model))
    return asyncio.run(_startup(config))
