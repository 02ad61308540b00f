"""
Entry point for running homealert as a module.

Usage:
    python -m homealert batch
    python -m homealert listen --config /path/to/config.yaml
    python -m homealert serve --host 0.0.0.0 --port 8080
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import redis

from homealert.broker import AlertSubscriber, connect_broker
from homealert.config import Settings
from homealert.errors import ConfigurationError
from homealert.services import build_services


def run_batch_command(settings: Settings) -> int:
    """Run one batch and print the summary as JSON."""
    services = build_services(settings)
    try:
        result = services.pipeline.run_batch()
    finally:
        services.close()
    print(json.dumps(result.to_dict()))
    return 1 if result.error else 0


def run_listen_command(settings: Settings) -> int:
    """Listen on the broker for one window, then sweep leftovers with a batch."""
    logger = logging.getLogger(__name__)
    settings.require_credentials(include_broker=True)

    services = build_services(settings)
    client = connect_broker(settings.broker)
    broker_failed = False
    try:
        subscriber = AlertSubscriber(client, settings.broker.channel, services.pipeline)
        try:
            subscriber.listen(settings.broker.listen_seconds)
        except redis.RedisError as e:
            logger.error(f"Listening aborted: {e}")
            print(f"Error: broker connection failed: {e}", file=sys.stderr)
            broker_failed = True
        result = services.pipeline.run_batch()
        logger.info(result.message)
    finally:
        client.close()
        services.close()
    return 1 if broker_failed or result.error else 0


def run_serve_command(settings: Settings, host: str, port: int) -> int:
    import uvicorn

    from homealert.server import create_app

    uvicorn.run(create_app(settings), host=host, port=port, log_level=settings.log_level.lower())
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Email notifications for smart-home device alerts"
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=Path("config.yaml"),
        help="Path to configuration file (default: config.yaml)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("batch", help="Process one batch of pending alerts, then exit")
    subparsers.add_parser(
        "listen", help="Subscribe to the broker for one listening window, then exit"
    )
    serve = subparsers.add_parser("serve", help="Run the HTTP ingress")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8080)
    args = parser.parse_args(argv)

    # Load and validate configuration
    try:
        settings = Settings.from_yaml(args.config)
    except FileNotFoundError:
        print(f"Error: Configuration file not found: {args.config}", file=sys.stderr)
        print("Create a config.yaml file based on config.example.yaml", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: Invalid configuration: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        if args.command == "batch":
            return run_batch_command(settings)
        if args.command == "listen":
            return run_listen_command(settings)
        return run_serve_command(settings, args.host, args.port)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
