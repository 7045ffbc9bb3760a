"""
jsii-kernel command line.

Usage:
    jsii-kernel serve [--config path] [--trace] [--preload calc=./calc.py]
    jsii-kernel request '{"api": "sinvoke", "fqn": "calc.MathUtils", "method": "square", "args": [4]}' --preload calc=./calc.py
    jsii-kernel http [--host 127.0.0.1] [--port 8000]

`serve` speaks the wire protocol over stdin/stdout, one JSON object per line.
Logging (including trace lines) always goes to stderr.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from .config import KernelConfig, load_config, parse_preload
from .kernel.engine import KernelEngine
from .kernel.errors import KernelError
from .server import handle_line, serve


def resolve_config(args: argparse.Namespace) -> KernelConfig:
    """Config file + environment, then command-line overrides."""
    config = load_config(Path(args.config) if getattr(args, "config", None) else None)
    if getattr(args, "trace", None) is not None:
        config.trace.enabled = args.trace
    config.preload.extend(parse_preload(getattr(args, "preload", None)))
    return config


def configure_logging(config: KernelConfig) -> None:
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, config.log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if config.trace.enabled:
        logging.getLogger("jsii_kernel.trace").setLevel(logging.INFO)


def build_engine(args: argparse.Namespace) -> Optional[KernelEngine]:
    try:
        config = resolve_config(args)
    except (OSError, ValueError) as e:
        print(f"✗ Invalid configuration: {e}", file=sys.stderr)
        return None

    configure_logging(config)
    try:
        return KernelEngine.from_config(config)
    except KernelError as e:
        print(f"✗ {e.name}: {e.message}", file=sys.stderr)
        return None


# =============================================================================
# Commands
# =============================================================================

def cmd_serve(args: argparse.Namespace) -> int:
    """Serve the wire protocol over stdio until EOF."""
    engine = build_engine(args)
    if engine is None:
        return 1
    try:
        serve(engine, sys.stdin, sys.stdout)
    finally:
        engine.close()
    return 0


def cmd_request(args: argparse.Namespace) -> int:
    """Dispatch a single request against a fresh kernel and print the response."""
    engine = build_engine(args)
    if engine is None:
        return 1

    try:
        response = handle_line(engine, args.request)
    finally:
        engine.close()
    print(json.dumps(response, indent=2, default=str))
    return 1 if "error" in response else 0


def cmd_http(args: argparse.Namespace) -> int:
    """Serve the wire protocol over HTTP."""
    import uvicorn

    from .api import create_app

    engine = build_engine(args)
    if engine is None:
        return 1
    uvicorn.run(create_app(engine), host=args.host, port=args.port)
    return 0


def add_kernel_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", "-c", help="TOML config file")
    parser.add_argument(
        "--trace", dest="trace", action="store_true", default=None,
        help="Log every kernel operation to stderr"
    )
    parser.add_argument(
        "--no-trace", dest="trace", action="store_false",
        help="Disable operation tracing"
    )
    parser.add_argument(
        "--preload", "-p", action="append", metavar="NAME=LOCATOR",
        help="Load a module before serving (repeatable)"
    )


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="jsii-kernel",
        description="jsii bridging kernel",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Serve the protocol over stdin/stdout")
    add_kernel_options(serve_parser)

    request_parser = subparsers.add_parser("request", help="Dispatch one JSON request")
    request_parser.add_argument("request", help="JSON request object")
    add_kernel_options(request_parser)

    http_parser = subparsers.add_parser("http", help="Serve the protocol over HTTP")
    http_parser.add_argument("--host", default="127.0.0.1", help="Bind host (default: 127.0.0.1)")
    http_parser.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    add_kernel_options(http_parser)

    args = parser.parse_args(argv)

    if args.command == "serve":
        return cmd_serve(args)
    elif args.command == "request":
        return cmd_request(args)
    elif args.command == "http":
        return cmd_http(args)

    return 1


if __name__ == "__main__":
    sys.exit(main())
