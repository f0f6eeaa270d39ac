import argparse
import asyncio
import importlib
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import colorlog

from data_explorer.config import ExplorerConfig, load_config
from data_explorer.core.errors import UnknownTool
from data_explorer.core.query import summarize_dataset
from data_explorer.core.store import DatasetStore, load_datasets
from data_explorer.tools.definitions import ToolName, tool_definitions
from data_explorer.tools.dispatcher import ToolDispatcher

try:
    from data_explorer import __version__ as _PACKAGE_VERSION
except ImportError:  # pragma: no cover - defensive fallback
    _PACKAGE_VERSION = "unknown"  # type: ignore[assignment]

TOOL_NAME_CHOICES = [t.value for t in ToolName]


def setup_logging(
    verbose: bool = False, warnings_only: bool = False, errors_only: bool = False
) -> None:
    logger = logging.getLogger()
    for h in list(logger.handlers):
        logger.removeHandler(h)
    log_format = (
        "%(asctime)s:%(levelname)s:%(name)s in %(filename)s:%(funcName)s:%(lineno)d: %(message)s"
    )
    log_colors = {
        "DEBUG": "cyan",
        "INFO": "green",
        "WARNING": "yellow",
        "ERROR": "red",
        "CRITICAL": "bold_red",
    }
    # StreamHandler writes to stderr; stdout is reserved for relay frames and command output
    stream_handler = colorlog.StreamHandler()
    formatter = colorlog.ColoredFormatter(f"%(log_color)s{log_format}", log_colors=log_colors)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)
    if errors_only:
        logger.setLevel(logging.ERROR)
    elif warnings_only:
        logger.setLevel(logging.WARNING)
    else:
        logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def _load_config(args: argparse.Namespace) -> Optional[ExplorerConfig]:
    """Load the YAML config and apply CLI overrides. Returns None on error."""
    config_arg = getattr(args, "config", None)
    try:
        config = load_config(Path(config_arg) if config_arg else None)
    except (OSError, ValueError) as e:
        logging.error("Failed to load config: %s", e)
        return None
    data_dir = getattr(args, "data_dir", None)
    port = getattr(args, "port", None)
    return config.with_overrides(
        data_dir=Path(data_dir) if data_dir else None,
        host=getattr(args, "host", None),
        port=int(port) if port else None,
        backend_url=getattr(args, "backend_url", None),
        timeout_sec=getattr(args, "timeout", None),
    )


def _load_store(config: ExplorerConfig) -> Optional[DatasetStore]:
    if not config.data_dir.exists() or not config.data_dir.is_dir():
        logging.error("Data directory not found or not a directory: %s", config.data_dir)
        return None
    try:
        store = load_datasets(config.dataset_paths())
    except ValueError as e:
        logging.error("Failed to load datasets: %s", e)
        return None
    if not len(store):
        logging.warning("No datasets loaded from %s", config.data_dir)
    return store


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def cmd_serve(args: argparse.Namespace) -> int:
    """Start the backend HTTP server."""
    try:
        server_mod = importlib.import_module("data_explorer.interfaces.mcp.server")
    except (ModuleNotFoundError, AttributeError, ImportError, RuntimeError) as e:
        logging.error(
            "Failed to import backend server. Ensure 'mcp' and 'uvicorn' are installed. Error: %s",
            e,
        )
        return 3
    config = _load_config(args)
    if config is None:
        return 2
    store = _load_store(config)
    if store is None:
        return 2
    try:
        server_mod.run_http(store, host=config.host, port=config.port)
    except KeyboardInterrupt:
        pass
    return 0


def cmd_relay(args: argparse.Namespace) -> int:
    """Run the host relay over stdio, forwarding tool calls to the backend URL."""
    from data_explorer.relay import HttpToolBackend, HostInfo, run_stdio_relay

    config = _load_config(args)
    if config is None:
        return 2
    logging.info("Relaying tool calls to %s", config.backend_url)
    backend = HttpToolBackend(config.backend_url, timeout_sec=config.timeout_sec)
    try:
        asyncio.run(
            run_stdio_relay(
                backend,
                timeout_sec=config.timeout_sec,
                protocol_version=config.protocol_version,
                host_info=HostInfo(name=config.host_name, version=_PACKAGE_VERSION),
            )
        )
    except KeyboardInterrupt:
        pass
    return 0


def cmd_datasets(args: argparse.Namespace) -> int:
    config = _load_config(args)
    if config is None:
        return 2
    store = _load_store(config)
    if store is None:
        return 2
    _print_json([summarize_dataset(ds) for ds in store])
    return 0


def cmd_tools(args: argparse.Namespace) -> int:
    _print_json({"tools": tool_definitions()})
    return 0


def cmd_query(args: argparse.Namespace) -> int:
    """Run one tool call in-process and print the tool envelope.

    Exit code 1 when the tool reports an error (unknown dataset, bad arguments).
    """
    try:
        arguments: Dict[str, Any] = json.loads(args.arguments) if args.arguments else {}
    except json.JSONDecodeError as e:
        logging.error("--args is not valid JSON: %s", e)
        return 2
    if not isinstance(arguments, dict):
        logging.error("--args must be a JSON object")
        return 2
    if args.dataset:
        arguments.setdefault("dataset", args.dataset)

    config = _load_config(args)
    if config is None:
        return 2
    store = _load_store(config)
    if store is None:
        return 2
    try:
        result = ToolDispatcher(store).dispatch(args.tool, arguments)
    except UnknownTool as e:
        logging.error("%s", e.message)
        return 2
    _print_json(result.to_envelope())
    return 1 if result.is_error else 0


def _add_data_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--data-dir",
        default=None,
        help="Directory holding dataset files (overrides config data_dir)",
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="data-explorer",
        description=f"Data Explorer Tools (v{_PACKAGE_VERSION})",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    p.add_argument(
        "--warnings-only",
        action="store_true",
        help="Show only warnings and errors (overrides --verbose)",
    )
    p.add_argument(
        "--errors-only",
        action="store_true",
        help="Show only errors (overrides --warnings-only and --verbose)",
    )
    p.add_argument(
        "--config",
        default=None,
        help="Path to YAML config (defaults to ./config/explorer.yaml when present)",
    )

    sub = p.add_subparsers(dest="command", required=True)

    p_serve = sub.add_parser("serve", help="Run the backend HTTP server")
    _add_data_args(p_serve)
    p_serve.add_argument("--host", default=None, help="Host to bind (default 127.0.0.1)")
    p_serve.add_argument("--port", default=None, help="Port to bind (default 3001)")
    p_serve.set_defaults(func=cmd_serve)

    p_relay = sub.add_parser("relay", help="Run the host relay on stdio")
    p_relay.add_argument(
        "--backend-url",
        default=None,
        help="Backend base URL (default http://127.0.0.1:3001)",
    )
    p_relay.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds before a pending request fails with a timeout error",
    )
    p_relay.set_defaults(func=cmd_relay)

    p_datasets = sub.add_parser("datasets", help="Print summaries of the loaded datasets")
    _add_data_args(p_datasets)
    p_datasets.set_defaults(func=cmd_datasets)

    p_tools = sub.add_parser("tools", help="Print the tool catalog as JSON")
    p_tools.set_defaults(func=cmd_tools)

    p_query = sub.add_parser("query", help="Run one tool call and print its envelope")
    _add_data_args(p_query)
    p_query.add_argument("tool", choices=TOOL_NAME_CHOICES, help="Tool to call")
    p_query.add_argument("--dataset", default=None, help="Dataset argument shortcut")
    p_query.add_argument(
        "--args",
        dest="arguments",
        default=None,
        help='Tool arguments as a JSON object, e.g. \'{"limit": 5}\'',
    )
    p_query.set_defaults(func=cmd_query)

    return p


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(
        verbose=bool(args.verbose),
        warnings_only=bool(getattr(args, "warnings_only", False)),
        errors_only=bool(getattr(args, "errors_only", False)),
    )
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
