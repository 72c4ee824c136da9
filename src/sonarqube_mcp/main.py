"""SonarQube MCP server - command-line entry point.

Without listing flags the server speaks MCP over stdio until end of input:

    SONARQUBE_URL=https://sonarcloud.io SONARQUBE_TOKEN=... sonarqube-mcp

With --tools, --prompts, --resources or --mcp it prints the requested
catalog (as JSON with --json) and exits.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
from pathlib import Path
from typing import Any

from sonarqube_mcp import SERVER_NAME, __version__
from sonarqube_mcp.config import Config, load_config
from sonarqube_mcp.errors import ConfigError
from sonarqube_mcp.logging_config import setup_logging
from sonarqube_mcp.protocol.audit import AuditLog
from sonarqube_mcp.protocol.lifecycle import (
    MCP_PROTOCOL_VERSION,
    SERVER_CAPABILITIES,
    SERVER_INSTRUCTIONS,
)
from sonarqube_mcp.protocol.transport import StdioTransport
from sonarqube_mcp.server import MCPServer, ServerContext
from sonarqube_mcp.signals import install_signal_handlers
from sonarqube_mcp.sonarqube.client import SonarQubeClient

logger = logging.getLogger("sonarqube_mcp.main")


class ShutdownRequested(BaseException):
    """Raised from a signal handler to unwind the dispatch loop."""

    pass


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sonarqube-mcp",
        description="SonarQube MCP server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--sonarqube-url", "-u", help="SonarQube server URL")
    parser.add_argument("--sonarqube-token", "-t", help="SonarQube authentication token")
    parser.add_argument("--sonarqube-organization", "-o", help="SonarQube organization")
    parser.add_argument("--config", "-c", type=Path, help="Path to YAML config file")
    parser.add_argument("--audit-log", type=Path, help="Path to the protocol audit log")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Log level (default: INFO)",
    )
    parser.add_argument("--resources", action="store_true", help="List MCP resources")
    parser.add_argument("--prompts", action="store_true", help="List MCP prompts")
    parser.add_argument("--tools", action="store_true", help="List MCP tools")
    parser.add_argument("--mcp", action="store_true", help="Show MCP server information")
    parser.add_argument("--json", action="store_true", help="Output listings as JSON")
    parser.add_argument(
        "--version",
        "-v",
        action="version",
        version=f"{SERVER_NAME} {__version__}",
    )
    return parser


def _print_listing(title: str, items: list[dict[str, Any]], as_json: bool) -> None:
    if as_json:
        print(json.dumps({title: items}, indent=2))
        return
    print(f"{title.capitalize()}:")
    if not items:
        print("  (none)")
    for item in items:
        description = item.get("description", "")
        print(f"  {item.get('name', item.get('uri', ''))}: {description}")


def display_info(args: argparse.Namespace, server: MCPServer) -> None:
    """Print the catalogs requested on the command line."""
    if args.tools:
        _print_listing("tools", [tool.to_dict() for tool in server.registry.tools], args.json)
    if args.prompts:
        _print_listing("prompts", [], args.json)
    if args.resources:
        _print_listing("resources", [], args.json)
    if args.mcp:
        info = {
            "serverInfo": {"name": SERVER_NAME, "version": __version__},
            "protocolVersion": MCP_PROTOCOL_VERSION,
            "capabilities": SERVER_CAPABILITIES,
            "instructions": SERVER_INSTRUCTIONS,
        }
        if args.json:
            print(json.dumps(info, indent=2))
        else:
            print(f"{SERVER_NAME} {__version__} (MCP protocol {MCP_PROTOCOL_VERSION})")
            print(f"Capabilities: {json.dumps(SERVER_CAPABILITIES)}")


def build_client(config: Config) -> SonarQubeClient | None:
    """Create the upstream client, or None if SonarQube is not configured."""
    try:
        config.sonarqube.validate()
    except ConfigError as e:
        # Tools fail with ConfigError at call time
        logger.warning("%s; SonarQube tools are unavailable", e.message)
        return None
    logger.info("Connected to SonarQube at %s", config.sonarqube.url)
    if config.sonarqube.organization:
        logger.info("Using SonarQube organization: %s", config.sonarqube.organization)
    return SonarQubeClient(config.sonarqube.to_client_config())


async def run(server: MCPServer, transport: StdioTransport) -> None:
    """Serve until end of input, then release the upstream client."""
    try:
        await server.serve(transport)
    finally:
        if server.context.client is not None:
            await server.context.client.close()


def main(argv: list[str] | None = None) -> int:
    """Run the MCP server.

    Returns:
        Exit code (0 for success, 1 for startup errors, 130 on interrupt).
    """
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    config.apply_overrides(
        url=args.sonarqube_url,
        token=args.sonarqube_token,
        organization=args.sonarqube_organization,
        log_level=args.log_level,
        audit_log=args.audit_log,
    )

    try:
        setup_logging(config.logging.level, config.logging.file)
    except (OSError, ValueError) as e:
        print(f"Error configuring logging: {e}", file=sys.stderr)
        return 1

    context = ServerContext(config=config, client=build_client(config))

    if args.tools or args.prompts or args.resources or args.mcp:
        display_info(args, MCPServer(context))
        return 0

    try:
        audit = AuditLog(config.audit_log)
    except OSError as e:
        logger.error("Cannot open audit log %s: %s", config.audit_log, e)
        return 1

    def request_stop(signum: int) -> None:
        if signum == signal.SIGINT:
            raise KeyboardInterrupt
        raise ShutdownRequested()

    install_signal_handlers(context.session, request_stop)

    server = MCPServer(context, audit)
    logger.info("%s %s started, audit log at %s", SERVER_NAME, __version__, audit.path)

    try:
        with audit:
            asyncio.run(run(server, StdioTransport()))
    except ShutdownRequested:
        logger.info("Shutdown requested by signal")
        return 0
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
        return 130  # Standard exit code for SIGINT
    except OSError as e:
        logger.error("Fatal I/O error: %s", e)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
