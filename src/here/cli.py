"""Command line entry points for the registry server and the client agent."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import os
import signal
from types import FrameType

import uvicorn

from here.client.agent import ClientAgent
from here.client.api import RegistryClient, RegistryClientConfig
from here.core.config import ClientConfig, load_client_config, load_server_config
from here.core.errors import ConfigError, HereError, StoreError
from here.core.settings import ClientSettings, Settings
from here.main import create_app
from here.services.lease_store import LeaseStore

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


class ImmediateExitServer(uvicorn.Server):
    """Uvicorn server that exits at once on SIGINT/SIGTERM.

    In-flight requests are not drained; every store operation has already
    flushed what it committed.
    """

    def handle_exit(self, sig: int, frame: FrameType | None) -> None:
        logger.warning("Server stop.")
        logging.shutdown()
        os._exit(0)


def server_main(argv: list[str] | None = None) -> int:
    """Run the registry server."""
    app_settings = Settings()
    parser = argparse.ArgumentParser(prog="here-server", description="Here presence registry")
    parser.add_argument(
        "--config",
        default=app_settings.config_path,
        help="TOML file holding the bind address (created if missing)",
    )
    args = parser.parse_args(argv)
    configure_logging(app_settings.log_level)

    logger.info("Loading config...")
    try:
        config = load_server_config(args.config)
    except ConfigError as e:
        logger.error("Cannot load config: %s", e)
        return 1

    # Create the lease file up front so a bad path fails before serving.
    try:
        LeaseStore.open_or_create(app_settings.database_path).close()
    except StoreError as e:
        logger.error("Database error: %s", e)
        return 1

    server = ImmediateExitServer(
        uvicorn.Config(
            create_app(app_settings),
            host=config.host,
            port=config.port,
            log_level=app_settings.log_level.lower(),
        )
    )
    logger.info("Starting the RESTful API server, listening on %s...", config.bind)
    server.run()
    return 0


async def run_agent(config: ClientConfig, client_settings: ClientSettings) -> None:
    """Run the client agent until SIGINT/SIGTERM."""
    client_config = RegistryClientConfig(
        api_url=config.api_url,
        timeout_seconds=client_settings.http_timeout_seconds,
    )
    async with RegistryClient(client_config) as client:
        agent = ClientAgent(
            client,
            config.account,
            config.passwd,
            retry_delay=client_settings.retry_delay,
        )

        def _quit() -> None:
            logger.warning("Quit.")
            agent.stop()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(sig, _quit)
        await agent.run()


async def lookup(
    config: ClientConfig, client_settings: ClientSettings, account: str, passwd: str | None
) -> int:
    """Print the registry's answer for ``account``; exit status 0 when found."""
    client_config = RegistryClientConfig(
        api_url=config.api_url,
        timeout_seconds=client_settings.http_timeout_seconds,
    )
    async with RegistryClient(client_config) as client:
        reply = await client.get_client_info(account, passwd)
    print(reply.model_dump_json(by_alias=True, indent=2))
    return 0 if reply.is_ok else 1


def client_main(argv: list[str] | None = None) -> int:
    """Run the client agent, or look up an account."""
    client_settings = ClientSettings()
    parser = argparse.ArgumentParser(prog="here-client", description="Here presence agent")
    parser.add_argument(
        "--config",
        default=client_settings.config_path,
        help="TOML file holding account, password and API URL (created if missing)",
    )
    subcommands = parser.add_subparsers(dest="command")
    subcommands.add_parser("run", help="Announce this host's presence (default)")
    lookup_parser = subcommands.add_parser("lookup", help="Look up an account's presence")
    lookup_parser.add_argument("account")
    lookup_parser.add_argument("--passwd", default=None, help="Plaintext account password")
    args = parser.parse_args(argv)
    configure_logging(client_settings.log_level)

    logger.info("Loading config...")
    try:
        config = load_client_config(args.config)
    except ConfigError as e:
        logger.error("Cannot load config: %s", e)
        return 1

    if args.command == "lookup":
        try:
            return asyncio.run(lookup(config, client_settings, args.account, args.passwd))
        except HereError as e:
            logger.error("Lookup failed: %s", e)
            return 1

    asyncio.run(run_agent(config, client_settings))
    return 0


def run_server() -> None:
    raise SystemExit(server_main())


def run_client() -> None:
    raise SystemExit(client_main())
