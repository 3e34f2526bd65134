"""Main entry point for the cross-exchange arbitrage scanner."""

import asyncio
import json
import signal
import sys
from typing import Optional

import click
import uvicorn
from dotenv import load_dotenv
from loguru import logger
from pydantic import ValidationError

# uvloop is not available on Windows
try:
    import uvloop
    UVLOOP_AVAILABLE = True
except ImportError:
    UVLOOP_AVAILABLE = False

from .api.server import create_app
from .bot import ArbitrageBot
from .config import Config, LoggingConfig, get_config
from .notify import events

SECRET_FIELDS = ("key", "secret", "password")


def setup_logging(logging_config: LoggingConfig, level: Optional[str] = None):
    """Configure loguru sinks."""
    logger.remove()
    logger.add(sys.stderr, level=level or logging_config.level,
               format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>")
    if logging_config.file:
        logger.add(logging_config.file, level="DEBUG", rotation=logging_config.rotation,
                   format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}")


def load_config(config_path: str) -> Config:
    """Load config or exit with a logged error."""
    load_dotenv()
    try:
        return get_config(config_path)
    except FileNotFoundError as e:
        logger.error(f"{e} (copy config.example.yaml to get started)")
        sys.exit(1)
    except ValidationError as e:
        logger.error(f"Invalid configuration in {config_path}: {e}")
        sys.exit(1)


def redacted_config(config: Config) -> dict:
    """Config as plain data with credentials masked."""
    data = config.model_dump(mode="json")
    for account in data.get("exchanges", {}).values():
        for field_name in SECRET_FIELDS:
            if account.get(field_name):
                account[field_name] = "***"
    return data


def _install_stop_handlers(bot: ArbitrageBot):
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, bot.detector.stop)
        except NotImplementedError:
            # Windows event loops have no signal handlers
            pass


async def _run_scanner(bot: ArbitrageBot, cycles: Optional[int] = None):
    _install_stop_handlers(bot)
    await bot.run_scanner(max_cycles=cycles)


async def _serve(bot: ArbitrageBot, host: str, port: int):
    app = create_app(bot, run_scanner=True)
    server = uvicorn.Server(uvicorn.Config(app, host=host, port=port, log_level="info"))
    await server.serve()


@click.group()
def cli():
    """Cross-Exchange Arbitrage Scanner CLI."""
    pass


@cli.command()
@click.option('--config', default='config.yaml', help='Path to config file')
@click.option('--host', help='API bind host (overrides config)')
@click.option('--port', type=int, help='API port (overrides config)')
@click.option('--no-api', is_flag=True, help='Run the scan loop without the HTTP/WebSocket API')
@click.option('--log-level', help='Console log level (overrides config)')
def run(config, host, port, no_api, log_level):
    """Run the scanner with the API server."""
    cfg = load_config(config)
    setup_logging(cfg.logging, log_level)

    # Use uvloop on Linux for better performance
    if sys.platform != "win32" and UVLOOP_AVAILABLE:
        uvloop.install()

    bot = ArbitrageBot(cfg)

    try:
        if no_api or not cfg.server.enabled:
            asyncio.run(_run_scanner(bot))
        else:
            asyncio.run(_serve(bot, host or cfg.server.host, port or cfg.server.port))
    except KeyboardInterrupt:
        logger.info("Scanner stopped by user")
    except Exception as e:
        logger.error(f"Scanner failed: {e}")
        sys.exit(1)


@cli.command()
@click.option('--config', default='config.yaml', help='Path to config file')
@click.option('--cycles', default=1, type=int, help='Number of scan cycles (default: 1)')
def scan(config, cycles):
    """Run a fixed number of scan cycles and print the spreads."""
    cfg = load_config(config)
    setup_logging(cfg.logging, "WARNING")

    bot = ArbitrageBot(cfg)

    def print_event(event):
        if event.type == events.TICKER:
            data = event.data
            click.echo(
                f"{data['pair']:<10} buy {data['buy']['exchange']:<8} {data['buy']['ask']:<14} "
                f"sell {data['sell']['exchange']:<8} {data['sell']['bid']:<14} "
                f"spread {data['spread']:.4%}"
            )
        elif event.type == events.OPPORTUNITY:
            click.echo(f"  -> opportunity on {event.data['pair']}")

    bot.event_bus.add_listener(print_event)

    try:
        asyncio.run(_run_scanner(bot, cycles))
    except KeyboardInterrupt:
        pass


@cli.command(name='show-config')
@click.option('--config', default='config.yaml', help='Path to config file')
def show_config(config):
    """Print the effective configuration with credentials masked."""
    logger.remove()
    logger.add(sys.stderr, level="ERROR")
    cfg = load_config(config)
    click.echo(json.dumps(redacted_config(cfg), indent=2))


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
