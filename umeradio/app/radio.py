"""
Main entry point for Ume Radio.

Loads configuration, sets up logging, builds the Station and runs it either
as a Discord bot (voice channel output + chat commands) or headless with
the null sink.

Example:
    ```bash
    # Discord bot (DISCORD_TOKEN, GUILD_ID, VOICE_CHANNEL_ID in .env)
    python -m umeradio

    # Headless rotation, audio discarded
    python -m umeradio --sink null
    ```
"""

import argparse
import logging
import logging.handlers
import signal
import sys
import time
from pathlib import Path
from typing import List, Optional

from umeradio.app.config import SINK_MODES, StationConfig
from umeradio.app.station import Station
from umeradio.outputs.factory import create_output_sink

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None) -> None:
    """
    Configure console logging and, optionally, a rotating log file.

    Args:
        level: Root log level name
        log_file: Optional log file path. Rotates at 10MB, keeping 5 backups
                  (radio.log, radio.log.1, ..., radio.log.5)
    """
    handlers: List[logging.Handler] = []

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handlers.append(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
    handlers.append(console_handler)

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        handlers=handlers,
        force=True,
    )
    # discord.py is chatty at INFO (gateway heartbeats, voice handshakes)
    logging.getLogger("discord").setLevel(logging.WARNING)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ume Radio - genre-rotating Discord radio")
    parser.add_argument("--env-file", help="Path to a .env file (default: UMERADIO_ENV_FILE or ./.env)")
    parser.add_argument("--sink", choices=SINK_MODES, help="Output sink (overrides OUTPUT_SINK_MODE)")
    return parser.parse_args(argv)


def run_headless(station: Station) -> None:
    """Run the rotation into the null sink until SIGINT/SIGTERM."""
    shutdown = False

    def signal_handler(sig, frame):
        nonlocal shutdown
        if shutdown:
            logger.debug("[STATION] Shutdown already in progress, ignoring duplicate signal")
            return
        shutdown = True
        signal_name = "SIGTERM" if sig == signal.SIGTERM else "SIGINT"
        logger.info(f"[STATION] Received {signal_name} signal - shutting down")

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    station.attach_sink(create_output_sink("null"))
    station.start()
    while not shutdown and station.running:
        time.sleep(0.5)


def run_discord(station: Station) -> int:
    """Run the Discord client until it disconnects. Returns the exit code."""
    # Imported here so headless runs never load discord.py's voice stack
    from umeradio.app.discord_client import RadioClient

    station.config.validate_for_discord()
    client = RadioClient(station)
    # Logging is already configured; stop discord.py from installing its own handler
    client.run(station.config.discord_token, log_handler=None)
    if client.startup_error is not None:
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    try:
        config = StationConfig.from_env(args.env_file)
    except ValueError as e:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
        logger.error(f"Invalid configuration: {e}")
        return 2

    setup_logging(config.log_level, config.log_file)
    sink_mode = args.sink or config.sink_mode

    logger.info("=" * 70)
    logger.info(f"Ume Radio - starting ({sink_mode} output)")
    logger.info("=" * 70)

    try:
        station = Station(config)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    try:
        if sink_mode == "discord":
            return run_discord(station)
        run_headless(station)
        return 0
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2
    finally:
        station.stop()
        logger.info("[STATION] Shutdown complete")


if __name__ == "__main__":
    sys.exit(main())
