#!/usr/bin/env python3
"""
Psychrometer Recorder

Reads dry-bulb/wet-bulb lines from the serial psychrometer, derives the full
psychrometric state, relays it over MQTT and batch inserts it into SQLite.
"""

import argparse
import logging
import os
import signal
from dataclasses import replace

from .config import Config
from .database import ReadingDatabase
from .recorder import Recorder
from .relay import MQTTRelay
from .serial_source import DummySensor, SerialSensor


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def parse_args(defaults: Config) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Psychrometer recorder",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    parser.add_argument(
        "-p", "--port",
        default=defaults.serial_port,
        help="Serial port of the psychrometer"
    )
    parser.add_argument(
        "--baudrate",
        type=int,
        default=defaults.baudrate,
        help="Serial baud rate"
    )
    parser.add_argument(
        "-b", "--batch-interval",
        type=float,
        default=defaults.batch_interval,
        help="Interval between database batch inserts in seconds"
    )
    parser.add_argument(
        "-d", "--database",
        default=defaults.db_file,
        help="SQLite database file path"
    )
    parser.add_argument(
        "--retention-days",
        type=float,
        default=defaults.retention_days,
        help="Delete readings older than this many days, 0 to keep all"
    )
    parser.add_argument(
        "-t", "--mqtt-topic",
        default=defaults.mqtt_topic,
        help="MQTT topic for live readings"
    )
    parser.add_argument(
        "--no-relay",
        action="store_true",
        help="Do not publish live readings over MQTT"
    )
    parser.add_argument(
        "--dummy",
        action="store_true",
        help="Use a simulated sensor instead of the serial port"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Debug logging"
    )

    return parser.parse_args()


def build_config(args: argparse.Namespace, defaults: Config) -> Config:
    return replace(
        defaults,
        serial_port=args.port,
        baudrate=args.baudrate,
        batch_interval=args.batch_interval,
        db_file=args.database,
        retention_days=args.retention_days,
        mqtt_topic=args.mqtt_topic,
        relay_enabled=defaults.relay_enabled and not args.no_relay,
    )


def main():
    """Main entry point."""
    defaults = Config.from_env()
    args = parse_args(defaults)
    setup_logging(args.verbose)
    config = build_config(args, defaults)

    if args.dummy:
        sensor = DummySensor()
    else:
        sensor = SerialSensor(config.serial_port, config.baudrate, config.serial_timeout)

    relay = None
    if config.relay_enabled:
        relay = MQTTRelay(
            topic=config.mqtt_topic,
            client_id=config.mqtt_client_id,
            broker_address=config.mqtt_broker_address,
            broker_port=config.mqtt_broker_port,
        )

    recorder = Recorder(config, sensor, ReadingDatabase(config.db_file), relay)

    # Setup signal handlers for graceful shutdown
    def signal_handler(sig, frame):
        recorder.request_stop()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    if recorder.start():
        recorder.wait()
        recorder.stop()


if __name__ == "__main__":
    main()
