import argparse

from psychrometer.config import Config
from psychrometer.record import build_config


def test_cli_overrides_config():
    defaults = Config(db_file="from-env.db")
    args = argparse.Namespace(
        port="/dev/ttyACM1",
        baudrate=19200,
        batch_interval=10.0,
        database="cli.db",
        retention_days=30.0,
        mqtt_topic="lab/psy",
        no_relay=True,
    )
    config = build_config(args, defaults)
    assert config.serial_port == "/dev/ttyACM1"
    assert config.baudrate == 19200
    assert config.db_file == "cli.db"
    assert config.retention_days == 30.0
    assert config.mqtt_topic == "lab/psy"
    assert config.relay_enabled is False
    assert defaults.db_file == "from-env.db"
