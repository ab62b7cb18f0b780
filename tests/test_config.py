from psychrometer import config as config_module
from psychrometer.config import Config
from psychrometer.engine import ValidationLimits


def test_defaults():
    config = Config()
    assert config.baudrate == 9600
    assert config.retention_days == 0.0
    assert config.limits == ValidationLimits(-50.0, 100.0)


def test_from_env(monkeypatch):
    monkeypatch.setattr(config_module, "load_dotenv", lambda: False)
    monkeypatch.setenv("SERIAL_PORT", "/dev/ttyACM0")
    monkeypatch.setenv("BAUDRATE", "115200")
    monkeypatch.setenv("DB_PATH", "/tmp/psy.db")
    monkeypatch.setenv("RELAY_ENABLED", "false")
    monkeypatch.setenv("MIN_TEMPERATURE", "-20")
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("RETENTION_DAYS", "90")

    config = Config.from_env()

    assert config.serial_port == "/dev/ttyACM0"
    assert config.baudrate == 115200
    assert config.db_file == "/tmp/psy.db"
    assert config.relay_enabled is False
    assert config.port == 8080
    assert config.retention_days == 90.0
    assert config.limits.min_temperature == -20.0
    assert config.mqtt_topic == "psychrometer/readings"
