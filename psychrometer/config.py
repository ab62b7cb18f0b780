import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .engine import ValidationLimits


@dataclass
class Config:
    """Configuration for the recorder and the dashboard API."""
    # Serial sensor
    serial_port: str = "/dev/ttyUSB0"
    baudrate: int = 9600
    serial_timeout: float = 2.0         # seconds, readline timeout

    # Timing configuration
    batch_interval: float = 60.0        # seconds between database batch inserts
    retry_interval: float = 5.0         # seconds before reopening a lost port

    # Database configuration
    db_file: str = "measurements.db"
    retention_days: float = 0.0         # prune rows older than this, 0 keeps everything

    # MQTT live relay
    relay_enabled: bool = True
    mqtt_broker_address: str = "localhost"
    mqtt_broker_port: int = 1883
    mqtt_topic: str = "psychrometer/readings"
    mqtt_client_id: str = "psychrometer"

    # Web server
    host: str = "0.0.0.0"
    port: int = 5000

    # Plausible sensor range (degC)
    min_temperature: float = -50.0
    max_temperature: float = 100.0

    # Consecutive rejected readings before an alert is logged
    alert_after_rejections: int = 10

    @property
    def limits(self) -> ValidationLimits:
        return ValidationLimits(self.min_temperature, self.max_temperature)

    @classmethod
    def from_env(cls) -> "Config":
        """Defaults overridden by environment variables (and a .env file)."""
        load_dotenv()
        defaults = cls()
        return cls(
            serial_port=os.getenv("SERIAL_PORT", defaults.serial_port),
            baudrate=int(os.getenv("BAUDRATE", defaults.baudrate)),
            serial_timeout=float(os.getenv("SERIAL_TIMEOUT", defaults.serial_timeout)),
            batch_interval=float(os.getenv("BATCH_INTERVAL", defaults.batch_interval)),
            retry_interval=float(os.getenv("RETRY_INTERVAL", defaults.retry_interval)),
            db_file=os.getenv("DB_PATH", defaults.db_file),
            retention_days=float(os.getenv("RETENTION_DAYS", defaults.retention_days)),
            relay_enabled=os.getenv("RELAY_ENABLED", "1").lower() not in ("0", "false", "no"),
            mqtt_broker_address=os.getenv("MQTT_BROKER_ADDRESS", defaults.mqtt_broker_address),
            mqtt_broker_port=int(os.getenv("MQTT_BROKER_PORT", defaults.mqtt_broker_port)),
            mqtt_topic=os.getenv("MQTT_TOPIC", defaults.mqtt_topic),
            mqtt_client_id=os.getenv("MQTT_CLIENT_ID", defaults.mqtt_client_id),
            host=os.getenv("HOST", defaults.host),
            port=int(os.getenv("PORT", defaults.port)),
            min_temperature=float(os.getenv("MIN_TEMPERATURE", defaults.min_temperature)),
            max_temperature=float(os.getenv("MAX_TEMPERATURE", defaults.max_temperature)),
            alert_after_rejections=int(os.getenv("ALERT_AFTER_REJECTIONS", defaults.alert_after_rejections)),
        )
