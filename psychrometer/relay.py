import json
import logging

import paho.mqtt.client as mqtt

from .models import PsychrometricState

logger = logging.getLogger(__name__)


class MQTTRelay:
    """Publishes every computed state to an MQTT topic for live dashboards."""

    def __init__(self, topic, client_id, broker_address="localhost", broker_port=1883):
        self.client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=client_id)
        self.broker_address = broker_address
        self.broker_port = broker_port
        self.topic = topic

    def connect(self):
        try:
            self.client.connect(self.broker_address, self.broker_port)
            self.client.loop_start()
            logger.info("Connected to MQTT broker at %s:%s", self.broker_address, self.broker_port)
            return True
        except (OSError, ValueError) as e:
            logger.error("MQTT connection error: %s", e)
            return False

    def publish(self, state: PsychrometricState):
        if not self.client.is_connected():
            return False
        payload = json.dumps(state.to_dict())
        result = self.client.publish(self.topic, payload, qos=1)
        if result.rc == mqtt.MQTT_ERR_SUCCESS:
            logger.debug("Published to %s: %s", self.topic, payload)
            return True
        logger.warning("Publish to %s failed rc=%s", self.topic, result.rc)
        return False

    def disconnect(self):
        self.client.loop_stop()
        self.client.disconnect()
        logger.info("Disconnected from MQTT broker")
