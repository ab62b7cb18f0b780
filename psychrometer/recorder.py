"""Recorder that turns sensor lines into persisted, relayed psychrometric states."""

import logging
import sqlite3
import threading
from datetime import datetime, timedelta
from queue import Empty, Queue

from .config import Config
from .database import ReadingDatabase
from .engine import Outcome, PsychrometricEngine
from .errors import InvalidInput, PsychrometricError
from .models import PsychrometricState
from .serial_source import parse_line

logger = logging.getLogger(__name__)


class Recorder:
    """
    Reads the sensor on one thread and batch-inserts into the database on another.
    Uses a threading event for timing instead of sleep.
    """

    def __init__(self, config: Config, sensor, db: ReadingDatabase, relay=None,
                 engine: PsychrometricEngine | None = None):
        self.config = config
        self.sensor = sensor
        self.db = db
        self.relay = relay
        self.engine = engine or PsychrometricEngine(limits=config.limits)

        # States waiting for the next batch insert
        self._queue: Queue[PsychrometricState] = Queue()
        self._flush_lock = threading.Lock()

        # Threading control
        self._stop_event = threading.Event()
        self._measure_thread: threading.Thread | None = None
        self._batch_thread: threading.Thread | None = None

        self._latest: PsychrometricState | None = None

        # Statistics
        self._readings_count = 0
        self._rejected_count = 0
        self._rejection_streak = 0
        self._inserts_count = 0
        self._stored_count = 0

    @property
    def latest(self) -> PsychrometricState | None:
        return self._latest

    def stats(self) -> dict:
        return {
            "readings": self._readings_count,
            "rejected": self._rejected_count,
            "rejection_streak": self._rejection_streak,
            "batch_inserts": self._inserts_count,
            "stored": self._stored_count,
            "queued": self._queue.qsize(),
            "running": self._measure_thread is not None and self._measure_thread.is_alive(),
        }

    def handle_line(self, line: str, timestamp: datetime | None = None) -> Outcome | None:
        """Process one sensor line. Returns None for lines that carry no reading."""
        try:
            raw = parse_line(line)
        except InvalidInput as e:
            outcome = Outcome(error=e)
        else:
            if raw is None:
                logger.debug("Sensor: %s", line)
                return None
            outcome = self.engine.evaluate(raw.to_reading(timestamp))

        if outcome.ok:
            self._accept(outcome.state)
        else:
            self._reject(line, outcome.error)
        return outcome

    def _accept(self, state: PsychrometricState) -> None:
        self._latest = state
        self._rejection_streak = 0
        self._readings_count += 1
        self._queue.put(state)
        logger.info(
            "Dry %.2f°C | Wet %.2f°C | RH %.1f%% | Dew %.2f°C | (Queue: %d)",
            state.dry_bulb, state.wet_bulb, state.relative_humidity_percent,
            state.dew_point, self._queue.qsize(),
        )
        if self.relay is not None:
            self.relay.publish(state)

    def _reject(self, line: str, error: PsychrometricError) -> None:
        self._rejected_count += 1
        self._rejection_streak += 1
        logger.warning("Rejected reading %r (%s): %s", line, error.kind, error)
        if self._rejection_streak == self.config.alert_after_rejections:
            logger.error(
                "ALERT: %d consecutive readings rejected, last: %s",
                self._rejection_streak, error,
            )

    def flush(self) -> int:
        """Insert everything queued so far. Returns the number of rows written."""
        with self._flush_lock:
            states = []
            while True:
                try:
                    states.append(self._queue.get_nowait())
                except Empty:
                    break
            if not states:
                return 0
            try:
                written = self.db.insert_bulk(states)
            except sqlite3.Error:
                logger.exception("Batch insert of %d readings failed", len(states))
                return 0
            self._inserts_count += 1
            self._stored_count += written
            logger.info("Batch inserted %d readings", written)
            return written

    def prune(self, now: datetime | None = None) -> int:
        """Delete stored readings older than the retention window."""
        if self.config.retention_days <= 0:
            return 0
        cutoff = (now or datetime.now()) - timedelta(days=self.config.retention_days)
        try:
            return self.db.delete_readings_older_than(cutoff)
        except sqlite3.Error:
            logger.exception("Pruning readings older than %s failed", cutoff)
            return 0

    def start(self) -> bool:
        """Start the measurement and batch threads."""
        logger.info("Sensor: %s", getattr(self.sensor, "port", type(self.sensor).__name__))
        logger.info("Batch insert interval: %ss", self.config.batch_interval)
        logger.info("Database: %s", self.db.db_file)
        if self.config.retention_days > 0:
            logger.info("Retention: %s days", self.config.retention_days)

        if not self.sensor.init():
            logger.critical("Psychrometer not available. Exiting.")
            return False

        if self.relay is not None and not self.relay.connect():
            logger.warning("Live relay unavailable, continuing without it")
            self.relay = None

        self._stop_event.clear()

        self._measure_thread = threading.Thread(
            target=self._measurement_loop,
            name="MeasurementThread",
            daemon=True
        )
        self._measure_thread.start()

        self._batch_thread = threading.Thread(
            target=self._batch_insert_loop,
            name="BatchInsertThread",
            daemon=True
        )
        self._batch_thread.start()

        logger.info("Recorder started")
        return True

    def stop(self) -> None:
        """Stop the recorder gracefully."""
        logger.info("Stopping recorder...")
        self._stop_event.set()

        for thread in (self._measure_thread, self._batch_thread):
            if thread and thread.is_alive():
                thread.join(timeout=self.config.serial_timeout + 1.0)

        self.flush()

        self.sensor.cleanup()
        if self.relay is not None:
            self.relay.disconnect()
            self.relay = None

        logger.info("Total readings: %d, rejected: %d, batch inserts: %d",
                    self._readings_count, self._rejected_count, self._inserts_count)

    def request_stop(self) -> None:
        """Ask the threads to finish; stop() does the cleanup."""
        self._stop_event.set()

    def wait(self) -> None:
        """Wait for the recorder to be stopped (blocking)."""
        try:
            while not self._stop_event.is_set():
                self._stop_event.wait(timeout=0.5)
        except KeyboardInterrupt:
            pass

    def _measurement_loop(self) -> None:
        """Worker thread: read lines, compute, relay and queue."""
        while not self._stop_event.is_set():
            if not self.sensor.is_open:
                if self._stop_event.wait(timeout=self.config.retry_interval):
                    break
                self.sensor.init()
                continue
            line = self.sensor.read_line()
            if line:
                self.handle_line(line)

    def _batch_insert_loop(self) -> None:
        """Worker thread: periodically flush the queue and prune old rows."""
        while not self._stop_event.wait(timeout=self.config.batch_interval):
            self.flush()
            self.prune()
