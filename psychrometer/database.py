import logging
import sqlite3
from datetime import datetime

from .models import TIMESTAMP_FORMAT, PsychrometricState

logger = logging.getLogger(__name__)

COLUMNS = ("timestamp", "dry_bulb", "wet_bulb", "relative_humidity", "dew_point",
           "absolute_humidity", "partial_pressure", "specific_volume", "enthalpy")


def _format_time(value):
    if isinstance(value, datetime):
        return value.strftime(TIMESTAMP_FORMAT)
    return value


class ReadingDatabase:
    def __init__(self, db_file='measurements.db'):
        self.db_file = db_file
        self._create_tables()

    def _create_tables(self):
        conn = sqlite3.connect(self.db_file)
        cursor = conn.cursor()

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS measurements (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                timestamp TEXT,
                dry_bulb REAL,
                wet_bulb REAL,
                relative_humidity REAL,
                dew_point REAL,
                absolute_humidity REAL,
                partial_pressure REAL,
                specific_volume REAL,
                enthalpy REAL
            )
        ''')
        cursor.execute('CREATE INDEX IF NOT EXISTS idx_measurements_timestamp ON measurements (timestamp)')

        conn.commit()
        conn.close()
        logger.debug("Database %s ensured", self.db_file)

    def insert(self, state: PsychrometricState):
        self.insert_bulk([state])

    def insert_bulk(self, states) -> int:
        if not states:
            return 0
        placeholders = ", ".join("?" for _ in COLUMNS)
        conn = sqlite3.connect(self.db_file)
        try:
            conn.executemany(
                f"INSERT INTO measurements ({', '.join(COLUMNS)}) VALUES ({placeholders})",
                [s.to_row() for s in states],
            )
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            raise
        finally:
            conn.close()
        return len(states)

    def get_readings(self, start_time=None, end_time=None, limit=None):
        """States between start_time and end_time, oldest first."""
        clauses = []
        params = []
        if start_time:
            clauses.append("timestamp >= ?")
            params.append(_format_time(start_time))
        if end_time:
            clauses.append("timestamp <= ?")
            params.append(_format_time(end_time))

        query = f"SELECT {', '.join(COLUMNS)} FROM measurements"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        if limit:
            # newest `limit` rows, flipped back to ascending below
            query += " ORDER BY timestamp DESC, id DESC LIMIT ?"
            params.append(int(limit))
        else:
            query += " ORDER BY timestamp ASC, id ASC"

        conn = sqlite3.connect(self.db_file)
        cursor = conn.cursor()
        cursor.execute(query, params)
        rows = cursor.fetchall()
        conn.close()
        if limit:
            rows.reverse()
        return [PsychrometricState.from_row(r) for r in rows]

    def get_latest(self):
        rows = self.get_readings(limit=1)
        return rows[-1] if rows else None

    def get_counts(self):
        conn = sqlite3.connect(self.db_file)
        cursor = conn.cursor()
        cursor.execute('SELECT COUNT(*) FROM measurements')
        count = cursor.fetchone()[0]
        conn.close()
        return count

    def delete_readings_older_than(self, cutoff_time):
        conn = sqlite3.connect(self.db_file)
        cursor = conn.cursor()
        cursor.execute('DELETE FROM measurements WHERE timestamp < ?', (_format_time(cutoff_time),))
        deleted = cursor.rowcount
        conn.commit()
        conn.close()
        logger.info("Deleted %d readings older than %s", deleted, cutoff_time)
        return deleted
