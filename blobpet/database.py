import os
import json
import sqlite3
import logging

logger = logging.getLogger(__name__)

SQLITE_SUFFIXES = (".db", ".sqlite", ".sqlite3")


class MemoryStore:
    """Dict-backed key/value store. Lives only as long as the process."""
    def __init__(self, data=None):
        self.data = dict(data or {})

    def load(self):
        return dict(self.data)

    def save(self, values):
        self.data.update(values)

    def close(self):
        pass


class JsonStore:
    """Keeps the snapshot as one JSON object on disk."""
    def __init__(self, path):
        self.path = path

    def load(self):
        """Returns the stored mapping, or {} when the file is missing or unreadable."""
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (ValueError, OSError) as e:
            logger.warning("Failed to read save file '%s': %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Save file '%s' does not hold an object, ignoring it", self.path)
            return {}
        return data

    def save(self, values):
        """Write to a temp file then atomically replace the save file."""
        data = self.load()
        data.update(values)
        tmp = self.path + ".tmp"
        with open(tmp, 'w', encoding='utf-8') as f:
            json.dump(data, f, ensure_ascii=False)
        os.replace(tmp, self.path)

    def close(self):
        pass


class SqliteStore:
    """Handles SQL persistence to keep the blob 'alive' on disk."""
    def __init__(self, db_path):
        self.conn = sqlite3.connect(db_path)
        try:
            self.create_tables()
        except sqlite3.Error:
            self.conn.close()
            raise

    def create_tables(self):
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS blob_state (
                key TEXT PRIMARY KEY,
                value TEXT
            )
        """)
        self.conn.commit()

    def load(self):
        data = {}
        cursor = self.conn.execute("SELECT key, value FROM blob_state")
        for key, raw in cursor.fetchall():
            try:
                data[key] = json.loads(raw)
            except (TypeError, json.JSONDecodeError):
                logger.warning("Ignoring unreadable value for '%s'", key)
        return data

    def save(self, values):
        rows = [(key, json.dumps(value, ensure_ascii=False)) for key, value in values.items()]
        self.conn.executemany("INSERT OR REPLACE INTO blob_state (key, value) VALUES (?, ?)", rows)
        self.conn.commit()

    def close(self):
        self.conn.close()


def open_store(path):
    """Pick a backend from the file suffix: sqlite for .db/.sqlite, JSON otherwise."""
    if path.lower().endswith(SQLITE_SUFFIXES):
        try:
            return SqliteStore(path)
        except sqlite3.Error as e:
            logger.warning("Cannot open database '%s': %s. Progress will not be saved.", path, e)
            return MemoryStore()
    return JsonStore(path)
