# alert store backends
import logging
import sqlite3
import threading
from pathlib import Path

from homealert.models import Alert, HomeUserLink, SentStatus

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS alert_log(
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  home_id TEXT,
  user_id TEXT,
  device_id TEXT,
  message TEXT NOT NULL,
  sent_status INTEGER NOT NULL DEFAULT 0,
  created_ts DATETIME DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_alert_pending ON alert_log(sent_status, created_ts);

CREATE TABLE IF NOT EXISTS user_homes(
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  home_id TEXT NOT NULL,
  user_id TEXT,
  email TEXT
);

CREATE INDEX IF NOT EXISTS idx_user_homes_home ON user_homes(home_id);
"""


def _row_to_alert(row) -> Alert:
    return Alert(
        id=row[0],
        home_id=row[1],
        user_id=row[2],
        device_id=row[3],
        message=row[4],
        sent_status=SentStatus(row[5]),
        created_at=row[6],
    )


class Database:
    """
    Thread-safe SQLite alert store.

    Uses thread-local connections so each thread holds exactly one connection,
    preventing "SQLite objects created in a thread can only be used in that same thread" errors.

    For write operations, uses a lock to serialize access and prevent conflicts.
    """

    def __init__(self, db_path: str):
        self.db_path = Path(db_path)
        self._local = threading.local()
        self._write_lock = threading.Lock()

        conn = self._get_conn()
        conn.executescript(SCHEMA)
        conn.commit()

    def _get_conn(self) -> sqlite3.Connection:
        """Get thread-local database connection."""
        if not hasattr(self._local, "conn") or self._local.conn is None:
            self._local.conn = sqlite3.connect(
                self.db_path,
                check_same_thread=False,
                timeout=30.0,  # Wait up to 30s if database is locked
            )
        conn: sqlite3.Connection = self._local.conn
        return conn

    def fetch_pending(self, limit: int) -> list[Alert]:
        """
        Get unsent alerts, oldest first.

        Args:
            limit: Maximum number of alerts to return

        Returns:
            List of Alert objects with sent_status UNSENT
        """
        conn = self._get_conn()
        cur = conn.execute(
            "SELECT id, home_id, user_id, device_id, message, sent_status, created_ts "
            "FROM alert_log WHERE sent_status=? ORDER BY created_ts ASC, id ASC LIMIT ?",
            (int(SentStatus.UNSENT), limit),
        )
        return [_row_to_alert(row) for row in cur.fetchall()]

    def get_alert(self, alert_id: int) -> Alert | None:
        """Get a single alert by id, or None if it doesn't exist."""
        conn = self._get_conn()
        cur = conn.execute(
            "SELECT id, home_id, user_id, device_id, message, sent_status, created_ts "
            "FROM alert_log WHERE id=?",
            (alert_id,),
        )
        row = cur.fetchone()
        return _row_to_alert(row) if row else None

    def insert_alert(
        self,
        home_id: str | None,
        user_id: str | None,
        device_id: str | None,
        message: str,
    ) -> int:
        """
        Insert a new unsent alert.

        Returns:
            The id assigned to the alert
        """
        with self._write_lock:
            conn = self._get_conn()
            cur = conn.execute(
                "INSERT INTO alert_log(home_id, user_id, device_id, message, sent_status) "
                "VALUES(?,?,?,?,?)",
                (home_id, user_id, device_id, message, int(SentStatus.UNSENT)),
            )
            conn.commit()
            alert_id = cur.lastrowid
        logger.debug(f"Inserted alert {alert_id} for home {home_id}")
        return alert_id

    def mark_sent(self, alert_id: int) -> None:
        """Mark an alert as sent. Never moves an alert back to unsent."""
        with self._write_lock:
            conn = self._get_conn()
            conn.execute(
                "UPDATE alert_log SET sent_status=? WHERE id=?",
                (int(SentStatus.SENT), alert_id),
            )
            conn.commit()

    def add_home_link(self, home_id: str, user_id: str | None, email: str | None = None) -> None:
        """Link a user to a home, optionally with a notification email override."""
        with self._write_lock:
            conn = self._get_conn()
            conn.execute(
                "INSERT INTO user_homes(home_id, user_id, email) VALUES(?,?,?)",
                (home_id, user_id, email),
            )
            conn.commit()

    def get_home_link(self, home_id: str) -> HomeUserLink | None:
        """Get the first user link for a home."""
        conn = self._get_conn()
        cur = conn.execute(
            "SELECT home_id, user_id, email FROM user_homes WHERE home_id=? ORDER BY id LIMIT 1",
            (home_id,),
        )
        row = cur.fetchone()
        if row is None:
            return None
        return HomeUserLink(home_id=row[0], user_id=row[1], email=row[2])

    def get_home_override_email(self, home_id: str) -> str | None:
        """Get the home's notification email override, if one is set."""
        link = self.get_home_link(home_id)
        if link and link.email:
            return link.email
        return None

    def close(self):
        """Close the thread-local connection. Call on shutdown."""
        if hasattr(self._local, "conn") and self._local.conn is not None:
            self._local.conn.close()
            self._local.conn = None


def _load_firestore():
    """Import the Firestore module, raising a clear error if not installed."""
    try:
        from google.cloud import firestore
    except ImportError as e:
        raise ImportError(
            "google-cloud-firestore not installed. "
            "Install with: pip install homealert[firestore]"
        ) from e
    return firestore


class FirestoreDatabase:
    """
    Firestore alert store for serverless deployments.

    Compatible with the Database interface (fetch_pending, insert_alert,
    mark_sent, get_home_override_email, close).
    """

    def __init__(
        self,
        project_id: str,
        alerts_collection: str = "alert_log",
        homes_collection: str = "user_homes",
    ):
        """
        Initialize Firestore client.

        Args:
            project_id: GCP project ID
            alerts_collection: Collection holding alert documents
            homes_collection: Collection holding home/user link documents
        """
        self._fs = _load_firestore()
        self.db = self._fs.Client(project=project_id)
        self.alerts = self.db.collection(alerts_collection)
        self.homes = self.db.collection(homes_collection)

    def _doc_to_alert(self, doc) -> Alert:
        data = doc.to_dict() or {}
        return Alert(
            id=doc.id,
            home_id=data.get("home_id"),
            user_id=data.get("user_id"),
            device_id=data.get("device_id"),
            message=data.get("message", ""),
            sent_status=SentStatus(data.get("sent_status", 0)),
            created_at=data.get("created_at"),
        )

    def fetch_pending(self, limit: int) -> list[Alert]:
        """Get unsent alerts, oldest first."""
        query = (
            self.alerts.where(filter=self._fs.FieldFilter("sent_status", "==", int(SentStatus.UNSENT)))
            .order_by("created_at", direction=self._fs.Query.ASCENDING)
            .limit(limit)
        )
        return [self._doc_to_alert(doc) for doc in query.stream()]

    def get_alert(self, alert_id: str) -> Alert | None:
        doc = self.alerts.document(alert_id).get()
        if not doc.exists:
            return None
        return self._doc_to_alert(doc)

    def insert_alert(
        self,
        home_id: str | None,
        user_id: str | None,
        device_id: str | None,
        message: str,
    ) -> str:
        """Insert a new unsent alert and return its document id."""
        doc_ref = self.alerts.document()
        doc_ref.set(
            {
                "home_id": home_id,
                "user_id": user_id,
                "device_id": device_id,
                "message": message,
                "sent_status": int(SentStatus.UNSENT),
                "created_at": self._fs.SERVER_TIMESTAMP,
            }
        )
        return doc_ref.id

    def mark_sent(self, alert_id: str) -> None:
        self.alerts.document(alert_id).update({"sent_status": int(SentStatus.SENT)})

    def add_home_link(self, home_id: str, user_id: str | None, email: str | None = None) -> None:
        self.homes.document().set({"home_id": home_id, "user_id": user_id, "email": email})

    def get_home_link(self, home_id: str) -> HomeUserLink | None:
        query = self.homes.where(filter=self._fs.FieldFilter("home_id", "==", home_id)).limit(1)
        for doc in query.stream():
            data = doc.to_dict() or {}
            return HomeUserLink(
                home_id=data.get("home_id", home_id),
                user_id=data.get("user_id"),
                email=data.get("email"),
            )
        return None

    def get_home_override_email(self, home_id: str) -> str | None:
        link = self.get_home_link(home_id)
        if link and link.email:
            return link.email
        return None

    def close(self):
        """Close the underlying Firestore client."""
        self.db.close()


def get_database(backend: str, **kwargs):
    """
    Factory function to create appropriate alert store backend.

    Args:
        backend: "sqlite" or "firestore"
        **kwargs: Backend-specific arguments:
            For SQLite: db_path (str)
            For Firestore: project_id (str), alerts_collection (str, optional),
                homes_collection (str, optional)

    Returns:
        Database or FirestoreDatabase instance with compatible interface

    Examples:
        db = get_database("sqlite", db_path="./alerts.sqlite3")
        db = get_database("firestore", project_id="my-project")
    """
    if backend == "sqlite":
        return Database(kwargs["db_path"])
    elif backend == "firestore":
        return FirestoreDatabase(
            project_id=kwargs["project_id"],
            alerts_collection=kwargs.get("alerts_collection", "alert_log"),
            homes_collection=kwargs.get("homes_collection", "user_homes"),
        )
    else:
        raise ValueError(f"Unknown database backend: {backend}")
