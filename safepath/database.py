"""PostGIS access for emergency service locations."""

from contextlib import contextmanager
from typing import Any, Generator

import psycopg2
from psycopg2.extras import RealDictCursor

from safepath.config import get_database_settings

SERVICE_POI_TYPES = ("fire", "hospital", "police")


def get_connection(connect_timeout: int = 5):
    """Open a connection using DATABASE_URL settings."""
    settings = get_database_settings()
    return psycopg2.connect(settings.url, connect_timeout=connect_timeout)


@contextmanager
def get_db_cursor(dict_cursor: bool = True) -> Generator:
    """Yield a cursor; commit on success, roll back on error, always close."""
    conn = get_connection()
    cursor_factory = RealDictCursor if dict_cursor else None
    try:
        with conn.cursor(cursor_factory=cursor_factory) as cursor:
            yield cursor
            conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetch_service_rows() -> list[dict[str, Any]]:
    """
    Fetch service POIs as rows with type, name, lat and lng.

    Reads the PostGIS poi table (geom in EPSG:4326, type one of
    fire, hospital, police).
    """
    with get_db_cursor() as cur:
        cur.execute("""
            SELECT type, name, ST_Y(geom) AS lat, ST_X(geom) AS lng
            FROM poi
            WHERE type = ANY(%s)
            ORDER BY type, id
        """, (list(SERVICE_POI_TYPES),))
        return [dict(row) for row in cur.fetchall()]


def check_connection() -> bool:
    """True if the database answers a trivial query."""
    try:
        with get_db_cursor() as cur:
            cur.execute("SELECT 1")
            return True
    except Exception:
        return False
