"""Database helpers for the restaurant catalog (Supabase Postgres)."""

import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Tuple

import psycopg2
from psycopg2 import extras, pool

from restaurant_curator.core.config import get_settings

logger = logging.getLogger(__name__)

_connection_pool: Optional[pool.SimpleConnectionPool] = None


def init_pool(minconn: int = 1, maxconn: int = 5) -> pool.SimpleConnectionPool:
    """Initialise and return the shared connection pool."""
    global _connection_pool
    if _connection_pool is None:
        settings = get_settings()
        if not settings.database_url:
            raise RuntimeError("DATABASE_URL is required for database connections")
        _connection_pool = pool.SimpleConnectionPool(
            minconn,
            maxconn,
            dsn=settings.database_url,
            connect_timeout=10,
        )
        logger.info("Database connection pool initialised")
    return _connection_pool


@contextmanager
def get_connection():
    """Context manager yielding a pooled connection."""
    pg_pool = init_pool()
    conn = pg_pool.getconn()
    try:
        yield conn
    finally:
        pg_pool.putconn(conn)


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so user input only matches literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


_RESTAURANTS_WITH_LOCATIONS = """
SELECT
    r.*,
    COALESCE(
        json_agg(a.* ORDER BY a.created_at) FILTER (WHERE a.id IS NOT NULL),
        '[]'::json
    ) AS locations
FROM restaurants r
LEFT JOIN restaurant_addresses a ON a.restaurant_id = r.id
"""

_TEXT_FILTER = """
WHERE r.name ILIKE %(pattern)s
    OR r.address ILIKE %(pattern)s
    OR r.cuisine ILIKE %(pattern)s
    OR r.secondary_cuisine ILIKE %(pattern)s
    OR EXISTS (
        SELECT 1 FROM restaurant_addresses la
        WHERE la.restaurant_id = r.id
            AND (
                la.location_name ILIKE %(pattern)s
                OR la.full_address ILIKE %(pattern)s
                OR la.city ILIKE %(pattern)s
                OR la.country ILIKE %(pattern)s
            )
    )
"""

_GROUP_AND_ORDER = """
GROUP BY r.id
ORDER BY r.created_at DESC
"""


def fetch_restaurants_with_locations(search_text: Optional[str] = None) -> List[Dict[str, Any]]:
    """Return restaurant rows with a ``locations`` array, newest first.

    With ``search_text`` only rows matching it case-insensitively (as a
    substring) on name, summary address, cuisine or any location field are
    returned.
    """
    params: Dict[str, Any] = {}
    sql = _RESTAURANTS_WITH_LOCATIONS
    if search_text and search_text.strip():
        params["pattern"] = f"%{escape_like(search_text.strip())}%"
        sql += _TEXT_FILTER
    sql += _GROUP_AND_ORDER

    with get_connection() as conn:
        with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
            cur.execute(sql, params)
            rows = cur.fetchall()
    logger.debug("Catalog query returned %d rows (search_text=%r)", len(rows), search_text)
    return [dict(row) for row in rows]


def fetch_restaurant(restaurant_id: str) -> Optional[Dict[str, Any]]:
    sql = _RESTAURANTS_WITH_LOCATIONS + "WHERE r.id = %(id)s" + _GROUP_AND_ORDER
    with get_connection() as conn:
        with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
            cur.execute(sql, {"id": restaurant_id})
            row = cur.fetchone()
    return dict(row) if row else None


def fetch_addresses_needing_geocoding(force_all: bool = False) -> List[Dict[str, Any]]:
    """Return ``restaurant_addresses`` rows, only those missing coordinates unless ``force_all``."""
    sql = "SELECT * FROM restaurant_addresses"
    if not force_all:
        sql += " WHERE latitude IS NULL OR longitude IS NULL"
    sql += " ORDER BY created_at ASC"

    with get_connection() as conn:
        with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
            cur.execute(sql, {})
            rows = cur.fetchall()
    return [dict(row) for row in rows]


_UPDATE_COORDINATES = """
UPDATE restaurant_addresses
SET latitude = %(lat)s,
    longitude = %(lng)s,
    updated_at = NOW()
WHERE id = %(id)s;
"""


def update_address_coordinates(address_id: str, lat: float, lng: float) -> None:
    if not address_id:
        raise ValueError("address_id is required to update coordinates")

    with get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute(_UPDATE_COORDINATES, {"id": address_id, "lat": lat, "lng": lng})
        conn.commit()
        logger.debug("Updated coordinates for address %s", address_id)


_COUNT_GEOCODED = """
SELECT
    COUNT(*) AS total,
    COUNT(*) FILTER (WHERE latitude IS NOT NULL AND longitude IS NOT NULL) AS geocoded
FROM restaurant_addresses;
"""


def count_address_geocoding() -> Tuple[int, int]:
    """Return ``(total, geocoded)`` address counts."""
    with get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute(_COUNT_GEOCODED, {})
            total, geocoded = cur.fetchone()
    return int(total or 0), int(geocoded or 0)
