"""HTTP entrypoint exposing smart search and the coordinate backfill (Cloud Run friendly)."""

from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request

from restaurant_curator.core.config import get_settings
from restaurant_curator.jobs.backfill_coordinates import get_geocoding_stats, run_backfill_job
from restaurant_curator.models import Coordinates
from restaurant_curator.search.smart_search import SmartSearch, build_smart_search

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App & executor ----------
app = Flask(__name__)
_executor = ThreadPoolExecutor(max_workers=2)
_smart_search: Optional[SmartSearch] = None
_smart_search_lock = threading.Lock()


def get_smart_search() -> SmartSearch:
    """Build the search service lazily so the city cache is shared across requests."""
    global _smart_search
    if _smart_search is None:
        with _smart_search_lock:
            if _smart_search is None:
                _smart_search = build_smart_search()
    return _smart_search


# ---------- Routes ----------


@app.get("/")
def root() -> Any:
    return "ok", 200


@app.get("/healthz")
def healthcheck() -> Any:
    """Lightweight health endpoint; reads settings without touching the database."""
    settings = get_settings()
    return (
        jsonify(
            {
                "status": "ok",
                "worker_port_config": getattr(settings, "worker_port", None),
                "geocoding_configured": bool(settings.google_maps_api_key),
                "revision": os.getenv("K_REVISION", "unknown"),
            }
        ),
        200,
    )


def _parse_user_location(args: Dict[str, Any]) -> Optional[Coordinates]:
    lat_raw = args.get("lat")
    lng_raw = args.get("lng")
    if lat_raw in (None, "") and lng_raw in (None, ""):
        return None
    if lat_raw in (None, "") or lng_raw in (None, ""):
        raise ValueError("lat and lng must be provided together")
    try:
        lat = float(lat_raw)
        lng = float(lng_raw)
    except (TypeError, ValueError) as exc:
        raise ValueError("lat and lng must be numeric") from exc
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        raise ValueError("lat/lng out of range")
    return Coordinates(lat=lat, lng=lng)


@app.get("/search")
def search() -> Any:
    """
    Smart search over the catalog.
    Query params: q (text), optional lat + lng to bias geocoding.
    """
    query = request.args.get("q", "")
    try:
        user_location = _parse_user_location(request.args)
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400

    result = get_smart_search().search(query, user_location)
    return jsonify({"data": result.to_dict()}), 200


@app.post("/geocode/backfill")
def enqueue_backfill() -> Any:
    """
    Enqueue a coordinate backfill.
    Optional JSON fields: force_all (bool), pause_seconds (float)
    """
    payload: Dict[str, Any] = request.get_json(silent=True) or {}

    force_all = bool(payload.get("force_all", False))

    pause_raw = payload.get("pause_seconds")
    pause_seconds = None
    if pause_raw is not None:
        try:
            pause_seconds = float(pause_raw)
        except (TypeError, ValueError):
            return jsonify({"error": "pause_seconds must be numeric"}), 400
        if pause_seconds < 0:
            return jsonify({"error": "pause_seconds must not be negative"}), 400

    job_args = dict(force_all=force_all, pause_seconds=pause_seconds)
    logger.info("Queueing coordinate backfill: %s", job_args)
    _executor.submit(_run_job_safe, job_args)

    return jsonify({"data": {"status": "queued"}}), 202


@app.get("/geocode/stats")
def geocoding_stats() -> Any:
    try:
        stats = get_geocoding_stats()
    except Exception as exc:  # noqa: BLE001
        logger.exception("Failed to load geocoding stats: %s", exc)
        return jsonify({"error": "stats unavailable"}), 500
    return jsonify({"data": asdict(stats)}), 200


# ---------- Internals ----------


def _run_job_safe(job_args: Dict[str, Any]) -> None:
    try:
        run_backfill_job(**job_args)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Backfill job failed: %s", exc)


def main() -> None:
    """Bind on $PORT when the platform injects one, else the configured worker port."""
    env_port = os.getenv("PORT")
    port = int(env_port) if env_port else get_settings().worker_port
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
