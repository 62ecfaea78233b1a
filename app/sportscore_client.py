"""
SportScore API Client (RapidAPI)
Handles the live tennis calls used by the relay
"""
import logging
from typing import Optional, List, Dict, Any

import requests

from config.settings import SPORTSCORE_HOST, settings

logger = logging.getLogger("sportscore_client")


class SportScoreError(Exception):
    """Raised when SportScore returns a non-2xx status or an unreadable body."""


def _get_headers() -> dict:
    """Get RapidAPI authentication headers."""
    return {
        "x-rapidapi-key": settings.rapidapi_key,
        "x-rapidapi-host": SPORTSCORE_HOST,
    }


def _make_request(endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Make a GET request to the SportScore API.

    Raises:
        SportScoreError: On network errors, non-2xx responses or invalid JSON
    """
    url = f"{settings.api_base_url}/{endpoint}"
    try:
        response = requests.get(
            url,
            headers=_get_headers(),
            params=params,
            timeout=settings.request_timeout_seconds,
        )
        response.raise_for_status()
        payload = response.json()
    except requests.HTTPError as e:
        status = e.response.status_code if e.response is not None else "?"
        raise SportScoreError(f"API request failed: {status} for {endpoint}") from e
    except requests.RequestException as e:
        raise SportScoreError(f"API request failed for {endpoint}: {e}") from e
    except ValueError as e:
        raise SportScoreError(f"Invalid JSON from {endpoint}") from e

    if not isinstance(payload, dict):
        raise SportScoreError(f"Unexpected payload type from {endpoint}: {type(payload).__name__}")
    return payload


# =============================================================================
# EVENT ENDPOINTS
# =============================================================================

def get_live_events() -> List[Dict[str, Any]]:
    """
    Get live tennis events.

    Returns an empty list when the request fails.
    """
    try:
        data = _make_request(
            f"sports/{settings.tennis_sport_id}/events/live",
            params={"page": 1},
        )
    except SportScoreError as e:
        logger.error(f"Error fetching live tennis events: {e}")
        return []

    events = data.get("data") or []
    if not isinstance(events, list):
        logger.warning(f"Live events payload is not a list: {type(events).__name__}")
        return []
    return [e for e in events if isinstance(e, dict)]


def get_event(event_id: str) -> Optional[Dict[str, Any]]:
    """
    Get detailed event data by ID.

    Returns None when the request fails or the event is missing.
    """
    try:
        data = _make_request(f"events/{event_id}")
    except SportScoreError as e:
        logger.error(f"Error fetching event {event_id}: {e}")
        return None

    event = data.get("data")
    if not isinstance(event, dict) or not event:
        return None
    return event
