"""
Routing web service client.

Talks to the remote routing/blockage service: readiness, permitted road
types, per-segment routes and blockage CRUD. All responses are loosely typed
GeoJSON or token lists; classification happens in the processing layer.
"""

import json
import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from ..errors import TransportError
from ..models.geo import Point, RouteRequestBody
from ..models.state import ReadinessState

logger = logging.getLogger(__name__)

# json.loads raises RecursionError on deeply nested bodies
_DECODE_ERRORS = (ValueError, RecursionError)


def classify_readiness(raw: str) -> ReadinessState:
    """
    Classify a /ready response body.

    The body is either free text or JSON such as {"status": "ready"}.
    "ready" is checked before "wait", case-insensitively.
    """
    try:
        parsed = json.loads(raw)
    except _DECODE_ERRORS:
        value: Any = raw.strip()
    else:
        value = parsed
        if isinstance(parsed, dict):
            # Some deployments misspell the key
            value = parsed.get("status")
            if value is None:
                value = parsed.get("satus")

    if not isinstance(value, str):
        return ReadinessState.UNKNOWN
    lowered = value.lower()
    if "ready" in lowered:
        return ReadinessState.READY
    if "wait" in lowered:
        return ReadinessState.WAIT
    return ReadinessState.UNKNOWN


class RoutingServiceClient:
    """
    Async client for the routing web service.

    Endpoints:
    - GET /ready, GET /validAxisTypes, POST /changeValidRoadTypes
    - POST /route
    - GET/POST /blockage, DELETE /blockage/{name}
    - GET /axisType/{axisType}
    """

    def __init__(
        self,
        base_url: str,
        road_types_base_url: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not base_url:
            raise ValueError("Routing service base URL is required")
        self.base_url = base_url.rstrip("/")
        self.road_types_base_url = (road_types_base_url or self.base_url).rstrip("/")
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def close(self):
        """Close the HTTP client."""
        await self._client.aclose()

    async def _request(self, method: str, url: str, body: Any = None) -> Any:
        """
        Issue a request and decode the body leniently.

        Returns None for an empty body, decoded JSON when the body looks like
        JSON, otherwise the trimmed text. Non-2xx responses and network
        failures raise TransportError.
        """
        kwargs = {}
        if body is not None:
            kwargs["content"] = json.dumps(body)

        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise TransportError(f"Request to {url} failed: {e}") from e

        text = response.text
        if not response.is_success:
            detail = f" — {text}" if text else ""
            raise TransportError(
                f"HTTP {response.status_code} {response.reason_phrase}{detail}",
                status_code=response.status_code,
            )

        if not text:
            return None

        # Some servers forget to set application/json, so sniff the body
        trimmed = text.strip()
        if trimmed.startswith("{") or trimmed.startswith("["):
            try:
                return json.loads(trimmed)
            except _DECODE_ERRORS:
                pass
        return trimmed

    async def get_ready(self) -> ReadinessState:
        """Fetch /ready and classify it. The HTTP status is not inspected."""
        try:
            response = await self._client.get(f"{self.base_url}/ready")
        except httpx.HTTPError as e:
            raise TransportError(f"Readiness check failed: {e}") from e
        return classify_readiness(response.text)

    async def get_valid_axis_types(self) -> Any:
        """Currently permitted road types, as reported by the service."""
        return await self._request("GET", f"{self.base_url}/validAxisTypes")

    async def change_valid_road_types(self, axis_types: list[str]) -> Any:
        """Replace the permitted road types; returns the confirmed list."""
        return await self._request(
            "POST", f"{self.road_types_base_url}/changeValidRoadTypes", list(axis_types)
        )

    async def get_route(self, start: Point, end: Point) -> Any:
        """Request the route geometry for one segment."""
        body = RouteRequestBody(startPt=start, endPt=end).model_dump()
        return await self._request("POST", f"{self.base_url}/route", body)

    async def get_blockages(self) -> Any:
        """Fetch the blockage FeatureCollection."""
        return await self._request("GET", f"{self.base_url}/blockage")

    async def add_blockage(
        self,
        point: Point,
        radius_meters: float,
        name: str,
        description: str = "",
    ) -> Any:
        """Create a circular blockage. The name is its delete key."""
        body = {
            "point": {"lat": point.lat, "long": point.long},
            "radius": radius_meters,
            "name": name,
            "description": description,
        }
        return await self._request("POST", f"{self.base_url}/blockage", body)

    async def delete_blockage(self, name: str) -> None:
        """Delete a blockage by name. Deleting a missing name is harmless."""
        await self._request("DELETE", f"{self.base_url}/blockage/{quote(name, safe='')}")

    async def get_axis_type(self, axis_type: str) -> Any:
        """Geometry of every edge of one road category."""
        return await self._request("GET", f"{self.base_url}/axisType/{quote(axis_type, safe='')}")
