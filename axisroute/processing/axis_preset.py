"""
Travel-mode road-type presets.

Pushes the preset axis types of the selected travel mode to the routing
service whenever it becomes ready or the mode changes while ready, and keeps
the server-confirmed list as the active set.
"""

import asyncio
import logging
from typing import Any

from ..clients.routing_service import RoutingServiceClient
from ..errors import TransportError
from ..models.presets import TravelMode, axis_key, preset_for
from ..models.state import EngineState, ReadinessState

logger = logging.getLogger(__name__)


def normalize_axis_types(value: Any) -> list[str]:
    """Server echo as a token list; anything but a list becomes empty."""
    return list(value) if isinstance(value, list) else []


class AxisPresetController:
    """
    Keeps the service's permitted road types in line with the travel mode.

    Pushes are serialized: a push waits for the previous one to resolve, so
    the last push issued is also the last one applied.
    """

    def __init__(self, client: RoutingServiceClient, state: EngineState):
        self.client = client
        self.state = state
        self._push_lock = asyncio.Lock()

    @property
    def preset(self) -> list[str]:
        return preset_for(self.state.mode)

    def is_reconciled(self) -> bool:
        """True when the active set matches the mode preset token for token."""
        return axis_key(self.state.active_axis_types) == axis_key(self.preset)

    async def push(self, axis_types: list[str]) -> list[str]:
        """
        Push a road-type list and store the confirmed set.

        Raises:
            TransportError: when the service rejects the push; the active set
                is left unchanged
        """
        async with self._push_lock:
            self.state.applying_preset = True
            try:
                confirmed = normalize_axis_types(await self.client.change_valid_road_types(axis_types))
            finally:
                self.state.applying_preset = False
            if self.state.stopped:
                return confirmed
            self.state.active_axis_types = confirmed
            logger.info(f"Active road types confirmed: {len(confirmed)} types")
            return confirmed

    async def apply(self) -> bool:
        """
        Push the current mode's preset, clearing routes made under the old profile.

        Failures are surfaced on state.error and not retried.

        Returns:
            True if the service confirmed the preset
        """
        if self.state.readiness != ReadinessState.READY:
            return False

        mode = self.state.mode
        self.state.error = None
        self.state.clear_routes()
        try:
            await self.push(preset_for(mode))
        except TransportError as e:
            logger.warning(f"Failed to apply {mode.value} preset: {e}")
            if not self.state.stopped:
                self.state.error = str(e) or "Failed to apply travel mode preset."
            return False
        return True

    async def load_active(self) -> None:
        """Adopt the service's current road types once at startup; failures are ignored."""
        try:
            value = await self.client.get_valid_axis_types()
        except TransportError as e:
            logger.debug(f"Could not load valid axis types: {e}")
            return
        if not self.state.stopped:
            self.state.active_axis_types = normalize_axis_types(value)

    def set_mode(self, mode: TravelMode) -> bool:
        """
        Change the travel mode.

        Returns:
            True if the mode changed and a preset push is due
        """
        mode = TravelMode(mode)
        if mode == self.state.mode:
            return False
        self.state.mode = mode
        return self.state.readiness == ReadinessState.READY
