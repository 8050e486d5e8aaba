"""
Blockage writes and the convergence poll that follows them.

The blockage list is eventually consistent: after a create, the list is
re-fetched until it reflects the write or the attempt budget runs out.
"""

import asyncio
import logging
from typing import Any

from ..clients.routing_service import RoutingServiceClient
from ..errors import ConvergenceTimeout, TransportError
from ..models.geo import BlockageDraft
from ..models.state import EngineState, ReadinessState
from ..utils.geo_payload import extract_names, is_valid_shape, payloads_equal
from .scheduler import SleepFn

logger = logging.getLogger(__name__)

STALE_LIST_WARNING = "Blockage added, but list did not update yet. Please try again."


class BlockageConvergencePoller:
    """
    Re-fetch the blockage collection until a write shows up.

    Converged when the fetched collection contains the expected name or
    differs from the collection held before the write. A change made by
    another client also counts as converged.
    """

    def __init__(
        self,
        client: RoutingServiceClient,
        state: EngineState,
        max_attempts: int = 10,
        delay_seconds: float = 0.5,
        sleep: SleepFn = asyncio.sleep,
    ):
        self.client = client
        self.state = state
        self.max_attempts = max_attempts
        self.delay_seconds = delay_seconds
        self._sleep = sleep

    async def wait_for(self, expected_name: str) -> bool:
        """
        Poll until the expected blockage appears.

        Args:
            expected_name: Name used for the create; compared trimmed

        Returns:
            True once converged and the new collection adopted, False after
            the attempt budget is exhausted

        Raises:
            TransportError: a fetch failed
        """
        expected = expected_name.strip()
        previous = self.state.blockages.collection

        for attempt in range(1, self.max_attempts + 1):
            fetched = await self.client.get_blockages()
            if self.state.stopped:
                return False

            if is_valid_shape(fetched):
                has_expected = bool(expected) and expected in extract_names(fetched)
                changed = not payloads_equal(previous, fetched)
                if has_expected or changed:
                    self.state.blockages.adopt(fetched)
                    logger.info(f"Blockage list converged after {attempt} attempt(s)")
                    return True
            else:
                logger.debug(f"Ignoring invalid blockage payload (attempt {attempt})")

            if attempt < self.max_attempts:
                await self._sleep(self.delay_seconds)

        logger.warning(f"Blockage list did not show '{expected}' after {self.max_attempts} attempts")
        return False

    async def wait_for_or_raise(self, expected_name: str) -> None:
        """Like wait_for, but raise ConvergenceTimeout when the budget runs out."""
        if not await self.wait_for(expected_name):
            raise ConvergenceTimeout(STALE_LIST_WARNING)


class BlockageManager:
    """Blockage list refresh, draft editing, create and delete."""

    def __init__(
        self,
        client: RoutingServiceClient,
        state: EngineState,
        poller: BlockageConvergencePoller,
        default_radius_meters: float = 200.0,
        min_radius_meters: float = 50.0,
        max_radius_meters: float = 2000.0,
        radius_step_meters: float = 50.0,
    ):
        self.client = client
        self.state = state
        self.poller = poller
        self.default_radius_meters = default_radius_meters
        self.min_radius_meters = min_radius_meters
        self.max_radius_meters = max_radius_meters
        self.radius_step_meters = radius_step_meters
        self.reset_draft()

    def reset_draft(self) -> None:
        self.state.draft = BlockageDraft(radius_meters=self.default_radius_meters)

    def update_draft(
        self,
        name: str | None = None,
        description: str | None = None,
        radius_meters: float | None = None,
    ) -> BlockageDraft:
        """
        Edit the pending blockage.

        Raises:
            ValueError: radius outside the allowed range or off the step grid
        """
        update: dict[str, Any] = {}
        if name is not None:
            update["name"] = name
        if description is not None:
            update["description"] = description
        if radius_meters is not None:
            if not self.min_radius_meters <= radius_meters <= self.max_radius_meters:
                raise ValueError(
                    f"Radius must be between {self.min_radius_meters:g} and {self.max_radius_meters:g} metres"
                )
            if (radius_meters - self.min_radius_meters) % self.radius_step_meters:
                raise ValueError(f"Radius must be a multiple of {self.radius_step_meters:g} metres")
            update["radius_meters"] = radius_meters
        self.state.draft = self.state.draft.model_copy(update=update)
        return self.state.draft

    def clear_draft_point(self) -> None:
        self.state.draft = self.state.draft.model_copy(update={"point": None})

    def can_add(self) -> bool:
        draft = self.state.draft
        return (
            self.state.readiness == ReadinessState.READY
            and draft.point is not None
            and bool(draft.name.strip())
        )

    async def refresh(self) -> bool:
        """
        Fetch the blockage list; adopt it only if valid and changed.

        Raises:
            TransportError: the fetch failed
        """
        fetched = await self.client.get_blockages()
        if self.state.stopped:
            return False
        return self.state.blockages.adopt_if_changed(fetched)

    async def load(self) -> None:
        """Refresh and surface failures on state.error."""
        try:
            await self.refresh()
        except TransportError as e:
            logger.warning(f"Failed to load blockages: {e}")
            if not self.state.stopped:
                self.state.error = str(e) or "Failed to load blockages."

    async def set_show_blockages(self, show: bool) -> None:
        """Toggle the overlay; every toggle re-fetches the list."""
        self.state.show_blockages = show
        await self.load()

    async def add_from_draft(self) -> bool:
        """
        Write the drafted blockage and wait for the list to reflect it.

        Returns:
            True if the write succeeded, even when the list is still stale
        """
        if not self.can_add():
            return False

        draft = self.state.draft
        expected_name = draft.name.strip()
        self.state.error = None
        self.state.adding_blockage = True
        try:
            await self.client.add_blockage(
                point=draft.point,
                radius_meters=draft.radius_meters,
                name=expected_name,
                description=draft.description.strip(),
            )
            logger.info(f"Blockage '{expected_name}' created, waiting for list to update")

            try:
                await self.poller.wait_for_or_raise(expected_name)
            except ConvergenceTimeout as e:
                if self.state.stopped:
                    return True
                self.state.error = str(e)

            self.reset_draft()
            return True
        except TransportError as e:
            logger.warning(f"Failed to add blockage '{expected_name}': {e}")
            if not self.state.stopped:
                self.state.error = str(e) or "Failed to add blockage."
            return False
        finally:
            self.state.adding_blockage = False

    async def delete(self, name: str) -> bool:
        """Delete a blockage by name and refresh the list."""
        if self.state.readiness != ReadinessState.READY:
            return False

        self.state.error = None
        self.state.deleting_blockage_name = name
        try:
            await self.client.delete_blockage(name)
            await self.refresh()
            logger.info(f"Blockage '{name}' deleted")
            return True
        except TransportError as e:
            logger.warning(f"Failed to delete blockage '{name}': {e}")
            if not self.state.stopped:
                self.state.error = str(e) or "Failed to delete blockage."
            return False
        finally:
            self.state.deleting_blockage_name = None
