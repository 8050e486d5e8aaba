"""
Stop set and pick-mode transitions.

The stop set is the ordered list of route waypoints; index order is travel
order and an unset slot blocks routing. Every mutation invalidates the
displayed routes.
"""

from typing import Optional

from ..models.geo import Point
from ..models.state import EngineState, NoPick, PickBlockagePoint, PickStop, PickTarget
from ..utils.geometry import stop_label

MIN_STOPS = 2


class StopSetModel:
    """Pick/add/delete/swap/clear operations over EngineState.stops."""

    def __init__(self, state: EngineState):
        self.state = state

    @property
    def stops(self) -> list[Optional[Point]]:
        return self.state.stops

    @property
    def all_set(self) -> bool:
        return self.state.all_stops_set

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.state.stops):
            raise IndexError(f"No stop at index {index} (have {len(self.state.stops)})")

    def pick(self, target: PickTarget) -> None:
        """
        Select what the next map click sets.

        Picking a stop clears that stop and any displayed routes; picking the
        pending stop or the blockage point again cancels the pick.
        """
        if isinstance(target, PickStop):
            self._check_index(target.index)
            if self.state.pick == target:
                self.state.pick = NoPick()
                return
            self.state.pick = target
            self.state.stops[target.index] = None
            self.state.clear_routes()
            return

        if isinstance(target, PickBlockagePoint) and isinstance(self.state.pick, PickBlockagePoint):
            self.state.pick = NoPick()
            return

        self.state.pick = target

    def pick_stop(self, index: int) -> None:
        self.pick(PickStop(index))

    def pick_blockage_point(self) -> None:
        self.pick(PickBlockagePoint())

    def cancel_pick(self) -> None:
        self.pick(NoPick())

    def set_via_click(self, lat: float, long: float) -> Optional[str]:
        """
        Apply a map click.

        A pending stop is filled first, then a pending blockage point;
        otherwise the first unset stop is filled.

        Returns:
            Label of the stop that was set, "blockage" for the draft point,
            or None if the click changed nothing
        """
        point = Point(lat=lat, long=long)
        self.state.error = None
        pick = self.state.pick

        if isinstance(pick, PickStop):
            self.state.stops[pick.index] = point
            self.state.pick = NoPick()
            self.state.clear_routes()
            return stop_label(pick.index)

        if isinstance(pick, PickBlockagePoint):
            self.state.draft = self.state.draft.model_copy(update={"point": point})
            self.state.pick = NoPick()
            return "blockage"

        for index, stop in enumerate(self.state.stops):
            if stop is None:
                self.state.stops[index] = point
                self.state.clear_routes()
                return stop_label(index)

        return None

    def set_stop(self, index: int, point: Point) -> None:
        """Replace one stop wholesale."""
        self._check_index(index)
        self.state.stops[index] = point
        if self.state.pick == PickStop(index):
            self.state.pick = NoPick()
        self.state.clear_routes()

    def add(self) -> None:
        """Append an unset stop."""
        self.state.stops.append(None)
        self.state.clear_routes()

    def delete(self, index: int) -> None:
        """Remove a stop, or clear it in place when only two remain."""
        self._check_index(index)
        removed = len(self.state.stops) > MIN_STOPS
        if removed:
            del self.state.stops[index]
        else:
            self.state.stops[index] = None

        pick = self.state.pick
        if isinstance(pick, PickStop):
            if pick.index == index:
                self.state.pick = NoPick()
            elif removed and pick.index > index:
                self.state.pick = PickStop(pick.index - 1)

        self.state.clear_routes()

    def swap(self) -> bool:
        """Reverse a two-stop set. Returns False when there are not exactly two stops."""
        if len(self.state.stops) != MIN_STOPS:
            return False
        self.state.stops.reverse()
        self.state.clear_routes()
        return True

    def clear(self) -> None:
        """Reset to two unset stops."""
        self.state.stops = [None] * MIN_STOPS
        if isinstance(self.state.pick, PickStop):
            self.state.pick = NoPick()
        self.state.clear_routes()
