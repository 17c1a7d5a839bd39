# route_tracker.py
# Decides, for one position fix, whether the user advanced a step, arrived,
# or is still progressing. Call load_route() once, then check_progress() on
# every position update.

import logging
from typing import Optional

from .geo_utils import calculate_bearing, cardinal_direction, haversine_distance
from .models import Coord, ProgressResult, Route, RouteStatus, RouteStep
from .nav_config import NavConfig

logger = logging.getLogger(__name__)


class RouteTracker:
    """
    Stateful progress tracker for a single navigation session.

    The step index only ever moves forward, one step per fix.

    Usage:
        tracker = RouteTracker(config)
        tracker.load_route(route)

        # Inside the position loop:
        result = tracker.check_progress(current_coord)
    """

    def __init__(self, config: Optional[NavConfig] = None) -> None:
        self.config = config or NavConfig()
        self._route: Optional[Route] = None
        self._step_index: int = 0
        self._active: bool = False

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def load_route(self, route: Route) -> None:
        """Load a new route and reset state."""
        self._route = route
        self._step_index = 0
        self._active = bool(route.steps)

    def stop(self) -> None:
        """Forcibly end tracking and forget the route."""
        self._active = False
        self._route = None
        self._step_index = 0

    # ------------------------------------------------------------------
    # Read-only properties
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def step_index(self) -> int:
        return self._step_index

    @property
    def current_step(self) -> Optional[RouteStep]:
        if self._route and 0 <= self._step_index < len(self._route.steps):
            return self._route.steps[self._step_index]
        return None

    @property
    def remaining_steps(self) -> int:
        if not self._route:
            return 0
        return max(0, len(self._route.steps) - self._step_index)

    # ------------------------------------------------------------------
    # Core method, called on every position update
    # ------------------------------------------------------------------

    def check_progress(self, position: Coord) -> ProgressResult:
        """
        Compare a position fix to the current step.

        Args:
            position: Current geographic position.

        Returns:
            ProgressResult with status, message, and contextual data.
        """
        if not self._active or self._route is None:
            return ProgressResult(
                status=RouteStatus.INACTIVE,
                message="Navigation is not active.",
            )

        target = self._route.steps[self._step_index]
        if target.end is None or not target.end.is_valid():
            logger.warning(f"Step {self._step_index} has no usable end coordinate: {target.end!r}")
            return ProgressResult(
                status=RouteStatus.SKIPPED,
                message="Current step has no valid end point.",
                step_index=self._step_index,
                current_step=target,
            )

        dist = haversine_distance(position, target.end)
        bearing = calculate_bearing(position, target.end)
        is_last = self._step_index >= len(self._route.steps) - 1

        # 1. Step end reached
        if dist < self.config.step_advance_threshold_m:
            if not is_last:
                self._step_index += 1
                next_step = self._route.steps[self._step_index]
                return ProgressResult(
                    status=RouteStatus.STEP_ADVANCED,
                    message=next_step.announcement,
                    step_index=self._step_index,
                    distance_to_step_end=haversine_distance(position, next_step.end),
                    bearing=calculate_bearing(position, next_step.end),
                    current_step=next_step,
                )

            # 2. Last step: arrival needs the final destination too
            to_destination = haversine_distance(position, self._route.destination)
            if to_destination < self.config.arrival_threshold_m:
                self._active = False
                return ProgressResult(
                    status=RouteStatus.FINISHED,
                    message="You have reached your destination.",
                    step_index=self._step_index,
                    distance_to_step_end=dist,
                    bearing=bearing,
                    current_step=target,
                )

        # 3. Still on the way
        return ProgressResult(
            status=RouteStatus.PROGRESSING,
            message=f"{int(dist)} m to go, heading {cardinal_direction(bearing)}.",
            step_index=self._step_index,
            distance_to_step_end=dist,
            bearing=bearing,
            current_step=target,
        )
