# nav_logger.py
# Handles all file I/O for the guidance engine.
# Saves the active route as JSON and navigation events as JSON lines.

import json
import logging
import os
from datetime import datetime
from typing import Optional

from .models import Coord, ProgressResult, Route
from .nav_config import NavConfig

# Standard Python logger, configured at the app entry point
logger = logging.getLogger(__name__)


class NavLogger:
    """
    Persists route data and navigation events to JSON files.

    Does nothing when config.persist_session is False.

    Args:
        config: NavConfig instance for file paths and directories.
    """

    def __init__(self, config: Optional[NavConfig] = None) -> None:
        self.config = config or NavConfig()
        if self.config.persist_session:
            os.makedirs(self.config.log_dir, exist_ok=True)

    @property
    def enabled(self) -> bool:
        return self.config.persist_session

    # ------------------------------------------------------------------
    # Route persistence
    # ------------------------------------------------------------------

    def save_route(self, route: Route) -> bool:
        """
        Serialize a route to JSON.

        Args:
            route: Route to snapshot.

        Returns:
            True on success, False on failure or when disabled.
        """
        if not self.enabled:
            return False
        filepath = self.config.route_filepath
        try:
            data = {
                "saved_at": datetime.now().isoformat(),
                "step_count": len(route.steps),
                "route": route.to_dict(),
            }
            with open(filepath, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            logger.info(f"Route saved to {filepath} ({len(route.steps)} steps).")
            return True
        except (IOError, TypeError) as e:
            logger.error(f"Failed to save route to {filepath}: {e}")
            return False

    def load_route(self, filepath: Optional[str] = None) -> Optional[Route]:
        """
        Load a previously saved route from JSON.

        Args:
            filepath: Path override; uses config default if omitted.

        Returns:
            Route, or None if loading failed.
        """
        path = filepath or self.config.route_filepath
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            route = Route.from_dict(data["route"])
            logger.info(f"Route loaded from {path} ({len(route.steps)} steps).")
            return route
        except (IOError, KeyError, ValueError, TypeError) as e:
            logger.error(f"Failed to load route from {path}: {e}")
            return None

    # ------------------------------------------------------------------
    # Session event logging
    # ------------------------------------------------------------------

    def log_event(self, result: ProgressResult, position: Coord) -> None:
        """
        Append a single navigation event to the session log file.

        Args:
            result:   ProgressResult from RouteTracker.
            position: Fix the result was computed from.
        """
        if not self.enabled:
            return
        entry = {
            "timestamp": datetime.now().isoformat(),
            "lat": position.lat,
            "lon": position.lon,
            "status": result.status.value,
            "step_index": result.step_index,
            "message": result.message,
            "distance_to_step_end": result.distance_to_step_end,
        }
        try:
            with open(self.config.session_filepath, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry, ensure_ascii=False) + "\n")
        except IOError as e:
            logger.error(f"Failed to write event log: {e}")
