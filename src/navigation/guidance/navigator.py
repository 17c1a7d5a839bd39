# navigator.py
# Public entry point for turn-by-turn guidance.
# Owns the navigation lifecycle and timers; geometry, routing, speech and
# persistence are delegated to the specialist modules.

import logging
from typing import Callable, List, Optional, Tuple

from .announcer import AnnouncementScheduler, AudioFocus, Priority
from .errors import EmptyRouteError, GeolocationError, ProviderUnavailable
from .geo_utils import cardinal_direction, format_distance, format_duration
from .models import (
    Arrived,
    Coord,
    GuidanceProjection,
    NavigationSession,
    NavigationStarted,
    NavigationState,
    NavigationStopped,
    ProgressResult,
    ProgressUpdated,
    Route,
    RouteStatus,
    RouteStep,
    StepAdvanced,
)
from .nav_config import NavConfig
from .nav_logger import NavLogger
from .poi_finder import POIFinder, POIResult
from .providers import (
    DirectionsProvider,
    Geocoder,
    GeolocationProvider,
    PlacesProvider,
    PositionStream,
    SpeechSink,
    VoiceInputProvider,
)
from .route_calculator import RouteCalculator
from .route_tracker import RouteTracker
from .timers import TimerHandle, TimerQueue

logger = logging.getLogger(__name__)

GuidanceListener = Callable[[object], None]


class NavigationSystem:
    """
    Turn-by-turn guidance state machine.

    States: IDLE → ACTIVE → {ARRIVED, STOPPED}; ACTIVE ⇄ SUSPENDED while the
    app is backgrounded. A new start() is accepted from any state.

    Typical lifecycle:
        nav = NavigationSystem(directions, gps, sink, timers=TimerQueue())
        ok, msg = nav.navigate_to(Coord(39.921, 32.852))
        nav.timers.run(until=lambda: not nav.is_active)

    Position fixes arrive from the internal poll timer or from the caller
    through on_position_update(); guidance events go to subscribe()rs.

    Args:
        directions:  DirectionsProvider for route acquisition.
        geolocation: GeolocationProvider polled every position_poll_interval_s.
        speech_sink: SpeechSink receiving every announcement.
        places:      Optional PlacesProvider for nearby search.
        geocoder:    Optional Geocoder for free-text destinations.
        voice_input: Optional VoiceInputProvider for spoken destinations.
        config:      Optional NavConfig; defaults to NavConfig().
        timers:      TimerQueue driving the periodic work.
        audio_focus: AudioFocus shared with other audio users.
        nav_logger:  NavLogger override (defaults to one built from config).
    """

    def __init__(
        self,
        directions: DirectionsProvider,
        geolocation: GeolocationProvider,
        speech_sink: SpeechSink,
        places: Optional[PlacesProvider] = None,
        geocoder: Optional[Geocoder] = None,
        voice_input: Optional[VoiceInputProvider] = None,
        config: Optional[NavConfig] = None,
        timers: Optional[TimerQueue] = None,
        audio_focus: Optional[AudioFocus] = None,
        nav_logger: Optional[NavLogger] = None,
    ) -> None:
        self.config = config or NavConfig()
        self.timers = timers or TimerQueue()
        self.audio_focus = audio_focus or AudioFocus()
        self.geolocation = geolocation
        self.geocoder = geocoder
        self.voice_input = voice_input

        # Specialist modules
        self._calculator = RouteCalculator(directions, self.config)
        self._tracker    = RouteTracker(self.config)
        self._announcer  = AnnouncementScheduler(speech_sink, self.audio_focus, self.config)
        self._logger     = nav_logger or NavLogger(self.config)
        self._poi_finder = POIFinder(places, self.config) if places is not None else None

        self._state = NavigationState.IDLE
        self._session: Optional[NavigationSession] = None
        self._route: Optional[Route] = None
        self._projection = GuidanceProjection.idle()
        self._generation = 0
        self._poll_sequence = 0
        self._poll_timer: Optional[TimerHandle] = None
        self._reminder_timer: Optional[TimerHandle] = None
        self._stream_unsubscribe: Optional[Callable[[], None]] = None
        self._listeners: List[GuidanceListener] = []

    # ------------------------------------------------------------------
    # Route acquisition
    # ------------------------------------------------------------------

    def acquire_route(self, origin: Coord, destination: Coord, mode: Optional[str] = None) -> Route:
        """Fetch a route (or its straight-line fallback); see RouteCalculator."""
        route = self._calculator.acquire_route(origin, destination, mode)
        self._route = route
        return route

    def navigate_to(self, destination: Coord, mode: Optional[str] = None) -> Tuple[bool, str]:
        """
        Route from the current position to destination and start guidance.

        Returns:
            (success, message)
        """
        try:
            origin = self.geolocation.get_current_position()
        except GeolocationError as e:
            logger.error(f"Cannot start navigation without a position fix: {e}")
            msg = "Unable to get your current location. Please check location services."
            self._announce(msg)
            return False, msg
        return self._navigate_from(origin, destination, mode)

    def _navigate_from(self, origin: Coord, destination: Coord, mode: Optional[str] = None) -> Tuple[bool, str]:
        logger.info(f"Calculating route: {origin} → {destination}")
        route = self.acquire_route(origin, destination, mode)
        self._announce(self._route_notice(route))
        self.start(route)
        return True, f"Route ready. {len(route.steps)} steps."

    @staticmethod
    def _route_notice(route: Route) -> str:
        if route.is_fallback:
            return (
                "Using simplified straight-line navigation. "
                f"Distance to destination: {format_distance(route.total_distance_m)}"
            )
        notice = f"Route found. {route.total_distance_text}, taking about {route.total_duration_text}"
        if route.traffic_duration_text:
            notice += " in current traffic conditions"
        return notice

    def navigate_to_query(self, query: str, mode: Optional[str] = None) -> Tuple[bool, str]:
        """Geocode a typed or spoken destination, then navigate to it."""
        query = (query or "").strip()
        if not query:
            return False, "Empty destination."
        if self.geocoder is None:
            return False, "Destination search is not available."

        try:
            destination = self.geocoder.geocode(query)
        except ProviderUnavailable as e:
            logger.warning(f"Geocoding {query!r} failed: {e}")
            destination = None

        if destination is None:
            msg = "Could not find the location. Please try again with a different address."
            self._announce(msg)
            return False, msg
        return self.navigate_to(destination, mode)

    def listen_for_destination(self) -> Tuple[bool, str]:
        """Take the microphone, capture a destination phrase and navigate to it."""
        if self.voice_input is None:
            return False, "Voice input is not available."

        self.audio_focus.acquire_listening()
        try:
            query = self.voice_input.listen()
        finally:
            self.audio_focus.release_listening()

        if not query:
            msg = "Sorry, I didn't catch that."
            self._announce(msg)
            return False, msg
        logger.info(f"Heard destination: {query!r}")
        return self.navigate_to_query(query)

    # ------------------------------------------------------------------
    # POI navigation
    # ------------------------------------------------------------------

    def find_nearby(self, category: str, radius_m: Optional[float] = None) -> List[POIResult]:
        """
        Nearby places of a category, nearest first (does not start guidance).

        Returns an empty list when no places provider or no fix is available.
        """
        if self._poi_finder is None:
            logger.warning("No places provider configured.")
            return []
        try:
            position = self.geolocation.get_current_position()
        except GeolocationError as e:
            logger.error(f"Nearby search needs a position fix: {e}")
            return []
        return self._poi_finder.find_all(position, category, radius_m)

    def navigate_to_nearest(
        self,
        category: str,
        radius_m: Optional[float] = None,
    ) -> Tuple[bool, str, Optional[POIResult]]:
        """
        Find the closest place of a category and start guidance to it.

        Returns:
            (success, message, poi_result); poi_result is None on failure.
        """
        if self._poi_finder is None:
            return False, "Places search is not available.", None
        try:
            position = self.geolocation.get_current_position()
        except GeolocationError as e:
            logger.error(f"Nearby search needs a position fix: {e}")
            return False, "Unable to get your current location.", None

        results = self._poi_finder.find_all(position, category, radius_m)
        summary = self._poi_finder.describe(results, category)
        self._announce(summary)
        if not results:
            logger.warning(f"[Nav] {summary}")
            return False, summary, None

        poi = results[0]
        logger.info(f"[Nav] Target: {poi}")
        success, msg = self._navigate_from(position, poi.coord)
        return success, msg, poi

    def use_alternative(self, index: int) -> bool:
        """
        Restart guidance on one of the current route's alternatives.

        Progress on the current route is discarded.
        """
        if self._route is None or not (0 <= index < len(self._route.alternatives)):
            logger.warning(f"No alternative route #{index}.")
            return False
        current = self._route
        chosen = current.alternatives[index]
        chosen.alternatives = [current] + [r for i, r in enumerate(current.alternatives) if i != index]
        current.alternatives = []
        self._route = chosen
        self._announce(self._route_notice(chosen))
        self.start(chosen)
        return True

    # ------------------------------------------------------------------
    # Navigation control
    # ------------------------------------------------------------------

    def start(self, route: Route) -> None:
        """
        Begin guidance on route from its first step.

        Raises:
            EmptyRouteError: route has no steps.
        """
        if not route.steps:
            raise EmptyRouteError("Cannot start navigation on a route without steps.")

        if self._session is not None:
            logger.info("Discarding previous navigation session.")
            self._cancel_timers()
            self._drop_stream()
            self._session = None

        self._generation += 1
        now = self.timers.clock.now()
        session = NavigationSession(
            route=route,
            generation=self._generation,
            started_at=now,
            step_entered_at=now,
        )
        self._session = session
        self._route = route
        self._state = NavigationState.ACTIVE
        self._tracker.load_route(route)
        self._logger.save_route(route)

        first = route.steps[0]
        logger.info(f"Navigation started — {len(route.steps)} steps ({route.source.value}). First: {first.instruction}")
        self._update_projection(session)
        self._emit(NavigationStarted(len(route.steps), route.source, first.instruction))
        self._announce_step(session, Priority.IMMEDIATE)
        self._start_timers()

    def stop(self) -> None:
        """End the current session. Safe to call in any state."""
        if self._state not in (NavigationState.ACTIVE, NavigationState.SUSPENDED):
            logger.debug(f"stop() ignored in state {self._state.value}")
            return

        self._cancel_timers()
        self._drop_stream()
        session, self._session = self._session, None
        self._tracker.stop()
        self._state = NavigationState.STOPPED
        self._projection = GuidanceProjection.idle(NavigationState.STOPPED)
        self._announcer.flush()
        logger.info("Navigation stopped by user.")
        self._announce("Navigation stopped.")
        self._emit(NavigationStopped(session.step_index if session else 0))

    def suspend(self) -> None:
        """App went to the background: halt timers and speech, keep progress."""
        if self._state is not NavigationState.ACTIVE:
            return
        self._cancel_timers()
        self._announcer.flush()
        self._state = NavigationState.SUSPENDED
        self._update_projection(self._session)
        logger.info("Navigation suspended.")

    def resume(self) -> None:
        """App is back in the foreground: restart the timers."""
        if self._state is not NavigationState.SUSPENDED:
            return
        self._state = NavigationState.ACTIVE
        self._update_projection(self._session)
        self._start_timers()
        logger.info("Navigation resumed.")

    # ------------------------------------------------------------------
    # Position update, from the poll timer or the caller
    # ------------------------------------------------------------------

    def on_position_update(self, position: Coord, sequence: Optional[int] = None) -> Optional[ProgressResult]:
        """
        Evaluate a position fix against the current step.

        Args:
            position: Current geographic coordinate.
            sequence: Optional monotonically increasing fix number; a fix not
                      newer than the last applied one is discarded.

        Returns:
            ProgressResult, or None if the fix was ignored.
        """
        session = self._session
        if session is None or self._state is not NavigationState.ACTIVE:
            return None

        if sequence is not None:
            if sequence <= session.last_sequence:
                logger.debug(f"Discarding stale position #{sequence} (last #{session.last_sequence}).")
                return None
            session.last_sequence = sequence

        if not isinstance(position, Coord) or not position.is_valid():
            logger.warning(f"Ignoring invalid position {position!r}")
            return None

        session.last_position = position
        result = self._tracker.check_progress(position)
        self._logger.log_event(result, position)

        if result.status is RouteStatus.STEP_ADVANCED:
            previous = session.step_index
            session.step_index = result.step_index
            session.step_entered_at = self.timers.clock.now()
            logger.info(f"Step {previous + 1} complete → step {session.step_index + 1}: {result.message}")
            self._update_projection(session, result)
            self._emit(StepAdvanced(previous, session.step_index, session.current_step.instruction))
            self._announce_step(session, Priority.IMMEDIATE)

        elif result.status is RouteStatus.FINISHED:
            self._arrive(session, position)

        elif result.status is RouteStatus.PROGRESSING:
            self._update_projection(session, result)
            self._emit(ProgressUpdated(
                step_index=session.step_index,
                position=position,
                remaining_distance_m=result.distance_to_step_end,
                bearing=result.bearing,
                cardinal=cardinal_direction(result.bearing),
            ))

        else:
            logger.warning(f"Position update skipped: {result.message}")

        return result

    def _arrive(self, session: NavigationSession, position: Coord) -> None:
        self._cancel_timers()
        self._drop_stream()
        self._session = None
        self._state = NavigationState.ARRIVED
        session.state = NavigationState.ARRIVED
        self._projection = GuidanceProjection.idle(NavigationState.ARRIVED)
        logger.info(f"Arrived at {session.route.destination}.")
        self._emit(Arrived(destination=session.route.destination, position=position))
        self._announce("You have reached your destination.")

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def _start_timers(self) -> None:
        generation = self._generation
        self._cancel_timers()
        self._poll_timer = self.timers.call_every(
            self.config.position_poll_interval_s,
            lambda: self._on_poll_tick(generation),
            name="position-poll",
        )
        self._reminder_timer = self.timers.call_every(
            self.config.reminder_interval_s,
            lambda: self._on_reminder_tick(generation),
            name="instruction-reminder",
        )

    def _cancel_timers(self) -> None:
        for handle in (self._poll_timer, self._reminder_timer):
            if handle is not None:
                handle.cancel()
        self._poll_timer = None
        self._reminder_timer = None

    def _is_live(self, generation: int) -> bool:
        return (
            self._session is not None
            and self._session.generation == generation
            and self._state is NavigationState.ACTIVE
        )

    def _on_poll_tick(self, generation: int) -> None:
        if not self._is_live(generation):
            return
        try:
            position = self.geolocation.get_current_position()
        except GeolocationError as e:
            logger.warning(f"Position poll failed: {e}")
            return
        self._poll_sequence += 1
        self.on_position_update(position, sequence=self._poll_sequence)

    def follow_positions(self, stream: PositionStream) -> bool:
        """
        Also take fixes pushed by a position stream for the current session.

        Pushed fixes share the poll's sequence numbering. The subscription
        ends when the session stops, arrives or is replaced.

        Returns:
            False if there is no session to follow.
        """
        if self._session is None or self._state not in (NavigationState.ACTIVE, NavigationState.SUSPENDED):
            logger.warning("follow_positions() needs an active session.")
            return False

        self._drop_stream()
        generation = self._generation

        def on_position(position: Coord) -> None:
            if not self._is_live(generation):
                return
            self._poll_sequence += 1
            self.on_position_update(position, sequence=self._poll_sequence)

        self._stream_unsubscribe = stream.subscribe(self.config.position_poll_interval_s, on_position)
        logger.info("Following pushed position fixes.")
        return True

    def _drop_stream(self) -> None:
        unsubscribe, self._stream_unsubscribe = self._stream_unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()

    def _on_reminder_tick(self, generation: int) -> None:
        if not self._is_live(generation):
            return
        self._announce_step(self._session, Priority.PERIODIC)

    # ------------------------------------------------------------------
    # Speech & events
    # ------------------------------------------------------------------

    def _announce(self, text: str, priority: Priority = Priority.IMMEDIATE) -> bool:
        return self._announcer.announce(text, priority)

    def _announce_step(self, session: NavigationSession, priority: Priority) -> None:
        if self._announce(session.current_step.announcement, priority):
            session.last_announcement_at = self.timers.clock.now()

    def repeat_instruction(self) -> None:
        """Speak the current step again right away."""
        if self._session is not None and self._state is NavigationState.ACTIVE:
            self._announce_step(self._session, Priority.IMMEDIATE)

    def announce_current_location(self) -> None:
        """Speak the last known position (or a fresh fix)."""
        position = self._session.last_position if self._session else None
        if position is None:
            try:
                position = self.geolocation.get_current_position()
            except GeolocationError as e:
                logger.warning(f"No position to announce: {e}")
                self._announce("Current location is unknown.")
                return
        self._announce(f"Current location is {position.lat:.5f}, {position.lon:.5f}")

    def subscribe(self, listener: GuidanceListener) -> Callable[[], None]:
        """
        Register a guidance-event listener.

        Returns:
            A callable that unsubscribes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: object) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f"Guidance listener failed on {type(event).__name__}")

    def _update_projection(self, session: Optional[NavigationSession], result: Optional[ProgressResult] = None) -> None:
        if session is None:
            self._projection = GuidanceProjection.idle(self._state)
            return
        step = session.current_step
        remaining = result.distance_to_step_end if result else None
        bearing = result.bearing if result else None
        # time left from the start of the current step
        remaining_s = sum(s.duration_s for s in session.route.steps[session.step_index:])
        duration_text = format_duration(remaining_s) if remaining_s > 0 else session.route.total_duration_text
        self._projection = GuidanceProjection(
            state=self._state,
            instruction=step.instruction,
            step_number=session.step_index + 1,
            step_count=len(session.route.steps),
            remaining_distance_m=remaining,
            cardinal=cardinal_direction(bearing) if bearing is not None else None,
            distance_text=session.route.total_distance_text,
            duration_text=duration_text,
        )

    # ------------------------------------------------------------------
    # Convenience read-only properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> NavigationState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is NavigationState.ACTIVE

    @property
    def projection(self) -> GuidanceProjection:
        return self._projection

    @property
    def route(self) -> Optional[Route]:
        return self._route

    @property
    def step_index(self) -> Optional[int]:
        return self._session.step_index if self._session else None

    @property
    def current_step(self) -> Optional[RouteStep]:
        return self._session.current_step if self._session else None

    @property
    def remaining_steps(self) -> int:
        return self._tracker.remaining_steps if self._session else 0

    @property
    def announcer(self) -> AnnouncementScheduler:
        return self._announcer

    @property
    def poi_categories(self) -> List[str]:
        return self._poi_finder.list_categories() if self._poi_finder else []
