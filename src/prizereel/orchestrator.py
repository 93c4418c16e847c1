"""
Play sequence orchestration.

Drives one play from button press to reveal:

    single mode: allocate -> spin -> exact stop on the allocated item -> claw
                 drop / grab / lift -> reveal
    multi mode:  allocate -> spin all reels -> decelerate -> snap -> freeze ->
                 weighted draw among the visible cards -> highlight -> reveal

Each play is one Timeline on the shared AnimationEngine, labelled
spin:start, spin:decel, claw:drop, claw:lift and reveal (select replaces the
claw labels in multi mode). The state machine is the only thing that decides
whether a step is allowed; the orchestrator just feeds it events.
"""

from typing import Any, Callable, Optional
import asyncio
import logging
import random

from prizereel.animation.engine import AnimationEngine
from prizereel.animation.timeline import Timeline
from prizereel.backend.base import PrizeAllocator, RewardClaimer
from prizereel.catalog.catalog import Catalog
from prizereel.catalog.models import ClaimResult, PlayResult
from prizereel.config.settings import Settings, TimingSettings, get_settings
from prizereel.core.errors import AllocationFailed, ClaimFailed, ReelError
from prizereel.core.events import Event, EventBus, EventType, state_changed_event
from prizereel.core.state import PlaySession, PlayState, PlayStateMachine
from prizereel.reel.controller import MultiReelController
from prizereel.reel.geometry import (
    deceleration_distance,
    estimate_decel_ms,
    index_for_offset,
    offset_for_index,
)
from prizereel.reel.motion import ReelMotion
from prizereel.reel.picker import WeightedPicker
from prizereel.reel.selection import select_target

logger = logging.getLogger(__name__)

TIMELINE_NAME = "play"
STOP_EASING = "power3.out"


class SequenceOrchestrator:
    """Runs plays against an allocator, a claimer and the reels."""

    def __init__(
        self,
        catalog: Catalog,
        allocator: PrizeAllocator,
        claimer: RewardClaimer,
        engine: AnimationEngine,
        settings: Optional[Settings] = None,
        events: Optional[EventBus] = None,
        rng: Optional[random.Random] = None,
    ):
        self.catalog = catalog
        self.allocator = allocator
        self.claimer = claimer
        self.engine = engine
        self.settings = settings or get_settings()
        self.events = events or EventBus()
        self.machine = PlayStateMachine()

        self._rng = rng or random.Random(self.settings.seed)
        self._picker = WeightedPicker(self._rng)
        self._generation = 0
        self._pending_error: Optional[ReelError] = None
        self._target_offset: Optional[float] = None
        self._selected_cell: Optional[tuple[int, int]] = None

        reel_settings = self.settings.reel
        self.reel = ReelMotion(
            pitch=reel_settings.item_width,
            item_count=len(catalog),
            freeze_progress=reel_settings.freeze_progress,
            velocity_epsilon=reel_settings.velocity_epsilon,
            name="carousel",
        )
        self.reel.randomize(self._rng)
        self.reel.drift(reel_settings.idle_velocity)

        self.reels = MultiReelController.from_settings(
            catalog, reel_settings, rng=self._rng, clock=engine.clock
        )

        ticker = self.reel.tick if self.mode == "single" else self.reels.tick
        self._remove_ticker = engine.add_ticker(ticker)

        self.machine.add_listener(self._on_state_change)

    # Properties
    @property
    def mode(self) -> str:
        return self.settings.mode

    @property
    def timings(self) -> TimingSettings:
        return self.settings.effective_timing

    @property
    def state(self) -> PlayState:
        return self.machine.state

    @property
    def session(self) -> PlaySession:
        return self.machine.session

    @property
    def timeline(self) -> Optional[Timeline]:
        """The active play timeline, if any."""
        return self.engine.get_animation(TIMELINE_NAME)

    # Play
    async def play(self) -> PlaySession:
        """Run one play. Returns the session as it stands when the sequence ends.

        Ignored (returns the current session) unless the machine is IDLE.
        """
        if not self.machine.can_play():
            logger.warning(f"Play ignored in state {self.state.name}")
            return self.session

        self._generation += 1
        generation = self._generation
        self._pending_error = None
        self._target_offset = None
        self._selected_cell = None

        self.machine.play()
        self._emit(EventType.PLAY_REQUESTED, mode=self.mode)

        result = await self._allocate(generation)
        if result is None:
            return self.session

        self.machine.attach_result(result)
        self._emit(EventType.PRIZE_ALLOCATED, play_id=result.play_id, item_id=result.item.id)

        try:
            if self.settings.reduced_motion:
                self._finish_without_animation()
                return self.session

            if self.mode == "single":
                timeline = self._build_single_target(result)
            else:
                timeline = self._build_multi_candidate()
        except ReelError as e:
            self._fail(e)
            self._raise_in_debug()
            return self.session

        self.engine.play(timeline, name=TIMELINE_NAME)
        finished = await self.engine.wait(TIMELINE_NAME)
        logger.debug(f"Play timeline ended (finished={finished})")

        self._raise_in_debug()
        return self.session

    async def _allocate(self, generation: int) -> Optional[PlayResult]:
        """Ask the allocator for a prize. None means the play is over."""
        timeout_s = self.settings.backend.allocator_timeout_s
        try:
            result = await asyncio.wait_for(self.allocator.play(), timeout=timeout_s)
        except asyncio.TimeoutError:
            error: Optional[AllocationFailed] = AllocationFailed(f"Allocator timed out after {timeout_s}s")
            result = None
        except AllocationFailed as e:
            error = e
            result = None
        except Exception as e:
            logger.exception(f"Allocator raised {type(e).__name__}")
            error = AllocationFailed(f"Allocator error: {e}")
            result = None
        else:
            error = None

        if generation != self._generation or self.state != PlayState.SPINNING:
            logger.info("Discarding allocator result for an abandoned play")
            return None

        if error is not None:
            self._emit(EventType.ALLOCATION_FAILED, message=str(error))
            self._fail(error)
            return None

        return result

    # Single-target sequence
    def _build_single_target(self, result: PlayResult) -> Timeline:
        timings = self.timings
        # Validate the target before anything moves
        self._exact_stop_target(result.item.id)

        spin_ms = self._rng.uniform(timings.spin_min_ms, timings.spin_max_ms)
        velocity = self.settings.reel.single_spin_velocity
        item_id = result.item.id

        def start_spin() -> None:
            self.reel.start_free_spin(velocity)
            self._emit(EventType.REELS_SPINNING, duration_ms=spin_ms)

        def begin_stop() -> None:
            self.machine.decelerate()
            target_offset = self._exact_stop_target(item_id)
            distance = deceleration_distance(self.reel.offset, target_offset)
            decel_ms = max(
                timings.decel_ms,
                estimate_decel_ms(distance, timings.decel_ms, timings.decel_ms * 1.5),
            )
            self.reel.begin_exact_stop(target_offset, decel_ms, self.engine.now_ms, STOP_EASING)

        def claw_drop() -> None:
            self.machine.select()
            self._emit(EventType.CLAW_DROP, item_id=item_id)

        def claw_lift() -> None:
            self.machine.lift()
            self._emit(EventType.CLAW_LIFT, item_id=item_id)

        timeline = Timeline(TIMELINE_NAME)
        (
            timeline
            .add_label("spin:start")
            .call(start_spin)
            .wait(spin_ms)
            .add_label("spin:decel")
            .call(self._guarded(begin_stop))
            .until(lambda: self.reel.frozen)
            .call(lambda: self._emit(EventType.REELS_STOPPED, offset=self.reel.offset))
            .wait(timings.claw_delay_ms)
            .add_label("claw:drop")
            .call(claw_drop)
            .wait(timings.drop_ms)
            .call(lambda: self._emit(EventType.CLAW_CLOSE, item_id=item_id))
            .wait(timings.grab_ms)
            .add_label("claw:lift")
            .call(claw_lift)
            .wait(timings.lift_ms)
            .add_label("reveal")
            .call(self._reveal)
            .wait(timings.reveal_ms)
        )
        return timeline

    def _exact_stop_target(self, item_id: str) -> float:
        """Unwrapped offset that centers the next qualifying copy of item_id."""
        reel_settings = self.settings.reel
        from_index = index_for_offset(
            self.reel.offset, reel_settings.viewport_width, reel_settings.item_width
        )
        target_index = select_target(self.catalog, item_id, from_index, reel_settings.min_laps)
        self._target_offset = offset_for_index(
            target_index, reel_settings.viewport_width, reel_settings.item_width
        )
        logger.debug(f"Stop target: index {target_index} (from {from_index})")
        return self._target_offset

    # Multi-candidate sequence
    def _build_multi_candidate(self) -> Timeline:
        timings = self.timings

        def start_spin() -> None:
            self.reels.reset_hidden_cards()
            self.reels.start_continuous_spin()
            self._emit(EventType.REELS_SPINNING, duration_ms=timings.multi_spin_ms)

        def begin_stop() -> None:
            self.machine.decelerate()
            self.reels.begin_deceleration(timings.multi_decel_ms)

        def settle_on_grid() -> None:
            self.reels.snap_to_grid()
            self.reels.freeze()
            self._emit(EventType.REELS_STOPPED, positions=self.reels.positions().tolist())

        timeline = Timeline(TIMELINE_NAME)
        (
            timeline
            .add_label("spin:start")
            .call(start_spin)
            .wait(timings.multi_spin_ms)
            .add_label("spin:decel")
            .call(begin_stop)
            .until(lambda: self.reels.all_frozen)
            .call(settle_on_grid)
            .add_label("select")
            .call(self._guarded(self._select_visible_card))
            .wait(timings.highlight_hold_ms)
            .add_label("reveal")
            .call(self._reveal)
            .wait(timings.reveal_ms)
        )
        return timeline

    def _select_visible_card(self) -> None:
        """Weighted draw among the frozen grid. The drawn card replaces the allocated item."""
        cards = self.reels.get_visible_cards()
        card = self._picker.pick_entry(cards)
        item = self.catalog[card.catalog_index]

        self.machine.select_item(item)
        self.machine.select()
        self.reels.highlight_card(card.row, card.col)
        self._selected_cell = (card.row, card.col)
        self._emit(
            EventType.CARD_SELECTED,
            item_id=item.id,
            row=card.row,
            col=card.col,
            x=card.grid_cell.x,
            y=card.grid_cell.y,
        )
        logger.info(f"Selected {item.id} at row {card.row}, col {card.col}")

    # Reveal / skip
    def _reveal(self) -> None:
        self.machine.reveal()
        if self._selected_cell is not None:
            self.reels.hide_card(*self._selected_cell)
        session = self.machine.session
        item = session.selected_item
        self._emit(
            EventType.REVEAL,
            play_id=session.play_id,
            item_id=item.id if item else None,
            name=item.name if item else None,
        )

    def skip(self) -> None:
        """Cut the animation short and open the reveal."""
        if self.state not in (PlayState.SPINNING, PlayState.DECELERATING,
                              PlayState.SELECTING, PlayState.LIFTING):
            logger.warning(f"Skip ignored in state {self.state.name}")
            return
        if self.session.play_result is None:
            logger.warning("Skip ignored: no prize allocated yet")
            return

        self.engine.stop(TIMELINE_NAME)
        try:
            self._finish_without_animation()
        except ReelError as e:
            self._fail(e)
            self._raise_in_debug()

    def _finish_without_animation(self) -> None:
        """Put the reels at rest on the result and walk the machine to REVEAL."""
        if self.mode == "single":
            item = self.session.selected_item
            if item is not None:
                target = self._target_offset
                if target is None:
                    target = self._exact_stop_target(item.id)
                self.reel.set_offset(target)
            self.reel.freeze()
        else:
            self.reels.snap_to_grid()
            self.reels.freeze()
            if self._selected_cell is None:
                # Same weighted draw as the animated path
                if self.machine.can("decelerate"):
                    self.machine.decelerate()
                self._select_visible_card()

        for event in ("decelerate", "select"):
            if self.machine.can(event):
                getattr(self.machine, event)()
        self._reveal()

    # Claim
    async def claim(self) -> Optional[ClaimResult]:
        """Claim the revealed reward.

        Returns:
            The claim result, or None if there is nothing to claim
        """
        if not self.machine.can("claim"):
            logger.warning(f"Claim ignored in state {self.state.name}")
            return None

        session = self.machine.session
        play_id = session.play_id
        item = session.selected_item
        if play_id is None or item is None:
            logger.warning("Claim ignored: no result to claim")
            return None

        timeout_s = self.settings.backend.claim_timeout_s
        try:
            result = await asyncio.wait_for(self.claimer.claim(play_id, item), timeout=timeout_s)
        except asyncio.TimeoutError:
            result = ClaimResult(play_id=play_id, item_id=item.id, success=False, error="TIMEOUT")
        except ClaimFailed as e:
            result = ClaimResult(play_id=play_id, item_id=item.id, success=False, error=str(e))
        except Exception as e:
            logger.exception(f"Claimer raised {type(e).__name__}")
            result = ClaimResult(
                play_id=play_id, item_id=item.id, success=False, error=f"Claim error: {e}"
            )

        if self.machine.session.play_id != play_id or self.state != PlayState.REVEAL:
            logger.info(f"Discarding claim result for closed play {play_id}")
            return result

        if result.success:
            self.machine.claim(result)
            self._emit(EventType.CLAIM_COMPLETE, play_id=play_id, item_id=item.id,
                       coupon_code=result.coupon_code, points_added=result.points_added)
        else:
            message = result.error or "Claim failed"
            self.machine.claim_failed(result, message)
            self._emit(EventType.CLAIM_FAILED, play_id=play_id, message=message)
        return result

    # Close / reset
    def close(self) -> None:
        """Close the reveal (or abandon a play) and return to idle drift."""
        self._generation += 1
        self.engine.stop(TIMELINE_NAME)
        self.reels.cancel_waits()

        self.reels.clear_highlight()
        self.reels.reset_hidden_cards()
        self.reels.unfreeze()
        self.reel.drift(self.settings.reel.idle_velocity)

        self._target_offset = None
        self._selected_cell = None
        self.machine.reset()
        self._emit(EventType.RESET)

    reset = close

    def shutdown(self) -> None:
        """Stop any play and unregister from the engine."""
        self.engine.stop(TIMELINE_NAME)
        self._remove_ticker()

    # Errors
    def _guarded(self, action: Callable[[], Any]) -> Callable[[], None]:
        """Wrap a timeline step so a reel error aborts the play instead of the frame loop."""
        def run() -> None:
            try:
                action()
            except ReelError as e:
                self._fail(e)
        return run

    def _fail(self, error: Exception) -> None:
        message = str(error)
        logger.error(f"Play aborted: {message}")
        if self.engine.stop(TIMELINE_NAME):
            # Reels stay where the killed timeline left them
            self.reel.freeze()
            self.reels.freeze()
            self.reels.cancel_waits()
        if isinstance(error, ReelError) and not isinstance(error, AllocationFailed):
            self._pending_error = error
        self.machine.error(message)
        self._emit(EventType.ERROR, message=message, error=type(error).__name__)

    def _raise_in_debug(self) -> None:
        error, self._pending_error = self._pending_error, None
        if error is not None and self.settings.debug:
            raise error

    # Events
    def _emit(self, event_type: EventType, **data: Any) -> None:
        self.events.emit(Event(event_type, data=data, source="orchestrator"))

    def _on_state_change(self, old: PlayState, new: PlayState, session: PlaySession) -> None:
        if old != new:
            self.events.emit(state_changed_event(old.value, new.value))
