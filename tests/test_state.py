"""Play state machine tests."""
import pytest

from prizereel.catalog.models import ClaimResult, Item, PlayResult
from prizereel.core.state import PlayState, PlayStateMachine

ITEM = Item(id="pts-50", weight=300, value=50)
OTHER = Item(id="disc-5", weight=200)
RESULT = PlayResult(play_id="play_1", item=ITEM)


def machine_in(state: PlayState) -> PlayStateMachine:
    """Walk a fresh machine to the given state."""
    machine = PlayStateMachine()
    path = {
        PlayState.IDLE: [],
        PlayState.SPINNING: ["play"],
        PlayState.DECELERATING: ["play", "decelerate"],
        PlayState.SELECTING: ["play", "decelerate", "select"],
        PlayState.LIFTING: ["play", "decelerate", "select", "lift"],
        PlayState.REVEAL: ["play", "decelerate", "select", "reveal"],
    }[state]
    for event in path:
        getattr(machine, event)()
        if event == "play":
            machine.attach_result(RESULT)
    assert machine.state == state
    return machine


class TestTransitions:
    """Happy path transitions."""

    def test_full_sequence(self):
        machine = PlayStateMachine()
        assert machine.play() == PlayState.SPINNING
        machine.attach_result(RESULT)
        assert machine.decelerate() == PlayState.DECELERATING
        assert machine.grab() == PlayState.SELECTING
        assert machine.lift() == PlayState.LIFTING
        assert machine.reveal() == PlayState.REVEAL
        claim = ClaimResult(play_id="play_1", item_id=ITEM.id, success=True, points_added=50)
        assert machine.claim(claim) == PlayState.SETTLE
        assert machine.session.claim_result is claim

    def test_reveal_directly_from_selecting(self):
        machine = machine_in(PlayState.SELECTING)
        assert machine.reveal() == PlayState.REVEAL

    def test_decelerate_is_repeatable(self):
        machine = machine_in(PlayState.DECELERATING)
        assert machine.decelerate() == PlayState.DECELERATING

    def test_attach_sets_highlight(self):
        machine = machine_in(PlayState.SPINNING)
        session = machine.session
        assert session.play_result is RESULT
        assert session.highlight_id == "pts-50"
        assert session.play_id == "play_1"

    def test_select_item_replaces_winner(self):
        machine = machine_in(PlayState.DECELERATING)
        machine.select_item(OTHER)
        assert machine.session.selected_item is OTHER
        assert machine.session.highlight_id == "disc-5"
        # The allocator result is kept
        assert machine.session.play_result.item is ITEM

    def test_play_clears_previous_error(self):
        machine = machine_in(PlayState.SPINNING)
        machine.error("boom")
        assert machine.session.error == "boom"
        machine.play()
        assert machine.session.error is None

    def test_grabbing_alias(self):
        assert PlayState.GRABBING is PlayState.SELECTING


class TestGuards:
    """Invalid events leave the session untouched."""

    @pytest.mark.parametrize("state,event", [
        (PlayState.IDLE, "decelerate"),
        (PlayState.IDLE, "select"),
        (PlayState.IDLE, "reveal"),
        (PlayState.SPINNING, "play"),
        (PlayState.SPINNING, "select"),
        (PlayState.SPINNING, "reveal"),
        (PlayState.DECELERATING, "lift"),
        (PlayState.SELECTING, "decelerate"),
        (PlayState.LIFTING, "select"),
        (PlayState.REVEAL, "play"),
        (PlayState.REVEAL, "decelerate"),
    ])
    def test_invalid_event_is_noop(self, state, event):
        machine = machine_in(state)
        before = machine.session
        assert getattr(machine, event)() == state
        assert machine.session == before

    def test_attach_outside_spinning_dropped(self):
        machine = PlayStateMachine()
        machine.attach_result(RESULT)
        assert machine.session.play_result is None

    def test_claim_only_from_reveal(self):
        machine = machine_in(PlayState.LIFTING)
        claim = ClaimResult(play_id="play_1", item_id=ITEM.id, success=True)
        assert machine.claim(claim) == PlayState.LIFTING
        assert machine.session.claim_result is None

    def test_select_item_not_in_idle(self):
        machine = PlayStateMachine()
        machine.select_item(OTHER)
        assert machine.session.selected_item is None

    def test_can(self):
        machine = machine_in(PlayState.REVEAL)
        assert machine.can("claim")
        assert not machine.can("play")
        assert not machine.can("nonsense")


class TestClaimAndReset:
    """Claim failure, reset and error."""

    def test_claim_failed_stays_in_reveal(self):
        machine = machine_in(PlayState.REVEAL)
        failed = ClaimResult(play_id="play_1", item_id=ITEM.id, success=False, error="TIMEOUT")
        assert machine.claim_failed(failed, "TIMEOUT") == PlayState.REVEAL
        assert machine.session.claim_error == "TIMEOUT"

        ok = ClaimResult(play_id="play_1", item_id=ITEM.id, success=True)
        assert machine.claim(ok) == PlayState.SETTLE
        assert machine.session.claim_error is None

    @pytest.mark.parametrize("state", list(PlayState))
    def test_reset_from_any_state(self, state):
        machine = machine_in(state) if state != PlayState.SETTLE else machine_in(PlayState.REVEAL)
        assert machine.reset() == PlayState.IDLE
        assert machine.session.play_result is None

    def test_error_from_any_state(self):
        machine = machine_in(PlayState.LIFTING)
        assert machine.error("allocator down") == PlayState.IDLE
        assert machine.session.error == "allocator down"

    def test_selectors(self):
        machine = PlayStateMachine()
        assert machine.can_play()
        assert not machine.is_busy()
        machine.play()
        assert machine.is_busy()
        assert not machine.can_play()
        machine = machine_in(PlayState.REVEAL)
        assert machine.is_reveal_open()


class TestListeners:
    """Listener notifications."""

    def test_listener_sees_transitions(self):
        machine = PlayStateMachine()
        seen = []
        machine.add_listener(lambda old, new, session: seen.append((old, new)))
        machine.play()
        machine.decelerate()
        assert seen == [
            (PlayState.IDLE, PlayState.SPINNING),
            (PlayState.SPINNING, PlayState.DECELERATING),
        ]

    def test_listener_not_called_for_ignored_event(self):
        machine = PlayStateMachine()
        calls = []
        machine.add_listener(lambda *args: calls.append(args))
        machine.reveal()
        assert calls == []

    def test_listener_error_is_contained(self):
        machine = PlayStateMachine()

        def broken(old, new, session):
            raise RuntimeError("listener bug")

        machine.add_listener(broken)
        assert machine.play() == PlayState.SPINNING

    def test_remove_listener(self):
        machine = PlayStateMachine()
        calls = []
        listener = lambda *args: calls.append(args)  # noqa: E731
        machine.add_listener(listener)
        machine.remove_listener(listener)
        machine.play()
        assert calls == []
