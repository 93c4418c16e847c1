"""Easing, timeline and engine tests."""
import asyncio

import pytest

from prizereel.animation.easing import Easing, get_easing
from prizereel.animation.engine import AnimationEngine
from prizereel.animation.timeline import PlayState, Timeline


class TestEasing:
    """Easing curves and name lookup."""

    @pytest.mark.parametrize("easing", list(Easing))
    def test_endpoints(self, easing):
        func = get_easing(easing)
        assert func(0.0) == pytest.approx(0.0)
        assert func(1.0) == pytest.approx(1.0)

    def test_power3_out_is_quartic(self):
        func = get_easing("power3.out")
        assert func(0.5) == pytest.approx(1 - 0.5 ** 4)

    def test_power2_out_is_cubic(self):
        assert get_easing("power2.out")(0.5) == pytest.approx(1 - 0.5 ** 3)

    def test_name_lookup_is_case_insensitive(self):
        assert get_easing("Power3.Out") is get_easing(Easing.EASE_OUT_QUART)

    def test_unknown_name(self):
        with pytest.raises(ValueError):
            get_easing("elastic.wobble")


class TestTimeline:
    """Step sequencing."""

    def test_runs_steps_in_order(self):
        order = []
        timeline = (
            Timeline("t")
            .add_label("start")
            .call(lambda: order.append("a"))
            .wait(100)
            .add_label("middle")
            .call(lambda: order.append("b"))
        )
        timeline.play()
        timeline.update(50)
        assert order == ["a"]
        assert timeline.current_label == "start"
        timeline.update(50)
        assert order == ["a", "b"]
        assert timeline.labels_reached == ["start", "middle"]
        assert timeline.is_finished

    def test_leftover_time_carries_over(self):
        order = []
        timeline = Timeline("t").wait(10).call(lambda: order.append(1)).wait(10).call(lambda: order.append(2))
        timeline.play()
        timeline.update(25)
        assert order == [1, 2]

    def test_tween_reports_eased_progress(self):
        values = []
        timeline = Timeline("t").tween(100, values.append, easing="none")
        timeline.play()
        timeline.update(25)
        timeline.update(25)
        timeline.update(100)
        assert values == pytest.approx([0.25, 0.5, 1.0])

    def test_until_holds(self):
        ready = {"flag": False}
        done = []
        timeline = Timeline("t").until(lambda: ready["flag"]).call(lambda: done.append(True))
        timeline.play()
        timeline.update(1000)
        assert done == []
        ready["flag"] = True
        timeline.update(0)
        assert done == [True]

    def test_kill_from_inside_call(self):
        ran = []
        timeline = Timeline("t")
        timeline.call(timeline.kill).call(lambda: ran.append(True))
        timeline.play()
        timeline.update(16)
        assert timeline.is_killed
        assert ran == []

    def test_killed_timeline_cannot_replay(self):
        timeline = Timeline("t").wait(10)
        timeline.kill()
        timeline.play()
        assert timeline.state == PlayState.KILLED

    def test_fixed_duration(self):
        timeline = Timeline("t").wait(100).tween(50, lambda p: None).until(lambda: True).wait(25)
        assert timeline.fixed_duration == 175

    def test_on_complete_called(self):
        finished = []
        timeline = Timeline("t", on_complete=lambda tl: finished.append(tl.name)).wait(5)
        timeline.play()
        timeline.update(5)
        assert finished == ["t"]


class TestAnimationEngine:
    """Engine clock, tickers and timeline management."""

    def test_tickers_get_clock(self):
        engine = AnimationEngine()
        seen = []
        remove = engine.add_ticker(seen.append)
        engine.update(16)
        engine.update(16)
        remove()
        engine.update(16)
        assert seen == [16, 32]
        assert engine.now_ms == 48

    def test_completed_timeline_removed(self):
        engine = AnimationEngine()
        done = []
        engine.play(Timeline("t").wait(20), on_complete=lambda: done.append(True))
        assert engine.has_animation("t")
        engine.update(16)
        engine.update(16)
        assert done == [True]
        assert not engine.has_animation("t")

    def test_play_replaces_same_name(self):
        engine = AnimationEngine()
        first = Timeline("t").wait(100)
        engine.play(first)
        engine.play(Timeline("t").wait(100))
        assert first.is_killed
        assert engine.animation_count == 1

    @pytest.mark.asyncio
    async def test_wait_resolves_true_on_finish(self):
        engine = AnimationEngine()
        engine.play(Timeline("t").wait(32))
        waiter = asyncio.ensure_future(engine.wait("t"))
        await asyncio.sleep(0)
        engine.update(16)
        engine.update(16)
        assert await waiter is True

    @pytest.mark.asyncio
    async def test_wait_resolves_false_on_stop(self):
        engine = AnimationEngine()
        engine.play(Timeline("t").wait(1000))
        waiter = asyncio.ensure_future(engine.wait("t"))
        await asyncio.sleep(0)
        assert engine.stop("t")
        assert await waiter is False

    @pytest.mark.asyncio
    async def test_wait_unknown_is_false(self):
        assert await AnimationEngine().wait("missing") is False

    @pytest.mark.asyncio
    async def test_run_loop_stops(self):
        engine = AnimationEngine(fps=200)
        task = asyncio.create_task(engine.run())
        await asyncio.sleep(0.05)
        assert engine.is_running
        engine.stop_loop()
        await asyncio.wait_for(task, timeout=1)
        assert not engine.is_running
        assert engine.now_ms > 0
