import random
import threading

import pytest

from fleetops.config import GameConfig
from fleetops.scheduler import ImmediateScheduler, ManualScheduler, ThreadingScheduler
from fleetops.session import GameSession, Phase, Side

from conftest import SMALL_ROSTER, deploy_player_fleet


def test_immediate_runs_nested_callbacks_in_fifo_order():
    sched = ImmediateScheduler()
    order = []

    def outer():
        order.append("outer-start")
        sched.call_later(1.0, lambda: order.append("inner"))
        order.append("outer-end")

    sched.call_later(0.0, outer)
    assert order == ["outer-start", "outer-end", "inner"]


def test_immediate_long_chain_does_not_recurse():
    sched = ImmediateScheduler()
    count = [0]

    def step():
        count[0] += 1
        if count[0] < 5000:
            sched.call_later(0.0, step)

    sched.call_later(0.0, step)
    assert count[0] == 5000


def test_manual_scheduler_runs_only_due_callbacks_in_time_order():
    clock = ManualScheduler()
    fired = []
    clock.call_later(2.0, lambda: fired.append("b"))
    clock.call_later(1.0, lambda: fired.append("a"))
    clock.call_later(2.0, lambda: fired.append("c"))
    assert clock.advance(0.5) == 0
    assert clock.advance(0.5) == 1
    assert fired == ["a"]
    assert clock.advance(5) == 2
    assert fired == ["a", "b", "c"]
    assert clock.pending == 0
    assert clock.now == pytest.approx(6.0)


@pytest.mark.timeout(5)
def test_threading_scheduler_fires_on_timer_thread():
    sched = ThreadingScheduler()
    done = threading.Event()
    where = []

    def cb():
        where.append(threading.current_thread())
        done.set()

    sched.call_later(0.01, cb)
    assert done.wait(2.0)
    assert where[0] is not threading.main_thread()


@pytest.mark.timeout(5)
def test_threading_scheduler_shutdown_cancels_pending():
    sched = ThreadingScheduler()
    fired = threading.Event()
    sched.call_later(10.0, fired.set)
    sched.shutdown()
    assert not fired.wait(0.1)


@pytest.mark.timeout(10)
def test_session_on_real_timers_hands_turn_back():
    cfg = GameConfig(board_size=8, ships=SMALL_ROSTER, shot_delay=0.05, ai_think_delay=0.05, handoff_delay=0.05)
    sched = ThreadingScheduler()
    sess = GameSession(cfg, scheduler=sched, rng=random.Random(4))
    deploy_player_fleet(sess)
    handed_back = threading.Event()

    def on_event(ev):
        if ev.type == "game_over" or (ev.type == "handoff" and ev.payload["turn"] == "player"):
            handed_back.set()

    sess.subscribe(on_event)

    target = next(rc for rc in sess.board(Side.AI).coords() if sess.board(Side.AI)[rc].ship_id is None)
    assert sess.attempt_attack(*target)
    assert sess.in_flight
    assert not sess.attempt_attack(*target)
    assert handed_back.wait(5.0)
    view = sess.snapshot()
    assert view.phase is Phase.GAME_OVER or (view.turn is Side.PLAYER and not view.in_flight)
    sched.shutdown()
