import importlib

import pytest

from fleetops import config as cfg
from fleetops.config import GameConfig
from fleetops.errors import ConfigError


def test_defaults_match_roster():
    c = GameConfig()
    assert c.board_size == cfg.BOARD_SIZE
    assert c.ships == tuple(cfg.SHIPS)
    assert ("Carrier", 2, 7) in c.ships


def test_headless_zeroes_delays():
    c = GameConfig.headless(board_size=9)
    assert (c.shot_delay, c.ai_think_delay, c.handoff_delay) == (0.0, 0.0, 0.0)
    assert c.board_size == 9


def test_list_roster_is_frozen_to_tuple():
    c = GameConfig(ships=[["Sloop", 1, 2]])
    assert c.ships == (("Sloop", 1, 2),)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"board_size": 0},
        {"board_size": 27},
        {"ships": []},
        {"ships": [("A", 2, 1)]},
        {"ships": [("A", 0, 2)]},
        {"ships": [("A", 1, 2), ("A", 1, 3)]},
        {"ships": [("A", 1, 20)], "board_size": 10},
        {"placement_attempts": 0},
        {"shot_delay": -1.0},
    ],
)
def test_invalid_config_rejected(kwargs):
    with pytest.raises(ConfigError):
        GameConfig(**kwargs)


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("FLEET_BOARD_SIZE", "12")
    monkeypatch.setenv("FLEET_AI_CLEAR_QUEUE_ON_SINK", "1")
    monkeypatch.setenv("FLEET_SEED", "42")
    try:
        reloaded = importlib.reload(cfg)
        assert reloaded.BOARD_SIZE == 12
        assert reloaded.AI_CLEAR_QUEUE_ON_SINK is True
        assert reloaded.SEED == 42
    finally:
        monkeypatch.undo()
        importlib.reload(cfg)


def test_largest_board_still_has_row_labels():
    c = GameConfig(board_size=cfg.MAX_BOARD_SIZE)
    assert c.board_size == 26
