"""
Pytest fixtures for Protocol Engine tests.
"""

import pytest

from ..balance import default_table
from ..catalog import ActionCatalog, ConstructCatalog, EnemyCatalog, TriggerRegistry
from ..engine_core.protocol import Protocol
from ..engine_core.state import BattleState, FighterState, Position, Side
from ..engine_core.status import StatusEngine
from ..mastery import MasteryRegistry
from ..persistence import InMemoryProgressStore


@pytest.fixture
def table():
    """Fresh default interaction table."""
    return default_table()


@pytest.fixture
def status_engine(table):
    return StatusEngine(table)


@pytest.fixture
def triggers():
    return TriggerRegistry.default()


@pytest.fixture
def actions():
    return ActionCatalog.default()


@pytest.fixture
def constructs():
    return ConstructCatalog.default()


@pytest.fixture
def enemies():
    return EnemyCatalog.default()


@pytest.fixture
def masteries():
    return MasteryRegistry.default()


@pytest.fixture
def store():
    return InMemoryProgressStore()


@pytest.fixture
def make_fighter():
    """Factory for bare fighters: no defenses, 100/100 HP, middle row."""
    def _make(side=Side.PLAYER, x=None, y=1, hp=100, max_hp=100, shields=0, armor=0, **kwargs):
        if x is None:
            x = 1 if side is Side.PLAYER else 4
        return FighterState(
            side=side,
            position=Position(x, y),
            hp=hp,
            max_hp=max_hp,
            shields=shields,
            max_shields=kwargs.pop("max_shields", shields),
            armor=armor,
            max_armor=kwargs.pop("max_armor", armor),
            **kwargs,
        )
    return _make


@pytest.fixture
def battle_state(make_fighter):
    """Player at (1, 1), enemy at (4, 1), both 100 HP without defenses."""
    return BattleState(
        battle_id="test_battle",
        player=make_fighter(Side.PLAYER),
        enemy=make_fighter(Side.ENEMY),
        random_seed=42,
    )


@pytest.fixture
def make_protocol(triggers, actions):
    """Build a protocol from catalog ids."""
    def _make(trigger_id, action_id, priority=1, enabled=True):
        return Protocol(
            trigger=triggers.lookup(trigger_id).value,
            action=actions.lookup(action_id).value,
            priority=priority,
            enabled=enabled,
        )
    return _make
