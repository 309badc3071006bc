"""
Tests for battle state, grid helpers and payload normalization.
"""

from ..balance import DamageType, StatusType
from ..engine_core.state import (
    BattleState,
    Position,
    Side,
    back_column,
    clamp_to_territory,
    front_column,
    in_territory,
    normalize_state_payload,
)


class TestGrid:

    def test_halves(self):
        assert in_territory(Position(2, 0), Side.PLAYER)
        assert not in_territory(Position(3, 0), Side.PLAYER)
        assert in_territory(Position(3, 2), Side.ENEMY)
        assert not in_territory(Position(4, 3), Side.ENEMY)

    def test_front_and_back(self):
        assert (front_column(Side.PLAYER), back_column(Side.PLAYER)) == (2, 0)
        assert (front_column(Side.ENEMY), back_column(Side.ENEMY)) == (3, 5)

    def test_clamp(self):
        assert clamp_to_territory(Position(4, -1), Side.PLAYER) == Position(2, 0)
        assert clamp_to_territory(Position(1, 5), Side.ENEMY) == Position(3, 2)


class TestBattleState:

    def test_clone_is_deep(self, battle_state):
        copy = battle_state.clone()
        copy.player.hp = 1
        copy.player.position = Position(0, 0)
        assert battle_state.player.hp == 100
        assert battle_state.player.position == Position(1, 1)

    def test_context_is_actor_relative(self, battle_state):
        context = battle_state.context_for(Side.ENEMY)
        assert context.me is battle_state.enemy
        assert context.opponent is battle_state.player
        assert context.distance() == 3

    def test_rng_is_seeded(self, battle_state):
        context = battle_state.context_for(Side.PLAYER)
        assert context.rng("x").random() == context.rng("x").random()
        assert context.rng("x").random() != context.rng("y").random()

    def test_hp_percent(self, make_fighter):
        fighter = make_fighter(hp=30, max_hp=120)
        assert fighter.hp_percent == 25
        assert make_fighter(hp=0, max_hp=0).hp_percent == 0

    def test_resistance_clamped(self, make_fighter):
        fighter = make_fighter(resistances={DamageType.VIRAL: 1.5})
        assert fighter.resistance("viral") == 1.0
        assert fighter.resistance(None) == 0.0


class TestNormalization:
    """Every legacy field spelling lands in one canonical shape."""

    def test_flat_legacy_context(self):
        data = normalize_state_payload({
            "battleId": "legacy-1",
            "playerPos": {"x": 1, "y": 2},
            "enemyPos": {"x": 4, "y": 0},
            "playerHP": 80,
            "enemyHP": 45,
            "playerDefense": {"shields": 10, "maxShields": 30, "armor": 5},
            "justTookDamage": True,
            "isPlayer": True,
        })

        assert data["battle_id"] == "legacy-1"
        assert data["player"]["position"] == {"x": 1, "y": 2}
        assert data["player"]["hp"] == 80
        assert data["player"]["shields"] == 10
        assert data["player"]["max_shields"] == 30
        assert data["player"]["just_took_damage"] is True
        assert data["enemy"]["hp"] == 45
        assert not any(k.startswith(("player", "enemy")) and k not in ("player", "enemy") for k in data)
        assert "isPlayer" not in data

    def test_longer_status_name_wins(self):
        data = normalize_state_payload({
            "playerStatusEffects": [{"type": "burn", "stacks": 2}],
            "playerStatus": [{"type": "lag"}],
        })
        assert data["player"]["status_effects"] == [{"type": "burn", "stacks": 2}]

    def test_from_payload(self):
        state = BattleState.from_payload({
            "playerPos": {"x": 0, "y": 1},
            "playerHP": 50,
            "playerMaxHP": 120,
            "enemy": {"hp": 70, "shields": 20},
            "enemyStatusEffects": [{"type": "burn", "stacks": 3, "endTime": 4000, "value": 2}],
        })

        assert state.player.hp == 50
        assert state.player.max_hp == 120
        assert state.enemy.max_shields == 20
        assert state.enemy.position == Position(5, 1)
        assert state.enemy.stacks(StatusType.BURN) == 3
        assert state.enemy.status_effects[StatusType.BURN].expiries == [4000, 4000, 4000]

    def test_canonical_payload_unchanged(self):
        payload = {"player": {"hp": 90, "max_hp": 100}, "enemy": {"hp": 60, "max_hp": 60}}
        state = BattleState.from_payload(payload)
        assert state.player.hp == 90
        assert state.enemy.max_hp == 60

    def test_duration_only_status_expires(self, status_engine):
        state = BattleState.from_payload({
            "now": 2000,
            "playerStatusEffects": [{"type": "stun", "duration": 1000}],
        })
        assert state.player.status_effects[StatusType.STUN].expiries == [3000]

        status_engine.tick(state.player, now=60_000)
        assert not state.player.has_status(StatusType.STUN)

    def test_position_clamped_to_own_half(self):
        state = BattleState.from_payload({
            "playerPos": {"x": 5, "y": 7},
            "enemyPos": {"x": 0, "y": -2},
        })
        assert state.player.position == Position(2, 2)
        assert state.enemy.position == Position(3, 0)

    def test_legacy_status_names(self):
        state = BattleState.from_payload({
            "playerStatusEffects": [
                {"type": "slow", "duration": 1000, "stacks": 2},
                {"type": "stagger", "duration": 500},
                {"type": "arc", "duration": 1000},
                {"type": "degrade", "duration": 1000},
            ],
        })
        assert state.player.stacks(StatusType.LAG) == 2
        assert state.player.stacks(StatusType.STUN) == 1
        assert set(state.player.status_effects) == {StatusType.LAG, StatusType.STUN}
