"""
Tests for saved progress and protocol hydration.

Tests:
- Wire shape (camelCase) round trip
- Unknown ids dropped, never raised
- File store behavior on missing and corrupt files
"""

import json

import pytest

from ..engine_core.action import CoreType
from ..engine_core.protocol import ConstructSlot
from ..persistence import (
    DroppedPair,
    InMemoryProgressStore,
    JsonFileProgressStore,
    PersistedProtocol,
    PersistedSlot,
    PlayerProgress,
    dehydrate_slot,
    hydrate_protocol,
    hydrate_slot,
)
from ..persistence import store as store_module
from ..persistence.store import ProgressStore


@pytest.fixture
def saved_slot():
    return PersistedSlot.model_validate({
        "slotId": "slot_1",
        "constructId": "striker",
        "movementProtocols": [{"triggerId": "enemy-far", "actionId": "move-forward", "priority": 2}],
        "tacticalProtocols": [
            {"triggerId": "low-hp", "actionId": "heal", "priority": 4},
            {"triggerId": "always", "actionId": "shoot", "enabled": False},
        ],
    })


class TestSchemas:

    def test_wire_uses_camel_case(self):
        progress = PlayerProgress(cipher_fragments=12, completed_masteries=["speed_demon"])
        wire = progress.to_wire()
        assert wire["cipherFragments"] == 12
        assert wire["completedMasteries"] == ["speed_demon"]
        assert "cipher_fragments" not in wire

    def test_negative_currency_rejected(self):
        with pytest.raises(ValueError):
            PlayerProgress(cipher_fragments=-1)

    def test_defaults(self):
        saved = PersistedProtocol(trigger_id="always", action_id="shoot")
        assert saved.priority == 1
        assert saved.enabled


class TestHydration:

    def test_slot_round_trip(self, saved_slot, triggers, actions):
        slot, dropped = hydrate_slot(saved_slot, triggers, actions)
        assert dropped == []
        assert [p.action.id for p in slot.tactical_protocols] == ["heal", "shoot"]
        assert slot.tactical_protocols[0].priority == 4
        assert not slot.tactical_protocols[1].enabled
        assert dehydrate_slot(slot) == saved_slot

    def test_cooldown_state_not_saved(self, saved_slot, triggers, actions):
        slot, _ = hydrate_slot(saved_slot, triggers, actions)
        slot.tactical_protocols[0].last_fired_at = 1234
        wire = dehydrate_slot(slot).model_dump(by_alias=True)
        assert "last_fired_at" not in json.dumps(wire)
        assert "lastFiredAt" not in json.dumps(wire)

    def test_unknown_ids_dropped(self, saved_slot, triggers, actions):
        saved_slot.tactical_protocols.append(
            PersistedProtocol(trigger_id="removed-trigger", action_id="shoot")
        )
        saved_slot.tactical_protocols.append(
            PersistedProtocol(trigger_id="always", action_id="removed-action")
        )
        slot, dropped = hydrate_slot(saved_slot, triggers, actions)

        assert len(slot.tactical_protocols) == 2
        assert [(d.trigger_id, d.action_id) for d in dropped] == [
            ("removed-trigger", "shoot"),
            ("always", "removed-action"),
        ]
        assert all(d.slot_id == "slot_1" for d in dropped)

    def test_wrong_core_dropped(self, triggers, actions):
        saved = PersistedProtocol(trigger_id="always", action_id="shoot")
        result = hydrate_protocol(saved, triggers, actions, core=CoreType.MOVEMENT)
        assert isinstance(result, DroppedPair)
        assert "tactical" in result.reason

    def test_dropped_pair_wire(self):
        pair = DroppedPair("a", "b", "gone", "slot_2")
        assert pair.to_dict() == {"slotId": "slot_2", "triggerId": "a", "actionId": "b", "reason": "gone"}

    def test_empty_slot(self, triggers, actions):
        slot, dropped = hydrate_slot(PersistedSlot(slot_id="slot_3"), triggers, actions)
        assert slot == ConstructSlot(slot_id="slot_3")
        assert dropped == []


class TestStores:

    def test_in_memory_returns_copies(self):
        store = InMemoryProgressStore()
        progress = store.load_progress()
        progress.cipher_fragments = 40
        assert store.load_progress().cipher_fragments == 0

        store.save_progress(progress)
        progress.cipher_fragments = 99
        assert store.load_progress().cipher_fragments == 40

    def test_file_round_trip(self, tmp_path, saved_slot):
        store = JsonFileProgressStore(tmp_path)
        progress = PlayerProgress(cipher_fragments=75, total_runs=2, slots={"slot_1": saved_slot})
        store.save_progress(progress)

        raw = json.loads((tmp_path / "progress.json").read_text())
        assert raw["cipherFragments"] == 75
        assert raw["slots"]["slot_1"]["constructId"] == "striker"

        assert store.load_progress() == progress

    def test_missing_file_is_fresh(self, tmp_path):
        store = JsonFileProgressStore(tmp_path / "nowhere")
        assert store.load_progress() == PlayerProgress()

    def test_corrupt_file_is_fresh(self, tmp_path):
        (tmp_path / "progress.json").write_text("{not json")
        assert JsonFileProgressStore(tmp_path).load_progress() == PlayerProgress()

    def test_invalid_document_is_fresh(self, tmp_path):
        (tmp_path / "progress.json").write_text(json.dumps({"cipherFragments": -5}))
        assert JsonFileProgressStore(tmp_path).load_progress().cipher_fragments == 0

    def test_clear(self, tmp_path):
        store = JsonFileProgressStore(tmp_path)
        store.save_progress(PlayerProgress())
        store.clear()
        assert not store.path.exists()
        store.clear()

    def test_failed_write_leaves_no_temp_file(self, tmp_path, monkeypatch):
        store = JsonFileProgressStore(tmp_path)
        store.save_progress(PlayerProgress(cipher_fragments=10))

        def fail_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(store_module.os, "replace", fail_replace)
        with pytest.raises(OSError):
            store.save_progress(PlayerProgress(cipher_fragments=20))

        assert not (tmp_path / "progress.tmp").exists()
        assert store.load_progress().cipher_fragments == 10

    def test_store_interface_is_abstract(self):
        with pytest.raises(TypeError):
            ProgressStore()

        class LoadOnly(ProgressStore):
            def load_progress(self):
                return PlayerProgress()

        with pytest.raises(TypeError):
            LoadOnly()
