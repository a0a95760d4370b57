from engine.core.events import NarrativeEvent
from engine.storage.store import MemoryStore
from narrative.interactions import InteractionTracker

FEATURES_KEY = "idle-artifice-interacted-features"

def test_first_interaction(interactions, store, event_bus):
    seen = []
    event_bus.subscribe(NarrativeEvent.FEATURE_INTERACTED, lambda e: seen.append(e["feature_id"]), weak=False)

    assert interactions.mark_feature_interacted("foundry")
    assert not interactions.mark_feature_interacted("foundry")
    interactions.mark_feature_interacted("docks")

    assert interactions.has_interacted_with_feature("foundry")
    assert store.read(FEATURES_KEY) == ["docks", "foundry"]
    assert seen == ["foundry", "docks"]

def test_load(save_failures):
    store = MemoryStore({FEATURES_KEY: ["foundry"]})
    tracker = InteractionTracker(store, save_failures)

    tracker.load()

    assert tracker.has_interacted_with_feature("foundry")
    assert not tracker.has_interacted_with_feature("docks")

def test_malformed_data_starts_empty(save_failures):
    tracker = InteractionTracker(MemoryStore({FEATURES_KEY: {"foundry": True}}), save_failures)

    tracker.load()

    assert tracker.interacted_features == set()

def test_restore_persists(interactions, store):
    interactions.restore(["wharf", "academy"])

    assert store.read(FEATURES_KEY) == ["academy", "wharf"]

def test_save_failure_is_reported_once(interactions, store, notifications):
    store.fail_writes = True

    interactions.mark_feature_interacted("foundry")
    interactions.mark_feature_interacted("docks")

    assert interactions.has_interacted_with_feature("docks")
    assert len(notifications.find("Save Failed")) == 1
