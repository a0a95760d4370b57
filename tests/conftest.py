import os
import sys
import copy
import pytest
from datetime import datetime, timedelta

# Ensure engine modules can be imported
sys.path.append(os.getcwd())

from engine.core.config import NarrativeConfig
from engine.resources.provider import ContentKind, RegistryContentProvider
from engine.resources.database import ContentLibrary
from engine.storage.store import MemoryStore
from narrative.models import TutorialItem
from narrative.state import GameStateSnapshot
from narrative.notifications import NotificationCenter, SaveFailureReporter


WELCOME_TUTORIAL = {
    "id": "welcome",
    "title": "Welcome",
    "content": "Welcome to the harbor.",
    "triggerConditions": [{"type": "immediate"}],
    "showOnce": True,
}

FOUNDRY_TUTORIAL = {
    "id": "foundry-basics",
    "title": "The Foundry",
    "content": "Smelt ore into ingots.",
    "triggerConditions": [{"type": "feature", "id": "foundry"}],
    "showOnce": True,
}

ACADEMY_TUTORIAL = {
    "id": "academy-unlocked",
    "title": "The Academy",
    "content": "The academy is open.",
    "triggerConditions": [{"type": "location", "id": "0,0"}],
    "showOnce": True,
}

HELP_TUTORIAL = {
    "id": "help",
    "title": "Help",
    "content": "Open the menu for help.",
    "triggerConditions": [{"type": "objective", "id": "talk-to-headmaster"}],
    "showOnce": False,
}

GREETING_DIALOG = {
    "id": "harbormaster-greeting",
    "characterName": "Harbormaster Brine",
    "portrait": {"path": "portraits/harbormaster.png", "alt": "The harbormaster"},
    "message": "Another apprentice off the boat.",
    "conversationId": "harbormaster-intro",
}

FOUNDRY_DIALOG = {
    "id": "foundry-master-intro",
    "characterName": "Foundry Master Hale",
    "portrait": {"path": None, "alt": "Foundry Master Hale"},
    "message": "Heat, patience, and good ore.",
}

HEADMASTER_TREE = {
    "id": "headmaster-intro",
    "characterName": "Headmaster Aldric",
    "portrait": {"path": "portraits/headmaster.png", "alt": "Headmaster Aldric"},
    "startNodeId": "welcome",
    "nodes": {
        "welcome": {
            "id": "welcome",
            "message": "Welcome to the Academy of Artifice.",
            "responses": [
                {"text": "Tell me about the academy", "nextNodeId": "academy"},
                {"text": "What lies beyond the walls?", "nextNodeId": "wilderness"},
            ],
        },
        "academy": {
            "id": "academy",
            "message": "We train artificers here.",
            "portrait": {"path": "portraits/headmaster-proud.png", "alt": "Headmaster Aldric, smiling"},
            "responses": [
                {"text": "Tell me more", "nextNodeId": "welcome"},
                {"text": "That's all I need", "nextNodeId": None},
            ],
        },
        "wilderness": {
            "id": "wilderness",
            "message": "Wild country.",
            "responses": [],
        },
    },
}


class FakeClock:
    """Deterministic clock; every reading is one second after the last."""

    def __init__(self, start=datetime(2024, 1, 1, 12, 0, 0)):
        self.now = start

    def __call__(self):
        current = self.now
        self.now += timedelta(seconds=1)
        return current


@pytest.fixture
def event_bus():
    """Fresh EventBus for each test."""
    from engine.core.events import EventBus
    return EventBus()


@pytest.fixture
def config():
    return NarrativeConfig()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def world():
    """Fresh world state: harbor explored, nothing else."""
    return GameStateSnapshot(
        tiles={(1, 0): "explored", (0, 0): "unexplored"},
        objectives={"talk-to-harbormaster": "active"},
        resources={"gold": 5.0},
    )


@pytest.fixture
def tree_data():
    """Editable copy of the headmaster dialog tree."""
    return copy.deepcopy(HEADMASTER_TREE)


@pytest.fixture
def provider():
    """Registry provider with the sample content."""
    return RegistryContentProvider({
        ContentKind.TUTORIAL: {
            "welcome": WELCOME_TUTORIAL,
            "foundry-basics": FOUNDRY_TUTORIAL,
            "academy-unlocked": ACADEMY_TUTORIAL,
            "help": HELP_TUTORIAL,
        },
        ContentKind.DIALOG: {
            "harbormaster-greeting": GREETING_DIALOG,
            "foundry-master-intro": FOUNDRY_DIALOG,
        },
        ContentKind.DIALOG_TREE: {
            "headmaster-intro": HEADMASTER_TREE,
        },
    })


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def library(provider):
    """Library with the tutorial registry already populated."""
    library = ContentLibrary(provider)
    for data in (WELCOME_TUTORIAL, FOUNDRY_TUTORIAL, ACADEMY_TUTORIAL, HELP_TUTORIAL):
        library.cache(ContentKind.TUTORIAL, TutorialItem.model_validate(data))
    return library


@pytest.fixture
def notifications(config, event_bus, clock):
    return NotificationCenter(config, event_bus, clock)


@pytest.fixture
def save_failures(notifications):
    return SaveFailureReporter(notifications)


@pytest.fixture
def modals(library, store, notifications, save_failures, config, event_bus, clock):
    from narrative.modals import ModalQueueManager
    return ModalQueueManager(library, store, notifications, save_failures, config, event_bus, clock)


@pytest.fixture
def trees(library, modals, notifications, config, event_bus):
    from narrative.dialog_tree import DialogTreeEngine
    return DialogTreeEngine(library, modals, notifications, config, event_bus)


@pytest.fixture
def interactions(store, save_failures, config, event_bus):
    from narrative.interactions import InteractionTracker
    return InteractionTracker(store, save_failures, config, event_bus)


@pytest.fixture
def service(world, provider, store, config, event_bus, clock):
    """Service over the sample content; call ``await service.initialize()``."""
    from narrative.service import NarrativeService
    return NarrativeService(world, provider, store, config, event_bus, clock)
