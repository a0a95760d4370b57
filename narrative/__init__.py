"""
Narrative - tutorials, dialogs and branching conversations.

Provides:
- Condition evaluation over game state
- The modal queue (tutorials and dialogs in one presentation slot)
- The dialog tree engine and its structural validation
- Trigger composables and declarative area triggers
- NarrativeService, which wires everything together
"""

from narrative.models import (
    TriggerType,
    TriggerCondition,
    TutorialItem,
    CharacterPortrait,
    DialogItem,
    Response,
    DialogNode,
    DialogTree,
    ModalType,
    Speaker,
    DialogHistoryEntry,
    DialogHistoryRecord,
    ModalQueueItem,
)
from narrative.errors import (
    NarrativeError,
    ContentError,
    ContentNotFoundError,
    ContentValidationError,
    DialogTreeValidationError,
    EmptyModalQueueError,
    NoActiveDialogTreeError,
    ResponseIndexError,
    StorageError,
)
from narrative.state import WorldState, GameStateView, GameStateSnapshot, NarrativeGameState
from narrative.conditions import ConditionEvaluator, ConditionContext
from narrative.notifications import Notification, NotificationType, NotificationCenter, SaveFailureReporter
from narrative.interactions import InteractionTracker
from narrative.modals import ModalQueueManager
from narrative.validation import IssueSeverity, ValidationIssue, ValidationReport, validate_dialog_tree
from narrative.dialog_tree import DialogTreeEngine
from narrative.layout import NodePosition, auto_layout_nodes
from narrative.script import DialogScriptParser, compile_dialog_script, export_tree
from narrative.triggers import TutorialTriggers, DialogTriggers
from narrative.area_triggers import (
    TriggerEvent,
    ActionType,
    TriggerAction,
    TriggerContext,
    AreaTrigger,
    AreaTriggerExecutor,
)
from narrative.service import NarrativeService, Presentation, PresentationKind

__all__ = [
    # Models
    "TriggerType",
    "TriggerCondition",
    "TutorialItem",
    "CharacterPortrait",
    "DialogItem",
    "Response",
    "DialogNode",
    "DialogTree",
    "ModalType",
    "Speaker",
    "DialogHistoryEntry",
    "DialogHistoryRecord",
    "ModalQueueItem",
    # Errors
    "NarrativeError",
    "ContentError",
    "ContentNotFoundError",
    "ContentValidationError",
    "DialogTreeValidationError",
    "EmptyModalQueueError",
    "NoActiveDialogTreeError",
    "ResponseIndexError",
    "StorageError",
    # State and conditions
    "WorldState",
    "GameStateView",
    "GameStateSnapshot",
    "NarrativeGameState",
    "ConditionEvaluator",
    "ConditionContext",
    # Components
    "Notification",
    "NotificationType",
    "NotificationCenter",
    "SaveFailureReporter",
    "InteractionTracker",
    "ModalQueueManager",
    "IssueSeverity",
    "ValidationIssue",
    "ValidationReport",
    "validate_dialog_tree",
    "DialogTreeEngine",
    "NodePosition",
    "auto_layout_nodes",
    "DialogScriptParser",
    "compile_dialog_script",
    "export_tree",
    "TutorialTriggers",
    "DialogTriggers",
    "TriggerEvent",
    "ActionType",
    "TriggerAction",
    "TriggerContext",
    "AreaTrigger",
    "AreaTriggerExecutor",
    # Composition root
    "NarrativeService",
    "Presentation",
    "PresentationKind",
]
