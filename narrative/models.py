"""
Narrative data model - tutorials, dialogs, dialog trees, transcripts.

Authored content is loaded from JSON with camelCase keys:

    tutorial:    {id, title, content, triggerConditions[], showOnce}
    dialog:      {id, characterName, portrait: {path, alt}, message, conversationId?}
    dialog tree: {id, characterName, portrait, startNodeId,
                  nodes: {nodeId: {id, message, responses: [{text, nextNodeId}], portrait?}}}

A response whose ``nextNodeId`` is null ends the conversation.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from pydantic import Field

from engine.core.content import ContentModel, StateModel, register_content


class TriggerType(Enum):
    """
    What a trigger condition tests.

    - IMMEDIATE: always met; the caller decides when to fire
    - LOCATION: a world tile "q,r" has been explored
    - FEATURE: a feature has been interacted with
    - OBJECTIVE: an objective is completed
    - RESOURCE: a resource amount reaches a threshold
    - DIALOG: a conversation has been finished
    - CUSTOM: evaluated by a caller-supplied function
    """
    IMMEDIATE = "immediate"
    LOCATION = "location"
    FEATURE = "feature"
    OBJECTIVE = "objective"
    RESOURCE = "resource"
    DIALOG = "dialog"
    CUSTOM = "custom"


class TriggerCondition(ContentModel):
    """A named predicate over game state."""
    type: TriggerType
    id: Optional[str] = None
    value: Optional[float] = None
    description: str = ""


@register_content("tutorial")
class TutorialItem(ContentModel):
    """A one-way informational modal with a dismiss button."""
    id: str
    title: str
    content: str
    trigger_conditions: list[TriggerCondition] = Field(default_factory=list, alias="triggerConditions")
    show_once: bool = Field(default=True, alias="showOnce")


class CharacterPortrait(ContentModel):
    """Portrait image reference; a null path means use the placeholder."""
    path: Optional[str] = None
    alt: str = ""


@register_content("dialog")
class DialogItem(ContentModel):
    """A single NPC message."""
    id: str
    character_name: str = Field(alias="characterName")
    portrait: CharacterPortrait = Field(default_factory=CharacterPortrait)
    message: str
    conversation_id: Optional[str] = Field(default=None, alias="conversationId")

    @property
    def conversation_key(self) -> str:
        """Identifier recorded in history; groups multi-part conversations."""
        return self.conversation_id or self.id


class Response(ContentModel):
    """A player-selectable reply."""
    text: str
    next_node_id: Optional[str] = Field(alias="nextNodeId")

    @property
    def ends_conversation(self) -> bool:
        return self.next_node_id is None


class DialogNode(ContentModel):
    """One NPC message inside a dialog tree."""
    id: str
    message: str
    responses: list[Response] = Field(default_factory=list)
    portrait: Optional[CharacterPortrait] = None

    @property
    def is_terminal(self) -> bool:
        """A node without responses ends the conversation."""
        return not self.responses


@register_content("dialog_tree")
class DialogTree(ContentModel):
    """A branching conversation graph."""
    id: str
    character_name: str = Field(alias="characterName")
    portrait: CharacterPortrait = Field(default_factory=CharacterPortrait)
    start_node_id: str = Field(alias="startNodeId")
    nodes: dict[str, DialogNode] = Field(default_factory=dict)

    def get_node(self, node_id: str) -> Optional[DialogNode]:
        return self.nodes.get(node_id)

    @property
    def start_node(self) -> Optional[DialogNode]:
        return self.nodes.get(self.start_node_id)


class ModalType(Enum):
    """Kinds of item that can occupy the presentation slot."""
    TUTORIAL = "tutorial"
    DIALOG = "dialog"


class Speaker(Enum):
    NPC = "npc"
    PLAYER = "player"


class DialogHistoryEntry(StateModel):
    """One line of a conversation transcript."""
    speaker: Speaker
    speaker_name: str = Field(alias="speakerName")
    message: str
    timestamp: datetime


class DialogHistoryRecord(StateModel):
    """The path a player took through one conversation."""
    conversation_id: str = Field(alias="conversationId")
    character_name: str = Field(alias="characterName")
    transcript: list[DialogHistoryEntry] = Field(default_factory=list)
    started_at: datetime = Field(alias="startedAt")
    completed_at: Optional[datetime] = Field(default=None, alias="completedAt")

    @property
    def is_complete(self) -> bool:
        return self.completed_at is not None


@dataclass
class ModalQueueItem:
    """
    An entry in the modal queue.

    Attributes:
        type: Discriminant (tutorial or dialog)
        item: The queued content
        conversation: Transcript for dialog items, created when queued
    """
    type: ModalType
    item: Union[TutorialItem, DialogItem]
    conversation: Optional[DialogHistoryRecord] = None

    @classmethod
    def tutorial(cls, tutorial: TutorialItem) -> ModalQueueItem:
        return cls(type=ModalType.TUTORIAL, item=tutorial)

    @classmethod
    def dialog(cls, dialog: DialogItem, conversation: DialogHistoryRecord) -> ModalQueueItem:
        return cls(type=ModalType.DIALOG, item=dialog, conversation=conversation)

    @property
    def item_id(self) -> str:
        return self.item.id

    @property
    def is_tutorial(self) -> bool:
        return self.type is ModalType.TUTORIAL

    @property
    def is_dialog(self) -> bool:
        return self.type is ModalType.DIALOG
