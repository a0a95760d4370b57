"""
JSON Schemas for authored narrative content.

Schemas check shape and types only. Graph consistency of dialog trees
(dangling references, empty text, key/id mismatches) is reported by the
dialog-tree validator, which can name the offending node.
"""

from engine.resources.provider import ContentKind

PORTRAIT_SCHEMA = {
    "type": "object",
    "required": ["alt"],
    "properties": {
        "path": {"type": ["string", "null"]},
        "alt": {"type": "string"},
    },
}

TRIGGER_CONDITION_SCHEMA = {
    "type": "object",
    "required": ["type"],
    "properties": {
        "type": {
            "enum": ["immediate", "location", "feature", "objective", "resource", "dialog", "custom"],
        },
        "id": {"type": ["string", "null"]},
        "value": {"type": ["number", "null"]},
        "description": {"type": "string"},
    },
}

TUTORIAL_SCHEMA = {
    "type": "object",
    "required": ["id", "title", "content"],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "title": {"type": "string", "minLength": 1},
        "content": {"type": "string", "minLength": 1},
        "triggerConditions": {"type": "array", "items": TRIGGER_CONDITION_SCHEMA},
        "showOnce": {"type": "boolean"},
    },
}

DIALOG_SCHEMA = {
    "type": "object",
    "required": ["id", "characterName", "message"],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "characterName": {"type": "string", "minLength": 1},
        "portrait": PORTRAIT_SCHEMA,
        "message": {"type": "string", "minLength": 1},
        "conversationId": {"type": ["string", "null"]},
    },
}

RESPONSE_SCHEMA = {
    "type": "object",
    "required": ["text", "nextNodeId"],
    "properties": {
        "text": {"type": "string"},
        "nextNodeId": {"type": ["string", "null"]},
    },
}

DIALOG_NODE_SCHEMA = {
    "type": "object",
    "required": ["id", "message"],
    "properties": {
        "id": {"type": "string"},
        "message": {"type": "string"},
        "responses": {"type": "array", "items": RESPONSE_SCHEMA},
        "portrait": {"anyOf": [PORTRAIT_SCHEMA, {"type": "null"}]},
    },
}

DIALOG_TREE_SCHEMA = {
    "type": "object",
    "required": ["id", "characterName", "startNodeId", "nodes"],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "characterName": {"type": "string", "minLength": 1},
        "portrait": PORTRAIT_SCHEMA,
        "startNodeId": {"type": "string", "minLength": 1},
        "nodes": {
            "type": "object",
            "additionalProperties": DIALOG_NODE_SCHEMA,
        },
    },
}

CONTENT_SCHEMAS = {
    ContentKind.TUTORIAL: TUTORIAL_SCHEMA,
    ContentKind.DIALOG: DIALOG_SCHEMA,
    ContentKind.DIALOG_TREE: DIALOG_TREE_SCHEMA,
}
