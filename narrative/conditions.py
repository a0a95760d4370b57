"""
Condition evaluation - trigger predicates over game state.

Shared by tutorials, dialogs and objectives. Every predicate is pure:
it only reads the state view and never raises for bad data. A condition
that cannot be evaluated is not met.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from narrative.models import TriggerCondition, TriggerType
from narrative.state import COMPLETED, EXPLORED, GameStateView

logger = logging.getLogger(__name__)

CustomEvaluator = Callable[[TriggerCondition], bool]


@dataclass
class ConditionContext:
    """
    Caller-supplied context for a single evaluation.

    Attributes:
        evaluate_custom: Decides ``custom`` conditions; without it they fail
    """
    evaluate_custom: Optional[CustomEvaluator] = None


def parse_location_id(location_id: str) -> Optional[tuple[int, int]]:
    """
    Parse a "q,r" tile identifier.

    Returns:
        (q, r), or None if the identifier is malformed
    """
    parts = location_id.split(',')
    if len(parts) != 2:
        return None
    try:
        return int(parts[0].strip()), int(parts[1].strip())
    except ValueError:
        return None


def format_location_id(q: int, r: int) -> str:
    return f"{q},{r}"


class ConditionEvaluator:
    """
    Evaluates trigger conditions against a live game-state view.

    Usage:
        evaluator = ConditionEvaluator(state)
        evaluator.is_condition_met(TriggerCondition(type=TriggerType.IMMEDIATE))
        evaluator.are_all_conditions_met(tutorial.trigger_conditions, context)
    """

    def __init__(self, state: GameStateView):
        self.state = state
        self._handlers: dict[TriggerType, Callable[[TriggerCondition, Any], bool]] = {
            TriggerType.IMMEDIATE: self._immediate,
            TriggerType.LOCATION: self._location,
            TriggerType.FEATURE: self._feature,
            TriggerType.OBJECTIVE: self._objective,
            TriggerType.RESOURCE: self._resource,
            TriggerType.DIALOG: self._dialog,
            TriggerType.CUSTOM: self._custom,
        }

    def is_condition_met(self, condition: TriggerCondition, context: Any = None) -> bool:
        """
        Check a single condition.

        Args:
            condition: The condition to test
            context: Optional object with an ``evaluate_custom`` callable

        Returns:
            True if the condition holds right now
        """
        handler = self._handlers.get(condition.type)
        if handler is None:
            logger.warning(f"Unknown condition type: {condition.type}")
            return False
        return handler(condition, context)

    def are_all_conditions_met(
        self,
        conditions: Iterable[TriggerCondition],
        context: Any = None,
    ) -> bool:
        """
        Check a condition set (logical AND).

        An empty set is never met: a condition set must be non-empty to
        trigger anything.
        """
        conditions = list(conditions or [])
        if not conditions:
            return False
        # Evaluate every member; predicates are side-effect free
        results = [self.is_condition_met(condition, context) for condition in conditions]
        return all(results)

    def _immediate(self, condition: TriggerCondition, context: Any) -> bool:
        return True

    def _location(self, condition: TriggerCondition, context: Any) -> bool:
        if not condition.id:
            return False
        coords = parse_location_id(condition.id)
        if coords is None:
            return False
        return self.state.tile_exploration_status(*coords) == EXPLORED

    def _feature(self, condition: TriggerCondition, context: Any) -> bool:
        if not condition.id:
            return False
        return self.state.has_interacted_with_feature(condition.id)

    def _objective(self, condition: TriggerCondition, context: Any) -> bool:
        if not condition.id:
            return False
        return self.state.objective_status(condition.id) == COMPLETED

    def _resource(self, condition: TriggerCondition, context: Any) -> bool:
        if not condition.id:
            return False
        amount = self.state.resource_amount(condition.id)
        if amount is None:
            return False
        threshold = condition.value if condition.value is not None else 0
        return amount >= threshold

    def _dialog(self, condition: TriggerCondition, context: Any) -> bool:
        if not condition.id:
            return False
        return self.state.has_completed_conversation(condition.id)

    def _custom(self, condition: TriggerCondition, context: Any) -> bool:
        if context is None:
            return False
        if isinstance(context, dict):
            evaluate = context.get('evaluate_custom')
        else:
            evaluate = getattr(context, 'evaluate_custom', None)
        if not callable(evaluate):
            return False
        return bool(evaluate(condition))
