"""Advancement manager: the level-change state machine.

A level change on a class item becomes a flight plan of advancement steps
that runs against a clone of the actor:

    IDLE -> PLANNING -> AWAITING_INPUT(step) -> APPLYING(step) -> IDLE -> ...
                                                          -> COMPLETE | ABORTED

Steps that need no player decision apply immediately. A failed step or a
cancellation reverses every step applied so far, last first, and nothing
is committed. A finished flight is committed to the document store as one
``ActorUpdate`` batch.

Example:
    >>> manager = AdvancementManager.for_level_change(actor, "fighter-id", 2, store=store)
    >>> while manager.state is FlightState.AWAITING_INPUT:
    ...     manager.submit(ask_player(manager.current_step))
    >>> manager.result.system.abilities["str"].value
    16
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from dnd_progression.advancement.base import Advancement, ItemSource, ReversalRecord
from dnd_progression.advancement.registry import AdvancementRegistry, advancement_registry
from dnd_progression.core.exceptions import (
    ConfigurationError,
    FlightAbortedError,
    InvalidFlightStateError,
    PlanningFailure,
    ValidationError,
)
from dnd_progression.core.logging import bind_context, get_logger, unbind_context
from dnd_progression.core.paths import diff_data
from dnd_progression.storage.memory_store import ActorUpdate


if TYPE_CHECKING:
    from dnd_progression.models.documents import Actor, Item
    from dnd_progression.rules.registry import RulesConfig
    from dnd_progression.storage.memory_store import DocumentStore


logger = get_logger(__name__)


class FlightState(StrEnum):
    """Advancement manager states."""

    IDLE = "idle"
    PLANNING = "planning"
    AWAITING_INPUT = "awaiting_input"
    APPLYING = "applying"
    COMPLETE = "complete"
    ABORTED = "aborted"


class StepDirection(StrEnum):
    """Whether a step applies or reverses its advancement."""

    FORWARD = "forward"
    REVERSE = "reverse"


@dataclass
class AdvancementStep:
    """One entry of a flight plan.

    Attributes:
        advancement: Behavior to apply or reverse.
        direction: Forward or reverse.
        level: Level passed to the advancement; the class level for class
            and subclass advancements, the character level otherwise.
        class_level: Class level reached while this step runs.
        character_level: Character level reached while this step runs.
        applied: Whether the advancement was applied at ``level`` when planned.
        done: Whether the step ran in this flight.
        reversal: Record produced when a reverse step ran.
    """

    advancement: Advancement
    direction: StepDirection
    level: int
    class_level: int
    character_level: int
    applied: bool = False
    done: bool = False
    reversal: ReversalRecord | None = field(default=None, repr=False)

    @property
    def key(self) -> tuple[str, str, int]:
        return (self.advancement.item.id, self.advancement.id, self.level)

    @property
    def automatic(self) -> bool:
        """Whether the step runs without player input."""
        return self.direction is StepDirection.REVERSE or not self.advancement.needs_input(self.level)

    @property
    def title(self) -> str:
        return self.advancement.title_for_level(self.level)

    @property
    def summary(self) -> str:
        return self.advancement.summary_for_level(self.level)


class AdvancementManager:
    """Runs one level change of one class item as a flight of advancement steps.

    Only one flight may run against an actor at a time; concurrent level
    changes on the same actor are not coordinated.

    Attributes:
        state: Current FlightState.
        steps: Flight plan in execution order.
        planning_failure: Why planning produced no steps, if it failed.
        result: Committed actor once the flight is complete.
    """

    def __init__(
        self,
        actor: Actor,
        *,
        store: DocumentStore | None = None,
        source: ItemSource | None = None,
        rules: RulesConfig | None = None,
        registry: AdvancementRegistry | None = None,
    ) -> None:
        """Prepare a manager working on a clone of ``actor``.

        Args:
            actor: Actor to level; never mutated.
            store: Store that receives the committed update.
            source: Source item lookup; defaults to ``store``.
            rules: Rules snapshot; defaults to the process-wide one.
            registry: Advancement registry; defaults to the built-in one.
        """
        if rules is None:
            from dnd_progression.rules.registry import get_rules_config

            rules = get_rules_config()
        self._original = actor
        self._clone = actor.clone()
        self._store = store
        self._source = source if source is not None else store
        self._rules = rules
        self._registry = registry or advancement_registry

        self._state = FlightState.IDLE
        self._steps: list[AdvancementStep] = []
        self._index = 0
        self._behaviors: dict[tuple[str, str], Advancement] = {}
        self._class_item: Item | None = None
        self._start_level = 0
        self._target_level = 0
        self._start_character_level = 0
        self._planning_failure: PlanningFailure | None = None
        self._result: Actor | None = None

    @classmethod
    def for_level_change(
        cls,
        actor: Actor,
        class_item_id: str,
        level_delta: int,
        *,
        store: DocumentStore | None = None,
        source: ItemSource | None = None,
        rules: RulesConfig | None = None,
        registry: AdvancementRegistry | None = None,
    ) -> AdvancementManager:
        """Plan a level change and run every step that needs no input.

        Args:
            actor: Actor owning the class item.
            class_item_id: Embedded class item to level.
            level_delta: Levels to gain (positive) or lose (negative).

        Returns:
            A manager that is awaiting input, complete, or holding an empty plan.
        """
        manager = cls(actor, store=store, source=source, rules=rules, registry=registry)
        manager.plan(class_item_id, level_delta)
        manager.start()
        return manager

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def state(self) -> FlightState:
        return self._state

    @property
    def steps(self) -> list[AdvancementStep]:
        return list(self._steps)

    @property
    def current_step(self) -> AdvancementStep | None:
        """Step being applied or awaiting input."""
        if self._index < len(self._steps) and self._state in (
            FlightState.AWAITING_INPUT,
            FlightState.APPLYING,
        ):
            return self._steps[self._index]
        return None

    @property
    def planning_failure(self) -> PlanningFailure | None:
        return self._planning_failure

    @property
    def actor(self) -> Actor:
        """Working copy the flight runs against."""
        return self._clone

    @property
    def result(self) -> Actor | None:
        return self._result

    @property
    def target_level(self) -> int:
        return self._target_level

    # -------------------------------------------------------------------------
    # Planning
    # -------------------------------------------------------------------------

    def _require_state(self, operation: str, *states: FlightState) -> None:
        if self._state not in states:
            raise InvalidFlightStateError(
                f"Cannot {operation} while {self._state}",
                current_state=str(self._state),
                expected_states=[str(state) for state in states],
            )

    def _fail_planning(self, message: str, **details: Any) -> None:
        self._planning_failure = PlanningFailure(message, details=details)
        self._steps = []
        logger.warning("Advancement planning failed", reason=message, **details)

    def _behavior(self, item: Item, data: Any) -> Advancement:
        key = (item.id, data.id)
        behavior = self._behaviors.get(key)
        if behavior is None:
            behavior = self._registry.create(
                data,
                item=item,
                actor=self._clone,
                rules=self._rules,
                source=self._source,
            )
            self._behaviors[key] = behavior
        return behavior

    def _advancing_items(self) -> list[tuple[Item, bool]]:
        """Items whose advancements take part, flagged when they key on class level."""
        class_item = self._class_item
        items: list[tuple[Item, bool]] = [(class_item, True)]
        subclass = self._clone.subclasses.get(class_item.identifier)
        if subclass is not None:
            items.append((subclass, True))
        items.extend(
            (item, False)
            for item in self._clone.items
            if item.type not in ("class", "subclass") and item.advancement
        )
        return items

    def _gather(
        self,
        class_level: int,
        character_level: int,
        direction: StepDirection,
        failures: list[ConfigurationError],
    ) -> list[AdvancementStep]:
        """Steps at one level in declaration order: class, subclass, then other items."""
        steps: list[AdvancementStep] = []
        for item, by_class_level in self._advancing_items():
            level = class_level if by_class_level else character_level
            for data in item.advancement:
                try:
                    advancement = self._behavior(item, data)
                except ConfigurationError as exc:
                    failures.append(exc)
                    continue
                if not advancement.applies_at(level):
                    continue
                applied = advancement.is_applied(level)
                if direction is StepDirection.FORWARD:
                    wanted = not applied or not advancement.records_value
                else:
                    wanted = applied or not advancement.records_value
                if wanted:
                    steps.append(
                        AdvancementStep(
                            advancement=advancement,
                            direction=direction,
                            level=level,
                            class_level=class_level,
                            character_level=character_level,
                            applied=applied,
                        )
                    )
        return steps

    def _levels(self) -> list[tuple[int, int]]:
        """(class level, character level) pairs visited by the flight, in order."""
        start, target, character = self._start_level, self._target_level, self._start_character_level
        if target > start:
            return [(level, character + level - start) for level in range(start + 1, target + 1)]
        return [(level, character - (start - level)) for level in range(start, target, -1)]

    def _build_steps(self, levels: list[tuple[int, int]], failures: list[ConfigurationError]) -> list[AdvancementStep]:
        direction = StepDirection.FORWARD if self._target_level > self._start_level else StepDirection.REVERSE
        steps: list[AdvancementStep] = []
        for class_level, character_level in levels:
            gathered = self._gather(class_level, character_level, direction, failures)
            if direction is StepDirection.REVERSE:
                gathered.reverse()
            steps.extend(gathered)
        return steps

    def plan(self, class_item_id: str, level_delta: int) -> list[AdvancementStep]:
        """Build the flight plan for a level change.

        Planning fails closed: missing or malformed configuration yields an
        empty plan and a recorded ``planning_failure``, never an exception.

        Returns:
            The planned steps.
        """
        self._require_state("plan", FlightState.IDLE)
        self._state = FlightState.PLANNING
        self._steps = []

        class_item = self._clone.get_item(class_item_id)
        if class_item is None or class_item.type != "class":
            self._fail_planning(
                "Level change target is not a class item",
                item_id=class_item_id,
                item_type=class_item.type if class_item is not None else None,
            )
            self._state = FlightState.IDLE
            return []

        self._class_item = class_item
        self._start_level = class_item.system.levels
        self._start_character_level = sum(item.system.levels for item in self._clone.items_of_type("class"))
        room = self._rules.max_level - self._start_character_level
        self._target_level = max(0, min(self._start_level + level_delta, self._start_level + room))

        if self._rules.disable_advancements:
            logger.info("Advancements disabled, level change without steps", class_id=class_item_id)
        elif self._target_level != self._start_level:
            failures: list[ConfigurationError] = []
            steps = self._build_steps(self._levels(), failures)
            if failures:
                self._fail_planning(
                    "Advancement configuration is invalid",
                    errors=[failure.message for failure in failures],
                )
            else:
                self._steps = steps

        logger.info(
            "Flight planned",
            class_id=class_item_id,
            from_level=self._start_level,
            to_level=self._target_level,
            steps=len(self._steps),
        )
        self._state = FlightState.IDLE
        return list(self._steps)

    def _replan(self, step: AdvancementStep) -> None:
        """Re-gather pending steps after the current step changed the embedded items."""
        done = self._steps[: self._index + 1]
        seen = {planned.key for planned in done}
        failures: list[ConfigurationError] = []

        current = [
            planned
            for planned in self._gather(step.class_level, step.character_level, step.direction, failures)
            if planned.key not in seen
        ]
        later = self._build_steps(
            [pair for pair in self._levels() if pair[0] > step.class_level],
            failures,
        )
        for failure in failures:
            logger.warning("Skipping misconfigured advancement", error=failure.message)
        self._steps = done + current + later

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def _set_class_level(self, level: int) -> None:
        class_item = self._class_item
        if class_item.system.levels == level:
            return
        class_item.update_source({"system.levels": level}, rules=self._rules)
        details = getattr(self._clone.system, "details", None)
        if level >= 1 and details is not None and getattr(details, "original_class", None) == "":
            self._clone.update_source({"system.details.original_class": class_item.id}, rules=self._rules)

    def _execute(self, step: AdvancementStep, data: Mapping[str, Any]) -> None:
        self._state = FlightState.APPLYING
        item_ids = {item.id for item in self._clone.items}
        advancement = step.advancement
        if step.direction is StepDirection.FORWARD:
            advancement.apply(step.level, data)
        else:
            step.reversal = advancement.reverse(step.level)
        step.done = True
        logger.info(
            "Advancement step applied" if step.direction is StepDirection.FORWARD else "Advancement step reversed",
            kind=advancement.kind,
            advancement_id=advancement.id,
            level=step.level,
        )
        if step.direction is StepDirection.FORWARD and {item.id for item in self._clone.items} != item_ids:
            self._replan(step)
        self._state = FlightState.IDLE

    def _advance(self) -> None:
        """Run steps until one needs input or the plan is exhausted."""
        while self._index < len(self._steps):
            step = self._steps[self._index]
            if self._clone.get_item(step.advancement.item.id) is None:
                logger.debug("Skipping step of removed item", advancement_id=step.advancement.id)
                self._index += 1
                continue
            self._set_class_level(step.class_level)
            if not step.automatic:
                self._state = FlightState.AWAITING_INPUT
                return
            try:
                self._execute(step, step.advancement.default_input(step.level))
            except Exception as exc:
                self._abort(exc)
            self._index += 1
        self._complete()

    def start(self) -> FlightState:
        """Begin the flight, running steps until input is needed."""
        self._require_state("start", FlightState.IDLE)
        if self._class_item is None:
            # Nothing to level; a failed plan commits nothing
            self._state = FlightState.COMPLETE
            return self._state
        bind_context(actor_id=self._original.id, class_id=self._class_item.id)
        self._advance()
        return self._state

    def submit(self, data: Mapping[str, Any]) -> FlightState:
        """Apply the awaiting step with player input and continue the flight.

        Invalid input raises ``ValidationError`` and leaves the step awaiting
        input; the actor has not been touched.

        Raises:
            ValidationError: If the input violates the step's configuration.
            FlightAbortedError: If applying failed and the flight was rolled back.
            InvalidFlightStateError: If no step is awaiting input.
        """
        self._require_state("submit input", FlightState.AWAITING_INPUT)
        step = self._steps[self._index]
        try:
            self._execute(step, data)
        except ValidationError:
            self._state = FlightState.AWAITING_INPUT
            raise
        except Exception as exc:
            self._abort(exc)
        self._index += 1
        self._advance()
        return self._state

    def cancel(self) -> None:
        """Abort the flight, reversing every step applied so far."""
        self._require_state("cancel", FlightState.IDLE, FlightState.AWAITING_INPUT)
        self._rollback()
        self._state = FlightState.ABORTED
        logger.info("Flight cancelled", steps_rolled_back=sum(step.done for step in self._steps))
        self._finish()

    def run(self, prompt: Callable[[AdvancementStep], Mapping[str, Any] | None]) -> Actor | None:
        """Run the flight to the end, asking ``prompt`` for each step's input.

        A prompt returning None cancels the flight.

        Returns:
            The committed actor.

        Raises:
            FlightAbortedError: If the flight was cancelled or a step failed.
        """
        if self._state is FlightState.IDLE and not any(step.done for step in self._steps):
            self.start()
        while self._state is FlightState.AWAITING_INPUT:
            step = self._steps[self._index]
            data = prompt(step)
            if data is None:
                self.cancel()
                raise FlightAbortedError(
                    "Flight cancelled by the player",
                    advancement_id=step.advancement.id,
                    level=step.level,
                )
            self.submit(data)
        return self._result

    # -------------------------------------------------------------------------
    # Completion & rollback
    # -------------------------------------------------------------------------

    def _rollback(self) -> None:
        for step in reversed(self._steps):
            if not step.done:
                continue
            advancement = step.advancement
            if step.direction is StepDirection.FORWARD:
                record = advancement.reverse(step.level)
                if record.error is not None:
                    logger.warning("Rollback left orphaned items", orphaned=record.orphaned)
            elif step.reversal is not None:
                advancement.restore(step.level, step.reversal.value, step.reversal.retained_items)
            step.done = False

        self._set_class_level(self._start_level)
        details = getattr(self._original.system, "details", None)
        if details is not None and hasattr(details, "original_class"):
            self._clone.update_source(
                {"system.details.original_class": details.original_class},
                rules=self._rules,
            )
        remaining = diff_data(self._original.snapshot(), self._clone.snapshot(), "actor")
        if remaining:
            logger.warning("Rollback did not restore every change", paths=sorted(remaining))
        self._clone = self._original.clone()

    def _abort(self, exc: Exception) -> None:
        step = self._steps[self._index] if self._index < len(self._steps) else None
        logger.error(
            "Flight aborted",
            error=str(exc),
            advancement_id=step.advancement.id if step else None,
            level=step.level if step else None,
        )
        self._rollback()
        self._state = FlightState.ABORTED
        self._finish()
        raise FlightAbortedError(
            "Level change aborted and rolled back",
            advancement_id=step.advancement.id if step else None,
            level=step.level if step else None,
            details={"cause": str(exc)},
        ) from exc

    def _complete(self) -> None:
        self._set_class_level(self._target_level)
        update = ActorUpdate.from_diff(self._original, self._clone)
        if self._store is not None and not update.is_empty:
            self._result = self._store.apply_update(self._original.id, update)
        else:
            self._result = self._clone
        self._state = FlightState.COMPLETE
        logger.info(
            "Flight complete",
            level=self._target_level,
            steps=sum(step.done for step in self._steps),
        )
        self._finish()

    def _finish(self) -> None:
        unbind_context("actor_id", "class_id")


__all__ = [
    "FlightState",
    "StepDirection",
    "AdvancementStep",
    "AdvancementManager",
]
