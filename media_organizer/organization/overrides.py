"""
Operator review of a plan before anything touches the disk.

A ReviewSession owns one immutable plan and the overrides keyed by position
in it. Input arrives as discrete InputEvents, processed one at a time:

    REVIEWING ──TOGGLE_RENAME──> RENAME_INPUT ──COMMIT/CANCEL_RENAME──> REVIEWING
    REVIEWING ──CONFIRM / CANCEL──> TERMINAL

Rendering is left to the caller, which reads plan, overrides,
selected_index, rename_text and phase after each event.
"""
import logging
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Sequence

from ..exceptions import InvalidOverrideError
from ..models import MoveOperation, Override, OverrideKind, PlannedOperation


class ReviewPhase(Enum):
    REVIEWING = 'reviewing'
    RENAME_INPUT = 'rename_input'
    TERMINAL = 'terminal'


class ReviewOutcome(Enum):
    EXECUTE = 'execute'
    CANCEL = 'cancel'


class InputEvent(Enum):
    UP = 'up'
    DOWN = 'down'
    TOGGLE_IGNORE = 'toggle_ignore'
    TOGGLE_DELETE = 'toggle_delete'
    TOGGLE_RENAME = 'toggle_rename'
    COMMIT_RENAME = 'commit_rename'
    CANCEL_RENAME = 'cancel_rename'
    CONFIRM = 'confirm'
    CANCEL = 'cancel'


def toggle_override(current: Optional[Override], requested: Override) -> Optional[Override]:
    """Same kind twice clears the override; a different kind replaces it."""
    if current is not None and current.kind == requested.kind:
        return None
    return requested


def initial_rename_text(op: PlannedOperation) -> str:
    if isinstance(op, MoveOperation):
        return op.target.name
    return op.source.name


def rename_target(op: PlannedOperation, name: str) -> Path:
    """
    A rename keeps a planned move in its target folder. For a planned delete
    the file stays in its own folder under the new name.
    """
    if isinstance(op, MoveOperation):
        return op.target_dir / name
    return op.source.parent / name


class ReviewSession:
    def __init__(self, plan: Sequence[PlannedOperation]):
        self.plan = tuple(plan)
        self._overrides: Dict[int, Override] = {}
        self.selected_index = 0
        self.phase = ReviewPhase.REVIEWING
        self.outcome: Optional[ReviewOutcome] = None
        self.rename_text = ''

    @property
    def overrides(self) -> Mapping[int, Override]:
        return MappingProxyType(self._overrides)

    @property
    def selected(self) -> Optional[PlannedOperation]:
        if not self.plan:
            return None
        return self.plan[self.selected_index]

    def override_for(self, index: int) -> Optional[Override]:
        return self._overrides.get(index)

    def set_override(self, index: int, override: Optional[Override]):
        if not 0 <= index < len(self.plan):
            raise InvalidOverrideError(f"No plan entry at index {index} (plan has {len(self.plan)})")
        if override is None:
            self._overrides.pop(index, None)
        else:
            self._overrides[index] = override

    def handle(self, event: InputEvent, text: Optional[str] = None):
        """Applies one input event. Events that mean nothing in the current phase are ignored."""
        if self.phase is ReviewPhase.REVIEWING:
            self._handle_reviewing(event)
        elif self.phase is ReviewPhase.RENAME_INPUT:
            self._handle_rename_input(event, text)

    def _handle_reviewing(self, event: InputEvent):
        if event is InputEvent.UP:
            self.selected_index = max(self.selected_index - 1, 0)
        elif event is InputEvent.DOWN:
            self.selected_index = max(min(self.selected_index + 1, len(self.plan) - 1), 0)
        elif event is InputEvent.CONFIRM:
            self._finish(ReviewOutcome.EXECUTE)
        elif event is InputEvent.CANCEL:
            self._finish(ReviewOutcome.CANCEL)
        elif not self.plan:
            return
        elif event is InputEvent.TOGGLE_IGNORE:
            self._toggle(Override.ignore())
        elif event is InputEvent.TOGGLE_DELETE:
            self._toggle(Override.delete())
        elif event is InputEvent.TOGGLE_RENAME:
            current = self.override_for(self.selected_index)
            if current is not None and current.kind is OverrideKind.RENAME:
                self.set_override(self.selected_index, None)
            else:
                self.rename_text = initial_rename_text(self.selected)
                self.phase = ReviewPhase.RENAME_INPUT

    def _handle_rename_input(self, event: InputEvent, text: Optional[str]):
        if event is InputEvent.CANCEL_RENAME:
            self.phase = ReviewPhase.REVIEWING
        elif event is InputEvent.COMMIT_RENAME:
            if text is not None:
                self.rename_text = text
            name = self.rename_text.strip()
            if not name:
                return
            new_path = rename_target(self.selected, name)
            self.set_override(self.selected_index, Override.rename(new_path))
            logging.debug(f"Override #{self.selected_index}: rename to {new_path}")
            self.phase = ReviewPhase.REVIEWING

    def _toggle(self, requested: Override):
        current = self.override_for(self.selected_index)
        self.set_override(self.selected_index, toggle_override(current, requested))

    def _finish(self, outcome: ReviewOutcome):
        self.phase = ReviewPhase.TERMINAL
        self.outcome = outcome
