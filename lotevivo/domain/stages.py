"""Stage transition validation, purpose filtering and event meta normalization.

Pure domain logic with no external dependencies.
"""
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from lotevivo.core.exceptions import ValidationError


class PurposeMode(str, Enum):
    """How a catalog query treats the optional purpose dimension."""

    ANY = "any"  # no filtering
    NONE = "none"  # only stages without purpose
    EXACT = "exact"  # only stages with the given purpose


@dataclass(frozen=True)
class PurposeFilter:
    """Tri-state purpose filter: not filtering, explicitly none, or a value."""

    mode: PurposeMode = PurposeMode.ANY
    value: str | None = None

    @classmethod
    def any(cls) -> "PurposeFilter":
        return cls(PurposeMode.ANY)

    @classmethod
    def without_purpose(cls) -> "PurposeFilter":
        return cls(PurposeMode.NONE)

    @classmethod
    def exact(cls, value: str) -> "PurposeFilter":
        if not value:
            raise ValidationError("purpose must not be empty")
        return cls(PurposeMode.EXACT, value)

    @classmethod
    def from_query(cls, purpose: str | None, without_purpose: bool = False) -> "PurposeFilter":
        """Build a filter from the two HTTP query options.

        Raises:
            ValidationError: both options were supplied
        """
        if without_purpose and purpose is not None:
            raise ValidationError("Use either purpose or without_purpose, not both")
        if without_purpose:
            return cls.without_purpose()
        if purpose is not None:
            return cls.exact(purpose)
        return cls.any()

    def matches(self, purpose: str | None) -> bool:
        if self.mode == PurposeMode.NONE:
            return purpose is None
        if self.mode == PurposeMode.EXACT:
            return purpose == self.value
        return True


class StageLike(Protocol):
    id: uuid.UUID
    sort_order: int
    is_active: bool


class TransitionRejection(str, Enum):
    """Why a transition was refused; each maps to a distinct API error."""

    ALREADY_IN_STAGE = "already_in_stage"
    STAGE_NOT_FOUND = "stage_not_found"
    STAGE_INACTIVE = "stage_inactive"


@dataclass
class TransitionResult:
    """Result of a transition attempt."""

    allowed: bool
    reason: str = ""
    rejection: TransitionRejection | None = None


def validate_transition(
    current_stage_id: uuid.UUID | None,
    target_stage_id: uuid.UUID,
    target_stage: StageLike | None,
) -> TransitionResult:
    """Validate whether moving a lot to ``target_stage_id`` is allowed.

    Pure function -- no side effects, no DB access.

    Args:
        current_stage_id: The lot's stage before the move (None = no stage yet)
        target_stage_id: Requested destination
        target_stage: Destination as resolved within the caller's tenant,
            None when it does not exist there

    Returns:
        TransitionResult with allowed flag, reason and rejection kind

    Rules:
        - Moving to the stage the lot is already in is rejected
        - The destination must exist in the tenant
        - The destination must be active
        - Sort order and terminal flags never block: skipping stages, moving
          backwards and leaving a terminal stage are all allowed
    """
    if current_stage_id is not None and current_stage_id == target_stage_id:
        return TransitionResult(False, "Lot is already in this stage", TransitionRejection.ALREADY_IN_STAGE)

    if target_stage is None:
        return TransitionResult(False, "Destination stage not found", TransitionRejection.STAGE_NOT_FOUND)

    if not target_stage.is_active:
        return TransitionResult(False, "Destination stage is inactive", TransitionRejection.STAGE_INACTIVE)

    return TransitionResult(True)


def next_stage(stages: Sequence[StageLike], current_stage_id: uuid.UUID | None) -> StageLike | None:
    """Suggest the stage after ``current_stage_id`` by sort order.

    A lot without a stage is suggested the first stage. Only a hint for the
    UI; validate_transition accepts any active stage.
    """
    ordered = sorted((s for s in stages if s.is_active), key=lambda s: s.sort_order)
    if not ordered:
        return None
    if current_stage_id is None:
        return ordered[0]
    for idx, stage in enumerate(ordered):
        if stage.id == current_stage_id:
            return ordered[idx + 1] if idx + 1 < len(ordered) else None
    return None


def normalize_meta(meta: Any) -> dict[str, Any]:
    """Return ``meta`` as a string-keyed dict, or ``{}`` when it is not one.

    Absent, null, lists, scalars and maps with non-string keys all normalize
    to an empty dict so consumers never need a null check.
    """
    if not isinstance(meta, dict):
        return {}
    if not all(isinstance(key, str) for key in meta):
        return {}
    return dict(meta)
