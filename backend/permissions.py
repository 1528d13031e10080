"""
Admin gate for calendar interactions that would write to the server.

Every user-initiated mutation goes through check_mutation(). Only admins
get Allowed; everyone else gets Denied, which says whether the widget has
to undo a visual change (drag and resize move the item before the
controller hears about it, clicks and selections do not).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union


class MutationKind(Enum):
    DATE_CLICK = "date_click"
    RANGE_SELECT = "range_select"
    DRAG_MOVE = "drag_move"
    RESIZE = "resize"


_VISUAL_KINDS = (MutationKind.DRAG_MOVE, MutationKind.RESIZE)


@dataclass(frozen=True)
class Allowed:
    kind: MutationKind


@dataclass(frozen=True)
class Denied:
    kind: MutationKind
    revert: bool


GateDecision = Union[Allowed, Denied]


def check_mutation(is_admin: bool, kind: MutationKind) -> GateDecision:
    """Decide whether an interaction may be forwarded to the remote authority."""
    if is_admin:
        return Allowed(kind)
    return Denied(kind, revert=kind in _VISUAL_KINDS)
