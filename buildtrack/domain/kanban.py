"""
Kanban board: column layout per item type and drag-and-drop status moves.

A move is optimistic: the local copy is patched first, then the injected
``update_status`` callable persists it. If persisting raises, the board is
restored to its pre-move snapshot and ``MoveFailedError`` is raised.
"""

import copy
import logging

from buildtrack.core.exceptions import MoveFailedError, NotFoundError, ValidationError
from buildtrack.domain.statuses import MILESTONE, RFI, SUBMITTAL, TASK, STATUSES

logger = logging.getLogger(__name__)

STATUS_COLUMNS = {
    TASK: (
        {"id": "Not Started", "label": "To Do"},
        {"id": "In Progress", "label": "In Progress"},
        {"id": "Awaiting Response", "label": "Waiting"},
        {"id": "Completed", "label": "Done"},
    ),
    RFI: tuple({"id": s, "label": s} for s in STATUSES[RFI]),
    SUBMITTAL: tuple({"id": s, "label": s} for s in STATUSES[SUBMITTAL]),
    MILESTONE: tuple({"id": s, "label": s} for s in STATUSES[MILESTONE]),
}

# Statuses with no column; items in them stay off the board
OFF_BOARD_STATUSES = {
    TASK: frozenset({"Cancelled"}),
}


def column_ids(item_type):
    return [c["id"] for c in STATUS_COLUMNS[item_type]]


class KanbanBoard:
    """In-memory board over one project's items of a single type.

    Args:
        items: list of row dicts (``id``, ``status``, ...). The board keeps
            its own copies.
        item_type: one of the keys of ``STATUS_COLUMNS``.
        update_status: ``callable(item_id, new_status)`` that persists the
            change; any exception it raises counts as a failed move.
    """

    def __init__(self, items, item_type, update_status):
        if item_type not in STATUS_COLUMNS:
            raise ValidationError(f"No board for item type {item_type!r}")
        self.item_type = item_type
        self.items = [dict(item) for item in items or []]
        self._update_status = update_status

    def _find(self, item_id):
        for item in self.items:
            if item.get("id") == item_id:
                return item
        return None

    def columns(self):
        """Items grouped into the type's columns, in column order.

        Items in an ``OFF_BOARD_STATUSES`` status (cancelled tasks) are not
        shown; they still count in the list views.
        """
        layout = []
        for column in STATUS_COLUMNS[self.item_type]:
            layout.append({
                "id": column["id"],
                "label": column["label"],
                "items": [i for i in self.items if i.get("status") == column["id"]],
            })
        return layout

    def off_board(self):
        hidden = OFF_BOARD_STATUSES.get(self.item_type, frozenset())
        return [i for i in self.items if i.get("status") in hidden]

    def move(self, item_id, target_status) -> bool:
        """Drop ``item_id`` onto ``target_status``.

        Returns False for a drop onto the item's own column (nothing is
        written), True once the new status is persisted.
        """
        if target_status not in column_ids(self.item_type):
            raise ValidationError(
                f"{target_status!r} is not a {self.item_type} column",
                details={"status": target_status},
            )
        item = self._find(item_id)
        if item is None:
            raise NotFoundError(resource=self.item_type, resource_id=item_id)
        if item.get("status") == target_status:
            return False

        snapshot = copy.deepcopy(self.items)
        self.items = [
            {**i, "status": target_status} if i.get("id") == item_id else i
            for i in self.items
        ]
        try:
            self._update_status(item_id, target_status)
        except Exception as exc:
            self.items = snapshot
            logger.warning("Board move reverted: %s %s -> %s (%s)",
                           self.item_type, item_id, target_status, exc)
            raise MoveFailedError(item_id, target_status, self.columns()) from exc
        return True
