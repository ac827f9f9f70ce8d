"""Drop-target hover indicator.

Pure reducer: only hover-start raises the flag; a drop or a cancel lowers it.
"""

from ncmdump_service.queue.events import DragCancelled, DragHoverStart, Drop, QueueEvent


def reduce_hover(is_hovering: bool, event: QueueEvent) -> bool:
    if isinstance(event, DragHoverStart):
        return True
    if isinstance(event, (Drop, DragCancelled)):
        return False
    return is_hovering
