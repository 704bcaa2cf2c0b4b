"""Ticket status transitions and closed-date bookkeeping."""
import logging
from datetime import datetime
from typing import Optional, Union

from app.models import Ticket, TicketStatus

logger = logging.getLogger(__name__)

_CYCLE = {
    TicketStatus.PENDING: TicketStatus.IN_PROGRESS,
    TicketStatus.IN_PROGRESS: TicketStatus.DONE,
    TicketStatus.DONE: TicketStatus.PENDING,
}


def next_in_cycle(status: TicketStatus) -> TicketStatus:
    """pending -> in_progress -> done -> pending."""
    return _CYCLE[TicketStatus.parse(status)]


def apply_status(
    ticket: Ticket,
    new_status: Union[TicketStatus, str],
    now: Optional[datetime] = None
) -> Ticket:
    """
    Set a ticket's status, keeping closed_at consistent with it.

    Entering DONE stamps closed_at (unless it is already set); any other
    status clears it. Every state is reachable from every other state.

    Args:
        ticket: Ticket to mutate (not flushed)
        new_status: Target status (enum, value or label)
        now: Timestamp to use for closed_at (defaults to datetime.now())

    Returns:
        The same ticket
    """
    status = TicketStatus.parse(new_status)
    previous = ticket.status

    ticket.status = status
    if status == TicketStatus.DONE:
        if ticket.closed_at is None:
            ticket.closed_at = now or datetime.now()
    else:
        ticket.closed_at = None

    if previous != status:
        logger.info(
            f"[TICKETS] Ticket {ticket.id}: "
            f"{previous.value if previous else None} -> {status.value}"
        )
    return ticket


def cycle_status(ticket: Ticket, now: Optional[datetime] = None) -> Ticket:
    """Advance a ticket one step along the status cycle."""
    current = ticket.status or TicketStatus.PENDING
    return apply_status(ticket, next_in_cycle(current), now=now)
