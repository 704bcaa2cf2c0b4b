from flask import Blueprint, request, abort, current_app
from typing import Any, Dict, Optional, Tuple
from app.exceptions import BusinessLogicError, NotFoundError
from app.database import get_session
from app.models import Customer, Ticket, TicketStatus
from app.services.attachment_service import attachments_from_uploads
from app.services.form_service import TicketDraft, ticket_result, save_ticket
from app.services.grouping_service import bucket_tickets_by_status
from app.services.location_service import add_location_to_customer
from app.services.search_service import filter_tickets
from app.services.ticket_status_service import apply_status, cycle_status
from app.utils.serializers import sections_to_list, ticket_detail, ticket_summary
from app.blueprints.forms import form_id_list, form_optional_id, form_places, form_text, uploaded_files

tickets_bp = Blueprint('tickets', __name__, url_prefix='/tickets')


def _get_ticket_or_404(session, ticket_id: int) -> Ticket:
    ticket = session.query(Ticket).filter(Ticket.id == ticket_id).first()
    if not ticket:
        raise NotFoundError('Ticket not found')
    return ticket


def _default_customer_id(session) -> Optional[int]:
    """The form preselects the first customer when none is chosen."""
    customer = session.query(Customer).order_by(Customer.id).first()
    return customer.id if customer else None


def _fill_draft_from_form(session, draft: TicketDraft) -> TicketDraft:
    """
    Apply posted fields to a ticket draft.

    A `new_location` place is saved to the selected customer right away
    and becomes the location choice.
    """
    customer_id = form_optional_id('customer_id')
    if customer_id is not None:
        draft.customer_id = customer_id
    elif draft.customer_id is None:
        draft.customer_id = _default_customer_id(session)

    draft.service_name = form_text('service_name')
    if 'location' in request.form:
        draft.location_choice = form_text('location')
    status = form_text('status')
    if status:
        draft.status = TicketStatus.parse(status)

    new_places = form_places('new_location')
    if new_places and draft.customer_id is not None:
        customer = session.query(Customer).filter(Customer.id == draft.customer_id).first()
        if not customer:
            raise NotFoundError('Customer not found')
        draft.location_choice = add_location_to_customer(session, customer, new_places[0])

    draft.attachments.retain_ids(form_id_list('keep_attachment_ids'))
    draft.attachments.extend(attachments_from_uploads(uploaded_files()))
    return draft


@tickets_bp.route('/')
def list_tickets() -> Dict[str, Any]:
    """All tickets in In Progress / Pending / Done buckets, filtered by ?q=."""
    session = get_session()
    search_query = request.args.get('q', '').strip()

    tickets = session.query(Ticket).all()
    sections = bucket_tickets_by_status(filter_tickets(tickets, search_query))

    return {
        'query': search_query,
        'sections': sections_to_list(sections, ticket_summary),
    }


@tickets_bp.route('/new', methods=['POST'])
def create_ticket() -> Tuple[Dict[str, Any], int]:
    """Create a ticket from the posted form (status defaults to pending)."""
    session = get_session()

    try:
        draft = _fill_draft_from_form(session, TicketDraft())
        ticket = save_ticket(session, ticket_result(draft))
        session.commit()
        return {'status': 'ok', 'ticket': ticket_detail(ticket)}, 201
    except (BusinessLogicError, NotFoundError):
        session.rollback()
        raise
    except Exception as e:
        session.rollback()
        current_app.logger.error(f"Error creating ticket: {e}")
        raise BusinessLogicError(f'Error creating ticket: {str(e)}')


@tickets_bp.route('/<int:ticket_id>')
def view_ticket(ticket_id: int) -> Dict[str, Any]:
    session = get_session()
    ticket = session.query(Ticket).filter(Ticket.id == ticket_id).first()
    if not ticket:
        abort(404)
    return {'ticket': ticket_detail(ticket)}


@tickets_bp.route('/<int:ticket_id>/edit', methods=['POST'])
def update_ticket(ticket_id: int) -> Dict[str, Any]:
    """
    Update a ticket.

    Attachments are replaced by the working list (keep_attachment_ids plus
    uploaded files); posting neither clears them.
    """
    session = get_session()
    ticket = _get_ticket_or_404(session, ticket_id)

    try:
        draft = _fill_draft_from_form(session, TicketDraft.from_ticket(ticket))
        ticket = save_ticket(session, ticket_result(draft, target_id=ticket_id))
        session.commit()
        return {'status': 'ok', 'ticket': ticket_detail(ticket)}
    except (BusinessLogicError, NotFoundError):
        session.rollback()
        raise
    except Exception as e:
        session.rollback()
        current_app.logger.error(f"Error updating ticket {ticket_id}: {e}")
        raise BusinessLogicError(f'Error updating ticket: {str(e)}')


@tickets_bp.route('/<int:ticket_id>/delete', methods=['POST'])
def delete_ticket(ticket_id: int) -> Dict[str, Any]:
    session = get_session()
    ticket = _get_ticket_or_404(session, ticket_id)

    try:
        session.delete(ticket)
        session.commit()
        current_app.logger.info(f"Ticket {ticket_id} deleted")
        return {'status': 'ok', 'message': f'Ticket "{ticket.display_service_name}" deleted'}
    except Exception as e:
        session.rollback()
        raise BusinessLogicError(f'Error deleting ticket: {str(e)}')


@tickets_bp.route('/<int:ticket_id>/status', methods=['POST'])
def set_status(ticket_id: int) -> Dict[str, Any]:
    """Explicit status picker."""
    session = get_session()
    ticket = _get_ticket_or_404(session, ticket_id)
    status = TicketStatus.parse(form_text('status'))

    try:
        apply_status(ticket, status)
        session.commit()
        return {'status': 'ok', 'ticket': ticket_summary(ticket)}
    except Exception as e:
        session.rollback()
        current_app.logger.error(f"Error changing status of ticket {ticket_id}: {e}")
        raise BusinessLogicError(f'Error changing ticket status: {str(e)}')


@tickets_bp.route('/<int:ticket_id>/cycle', methods=['POST'])
def cycle(ticket_id: int) -> Dict[str, Any]:
    """Single-gesture status change: pending -> in progress -> done -> pending."""
    session = get_session()
    ticket = _get_ticket_or_404(session, ticket_id)

    try:
        cycle_status(ticket)
        session.commit()
        return {'status': 'ok', 'ticket': ticket_summary(ticket)}
    except Exception as e:
        session.rollback()
        current_app.logger.error(f"Error cycling status of ticket {ticket_id}: {e}")
        raise BusinessLogicError(f'Error changing ticket status: {str(e)}')
