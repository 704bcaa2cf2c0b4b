from flask import Blueprint, request, abort, current_app
from typing import Any, Dict, Tuple
from app.exceptions import BusinessLogicError, NotFoundError
from app.database import get_session
from app.models import Customer
from app.services.attachment_service import attachments_from_uploads
from app.services.form_service import CustomerDraft, customer_result, save_customer
from app.services.grouping_service import group_customers_alphabetically, bucket_tickets_by_status
from app.services.location_service import add_location_to_customer
from app.services.search_service import filter_customers, filter_customer_tickets
from app.utils.serializers import (
    customer_detail, customer_summary, location_to_dict, sections_to_list, ticket_summary
)
from app.blueprints.forms import form_id_list, form_places, form_text, uploaded_files

customers_bp = Blueprint('customers', __name__, url_prefix='/customers')


def _get_customer_or_404(session, customer_id: int) -> Customer:
    customer = session.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise NotFoundError('Customer not found')
    return customer


def _fill_draft_from_form(draft: CustomerDraft) -> CustomerDraft:
    """Apply posted fields and working-list changes to a draft."""
    draft.name = form_text('name')
    draft.address = form_text('address')
    draft.phone = form_text('phone')
    draft.email = form_text('email')
    draft.description = form_text('description')

    draft.locations.retain_ids(form_id_list('keep_location_ids'))
    for place in form_places('new_locations'):
        draft.locations.add_place(place)

    draft.attachments.retain_ids(form_id_list('keep_attachment_ids'))
    draft.attachments.extend(attachments_from_uploads(uploaded_files()))
    return draft


@customers_bp.route('/')
def list_customers() -> Dict[str, Any]:
    """Customers grouped into an alphabetical index, filtered by ?q=."""
    session = get_session()
    search_query = request.args.get('q', '').strip()

    customers = session.query(Customer).all()
    sections = group_customers_alphabetically(filter_customers(customers, search_query))

    return {
        'query': search_query,
        'sections': sections_to_list(sections, customer_summary),
    }


@customers_bp.route('/new', methods=['POST'])
def create_customer() -> Tuple[Dict[str, Any], int]:
    """Create a customer from the posted form."""
    session = get_session()
    draft = _fill_draft_from_form(CustomerDraft())

    try:
        customer = save_customer(session, customer_result(draft))
        session.commit()
        return {'status': 'ok', 'customer': customer_detail(customer)}, 201
    except (BusinessLogicError, NotFoundError):
        session.rollback()
        raise
    except Exception as e:
        session.rollback()
        current_app.logger.error(f"Error creating customer: {e}")
        raise BusinessLogicError(f'Error creating customer: {str(e)}')


@customers_bp.route('/<int:customer_id>')
def view_customer(customer_id: int) -> Dict[str, Any]:
    session = get_session()
    customer = session.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        abort(404)
    return {'customer': customer_detail(customer)}


@customers_bp.route('/<int:customer_id>/edit', methods=['POST'])
def update_customer(customer_id: int) -> Dict[str, Any]:
    """
    Update a customer.

    Locations and attachments are replaced by the working list:
    kept ids (keep_location_ids / keep_attachment_ids) plus new items.
    """
    session = get_session()
    customer = _get_customer_or_404(session, customer_id)
    draft = _fill_draft_from_form(CustomerDraft.from_customer(customer))

    try:
        customer = save_customer(session, customer_result(draft, target_id=customer_id))
        session.commit()
        return {'status': 'ok', 'customer': customer_detail(customer)}
    except (BusinessLogicError, NotFoundError):
        session.rollback()
        raise
    except Exception as e:
        session.rollback()
        current_app.logger.error(f"Error updating customer {customer_id}: {e}")
        raise BusinessLogicError(f'Error updating customer: {str(e)}')


@customers_bp.route('/<int:customer_id>/delete', methods=['POST'])
def delete_customer(customer_id: int) -> Dict[str, Any]:
    """Delete a customer with its locations, attachments and tickets."""
    session = get_session()
    customer = _get_customer_or_404(session, customer_id)

    customer_name = customer.display_name
    try:
        session.delete(customer)
        session.commit()
        current_app.logger.info(f"Customer {customer_id} deleted")
        return {'status': 'ok', 'message': f'Customer "{customer_name}" deleted'}
    except Exception as e:
        session.rollback()
        raise BusinessLogicError(f'Error deleting customer: {str(e)}')


@customers_bp.route('/<int:customer_id>/tickets')
def customer_tickets(customer_id: int) -> Dict[str, Any]:
    """A customer's tickets in status buckets, searchable by service, location or status."""
    session = get_session()
    customer = _get_customer_or_404(session, customer_id)
    search_query = request.args.get('q', '').strip()

    sections = bucket_tickets_by_status(filter_customer_tickets(customer, search_query))
    return {
        'customer': customer_summary(customer),
        'query': search_query,
        'sections': sections_to_list(sections, ticket_summary),
    }


@customers_bp.route('/<int:customer_id>/locations', methods=['POST'])
def add_location(customer_id: int) -> Tuple[Dict[str, Any], int]:
    """Save a place picked from location search as a customer location."""
    session = get_session()
    customer = _get_customer_or_404(session, customer_id)
    places = form_places('place')
    if len(places) != 1:
        raise BusinessLogicError('Exactly one place is required')

    try:
        name = add_location_to_customer(session, customer, places[0])
        session.commit()
        location = customer.locations[-1]
        return {'status': 'ok', 'location_name': name, 'location': location_to_dict(location)}, 201
    except Exception as e:
        session.rollback()
        current_app.logger.error(f"Error adding location to customer {customer_id}: {e}")
        raise BusinessLogicError(f'Error adding location: {str(e)}')
