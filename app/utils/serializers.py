"""JSON shapes returned by the blueprints."""
from typing import Any, Dict, Iterable, List

from app.models import Attachment, Customer, Location, Ticket
from app.services.grouping_service import Section
from app.utils.formatters import iso_datetime, datetime_display, file_size_display


def attachment_to_dict(attachment: Attachment) -> Dict[str, Any]:
    return {
        'id': attachment.id,
        'file_name': attachment.file_name,
        'file_type': attachment.file_type,
        'is_image': attachment.is_image,
        'size': attachment.size,
        'size_display': file_size_display(attachment.size),
    }


def location_to_dict(location: Location) -> Dict[str, Any]:
    return {
        'id': location.id,
        'name': location.name,
        'latitude': location.latitude,
        'longitude': location.longitude,
    }


def ticket_summary(ticket: Ticket) -> Dict[str, Any]:
    """Row shape used in ticket lists."""
    return {
        'id': ticket.id,
        'service_name': ticket.display_service_name,
        'customer_id': ticket.customer_id,
        'customer_name': ticket.customer.display_name if ticket.customer else None,
        'location_name': ticket.location_name,
        'status': ticket.status.value,
        'status_label': ticket.status.label,
        'created_at': iso_datetime(ticket.created_at),
        'closed_at': iso_datetime(ticket.closed_at),
    }


def ticket_detail(ticket: Ticket) -> Dict[str, Any]:
    data = ticket_summary(ticket)
    data.update({
        'latitude': ticket.latitude,
        'longitude': ticket.longitude,
        'created_display': datetime_display(ticket.created_at),
        'closed_display': datetime_display(ticket.closed_at) if ticket.closed_at else None,
        'attachments': [attachment_to_dict(a) for a in ticket.attachments],
    })
    return data


def customer_summary(customer: Customer) -> Dict[str, Any]:
    return {
        'id': customer.id,
        'name': customer.display_name,
        'phone': customer.phone,
        'email': customer.email,
    }


def customer_detail(customer: Customer) -> Dict[str, Any]:
    data = customer_summary(customer)
    data.update({
        'address': customer.address,
        'description': customer.description,
        'created_at': iso_datetime(customer.created_at),
        'locations': [location_to_dict(loc) for loc in customer.locations],
        'attachments': [attachment_to_dict(a) for a in customer.attachments],
        'ticket_count': len(customer.tickets),
    })
    return data


def sections_to_list(sections: Iterable[Section], item_serializer) -> List[Dict[str, Any]]:
    return [
        {
            'title': section.title,
            'key': section.key,
            'count': len(section.items),
            'items': [item_serializer(item) for item in section.items],
        }
        for section in sections
    ]
