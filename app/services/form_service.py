"""Customer and ticket form handling.

A form is edited as a draft (scalar fields plus working lists). On submit
the draft is validated and turned into exactly one of two results,
Create or Update, which a single handler per owner type applies inside
the caller's session. Nothing is written when validation fails.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Union

from sqlalchemy.orm import Session

from app.exceptions import NotFoundError, ValidationError
from app.models import Attachment, Customer, Location, Ticket, TicketStatus
from app.services.attachment_service import AttachmentWorkingList, replace_attachments
from app.services.location_service import LocationWorkingList
from app.services.ticket_status_service import apply_status

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Drafts
# ---------------------------------------------------------------------------

@dataclass
class CustomerDraft:
    name: str = ''
    address: str = ''
    phone: str = ''
    email: str = ''
    description: str = ''
    locations: LocationWorkingList = field(default_factory=LocationWorkingList)
    attachments: AttachmentWorkingList = field(default_factory=AttachmentWorkingList)

    @classmethod
    def from_customer(cls, customer: Customer) -> 'CustomerDraft':
        """Pre-fill a draft for editing an existing customer."""
        return cls(
            name=customer.name or '',
            address=customer.address or '',
            phone=customer.phone or '',
            email=customer.email or '',
            description=customer.description or '',
            locations=LocationWorkingList.from_customer(customer),
            attachments=AttachmentWorkingList.from_owner(customer),
        )


@dataclass
class TicketDraft:
    customer_id: Optional[int] = None
    service_name: str = ''
    location_choice: str = ''
    status: TicketStatus = TicketStatus.PENDING
    attachments: AttachmentWorkingList = field(default_factory=AttachmentWorkingList)

    @classmethod
    def from_ticket(cls, ticket: Ticket) -> 'TicketDraft':
        return cls(
            customer_id=ticket.customer_id,
            service_name=ticket.service_name or '',
            location_choice=ticket.location_name or '',
            status=ticket.status or TicketStatus.PENDING,
            attachments=AttachmentWorkingList.from_owner(ticket),
        )


Draft = Union[CustomerDraft, TicketDraft]


def validation_errors(draft: Draft) -> List[str]:
    """List the reasons a draft cannot be saved (empty when valid)."""
    errors = []
    if isinstance(draft, CustomerDraft):
        if not draft.name.strip():
            errors.append('Customer name is required')
    elif isinstance(draft, TicketDraft):
        if draft.customer_id is None:
            errors.append('A customer must be selected')
        if not draft.service_name.strip():
            errors.append('Service name is required')
    else:
        raise TypeError(f"Unsupported draft type: {type(draft).__name__}")
    return errors


def is_valid(draft: Draft) -> bool:
    """Pure check used to enable/disable saving a form."""
    return not validation_errors(draft)


def _ensure_valid(draft: Draft) -> None:
    errors = validation_errors(draft)
    if errors:
        raise ValidationError(errors[0], errors=errors)


# ---------------------------------------------------------------------------
# Form results (Create | Update)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CustomerFields:
    name: str
    address: str
    phone: str
    email: str
    description: str
    locations: List[Location]
    attachments: List[Attachment]


@dataclass(frozen=True)
class CustomerCreate:
    fields: CustomerFields


@dataclass(frozen=True)
class CustomerUpdate:
    target_id: int
    fields: CustomerFields


@dataclass(frozen=True)
class TicketFields:
    customer_id: int
    service_name: str
    location_choice: str
    status: TicketStatus
    attachments: List[Attachment]


@dataclass(frozen=True)
class TicketCreate:
    fields: TicketFields


@dataclass(frozen=True)
class TicketUpdate:
    target_id: int
    fields: TicketFields


CustomerFormResult = Union[CustomerCreate, CustomerUpdate]
TicketFormResult = Union[TicketCreate, TicketUpdate]


def customer_result(draft: CustomerDraft, target_id: Optional[int] = None) -> CustomerFormResult:
    """
    Validate a customer draft and build the form result.

    Raises:
        ValidationError: If the draft is not valid
    """
    _ensure_valid(draft)
    fields = CustomerFields(
        name=draft.name.strip(),
        address=draft.address.strip(),
        phone=draft.phone.strip(),
        email=draft.email.strip(),
        description=draft.description.strip(),
        locations=draft.locations.items,
        attachments=draft.attachments.items,
    )
    if target_id is None:
        return CustomerCreate(fields=fields)
    return CustomerUpdate(target_id=target_id, fields=fields)


def ticket_result(draft: TicketDraft, target_id: Optional[int] = None) -> TicketFormResult:
    """
    Validate a ticket draft and build the form result.

    Raises:
        ValidationError: If the draft is not valid
    """
    _ensure_valid(draft)
    fields = TicketFields(
        customer_id=draft.customer_id,
        service_name=draft.service_name.strip(),
        location_choice=(draft.location_choice or '').strip(),
        status=TicketStatus.parse(draft.status),
        attachments=draft.attachments.items,
    )
    if target_id is None:
        return TicketCreate(fields=fields)
    return TicketUpdate(target_id=target_id, fields=fields)


# ---------------------------------------------------------------------------
# Save handlers
# ---------------------------------------------------------------------------

def resolve_location_choice(customer: Customer, chosen: Optional[str]) -> str:
    """Explicit choice, else the customer's first saved location, else ''."""
    chosen = (chosen or '').strip()
    if chosen:
        return chosen
    if customer.locations:
        return customer.locations[0].name or ''
    return ''


def _matching_location(customer: Customer, name: str) -> Optional[Location]:
    for location in customer.locations:
        if location.name == name:
            return location
    return None


def _replace_locations(customer: Customer, locations: List[Location]) -> None:
    # delete-orphan on Customer.locations removes dropped ones at flush
    customer.locations = list(locations)


def save_customer(session: Session, result: CustomerFormResult) -> Customer:
    """
    Apply a customer form result.

    Create inserts a new customer with the working lists attached; Update
    patches fields and replaces locations and attachments wholesale.

    Raises:
        NotFoundError: If the update target does not exist
    """
    if isinstance(result, CustomerCreate):
        customer = Customer(created_at=datetime.now())
        session.add(customer)
    elif isinstance(result, CustomerUpdate):
        customer = session.query(Customer).filter(Customer.id == result.target_id).first()
        if not customer:
            raise NotFoundError('Customer not found')
    else:
        raise TypeError(f"Unsupported customer form result: {type(result).__name__}")

    fields = result.fields
    customer.name = fields.name
    customer.address = fields.address
    customer.phone = fields.phone
    customer.email = fields.email
    customer.description = fields.description

    _replace_locations(customer, fields.locations)
    replace_attachments(session, customer, fields.attachments)

    session.flush()
    action = 'created' if isinstance(result, CustomerCreate) else 'updated'
    logger.info(f"[CUSTOMERS] Customer {customer.id} {action}")
    return customer


def save_ticket(session: Session, result: TicketFormResult, now: Optional[datetime] = None) -> Ticket:
    """
    Apply a ticket form result.

    Create stamps created_at and attaches the working list; Update patches
    the ticket in place and replaces its attachments (no merge). Status
    always goes through apply_status.

    Raises:
        NotFoundError: If the customer or the update target does not exist
    """
    now = now or datetime.now()

    if isinstance(result, TicketCreate):
        ticket = Ticket(created_at=now, status=TicketStatus.PENDING)
    elif isinstance(result, TicketUpdate):
        ticket = session.query(Ticket).filter(Ticket.id == result.target_id).first()
        if not ticket:
            raise NotFoundError('Ticket not found')
    else:
        raise TypeError(f"Unsupported ticket form result: {type(result).__name__}")

    fields = result.fields
    customer = session.query(Customer).filter(Customer.id == fields.customer_id).first()
    if not customer:
        raise NotFoundError('Customer not found')

    location_name = resolve_location_choice(customer, fields.location_choice)
    location = _matching_location(customer, location_name)

    ticket.customer = customer
    ticket.service_name = fields.service_name
    ticket.location_name = location_name
    ticket.latitude = location.latitude if location else None
    ticket.longitude = location.longitude if location else None
    apply_status(ticket, fields.status, now=now)

    if isinstance(result, TicketCreate):
        session.add(ticket)
    replace_attachments(session, ticket, fields.attachments)

    session.flush()
    action = 'created' if isinstance(result, TicketCreate) else 'updated'
    logger.info(f"[TICKETS] Ticket {ticket.id} {action} for customer {customer.id}")
    return ticket
