"""
Flask CLI commands.

Commands:
- flask init-db: Create database tables
- flask seed-demo: Insert a small demo customer/ticket graph
"""

import click
from datetime import datetime, timedelta
from app.database import create_all, drop_all, get_session
from app.models import Customer, Location, Ticket, TicketStatus
from app.services.ticket_status_service import apply_status


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    @click.option('--reset', is_flag=True, help='Drop existing tables first')
    def init_db_command(reset):
        """Create all tables."""
        if reset:
            click.confirm('This deletes ALL data. Continue?', abort=True)
            drop_all()
            click.echo(click.style('Tables dropped.', fg='yellow'))
        create_all()
        click.echo(click.style('Database initialized.', fg='green', bold=True))

    @app.cli.command('seed-demo')
    def seed_demo():
        """Insert demo customers, locations and tickets."""
        db_session = get_session()
        if db_session.query(Customer).count():
            click.echo(click.style('Database already has customers; skipping.', fg='red'))
            return

        now = datetime.now()
        try:
            maria = Customer(name='Maria Lopez', phone='555-0101', email='maria@example.com',
                             address='1 Infinite Loop, Cupertino', created_at=now)
            maria.locations.append(Location(name='Apple Park', latitude=37.3349, longitude=-122.00902))
            bob = Customer(name='bob', phone='555-0199', email='bob@example.com', created_at=now)

            visits = [
                (maria, 'Marketing Visit', 'Apple Park', TicketStatus.IN_PROGRESS),
                (maria, 'Printer repair', 'Apple Park', TicketStatus.PENDING),
                (bob, 'Network install', '', TicketStatus.DONE),
            ]
            for offset, (customer, service, location, status) in enumerate(visits):
                ticket = Ticket(customer=customer, service_name=service, location_name=location,
                                created_at=now - timedelta(days=offset), status=TicketStatus.PENDING)
                apply_status(ticket, status, now=now)
                db_session.add(ticket)

            db_session.add_all([maria, bob])
            db_session.commit()
            click.echo(click.style('Demo data inserted.', fg='green', bold=True))
        except Exception as e:
            db_session.rollback()
            click.echo(click.style(f'Error inserting demo data: {str(e)}', fg='red'))
