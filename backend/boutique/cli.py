# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/boutique/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables, default paper sizes and the admin/cashier users.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system seed-demo
#   Load a handful of demo products, customers and promo codes.
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with role and active status.
# - python -m flask users create --username alice --password "Password123!" --role cashier
#   Create a user (prompts if options are omitted).

import click
from decimal import Decimal
from flask.cli import with_appcontext

from .extensions import db
from .models import User, Product, Customer, PromoCode, PaperSize, Category, ROLES
from .services.auth_service import create_user, PasswordValidationError


DEFAULT_PASSWORD = "Password123!"

DEFAULT_PAPER_SIZES = [
    ("Label 50x25 mm", 50, 25),
    ("Label 40x30 mm", 40, 30),
    ("Label 60x40 mm", 60, 40),
]

DEMO_CATEGORIES = ["Dresses", "Tops", "Jeans", "Accessories"]

DEMO_PRODUCTS = [
    # name, category, size, color, purchase, price, stock, sku
    ("Linen Summer Dress", "Dresses", "M", "Sand", "18.00", "49.99", 12, "10001"),
    ("Silk Blouse", "Tops", "S", "Ivory", "22.00", "59.00", 8, "10002"),
    ("Slim Fit Jeans", "Jeans", "32", "Indigo", "15.50", "39.90", 20, "10003"),
    ("Leather Belt", "Accessories", None, "Brown", "6.00", "19.50", 3, "10004"),
]

DEMO_CUSTOMERS = [
    ("Amina Benali", "amina@example.com", "+212600000001"),
    ("Lucas Martin", "lucas@example.com", "+33600000002"),
]

DEMO_PROMO_CODES = [
    ("WELCOME10", "percentage", "10"),
    ("FIVEOFF", "fixed", "5"),
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize the POS: schema, default paper sizes and default users.

    Creates:
    - All tables (no-op for tables that exist)
    - Paper sizes for the label printer
    - Users: admin (admin role), cashier (cashier role)
    - All passwords default to: "Password123!"

    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Initializing Boutique POS...")

    db.create_all()
    click.echo("PASS Tables ready")

    created_sizes = 0
    for name, width, height in DEFAULT_PAPER_SIZES:
        if db.session.query(PaperSize).filter_by(name=name).first():
            continue
        db.session.add(PaperSize(name=name, width_mm=width, height_mm=height, is_active=True))
        created_sizes += 1
    db.session.commit()
    click.echo(f"PASS Paper sizes created: {created_sizes}")

    click.echo("\nUSERS Creating default users...")
    for username, role in (("admin", "admin"), ("cashier", "cashier")):
        if db.session.query(User).filter_by(username=username).first():
            click.echo(f"WARN  User '{username}' already exists, skipping...")
            continue
        try:
            create_user(username=username, password=DEFAULT_PASSWORD, role=role)
            click.echo(f"PASS Created user: {username} with role '{role}'")
        except (PasswordValidationError, ValueError) as e:
            click.echo(f"FAIL Failed to create user '{username}': {e}")

    click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
    click.echo(f"   admin   -> {DEFAULT_PASSWORD}")
    click.echo(f"   cashier -> {DEFAULT_PASSWORD}")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@system_group.command('seed-demo')
@with_appcontext
def seed_demo():
    """Load demo catalog, customers and promo codes (skips rows that exist)."""
    for name in DEMO_CATEGORIES:
        if not db.session.query(Category).filter_by(name=name).first():
            db.session.add(Category(name=name))

    for name, category, size, color, purchase, price, stock, sku in DEMO_PRODUCTS:
        if db.session.query(Product).filter_by(sku=sku).first():
            continue
        db.session.add(Product(
            name=name, category=category, size=size, color=color,
            purchase_price=Decimal(purchase), price=Decimal(price),
            stock=stock, low_stock_threshold=5, sku=sku,
        ))

    for name, email, phone in DEMO_CUSTOMERS:
        if not db.session.query(Customer).filter_by(email=email).first():
            db.session.add(Customer(name=name, email=email, phone=phone, points=0))

    for code, discount_type, value in DEMO_PROMO_CODES:
        if not db.session.query(PromoCode).filter_by(code=code).first():
            db.session.add(PromoCode(code=code, discount_type=discount_type, value=Decimal(value), is_active=True))

    db.session.commit()
    click.echo("PASS Demo data loaded")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Username':<20} {'Email':<30} {'Active':<8} {'Role'}")
    click.echo("="*80)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.username:<20} {(user.email or ''):<30} {active_str:<8} {user.role}")


@users_group.command('create')
@click.option('--username', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--role', type=click.Choice(ROLES), default='cashier', show_default=True)
@click.option('--email', default=None)
@with_appcontext
def create_user_command(username, password, role, email):
    """Create a user."""
    try:
        user = create_user(username=username, password=password, role=role, email=email)
    except (PasswordValidationError, ValueError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created user {user.username} (ID: {user.id}) with role '{user.role}'")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
