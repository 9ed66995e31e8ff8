# Overview: Flask CLI command groups for bootstrap, inspection, and reconciliation.

# Run from backend/ with FLASK_APP=wsgi.py:
#
# system:
# - flask system init [--org "Org Name"] [--store "Main Store"] [--timezone Asia/Tokyo]
#   Idempotent bootstrap: default organization, store and a system_admin account.
# - flask system reset-db --yes
#   Development databases only: drops every table and recreates the schema.
# - flask system cleanup-sessions
#   Delete expired local-provider sessions.
#
# stores:
# - flask stores list [--all]
# - flask stores create --org-id 1 --name "Shibuya" --code SBY --timezone Asia/Tokyo
#
# users:
# - flask users list
# - flask users create --email a@b.c --name "Aiko" --role staff --store-id 1
#   Creates the identity provider account and the linked user row.
# - flask users reconcile
#   Report ghost users (rows without an identity provider account).
# - flask users reconcile --execute --yes
#   Delete the reported ghosts and their dependent rows.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Organization, Store, User, USER_ROLES
from .services import reconciliation_service, session_service, store_service, user_service
from .services.errors import AdapterFailure, ConsistencyFailure, ValidationFailure


@click.group('system')
def system_group():
    """Bootstrap and maintenance."""


@system_group.command('init')
@click.option('--org', 'org_name', default='Default Organization', help='Organization name')
@click.option('--store', 'store_name', default='Main Store', help='Default store name')
@click.option('--timezone', default=None, help='IANA timezone of the default store')
@click.option('--admin-email', default='admin@storecheer.local', help='System admin email')
@with_appcontext
def init_system(org_name, store_name, timezone, admin_email):
    """
    Create the first organization, store and system_admin if missing.

    Safe to re-run. The admin gets the password "Password123!"; rotate it on
    any shared deployment.
    """
    click.echo("START Initializing StoreCheer...")

    db.create_all()

    org = db.session.query(Organization).first()
    if not org:
        org = store_service.create_organization(org_name)
        click.echo(f"PASS Created organization: {org.name} (ID: {org.id})")
    else:
        click.echo(f"PASS Using existing organization: {org.name} (ID: {org.id})")

    store = db.session.query(Store).filter_by(organization_id=org.id).first()
    if not store:
        store = store_service.create_store(org.id, store_name, code="MAIN", timezone=timezone)
        click.echo(f"PASS Created store: {store.name} (ID: {store.id})")
    else:
        click.echo(f"PASS Using existing store: {store.name} (ID: {store.id})")

    if db.session.query(User).filter_by(email=admin_email).first():
        click.echo(f"WARN  User '{admin_email}' already exists, skipping...")
    else:
        try:
            user = user_service.provision_user(
                email=admin_email,
                password="Password123!",
                name="System Admin",
                role="system_admin",
                primary_store_id=store.id,
            )
            click.echo(f"PASS Created system admin: {user.email}")
        except (ValidationFailure, AdapterFailure, ConsistencyFailure) as e:
            click.echo(f"FAIL Failed to create system admin: {e}")

    click.echo("\nDONE StoreCheer initialized.")
    click.echo(f"   {admin_email} / Password123!  (CHANGE IN PRODUCTION!)")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """Drop and recreate every table. All data is lost."""
    if not yes:
        click.confirm("WARN Every table will be dropped. Continue?", abort=True)

    db.drop_all()
    db.create_all()
    click.echo("PASS Schema recreated. Next: flask system init")


@system_group.command('cleanup-sessions')
@with_appcontext
def cleanup_sessions():
    """Delete expired sessions of the local identity provider."""
    count = session_service.cleanup_expired_sessions()
    click.echo(f"PASS Deleted {count} expired sessions")


@click.group('stores')
def stores_group():
    """Store management commands."""


@stores_group.command('list')
@click.option('--all', 'include_inactive', is_flag=True, help='Include inactive stores')
@with_appcontext
def list_stores(include_inactive):
    stores = store_service.list_stores(include_inactive=include_inactive)
    if not stores:
        click.echo("No stores found.")
        return

    click.echo(f"{'ID':<5} {'Name':<30} {'Code':<10} {'Timezone':<20} {'Members'}")
    for store in stores:
        member_count = db.session.query(User).filter_by(primary_store_id=store.id).count()
        click.echo(f"{store.id:<5} {store.name:<30} {store.code or '-':<10} {store.timezone or '-':<20} {member_count}")


@stores_group.command('create')
@click.option('--org-id', type=int, required=True, help='Organization ID')
@click.option('--name', required=True, help='Store name')
@click.option('--code', default=None, help='Short code')
@click.option('--address', default=None)
@click.option('--timezone', default=None, help='IANA timezone, e.g. Asia/Tokyo')
@with_appcontext
def create_store_cli(org_id, name, code, address, timezone):
    try:
        store = store_service.create_store(org_id, name, code=code, address=address, timezone=timezone)
    except ValidationFailure as e:
        click.echo(f"FAIL {e}")
        return
    click.echo(f"PASS Created store: {store.name} (ID: {store.id})")


@click.group('users')
def users_group():
    """User inspection, bootstrap and reconciliation commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    users = db.session.query(User).order_by(User.id.asc()).all()
    if not users:
        click.echo("No users found.")
        return

    click.echo(f"{'ID':<5} {'Email':<32} {'Role':<20} {'Store':<6} {'Active':<7} {'Auth ID'}")
    for u in users:
        active_str = "Yes" if u.is_active else "No"
        click.echo(
            f"{u.id:<5} {u.email:<32} {u.role:<20} {u.primary_store_id or '-':<6} {active_str:<7} {u.auth_id or '(none)'}"
        )


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--name', prompt=True, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(USER_ROLES), default='staff', help='Role')
@click.option('--store-id', type=int, default=None, help='Primary store ID')
@with_appcontext
def create_user_cli(email, name, password, role, store_id):
    """Create an identity provider account and the linked user row."""
    try:
        user = user_service.provision_user(
            email=email,
            password=password,
            name=name,
            role=role,
            primary_store_id=store_id,
        )
    except ConsistencyFailure as e:
        click.echo(f"FAIL {e}")
        click.echo(f"     Orphaned auth id: {e.orphaned_auth_id}")
        return
    except (ValidationFailure, AdapterFailure) as e:
        click.echo(f"FAIL Failed to create user: {e}")
        return

    click.echo(f"PASS Created user: {user.email} (ID: {user.id}) with role '{user.role}'")


@users_group.command('reconcile')
@click.option('--execute', is_flag=True, help='Delete the ghosts found by the check')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reconcile_users(execute, yes):
    """Find users rows with no identity provider account, optionally delete them."""
    try:
        report = reconciliation_service.check_ghost_users()
    except AdapterFailure as e:
        click.echo(f"FAIL Could not list identity provider users: {e}")
        raise SystemExit(1)

    click.echo(f"Auth users: {report.auth_user_count}  DB users: {report.db_user_count}")
    if not report.ghosts:
        click.echo("PASS No ghost users found.")
        return

    for ghost in report.to_dict()["ghosts"]:
        click.echo(f"GHOST {ghost['id']:<5} {ghost['email']:<32} {ghost['reason']}")

    if not execute:
        click.echo("\nRun with --execute to delete these users.")
        return

    if not yes:
        click.confirm(f"WARN Delete {len(report.ghosts)} ghost users and their data?", abort=True)

    try:
        result = reconciliation_service.execute_ghost_deletion(report.ghost_ids, confirm=True)
    except (ValidationFailure, AdapterFailure) as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)

    click.echo(f"PASS Deleted {len(result.deleted_user_ids)} users: {result.deleted_user_ids}")
    if result.skipped_user_ids:
        click.echo(f"WARN  Skipped (no longer ghosts): {result.skipped_user_ids}")


def register_commands(app):
    """Attach the command groups to the app's CLI."""
    app.cli.add_command(system_group)
    app.cli.add_command(stores_group)
    app.cli.add_command(users_group)
