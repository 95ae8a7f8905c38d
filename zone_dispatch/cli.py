"""
Flask CLI commands:  flask zones ...
"""
import click
from flask.cli import AppGroup

zones_cli = AppGroup('zones', help='Driver zone maintenance commands.')


@zones_cli.command('reconcile')
@click.argument('location_id')
def cli_reconcile(location_id):
    """Re-run the driver reassignment sweep for a location."""
    from zone_dispatch.models import Location
    from zone_dispatch.services.service_area import reconcile

    location = Location.query.filter(
        Location.id == location_id,
        Location.is_active.is_(True),
        Location.deleted_at.is_(None),
    ).first()
    if location is None:
        raise click.ClickException('Location {} not found or inactive'.format(location_id))

    click.echo("Reconciling orders for {} (service area v{})...".format(
        location.name, location.service_area_version))
    result = reconcile(location.tenant_id, location.id)
    for reassignment in result.reassignments:
        click.echo("  -> order {}: {} -> {}".format(
            reassignment.order_id, reassignment.old_driver_id, reassignment.new_driver_id))
    click.echo("Reassigned {} order(s).".format(result.reassigned_count))


def register_commands(app):
    app.cli.add_command(zones_cli)
