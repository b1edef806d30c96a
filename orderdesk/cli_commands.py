"""
Flask CLI commands.

Commands:
- flask init-db: Create the submission journal tables
- flask preview-order FILE --type purchase|sales: Print the totals preview for an order JSON file
"""

import json

import click

from orderdesk.database import create_tables
from orderdesk.exceptions import PolicyConflictError
from orderdesk.models import OrderType
from orderdesk.services.preview_service import build_preview

LABELS = (
    ('subtotal', 'Subtotal'),
    ('discount_amount', 'Discount'),
    ('tax_amount', 'Tax'),
    ('shipping_fee', 'Shipping'),
    ('grand_total', 'TOTAL'),
)


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create the submission journal tables."""
        create_tables()
        click.echo(click.style('Database tables created.', fg='green'))

    @app.cli.command('preview-order')
    @click.argument('order_file', type=click.File('r'))
    @click.option('--type', 'order_type', type=click.Choice([t.value for t in OrderType]),
                  required=True, help='Order type of the JSON payload')
    @click.option('--locale', default=None, help='Display locale (defaults to DEFAULT_LOCALE)')
    @click.option('--json', 'as_json', is_flag=True, help='Print the raw preview as JSON')
    def preview_order(order_file, order_type, locale, as_json):
        """Compute the totals preview for an order payload stored as JSON."""
        try:
            payload = json.load(order_file)
        except json.JSONDecodeError as e:
            raise click.ClickException(f'Invalid JSON in {order_file.name}: {e}')

        try:
            result = build_preview(payload, OrderType(order_type), locale=locale)
        except PolicyConflictError as e:
            raise click.ClickException(e.message)

        if as_json:
            click.echo(json.dumps(result, indent=2, ensure_ascii=False))
            return

        click.echo(f"{order_type.capitalize()} order ({result['policy']}), {len(result['lines'])} lines")
        for line in result['lines']:
            click.echo(f"  product {line['product_id']}: {line['total']}")
        for key, label in LABELS:
            click.echo(f"{label:>10}: {result['formatted'][key]}")

        for path, message in result['issues'].items():
            click.echo(click.style(f'{path}: {message}', fg='yellow'), err=True)
