"""Customer and assignment commands."""

import click
from timebill.cli.customer_resolution import resolve_customer_or_exit
from timebill.cli.error_handling import handle_domain_error
from timebill.domain.customer import AssignmentService, CustomerService
from timebill.domain.errors import DomainError


@click.group()
def customer_group():
    """Manage customers."""
    pass


@customer_group.command("create")
@click.argument("name", metavar="CUSTOMER_NAME")
@click.option("--number", required=True, help="Customer number")
@click.pass_context
def create_customer(ctx, name: str, number: str):
    """Create a new customer.

    Examples:
        timebill customer create "Brf Solgläntan" --number 1001
    """
    service = CustomerService(ctx.obj["db"])
    try:
        customer_id = service.create_customer(customer_number=number, name=name)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created customer '{name}' (number: {number}, ID: {customer_id})")


@customer_group.command("list")
@click.pass_context
def list_customers(ctx):
    """List all customers."""
    customers = CustomerService(ctx.obj["db"]).list_customers()
    if not customers:
        click.echo("No customers found.")
        return

    click.echo("\nCustomers:")
    click.echo("-" * 70)
    for c in customers:
        click.echo(f"{c.customer_number:>8s} | {c.name:30s} | ID: {c.id}")


@click.group()
def assignment_group():
    """Manage assignments."""
    pass


@assignment_group.command("create")
@click.argument("customer", metavar="CUSTOMER")
@click.argument("title", metavar="TITLE")
@click.option("--number", required=True, help="Assignment number")
@click.pass_context
def create_assignment(ctx, customer: str, title: str, number: str):
    """Create an assignment for a customer.

    CUSTOMER can be a customer ID, number or name.
    """
    customer_obj = resolve_customer_or_exit(ctx, customer)
    service = AssignmentService(ctx.obj["db"])
    try:
        assignment_id = service.create_assignment(customer_obj.id, number, title)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created assignment {number} '{title}' (ID: {assignment_id})")


@assignment_group.command("list")
@click.option("--customer", help="Only assignments of this customer")
@click.pass_context
def list_assignments(ctx, customer: str | None):
    """List assignments."""
    customer_id = resolve_customer_or_exit(ctx, customer).id if customer else None
    assignments = AssignmentService(ctx.obj["db"]).list_assignments(customer_id=customer_id)
    if not assignments:
        click.echo("No assignments found.")
        return

    for a in assignments:
        click.echo(f"{a.assignment_number:>10s} | {a.title:40s} | ID: {a.id}")


def register_commands(cli):
    """Register customer and assignment commands with main CLI."""
    cli.add_command(customer_group, name="customer")
    cli.add_command(assignment_group, name="assignment")
