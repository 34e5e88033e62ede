"""CLI helpers for customer resolution."""

from __future__ import annotations

import click
from timebill.domain.customer import CustomerService
from timebill.domain.entities import Customer
from timebill.domain.errors import DomainError
from timebill.cli.error_handling import handle_domain_error


def resolve_customer_or_exit(ctx: click.Context, customer: str) -> Customer:
    """Resolve a customer ID, number or name, or exit with a CLI error.

    This keeps error messaging and exit behavior consistent across commands.
    """
    try:
        return CustomerService(ctx.obj["db"]).resolve_customer(customer)
    except DomainError as exc:
        handle_domain_error(ctx, exc)
