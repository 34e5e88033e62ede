"""Customer and assignment domain services."""

from typing import Optional

from timebill.database.base import Database
from timebill.domain import errors
from timebill.domain.entities import Assignment, Customer


class CustomerService:
    """Service for managing customers."""

    def __init__(self, db: Database):
        """Initialize customer service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_customer(self, customer_number: str, name: str) -> str:
        """Create a new customer.

        Args:
            customer_number: Unique customer number
            name: Customer name

        Returns:
            Customer ID

        Raises:
            ValidationError: If number or name is empty
            ConflictError: If the customer number already exists
        """
        if not customer_number.strip() or not name.strip():
            raise errors.ValidationError("Customer number and name are required")

        existing = self.db.get_customer_by_number(customer_number)
        if existing is not None:
            raise errors.ConflictError(
                f"Customer with number '{customer_number}' already exists", [existing.id]
            )

        return self.db.create_customer(customer_number=customer_number, name=name)

    def get_customer(self, customer_id: str) -> Optional[Customer]:
        """Get customer by ID."""
        return self.db.get_customer(customer_id)

    def list_customers(self) -> list[Customer]:
        """List all customers, ordered by name."""
        return self.db.list_customers()

    def resolve_customer(self, customer: str) -> Customer:
        """Resolve a customer ID, customer number or exact name.

        Raises:
            NotFoundError: If nothing matches
            ValidationError: If a name matches more than one customer
        """
        found = self.db.get_customer(customer) or self.db.get_customer_by_number(customer)
        if found is not None:
            return found

        matches = [c for c in self.db.list_customers() if c.name == customer]
        if len(matches) > 1:
            raise errors.ValidationError(
                f"Customer name '{customer}' is ambiguous; use the customer number"
            )
        if not matches:
            raise errors.NotFoundError(f"Customer '{customer}' not found")
        return matches[0]


class AssignmentService:
    """Service for managing assignments."""

    def __init__(self, db: Database):
        self.db = db

    def create_assignment(self, customer_id: str, assignment_number: str, title: str) -> str:
        """Create an assignment for a customer. Returns assignment ID.

        Raises:
            NotFoundError: If the customer doesn't exist
            ConflictError: If the assignment number is taken
        """
        if self.db.get_customer(customer_id) is None:
            raise errors.NotFoundError(errors.customer_not_found(customer_id))
        if any(a.assignment_number == assignment_number for a in self.db.list_assignments()):
            raise errors.ConflictError(
                f"Assignment with number '{assignment_number}' already exists"
            )
        return self.db.create_assignment(
            customer_id=customer_id, assignment_number=assignment_number, title=title
        )

    def list_assignments(self, customer_id: Optional[str] = None) -> list[Assignment]:
        return self.db.list_assignments(customer_id=customer_id)

    def resolve_assignment(self, assignment: str) -> Assignment:
        """Resolve an assignment ID or assignment number.

        Raises:
            NotFoundError: If nothing matches
        """
        found = self.db.get_assignment(assignment)
        if found is not None:
            return found
        for candidate in self.db.list_assignments():
            if candidate.assignment_number == assignment:
                return candidate
        raise errors.NotFoundError(f"Assignment '{assignment}' not found")
