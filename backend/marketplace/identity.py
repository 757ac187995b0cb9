"""
RR Nagar Backend — Request Identity & Authorization Predicates
================================================================

What:  The authenticated identity of one request, and pure predicates that
       decide what that identity may do to a product.
How:   `Identity.from_session()` reads the session once per request (through
       the `get_identity` dependency); services receive the resulting value
       and never touch the session themselves.

Session keys (at most one is set at a time):
    customerId   → Customer.id
    supplierId   → Supplier.id
    adminId      → Admin.id

A missing, expired or garbled session yields the anonymous identity.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from fastapi import Request

CUSTOMER_KEY = "customerId"
SUPPLIER_KEY = "supplierId"
ADMIN_KEY = "adminId"

SESSION_KEYS = {
    "customer": CUSTOMER_KEY,
    "supplier": SUPPLIER_KEY,
    "admin": ADMIN_KEY,
}


def _coerce_id(value: Any) -> Optional[int]:
    """Session values come back from a cookie; accept ints and digit strings only."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str) and value.isdigit():
        return int(value) or None
    return None


@dataclass(frozen=True)
class Identity:
    customer_id: Optional[int] = None
    supplier_id: Optional[int] = None
    admin_id: Optional[int] = None

    @classmethod
    def from_session(cls, session: Optional[Mapping[str, Any]]) -> "Identity":
        if not session:
            return cls()
        return cls(
            customer_id=_coerce_id(session.get(CUSTOMER_KEY)),
            supplier_id=_coerce_id(session.get(SUPPLIER_KEY)),
            admin_id=_coerce_id(session.get(ADMIN_KEY)),
        )

    @property
    def is_admin(self) -> bool:
        return self.admin_id is not None

    @property
    def is_supplier(self) -> bool:
        return self.supplier_id is not None

    @property
    def is_customer(self) -> bool:
        return self.customer_id is not None

    @property
    def is_anonymous(self) -> bool:
        return not (self.is_admin or self.is_supplier or self.is_customer)

    @property
    def role(self) -> str:
        if self.is_admin:
            return "admin"
        if self.is_supplier:
            return "supplier"
        if self.is_customer:
            return "customer"
        return "anonymous"

    @property
    def account_id(self) -> Optional[int]:
        return self.admin_id or self.supplier_id or self.customer_id


ANONYMOUS = Identity()


def get_identity(request: Request) -> Identity:
    """FastAPI dependency: the identity carried by this request's session."""
    return Identity.from_session(request.session)


# ── Predicates ────────────────────────────────────────────────────────────
# Products are passed duck-typed: anything with `supplier_id`.

def can_create_product(identity: Identity) -> bool:
    return identity.is_supplier or identity.is_admin


def creates_template(identity: Identity) -> bool:
    """Admin-authored products without a supplier identity become templates."""
    return identity.is_admin and not identity.is_supplier


def can_clone_template(identity: Identity) -> bool:
    return identity.is_supplier


def owns_product(identity: Identity, product: Any) -> bool:
    return identity.is_supplier and product.supplier_id == identity.supplier_id


def can_delete_product(identity: Identity, product: Any, has_custody: bool) -> bool:
    """
    Admins bypass ownership. A supplier must be the direct owner or hold a
    custody row for the product. Everyone else is refused.
    """
    if identity.is_admin:
        return True
    if not identity.is_supplier:
        return False
    return owns_product(identity, product) or has_custody
