"""User model.

Identity is issued by the external auth provider; this table keeps the
profile and role needed for authorization and order ownership.
"""

import enum
from typing import TYPE_CHECKING, List

from sqlalchemy import Enum, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin, generate_repr

if TYPE_CHECKING:
    from .order import Order


class UserRole(str, enum.Enum):
    """Authorization role of a user."""

    CUSTOMER = "customer"
    ADMIN = "admin"


class User(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Registered storefront user.

    Attributes:
        id: UUID primary key
        email: Unique email address
        name: Display name (optional)
        role: customer or admin
        orders: Orders placed by this user
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
    )
    name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    role: Mapped[UserRole] = mapped_column(
        Enum(
            UserRole,
            name="user_role",
            values_callable=lambda e: [m.value for m in e],
        ),
        default=UserRole.CUSTOMER,
        nullable=False,
    )

    orders: Mapped[List["Order"]] = relationship(
        "Order",
        back_populates="user",
    )

    def __repr__(self) -> str:
        return generate_repr(self, "id", "email", "role")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
