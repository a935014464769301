"""Shared test helpers: mock query results and bearer tokens."""

import os
from typing import Any, Iterable, Optional
from unittest.mock import MagicMock
from uuid import uuid4

import jwt


def make_result(
    scalar: Any = None,
    scalars: Optional[Iterable[Any]] = None,
    one: Any = None,
    rows: Optional[Iterable[Any]] = None,
) -> MagicMock:
    """Build a mock SQLAlchemy Result.

    Args:
        scalar: Value for scalar_one_or_none() / scalar_one()
        scalars: Items for scalars().all()
        one: Row for one()
        rows: Rows for all()
    """
    result = MagicMock()
    result.unique.return_value = result
    result.scalar_one_or_none.return_value = scalar
    result.scalar_one.return_value = scalar
    result.scalars.return_value.all.return_value = list(scalars or [])
    result.one.return_value = one
    result.all.return_value = list(rows or [])
    return result


def make_token(role: str = "customer", user_id: Optional[str] = None, **claims: Any) -> str:
    """Sign a bearer token with the test secret."""
    payload = {"sub": user_id or str(uuid4()), "email": "user@example.com", "role": role}
    payload.update(claims)
    return jwt.encode(payload, os.environ["AUTH_JWT_SECRET"], algorithm="HS256")


def assign_ids_on_flush(db: MagicMock) -> None:
    """Give objects passed to ``db.add`` a primary key when flushed."""

    async def _flush(*args: Any, **kwargs: Any) -> None:
        for call in db.add.call_args_list:
            instance = call.args[0]
            if getattr(instance, "id", None) is None:
                instance.id = uuid4()

    db.flush.side_effect = _flush
