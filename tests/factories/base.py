"""Shared base for the model factories.

Factories only build transient model instances. Unit tests hand them to a
mocked AsyncSession, so nothing here touches a database.
"""

from typing import Any
from uuid import uuid4

import factory

from storefront.db.models.base import Base


class ModelFactory(factory.Factory):
    """Builds a model with a client-side primary key.

    ``create()`` is the same as ``build()``: services under test add and
    flush the instance themselves.
    """

    class Meta:
        abstract = True

    id = factory.LazyFunction(uuid4)

    @classmethod
    def _create(cls, model_class: type[Base], *args: Any, **kwargs: Any) -> Base:
        return model_class(*args, **kwargs)


def short_id() -> str:
    """Twelve hex characters for unique emails, SKUs and provider ids."""
    return uuid4().hex[:12]
