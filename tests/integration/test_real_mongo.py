"""RepositoryModule against a real MongoDB server."""

from __future__ import annotations

from decimal import Decimal

import pytest
from documents import Permission, User

pytestmark = pytest.mark.integration


def test_hydrate_then_assert(real_module) -> None:
    user_id = real_module.hydrate_and_persist(
        User, {"name": "Miles", "permissions": [Permission(perm="edit")]}
    )

    real_module.assert_exists(User, {"id": user_id})
    real_module.assert_exists(User, {"name": "Miles", "permissions.perm": "edit"})
    real_module.assert_absent(User, {"name": "Nobody"})


def test_decimal_round_trip(real_module) -> None:
    real_module.persist(User, {"name": "A", "balance": Decimal("10.25")})
    real_module.document_manager.clear()

    assert real_module.fetch_field(User, "balance", {"name": "A"}) == Decimal("10.25")


def test_delete_and_drop(real_module) -> None:
    real_module.persist(User, {"name": "A"})
    real_module.persist(User, {"name": "B"})

    assert real_module.delete_matching(User, {"name": "A"}) == 1
    real_module.assert_absent(User, {"name": "A"})

    real_module.drop_collection(User)
    assert real_module.fetch_all(User) == []


def test_health_check(real_module) -> None:
    assert real_module.document_manager.health_check() is True
