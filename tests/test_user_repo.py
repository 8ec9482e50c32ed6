# tests/test_user_repo.py
from conftest import CUSTOMER_ID
from surplus.domain.enums import UserRole
from surplus.users.repository.user_repo import UserRepository


def test_ensure_creates_profile_once(db):
    repo = UserRepository(db)
    user = repo.ensure(700, UserRole.CUSTOMER)
    assert (user.id, user.role) == (700, UserRole.CUSTOMER)
    assert repo.ensure(700, UserRole.CUSTOMER) is user


def test_ensure_follows_provider_role(db):
    user = UserRepository(db).ensure(CUSTOMER_ID, UserRole.STORE_OWNER)
    assert user.role == UserRole.STORE_OWNER
    assert user.name == "Mina"


def test_ensure_survives_concurrent_first_request(db, monkeypatch):
    # our read misses the row another request is inserting; its commit wins
    real_get = db.get
    misses = []

    def stale_first_read(model, pk, *args, **kwargs):
        if not misses:
            misses.append(pk)
            return None
        return real_get(model, pk, *args, **kwargs)

    monkeypatch.setattr(db, "get", stale_first_read)

    user = UserRepository(db).ensure(CUSTOMER_ID, UserRole.CUSTOMER)

    assert misses == [CUSTOMER_ID]
    assert user.id == CUSTOMER_ID
    assert user.name == "Mina"
