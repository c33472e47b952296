import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from lexilearn import collection_names as names
from lexilearn.seed_data import DEFAULT_PLATFORM_SETTINGS
from lexilearn.stats import admin_overview
from lexilearn.store import CollectionStore


def test_absent_collection_defaults_to_empty(store):
    assert store.read(names.USERS) == []
    assert store.read(names.STUDENT_PROGRESS) == {}
    assert store.read(names.PLATFORM_SETTINGS, default={"currency": "USD"}) == {"currency": "USD"}
    assert not store.exists(names.USERS)


def test_write_then_read_round_trip(store):
    modules = [{
        "id": "m1",
        "lessons": [{"id": "b", "order": 1}, {"id": "a", "order": 2}, {"id": "c", "order": 3}],
    }]
    store.write(names.MODULES, modules)

    loaded = store.read(names.MODULES)
    assert loaded == modules
    assert [l["id"] for l in loaded[0]["lessons"]] == ["b", "a", "c"]
    assert store.exists(names.MODULES)


def test_read_returns_independent_copy(store):
    store.write(names.USERS, [{"id": "u1"}])
    users = store.read(names.USERS)
    users.append({"id": "u2"})

    assert store.read(names.USERS) == [{"id": "u1"}]


def test_update_applies_mutation(store):
    store.write(names.USERS, [{"id": "u1"}])

    store.update(names.USERS, lambda docs: docs.append({"id": "u2"}))
    store.update(names.USERS, lambda docs: [d for d in docs if d["id"] != "u1"])

    assert store.read(names.USERS) == [{"id": "u2"}]


def test_update_writes_nothing_when_mutation_raises(store):
    store.write(names.USERS, [{"id": "u1"}])

    def boom(docs):
        docs.clear()
        raise RuntimeError("stop")

    with pytest.raises(RuntimeError):
        store.update(names.USERS, boom)
    assert store.read(names.USERS) == [{"id": "u1"}]


def test_unserializable_write_propagates_and_keeps_old_document(store):
    store.write(names.USERS, [{"id": "u1"}])

    with pytest.raises((SQLAlchemyError, TypeError, ValueError)):
        store.write(names.USERS, [{"id": "u2", "bad": object()}])
    assert store.read(names.USERS) == [{"id": "u1"}]


def test_delete_and_names(store):
    store.write(names.USERS, [])
    store.write(names.MODULES, [])

    assert store.names() == ["modules", "users"]
    assert store.delete(names.USERS) is True
    assert store.delete(names.USERS) is False
    assert store.names() == ["modules"]


def test_read_failure_surfaces_instead_of_empty_result():
    # No tables created: every read hits a storage error
    engine = create_engine("sqlite://", poolclass=StaticPool)
    broken = CollectionStore(sessionmaker(bind=engine))

    with pytest.raises(SQLAlchemyError):
        broken.read(names.USERS)
    with pytest.raises(SQLAlchemyError):
        admin_overview(broken)


def test_default_is_copied_before_mutation(store):
    store.update(
        names.PLATFORM_SETTINGS,
        lambda doc: doc["subscription_pricing"].update(monthly=1.0),
        default=DEFAULT_PLATFORM_SETTINGS,
    )

    assert DEFAULT_PLATFORM_SETTINGS["subscription_pricing"]["monthly"] == 29.99
    assert store.read(names.PLATFORM_SETTINGS)["subscription_pricing"]["monthly"] == 1.0


def test_default_read_is_independent(store):
    default = {"items": [1]}

    store.read(names.SEED_STATE, default=default)["items"].append(2)

    assert default == {"items": [1]}
