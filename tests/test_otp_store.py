import threading
from datetime import timedelta, timezone

import pytest
from sqlalchemy import create_engine

from otpauth.database import build_engine, create_db_and_tables
from otpauth.exceptions import NotFound, StorageError
from otpauth.infrastructure.persistence.memory.otp_store_memory import InMemoryOtpCodeStore
from otpauth.infrastructure.persistence.sqlalchemy.base_repository import BaseRepository
from otpauth.infrastructure.persistence.sqlalchemy.repositories.otp_store_sql import SqlOtpCodeStore
from otpauth.utils import utcnow

from conftest import PHONE


def _sql_store() -> SqlOtpCodeStore:
    engine = build_engine("sqlite://")
    create_db_and_tables(engine)
    return SqlOtpCodeStore(BaseRepository(engine))


@pytest.fixture(params=["sql", "memory"])
def store(request):
    return _sql_store() if request.param == "sql" else InMemoryOtpCodeStore()


def test_insert_returns_the_stored_record(store):
    expires = utcnow() + timedelta(minutes=2)

    record = store.insert(PHONE, "123456", expires)

    assert record.phone == PHONE
    assert record.code == "123456"
    assert record.expires_at == expires
    assert store.find_latest(PHONE) == record


def test_find_latest_returns_newest_insert(store):
    expires = utcnow() + timedelta(minutes=2)
    store.insert(PHONE, "111111", expires)
    store.insert(PHONE, "222222", expires)
    store.insert("+15550000000", "333333", expires)

    assert store.find_latest(PHONE).code == "222222"


def test_newest_wins_even_with_earlier_expiry(store):
    now = utcnow()
    store.insert(PHONE, "111111", now + timedelta(hours=1))
    store.insert(PHONE, "222222", now + timedelta(minutes=1))

    assert store.find_latest(PHONE).code == "222222"


def test_find_latest_without_records_is_not_found(store):
    with pytest.raises(NotFound):
        store.find_latest(PHONE)


def test_records_come_back_as_aware_utc(store):
    # Naive input is read as UTC; every record leaves the store timezone-aware
    naive = (utcnow() + timedelta(minutes=2)).replace(tzinfo=None)

    store.insert(PHONE, "123456", naive)
    record = store.find_latest(PHONE)

    assert record.expires_at.tzinfo is not None
    assert record.expires_at == naive.replace(tzinfo=timezone.utc)
    assert record.issued_at.tzinfo is not None


def test_offset_expiry_is_normalised_to_utc(store):
    expires = utcnow() + timedelta(minutes=2)
    offset = expires.astimezone(timezone(timedelta(hours=5, minutes=30)))

    store.insert(PHONE, "123456", offset)

    assert store.find_latest(PHONE).expires_at == expires
    assert store.find_latest(PHONE).expires_at.utcoffset() == timedelta(0)


def test_purge_expired_only_removes_old_rows():
    store = _sql_store()
    now = utcnow()
    store.insert(PHONE, "111111", now - timedelta(minutes=1))
    store.insert("+15550000000", "222222", now - timedelta(minutes=1))
    store.insert("+15550000000", "333333", now + timedelta(minutes=1))

    assert store.purge_expired(now) == 2
    assert store.find_latest("+15550000000").code == "333333"
    with pytest.raises(NotFound):
        store.find_latest(PHONE)


def test_sql_errors_surface_as_storage_error():
    # No tables created on this engine
    store = SqlOtpCodeStore(BaseRepository(create_engine("sqlite://")))

    with pytest.raises(StorageError):
        store.insert(PHONE, "123456", utcnow())
    with pytest.raises(StorageError):
        store.find_latest(PHONE)


def test_memory_store_latest_is_the_last_committed_insert_under_threads():
    store = InMemoryOtpCodeStore()
    expires = utcnow() + timedelta(minutes=2)
    inserted = []
    seen = []
    start = threading.Barrier(9)

    def writer(n):
        start.wait()
        for i in range(50):
            inserted.append(store.insert(PHONE, f"{n}{i:05d}"[:6], expires))

    def reader():
        start.wait()
        for _ in range(200):
            try:
                record = store.find_latest(PHONE)
            except NotFound:
                continue
            seen.append(record.id)

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
    threads.append(threading.Thread(target=reader))
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    ids = [record.id for record in inserted]
    assert len(set(ids)) == 400
    assert store.find_latest(PHONE).id == max(ids)
    # A reader never goes back to an older record
    assert seen == sorted(seen)
