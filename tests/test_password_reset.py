"""Tests for the password reset ledger."""

import threading
from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from storefront_auth.database import Base, enable_sqlite_foreign_keys
from storefront_auth.errors import InvalidOrExpiredError
from storefront_auth.models.account import Account
from storefront_auth.models.password_reset import PasswordReset
from storefront_auth.services.accounts import AccountStore
from storefront_auth.services.password_reset import PasswordResetLedger
from storefront_auth.services.passwords import hash_password, verify_password


@pytest.fixture(name="make_session")
def make_session_fixture(tmp_path):
    """Sessions on a file database, so separate connections really contend."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'ledger.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    event.listen(engine, "connect", enable_sqlite_foreign_keys)
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    engine.dispose()


@pytest.fixture(name="ledger")
def ledger_fixture() -> PasswordResetLedger:
    return PasswordResetLedger(expire_minutes=60)


@pytest.fixture(name="account")
def account_fixture(db_session: Session) -> Account:
    return AccountStore().create_account(db_session, "reset@example.com", hash_password("Passw0rd!"))


def test_issue_creates_opaque_token(db_session: Session, ledger: PasswordResetLedger, account: Account):
    now = datetime(2026, 1, 1, 12, 0, 0)
    issued = ledger.issue(db_session, account.id, now=now)

    assert len(issued.token) == 64
    int(issued.token, 16)
    assert issued.expires_at == now + timedelta(minutes=60)

    row = db_session.query(PasswordReset).one()
    assert row.token == issued.token
    assert row.account_id == account.id
    assert row.used is False


def test_reissue_invalidates_previous_tokens(db_session: Session, ledger: PasswordResetLedger, account: Account):
    first = ledger.issue(db_session, account.id)
    second = ledger.issue(db_session, account.id)

    unused = db_session.query(PasswordReset).filter(PasswordReset.used.is_(False)).all()
    assert [row.token for row in unused] == [second.token]
    assert db_session.query(PasswordReset).count() == 2

    with pytest.raises(InvalidOrExpiredError):
        ledger.consume(db_session, first.token, hash_password("NewPass1"))
    ledger.consume(db_session, second.token, hash_password("NewPass1"))


def test_consume_changes_password_and_marks_used(db_session: Session, ledger: PasswordResetLedger, account: Account):
    issued = ledger.issue(db_session, account.id)
    account_id = ledger.consume(db_session, issued.token, hash_password("NewPass1"))

    assert account_id == account.id
    db_session.expire_all()
    refreshed = db_session.get(Account, account.id)
    assert verify_password("NewPass1", refreshed.password_hash)
    assert not verify_password("Passw0rd!", refreshed.password_hash)
    assert db_session.query(PasswordReset).one().used is True


def test_consume_twice_succeeds_once(db_session: Session, ledger: PasswordResetLedger, account: Account):
    issued = ledger.issue(db_session, account.id)
    ledger.consume(db_session, issued.token, hash_password("NewPass1"))
    with pytest.raises(InvalidOrExpiredError):
        ledger.consume(db_session, issued.token, hash_password("Other1xx"))

    db_session.expire_all()
    assert verify_password("NewPass1", db_session.get(Account, account.id).password_hash)


def test_expiry_boundaries(db_session: Session, ledger: PasswordResetLedger, account: Account):
    issued_at = datetime(2026, 1, 1, 12, 0, 0)
    late = ledger.issue(db_session, account.id, now=issued_at)
    with pytest.raises(InvalidOrExpiredError):
        ledger.consume(db_session, late.token, hash_password("NewPass1"), now=late.expires_at + timedelta(seconds=1))

    on_time = ledger.issue(db_session, account.id, now=issued_at)
    ledger.consume(db_session, on_time.token, hash_password("NewPass1"), now=on_time.expires_at - timedelta(seconds=1))


def test_expired_token_stays_unused(db_session: Session, ledger: PasswordResetLedger, account: Account):
    issued = ledger.issue(db_session, account.id, now=datetime.utcnow() - timedelta(hours=2))
    with pytest.raises(InvalidOrExpiredError):
        ledger.consume(db_session, issued.token, hash_password("NewPass1"))
    assert db_session.query(PasswordReset).one().used is False


def test_unknown_token(db_session: Session, ledger: PasswordResetLedger, account: Account):
    with pytest.raises(InvalidOrExpiredError):
        ledger.consume(db_session, "0" * 64, hash_password("NewPass1"))


def test_deactivated_owner_rolls_back(
    db_session: Session, ledger: PasswordResetLedger, account: Account, deactivate
):
    issued = ledger.issue(db_session, account.id)
    original_hash = account.password_hash
    deactivate(account)

    with pytest.raises(InvalidOrExpiredError):
        ledger.consume(db_session, issued.token, hash_password("NewPass1"))

    db_session.expire_all()
    assert db_session.query(PasswordReset).one().used is False
    assert db_session.get(Account, account.id).password_hash == original_hash


def test_cascade_on_account_delete(db_session: Session, ledger: PasswordResetLedger, account: Account):
    ledger.issue(db_session, account.id)
    db_session.delete(account)
    db_session.commit()
    assert db_session.query(PasswordReset).count() == 0


def test_stale_reader_cannot_consume_spent_token(make_session, ledger: PasswordResetLedger):
    """A second session that saw the token unused still loses once the first commits."""
    with make_session() as setup:
        account = AccountStore().create_account(setup, "race@example.com", hash_password("Passw0rd!"))
        token = ledger.issue(setup, account.id).token

    with make_session() as first, make_session() as second:
        seen = second.query(PasswordReset).filter(PasswordReset.token == token).one()
        assert seen.used is False

        ledger.consume(first, token, hash_password("First1xx"))
        with pytest.raises(InvalidOrExpiredError):
            ledger.consume(second, token, hash_password("Second1x"))

    with make_session() as check:
        stored = check.query(Account).one()
        assert verify_password("First1xx", stored.password_hash)


def run_concurrently(count: int, target) -> list:
    """Start ``count`` threads at once; return each one's result or exception."""
    barrier = threading.Barrier(count)
    outcomes = [None] * count

    def worker(index: int) -> None:
        barrier.wait()
        try:
            outcomes[index] = target()
        except Exception as exc:
            outcomes[index] = exc

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return outcomes


def test_concurrent_issue_leaves_one_live_token(make_session, ledger: PasswordResetLedger):
    with make_session() as setup:
        account_id = AccountStore().create_account(setup, "issue@example.com", hash_password("Passw0rd!")).id

    def issue():
        with make_session() as db:
            return ledger.issue(db, account_id).token

    outcomes = run_concurrently(8, issue)
    assert all(isinstance(token, str) for token in outcomes), outcomes

    with make_session() as check:
        assert check.query(PasswordReset).count() == 8
        live = check.query(PasswordReset).filter(PasswordReset.used.is_(False)).all()
        assert len(live) == 1
        assert live[0].token in outcomes


def test_concurrent_consume_succeeds_once(make_session, ledger: PasswordResetLedger):
    with make_session() as setup:
        account_id = AccountStore().create_account(setup, "consume@example.com", hash_password("Passw0rd!")).id
        token = ledger.issue(setup, account_id).token
    new_hash = hash_password("NewPass1")

    def consume():
        with make_session() as db:
            return ledger.consume(db, token, new_hash)

    outcomes = run_concurrently(8, consume)
    assert outcomes.count(account_id) == 1
    failures = [o for o in outcomes if o != account_id]
    assert len(failures) == 7
    assert all(isinstance(o, InvalidOrExpiredError) for o in failures), failures
