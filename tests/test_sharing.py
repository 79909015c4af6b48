import uuid
from datetime import date

import pytest
from sqlalchemy.exc import DatabaseError, IntegrityError, OperationalError

from cashsync.errors import AlreadyJoined, NotFound, TransientIO, Unauthenticated, Unauthorized
from cashsync.extensions import db
from cashsync.models import JoinRecord, ShareLink
from cashsync.services import guard_storage, sharing
from cashsync.services.expenses import create_expense


def token_of(link):
    return link.rsplit("/", 1)[-1]


def test_create_share_link(users):
    link = sharing.create_share_link(users["alice"])
    assert link.startswith("https://cashsync.test/shared-dashboard/")
    token = token_of(link)
    assert uuid.UUID(token).version == 4
    assert ShareLink.query.filter_by(token=token).one().owner_id == users["alice"]


def test_owner_may_hold_many_links(users):
    first = sharing.create_share_link(users["alice"])
    second = sharing.create_share_link(users["alice"])
    assert first != second
    assert ShareLink.query.filter_by(owner_id=users["alice"]).count() == 2


def test_create_share_link_needs_a_user(ctx):
    with pytest.raises(Unauthenticated):
        sharing.create_share_link(None)
    assert ShareLink.query.count() == 0


def test_resolve_unknown_or_deleted_token(users):
    with pytest.raises(NotFound):
        sharing.resolve_token("never-issued")
    token = token_of(sharing.create_share_link(users["alice"]))
    assert sharing.resolve_token(token) == users["alice"]
    db.session.delete(ShareLink.query.filter_by(token=token).one())
    db.session.commit()
    with pytest.raises(NotFound):
        sharing.resolve_token(token)


@pytest.mark.parametrize("value, expected", [
    ("abc-123", "abc-123"),
    ("  abc-123  ", "abc-123"),
    ("https://cashsync.test/shared-dashboard/abc-123", "abc-123"),
    ("https://cashsync.test/shared-dashboard/abc-123/", "abc-123"),
    ("https://cashsync.test/shared-dashboard/abc-123?utm=x", "abc-123"),
    ("/shared-dashboard/abc-123", "abc-123"),
    ("", ""),
])
def test_extract_token(value, expected):
    assert sharing.extract_token(value) == expected


def test_join_list_and_revoke(users):
    alice, bob = users["alice"], users["bob"]
    link = sharing.create_share_link(alice)
    token = token_of(link)

    record = sharing.join_via_link(bob, link)
    assert (record.user_id, record.owner_id, record.token) == (bob, alice, token)

    viewers = sharing.list_accepted_viewers(alice)
    assert [(v["record"].user_id, v["name"]) for v in viewers] == [(bob, "Bob")]
    joined = sharing.list_joined(bob)
    assert [(j["record"].owner_id, j["name"]) for j in joined] == [(alice, "Alice")]

    sharing.revoke_viewer(record.id, alice)
    assert sharing.list_accepted_viewers(alice) == []
    assert sharing.list_joined(bob) == []


def test_join_twice_is_rejected(users):
    token = token_of(sharing.create_share_link(users["alice"]))
    sharing.join_via_link(users["bob"], token)
    with pytest.raises(AlreadyJoined):
        sharing.join_via_link(users["bob"], token)
    assert JoinRecord.query.filter_by(user_id=users["bob"]).count() == 1


def test_same_user_may_join_with_another_token(users):
    sharing.join_via_link(users["bob"], sharing.create_share_link(users["alice"]))
    sharing.join_via_link(users["bob"], sharing.create_share_link(users["alice"]))
    assert len(sharing.list_joined(users["bob"])) == 2


def test_join_with_bogus_token_creates_nothing(users):
    with pytest.raises(NotFound):
        sharing.join_via_link(users["bob"], "not-a-real-token")
    assert JoinRecord.query.count() == 0


def test_leave_only_by_the_viewer(users):
    record = sharing.join_via_link(users["bob"], sharing.create_share_link(users["alice"]))
    join_id = record.id
    with pytest.raises(Unauthorized):
        sharing.leave(join_id, users["carol"])
    with pytest.raises(Unauthorized):
        sharing.leave(join_id, users["alice"])
    sharing.leave(join_id, users["bob"])
    assert db.session.get(JoinRecord, join_id) is None
    with pytest.raises(NotFound):
        sharing.leave(join_id, users["bob"])


def test_revoke_only_by_the_owner(users):
    record = sharing.join_via_link(users["bob"], sharing.create_share_link(users["alice"]))
    with pytest.raises(Unauthorized):
        sharing.revoke_viewer(record.id, users["bob"])
    assert JoinRecord.query.count() == 1


def test_missing_profile_shows_unknown_user(users):
    db.session.add(JoinRecord(user_id=users["bob"], owner_id=9999, token="orphan"))
    db.session.commit()
    joined = sharing.list_joined(users["bob"])
    assert [j["name"] for j in joined] == ["Unknown User"]


def test_shared_view_aggregates_owner_expenses(users):
    alice = users["alice"]
    create_expense(alice, "Lunch", 100, "$", "food", spent_on=date(2024, 1, 2))
    create_expense(alice, "Rent", 50, "₹", "rent", spent_on=date(2024, 1, 1))
    create_expense(users["bob"], "Not shared", 1000, "$", "travel")
    token = token_of(sharing.create_share_link(alice))

    view = sharing.get_shared_view(token)
    assert view["owner_name"] == "Alice"
    assert view["totals"] == {"$": 100, "₹": 50}
    assert view["transaction_count"] == 2
    assert (view["highest_category"], view["lowest_category"]) == ("food", "rent")
    assert [p.date for p in view["trend"]] == [date(2024, 1, 1), date(2024, 1, 2)]

    with pytest.raises(NotFound):
        sharing.get_shared_view("nope")


def test_storage_faults_become_transient(ctx):
    @guard_storage
    def flaky():
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    with pytest.raises(TransientIO):
        flaky()


def test_driver_errors_become_transient(ctx):
    @guard_storage
    def broken():
        raise DatabaseError("SELECT 1", {}, Exception("disk I/O error"))

    with pytest.raises(TransientIO):
        broken()


def test_integrity_errors_are_not_transient(ctx):
    @guard_storage
    def duplicate():
        raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))

    with pytest.raises(IntegrityError):
        duplicate()
