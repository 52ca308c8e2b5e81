from datetime import datetime, timedelta

import pytest

from app.core.errors import ForbiddenError, PasswordRequiredError
from app.core.policy import (
    AccessRequest,
    can_manage_as_owner,
    can_view,
    check_manage_access,
    check_view_access,
)
from app.core.security import hash_password
from app.models.content import Content, ContentKind
from app.models.user import User

OWNER = User(id=1, email="owner@example.com")
FRIEND = User(id=2, email="friend@example.com")
OTHER = User(id=3, email="other@example.com")


def make_record(**overrides) -> Content:
    now = datetime(2030, 1, 1)
    fields = dict(
        id="abc123XYZ_",
        kind=ContentKind.TEXT,
        text="secret",
        created_at=now,
        expires_at=now + timedelta(minutes=10),
        view_count=0,
        max_views=None,
        one_time_view=False,
        password_hash=None,
        delete_token="delete-me",
        owner_id=OWNER.id,
        allowed_identities=[],
    )
    fields.update(overrides)
    return Content(**fields)


def test_can_view_respects_max_views():
    assert can_view(make_record())
    assert can_view(make_record(max_views=2, view_count=1))
    assert not can_view(make_record(max_views=2, view_count=2))


def test_open_record_allows_anonymous():
    check_view_access(make_record(), AccessRequest())


def test_allow_list():
    record = make_record(allowed_identities=["friend@example.com"])

    check_view_access(record, AccessRequest(identity=FRIEND))
    check_view_access(record, AccessRequest(identity=OWNER))
    with pytest.raises(ForbiddenError):
        check_view_access(record, AccessRequest(identity=OTHER))
    with pytest.raises(ForbiddenError):
        check_view_access(record, AccessRequest())


def test_password_gate_same_shape_for_missing_and_wrong():
    record = make_record(password_hash=hash_password("open sesame"))

    with pytest.raises(PasswordRequiredError) as missing:
        check_view_access(record, AccessRequest())
    with pytest.raises(PasswordRequiredError) as wrong:
        check_view_access(record, AccessRequest(password="close sesame"))

    for exc in (missing.value, wrong.value):
        assert exc.status_code == 401
        assert exc.to_dict()["requiresPassword"] is True
        assert exc.code == "password_required"

    check_view_access(record, AccessRequest(password="open sesame"))


def test_exhaustion_is_checked_before_password():
    record = make_record(max_views=1, view_count=1, password_hash=hash_password("pw-123456"))
    with pytest.raises(ForbiddenError):
        check_view_access(record, AccessRequest(password="wrong"))


def test_allow_list_is_checked_before_password():
    record = make_record(
        allowed_identities=["friend@example.com"],
        password_hash=hash_password("pw-123456"),
    )
    with pytest.raises(ForbiddenError):
        check_view_access(record, AccessRequest(identity=OTHER, password="pw-123456"))


def test_can_manage_as_owner():
    assert can_manage_as_owner(make_record(owner_id=None), None)
    assert can_manage_as_owner(make_record(), OWNER)
    assert not can_manage_as_owner(make_record(), OTHER)
    assert not can_manage_as_owner(make_record(), None)


def test_check_manage_access():
    record = make_record()

    check_manage_access(record, "delete-me", OWNER)
    with pytest.raises(ForbiddenError):
        check_manage_access(record, "wrong-token", OWNER)
    with pytest.raises(ForbiddenError):
        check_manage_access(record, "delete-me", OTHER)
    with pytest.raises(ForbiddenError):
        check_manage_access(record, "delete-me", None)

    check_manage_access(make_record(owner_id=None), "delete-me", None)
    with pytest.raises(ForbiddenError):
        check_manage_access(make_record(delete_token=None), None, OWNER)
