from datetime import datetime

import pytest

from app.core.errors import ValidationError
from app.core.forms import parse_bool, parse_content_form, parse_identities, parse_max_views
from app.models.content import ContentKind


def test_parse_content_form_coerces_strings():
    draft = parse_content_form({
        "type": "text",
        "content": "hello",
        "expiryMinutes": "30",
        "maxViews": "3",
        "oneTimeView": "true",
        "password": "hunter22",
        "allowedEmails": "A@example.com, b@example.com;a@example.com",
    })

    assert draft.kind == ContentKind.TEXT
    assert draft.text == "hello"
    assert draft.expiry_minutes == 30
    assert draft.max_views == 3
    assert draft.one_time_view is True
    assert draft.password == "hunter22"
    assert draft.allowed_identities == ["a@example.com", "b@example.com"]


def test_parse_content_form_defaults():
    draft = parse_content_form({"type": "file"})

    assert draft.kind == ContentKind.FILE
    assert draft.expiry_minutes is None
    assert draft.expires_at is None
    assert draft.max_views is None
    assert draft.one_time_view is False
    assert draft.password is None
    assert draft.allowed_identities == []


def test_invalid_type_is_rejected():
    with pytest.raises(ValidationError):
        parse_content_form({"type": "image"})


@pytest.mark.parametrize("raw", ["abc", "", "0", "-2", None, "2147483648", "99999999999"])
def test_bad_max_views_is_ignored(raw):
    assert parse_max_views(raw) is None


def test_unparseable_expiry_falls_back_to_default():
    assert parse_content_form({"type": "text", "expiryMinutes": "soon"}).expiry_minutes is None


def test_expires_at_parsing():
    draft = parse_content_form({"type": "text", "expiresAt": "2030-01-02T03:04:05Z"})
    assert draft.expires_at.replace(tzinfo=None) == datetime(2030, 1, 2, 3, 4, 5)

    with pytest.raises(ValidationError):
        parse_content_form({"type": "text", "expiresAt": "next tuesday"})


@pytest.mark.parametrize("raw,expected", [("true", True), ("ON", True), ("1", True), ("false", False), ("", False), (None, False)])
def test_parse_bool(raw, expected):
    assert parse_bool(raw) is expected


def test_parse_identities_rejects_malformed_entries():
    with pytest.raises(ValidationError):
        parse_identities("ok@example.com, not-an-email")


def test_max_views_upper_bound_is_kept():
    assert parse_max_views("2147483647") == 2147483647
