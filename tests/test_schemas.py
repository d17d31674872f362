from datetime import datetime

import pytest

from user_manager import schemas


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, None),
        ("", None),
        ("  ", None),
        (0, None),
        ("30", 30),
        (" 7 ", 7),
        ("30.0", 30),
        (41, 41),
    ],
)
def test_coerce_age(raw, expected):
    assert schemas.coerce_age(raw) == expected


@pytest.mark.parametrize("raw", ["old", "30.5", "inf", "99999999999999999999", 2**40])
def test_coerce_age_rejects_non_whole_or_out_of_range(raw):
    with pytest.raises(schemas.InvalidAgeError):
        schemas.coerce_age(raw)


def test_create_requires_username_fullname_and_email():
    assert schemas.UserCreate(username="a", fullname="A", email="a@x.io").missing_required() is False
    assert schemas.UserCreate(fullname="A", email="a@x.io").missing_required() is True
    assert schemas.UserCreate(username="a", fullname="", email="a@x.io").missing_required() is True


def test_patch_ignores_fields_that_were_not_sent():
    assert schemas.UserPatch().changes() == {}
    assert schemas.UserPatch.model_validate({"fullname": "New Name"}).changes() == {
        "fullname": "New Name"
    }


def test_patch_skips_blank_and_null_required_fields():
    patch = schemas.UserPatch.model_validate({"username": "", "email": None, "fullname": " "})
    assert patch.changes() == {}


def test_patch_age_falsy_means_clear():
    assert schemas.UserPatch.model_validate({"age": None}).changes() == {"age": None}
    assert schemas.UserPatch.model_validate({"age": ""}).changes() == {"age": None}
    assert schemas.UserPatch.model_validate({"age": "30"}).changes() == {"age": 30}


def test_patch_profilepic_null_clears_but_blank_is_ignored():
    assert schemas.UserPatch.model_validate({"profilepic": None}).changes() == {"profilepic": None}
    assert schemas.UserPatch.model_validate({"profilepic": ""}).changes() == {}


def test_user_out_serializes_camel_case_timestamps():
    now = datetime(2024, 1, 2, 3, 4, 5)
    out = schemas.UserOut(
        id="abc",
        username="a",
        fullname="A",
        email="a@x.io",
        created_at=now,
        updated_at=now,
    )

    dumped = out.model_dump(by_alias=True)
    assert dumped["createdAt"] == now
    assert dumped["updatedAt"] == now
    assert "created_at" not in dumped
