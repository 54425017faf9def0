"""
Tests for request and form validation.
"""
import base64

import pytest

from tech_incidents.exceptions import (
    FileTooLargeError,
    InvalidFileTypeError,
    MissingFieldError,
    ValidationError,
)
from tech_incidents.validation import (
    check_image_payload,
    collect_delete_ids,
    decode_data_url,
    normalize_incident_fields,
    normalize_reset_token,
    prepare_incident_update,
    prepare_new_incident,
    require_fields,
    validate_date_string,
    validate_email,
    validate_min_length,
    validate_password,
)

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
PNG_DATA_URL = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()


def valid_addition(**overrides):
    addition = {
        "name": "Mars Climate Orbiter",
        "incident_date": "23-09-1999",
        "description": "Imperial versus metric units",
        "category": "Software",
    }
    addition.update(overrides)
    return addition


class TestRequireFields:
    """Tests for required field checks."""

    def test_all_present(self):
        require_fields({"email": "a@b.co", "password": "x"}, "email", "password")

    def test_single_missing(self):
        with pytest.raises(MissingFieldError, match="Incident date is required") as exc_info:
            require_fields({"name": "x", "incident_date": "  "}, "name", "incident_date")
        assert exc_info.value.details == {"fields": ["incident_date"]}

    def test_many_missing(self):
        with pytest.raises(MissingFieldError, match="Missing required fields: email, password"):
            require_fields(None, "email", "password")


class TestFieldValidators:
    """Tests for the tuple-returning validators."""

    @pytest.mark.parametrize("email,valid", [
        ("ada@example.com", True),
        ("  ada@example.com ", True),
        ("ada@example", False),
        ("ada example.com", False),
        ("", False),
        (None, False),
    ])
    def test_validate_email(self, email, valid):
        assert validate_email(email)[0] is valid

    @pytest.mark.parametrize("password,message", [
        ("Secret12", ""),
        ("", "Password is required."),
        ("Sh0rt", "Password must be at least 8 characters."),
        ("lowercase1", "Password must include at least one uppercase letter."),
        ("NoNumbersHere", "Password must include at least one number."),
    ])
    def test_validate_password(self, password, message):
        assert validate_password(password)[1] == message

    def test_validate_password_special(self):
        assert validate_password("Secret12", require_special=True)[0] is False
        assert validate_password("Secret12!", require_special=True) == (True, "")

    def test_validate_min_length(self):
        assert validate_min_length("Ada", 2, "Display name") == (True, "")
        assert validate_min_length("A", 2, "Display name") == (
            False,
            "Display name must be at least 2 characters.",
        )
        assert validate_min_length(" ", 2, "Display name")[1] == "Display name is required."


class TestValidateDateString:
    """Tests for DD-MM-YYYY form dates."""

    def test_valid(self):
        assert validate_date_string("04-06-1996") == (True, "")

    def test_wrong_format(self):
        assert validate_date_string("1996-06-04")[1] == (
            "Please enter a valid date in DD-MM-YYYY format."
        )

    def test_not_in_calendar(self):
        assert validate_date_string("31-02-1999") == (
            False,
            "This date doesn't exist in the calendar.",
        )

    def test_range(self):
        assert validate_date_string("31-12-1979")[1] == "Date must be on or after 01-01-1980."
        assert validate_date_string("01-01-2030")[1] == "Date must be on or before 31-12-2029."
        assert validate_date_string("01-01-1980")[0] is True

    def test_blank(self):
        assert validate_date_string("")[1] == "Date is required."


class TestImagePayload:
    """Tests for embedded base64 images."""

    def test_data_url_decoded(self):
        mime, raw = decode_data_url(PNG_DATA_URL)

        assert mime == "image/png"
        assert raw == PNG_BYTES

    def test_plain_base64(self):
        mime, raw = decode_data_url(base64.b64encode(PNG_BYTES).decode())

        assert mime is None
        assert raw == PNG_BYTES

    def test_invalid_base64(self):
        with pytest.raises(ValidationError, match="not valid base64"):
            decode_data_url("!!!not base64!!!")

    def test_accepted(self):
        assert check_image_payload(PNG_DATA_URL) == len(PNG_BYTES)

    def test_explicit_type_wins(self):
        raw = base64.b64encode(PNG_BYTES).decode()

        assert check_image_payload(raw, file_type="image/PNG") == len(PNG_BYTES)

    def test_unsupported_type(self):
        data = "data:text/plain;base64," + base64.b64encode(b"hello").decode()

        with pytest.raises(InvalidFileTypeError, match="text/plain"):
            check_image_payload(data)

    def test_unknown_type(self):
        with pytest.raises(InvalidFileTypeError, match="unknown"):
            check_image_payload(base64.b64encode(PNG_BYTES).decode())

    def test_too_large(self):
        with pytest.raises(FileTooLargeError):
            check_image_payload(PNG_DATA_URL, max_size_mb=0)


class TestPrepareNewIncident:
    """Tests for create-incident submissions."""

    def test_date_converted(self):
        prepared = prepare_new_incident({"addition": valid_addition()})

        assert prepared == {"addition": valid_addition(incident_date="1999-09-23")}

    def test_iso_date_kept(self):
        prepared = prepare_new_incident({"addition": valid_addition(incident_date="1999-09-23")})

        assert prepared["addition"]["incident_date"] == "1999-09-23"

    def test_unrecognized_date(self):
        with pytest.raises(ValidationError, match="valid date"):
            prepare_new_incident({"addition": valid_addition(incident_date="September 1999")})

    def test_missing_addition(self):
        with pytest.raises(MissingFieldError, match="Incident data is required"):
            prepare_new_incident({})

    def test_not_an_object(self):
        with pytest.raises(ValidationError):
            prepare_new_incident(["not", "a", "dict"])

    def test_missing_description(self):
        with pytest.raises(MissingFieldError, match="Description is required"):
            prepare_new_incident({"addition": valid_addition(description="")})

    def test_image_fields_relayed(self):
        payload = {
            "addition": valid_addition(artifactType="image"),
            "fileData": PNG_DATA_URL,
            "fileName": "orbiter.png",
            "fileType": "image/png",
        }

        prepared = prepare_new_incident(payload)

        assert prepared["fileData"] == PNG_DATA_URL
        assert prepared["fileName"] == "orbiter.png"

    def test_file_data_rejected_for_code_artifacts(self):
        payload = {
            "addition": valid_addition(artifactType="code", artifactContent="x = 1"),
            "fileData": PNG_DATA_URL,
        }

        with pytest.raises(ValidationError, match="only accepted for image artifacts"):
            prepare_new_incident(payload)

    def test_file_name_stripped_of_path(self):
        payload = {
            "addition": valid_addition(artifactType="image"),
            "fileData": PNG_DATA_URL,
            "fileName": "../../uploads/orbiter.png",
        }

        assert prepare_new_incident(payload)["fileName"] == "orbiter.png"

    @pytest.mark.parametrize("incident_date,message", [
        ("31-02-1999", "This date doesn't exist in the calendar."),
        ("1999-02-31", "This date doesn't exist in the calendar."),
        ("01-01-1850", "Date must be on or after 01-01-1980."),
        ("2031-01-01", "Date must be on or before 31-12-2029."),
    ])
    def test_date_checked_before_relay(self, incident_date, message):
        with pytest.raises(ValidationError) as exc_info:
            prepare_new_incident({"addition": valid_addition(incident_date=incident_date)})

        assert str(exc_info.value) == message
        assert exc_info.value.details == {"fields": ["incident_date"]}

    def test_typed_date_masked(self):
        prepared = prepare_new_incident({"addition": valid_addition(incident_date="23/09/1999")})

        assert prepared["addition"]["incident_date"] == "1999-09-23"

    def test_image_too_large(self):
        payload = {"addition": valid_addition(artifactType="image"), "fileData": PNG_DATA_URL}

        with pytest.raises(FileTooLargeError):
            prepare_new_incident(payload, max_size_mb=0)


class TestPrepareIncidentUpdate:
    """Tests for update submissions."""

    def test_update(self):
        prepared = prepare_incident_update({"id": 4, "update": {"incident_date": "04-06-1996"}})

        assert prepared == {"id": 4, "update": {"incident_date": "1996-06-04"}}

    def test_missing_id(self):
        with pytest.raises(MissingFieldError, match="Incident ID is required"):
            prepare_incident_update({"update": {"name": "x"}})

    def test_update_must_be_object(self):
        with pytest.raises(ValidationError, match="Update must be a JSON object"):
            prepare_incident_update({"id": 1, "update": ["name"]})

    def test_image_update(self):
        prepared = prepare_incident_update({
            "id": 4,
            "update": {"artifactType": "image"},
            "fileData": PNG_DATA_URL,
            "fileType": "image/png",
        })

        assert prepared["fileData"] == PNG_DATA_URL
        assert prepared["fileName"] is None

    def test_impossible_date(self):
        with pytest.raises(ValidationError, match="doesn't exist"):
            prepare_incident_update({"id": 4, "update": {"incident_date": "30-02-2001"}})


def test_normalize_incident_fields_without_date():
    assert normalize_incident_fields({"name": "x"}) == {"name": "x"}


class TestCollectDeleteIds:
    """Tests for delete payloads."""

    def test_single_id(self):
        assert collect_delete_ids({"id": 7}) == [7]

    def test_many_ids(self):
        assert collect_delete_ids({"ids": [1, "", None, 2]}) == [1, 2]

    @pytest.mark.parametrize("payload", [None, {}, {"ids": []}, {"id": " "}, {"ids": "1,2"}])
    def test_no_ids(self, payload):
        with pytest.raises(ValidationError, match="No valid incident IDs provided") as exc_info:
            collect_delete_ids(payload)
        assert exc_info.value.error_type == "bad_request"


@pytest.mark.parametrize("token,expected", [
    ("abc123", "abc123"),
    ("access_token=abc123", "abc123"),
    ("#access_token=abc=123", "abc=123"),
])
def test_normalize_reset_token(token, expected):
    assert normalize_reset_token(token) == expected
