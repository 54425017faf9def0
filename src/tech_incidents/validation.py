"""
Request and form validation.

Everything here runs before any call to the backend, so an invalid
submission never leaves the service. Two styles are provided:

- ``validate_*`` helpers return ``(is_valid, error_message)`` tuples for
  callers that collect field errors (forms, the CLI);
- ``check_*`` / ``require_fields`` raise :class:`ValidationError`
  subclasses for the proxy routes, where the first failure short-circuits.
"""
import base64
import binascii
import logging
import re
from datetime import date
from typing import Any, Dict, Mapping, Optional, Tuple

from .constants import (
    ALLOWED_IMAGE_TYPES,
    DEFAULT_MAX_IMAGE_SIZE_MB,
    MAX_INCIDENT_DATE,
    MIN_INCIDENT_DATE,
    MIN_PASSWORD_LENGTH,
)
from .dates import convert_date_for_storage, format_date_input, is_iso_date
from .exceptions import (
    FileTooLargeError,
    InvalidFileTypeError,
    MissingFieldError,
    ValidationError,
)
from .models import ArtifactType
from .sanitization import sanitize_filename_for_display

logger = logging.getLogger(__name__)

_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_DISPLAY_DATE = re.compile(r"^(\d{2})-(\d{2})-(\d{4})$")
_DATA_URL = re.compile(r"^data:(?P<mime>[\w/+.-]+)?(;[\w=-]+)*;base64,(?P<data>.*)$", re.DOTALL)

INCIDENT_REQUIRED_FIELDS = ("name", "incident_date", "description")

ValidationResult = Tuple[bool, str]


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def require_fields(payload: Optional[Mapping[str, Any]], *fields: str) -> None:
    """
    Raise if any of ``fields`` is missing or blank.

    Raises:
        MissingFieldError: Naming every missing field
    """
    if payload is None:
        payload = {}
    missing = [name for name in fields if _blank(payload.get(name))]
    if not missing:
        return
    if len(missing) == 1:
        message = f"{missing[0].replace('_', ' ').capitalize()} is required"
    else:
        message = f"Missing required fields: {', '.join(missing)}"
    raise MissingFieldError(message, details={"fields": missing})


def validate_email(email: Optional[str]) -> ValidationResult:
    """
    Validate an email address.

    Example:
        >>> validate_email("ada@example.com")
        (True, '')
        >>> validate_email("not-an-email")
        (False, 'Please enter a valid email address.')
    """
    if _blank(email):
        return False, "Email is required."
    if not _EMAIL.match(email.strip()):
        return False, "Please enter a valid email address."
    return True, ""


def validate_password(
    password: Optional[str],
    min_length: int = MIN_PASSWORD_LENGTH,
    require_uppercase: bool = True,
    require_numbers: bool = True,
    require_special: bool = False,
) -> ValidationResult:
    """Validate password strength."""
    if not password:
        return False, "Password is required."
    if len(password) < min_length:
        return False, f"Password must be at least {min_length} characters."
    if require_uppercase and not re.search(r"[A-Z]", password):
        return False, "Password must include at least one uppercase letter."
    if require_numbers and not re.search(r"\d", password):
        return False, "Password must include at least one number."
    if require_special and not re.search(r"[!@#$%^&*(),.?\":{}|<>]", password):
        return False, "Password must include at least one special character."
    return True, ""


def validate_min_length(value: Optional[str], min_length: int, field_name: str) -> ValidationResult:
    if _blank(value):
        return False, f"{field_name} is required."
    if len(value.strip()) < min_length:
        return False, f"{field_name} must be at least {min_length} characters."
    return True, ""


def validate_date_string(
    value: Optional[str],
    min_date: date = date(*MIN_INCIDENT_DATE),
    max_date: date = date(*MAX_INCIDENT_DATE),
) -> ValidationResult:
    """
    Validate a ``DD-MM-YYYY`` form date: format, calendar validity and range.

    Example:
        >>> validate_date_string("31-02-1999")
        (False, "This date doesn't exist in the calendar.")
    """
    if _blank(value):
        return False, "Date is required."
    match = _DISPLAY_DATE.match(value.strip())
    if not match:
        return False, "Please enter a valid date in DD-MM-YYYY format."

    day, month, year = (int(part) for part in match.groups())
    try:
        parsed = date(year, month, day)
    except ValueError:
        return False, "This date doesn't exist in the calendar."

    if parsed < min_date:
        return False, f"Date must be on or after {min_date.strftime('%d-%m-%Y')}."
    if parsed > max_date:
        return False, f"Date must be on or before {max_date.strftime('%d-%m-%Y')}."
    return True, ""


def decode_data_url(data: str) -> Tuple[Optional[str], bytes]:
    """
    Decode a base64 payload, with or without a ``data:`` URL prefix.

    Returns:
        (mime type from the prefix or None, decoded bytes)

    Raises:
        ValidationError: If the payload is not valid base64
    """
    mime = None
    match = _DATA_URL.match(data)
    if match:
        mime = match.group("mime")
        data = match.group("data")
    try:
        return mime, base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError("Image data is not valid base64") from e


def check_image_payload(
    file_data: str,
    file_type: Optional[str] = None,
    max_size_mb: int = DEFAULT_MAX_IMAGE_SIZE_MB,
) -> int:
    """
    Check an embedded base64 image against type and size limits.

    Returns:
        Decoded size in bytes

    Raises:
        InvalidFileTypeError: If the content type is not an allowed image
        FileTooLargeError: If the decoded image exceeds ``max_size_mb``
    """
    mime, raw = decode_data_url(file_data)
    content_type = (file_type or mime or "").lower()
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise InvalidFileTypeError(
            f"File type '{content_type or 'unknown'}' is not supported. "
            f"Allowed types: {', '.join(sorted(ALLOWED_IMAGE_TYPES))}"
        )

    max_bytes = max_size_mb * 1024 * 1024
    if len(raw) > max_bytes:
        raise FileTooLargeError(
            f"Image too large: {len(raw) / (1024 * 1024):.1f}MB (max: {max_size_mb}MB)"
        )
    logger.debug(f"Image payload accepted: {content_type} ({len(raw)} bytes)")
    return len(raw)


def check_incident_date(raw_date: str) -> str:
    """
    Check a submitted incident date and return it as ``YYYY-MM-DD``.

    ISO dates are checked in their ``DD-MM-YYYY`` form; anything else goes
    through the form's input mask first (``04/06/1996`` -> ``04-06-1996``).

    Raises:
        ValidationError: If the date is malformed, not in the calendar or
            outside the accepted range
    """
    text = raw_date.strip()
    if is_iso_date(text):
        year, month, day = text.split("-")
        display = f"{day}-{month}-{year}"
    else:
        display = format_date_input(text)

    is_valid, message = validate_date_string(display)
    if not is_valid:
        raise ValidationError(message, details={"fields": ["incident_date"]})
    return convert_date_for_storage(display)


def normalize_incident_fields(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Prepare incident form data for the backend.

    Form dates in ``DD-MM-YYYY`` are converted to ``YYYY-MM-DD`` after the
    same checks the admin form runs.

    Raises:
        ValidationError: If the date is rejected by :func:`check_incident_date`
    """
    normalized = dict(fields)
    raw_date = normalized.get("incident_date")
    if isinstance(raw_date, str) and raw_date.strip():
        normalized["incident_date"] = check_incident_date(raw_date)
    return normalized


def prepare_file_fields(
    payload: Mapping[str, Any],
    artifact_type: Any,
    max_size_mb: int,
) -> Dict[str, Any]:
    """
    Validate the optional ``fileData``/``fileName``/``fileType`` fields.

    File data is only accepted for image artifacts. The file name is
    stripped of path components before it is relayed.

    Raises:
        ValidationError: If file data accompanies a non-image artifact
        InvalidFileTypeError: If the image type is not allowed
        FileTooLargeError: If the image is too large
    """
    file_data = payload.get("fileData")
    if not file_data:
        return {}
    if artifact_type != ArtifactType.IMAGE:
        raise ValidationError(
            "File data is only accepted for image artifacts",
            details={"fields": ["fileData", "artifactType"]},
        )

    check_image_payload(file_data, payload.get("fileType"), max_size_mb)
    file_name = payload.get("fileName")
    return {
        "fileData": file_data,
        "fileName": sanitize_filename_for_display(file_name) if file_name else file_name,
        "fileType": payload.get("fileType"),
    }


def prepare_new_incident(
    payload: Optional[Mapping[str, Any]],
    max_size_mb: int = DEFAULT_MAX_IMAGE_SIZE_MB,
) -> Dict[str, Any]:
    """
    Validate and normalize a create-incident submission.

    The submission is ``{"addition": {...incident fields...}}`` plus,
    for image artifacts, ``fileData``/``fileName``/``fileType``.

    Returns:
        The payload to relay to the backend

    Raises:
        ValidationError: On the first problem found
    """
    if not isinstance(payload, Mapping):
        raise ValidationError("Request body must be a JSON object")

    addition = payload.get("addition")
    if not isinstance(addition, Mapping):
        raise MissingFieldError("Incident data is required", details={"fields": ["addition"]})

    require_fields(addition, *INCIDENT_REQUIRED_FIELDS)
    prepared: Dict[str, Any] = {"addition": normalize_incident_fields(addition)}
    prepared.update(prepare_file_fields(payload, addition.get("artifactType"), max_size_mb))
    return prepared


def prepare_incident_update(
    payload: Optional[Mapping[str, Any]],
    max_size_mb: int = DEFAULT_MAX_IMAGE_SIZE_MB,
) -> Dict[str, Any]:
    """
    Validate and normalize an update submission ``{"id", "update", ...}``.

    File data is accepted only when the update switches the artifact to an
    image.

    Raises:
        ValidationError: If the id is missing or the update is malformed
    """
    if not isinstance(payload, Mapping):
        raise ValidationError("Request body must be a JSON object")
    if _blank(payload.get("id")):
        raise MissingFieldError("Incident ID is required", details={"fields": ["id"]})

    update = payload.get("update") or {}
    if not isinstance(update, Mapping):
        raise ValidationError("Update must be a JSON object")

    prepared: Dict[str, Any] = {
        "id": payload["id"],
        "update": normalize_incident_fields(update),
    }
    prepared.update(prepare_file_fields(payload, update.get("artifactType"), max_size_mb))
    return prepared


def collect_delete_ids(payload: Optional[Mapping[str, Any]]) -> list:
    """
    Extract incident ids from ``{"id": x}`` or ``{"ids": [...]}``.

    Raises:
        ValidationError: If no id is given
    """
    payload = payload or {}
    ids: list = []
    if not _blank(payload.get("id")):
        ids = [payload["id"]]
    elif isinstance(payload.get("ids"), list):
        ids = [i for i in payload["ids"] if not _blank(i)]

    if not ids:
        raise ValidationError("No valid incident IDs provided", error_type="bad_request")
    return ids


def normalize_reset_token(token: str) -> str:
    """Strip an ``access_token=`` prefix copied from a recovery link."""
    if "access_token" in token and "=" in token:
        return token.split("=", 1)[1]
    return token
