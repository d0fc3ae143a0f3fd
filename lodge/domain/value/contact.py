"""Contact normalization: phone numbers and email addresses.

Historical records may hold a phone in any format (``09876543210``,
``919876543210``, ``+91 98765-43210``...). Writes always store the canonical
E.164 form; reads search every variant.
"""

import re

import phonenumbers
from pydantic import field_validator

from lodge.domain.error import ValidationError
from lodge.domain.value.common import ValueObject

DEFAULT_REGION = "IN"

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PHONE_CHARS_RE = re.compile(r"[^0-9+]")


class NormalizedPhone(ValueObject):
    """A phone number in canonical form plus every stored-format variant."""

    canonical: str
    variants: frozenset[str]

    @field_validator("canonical")
    @classmethod
    def validate_canonical(cls, v: str) -> str:
        """Canonical form is E.164."""
        if not re.match(r"^\+[1-9]\d{6,14}$", v):
            raise ValueError("Canonical phone must be in E.164 form")
        return v

    def __str__(self) -> str:
        return self.canonical


def normalize_phone(raw: str, default_region: str = DEFAULT_REGION) -> NormalizedPhone:
    """Canonicalize a free-form phone number and enumerate its lookup variants.

    Pure and idempotent: normalizing a canonical number returns itself.
    Numbers without a country code are read in ``default_region``.

    Args:
        raw: Phone number as typed or as stored
        default_region: ISO region used when the number has no country code

    Returns:
        Canonical E.164 form plus variants (with/without country code,
        with/without leading zero, with/without "+")

    Raises:
        ValidationError: If the input cannot be a phone number
    """
    if not raw or not raw.strip():
        raise ValidationError("Phone number is required")

    cleaned = _PHONE_CHARS_RE.sub("", raw)
    if cleaned.count("+") > 1 or ("+" in cleaned and not cleaned.startswith("+")):
        raise ValidationError(f"Invalid phone number format: {raw}")

    try:
        parsed = phonenumbers.parse(cleaned, default_region)
    except phonenumbers.NumberParseException as e:
        raise ValidationError(f"Invalid phone number format: {raw}") from e

    if not phonenumbers.is_possible_number(parsed):
        raise ValidationError(f"Invalid phone number format: {raw}")

    canonical = phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)
    country_code = str(parsed.country_code)
    national = phonenumbers.national_significant_number(parsed)

    variants = {
        canonical,
        f"{country_code}{national}",
        national,
        f"0{national}",
        cleaned,
        raw.strip(),
    }
    return NormalizedPhone(canonical=canonical, variants=frozenset(variants))


def canonical_phone(raw: str, default_region: str = DEFAULT_REGION) -> str:
    """Shortcut for the canonical form of ``raw``."""
    return normalize_phone(raw, default_region).canonical


def phones_match(a: str | None, b: str | None, default_region: str = DEFAULT_REGION) -> bool:
    """Whether two phone strings denote the same number.

    Unparseable input never matches.
    """
    if not a or not b:
        return False
    try:
        return (
            normalize_phone(a, default_region).canonical
            == normalize_phone(b, default_region).canonical
        )
    except ValidationError:
        return False


def normalize_email(raw: str) -> str:
    """Lowercase and trim an email address.

    Raises:
        ValidationError: If the result is not shaped like an email address
    """
    if raw is None:
        raise ValidationError("Email is required")
    email = raw.strip().lower()
    if len(email) > 254 or not _EMAIL_RE.match(email):
        raise ValidationError(f"Invalid email address: {raw}")
    return email
