"""Unit tests for request tagging and log masking."""

import pytest

from lodge.util.logging import mask_phone
from lodge.util.observability import auth_channel


@pytest.mark.parametrize(
    ("path", "channel"),
    [
        ("/auth/code/verify", "one-time-code"),
        ("/auth/phone/link", "one-time-code"),
        ("/auth/register", "password"),
        ("/auth/login", "password"),
        ("/auth/callback/google", "social"),
        ("/auth/me", None),
        ("/health", None),
    ],
)
def test_auth_channel(path, channel):
    assert auth_channel(path) == channel


def test_mask_phone_keeps_last_four_digits():
    assert mask_phone("+919876543210") == "***3210"
    assert mask_phone(None) is None
