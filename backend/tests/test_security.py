"""
Tests for PIN hashing and session token helpers.

Tests verify that:
- The same PIN under two salts yields two different hashes
- Verification accepts the right PIN and rejects a wrong one
- PIN policy is 4-8 digits
- Session tokens are opaque random hex strings
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from taskflow.core.security import (
    generate_salt,
    generate_token,
    hash_pin,
    is_valid_pin,
    token_expiry,
    verify_pin,
)

ROUNDS = 1000


def test_same_pin_different_salts_differ():
    salt_a, salt_b = generate_salt(), generate_salt()
    assert salt_a != salt_b
    assert hash_pin("1234", salt_a, ROUNDS) != hash_pin("1234", salt_b, ROUNDS)


def test_hash_is_deterministic_for_fixed_salt():
    salt = generate_salt()
    assert hash_pin("482913", salt, ROUNDS) == hash_pin("482913", salt, ROUNDS)


def test_verify_pin():
    salt = generate_salt()
    stored = hash_pin("1234", salt, ROUNDS)

    assert verify_pin("1234", stored) is True
    assert verify_pin("4321", stored) is False
    assert verify_pin(1234, stored) is True


def test_verify_pin_survives_round_count_change():
    salt = generate_salt()
    stored = hash_pin("1234", salt, 1000)

    # Rounds come from the stored hash, not from the current setting.
    assert hash_pin("1234", salt, 2000) != stored
    assert verify_pin("1234", stored) is True
    assert verify_pin("9999", stored) is False


def test_verify_pin_rejects_empty_or_malformed_hash():
    assert verify_pin("1234", "") is False
    assert verify_pin("1234", "not-a-hash") is False


def test_raw_pin_never_appears_in_hash():
    salt = generate_salt()
    assert "98765432" not in hash_pin("98765432", salt, ROUNDS)


@pytest.mark.parametrize(
    "pin, valid",
    [
        ("1234", True),
        ("12345678", True),
        (1234, True),
        ("123", False),
        ("123456789", False),
        ("12a4", False),
        ("", False),
        (None, False),
    ],
)
def test_pin_policy(pin, valid):
    assert is_valid_pin(pin) is valid


def test_generate_token():
    first, second = generate_token(), generate_token()
    assert first != second
    assert len(first) == 64
    int(first, 16)  # hex


def test_token_expiry_is_ttl_days_ahead():
    now = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
    assert token_expiry(30, now) == now + timedelta(days=30)
