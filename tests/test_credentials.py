# Copyright (C) 2024 LeFlow Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Password hashing, verification codes and session tokens."""

from datetime import timedelta

import pytest
from jose import jwt

from leflow_server.auth import (
    PasswordFormatError,
    create_session_token,
    decode_token,
    generate_verification_code,
    hash_password,
    verify_password,
)
from leflow_server.models.timestamp import utcnow


def test_hash_format_and_roundtrip():
    stored = hash_password("Secret1!")
    digest, salt = stored.split(".")
    assert len(digest) == 128
    assert len(salt) == 32
    assert verify_password("Secret1!", stored)
    assert not verify_password("secret1!", stored)


def test_salt_is_fresh_per_hash():
    assert hash_password("same") != hash_password("same")


def test_malformed_hash_raises():
    with pytest.raises(PasswordFormatError):
        verify_password("x", "no-separator")
    with pytest.raises(ValueError):
        verify_password("x", "zz.salt")


def test_verification_code_range():
    codes = {generate_verification_code() for _ in range(200)}
    assert all(len(c) == 6 and c.isdigit() for c in codes)
    assert all(100000 <= int(c) <= 999999 for c in codes)


def test_session_token_carries_only_ids():
    token = create_session_token("abc", 7, utcnow() + timedelta(minutes=5))
    payload = decode_token(token)
    assert payload["sid"] == "abc"
    assert payload["sub"] == "7"
    assert "role" not in payload


def test_expired_or_tampered_token_rejected():
    expired = create_session_token("abc", 7, utcnow() - timedelta(minutes=5))
    assert decode_token(expired) is None
    forged = jwt.encode(
        {"sub": "7", "sid": "abc", "exp": utcnow() + timedelta(minutes=5)}, "not-the-secret", algorithm="HS256"
    )
    assert decode_token(forged) is None
