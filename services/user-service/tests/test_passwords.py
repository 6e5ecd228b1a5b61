from __future__ import annotations

import pytest

from app.security.passwords import PasswordHasher


def test_hash_is_salted_and_verifiable(hasher: PasswordHasher):
    first = hasher.hash("pw123456")
    second = hasher.hash("pw123456")

    assert first != "pw123456"
    assert first != second
    assert first.startswith("$2b$04$")
    assert hasher.verify("pw123456", first)
    assert hasher.verify("pw123456", second)
    assert not hasher.verify("wrong-password", first)


def test_default_cost_factor_is_ten():
    assert PasswordHasher().hash("pw123456").startswith("$2b$10$")


def test_verify_returns_false_for_malformed_hashes(hasher: PasswordHasher):
    assert not hasher.verify("pw123456", "")
    assert not hasher.verify("pw123456", "pw123456")
    assert not hasher.verify("pw123456", "$2b$10$not-a-real-bcrypt-hash")


def test_hash_always_hashes_user_input(hasher: PasswordHasher):
    hash_shaped = "$2b$10$ThisIsMyActualPassword"
    stored = hasher.hash(hash_shaped)
    assert stored != hash_shaped
    assert hasher.verify(hash_shaped, stored)


def test_ensure_hashed_keeps_existing_hash(hasher: PasswordHasher):
    hashed = hasher.hash("pw123456")
    assert hasher.ensure_hashed(hashed) == hashed

    fresh = hasher.ensure_hashed("pw123456")
    assert fresh != "pw123456"
    assert hasher.verify("pw123456", fresh)


def test_hash_rejects_passwords_over_72_bytes(hasher: PasswordHasher):
    with pytest.raises(ValueError):
        hasher.hash("x" * 73)
    # multi-byte characters count by encoded length
    with pytest.raises(ValueError):
        hasher.hash("é" * 37)
    assert hasher.verify("x" * 72, hasher.hash("x" * 72))


def test_verify_rejects_over_long_candidates(hasher: PasswordHasher):
    stored = hasher.hash("x" * 72)
    assert not hasher.verify("x" * 80, stored)
