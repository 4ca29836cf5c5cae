"""Unit tests for auth/passwords.py -- bcrypt hashing and verification.

Covers:
- hash() is salted: two digests of one plaintext differ, both verify
- verify() rejects a wrong password
- verify() returns False (never raises) on malformed digests
- hash() accepts inputs bcrypt alone would reject or truncate
- the cost factor is encoded in the digest and validated on construction
"""

import pytest

from auth.passwords import PasswordHasher


class TestHashAndVerify:
    def test_hash_is_not_plaintext(self, hasher: PasswordHasher) -> None:
        digest = hasher.hash("hunter2")
        assert digest != "hunter2"
        assert "hunter2" not in digest

    def test_hash_is_salted(self, hasher: PasswordHasher) -> None:
        first = hasher.hash("same-password")
        second = hasher.hash("same-password")
        assert first != second
        assert hasher.verify("same-password", first)
        assert hasher.verify("same-password", second)

    def test_wrong_password_fails(self, hasher: PasswordHasher) -> None:
        digest = hasher.hash("right")
        assert not hasher.verify("wrong", digest)
        assert not hasher.verify("", digest)

    def test_digest_encodes_work_factor(self, hasher: PasswordHasher) -> None:
        assert hasher.hash("x").startswith("$2b$04$")

    def test_digest_from_other_work_factor_still_verifies(self, hasher: PasswordHasher) -> None:
        """Changing the configured cost must not lock out existing users."""
        other = PasswordHasher(work_factor=5)
        assert hasher.verify("pw", other.hash("pw"))


class TestUnusualInputs:
    @pytest.mark.parametrize(
        "plain",
        [
            "",
            "a" * 500,
            "nul\x00byte",
            "\ud800 lone surrogate",
            "pässwörd ✓",
        ],
        ids=["empty", "long", "nul", "surrogate", "unicode"],
    )
    def test_hash_never_raises(self, hasher: PasswordHasher, plain: str) -> None:
        digest = hasher.hash(plain)
        assert hasher.verify(plain, digest)

    def test_long_passwords_are_not_truncated(self, hasher: PasswordHasher) -> None:
        """Raw bcrypt ignores bytes past 72; the SHA-256 pre-hash must not."""
        base = "x" * 80
        digest = hasher.hash(base + "A")
        assert not hasher.verify(base + "B", digest)


class TestMalformedDigest:
    @pytest.mark.parametrize("digest", ["", "not-a-hash", "$2b$04$short", "$argon2id$v=19$whatever"])
    def test_malformed_digest_is_false(self, hasher: PasswordHasher, digest: str) -> None:
        assert hasher.verify("anything", digest) is False

    def test_verify_dummy_returns_none(self, hasher: PasswordHasher) -> None:
        assert hasher.verify_dummy("whatever") is None


class TestWorkFactorValidation:
    @pytest.mark.parametrize("work_factor", [3, 32, -1])
    def test_out_of_range_rejected(self, work_factor: int) -> None:
        with pytest.raises(ValueError):
            PasswordHasher(work_factor=work_factor)
