"""Unit tests for Argon2PasswordHasher."""

from lodge.adapter.password import Argon2PasswordHasher


class TestArgon2PasswordHasher:
    """Tests for Argon2PasswordHasher."""

    def test_hash_is_salted(self, password_hasher):
        assert password_hasher.hash("Str0ng!pass") != password_hasher.hash("Str0ng!pass")

    def test_verify_matches_only_the_original(self, password_hasher):
        digest = password_hasher.hash("Str0ng!pass")

        assert password_hasher.verify("Str0ng!pass", digest)
        assert not password_hasher.verify("str0ng!pass", digest)

    def test_verify_never_raises_on_garbage_digest(self, password_hasher):
        assert not password_hasher.verify("Str0ng!pass", "not-a-hash")

    def test_weaker_parameters_need_rehash(self, password_hasher):
        digest = password_hasher.hash("Str0ng!pass")

        assert Argon2PasswordHasher().needs_rehash(digest)
        assert not password_hasher.needs_rehash(digest)
