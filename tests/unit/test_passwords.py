"""Unit tests for password hashing."""

from utils.user_manager import UserManager, email_domain


class TestPasswordHashing:
    """Tests for UserManager.hash_password and verify_password."""

    def setup_method(self):
        self.manager = UserManager(None)

    def test_hash_verifies(self):
        hashed = self.manager.hash_password("rahasia123")

        assert hashed != "rahasia123"
        assert self.manager.verify_password("rahasia123", hashed)

    def test_wrong_password_rejected(self):
        hashed = self.manager.hash_password("rahasia123")

        assert not self.manager.verify_password("rahasia124", hashed)

    def test_hashes_are_salted(self):
        assert self.manager.hash_password("same") != self.manager.hash_password("same")

    def test_empty_inputs_rejected(self):
        assert not self.manager.verify_password("", "irrelevant")
        assert not self.manager.verify_password("rahasia123", "")

    def test_malformed_hash_rejected(self):
        assert not self.manager.verify_password("rahasia123", "not-a-bcrypt-hash")


def test_email_domain_is_lowercased():
    assert email_domain("Budi@SMAN1.sch.id") == "sman1.sch.id"
