"""Unit tests for naming module."""

import string
from unittest.mock import patch

import pytest

from azvhd.naming import create_password, create_random_name, create_storage_account_name


class TestCreateRandomName:
    """Tests for create_random_name."""

    def test_prefix_and_digits(self):
        name = create_random_name("vnet")

        assert name.startswith("vnet")
        assert len(name) == len("vnet") + 5
        assert name[4:].isdigit()

    def test_max_len_truncates_prefix(self):
        """Test Windows computer names fit in 15 characters."""
        name = create_random_name("windowsVMwithALongPrefix", max_len=15)

        assert len(name) == 15
        assert name.startswith("windowsVMw")
        assert name[-5:].isdigit()

    def test_short_prefix_not_padded(self):
        name = create_random_name("vm", max_len=15)

        assert len(name) == 7

    def test_max_len_must_leave_room_for_prefix(self):
        with pytest.raises(ValueError, match="max_len"):
            create_random_name("vm", max_len=5)

    def test_names_differ_between_calls(self):
        """Test repeated runs do not collide (overwhelmingly likely)."""
        names = {create_random_name("rg", digits=12) for _ in range(20)}

        assert len(names) == 20


class TestCreateStorageAccountName:
    """Tests for create_storage_account_name."""

    def test_valid_storage_name(self):
        name = create_storage_account_name()

        assert 3 <= len(name) <= 24
        assert all(c in string.ascii_lowercase + string.digits for c in name)
        assert name.startswith("vhds")

    def test_prefix_is_cleaned(self):
        name = create_storage_account_name("My-Prefix_With.Stuff")

        assert name.startswith("myprefixwith")
        assert len(name) <= 24
        assert name.isalnum() and name == name.lower()


class TestCreatePassword:
    """Tests for create_password."""

    def test_contains_all_character_classes(self):
        password = create_password()

        assert len(password) == 20
        assert any(c in string.ascii_lowercase for c in password)
        assert any(c in string.ascii_uppercase for c in password)
        assert any(c in string.digits for c in password)
        assert any(not c.isalnum() for c in password)

    @patch("azvhd.naming.secrets.SystemRandom")
    def test_uses_system_random_shuffle(self, mock_random):
        password = create_password()

        mock_random.return_value.shuffle.assert_called_once()
        shuffled = mock_random.return_value.shuffle.call_args[0][0]
        assert "".join(shuffled) == password

    def test_passwords_differ(self):
        assert len({create_password() for _ in range(10)}) == 10

    def test_custom_length(self):
        assert len(create_password(32)) == 32

    def test_too_short_rejected(self):
        with pytest.raises(ValueError):
            create_password(8)
