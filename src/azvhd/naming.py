"""Resource naming helpers.

Random suffixes keep repeated runs of the sample from colliding with each
other in the same subscription.
"""

import secrets
import string

_PASSWORD_SYMBOLS = "!@#$%^*()-_=+"


def create_random_name(prefix: str, max_len: int | None = None, digits: int = 5) -> str:
    """Return prefix followed by random digits.

    Args:
        prefix: Name prefix (e.g. "windowsVM")
        max_len: Optional maximum total length; the prefix is truncated to fit
        digits: Number of random digits to append

    Returns:
        Generated name

    Example:
        >>> create_random_name("vnet")  # doctest: +SKIP
        'vnet40213'
    """
    suffix = "".join(secrets.choice(string.digits) for _ in range(digits))
    if max_len is not None:
        if max_len <= digits:
            raise ValueError(f"max_len must be greater than {digits}, got {max_len}")
        prefix = prefix[: max_len - digits]
    return f"{prefix}{suffix}"


def create_storage_account_name(prefix: str = "vhds") -> str:
    """Return a storage account name: 3-24 lowercase letters and digits."""
    clean = "".join(c for c in prefix.lower() if c.isalnum())
    suffix = "".join(secrets.choice(string.ascii_lowercase + string.digits) for _ in range(12))
    return f"{clean[:12]}{suffix}"[:24]


def create_password(length: int = 20) -> str:
    """Generate a password meeting Azure VM complexity rules.

    Azure requires 3 of: lowercase, uppercase, digit, special character.
    All four classes are always included.
    """
    if length < 12:
        raise ValueError("Password length must be at least 12")

    pools = [string.ascii_lowercase, string.ascii_uppercase, string.digits, _PASSWORD_SYMBOLS]
    chars = [secrets.choice(pool) for pool in pools]
    alphabet = "".join(pools)
    chars.extend(secrets.choice(alphabet) for _ in range(length - len(chars)))

    # Shuffle so the class order is not predictable
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)
