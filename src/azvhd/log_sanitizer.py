"""Log sanitization module for preventing secret leakage.

Every error that reaches a log line in azvhd passes through this module
first. Azure SDK exceptions can echo request bodies, and VM create requests
carry the admin password, so the patterns cover:
- Client secrets
- Admin passwords
- Access tokens and Authorization headers
- Storage account keys and SAS signatures

Security Controls:
- Log sanitization - mask ALL secrets
- Error messages don't leak secrets

Design Philosophy:
- Security first: err on side of over-redaction
- Pattern-based: not brittle keyword matching
"""

import re
from re import Pattern
from typing import Any


class LogSanitizer:
    """Sanitize sensitive data from logs and error messages.

    All methods are class methods and can be called without instantiation.
    """

    REDACTED = "[REDACTED]"
    MASKED = "****"

    # Order matters: more specific patterns should come first
    SECRET_PATTERNS: dict[str, Pattern] = {
        "client_secret_assignment": re.compile(
            r'(client[_-]?secret["\']?\s*[:=]\s*["\']?)([^\s"\'&,\)]+)',
            re.IGNORECASE,
        ),
        "client_secret_env": re.compile(
            r"((?:AZURE_)?CLIENT_SECRET[\"']?\s*[:=]\s*[\"']?)([^\s\"'&,\)]+)",
            re.IGNORECASE,
        ),
        # Covers both password=... and "adminPassword": "..."
        "password": re.compile(
            r'((?:admin_?)?password["\']?\s*[:=]\s*["\']?)([^\s"\'&,\)\}]+)', re.IGNORECASE
        ),
        "authorization_bearer": re.compile(r"(Authorization:\s*Bearer\s+)([^\s]+)", re.IGNORECASE),
        "access_token": re.compile(
            r'(access[_-]?token["\']?\s*[:=]\s*["\']?)([^\s"\'&,\)]+)',
            re.IGNORECASE,
        ),
        "account_key": re.compile(
            r'(account[_-]?key["\']?\s*[:=]\s*["\']?)([^\s"\'&,;\)]+)', re.IGNORECASE
        ),
        # SAS signature in blob URLs (sig=...)
        "sas_signature": re.compile(r"([?&]sig=)([^&\s\"']+)", re.IGNORECASE),
        "secret_phrase": re.compile(
            r"(with secret:\s*|for secret:\s*|secret:\s*)([^\s,\)]+)", re.IGNORECASE
        ),
    }

    # UUID pattern for partial masking of client IDs
    UUID_PATTERN: Pattern = re.compile(
        r"\b([0-9a-f]{8})-([0-9a-f]{4})-([0-9a-f]{4})-([0-9a-f]{4})-([0-9a-f]{12})\b",
        re.IGNORECASE,
    )

    @classmethod
    def sanitize(cls, message: str) -> str:
        """Sanitize message by redacting sensitive patterns.

        Args:
            message: The message to sanitize

        Returns:
            Sanitized message with secrets replaced by [REDACTED]

        Examples:
            >>> LogSanitizer.sanitize("client_secret=abc123")
            'client_secret=[REDACTED]'
            >>> LogSanitizer.sanitize('"adminPassword": "Hunter2!"')
            '"adminPassword": "[REDACTED]"'
        """
        if not isinstance(message, str):
            message = str(message)

        result = message
        for pattern in cls.SECRET_PATTERNS.values():
            result = pattern.sub(r"\1" + cls.REDACTED, result)

        return result

    @classmethod
    def sanitize_client_id(cls, message: str) -> str:
        """Partially mask UUIDs (client IDs).

        Shows first 8 characters, masks the rest.

        Examples:
            >>> LogSanitizer.sanitize_client_id("client_id=12345678-1234-1234-1234-123456789abc")
            'client_id=12345678-****-****-****-************'
        """

        def uuid_replacer(match):
            return f"{match.group(1)}-****-****-****-************"

        return cls.UUID_PATTERN.sub(uuid_replacer, message)

    @classmethod
    def sanitize_dict(cls, data: dict[str, Any]) -> dict[str, Any]:
        """Sanitize dictionary values recursively.

        Used before a request payload (for example VM create parameters) is
        written to a debug log.

        Args:
            data: Dictionary to sanitize

        Returns:
            New dictionary with sensitive values redacted
        """
        sensitive_keys = {
            "client_secret",
            "password",
            "access_token",
            "token",
            "secret",
            "credential",
            "authorization",
            "account_key",
        }

        result: dict[str, Any] = {}
        for key, value in data.items():
            key_lower = key.lower()
            if any(sensitive_word in key_lower for sensitive_word in sensitive_keys):
                result[key] = cls.REDACTED
            elif isinstance(value, dict):
                result[key] = cls.sanitize_dict(value)
            elif isinstance(value, str):
                result[key] = cls.sanitize(value)
            elif isinstance(value, (list, tuple)):
                result[key] = type(value)(
                    cls.sanitize_dict(item)
                    if isinstance(item, dict)
                    else cls.sanitize(item)
                    if isinstance(item, str)
                    else item
                    for item in value
                )
            else:
                result[key] = value

        return result

    @classmethod
    def create_safe_error_message(cls, error: BaseException, context: str = "") -> str:
        """Create error message with secrets sanitized.

        Args:
            error: The exception to sanitize
            context: Optional context string to prepend

        Returns:
            Sanitized error message

        Examples:
            >>> err = ValueError("Auth failed with client_secret=abc123")
            >>> LogSanitizer.create_safe_error_message(err, "Authentication")
            'Authentication: Auth failed with client_secret=[REDACTED]'
        """
        sanitized_msg = cls.sanitize(str(error))

        if context:
            return f"{context}: {sanitized_msg}"
        return sanitized_msg

    @classmethod
    def sanitize_exception(cls, exc: BaseException) -> str:
        """Sanitize exception message.

        Examples:
            >>> exc = ValueError("Auth failed: client_secret=abc123")
            >>> LogSanitizer.sanitize_exception(exc)
            'Auth failed: client_secret=[REDACTED]'
        """
        return cls.sanitize(str(exc))
