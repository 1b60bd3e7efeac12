"""
Error taxonomy for OAuth credential resolution.

Every failure raised by a credential source, the resolver or the adapters is a
CredentialError subclass carrying a short ``code``. Source readers raise the
specific subclasses; the resolver turns them into SourceResult failures and,
when nothing works, aggregates them into CredentialsNotFoundError. Callers of
the adapters only ever see CredentialLoadError.
"""

from typing import List, Optional, Sequence, Tuple


class CredentialError(Exception):
    """Base class for all credential resolution failures"""
    code = "CredentialError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class KeyFileReadError(CredentialError):
    """Key file is missing or unreadable"""
    code = "IOError"


class KeyFileParseError(CredentialError):
    """Key file is not valid JSON"""
    code = "ParseError"


class InvalidFormatError(CredentialError):
    """Key file parsed but matches neither accepted shape"""
    code = "InvalidFormat"


class MissingConfigError(CredentialError):
    """One or more required values are absent or empty"""
    code = "MissingConfig"

    def __init__(self, message: str, missing: Sequence[str] = ()):
        super().__init__(message)
        self.missing = list(missing)


class MissingTokenError(CredentialError):
    """Secrets service access token is not configured"""
    code = "MissingToken"


class SourceUnavailableError(CredentialError):
    """Secrets service call failed (transport, HTTP status, timeout, SDK)"""
    code = "SourceUnavailable"


class IncompleteCredentialsError(CredentialError):
    """Resolved record lacks a client id or client secret"""
    code = "IncompleteCredentials"

    def __init__(self, message: str, missing: Sequence[str] = ()):
        super().__init__(message)
        self.missing = list(missing)


class CredentialsNotFoundError(CredentialError):
    """
    Every configured source failed.

    ``failures`` keeps one ``(source, code, reason)`` tuple per attempted
    source, in the order they were tried.
    """
    code = "CredentialsNotFound"

    def __init__(self, failures: Sequence[Tuple[str, str, str]]):
        self.failures: List[Tuple[str, str, str]] = list(failures)
        if self.failures:
            details = "; ".join(
                f"{source}: [{code}] {reason}" for source, code, reason in self.failures
            )
        else:
            details = "no credential sources configured"
        super().__init__(f"OAuth credentials not found. Tried {details}")


class CredentialLoadError(CredentialError):
    """Caller-facing umbrella wrapping any other credential failure"""
    code = "CredentialLoadError"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
