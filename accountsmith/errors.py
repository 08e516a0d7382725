"""
Accountsmith errors.
"""


class AccountsmithError(Exception):
    """Base exception for all Accountsmith errors."""
    pass


class ValidationError(AccountsmithError):
    """Invalid account parameters. No plan is produced for the account."""

    def __init__(self, message: str, title: str | None = None):
        self.title = title
        if title:
            message = f"{title}: {message}"
        super().__init__(message)


class DependencyError(AccountsmithError):
    """Prerequisite edges that form a cycle or name an unknown descriptor."""
    pass


class ConfigurationError(AccountsmithError):
    """Errors in configuration or account input files."""
    pass
