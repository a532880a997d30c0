"""User directory factory.

``get_user_directory()`` / ``set_user_directory()`` swap the lookup used to
reject unknown users:
- TrustingDirectory by default
- InMemoryDirectory for tests
"""

from marketplace.customer.directory import TrustingDirectory, UserDirectory
from marketplace.errors import UserNotFound

_current_directory: UserDirectory | None = None


def get_user_directory() -> UserDirectory:
    global _current_directory
    if _current_directory is None:
        _current_directory = TrustingDirectory()
    return _current_directory


def set_user_directory(directory: UserDirectory) -> None:
    global _current_directory
    _current_directory = directory


def reset_user_directory() -> None:
    global _current_directory
    _current_directory = None


def ensure_user_exists(user_id) -> None:
    if not get_user_directory().exists(str(user_id)):
        raise UserNotFound(user_id)
