import base64
import json
from typing import MutableMapping, Optional, Protocol

# Browsers drop cookies above 4096 bytes; leave room for the signature,
# cookie name and attributes added by SessionMiddleware.
MAX_COOKIE_BYTES = 4096
COOKIE_OVERHEAD_BYTES = 200


class StorageFullError(ValueError):
    pass


class Storage(Protocol):
    """Key-value slot holding string values, shaped like browser localStorage."""

    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """Process-local storage. Used by tests and scripts."""

    def __init__(self, initial: Optional[dict] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)


class SessionStorage:
    """
    Storage bound to a request session (``request.session``).

    The session is serialized into a signed cookie, so writes that would push
    the encoded cookie past the browser limit raise StorageFullError and leave
    the session unchanged.
    """

    def __init__(self, session: MutableMapping, max_bytes: int = MAX_COOKIE_BYTES):
        self.session = session
        self.max_bytes = max_bytes

    def get_item(self, key: str) -> Optional[str]:
        value = self.session.get(key)
        return value if isinstance(value, str) else None

    def encoded_size(self, key: str, value: str) -> int:
        """Size of the session cookie payload if ``key`` were set to ``value``."""
        data = json.dumps({**self.session, key: value}).encode("utf-8")
        return len(base64.b64encode(data)) + COOKIE_OVERHEAD_BYTES

    def set_item(self, key: str, value: str) -> None:
        size = self.encoded_size(key, value)
        if size > self.max_bytes:
            raise StorageFullError(f"Session cookie would be {size} bytes, limit is {self.max_bytes}")
        self.session[key] = value

    def remove_item(self, key: str) -> None:
        self.session.pop(key, None)
