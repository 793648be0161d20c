from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from typing import Any
from typing import TypeAlias
from typing import Final


CONTROL_ATTRIBUTES: Final = frozenset(("path", "expires", "domain", "secure", "httponly", "max-age", "session", "samesite"))


@dataclass(slots=True)
class CookieJar:
    """Cookie state of one resource.

    Control attribute names are stored lowercase, application cookie names
    are stored as received. ``expires_format`` is a ``strptime`` pattern for
    the ``expires`` attribute; ``None`` means an HTTP date.
    """

    entries: dict[str, str | None] = field(default_factory=dict)
    expires_format: str | None = None

    def __contains__(self, key: object) -> bool:
        return key in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, key: str) -> str | None:
        return self.entries.get(key)

    def copy(self) -> "CookieJar":
        return CookieJar(dict(self.entries), self.expires_format)


@dataclass(frozen=True, slots=True)
class StructuredUpdate:
    values: Mapping[Any, str | None]


@dataclass(frozen=True, slots=True)
class RawCookieString:
    value: str


CookieUpdate: TypeAlias = StructuredUpdate | RawCookieString
