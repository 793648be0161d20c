import re
from collections.abc import Iterable
from collections.abc import Mapping
from datetime import UTC
from datetime import datetime
from datetime import timedelta
from email.utils import parsedate_to_datetime
from typing import Final

from download_shields.core.clock import Clock
from download_shields.core.clock import system_clock
from download_shields.models.cookie import CONTROL_ATTRIBUTES
from download_shields.models.cookie import CookieJar
from download_shields.models.cookie import CookieUpdate
from download_shields.models.cookie import RawCookieString
from download_shields.models.cookie import StructuredUpdate
from download_shields.services.custom_error import InvalidArgumentError


LEADING_INTEGER = re.compile(r"\s*([+-]?\d+)")
LATEST: Final = datetime.max.replace(tzinfo=UTC)
EARLIEST: Final = datetime.min.replace(tzinfo=UTC)


def is_control_attribute(key: object) -> bool:
    return str(key).strip().lower() in CONTROL_ATTRIBUTES


def normalize_key(key: object) -> str:
    return str(key).strip().lower() if is_control_attribute(key) else str(key)


def as_cookie_update(value: object) -> CookieUpdate:
    match value:
        case StructuredUpdate() | RawCookieString():
            return value
        case Mapping():
            return StructuredUpdate(value)
        case str():
            return RawCookieString(value)
        case _:
            raise InvalidArgumentError(f"add_cookies only takes a mapping or a string, got {type(value).__name__}")


def add_cookies(jar: CookieJar, value: CookieUpdate | Mapping[object, str | None] | str) -> None:
    """Merges ``value`` into ``jar`` in place, the last write of a key wins.

    A raw string is split on ``;`` and every segment on its first ``=``.
    A segment without ``=`` is kept as a key with no value.
    """
    match as_cookie_update(value):
        case StructuredUpdate(values):
            jar.entries.update({normalize_key(key): val for key, val in values.items()})
        case RawCookieString(raw):
            for segment in raw.split(";"):
                if not segment.strip():
                    continue
                name, separator, val = segment.partition("=")
                jar.entries[normalize_key(name.strip())] = val if separator else None


def parse_max_age(value: str) -> int:
    if (match := LEADING_INTEGER.match(value)) is None:
        return 0
    return int(match.group(1))


def parse_expires(value: str, expires_format: str | None = None) -> datetime | None:
    try:
        if expires_format is not None:
            parsed = datetime.strptime(value, expires_format)
        else:
            try:
                parsed = parsedate_to_datetime(value)
            except (TypeError, ValueError):
                parsed = datetime.fromisoformat(value)

        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed.astimezone(UTC)
    except (TypeError, ValueError, OverflowError):
        return None


def after(now: datetime, seconds: int) -> datetime:
    """``now`` shifted by ``seconds``, clamped to the representable range."""
    try:
        return (now + timedelta(seconds=seconds)).astimezone(UTC)
    except OverflowError:
        return LATEST if seconds > 0 else EARLIEST


def expiration(jar: CookieJar, clock: Clock = system_clock) -> datetime | None:
    """``max-age`` takes precedence over ``expires``, the result is UTC."""
    if max_age := (jar.get("max-age") or "").strip():
        return after(clock.now(), parse_max_age(max_age))

    if not (expires := (jar.get("expires") or "").strip()):
        return None
    return parse_expires(expires, jar.expires_format)


def to_cookie_string(jar: CookieJar) -> str:
    """Renders the application cookies of ``jar`` as a ``Cookie`` header.

    Destructive: control attributes are deleted from the jar first, read them
    before calling this if they are still needed.
    """
    for key in [key for key in jar.entries if is_control_attribute(key)]:
        del jar.entries[key]
    return "; ".join(f"{key}={'' if value is None else value}" for key, value in jar.entries.items())


def cookie_header(jar: CookieJar) -> str:
    return to_cookie_string(jar.copy())


def collect_cookies(set_cookies: Iterable[str]) -> CookieJar:
    """Folds ``Set-Cookie`` header values into one jar of updates."""
    updates = CookieJar()
    for set_cookie in set_cookies:
        add_cookies(updates, set_cookie)
    return updates
