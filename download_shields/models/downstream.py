from collections.abc import Awaitable
from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import field
from typing import Any
from typing import TypeAlias


@dataclass(frozen=True, slots=True)
class DownstreamResult:
    payload: Any
    set_cookies: tuple[str, ...] = field(default_factory=tuple)


DownstreamCall: TypeAlias = Callable[[str], Awaitable[DownstreamResult]]
