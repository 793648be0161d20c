from functools import lru_cache
from html import escape
from typing import Final

import orjson

from download_shields.services.custom_error import UnsupportedFormatError


SVG_TEMPLATE: Final = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="20" role="img" aria-label="{label}: {message}">'
    "<title>{label}: {message}</title>"
    '<rect width="{label_width}" height="20" fill="#555"/>'
    '<rect x="{label_width}" width="{message_width}" height="20" fill="{color}"/>'
    '<g fill="#fff" text-anchor="middle" font-family="Verdana,Geneva,sans-serif" font-size="11">'
    '<text x="{label_x}" y="14">{label}</text>'
    '<text x="{message_x}" y="14">{message}</text>'
    "</g></svg>"
)
CHAR_WIDTH: Final = 7
PADDING: Final = 10


class BadgeService:
    def __init__(self, label: str = "downloads") -> None:
        self.label = label

    @staticmethod
    def message(downloads: int | None) -> str:
        return "invalid" if downloads is None else f"{downloads:,}"

    def render(self, extension: str, downloads: int | None) -> bytes:
        message = self.message(downloads)
        match extension:
            case "json":
                return orjson.dumps({"label": self.label, "message": message, "downloads": downloads})
            case "svg":
                return self.render_svg(message, "#4c1" if downloads is not None else "#e05d44")
            case _:
                raise UnsupportedFormatError(extension)

    def render_svg(self, message: str, color: str) -> bytes:
        label_width = len(self.label) * CHAR_WIDTH + PADDING
        message_width = len(message) * CHAR_WIDTH + PADDING
        return SVG_TEMPLATE.format(
            width=label_width + message_width,
            label=escape(self.label),
            message=escape(message),
            label_width=label_width,
            message_width=message_width,
            label_x=label_width // 2,
            message_x=label_width + message_width // 2,
            color=color,
        ).encode("utf-8")


@lru_cache
def get_badge_service() -> BadgeService:
    return BadgeService()
