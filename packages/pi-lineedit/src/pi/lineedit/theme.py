"""Colour schemes for the prompt, suggestion list and search view.

Every scheme is an immutable value built by a constructor function, so
callers can never modify a shared palette.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Mapping

RESET = "\x1b[0m"


@dataclass(frozen=True)
class Color:
    r: int
    g: int
    b: int
    bold: bool = False

    def to_ansi(self) -> str:
        """24-bit foreground SGR sequence, e.g. ``\\x1b[1;38;2;0;255;0m``."""
        codes = ["1"] if self.bold else []
        codes.append(f"38;2;{self.r};{self.g};{self.b}")
        return f"\x1b[{';'.join(codes)}m"

    def paint(self, text: str) -> str:
        return f"{self.to_ansi()}{text}{RESET}"


@dataclass(frozen=True)
class SuggestionColors:
    text: Color
    description: Color
    match: Color
    background: Color | None = None


@dataclass(frozen=True)
class ColorScheme:
    name: str
    prefix: Color
    input: Color
    suggestion: SuggestionColors
    selected: Color
    cursor: Color
    background: Color | None = None


def theme_default() -> ColorScheme:
    return ColorScheme(
        name="default",
        prefix=Color(0, 255, 0, bold=True),
        input=Color(255, 255, 255, bold=True),
        suggestion=SuggestionColors(
            text=Color(200, 200, 200),
            description=Color(128, 128, 128),
            match=Color(255, 255, 0, bold=True),
        ),
        selected=Color(0, 255, 255, bold=True),
        cursor=Color(255, 255, 255, bold=True),
    )


def theme_dark() -> ColorScheme:
    return ColorScheme(
        name="Dark",
        prefix=Color(102, 217, 239, bold=True),
        input=Color(248, 248, 242),
        suggestion=SuggestionColors(
            text=Color(189, 147, 249),
            description=Color(98, 114, 164),
            match=Color(255, 184, 108, bold=True),
        ),
        selected=Color(80, 250, 123, bold=True),
        cursor=Color(248, 248, 242),
        background=Color(40, 42, 54),
    )


def theme_light() -> ColorScheme:
    return ColorScheme(
        name="Light",
        prefix=Color(0, 119, 187, bold=True),
        input=Color(36, 41, 46),
        suggestion=SuggestionColors(
            text=Color(88, 96, 105),
            description=Color(149, 157, 165),
            match=Color(215, 58, 73, bold=True),
        ),
        selected=Color(40, 167, 69, bold=True),
        cursor=Color(36, 41, 46),
        background=Color(255, 255, 255),
    )


def theme_solarized_dark() -> ColorScheme:
    return ColorScheme(
        name="Solarized Dark",
        prefix=Color(133, 153, 0, bold=True),
        input=Color(147, 161, 161),
        suggestion=SuggestionColors(
            text=Color(131, 148, 150),
            description=Color(88, 110, 117),
            match=Color(181, 137, 0, bold=True),
        ),
        selected=Color(38, 139, 210, bold=True),
        cursor=Color(253, 246, 227),
        background=Color(0, 43, 54),
    )


def theme_accessible() -> ColorScheme:
    """High-contrast palette that avoids red/green distinctions."""
    return ColorScheme(
        name="Accessible",
        prefix=Color(0, 114, 178, bold=True),
        input=Color(255, 255, 255),
        suggestion=SuggestionColors(
            text=Color(255, 255, 255),
            description=Color(204, 204, 204),
            match=Color(240, 228, 66, bold=True),
        ),
        selected=Color(230, 159, 0, bold=True),
        cursor=Color(255, 255, 255),
    )


def theme_dracula() -> ColorScheme:
    return ColorScheme(
        name="Dracula",
        prefix=Color(255, 121, 198, bold=True),
        input=Color(248, 248, 242),
        suggestion=SuggestionColors(
            text=Color(139, 233, 253),
            description=Color(98, 114, 164),
            match=Color(241, 250, 140, bold=True),
        ),
        selected=Color(80, 250, 123, bold=True),
        cursor=Color(248, 248, 242),
        background=Color(40, 42, 54),
    )


def theme_monokai() -> ColorScheme:
    return ColorScheme(
        name="Monokai",
        prefix=Color(249, 38, 114, bold=True),
        input=Color(248, 248, 242),
        suggestion=SuggestionColors(
            text=Color(166, 226, 46),
            description=Color(117, 113, 94),
            match=Color(253, 151, 31, bold=True),
        ),
        selected=Color(102, 217, 239, bold=True),
        cursor=Color(248, 248, 242),
        background=Color(39, 40, 34),
    )


THEMES: Mapping[str, Callable[[], ColorScheme]] = MappingProxyType({
    "default": theme_default,
    "dark": theme_dark,
    "light": theme_light,
    "solarized-dark": theme_solarized_dark,
    "accessible": theme_accessible,
    "dracula": theme_dracula,
    "monokai": theme_monokai,
})


def get_theme(name: str) -> ColorScheme:
    """Build the named theme.  Raises ``ValueError`` for unknown names."""
    try:
        factory = THEMES[name.lower()]
    except KeyError:
        raise ValueError(f"Unknown theme: {name!r} (available: {', '.join(THEMES)})") from None
    return factory()
