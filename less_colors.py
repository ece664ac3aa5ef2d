"""
Color helpers shared by the theme pipeline.

Decides whether a raw Less value is a color, hands out random marker colors
and converts between hex and rgb channels.
"""

import random
import re

from PIL import ImageColor


BLACK = "#000000"
WHITE = "#ffffff"

# Less color functions whose result is a color even though the argument is not a literal
DYNAMIC_COLOR_FUNCTIONS = re.compile(r'colorPalette|fade')

FUNCTIONAL_COLOR = re.compile(
    r'^(rgb|hsl|hsv)a?\((\d+%?(deg|rad|grad|turn)?[,\s]+){2,3}[\s/]*[\d.]+%?\)$',
    re.IGNORECASE,
)

LESS_COLOR_FUNCTIONS = [
    "color", "lighten", "darken", "saturate", "desaturate", "fadein", "fadeout",
    "fade", "spin", "mix", "hsv", "tint", "shade", "greyscale", "multiply",
    "contrast", "screen", "overlay",
]


def color_function_patterns() -> list[re.Pattern]:
    return [re.compile(rf'{name}\(.*\)') for name in LESS_COLOR_FUNCTIONS]


def compile_patterns(patterns) -> list[re.Pattern]:
    """Accept plain strings or compiled patterns from callers."""
    return [p if isinstance(p, re.Pattern) else re.compile(p) for p in patterns or []]


def is_valid_color(color: str | None, custom_patterns=()) -> bool:
    """Return True if a raw value denotes a color.

    is_valid_color('#ffffff')            -> True
    is_valid_color('#fff')               -> True
    is_valid_color('rgba(0, 0, 0, 0.5)') -> True
    is_valid_color('20px')               -> False
    """
    if color and "rgb" in color:
        return True
    if not color or "px" in color:
        return False
    if DYNAMIC_COLOR_FUNCTIONS.search(color):
        return True
    color = color.strip()
    if color.startswith('#'):
        if len(color) - 1 not in (3, 4, 6, 8):
            return False
        try:
            ImageColor.getrgb(color)
        except ValueError:
            return False
        return True
    if FUNCTIONAL_COLOR.match(color):
        return True
    return any(p.search(color) for p in compile_patterns(custom_patterns))


def random_color(rng: random.Random | None = None) -> str:
    """Generate a random hex color code, e.g. #fe12ee."""
    rng = rng or random
    return '#{:06x}'.format(rng.randrange(0x1000000))


def unique_color(reserved, rng: random.Random | None = None) -> str:
    """Random color that is neither black, white nor in `reserved`."""
    color = random_color(rng)
    while color in (BLACK, WHITE) or color in reserved:
        color = random_color(rng)
    return color


def hex_to_rgb(hex_color: str) -> tuple[int, int, int]:
    rgb = ImageColor.getrgb(hex_color)
    return (rgb[0], rgb[1], rgb[2])


def rgb_to_hex(rgb: tuple[int, int, int]) -> str:
    return '#{:02x}{:02x}{:02x}'.format(*rgb)


def format_alpha(alpha: float) -> str:
    # lessc rounds to 8 places and drops trailing zeros
    return ('%.8f' % alpha).rstrip('0').rstrip('.')


def faded(hex_color: str, percent: float) -> str:
    """The rgba() text lessc prints for fade(hex_color, percent%)."""
    r, g, b = hex_to_rgb(hex_color)
    alpha = max(0.0, min(1.0, percent / 100.0))
    if alpha >= 1:
        return rgb_to_hex((r, g, b))
    return f"rgba({r}, {g}, {b}, {format_alpha(alpha)})"
