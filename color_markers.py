"""
Find out what each theme variable compiles to.

Every theme variable gets a marker rule with a unique random color,

    .primary-color { color: #123456; }

plus nine shade rules that ask colorPalette for its ramp,

    .primary-3 { color: color(~`colorPalette("@{primary-color}", 3)`); }

The batch is compiled and the resulting `.class { color: value; }` pairs are
read back out of the CSS.
"""

import logging
import re
from dataclasses import dataclass, field

from css_reduce import strip_comments
from less_colors import BLACK, WHITE, random_color
from less_compiler import LessCompileError

log = logging.getLogger(__name__)

PRIMARY_COLOR = "@primary-color"
PRIMARY_MARKER = "#123456"

# shade 6 is the base color itself
SHADE_INDEXES = (1, 2, 3, 4, 5, 7, 8, 9, 10)

SHADE_NAME = re.compile(r'^(.*)-(\d+)$')
COMPILED_MARKER = re.compile(r'\.([\w\'-]+) \{\n {2}color: (.*);')


def is_shade(name: str) -> bool:
    return SHADE_NAME.match(name) is not None


def shade_names(var_name: str) -> list[str]:
    base = "@primary" if var_name == PRIMARY_COLOR else var_name
    return [f"{base}-{index}" for index in SHADE_INDEXES]


def get_shade(var_name: str) -> str:
    """`@primary-1` -> color(~`colorPalette("@{primary-color}", 1)`)"""
    base, number = SHADE_NAME.match(var_name).groups()
    if base == "@primary":
        base = PRIMARY_COLOR
    return 'color(~`colorPalette("@{' + base.lstrip("@") + '}", ' + number + ')`)'


@dataclass
class MarkerAssignment:
    colors: dict = field(default_factory=dict)
    variables: dict = field(default_factory=dict)

    def assign(self, var_name: str, color: str):
        self.colors[var_name] = color
        self.variables[color] = var_name

    def __iter__(self):
        return iter(self.colors.items())

    def __contains__(self, color):
        return color in self.variables


def assign_markers(theme_vars, rng=None) -> MarkerAssignment:
    """Give each variable a distinct color, never black, white or the primary marker."""
    markers = MarkerAssignment()
    for var_name in theme_vars:
        if var_name == PRIMARY_COLOR:
            color = PRIMARY_MARKER
        else:
            color = random_color(rng)
            while color in (BLACK, WHITE, PRIMARY_MARKER) or color in markers:
                color = random_color(rng)
        markers.assign(var_name, color)
    return markers


def build_marker_stylesheet(color_file_content: str, markers: MarkerAssignment, shades=True) -> str:
    """colors.less first, then marker values overriding the theme vars, then the marker rules."""
    rules = []
    for var_name, color in markers:
        rules.append(f".{var_name.lstrip('@')} {{ color: {color}; }}")
        if shades:
            for name in shade_names(var_name):
                rules.append(f".{name.lstrip('@')} {{ color: {get_shade(name)}; }}")
    values = "".join(f"{var_name}: {color};\n" for var_name, color in markers)
    return f"{color_file_content}\n{values}\n" + "\n".join(rules) + "\n"


def discover_colors(css: str, theme_vars=None) -> dict:
    """Map `@class` to the color compiled into `.class { color: ... }`.

    With `theme_vars`, only those variables and their shades are kept.
    """
    allowed = None
    if theme_vars is not None:
        allowed = set(theme_vars)
        for var_name in theme_vars:
            allowed.update(shade_names(var_name))
    css = strip_comments(css)
    found = {}
    for m in COMPILED_MARKER.finditer(css):
        name, value = "@" + m.group(1), m.group(2).strip()
        if not (value.startswith("rgba") or value.startswith("#")):
            continue
        if allowed is not None and name not in allowed:
            continue
        found[name] = value
    return found


def compile_markers(compiler, color_file_content, markers, paths, theme_vars=None) -> dict:
    """Compile the marker batch and read the discovered colors back.

    A failed compile is logged and yields no colors.
    """
    stylesheet = build_marker_stylesheet(color_file_content, markers)
    try:
        css = compiler.render(stylesheet, paths)
    except LessCompileError as e:
        log.error("Error occurred compiling theme markers: %s", e)
        return {}
    discovered = discover_colors(css, theme_vars if theme_vars is not None else list(markers.colors))
    log.debug("Discovered %d theme colors", len(discovered))
    return discovered
