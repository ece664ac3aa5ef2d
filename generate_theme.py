#!/usr/bin/env python3
"""
Switchable theme generator for Ant Design

Compiles the Ant Design stylesheet and your own Less files, keeps only the
color-related rules and writes them back in terms of the theme variables
(`@primary-color`, ...), so a browser-side script can swap the values at
runtime. The result is usually served as `color.less`.
"""

import argparse
import hashlib
import logging
import random
import re
import sys
import threading
from dataclasses import dataclass, field
from pathlib import Path

from color_markers import PRIMARY_COLOR, assign_markers, compile_markers, get_shade, is_shade
from css_reduce import minify_css, reduce_css
from custom_styles import as_list, compile_custom_styles, discover_styles, read_file, run_concurrently
from less_colors import color_function_patterns, compile_patterns, faded, is_valid_color, unique_color
from less_compiler import LessCompiler
from less_vars import VariableMapping, combine_less, find_node_modules

log = logging.getLogger(__name__)

FADE_CALL = re.compile(r'fade\((?:[^()]|\([^()]*\))*\)')
THEME_FADE = re.compile(r'^fade\(\s*(@[\w-]+)\s*,\s*([\d.]+)%\s*\)$')
# these compile fine without knowing the theme colors
STATIC_FADES = ("fade(@black", "fade(@white", "fade(#", "fade(@color")

LEFTOVER_DEFINITION = re.compile(r'@[\w-]+:\s*.*;[/.]*')


@dataclass
class ThemeOptions:
    antd_dir: str
    styles_dirs: list = field(default_factory=list)
    antd_styles_dir: str | None = None
    var_file: str | None = None
    theme_variables: list = field(default_factory=lambda: [PRIMARY_COLOR])
    color_patterns: list = field(default_factory=list)
    lessc: str = "lessc"

    @property
    def antd_path(self) -> Path:
        if self.antd_styles_dir:
            return Path(self.antd_styles_dir)
        return Path(self.antd_dir) / "lib"

    @property
    def target_file(self) -> Path:
        return Path(self.antd_dir) / "dist" / "antd.less"

    @property
    def variables_file(self) -> Path:
        return Path(self.var_file) if self.var_file else self.antd_path / "style" / "themes" / "default.less"

    @property
    def node_modules(self) -> Path:
        return find_node_modules(self.antd_dir)


class ThemeCache:
    """Last generated stylesheet, keyed by a hash of the app's style sources."""

    def __init__(self):
        self._lock = threading.Lock()
        self.digest = None
        self.css = None

    def lookup(self, digest):
        with self._lock:
            return self.css if digest == self.digest else None

    def store(self, digest, css):
        with self._lock:
            self.digest = digest
            self.css = css


DEFAULT_CACHE = ThemeCache()


class FadeMap:
    """Stand-in colors for `fade(...)` calls lessc can't evaluate yet.

    Each call is swapped for a random sentinel color before compiling and
    swapped back afterwards. Calls on a theme variable that did get compiled
    (from the app's own styles) are recognised by the rgba() value they
    produce for the discovered color.
    """

    def __init__(self, rng=None, reserved=()):
        self.rng = rng
        self.reserved = set(reserved)
        self.sentinels = {}
        self.calls = {}

    def observe(self, source: str):
        for call in FADE_CALL.findall(source):
            self.calls.setdefault(call, None)

    def collect(self, source: str):
        self.observe(source)
        for call in FADE_CALL.findall(source):
            if call.startswith(STATIC_FADES) or call in self.sentinels:
                continue
            taken = self.reserved | set(self.sentinels.values())
            self.sentinels[call] = unique_color(taken, self.rng)

    def substitute(self, source: str) -> str:
        for call in sorted(self.sentinels, key=len, reverse=True):
            source = source.replace(call, self.sentinels[call])
        return source

    def derived(self, discovered: dict) -> dict:
        literals = {}
        for call in self.calls:
            m = THEME_FADE.match(call)
            if not m or not discovered.get(m.group(1), "").startswith("#"):
                continue
            literal = faded(discovered[m.group(1)], float(m.group(2)))
            if literal.startswith("rgba"):
                literals.setdefault(literal, call)
        return literals

    def restore(self, css: str, discovered: dict) -> str:
        for call, color in self.sentinels.items():
            css = re.sub(re.escape(color), lambda _: call, css, flags=re.IGNORECASE)
        for literal, call in self.derived(discovered).items():
            css = css.replace(literal, call)
        return css


def select_theme_variables(theme_vars, mapping: VariableMapping) -> list[str]:
    return [name for name in theme_vars or [PRIMARY_COLOR] if name in mapping and not is_shade(name)]


def substitute_variables(css: str, discovered: dict) -> str:
    """Replace every discovered color with the variable (or shade call) it came from."""
    for var_name, color in discovered.items():
        if not is_valid_color(color):
            continue
        replacement = get_shade(var_name) if is_shade(var_name) else var_name
        css = re.sub(re.escape(color), lambda _: replacement, css, flags=re.IGNORECASE)
    return css


def prepend_definitions(css: str, theme_vars, mapping: VariableMapping) -> str:
    values = mapping.values
    for var_name in reversed(theme_vars):
        css = re.sub(re.escape(var_name) + r'( *):(.*);', '', css)
        css = f"{var_name}: {values[var_name]};\n{css}\n"
    return css


def sources_digest(contents) -> str:
    return hashlib.sha1("".join(contents).encode("utf-8")).hexdigest()


def _generate(options: ThemeOptions, cache: ThemeCache, compiler, rng) -> str:
    antd_path = options.antd_path
    node_modules = options.node_modules
    styles_dirs = as_list(options.styles_dirs)

    styles = discover_styles(styles_dirs)
    contents = run_concurrently(read_file, styles)
    digest = sources_digest(contents)
    cached = cache.lookup(digest)
    if cached is not None:
        log.debug("Styles unchanged, reusing cached theme")
        return cached

    patterns = compile_patterns(options.color_patterns) + color_function_patterns()
    var_file = options.variables_file
    mapping = VariableMapping.collect(
        combine_less(var_file, node_modules),
        read_file(var_file),
        patterns,
    )
    theme_vars = select_theme_variables(options.theme_variables, mapping)
    log.info("Theme variables: %s", ", ".join(theme_vars))

    markers = assign_markers(theme_vars, rng)
    color_file = combine_less(antd_path / "style" / "color" / "colors.less", node_modules)
    discovered = compile_markers(
        compiler,
        color_file,
        markers,
        [antd_path / "style", *styles_dirs],
        theme_vars,
    )

    custom_css = compile_custom_styles(
        styles,
        compiler,
        var_file,
        discovered,
        [antd_path, *styles_dirs],
        contents,
    )

    target = options.target_file
    # compiled as one bundle so the fade() calls of imported files get replaced too
    target_content = combine_less(target, node_modules)
    fades = FadeMap(rng, reserved=set(markers.variables) | set(discovered.values()))
    fades.collect(target_content)
    for content in contents:
        fades.observe(content)

    theme_values = "".join(
        f"\n{var_name}: {discovered[var_name]};" for var_name in theme_vars if var_name in discovered
    )
    target_content = fades.substitute(f"{target_content}\n{theme_values}")
    antd_css = compiler.render(target_content, [antd_path, target.parent], filename=str(target))

    css = reduce_css(f"{antd_css}\n{custom_css}")
    css = fades.restore(css, discovered)
    css = substitute_variables(css, discovered)
    css = LEFTOVER_DEFINITION.sub("", css)
    css = css.replace("\\9", "")

    defaults = combine_less(antd_path / "style" / "themes" / "default.less", node_modules)
    css = f"{css.strip()}\n{defaults}"
    css = prepend_definitions(css, theme_vars, mapping)
    css = minify_css(css)

    if css:
        cache.store(digest, css)
    return css


def generate_theme(options: ThemeOptions, cache: ThemeCache | None = None, compiler=None, rng=None) -> str:
    """Generate the color stylesheet; returns "" if anything goes wrong."""
    cache = DEFAULT_CACHE if cache is None else cache
    try:
        compiler = compiler or LessCompiler(options.lessc, node_modules=options.node_modules)
        return _generate(options, cache, compiler, rng or random.Random())
    except Exception:
        log.exception("Theme generation failed")
        return ""


def main():
    parser = argparse.ArgumentParser(description="Generate a runtime-switchable color theme stylesheet from Ant Design Less sources")
    parser.add_argument("--antd-dir", default="node_modules/antd", help="Ant Design install directory")
    parser.add_argument("--antd-styles-dir", help="Ant Design styles directory (default: <antd-dir>/lib)")
    parser.add_argument("--styles-dir", action="append", dest="styles_dirs", default=[], help="Directory with your own .less files (repeatable)")
    parser.add_argument("--var-file", help="Less variables file (default: Ant Design default theme)")
    parser.add_argument("--theme-var", action="append", dest="theme_variables", help="Theme variable to make switchable (repeatable, default: @primary-color)")
    parser.add_argument("--color-pattern", action="append", dest="color_patterns", default=[], help="Extra regex accepted as a color value (repeatable)")
    parser.add_argument("-o", "--output", default="color.less", help="Output file")
    parser.add_argument("--lessc", default="lessc", help="Less compiler executable")
    parser.add_argument("--seed", type=int, help="Random seed for marker colors")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s | %(levelname)s | %(message)s",
    )

    options = ThemeOptions(
        antd_dir=args.antd_dir,
        styles_dirs=args.styles_dirs,
        antd_styles_dir=args.antd_styles_dir,
        var_file=args.var_file,
        theme_variables=args.theme_variables or [PRIMARY_COLOR],
        color_patterns=args.color_patterns,
        lessc=args.lessc,
    )

    print(f"Processing {options.target_file}...", file=sys.stderr)
    css = generate_theme(options, rng=random.Random(args.seed))
    if not css:
        print("Error: theme generation produced no output.", file=sys.stderr)
        sys.exit(1)

    Path(args.output).write_text(css, encoding="utf-8")
    print("Success!", file=sys.stderr)
    print(f"  Theme written to: {args.output}", file=sys.stderr)


if __name__ == "__main__":
    main()
