"""
Compile the application's own Less files down to their color rules.
"""

import hashlib
import logging
import re
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from css_reduce import reduce_css
from less_compiler import LessCompileError

log = logging.getLogger(__name__)

IMPORT_STATEMENT = re.compile(r'@import ["\'](.*)["\'];')


def run_concurrently(func, items) -> list:
    """Run `func` over every item at once and wait for all of them, keeping order."""
    items = list(items)
    if not items:
        return []
    with ThreadPoolExecutor(max_workers=len(items)) as pool:
        return list(pool.map(func, items))


def as_list(value) -> list:
    if value is None:
        return []
    if isinstance(value, (str, Path)):
        return [value]
    return list(value)


def discover_styles(styles_dirs) -> list[Path]:
    """All `**/*.less` files under one directory or a list of them."""
    found = run_concurrently(lambda d: sorted(Path(d).glob("**/*.less")), as_list(styles_dirs))
    return [path.resolve() for paths in found for path in paths]


def read_file(path) -> str:
    # legacy files are not always UTF-8
    return Path(path).read_text(encoding="utf-8", errors="replace")


def strip_known_imports(content: str, file_path: Path, styles) -> str:
    """Drop imports of files that get compiled on their own anyway."""
    known = {Path(s).resolve() for s in styles}
    directory = Path(file_path).parent

    def replace(m):
        import_path = m.group(1)
        if not import_path.endswith(".less"):
            import_path += ".less"
        if (directory / import_path).resolve() in known:
            return ""
        return m.group(0)

    return IMPORT_STATEMENT.sub(replace, content)


def substitute_colors(content: str, color_map: dict) -> str:
    """Put discovered colors in place of variables used as values (after a colon)."""
    for var_name, color in color_map.items():
        token = re.compile(re.escape(var_name) + r'(?![\w-])')
        content = re.sub(
            r':[^\n]*',
            lambda m: token.sub(lambda _: color, m.group(0)),
            content,
        )
    return content


def prepare_style(file_path, content: str, styles, var_path, color_map: dict) -> str:
    content = strip_known_imports(content, file_path, styles)
    content = substitute_colors(content, color_map)
    return f'@import "{Path(var_path).as_posix()}";\n{content}'


def compile_custom_styles(styles, compiler, var_path, color_map=None, paths=(), contents=None) -> str:
    """Compile every style file, keep the color rules, drop duplicates.

    `contents` are the already-read sources, in the order of `styles`.
    A file that fails to compile is logged and contributes nothing.
    """
    styles = [Path(s) for s in styles]
    color_map = color_map or {}
    if contents is None:
        contents = run_concurrently(read_file, styles)

    def compile_one(item):
        file_path, source = item
        content = prepare_style(file_path, source, styles, var_path, color_map)
        try:
            css = compiler.render(content, list(paths), filename=str(file_path))
        except LessCompileError as e:
            log.error("Error occurred compiling file %s: %s", file_path, e.message)
            return ""
        return reduce_css(css)

    seen = set()
    output = []
    for css in run_concurrently(compile_one, zip(styles, contents)):
        if not css:
            continue
        digest = hashlib.sha1(css.encode("utf-8")).hexdigest()
        if digest in seen:
            continue
        seen.add(digest)
        output.append(css)
    return "\n".join(output)
