"""
Less variable collection.

Reads a variables file such as `themes/default.less` and builds the mapping
of variable name to value that the theme generator works from, e.g.

    @primary-color: #1890ff;
    @link-color: @primary-color;

    {'@primary-color': '#1890ff', '@link-color': '#1890ff'}
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, NamedTuple

from less_colors import is_valid_color

log = logging.getLogger(__name__)

DECLARATION = re.compile(r'^\s*@([\'"\w-]+)\s*:\s*(.*?);')
IMPORT_LINE = re.compile(r'@import\s+["\'](.*)["\'];')


class CyclicVariableError(ValueError):
    def __init__(self, chain):
        self.chain = list(chain)
        super().__init__("Cyclic variable reference: " + " -> ".join(self.chain))


class Declaration(NamedTuple):
    name: str
    value: str


def extract_declarations(content: str) -> Iterator[Declaration]:
    """Yield (name, raw value) for every `@name: value;` line.

    Lines that look like a declaration but don't match are skipped.
    """
    for line in content.split("\n"):
        if not line.lstrip().startswith("@") or ":" not in line:
            continue
        m = DECLARATION.match(line)
        if not m:
            continue
        name = "@" + re.sub(r'[\'"]+', '', m.group(1))
        yield Declaration(name, m.group(2).strip())


def resolve(name: str, mapping: dict) -> str | None:
    """Follow `@a -> @b -> #fff` to the terminal value."""
    seen = [name]
    value = mapping.get(name)
    while value is not None and value in mapping:
        if value in seen:
            raise CyclicVariableError(seen + [value])
        seen.append(value)
        value = mapping[value]
    return value


def generate_color_map(content: str, custom_patterns=()) -> dict:
    """Color variables only; aliases resolve through the entries seen so far."""
    colors = {}
    for name, value in extract_declarations(content):
        if value.startswith("@"):
            value = resolve(value, colors) if value in colors else None
        if is_valid_color(value, custom_patterns):
            colors[name] = value
    return colors


def get_less_vars(content: str) -> dict:
    """Every declaration, value kept verbatim."""
    return {name: value for name, value in extract_declarations(content)}


@dataclass
class VariableMapping:
    colors: dict = field(default_factory=dict)
    raw: dict = field(default_factory=dict)

    @classmethod
    def collect(cls, content: str, raw_content: str | None = None, custom_patterns=()):
        """Build both passes; `raw_content` defaults to `content`."""
        if raw_content is None:
            raw_content = content
        return cls(
            colors=generate_color_map(content, custom_patterns),
            raw=get_less_vars(raw_content),
        )

    @property
    def values(self) -> dict:
        # raw pass wins on collision
        return {**self.colors, **self.raw}

    def __contains__(self, name):
        return name in self.colors or name in self.raw

    def __getitem__(self, name):
        return self.values[name]

    def resolve(self, name: str) -> str | None:
        return resolve(name, self.values)


def find_node_modules(antd_dir) -> Path:
    """`.../node_modules/antd` -> `.../node_modules`."""
    path = Path(antd_dir).resolve()
    for parent in [path, *path.parents]:
        if parent.name == "node_modules":
            return parent
    return path.parent / "node_modules"


def _import_target(import_path: str, directory: Path, node_modules: Path) -> Path:
    if not import_path.endswith(".less"):
        import_path += ".less"
    if import_path.startswith("~"):
        return node_modules / import_path[1:]
    return directory / import_path


def combine_less(file_path, node_modules) -> str:
    """Inline the `@import` chain of a Less file into one text."""
    file_path = Path(file_path)
    content = file_path.read_text(encoding="utf-8")
    lines = []
    for line in content.split("\n"):
        if line.startswith("@import"):
            m = IMPORT_LINE.search(line)
            if m:
                target = _import_target(m.group(1), file_path.parent, Path(node_modules))
                log.debug("Inlining %s into %s", target, file_path.name)
                lines.append(combine_less(target, node_modules))
                continue
        lines.append(line)
    return "\n".join(lines)
