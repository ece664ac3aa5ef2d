"""Test configuration and fixtures."""

import re
from pathlib import Path

import pytest

from less_compiler import LessCompileError

SHADE_CALL = re.compile(r'color\(~`colorPalette\("@\{([\w-]+)\}", (\d+)\)`\)')
FADE_HEX = re.compile(r'fade\((#[0-9a-fA-F]{6})\s*,\s*([\d.]+)%\)')
IMPORT = re.compile(r'@import\s+["\']([^"\']+)["\'];')
DEFINITION = re.compile(r'^\s*(@[\w-]+)\s*:\s*(.*?);\s*$', re.MULTILINE)


class FakeLessCompiler:
    """Evaluates the small part of Less the generator feeds to lessc.

    Flat rules, variables, imports, fade() on hex colors and colorPalette
    shades (a plain mix towards white or black). Output is laid out the way
    lessc prints it.
    """

    def __init__(self):
        self.calls = []

    @staticmethod
    def shade(hex_color, index):
        channels = [int(hex_color[i:i + 2], 16) for i in (1, 3, 5)]
        if index < 6:
            t = (6 - index) * 0.15
            channels = [round(c + (255 - c) * t) for c in channels]
        elif index > 6:
            t = (index - 6) * 0.15
            channels = [round(c * (1 - t)) for c in channels]
        return '#{:02x}{:02x}{:02x}'.format(*channels)

    def _inline(self, text, search, source):
        def replace(m):
            target = m.group(1)
            if not target.endswith(".less"):
                target += ".less"
            candidates = [Path(target)] if Path(target).is_absolute() else [Path(d) / target for d in search]
            for candidate in candidates:
                if candidate.exists():
                    return self._inline(candidate.read_text(), [candidate.parent, *search], source)
            raise LessCompileError(source, f"'{target}' wasn't found")

        return IMPORT.sub(replace, text)

    def _resolve(self, value, variables, source):
        def lookup(m):
            if m.group(0) not in variables:
                raise LessCompileError(source, f"variable {m.group(0)} is undefined")
            return variables[m.group(0)]

        for _ in range(10):
            resolved = re.sub(r'@[\w-]+', lookup, value)
            if resolved == value:
                break
            value = resolved
        return value

    def _fade(self, m):
        r, g, b = (int(m.group(1)[i:i + 2], 16) for i in (1, 3, 5))
        return f"rgba({r}, {g}, {b}, {format(float(m.group(2)) / 100, 'g')})"

    def render(self, text, paths=(), filename=None):
        source = filename or "<input>"
        self.calls.append(source)
        search = ([Path(filename).parent] if filename else []) + [Path(p) for p in paths]
        text = self._inline(text, search, source)
        if "@@broken" in text:
            raise LessCompileError(source, "Unrecognised input")
        text = re.sub(r'/\*[\s\S]*?\*/', '', text)
        text = re.sub(r'(?m)^\s*//.*$', '', text)

        variables = dict(DEFINITION.findall(text))
        body = DEFINITION.sub('', text)
        body = SHADE_CALL.sub(
            lambda m: self.shade(self._resolve("@" + m.group(1), variables, source).lower(), int(m.group(2))),
            body,
        )

        rules = []
        for m in re.finditer(r'([^{}]+)\{([^{}]*)\}', body):
            selectors = [s.strip() for s in m.group(1).split(",")]
            declarations = []
            for decl in m.group(2).split(";"):
                if ":" not in decl:
                    continue
                prop, value = decl.split(":", 1)
                value = self._resolve(value.strip(), variables, source)
                value = FADE_HEX.sub(self._fade, value)
                value = re.sub(r'#[0-9a-fA-F]{3,8}\b', lambda h: h.group(0).lower(), value)
                declarations.append(f"  {prop.strip()}: {value};")
            rules.append(",\n".join(selectors) + " {\n" + "\n".join(declarations) + "\n}")
        return "\n".join(rules) + "\n"


DEFAULT_LESS = """\
@import "../color/colors";
// Base theme
@primary-color: #1890ff;
@link-color: @primary-color;
@text-color: #333333;
@font-size-base: 14px;
"""

COLORS_LESS = """\
@blue-6: #1890ff;
.main-color .palatte-blue-6 {
  color: @blue-6;
}
"""

ANTD_LESS = """\
@import "../lib/style/themes/default.less";
.ant-btn-primary {
  color: #fff;
  background: @primary-color;
  border-color: @primary-color;
  padding: 4px 15px;
}
.ant-btn-primary:hover,
.ant-btn-primary:focus {
  background: color(~`colorPalette("@{primary-color}", 5)`);
}
.ant-input:focus {
  box-shadow: 0 0 0 2px fade(@primary-color, 20%);
}
.ant-typography {
  font-size: @font-size-base;
  background: url("bg.png");
}
"""

APP_LESS = """\
@import "./partials/header";
.app-header {
  color: @primary-color;
  margin: 0 auto;
}
.app-focus {
  box-shadow: 0 0 4px fade(@primary-color, 20%);
}
"""

HEADER_LESS = """\
.header-link {
  border-color: @primary-color;
}
"""


@pytest.fixture
def fake_compiler():
    return FakeLessCompiler()


@pytest.fixture
def antd_project(tmp_path):
    """A node_modules/antd tree plus an app styles directory."""
    antd = tmp_path / "node_modules" / "antd"
    themes = antd / "lib" / "style" / "themes"
    color = antd / "lib" / "style" / "color"
    dist = antd / "dist"
    styles = tmp_path / "src" / "styles"
    for d in (themes, color, dist, styles / "partials"):
        d.mkdir(parents=True)

    (themes / "default.less").write_text(DEFAULT_LESS)
    (color / "colors.less").write_text(COLORS_LESS)
    (dist / "antd.less").write_text(ANTD_LESS)
    (styles / "app.less").write_text(APP_LESS)
    (styles / "partials" / "header.less").write_text(HEADER_LESS)
    (styles / "copy.less").write_text(HEADER_LESS)
    return {"root": tmp_path, "antd": antd, "styles": styles}
