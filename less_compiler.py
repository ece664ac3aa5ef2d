"""
Thin wrapper around the `lessc` executable.

Source text goes in on stdin, compiled CSS comes back on stdout. Imports
written with the `~` prefix (`@import "~antd/lib/style/index";`) are
rewritten to absolute node_modules paths before compiling.
"""

import logging
import os
import re
import shutil
import subprocess
from pathlib import Path

log = logging.getLogger(__name__)

PREFIXED_IMPORT = r'(@import\s+(?:\([^)]*\)\s*)?["\'])%s([^"\']+)(["\'])'


class LessCompileError(Exception):
    def __init__(self, source, message):
        self.source = str(source)
        self.message = message.strip()
        super().__init__(f"{self.source}: {self.message}")


def resolve_prefixed_imports(text: str, node_modules, prefix: str = "~") -> str:
    """Rewrite `@import "~pkg/x"` to `@import "<node_modules>/pkg/x"`."""
    pattern = re.compile(PREFIXED_IMPORT % re.escape(prefix))
    root = Path(node_modules)
    return pattern.sub(lambda m: f"{m.group(1)}{(root / m.group(2)).as_posix()}{m.group(3)}", text)


class LessCompiler:
    def __init__(self, executable="lessc", node_modules=None, javascript=True):
        self.executable = executable
        self.node_modules = node_modules
        self.javascript = javascript

    def command(self, paths=()) -> list[str]:
        cmd = [self.executable]
        if self.javascript:
            cmd.append("--js")
        include = [str(p) for p in paths if p]
        if include:
            cmd.append("--include-path=" + os.pathsep.join(include))
        cmd.append("-")
        return cmd

    def render(self, text: str, paths=(), filename=None) -> str:
        """Compile Less `text`, searching `paths` for imports."""
        source = filename or "<input>"
        if shutil.which(self.executable) is None:
            raise LessCompileError(source, f"{self.executable} not found on PATH")
        if self.node_modules:
            text = resolve_prefixed_imports(text, self.node_modules)
        paths = list(paths)
        if filename:
            paths.insert(0, Path(filename).resolve().parent)
        log.debug("Compiling %s with %s", source, " ".join(self.command(paths)))
        proc = subprocess.run(
            self.command(paths),
            input=text,
            capture_output=True,
            text=True,
            encoding="utf-8",
        )
        if proc.returncode != 0:
            raise LessCompileError(source, proc.stderr or proc.stdout)
        return proc.stdout


def render_less_content(text: str, paths=(), compiler: LessCompiler | None = None) -> str:
    return (compiler or LessCompiler()).render(text, paths)
