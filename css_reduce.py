"""
Reduce compiled CSS to its color-related rules, and minify the result.

Input:
    .body {
      font-family: 'Lato';
      background: #cccccc;
      color: #000;
      padding: 0;
    }

Output:
    .body {
      background: #cccccc;
      color: #000;
    }
"""

import re

import tinycss2
from tinycss2.ast import Declaration, NumberToken, QualifiedRule, WhitespaceToken

QUOTED = r"\"(?:[^\"\\\n]|\\.)*\"|'(?:[^'\\\n]|\\.)*'"
# strings are matched first and kept whole, so `//` inside them survives
COMMENT = re.compile(r"(%s)|/\*[\s\S]*?\*/|(?<!:)//.*" % QUOTED)

COLOR_PROPERTIES = ("color", "background", "border", "box-shadow")

# palette probe rules emitted while compiling colors.less
PROBE_SELECTOR = ".main-color .palatte-"

URL = re.compile(r'url\(.*\)')


def _is_numeric(tokens) -> bool:
    tokens = [t for t in tokens if not isinstance(t, WhitespaceToken)]
    return len(tokens) == 1 and isinstance(tokens[0], NumberToken)


def keep_declaration(decl: Declaration) -> bool:
    value = tinycss2.serialize(decl.value)
    if URL.search(value):
        return False
    prop = decl.lower_name
    if any(name in prop for name in COLOR_PROPERTIES):
        return True
    return _is_numeric(decl.value)


def _format_declaration(decl: Declaration) -> str:
    value = tinycss2.serialize(decl.value).strip()
    if decl.important:
        value += " !important"
    return f"  {decl.name}: {value};"


def reduce_css(css: str) -> str:
    """Drop at-rules, comments, probe rules and non-color declarations.

    Rules left without declarations are dropped too. Running the output
    through again returns it unchanged.
    """
    rules = []
    for node in tinycss2.parse_stylesheet(css, skip_comments=True, skip_whitespace=True):
        if not isinstance(node, QualifiedRule):
            continue
        selector = tinycss2.serialize(node.prelude).strip()
        if selector.startswith(PROBE_SELECTOR):
            continue
        declarations = [
            d for d in tinycss2.parse_declaration_list(node.content, skip_comments=True, skip_whitespace=True)
            if isinstance(d, Declaration) and keep_declaration(d)
        ]
        if not declarations:
            continue
        body = "\n".join(_format_declaration(d) for d in declarations)
        rules.append(f"{selector} {{\n{body}\n}}")
    return "\n".join(rules) + "\n" if rules else ""


def strip_comments(css: str) -> str:
    return re.sub(r'/\*[\s\S]*?\*/', '', css)


def minify_css(css: str) -> str:
    # comments and empty lines
    css = COMMENT.sub(lambda m: m.group(1) or "", css)
    css = re.sub(r'^\s*$(?:\r\n?|\n)', '', css, flags=re.MULTILINE)

    # ".abc {\n  color: red;" -> ".abc {color: red;"
    css = re.sub(r'\{(?:\r\n?|\n)\s+', '{', css)
    # "red;\n}" -> "red;}"
    css = re.sub(r';(?:\r\n?|\n)\}', ';}', css)
    # "red;\n  background: blue;" -> "red;background: blue;"
    css = re.sub(r';(?:\r\n?|\n)\s+', ';', css)
    # ".abc,\n.def {" -> ".abc, .def {"
    css = re.sub(r',(?:\r\n?|\n)[.]', ', .', css)
    return css
