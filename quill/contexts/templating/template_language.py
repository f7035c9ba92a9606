"""
Template Language

Parser and interpreter for the constrained templating language used in template
markup (a Handlebars subset):

- `{{path}}` escaped output, `{{{path}}}` / `{{&path}}` raw output
- paths: `fullName`, `experiences.[0].jobTitle`, `this`, `../name`, `@index`, `@root.summary`
- helper calls: `{{formatDate startDate}}`, subexpressions `(eq level "expert")`
- blocks: `{{#if x}}...{{else}}...{{/if}}`, `{{else if y}}` chains, `{{^x}}...{{/x}}`
- comments: `{{! note }}`, `{{!-- note --}}`
- whitespace control: `{{~` and `~}}` strip whitespace before and after a tag

Markup is parsed into an explicit AST (TextNode, MustacheNode, BlockNode) which is
evaluated against a plain dict context. Helpers are never looked up globally: the
caller passes a helper registry to `evaluate()`.
"""

import inspect
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from markupsafe import Markup, escape

from quill.contexts.templating.exceptions import TemplateRenderError, TemplateSyntaxError

# Deepest allowed block or subexpression nesting; deeper markup is a syntax error
MAX_NESTING_DEPTH = 32

OPEN_DELIMITER = "{{"

IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][\w$-]*$")

_EXPR_TOKEN_RE = re.compile(
    r"""\s*(?:
        (?P<open>\()
      | (?P<close>\))
      | (?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
      | (?P<number>-?\d+(?:\.\d+)?)(?=[\s)]|$)
      | (?P<path>[^\s()"'=]+)
    )""",
    re.VERBOSE,
)

_SEGMENT_RE = re.compile(r"\[([^\]]*)\]|([A-Za-z_$][\w$-]*|[0-9]+)")

_LITERAL_KEYWORDS = {"true": True, "false": False, "null": None, "undefined": None}

_ELSE_CHAIN_RE = re.compile(r"^else\s+(.+)$", re.DOTALL)

# Closing delimiters; group 1 is the whitespace-control `~`
_COMMENT_CLOSE_RE = re.compile(r"--(~?)\}\}")
_RAW_CLOSE_RE = re.compile(r"\}(~?)\}\}")


# ---------------------------------------------------------------------------
# AST
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PathExpr:
    """
    Variable reference.

    Attributes:
        parts: Path segments after `this` / `../` / `@` prefixes
        depth: Number of `../` hops up the context stack
        data: True for `@` data variables (`@index`, `@last`, `@root`)
        original: Source text, used in error messages
    """

    parts: Tuple[str, ...]
    depth: int = 0
    data: bool = False
    original: str = ""

    @property
    def is_simple(self) -> bool:
        """A bare identifier, eligible to name a helper."""
        return len(self.parts) == 1 and self.depth == 0 and not self.data


@dataclass(frozen=True)
class LiteralExpr:
    value: Any


@dataclass(frozen=True)
class SubExpr:
    """Helper call used as a parameter: `(eq level "expert")`."""

    name: PathExpr
    params: Tuple["Expr", ...] = ()


Expr = Union[PathExpr, LiteralExpr, SubExpr]


@dataclass
class TextNode:
    text: str


@dataclass
class MustacheNode:
    path: PathExpr
    params: Tuple[Expr, ...] = ()
    escaped: bool = True
    lineno: int = 1


@dataclass
class BlockNode:
    name: str
    params: Tuple[Expr, ...] = ()
    program: List["Node"] = field(default_factory=list)
    inverse: Optional[List["Node"]] = None
    inverted: bool = False
    lineno: int = 1


Node = Union[TextNode, MustacheNode, BlockNode]


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_path(text: str, lineno: Optional[int] = None) -> PathExpr:
    """
    Parse a variable reference such as `experiences.[0].jobTitle` or `../name`.

    Raises:
        TemplateSyntaxError: If the reference is not a well-formed path
    """
    original = text
    data = text.startswith("@")
    if data:
        text = text[1:]

    depth = 0
    while text.startswith("../"):
        depth += 1
        text = text[3:]

    if text in ("this", "."):
        text = ""
    elif text.startswith("this.") or text.startswith("this/"):
        text = text[5:]
    elif text.startswith("./"):
        text = text[2:]

    parts = []
    pos = 0
    while pos < len(text):
        if parts:
            if text[pos] not in "./":
                raise TemplateSyntaxError(f"Invalid variable reference '{original}'", lineno)
            pos += 1
        match = _SEGMENT_RE.match(text, pos)
        if match is None or (not parts and match.group(2) and match.group(2).isdigit()):
            raise TemplateSyntaxError(f"Invalid variable reference '{original}'", lineno)
        parts.append(match.group(1) if match.group(1) is not None else match.group(2))
        pos = match.end()

    if data and not parts:
        raise TemplateSyntaxError(f"Invalid data variable '{original}'", lineno)
    if depth and data:
        raise TemplateSyntaxError(f"Invalid variable reference '{original}'", lineno)

    return PathExpr(tuple(parts), depth=depth, data=data, original=original)


def _tokenize_expression(source: str, lineno: int) -> List[Tuple[str, str]]:
    tokens = []
    pos = 0
    source = source.rstrip()
    while pos < len(source):
        match = _EXPR_TOKEN_RE.match(source, pos)
        if match is None or match.end() == pos:
            char = source[pos:].lstrip()[:1]
            hint = " (hash arguments are not supported)" if char == "=" else ""
            raise TemplateSyntaxError(f"Unexpected character '{char}'{hint}", lineno, source)
        kind = match.lastgroup
        tokens.append((kind, match.group(kind)))
        pos = match.end()
    return tokens


class _ExpressionParser:
    """Recursive-descent parser for the inside of a single tag."""

    def __init__(self, source: str, lineno: int):
        self.source = source
        self.lineno = lineno
        self.tokens = _tokenize_expression(source, lineno)
        self.pos = 0
        self.depth = 0

    def _error(self, message: str) -> TemplateSyntaxError:
        return TemplateSyntaxError(message, self.lineno, self.source)

    def parse_call(self) -> Tuple[PathExpr, Tuple[Expr, ...]]:
        """Parse `name param*` (the whole tag)."""
        if not self.tokens:
            raise self._error("Empty expression")
        kind, value = self.tokens[self.pos]
        if kind != "path" or value in _LITERAL_KEYWORDS:
            raise self._error(f"Expected a variable or helper name, got '{value}'")
        self.pos += 1
        name = parse_path(value, self.lineno)
        params = self._parse_params(closing=False)
        return name, params

    def _parse_params(self, closing: bool) -> Tuple[Expr, ...]:
        params = []
        while self.pos < len(self.tokens):
            kind, value = self.tokens[self.pos]
            if kind == "close":
                if not closing:
                    raise self._error("Unbalanced ')'")
                return tuple(params)
            params.append(self._parse_param())
        if closing:
            raise self._error("Unclosed subexpression")
        return tuple(params)

    def _parse_param(self) -> Expr:
        kind, value = self.tokens[self.pos]
        self.pos += 1
        if kind == "string":
            return LiteralExpr(_unquote(value))
        if kind == "number":
            return LiteralExpr(float(value) if "." in value else int(value))
        if kind == "open":
            if self.pos >= len(self.tokens) or self.tokens[self.pos][0] != "path":
                raise self._error("Subexpression must start with a helper name")
            name = parse_path(self.tokens[self.pos][1], self.lineno)
            if not name.is_simple:
                raise self._error(f"Invalid helper name '{name.original}'")
            self.pos += 1
            self.depth += 1
            if self.depth > MAX_NESTING_DEPTH:
                raise self._error(f"Subexpressions nested deeper than {MAX_NESTING_DEPTH} levels")
            params = self._parse_params(closing=True)
            self.depth -= 1
            self.pos += 1  # consume ')'
            return SubExpr(name, params)
        if kind == "path":
            if value in _LITERAL_KEYWORDS:
                return LiteralExpr(_LITERAL_KEYWORDS[value])
            return parse_path(value, self.lineno)
        raise self._error(f"Unexpected '{value}'")


def _unquote(token: str) -> str:
    body = token[1:-1]
    return re.sub(r"\\(.)", r"\1", body)


def _parse_block_name(source: str, lineno: int) -> Tuple[str, Tuple[Expr, ...]]:
    name, params = _ExpressionParser(source, lineno).parse_call()
    if not name.is_simple:
        raise TemplateSyntaxError(f"Invalid block name '{name.original}'", lineno)
    return name.parts[0], params


@dataclass
class _OpenBlock:
    node: BlockNode
    chained: bool = False

    @property
    def target(self) -> List[Node]:
        return self.node.inverse if self.node.inverse is not None else self.node.program


def parse(source: str) -> List[Node]:
    """
    Parse template markup into a list of AST nodes.

    Args:
        source: Template markup

    Returns:
        Top-level program (list of nodes)

    Raises:
        TemplateSyntaxError: On unbalanced blocks, unclosed tags, malformed paths
            or unsupported constructs (partials, hash arguments)

    Example:
        >>> parse("{{#if summary}}<p>{{summary}}</p>{{/if}}")
        [BlockNode(name='if', ...)]
    """
    program: List[Node] = []
    stack: List[_OpenBlock] = []

    def target() -> List[Node]:
        return stack[-1].target if stack else program

    def open_block(node: BlockNode, chained: bool = False) -> None:
        if len(stack) >= MAX_NESTING_DEPTH:
            raise TemplateSyntaxError(
                f"Blocks nested deeper than {MAX_NESTING_DEPTH} levels", node.lineno
            )
        target().append(node)
        stack.append(_OpenBlock(node, chained))

    def append_text(text: str) -> None:
        if not text:
            return
        nodes = target()
        if nodes and isinstance(nodes[-1], TextNode):
            nodes[-1].text += text
        else:
            nodes.append(TextNode(text))

    pos = 0
    # Set by a closing `~}}`: strip leading whitespace from the following text
    strip_next = False
    while True:
        start = source.find(OPEN_DELIMITER, pos)
        text = source[pos:] if start == -1 else source[pos:start]
        if strip_next:
            text = text.lstrip()
            strip_next = False

        if start == -1:
            append_text(text)
            break

        lineno = source.count("\n", 0, start) + 1

        # \{{ escapes a literal delimiter
        if start > 0 and source[start - 1] == "\\":
            append_text(text[:-1] + OPEN_DELIMITER)
            pos = start + 2
            continue

        # {{~ strips trailing whitespace from the preceding text
        open_end = start + 2
        if source.startswith("~", open_end):
            text = text.rstrip()
            open_end += 1
        append_text(text)

        if source.startswith("!--", open_end):
            match = _COMMENT_CLOSE_RE.search(source, open_end + 3)
            if match is None:
                raise TemplateSyntaxError("Unclosed comment", lineno)
            strip_next = bool(match.group(1))
            pos = match.end()
            continue

        if source.startswith("{", open_end):
            match = _RAW_CLOSE_RE.search(source, open_end + 1)
            if match is None:
                raise TemplateSyntaxError("Unclosed '{{{' tag", lineno)
            inner = source[open_end + 1 : match.start()]
            strip_next = bool(match.group(1))
            pos = match.end()
            name, params = _ExpressionParser(inner, lineno).parse_call()
            target().append(MustacheNode(name, params, escaped=False, lineno=lineno))
            continue

        end = source.find("}}", open_end)
        if end == -1:
            raise TemplateSyntaxError("Unclosed '{{' tag", lineno, source[start : start + 40])
        inner = source[open_end:end]
        if inner.endswith("~"):
            inner = inner[:-1]
            strip_next = True
        inner = inner.strip()
        pos = end + 2

        if not inner:
            raise TemplateSyntaxError("Empty tag '{{}}'", lineno)

        head, body = inner[0], inner[1:].strip()

        if head == "!":
            continue

        if head == ">":
            raise TemplateSyntaxError("Partials are not supported", lineno, inner)

        if head == "#":
            if body.startswith(">") or body.startswith("*"):
                raise TemplateSyntaxError("Partial and decorator blocks are not supported", lineno, inner)
            name, params = _parse_block_name(body, lineno)
            open_block(BlockNode(name, params, lineno=lineno))
            continue

        if inner in ("else", "^"):
            if not stack:
                raise TemplateSyntaxError("{{else}} outside of a block", lineno)
            current = stack[-1].node
            if current.inverse is not None:
                raise TemplateSyntaxError(f"Duplicate {{{{else}}}} in '{current.name}' block", lineno)
            current.inverse = []
            continue

        chain = _ELSE_CHAIN_RE.match(inner)
        if chain:
            if not stack:
                raise TemplateSyntaxError("{{else}} outside of a block", lineno)
            current = stack[-1].node
            if current.inverse is not None:
                raise TemplateSyntaxError(f"Duplicate {{{{else}}}} in '{current.name}' block", lineno)
            current.inverse = []
            name, params = _parse_block_name(chain.group(1), lineno)
            open_block(BlockNode(name, params, lineno=lineno), chained=True)
            continue

        if head == "^":
            name, params = _parse_block_name(body, lineno)
            if params:
                raise TemplateSyntaxError("Inverse sections take no parameters", lineno, inner)
            open_block(BlockNode(name, inverted=True, lineno=lineno))
            continue

        if head == "/":
            name = body
            if not IDENTIFIER_RE.match(name):
                raise TemplateSyntaxError(f"Invalid closing tag '{{{{/{name}}}}}'", lineno)
            if not stack:
                raise TemplateSyntaxError(f"Unexpected closing tag '{{{{/{name}}}}}'", lineno)
            while stack[-1].chained:
                stack.pop()
            opened = stack.pop().node
            if opened.name != name:
                raise TemplateSyntaxError(
                    f"'{opened.name}' (opened on line {opened.lineno}) doesn't match '{name}'",
                    lineno,
                )
            continue

        if head == "&":
            name, params = _ExpressionParser(body, lineno).parse_call()
            target().append(MustacheNode(name, params, escaped=False, lineno=lineno))
            continue

        name, params = _ExpressionParser(inner, lineno).parse_call()
        target().append(MustacheNode(name, params, lineno=lineno))

    if stack:
        # Report the outermost unclosed block of the innermost chain
        opened = next(frame.node for frame in reversed(stack) if not frame.chained)
        raise TemplateSyntaxError(
            f"Unclosed block '{{{{#{opened.name}}}}}' opened on line {opened.lineno}"
        )

    return program


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------

_KEEP = object()


def is_truthy(value: Any) -> bool:
    """Template truthiness: None, False, "", 0 and empty sequences are false."""
    if value is None or value is False:
        return False
    if isinstance(value, (str, list, tuple)):
        return len(value) > 0
    if isinstance(value, (int, float)):
        return value != 0
    return True


def escape_expression(text: str) -> str:
    """HTML-escape output text, including `=` and backtick as Handlebars does."""
    return str(escape(text)).replace("`", "&#x60;").replace("=", "&#x3D;")


def to_output(value: Any) -> str:
    """Stringify a value for output."""
    if value is None:
        return ""
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(to_output(item) for item in value)
    if isinstance(value, dict):
        return ""
    return str(value)


@dataclass(frozen=True)
class HelperOptions:
    """
    Passed as the last argument to block helpers.

    `fn(context, data)` renders the block body, `inverse(context, data)` renders
    the `{{else}}` branch. Omitting `context` keeps the current one; `data`
    entries become `@`-variables inside the body.
    """

    name: str
    fn: Callable[..., str]
    inverse: Callable[..., str]


@dataclass(frozen=True)
class _Scope:
    contexts: Tuple[Any, ...]
    data: Dict[str, Any]


class _Evaluator:
    def __init__(self, helpers, root: Dict[str, Any]):
        self.helpers = helpers
        self.root = root

    def render(self, nodes: List[Node], scope: _Scope) -> str:
        out = []
        for node in nodes:
            if isinstance(node, TextNode):
                out.append(node.text)
            elif isinstance(node, MustacheNode):
                out.append(self._render_mustache(node, scope))
            else:
                out.append(self._render_block(node, scope))
        return "".join(out)

    # -- values ------------------------------------------------------------

    def _resolve(self, path: PathExpr, scope: _Scope) -> Any:
        parts = list(path.parts)
        if path.data:
            head = parts.pop(0)
            value = self.root if head == "root" else scope.data.get(head)
        else:
            index = len(scope.contexts) - 1 - path.depth
            if index < 0:
                return None
            value = scope.contexts[index]

        for part in parts:
            value = _lookup(value, part)
            if value is None:
                return None
        return value

    def _eval(self, expr: Expr, scope: _Scope) -> Any:
        if isinstance(expr, LiteralExpr):
            return expr.value
        if isinstance(expr, SubExpr):
            helper = self._simple_helper(expr.name)
            args = [self._eval(param, scope) for param in expr.params]
            return _call_helper(helper, args)
        return self._resolve(expr, scope)

    def _simple_helper(self, name: PathExpr):
        helper = self.helpers.get(name.parts[0]) if name.is_simple else None
        if helper is None:
            raise TemplateRenderError(f'Missing helper: "{name.original}"', name.original)
        if helper.block:
            raise TemplateRenderError(
                f"Block helper '{helper.name}' must be used as {{{{#{helper.name}}}}}",
                helper.name,
            )
        return helper

    # -- nodes -------------------------------------------------------------

    def _render_mustache(self, node: MustacheNode, scope: _Scope) -> str:
        registered = self.helpers.get(node.path.parts[0]) if node.path.is_simple else None

        if node.params or (registered is not None and not registered.block):
            helper = self._simple_helper(node.path)
            args = [self._eval(param, scope) for param in node.params]
            value = _call_helper(helper, args)
        else:
            value = self._resolve(node.path, scope)

        if isinstance(value, Markup):
            return str(value)
        text = to_output(value)
        return escape_expression(text) if node.escaped else text

    def _bind(self, nodes: Optional[List[Node]], scope: _Scope) -> Callable[..., str]:
        def render_body(context: Any = _KEEP, data: Optional[Dict[str, Any]] = None) -> str:
            if not nodes:
                return ""
            contexts = scope.contexts if context is _KEEP else scope.contexts + (context,)
            merged = {**scope.data, **data} if data else scope.data
            return self.render(nodes, _Scope(contexts, merged))

        return render_body

    def _render_block(self, node: BlockNode, scope: _Scope) -> str:
        fn = self._bind(node.program, scope)
        inverse = self._bind(node.inverse, scope)

        if node.inverted:
            value = self._resolve(PathExpr((node.name,), original=node.name), scope)
            return fn() if not is_truthy(value) else inverse()

        helper = self.helpers.get(node.name)

        if helper is None:
            if node.params:
                raise TemplateRenderError(f'Missing helper: "{node.name}"', node.name)
            # Plain section: {{#experiences}}...{{/experiences}}
            value = self._resolve(PathExpr((node.name,), original=node.name), scope)
            if not is_truthy(value):
                return inverse()
            if isinstance(value, (list, tuple)):
                return "".join(
                    fn(item, {"index": i, "first": i == 0, "last": i == len(value) - 1})
                    for i, item in enumerate(value)
                )
            return fn(value) if isinstance(value, dict) else fn()

        if not helper.block:
            raise TemplateRenderError(
                f"Helper '{helper.name}' cannot be used as a block", helper.name
            )

        options = HelperOptions(name=node.name, fn=fn, inverse=inverse)
        args = [self._eval(param, scope) for param in node.params]
        return to_output(_call_helper(helper, args + [options]))


def _lookup(value: Any, key: str) -> Any:
    """Property lookup restricted to mappings and sequences."""
    if isinstance(value, dict):
        return value.get(key)
    if isinstance(value, (list, tuple, str)):
        if key == "length":
            return len(value)
        if isinstance(value, (list, tuple)) and key.isascii() and key.isdigit():
            index = int(key)
            return value[index] if index < len(value) else None
    return None


def _call_helper(helper, args: List[Any]) -> Any:
    try:
        helper.signature.bind(*args)
    except TypeError as e:
        raise TemplateRenderError(
            f"Helper '{helper.name}' called with wrong number of arguments ({len(args)})",
            helper.name,
            original_error=e,
        ) from e

    try:
        return helper.fn(*args)
    except TemplateRenderError:
        raise
    except Exception as e:
        raise TemplateRenderError(
            f"Helper '{helper.name}' failed", helper.name, original_error=e
        ) from e


def evaluate(program: List[Node], context: Dict[str, Any], helpers) -> str:
    """
    Evaluate a parsed program against a context.

    Args:
        program: Nodes returned by `parse()`
        context: Root context (plain dicts, lists and scalars)
        helpers: HelperRegistry providing named helpers

    Returns:
        Rendered markup

    Raises:
        TemplateRenderError: On missing helpers, wrong helper arity, helper failures
            or any other failure while evaluating
    """
    evaluator = _Evaluator(helpers, context)
    try:
        return evaluator.render(program, _Scope((context,), {}))
    except TemplateRenderError:
        raise
    except Exception as e:
        raise TemplateRenderError("Template evaluation failed", original_error=e) from e


def helper_signature(fn: Callable) -> inspect.Signature:
    """Signature used to check helper arity before calling."""
    return inspect.signature(fn)
