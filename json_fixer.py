# json_fixer.py
# Tolerant JSON repair engine: tokenizer, token fixer, recursive-descent
# parser and serializer behind a single autocorrect() call.
#
# =============================================================================
#  PIPELINE: TOKENIZE -> FIX BRACKETS -> PARSE -> SERIALIZE
# =============================================================================
#
# Input is text that was meant to be JSON: truncated documents, unbalanced
# brackets, missing separators, unterminated strings, partial literals.
# Output is always strict JSON. No stage raises on malformed input; each one
# substitutes a default and keeps going.
#
# Design Rationale:
# 1. All bracket recovery happens in fix_tokens(). After that pass every
#    opened scope is closed before EOF, so the parser only has to tolerate
#    noise inside a body, never an unclosed one [hypertextbookshop.com,
#    Parser Error Handling and Recovery].
# 2. Recursive descent with an explicit (value, index) result instead of a
#    shared cursor. Each container parser can be exercised in isolation on a
#    hand-built token list [geeksforgeeks.org, Recursive Descent Parser].
# 3. The lexer is one compiled regex with named groups and a catch-all
#    branch. finditer() then covers every offset of the input, which is what
#    makes the tokenizer total [craftinginterpreters.com, Scanning].
#
# Depth guard defaults to 256 nested containers. Deeper subtrees are replaced
# by null so adversarial input cannot exhaust the interpreter stack.
#
# =============================================================================
#  REFERENCES
# =============================================================================
# [1] geeksforgeeks.org - Recursive Descent Parser
# [2] craftinginterpreters.com - Scanning
# [3] RFC 8259 - The JavaScript Object Notation (JSON) standard
# [4] hypertextbookshop.com - Parser Error Handling and Recovery
# =============================================================================

import argparse
import functools
import json
import logging
import math
import re
import sys
from enum import Enum, auto
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Sequence

import fixer_backends

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# CONSTANTS AND TUNABLES
# ---------------------------------------------------------------------------
DEPTH_LIMIT_DEFAULT = 256   # Nested containers kept before a subtree becomes null
INDENT_DEFAULT      = 2     # Spaces per level for serialize_pretty()

# Broken inputs shown by --demo
DEMO_SAMPLES = (
    '{"key": 123',                      # Missing closing brace
    '{{"name": "Test"}',                # Extra brace at the start
    '{"arr": [1, 2, 3}',                # Missing closing bracket for array
    '{"key": "test", "star, ',          # Unfinished key
    '{"key": "test", "new": fals',      # Incomplete boolean
    '{"title": "Hello',                 # Unterminated string
    '{"key1": 1, "key2": 2,',           # Trailing comma
    '{"one": 1 "two": 2}',              # Missing comma
    '{"flag": tr, "value": nul}',       # Partial literals
)

# ---------------------------------------------------------------------------
# TOKEN RECORD
# ---------------------------------------------------------------------------
class TokenKind(Enum):
    LBRACE   = auto()
    RBRACE   = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    COLON    = auto()
    COMMA    = auto()
    STRING   = auto()
    NUMBER   = auto()
    TRUE     = auto()
    FALSE    = auto()
    NULL     = auto()
    EOF      = auto()
    UNKNOWN  = auto()


class Token(NamedTuple):
    """
    Immutable token record: (kind, text).

    text holds the literal spelling or the raw string payload (escapes still
    in place). Structural tokens and EOF carry None.
    """
    kind: TokenKind
    text: Optional[str] = None


_STRUCTURAL_KINDS = {
    "{": TokenKind.LBRACE,
    "}": TokenKind.RBRACE,
    "[": TokenKind.LBRACKET,
    "]": TokenKind.RBRACKET,
    ":": TokenKind.COLON,
    ",": TokenKind.COMMA,
}
_CLOSER_FOR = {
    TokenKind.LBRACE: TokenKind.RBRACE,
    TokenKind.LBRACKET: TokenKind.RBRACKET,
}
_CLOSERS = frozenset(_CLOSER_FOR.values())

# ---------------------------------------------------------------------------
# REGEX BLUEPRINT
# ---------------------------------------------------------------------------
# A string runs to the next unescaped quote or to end of input. A lone
# backslash at end of input is consumed and dropped.
_WHITESPACE = r"\s+"
_STRUCTURAL = r"[{}\[\]:,]"
_STRING     = r'"(?P<PAYLOAD>(?:[^"\\]|\\[\s\S])*)\\?"?'
_BARE       = r"(?:[^\W_]|[+\-.])+"     # letters, digits, + - .

_TOKEN_RE = re.compile(
    rf"(?P<WHITESPACE>{_WHITESPACE})|"
    rf"(?P<STRUCTURAL>{_STRUCTURAL})|"
    rf"(?P<STRING>{_STRING})|"
    rf"(?P<BARE>{_BARE})|"
    r"(?P<OTHER>[\s\S])"                # anything else is dropped
)

_NUMBER_RE     = re.compile(r"-?[0-9]+(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?")
_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

_KEYWORDS = {
    "t": (TokenKind.TRUE, "true"),
    "f": (TokenKind.FALSE, "false"),
    "n": (TokenKind.NULL, "null"),
}

# ---------------------------------------------------------------------------
# TOKENIZER
# ---------------------------------------------------------------------------
def correct_literal(raw: str) -> Token:
    """
    Classify a bare literal run.

    A case-insensitive prefix of true/false/null repairs to that keyword
    ("tr" -> TRUE, "NUL" -> NULL). The run may not be longer than the
    keyword, so "truX" falls through to the bare-word rule.
    """
    lowered = raw.lower()
    keyword = _KEYWORDS.get(lowered[:1])
    if keyword is not None:
        kind, spelling = keyword
        if spelling.startswith(lowered):
            return Token(kind, spelling)
    if _NUMBER_RE.fullmatch(raw):
        return Token(TokenKind.NUMBER, raw)
    if _IDENTIFIER_RE.fullmatch(raw):
        return Token(TokenKind.STRING, raw)
    return Token(TokenKind.UNKNOWN, raw)


def tokenize(text: str) -> List[Token]:
    """
    Scan text into tokens. Never raises; the result always ends with EOF.
    """
    tokens: List[Token] = []
    for m in _TOKEN_RE.finditer(text):
        kind = m.lastgroup
        if kind == "STRUCTURAL":
            tokens.append(Token(_STRUCTURAL_KINDS[m.group()]))
        elif kind == "STRING":
            tokens.append(Token(TokenKind.STRING, m.group("PAYLOAD")))
        elif kind == "BARE":
            tokens.append(correct_literal(m.group()))
    tokens.append(Token(TokenKind.EOF))
    return tokens

# ---------------------------------------------------------------------------
# TOKEN FIXER
# ---------------------------------------------------------------------------
def fix_tokens(tokens: Iterable[Token]) -> List[Token]:
    """
    Return a new token list in which every opener has a matching closer.

    A mismatched closer is read as "the expected closer is missing": the
    expected one is synthesized first, then the written one is kept if it
    matches the next enclosing scope. Only one corrective pop is attempted;
    a closer that still does not match is dropped. Closers seen with no open
    scope are kept as orphans. Scopes left open at the end are closed
    innermost first, ahead of the trailing EOF.
    """
    fixed: List[Token] = []
    stack: List[TokenKind] = []
    eof = Token(TokenKind.EOF)

    for tok in tokens:
        kind = tok.kind
        if kind is TokenKind.EOF:
            eof = tok
        elif kind in _CLOSER_FOR:
            fixed.append(tok)
            stack.append(_CLOSER_FOR[kind])
        elif kind not in _CLOSERS:
            fixed.append(tok)
        elif not stack:
            logger.debug("orphan %s kept outside any scope", kind.name)
            fixed.append(tok)
        elif stack[-1] is kind:
            stack.pop()
            fixed.append(tok)
        else:
            expected = stack.pop()
            logger.debug("inserted %s before mismatched %s", expected.name, kind.name)
            fixed.append(Token(expected))
            if stack and stack[-1] is kind:
                stack.pop()
                fixed.append(tok)
            elif not stack:
                fixed.append(tok)
            else:
                logger.debug("dropped %s still unmatched after one pop", kind.name)

    while stack:
        closer = stack.pop()
        logger.debug("closed %s left open at end of input", closer.name)
        fixed.append(Token(closer))
    fixed.append(eof)
    return fixed

# ---------------------------------------------------------------------------
# VALUE PARSER
# ---------------------------------------------------------------------------
class ParseResult(NamedTuple):
    value: Any
    index: int


_VALUE_STARTS = frozenset({
    TokenKind.LBRACE, TokenKind.LBRACKET, TokenKind.STRING, TokenKind.NUMBER,
    TokenKind.TRUE, TokenKind.FALSE, TokenKind.NULL,
})
_END_MARKERS = frozenset({TokenKind.RBRACE, TokenKind.RBRACKET, TokenKind.EOF})

_STRING_ESCAPE_RE = re.compile(
    r"\\u([dD][89abAB][0-9a-fA-F]{2})\\u([dD][c-fC-F][0-9a-fA-F]{2})"   # surrogate pair
    r"|\\u([0-9a-fA-F]{4})"
    r"|\\([\s\S])"
)
_SIMPLE_ESCAPES = {
    '"': '"', "\\": "\\", "/": "/",
    "b": "\b", "f": "\f", "n": "\n", "r": "\r", "t": "\t",
}


def _unescape(m: "re.Match") -> str:
    high, low, code, char = m.groups()
    if high is not None:
        return chr(0x10000 + ((int(high, 16) - 0xD800) << 10) + (int(low, 16) - 0xDC00))
    if code is not None:
        return chr(int(code, 16))
    # Not a JSON escape: keep both characters
    return _SIMPLE_ESCAPES.get(char, m.group())


def _decode_string(raw: Optional[str]) -> str:
    if not raw:
        return ""
    if "\\" not in raw:
        return raw
    return _STRING_ESCAPE_RE.sub(_unescape, raw)


def _to_number(text: Optional[str]):
    """int or float from a NUMBER token; the raw text when conversion fails."""
    try:
        if any(c in text for c in ".eE"):
            number = float(text)
            return number if math.isfinite(number) else text
        return int(text)
    except (TypeError, ValueError):
        return text


def _skip_container(tokens: Sequence[Token], index: int) -> int:
    """Index just past the closer matching the opener at index."""
    level = 0
    for pos in range(index, len(tokens)):
        kind = tokens[pos].kind
        if kind in _CLOSER_FOR:
            level += 1
        elif kind in _CLOSERS:
            level -= 1
            if level == 0:
                return pos + 1
        elif kind is TokenKind.EOF:
            return pos
    return len(tokens)


def _parse_value(tokens: Sequence[Token], index: int, depth: int, max_depth: int) -> ParseResult:
    if index >= len(tokens):
        return ParseResult(None, index)
    kind, text = tokens[index]

    if kind in _CLOSER_FOR:
        if depth >= max_depth:
            logger.debug("nesting deeper than %d at token %d replaced by null", max_depth, index)
            return ParseResult(None, _skip_container(tokens, index))
        if kind is TokenKind.LBRACE:
            return _parse_object(tokens, index + 1, depth + 1, max_depth)
        return _parse_array(tokens, index + 1, depth + 1, max_depth)
    if kind is TokenKind.STRING:
        return ParseResult(_decode_string(text), index + 1)
    if kind is TokenKind.NUMBER:
        return ParseResult(_to_number(text), index + 1)
    if kind is TokenKind.TRUE:
        return ParseResult(True, index + 1)
    if kind is TokenKind.FALSE:
        return ParseResult(False, index + 1)
    if kind is TokenKind.NULL:
        return ParseResult(None, index + 1)
    if kind in _END_MARKERS:
        # Leave the terminator for the enclosing container
        return ParseResult(None, index)
    return ParseResult(None, index + 1)


def _parse_array(tokens: Sequence[Token], index: int, depth: int, max_depth: int) -> ParseResult:
    """
    Parse an array body; index points just past the '['.

    A missing comma is tolerated. A token that cannot start a value ends the
    array early and is left for the enclosing parser.
    """
    items: List[Any] = []
    expect_comma = False
    size = len(tokens)
    while index < size:
        kind = tokens[index].kind
        if kind is TokenKind.RBRACKET or kind is TokenKind.EOF:
            return ParseResult(items, index + 1)
        if expect_comma:
            expect_comma = False
            if kind is TokenKind.COMMA:
                index += 1
                continue
        if kind not in _VALUE_STARTS:
            return ParseResult(items, index)
        result = _parse_value(tokens, index, depth, max_depth)
        items.append(result.value)
        index = result.index
        expect_comma = True
    return ParseResult(items, index)


def _parse_object(tokens: Sequence[Token], index: int, depth: int, max_depth: int) -> ParseResult:
    """
    Parse an object body; index points just past the '{'.

    Keys must be STRING tokens followed by a colon. A key without a colon is
    dropped, any other token in key position is skipped, and a missing comma
    between entries is tolerated. Duplicate keys: last value wins.
    """
    obj: Dict[str, Any] = {}
    expect_comma = False
    size = len(tokens)
    while index < size:
        kind, text = tokens[index]
        if kind is TokenKind.RBRACE or kind is TokenKind.EOF:
            return ParseResult(obj, index + 1)
        if expect_comma:
            expect_comma = False
            if kind is TokenKind.COMMA:
                index += 1
                continue
        index += 1
        if kind is TokenKind.STRING and index < size and tokens[index].kind is TokenKind.COLON:
            result = _parse_value(tokens, index + 1, depth, max_depth)
            obj[_decode_string(text)] = result.value
            index = result.index
            expect_comma = True
    return ParseResult(obj, index)


def parse(tokens: Sequence[Token], index: int = 0, *, max_depth: int = DEPTH_LIMIT_DEFAULT) -> ParseResult:
    """
    Parse one value starting at tokens[index].

    Returns the value and the index of the first unconsumed token. A closer
    or EOF at index yields (None, index); any other token that cannot start
    a value yields None and is consumed.
    """
    return _parse_value(tokens, index, 0, max_depth)

# ---------------------------------------------------------------------------
# SERIALIZER
# ---------------------------------------------------------------------------
_ESCAPE_RE = re.compile(r'[\x00-\x1f\\"\ud800-\udfff]')
_ESCAPE_DCT = {
    "\\": "\\\\",
    '"': '\\"',
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}
for _i in range(0x20):
    _ESCAPE_DCT.setdefault(chr(_i), "\\u{0:04x}".format(_i))
del _i


def _escape_char(m: "re.Match") -> str:
    ch = m.group()
    try:
        return _ESCAPE_DCT[ch]
    except KeyError:
        # Lone surrogate
        return "\\u{0:04x}".format(ord(ch))


def _quote(s: str) -> str:
    return '"' + _ESCAPE_RE.sub(_escape_char, s) + '"'


def _encode(value: Any, indent: Optional[int], level: int) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return int.__repr__(value)
    if isinstance(value, float):
        return float.__repr__(value) if math.isfinite(value) else "null"
    if isinstance(value, str):
        return _quote(value)

    if isinstance(value, dict):
        opener, closer = "{", "}"
        parts = [
            _quote(k if isinstance(k, str) else str(k)) + ": " + _encode(v, indent, level + 1)
            for k, v in value.items()
        ]
    elif isinstance(value, (list, tuple)):
        opener, closer = "[", "]"
        parts = [_encode(v, indent, level + 1) for v in value]
    else:
        return _quote(str(value))

    if indent is None:
        return opener + ", ".join(parts) + closer
    if not parts:
        return opener + closer
    inner = "\n" + " " * (indent * (level + 1))
    outer = "\n" + " " * (indent * level)
    return opener + inner + ("," + inner).join(parts) + outer + closer


def serialize(value: Any) -> str:
    """
    Render a value tree as single-line JSON.

    Siblings are joined with ", " and pairs with ": ". Control characters
    and lone surrogates are escaped; every other code point is written as is.
    """
    return _encode(value, None, 0)


def serialize_pretty(value: Any, indent: int = INDENT_DEFAULT) -> str:
    """Render a value tree with one entry per line, indented by level."""
    return _encode(value, indent, 0)

# ---------------------------------------------------------------------------
# PUBLIC API
# ---------------------------------------------------------------------------
def repair(text: str, *, max_depth: int = DEPTH_LIMIT_DEFAULT) -> Any:
    """
    Run tokenizer, fixer and parser over text and return the value tree.

    Input that yields no value (empty, only noise, a bare null) becomes an
    empty object.
    """
    tokens = fix_tokens(tokenize(text))
    value = parse(tokens, max_depth=max_depth).value
    if value is None:
        logger.debug("no root value recovered, defaulting to empty object")
        return {}
    return value


def autocorrect(text: str, *, max_depth: int = DEPTH_LIMIT_DEFAULT) -> str:
    """
    Repair JSON-like text and return strict, single-line JSON.

    Total: every input string produces valid JSON, nothing is raised.
    """
    return serialize(repair(text, max_depth=max_depth))


def autocorrect_pretty(text: str, *, indent: int = INDENT_DEFAULT, max_depth: int = DEPTH_LIMIT_DEFAULT) -> str:
    """Same as autocorrect() with indented output."""
    return serialize_pretty(repair(text, max_depth=max_depth), indent)

# ---------------------------------------------------------------------------
# CLI ENTRYPOINT
# ---------------------------------------------------------------------------
def _read_input(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, "r", encoding="utf-8", errors="replace") as fh:
        return fh.read()


def _cli(argv: List[str]) -> int:
    """
    Command-line interface for repair runs.

    Exit code 0 on success; 1 when the input cannot be read, a backend cannot
    be loaded or a differential run finds a mismatch.
    """
    ap = argparse.ArgumentParser(description="Repair malformed JSON text")
    ap.add_argument("file", nargs="?", default="-", help="file to repair, '-' reads stdin")
    ap.add_argument("--pretty", action="store_true", help="indent the repaired output")
    ap.add_argument("--debug", action="store_true", help="dump the repaired token stream and exit")
    ap.add_argument("--max-depth", type=int, default=DEPTH_LIMIT_DEFAULT)
    ap.add_argument("--backend", help="autocorrect implementation as module[:attr]")
    ap.add_argument("--compare", metavar="BACKEND", help="check another backend against this run")
    ap.add_argument("--demo", action="store_true", help="repair the built-in broken samples")
    ap.add_argument("-v", "--verbose", action="store_true", help="log each repair to stderr")
    args = ap.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    if args.demo:
        for broken in DEMO_SAMPLES:
            print(f"Broken:  {broken}")
            print(f"Fixed:   {autocorrect(broken, max_depth=args.max_depth)}")
            print("-" * 22)
        return 0

    try:
        data = _read_input(args.file)
    except OSError as exc:
        print(f"error: cannot read {args.file}: {exc.strerror or exc}", file=sys.stderr)
        return 1

    if args.debug:
        for tok in fix_tokens(tokenize(data)):
            print(tok.kind.name if tok.text is None else f"{tok.kind.name:<8} {tok.text!r}")
        return 0

    try:
        if args.backend:
            fix = fixer_backends.load_backend(args.backend)
        else:
            fix = functools.partial(autocorrect, max_depth=args.max_depth)
        candidate = fixer_backends.load_backend(args.compare) if args.compare else None
    except fixer_backends.BackendUnavailable as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    fixed = fix(data)

    if candidate is not None:
        mismatches = fixer_backends.compare_backends(fix, candidate, [data])
        for m in mismatches:
            print(f"MISMATCH {args.compare}: expected {m.expected} got {m.actual}", file=sys.stderr)
        if mismatches:
            return 1

    if args.pretty:
        try:
            fixed = serialize_pretty(json.loads(fixed))
        except ValueError:
            print(f"error: backend returned invalid JSON: {fixed}", file=sys.stderr)
            return 1

    print(fixed)
    return 0


def main() -> int:
    return _cli(sys.argv[1:])

# ---------------------------------------------------------------------------
# MAIN GUARD
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    sys.exit(main())
