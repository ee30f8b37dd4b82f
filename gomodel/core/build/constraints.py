"""Build-constraint evaluation.

Decides whether a file belongs to a build from the constraint lines in its
header comments and a set of active tags:

    // +build linux,amd64 darwin     space = OR, comma = AND, !tag = absent
    //go:build linux && !cgo         ||, &&, ! and parentheses

A file passes only if every constraint line in its header passes. A file
without constraint lines always passes.
"""

import logging
from typing import AbstractSet, Iterable, List, Sequence, Union

from ..ast_parser.syntax import SourceFile
from ..constants import BUILD_TAG_RE, GO_BUILD_RE, PLUS_BUILD_RE
from ..errors import BuildConstraintError

logger = logging.getLogger(__name__)


def _match_term(term: str, tags: AbstractSet[str]) -> bool:
    """Match one `tag` or `!tag` term. Malformed terms never match."""
    negated = term.startswith("!")
    name = term[1:] if negated else term
    if not name or not BUILD_TAG_RE.match(name):
        return False
    return (name in tags) != negated


def evaluate_plus_build(expr: str, tags: AbstractSet[str]) -> bool:
    """Evaluate the expression of a `// +build` line.

    At least one space-separated alternative must have all of its
    comma-separated terms satisfied. An empty expression is unsatisfiable.
    """
    for alternative in expr.split():
        terms = alternative.split(",")
        if all(_match_term(term, tags) for term in terms):
            return True
    return False


# ── //go:build expressions ───────────────────────────────────────────


def _tokenize(expr: str) -> List[str]:
    tokens: List[str] = []
    i = 0
    while i < len(expr):
        c = expr[i]
        if c.isspace():
            i += 1
        elif c in "()!":
            tokens.append(c)
            i += 1
        elif expr.startswith("&&", i) or expr.startswith("||", i):
            tokens.append(expr[i:i + 2])
            i += 2
        else:
            j = i
            while j < len(expr) and not expr[j].isspace() and expr[j] not in "()!&|":
                j += 1
            if j == i:
                raise ValueError(f"unexpected character {c!r}")
            word = expr[i:j]
            if not BUILD_TAG_RE.match(word):
                raise ValueError(f"invalid tag {word!r}")
            tokens.append(word)
            i = j
    return tokens


class _GoBuildParser:
    """Recursive-descent evaluator for `//go:build` expressions."""

    def __init__(self, tokens: Sequence[str], tags: AbstractSet[str]):
        self._tokens = tokens
        self._pos = 0
        self._tags = tags

    def evaluate(self) -> bool:
        if not self._tokens:
            raise ValueError("empty expression")
        result = self._or()
        if self._pos != len(self._tokens):
            raise ValueError(f"unexpected token {self._tokens[self._pos]!r}")
        return result

    def _peek(self):
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def _next(self) -> str:
        token = self._peek()
        if token is None:
            raise ValueError("unexpected end of expression")
        self._pos += 1
        return token

    def _or(self) -> bool:
        result = self._and()
        while self._peek() == "||":
            self._pos += 1
            right = self._and()
            result = result or right
        return result

    def _and(self) -> bool:
        result = self._not()
        while self._peek() == "&&":
            self._pos += 1
            right = self._not()
            result = result and right
        return result

    def _not(self) -> bool:
        if self._peek() == "!":
            self._pos += 1
            return not self._not()
        return self._atom()

    def _atom(self) -> bool:
        token = self._next()
        if token == "(":
            result = self._or()
            if self._next() != ")":
                raise ValueError("missing ')'")
            return result
        if token in (")", "&&", "||"):
            raise ValueError(f"unexpected token {token!r}")
        return token in self._tags


def evaluate_go_build(expr: str, tags: AbstractSet[str]) -> bool:
    """Evaluate the expression of a `//go:build` line.

    Raises:
        ValueError: If the expression is malformed
    """
    return _GoBuildParser(_tokenize(expr), tags).evaluate()


# ── File-level evaluation ────────────────────────────────────────────


def constraint_lines(comments: Iterable[str]) -> List[str]:
    """Select the build-constraint lines among comment texts."""
    lines = []
    for text in comments:
        for line in text.splitlines():
            line = line.strip()
            if PLUS_BUILD_RE.match(line) or GO_BUILD_RE.match(line):
                lines.append(line)
    return lines


def passes(
    file: Union[SourceFile, Iterable[str]],
    active_tags: AbstractSet[str],
    file_path: str = "",
) -> bool:
    """Decide whether a file is part of the build for `active_tags`.

    Args:
        file: A parsed SourceFile (its header comments are used) or the
            comment texts to evaluate directly
        active_tags: Tags satisfied by the build
        file_path: Path used in error messages when `file` is raw comments

    Returns:
        True if every constraint line is satisfied

    Raises:
        BuildConstraintError: If a `//go:build` expression is malformed
    """
    if isinstance(file, SourceFile):
        comments = [c.text for c in file.header_comments()]
        file_path = file.path
    else:
        comments = list(file)

    for line in constraint_lines(comments):
        plus = PLUS_BUILD_RE.match(line)
        if plus:
            ok = evaluate_plus_build(plus.group(1) or "", active_tags)
        else:
            expr = GO_BUILD_RE.match(line).group(1) or ""
            try:
                ok = evaluate_go_build(expr, active_tags)
            except ValueError as e:
                raise BuildConstraintError(file_path, line, str(e)) from e
        if not ok:
            logger.debug(f"Excluding {file_path or '<comments>'}: '{line}' not satisfied by {sorted(active_tags)}")
            return False
    return True
