"""Formula parser: tokenizer + regex-based reference extraction."""

from __future__ import annotations

import re

from gridcalc._cell import FORMULA_MARKER

# ---------------------------------------------------------------------------
# Regex patterns for cell reference extraction
# ---------------------------------------------------------------------------

# Cell ref: A1, AB100 (uppercase only, no $ anchors, no sheet prefix)
_CELL_REF_RE = re.compile(r"[A-Z]+\d+")
_CELL_REF_TOKEN_RE = re.compile(r"^[A-Z]+\d+$")

OPERATORS = frozenset("+-*/")
PARENS = frozenset("()")
_SINGLE_CHAR_TOKENS = OPERATORS | PARENS


def is_formula(text: str | None) -> bool:
    return bool(text) and text.startswith(FORMULA_MARKER)


def formula_body(formula: str) -> str:
    """Strip the leading ``=`` from *formula* (no-op if absent)."""
    if formula.startswith(FORMULA_MARKER):
        return formula[len(FORMULA_MARKER):]
    return formula


def is_cell_reference(token: str) -> bool:
    """``True`` when *token* is exactly a cell reference like ``B12``."""
    return _CELL_REF_TOKEN_RE.match(token) is not None


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------


def tokenize(expr: str) -> list[str]:
    """Split an expression body into operator, paren and operand tokens.

    Operators and parentheses are single-character tokens.  Whitespace
    separates operands and is dropped.  Everything else accumulates into
    the current operand; no validation happens here.
    """
    tokens: list[str] = []
    current = ""
    for ch in expr:
        if ch in _SINGLE_CHAR_TOKENS:
            if current:
                tokens.append(current)
                current = ""
            tokens.append(ch)
        elif ch.isspace():
            if current:
                tokens.append(current)
                current = ""
        else:
            current += ch
    if current:
        tokens.append(current)
    return tokens


# ---------------------------------------------------------------------------
# Reference extraction
# ---------------------------------------------------------------------------


def parse_references(formula: str) -> list[str]:
    """Extract every cell-reference-shaped substring of a formula body.

    Returns identifiers in order of first appearance, without duplicates.
    A leading ``=`` is ignored.
    """
    refs: list[str] = []
    seen: set[str] = set()
    for m in _CELL_REF_RE.finditer(formula_body(formula)):
        ref = m.group(0)
        if ref not in seen:
            refs.append(ref)
            seen.add(ref)
    return refs
