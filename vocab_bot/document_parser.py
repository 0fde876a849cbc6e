"""
Forgiving parser for partial TOML and JSON documents

LLM replies arrive as a stream, so the buffer is usually an incomplete
document. The helpers here apply a few textual repairs and then try to get
the largest parseable prefix out of it. Nothing in this module raises on
bad input; every attempt returns a ParseResult.
"""

import json
import logging
import re
import tomllib
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

_FENCE_OPEN_RE = re.compile(r"^\s*```[\w-]*[ \t]*\n?")
_FENCE_CLOSE_RE = re.compile(r"\n?```\s*$")
# Empty array that picked up a stray comma: [,] or [ , ]
_EMPTY_ARRAY_COMMA_RE = re.compile(r"\[\s*,\s*\]")
# Dangling comma before a closing bracket or brace: "a", ] / "a",}
_TRAILING_COMMA_RE = re.compile(r",(\s*[\]}])")


class DocumentFormat(str, Enum):
    """Structured formats the LLM is asked to produce"""

    TOML = "toml"
    JSON = "json"


@dataclass
class ParseResult:
    """Outcome of one parse attempt"""

    ok: bool
    value: Any = None
    error: str | None = None
    partial: bool = False  # value came from a truncated or auto-closed buffer

    @classmethod
    def success(cls, value: Any, partial: bool = False) -> "ParseResult":
        return cls(ok=True, value=value, partial=partial)

    @classmethod
    def failure(cls, error: str) -> "ParseResult":
        return cls(ok=False, error=error)


def strip_code_fences(text: str) -> str:
    """Remove a surrounding Markdown code fence, complete or still open"""
    stripped = _FENCE_OPEN_RE.sub("", text, count=1)
    return _FENCE_CLOSE_RE.sub("", stripped, count=1)


def _strings_masked(text: str) -> str:
    """Blank out the contents of quoted strings so regexes ignore them"""
    chars = list(text)
    in_string = False
    escaped = False
    quote = ""
    for index, char in enumerate(chars):
        if in_string:
            if char == "\n":
                # Neither JSON nor single-line TOML strings span lines
                in_string = False
                escaped = False
                continue
            if escaped:
                escaped = False
            elif char == "\\" and quote == '"':
                escaped = True
            elif char == quote:
                in_string = False
                continue
            chars[index] = " "
        elif char in ('"', "'"):
            in_string = True
            quote = char
    return "".join(chars)


def _apply_outside_strings(text: str, pattern: re.Pattern, replacement: str) -> str:
    masked = _strings_masked(text)
    if masked == text:
        return pattern.sub(replacement, text)
    # Only edit spans the pattern finds in the masked copy
    pieces = []
    last = 0
    for match in pattern.finditer(masked):
        pieces.append(text[last:match.start()])
        pieces.append(match.expand(replacement))
        last = match.end()
    pieces.append(text[last:])
    return "".join(pieces)


def repair_document(text: str) -> str:
    """
    Apply backend-agnostic repairs to a partial document

    Some backends emit an empty array with a stray comma, others leave a
    comma dangling before the closing bracket. Both are normalised here,
    whichever backend produced the text. Quoted text is left alone.
    """
    text = strip_code_fences(text)
    text = _apply_outside_strings(text, _EMPTY_ARRAY_COMMA_RE, "[]")
    text = _apply_outside_strings(text, _TRAILING_COMMA_RE, r"\1")
    return text


def parse_toml(text: str) -> ParseResult:
    """Parse a complete TOML document"""
    try:
        return ParseResult.success(tomllib.loads(text))
    except tomllib.TOMLDecodeError as e:
        return ParseResult.failure(str(e))


def parse_partial_toml(text: str) -> ParseResult:
    """
    Parse the largest line-prefix of a TOML buffer

    The whole buffer is tried first. When that fails, trailing lines are
    dropped one at a time, so an unfinished last line or an open
    multi-line array does not hide everything before it.
    """
    result = parse_toml(text)
    if result.ok:
        return result

    first_error = result.error
    lines = text.splitlines()
    for end in range(len(lines) - 1, 0, -1):
        candidate = "\n".join(lines[:end])
        if not candidate.strip():
            break
        prefix = parse_toml(candidate)
        if prefix.ok:
            return ParseResult.success(prefix.value, partial=True)

    return ParseResult.failure(first_error or "empty document")


def _json_closers(text: str) -> tuple[str, list[int]]:
    """
    Scan a JSON prefix

    Returns the characters needed to close every open string and container,
    plus the offsets of commas at which the prefix can be cut back to the
    last complete member.
    """
    stack: list[str] = []
    cut_points: list[int] = []
    in_string = False
    escaped = False

    for index, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in "[{":
            stack.append("]" if char == "[" else "}")
        elif char in "]}":
            if stack:
                stack.pop()
        elif char == ",":
            cut_points.append(index)

    closers = ('"' if in_string else "") + "".join(reversed(stack))
    return closers, cut_points


def parse_json(text: str) -> ParseResult:
    """Parse a complete JSON document"""
    try:
        return ParseResult.success(json.loads(text))
    except (json.JSONDecodeError, TypeError) as e:
        return ParseResult.failure(str(e))


def parse_partial_json(text: str, max_attempts: int = 64) -> ParseResult:
    """
    Parse a JSON buffer, closing whatever the stream left open

    Tries the buffer as-is, then with its open strings and containers
    closed, then cut back to each earlier comma (newest first) and closed.
    """
    result = parse_json(text)
    if result.ok:
        return result
    first_error = result.error

    stripped = text.rstrip()
    if not stripped:
        return ParseResult.failure(first_error or "empty document")

    closers, cut_points = _json_closers(stripped)
    attempt = parse_json(stripped + closers)
    if attempt.ok:
        return ParseResult.success(attempt.value, partial=True)

    for cut in list(reversed(cut_points))[:max_attempts]:
        prefix = stripped[:cut]
        prefix_closers, _ = _json_closers(prefix)
        attempt = parse_json(prefix + prefix_closers)
        if attempt.ok:
            return ParseResult.success(attempt.value, partial=True)

    return ParseResult.failure(first_error or "unparseable document")


def parse_document(text: str, fmt: DocumentFormat = DocumentFormat.TOML) -> ParseResult:
    """
    Repair and parse a possibly incomplete document

    Args:
        text: Accumulated stream buffer
        fmt: Expected document format

    Returns:
        ParseResult; ok is False when nothing usable can be parsed yet
    """
    if not text or not text.strip():
        return ParseResult.failure("empty document")

    repaired = repair_document(text)
    if fmt == DocumentFormat.JSON:
        result = parse_partial_json(repaired)
    else:
        result = parse_partial_toml(repaired)

    if not result.ok:
        logger.debug(f"Document not parseable yet ({len(text)} chars): {result.error}")
    return result
