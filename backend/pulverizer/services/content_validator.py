"""
Payload Pulverizer — Content Validator
========================================

What:  Sniffs whether a payload is JSON, XML or Markdown.
Why:   /validate-before-destroy reports what it was about to destroy.
How:   classify() tries the parsers in a fixed order and returns the first
       that accepts the payload; inspect() runs every check on its own and
       builds the human-readable report.
Who:   Called by routes/validate.py.

Precedence (first match wins):
    1. JSON      json.loads on the UTF-8 text (scalars count: `42` is JSON)
    2. XML       well-formed document with a single root element
    3. Markdown  any non-blank UTF-8 text without control characters
                 (other than tab, LF, CR) that markdown-it turns into at
                 least one block token
    4. Invalid   everything else: undecodable bytes, blank payloads,
                 binary-looking text

Markdown has no failing grammar, so it is the fallback for "some text".
The control-character rule is what keeps b"\\x00\\x01" out of it.

Both functions are pure: no I/O, no shared state.
"""

import enum
import json
import unicodedata
import xml.etree.ElementTree as ET
from typing import List, Optional

from markdown_it import MarkdownIt

from pulverizer.schemas.payload import ValidationReport


class ValidationResult(str, enum.Enum):
    """Classification of a payload, by precedence."""

    VALID_JSON = "json"
    VALID_XML = "xml"
    VALID_MARKDOWN = "markdown"
    INVALID = "invalid"


# Whitespace control characters allowed in Markdown text
_ALLOWED_CONTROL = {"\t", "\n", "\r"}

_markdown = MarkdownIt("commonmark")


def _decode(payload: bytes) -> Optional[str]:
    try:
        return payload.decode("utf-8")
    except UnicodeDecodeError:
        return None


def _reject_constant(name: str):
    # json.loads accepts NaN/Infinity, which are not JSON
    raise ValueError(f"non-standard JSON constant {name}")


def is_json(text: str) -> bool:
    """True if `text` is a complete JSON document."""
    try:
        json.loads(text, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        return False
    return True


def is_xml(text: str) -> bool:
    """True if `text` is a well-formed XML document."""
    if not text.strip():
        return False
    try:
        ET.fromstring(text)
    except ET.ParseError:
        return False
    except ValueError:
        # An encoding declaration that contradicts the already-decoded text
        return False
    return True


def is_markdown(text: str) -> bool:
    """True if `text` is plain text that renders to at least one Markdown block."""
    if not text.strip():
        return False
    for ch in text:
        if ch not in _ALLOWED_CONTROL and unicodedata.category(ch) == "Cc":
            return False
    return len(_markdown.parse(text)) > 0


def classify(payload: bytes) -> ValidationResult:
    """
    Classify `payload`, trying JSON, then XML, then Markdown.

    Examples:
        classify(b'{"a":1}')  -> ValidationResult.VALID_JSON
        classify(b"<a/>")     -> ValidationResult.VALID_XML
        classify(b"# title")  -> ValidationResult.VALID_MARKDOWN
        classify(b"\\x00\\x01") -> ValidationResult.INVALID
    """
    text = _decode(payload)
    if text is None:
        return ValidationResult.INVALID
    if is_json(text):
        return ValidationResult.VALID_JSON
    if is_xml(text):
        return ValidationResult.VALID_XML
    if is_markdown(text):
        return ValidationResult.VALID_MARKDOWN
    return ValidationResult.INVALID


def inspect(payload: bytes) -> ValidationReport:
    """
    Run every format check independently and describe the findings.

    The verdict always equals classify(payload); the flags may overlap.
    runtime_us is left at 0 for the caller to fill in.
    """
    text = _decode(payload)
    if text is None:
        return ValidationReport(
            verdict=ValidationResult.INVALID.value,
            is_json=False,
            is_xml=False,
            is_markdown=False,
            details=["Payload is not valid UTF-8 text.", "Anyways, it's gone now."],
        )

    json_ok = is_json(text)
    xml_ok = is_xml(text)
    markdown_ok = is_markdown(text)

    details: List[str] = []
    if json_ok:
        details.append("Valid JSON detected.")
    if xml_ok:
        details.append("Valid XML detected.")
    if markdown_ok:
        details.append("Markdown content detected (parsed successfully).")
    if not (json_ok or xml_ok or markdown_ok):
        details.append("No known markup detected (JSON, XML, Markdown).")
    details.append("Anyways, it's gone now.")

    if json_ok:
        verdict = ValidationResult.VALID_JSON
    elif xml_ok:
        verdict = ValidationResult.VALID_XML
    elif markdown_ok:
        verdict = ValidationResult.VALID_MARKDOWN
    else:
        verdict = ValidationResult.INVALID

    return ValidationReport(
        verdict=verdict.value,
        is_json=json_ok,
        is_xml=xml_ok,
        is_markdown=markdown_ok,
        details=details,
    )
