"""
Recovery of JSON payloads from text-generation responses.

Models asked to answer in JSON often wrap the payload in a markdown fence
or surround it with prose. ``extract`` takes the first match of:

    1. a ```json fenced block,
    2. a plain ``` fenced block,
    3. the whole text,

parses the candidate strictly, and if that fails scans it for the first
``{`` or ``[`` from which a complete JSON value decodes. It never raises:
the result is an ExtractionResult that is either a success carrying the
parsed value or a MALFORMED_PAYLOAD failure carrying the original text.
"""

import json
import re
from typing import Any

from sheet2sql.models.sheet_models import ExtractionResult

# No \s* around the capture: on long whitespace runs that backtracks
# quadratically. The interior is stripped afterwards instead.
_JSON_FENCE = re.compile(r"```json(.*?)```", re.DOTALL)
_PLAIN_FENCE = re.compile(r"```(.*?)```", re.DOTALL)

# Start positions tried by the embedded-value scan.
MAX_SCAN_ATTEMPTS = 64

_OPENERS = {
    None: re.compile(r"[\[{]"),
    dict: re.compile(r"\{"),
    list: re.compile(r"\["),
}
_SHAPE_NAMES = {dict: "object", list: "array"}


def find_candidate(raw_text: str) -> str:
    """
    Select the text that should contain the JSON payload.

    Returns the interior of the first ```json block, else of the first plain
    ``` block, else the whole text. An empty fence interior falls back to
    the whole text.
    """
    match = _JSON_FENCE.search(raw_text) or _PLAIN_FENCE.search(raw_text)
    if match:
        interior = match.group(1).strip()
        if interior:
            return interior
    return raw_text


def _matches_shape(value: Any, expected_type: type | None) -> bool:
    return expected_type is None or isinstance(value, expected_type)


def _scan_embedded(candidate: str, expected_type: type | None) -> tuple[bool, Any]:
    decoder = json.JSONDecoder()
    for attempt, match in enumerate(_OPENERS[expected_type].finditer(candidate)):
        if attempt >= MAX_SCAN_ATTEMPTS:
            break
        try:
            value, _ = decoder.raw_decode(candidate, match.start())
        except (ValueError, RecursionError):
            continue
        return True, value
    return False, None


def extract(raw_text: str, expected_type: type | None = None) -> ExtractionResult:
    """
    Recover the JSON payload embedded in a model completion.

    Args:
        raw_text: Completion text exactly as returned by the model.
        expected_type: ``dict`` or ``list`` to require an object or array;
            None accepts any JSON value.

    Returns:
        ExtractionResult. On failure ``raw_text`` is the original input,
        not the fenced candidate.
    """
    if expected_type not in _OPENERS:
        raise ValueError(f"expected_type must be dict, list or None, not {expected_type!r}")

    if not isinstance(raw_text, str):
        return ExtractionResult.failed(
            raw_text="" if raw_text is None else str(raw_text),
            message="Response text is not a string",
        )

    candidate = find_candidate(raw_text)

    try:
        value = json.loads(candidate)
    except (ValueError, RecursionError):
        pass
    else:
        if _matches_shape(value, expected_type):
            return ExtractionResult.succeeded(value=value, raw_text=raw_text)

    found, value = _scan_embedded(candidate, expected_type)
    if found:
        return ExtractionResult.succeeded(value=value, raw_text=raw_text)

    if expected_type is None:
        message = "No JSON payload found in response"
    else:
        message = f"No JSON {_SHAPE_NAMES[expected_type]} found in response"
    return ExtractionResult.failed(raw_text=raw_text, message=message)
