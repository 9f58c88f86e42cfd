"""
Extraction of the [COMMAND: ...] and [EXPLANATION: ...] blocks from a model reply.

Only the first block of each kind is used; later duplicates are ignored.
"""
import logging
import re
from typing import Optional

from ..models import DEFAULT_COMMAND, OFF_COMMAND

logger = logging.getLogger(__name__)

COMMAND_BLOCK = re.compile(r"\[COMMAND:\s*(.*?)\]", re.IGNORECASE | re.DOTALL)
EXPLANATION_BLOCK = re.compile(r"\[EXPLANATION:\s*(.*?)\]", re.IGNORECASE | re.DOTALL)

DISALLOWED_CHARS = re.compile(r"[^A-Za-z0-9,;\s]")
WHITESPACE_RUN = re.compile(r"\s+")

HSB_TRIPLE = re.compile(r"HSBCOLOR\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)", re.IGNORECASE)
DIMMER_VALUE = re.compile(r"\bDimmer\s*(\d+)", re.IGNORECASE)
CT_VALUE = re.compile(r"\bCT\s*(\d+)", re.IGNORECASE)

MISSING_EXPLANATION = "{command} 명령을 생성했습니다. (설명 없음)"


def _clamp(value: str, low: int, high: int) -> int:
    # Digit runs wider than the upper bound saturate without int() conversion
    digits = value.lstrip("0") or "0"
    if len(digits) > len(str(high)):
        return high
    return max(low, min(high, int(digits)))


def clean_command(raw: str) -> str:
    """Collapse whitespace runs and drop every character outside [A-Za-z0-9,;\\s]."""
    cleaned = WHITESPACE_RUN.sub(" ", raw.strip())
    return DISALLOWED_CHARS.sub("", cleaned).strip()


def normalize_command(cleaned: str) -> Optional[str]:
    """
    Rebuild a cleaned command into ``HSBCOLOR H,S,B[;Dimmer D][;CT C]``.

    Values are clamped to hue 0-359, saturation/brightness/dimmer 0-100 and
    CT 153-500. Returns None when no H,S,B triple follows the keyword.
    """
    hsb = HSB_TRIPLE.search(cleaned)
    if not hsb:
        return None

    hue = _clamp(hsb.group(1), 0, 359)
    saturation = _clamp(hsb.group(2), 0, 100)
    brightness = _clamp(hsb.group(3), 0, 100)
    parts = [f"HSBCOLOR {hue},{saturation},{brightness}"]

    dimmer = DIMMER_VALUE.search(cleaned)
    if dimmer:
        parts.append(f"Dimmer {_clamp(dimmer.group(1), 0, 100)}")

    ct = CT_VALUE.search(cleaned)
    if ct:
        parts.append(f"CT {_clamp(ct.group(1), 153, 500)}")

    return ";".join(parts)


def extract_command(reply: str) -> str:
    """
    Resolve the bulb command from a model reply.

    - no [COMMAND: ...] block at all  -> OFF_COMMAND
    - block without a usable HSBCOLOR -> DEFAULT_COMMAND
    - otherwise the normalized command
    """
    match = COMMAND_BLOCK.search(reply)
    if not match:
        logger.warning("No [COMMAND: ...] block in model reply, using off command")
        return OFF_COMMAND

    cleaned = clean_command(match.group(1))
    if "HSBCOLOR" not in cleaned.upper():
        logger.warning(f"Command block without HSBCOLOR ({cleaned!r}), using default command")
        return DEFAULT_COMMAND

    normalized = normalize_command(cleaned)
    if normalized is None:
        logger.warning(f"Unreadable HSBCOLOR values in {cleaned!r}, using default command")
        return DEFAULT_COMMAND
    return normalized


def extract_explanation(reply: str, command: str) -> str:
    """Return the first [EXPLANATION: ...] text, or a placeholder naming the command."""
    match = EXPLANATION_BLOCK.search(reply)
    if match and match.group(1).strip():
        return match.group(1).strip()
    return MISSING_EXPLANATION.format(command=command)
