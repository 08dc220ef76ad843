"""
Fix Diff Applier — Applies LLM-authored fix text to original file content.

Operates on source strings (in-memory), not disk files. The fix text may be
a unified diff, a bare block of replacement code, or a prose description;
only the first two are mechanically applicable. This is a best-effort
heuristic patcher: the result is a suggestion subject to manual review.
"""

from __future__ import annotations

import logging
import re

logger = logging.getLogger("govscan.engine.diff_applier")

# Replacement-code heuristic thresholds. Tunable, not correctness guarantees.
MAX_AVG_WORDS_PER_LINE = 8
MIN_SPECIAL_CHARS = 20
MIN_REPLACEMENT_LENGTH = 50
HEURISTIC_LINES = 10
HEURISTIC_CHARS = 500
SPECIAL_CHARS = frozenset("{}[]();=<>:")

_FENCE_RE = re.compile(r"```(?:\w+)?\s*\n(.*?)\n```", re.DOTALL)
_HUNK_RE = re.compile(r"@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")
_DIFF_HEADERS = ("---", "+++", "diff ")


def strip_code_fence(text: str) -> str:
    """Return the body of the first fenced block, or the text itself."""
    match = _FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def looks_like_diff(text: str) -> bool:
    return "@@" in text or text.count("\n+") > 2 or text.count("\n-") > 2


def looks_like_code(text: str) -> bool:
    """
    Classify text as replacement code rather than prose.

    Code lines are short (few words) or symbol-dense; prose is neither.
    """
    lines = text.split("\n")[:HEURISTIC_LINES]
    words = sum(len(line.split()) for line in lines)
    avg_words = words / len(lines) if lines else 0
    specials = sum(1 for ch in text[:HEURISTIC_CHARS] if ch in SPECIAL_CHARS)
    return avg_words < MAX_AVG_WORDS_PER_LINE or specials > MIN_SPECIAL_CHARS


def apply_unified_diff(original: str, diff_text: str) -> str | None:
    """
    Apply every hunk of a unified diff.

    Deletions that do not match the cursor line are skipped rather than
    rejected. Returns None if no hunk header is present.
    """
    result = original.split("\n")
    diff_lines = diff_text.split("\n")
    offset = 0
    applied = False

    i = 0
    while i < len(diff_lines):
        match = _HUNK_RE.search(diff_lines[i])
        i += 1
        if match is None:
            continue
        applied = True
        cursor = int(match.group(1)) - 1 + offset

        while i < len(diff_lines) and not diff_lines[i].startswith("@@"):
            line = diff_lines[i]
            i += 1
            if line.startswith("-"):
                if 0 <= cursor < len(result) and result[cursor].strip() == line[1:].strip():
                    del result[cursor]
                    offset -= 1
                else:
                    cursor += 1
            elif line.startswith("+"):
                if cursor >= len(result):
                    result.append(line[1:])
                else:
                    result.insert(max(cursor, 0), line[1:])
                cursor += 1
                offset += 1
            elif line.startswith(" ") or not line.strip():
                cursor += 1

    if not applied:
        return None
    return "\n".join(result)


def apply_fix_diff(original: str, fix_text: str) -> str:
    """
    Apply fix text to original content.

    Diff-shaped text is only ever applied as a unified diff; without a
    usable hunk the original comes back unchanged. Other text is returned
    verbatim when it reads as replacement code, else the original.
    """
    cleaned = strip_code_fence(fix_text)

    if looks_like_diff(cleaned):
        try:
            patched = apply_unified_diff(original, cleaned)
        except (ValueError, IndexError) as e:
            logger.warning(f"Unified diff application failed: {e}")
            return original
        if patched is None:
            logger.info("Fix text looks like a diff but has no hunks; keeping original content")
            return original
        logger.info("Applied fix as unified diff")
        return patched

    if not cleaned.startswith(_DIFF_HEADERS) and len(cleaned) > MIN_REPLACEMENT_LENGTH:
        if looks_like_code(cleaned):
            logger.info("Applied fix as replacement code")
            return cleaned

    logger.info("Fix text is not mechanically applicable; keeping original content")
    return original
