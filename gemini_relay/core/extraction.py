"""
Candidate text extraction from generateContent responses.

Two response shapes are tolerated:

- ``candidates[0].content.parts``  (the documented shape)
- ``content[0].parts``             (seen from some proxies and older surfaces)

A body matching neither yields no parts, which degrades to empty text.
"""

from typing import Any, List, Optional, Union

PathKey = Union[str, int]


def _dig(value: Any, *path: PathKey) -> Optional[Any]:
    """Walk dict keys / list indexes, returning None on any shape mismatch."""
    current = value
    for key in path:
        if isinstance(key, int):
            if not isinstance(current, list) or len(current) <= key:
                return None
            current = current[key]
        else:
            if not isinstance(current, dict):
                return None
            current = current.get(key)
        if current is None:
            return None
    return current


def extract_parts(response_json: Any) -> Optional[List[Any]]:
    """
    Locate the parts list of the first candidate.

    Returns:
        The parts list, or None when neither tolerated shape is present
    """
    for path in (("candidates", 0, "content", "parts"), ("content", 0, "parts")):
        parts = _dig(response_json, *path)
        if parts is not None:
            return parts if isinstance(parts, list) else None
    return None


def extract_text(response_json: Any) -> str:
    """
    Join the text of every part with newlines.

    Parts without a string ``text`` contribute an empty line segment.
    """
    parts = extract_parts(response_json)
    if parts is None:
        return ""

    texts = []
    for part in parts:
        text = part.get("text") if isinstance(part, dict) else None
        texts.append(text if isinstance(text, str) else "")
    return "\n".join(texts)
