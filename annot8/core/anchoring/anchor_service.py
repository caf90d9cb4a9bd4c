"""
Conversion between live text ranges and document-independent anchors.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from ..document.environment import Element, TextRange
from ..errors import AnchorResolutionError


class AnchorService(ABC):
    """Serializes ranges into anchors and resolves anchors back into ranges."""

    @abstractmethod
    def serialize(self, text_range: TextRange, root: Element) -> Dict[str, Any]:
        """Describe a live range relative to ``root``."""

    @abstractmethod
    def deserialize(self, anchor: Dict[str, Any], root: Element) -> TextRange:
        """
        Resolve an anchor against the current content of ``root``.

        Raises:
            AnchorResolutionError: If the anchor no longer matches the content
        """


class TextQuoteAnchorService(AnchorService):
    """
    Anchors made of a text position plus the quoted text and its context.

    Resolution tries the recorded position first, then searches for the quote
    surrounded by its context, then for the quote alone.
    """

    def __init__(self, context_length: int = 32):
        self.context_length = context_length

    def serialize(self, text_range: TextRange, root: Element) -> Dict[str, Any]:
        text = root.text
        start, end = text_range.start, text_range.end
        return {
            "start": start,
            "end": end,
            "exact": text[start:end],
            "prefix": text[max(0, start - self.context_length):start],
            "suffix": text[end:end + self.context_length],
        }

    def deserialize(self, anchor: Dict[str, Any], root: Element) -> TextRange:
        try:
            exact = anchor["exact"]
            start = int(anchor["start"])
            end = int(anchor["end"])
            prefix = anchor.get("prefix") or ""
            suffix = anchor.get("suffix") or ""
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise AnchorResolutionError(f"Malformed anchor: {e}", anchor) from e

        if not isinstance(exact, str) or not isinstance(prefix, str) \
                or not isinstance(suffix, str):
            raise AnchorResolutionError("Anchor text fields must be strings", anchor)
        if not exact:
            raise AnchorResolutionError("Anchor has no quoted text", anchor)
        if start < 0 or end < start:
            raise AnchorResolutionError(f"Invalid anchor span {start}..{end}", anchor)

        text = root.text

        # Content unchanged around the anchor
        if end <= len(text) and text[start:end] == exact:
            return TextRange(start, end)

        candidates = self._find_all(text, exact)
        if not candidates:
            raise AnchorResolutionError(f"Quote {exact!r} not found in document", anchor)

        for position in candidates:
            before = text[max(0, position - len(prefix)):position]
            after = text[position + len(exact):position + len(exact) + len(suffix)]
            if before == prefix and after == suffix:
                return TextRange(position, position + len(exact))

        position = candidates[0]
        return TextRange(position, position + len(exact))

    @staticmethod
    def _find_all(text: str, needle: str) -> List[int]:
        positions = []
        index = text.find(needle)
        while index != -1:
            positions.append(index)
            index = text.find(needle, index + 1)
        return positions
