"""
Character-level text layout for an annotatable element.

A ``TextLayer`` knows the box of every character it holds, which is all the
engine needs to turn a text range into client rectangles. Layers come either
from a PDF page (through PyMuPDF) or from plain lines laid out on a fixed
grid.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import fitz

from ..geometry.models import Rect


@dataclass
class CharacterInfo:
    """A single laid-out character."""

    char: str
    bbox: Tuple[float, float, float, float]  # x0, y0, x1, y1
    line_index: int
    block_index: int = 0
    global_index: int = 0


class TextLayer:
    """
    Characters of an element in reading order.

    Text offsets address ``text``, in which a newline separates consecutive
    lines. The separators have no box of their own.
    """

    # Horizontal gap tolerated when merging characters into one rect
    MERGE_GAP = 3.0

    def __init__(self, characters: Sequence[CharacterInfo]):
        self.characters: List[CharacterInfo] = list(characters)
        self._offsets: List[Optional[int]] = []
        self._text = ""
        self._build_text_index()

    @classmethod
    def from_lines(
        cls,
        lines: Sequence[str],
        char_width: float = 8.0,
        line_height: float = 16.0,
    ) -> "TextLayer":
        """
        Lay plain lines out on a fixed character grid.

        Args:
            lines: Lines of text, top to bottom
            char_width: Advance of every character
            line_height: Height of every line

        Returns:
            A text layer whose coordinates start at (0, 0)
        """
        characters = []
        index = 0
        for line_idx, line in enumerate(lines):
            y0 = line_idx * line_height
            for col, char in enumerate(line):
                x0 = col * char_width
                characters.append(
                    CharacterInfo(
                        char=char,
                        bbox=(x0, y0, x0 + char_width, y0 + line_height),
                        line_index=line_idx,
                        global_index=index,
                    )
                )
                index += 1
        return cls(characters)

    @classmethod
    def from_pdf_page(cls, page: fitz.Page) -> "TextLayer":
        """Extract the character layout of a PDF page."""
        flags = fitz.TEXT_PRESERVE_WHITESPACE | fitz.TEXT_PRESERVE_LIGATURES

        text_dict = page.get_text("rawdict", flags=flags)

        characters = []
        char_index = 0
        line_counter = 0

        for block_idx, block_data in enumerate(text_dict.get("blocks", [])):
            # Skip image blocks
            if block_data.get("type") != 0:
                continue

            for line_data in block_data.get("lines", []):
                line_chars = []
                for span_data in line_data.get("spans", []):
                    for char_data in span_data.get("chars", []):
                        line_chars.append(
                            CharacterInfo(
                                char=char_data.get("c", ""),
                                bbox=tuple(char_data.get("bbox", (0, 0, 0, 0))),
                                line_index=line_counter,
                                block_index=block_idx,
                                global_index=char_index,
                            )
                        )
                        char_index += 1

                if line_chars:
                    characters.extend(line_chars)
                    line_counter += 1

        return cls(characters)

    def _build_text_index(self):
        """Build the text string and the offset -> character table."""
        parts = []
        last_line = None

        for idx, char in enumerate(self.characters):
            line_key = (char.block_index, char.line_index)
            if last_line is not None and line_key != last_line:
                parts.append("\n")
                self._offsets.append(None)
            parts.append(char.char)
            self._offsets.append(idx)
            last_line = line_key

        self._text = "".join(parts)

    @property
    def text(self) -> str:
        return self._text

    def chars_in_range(self, start: int, end: int) -> List[CharacterInfo]:
        """Get the characters covered by text offsets [start, end)."""
        start = max(0, start)
        end = min(len(self._offsets), end)
        return [
            self.characters[idx]
            for idx in self._offsets[start:end]
            if idx is not None
        ]

    def selection_rects(self, start: int, end: int) -> List[Rect]:
        """
        Generate rectangles for a text range, in layer coordinates.

        Consecutive characters on the same line are merged into one rect.
        """
        selected = self.chars_in_range(start, end)
        if not selected:
            return []

        lines: Dict[Tuple[int, int], List[CharacterInfo]] = {}
        for char in selected:
            lines.setdefault((char.block_index, char.line_index), []).append(char)

        rects = []
        for line_chars in lines.values():
            line_chars.sort(key=lambda c: c.bbox[0])

            current = None
            for char in line_chars:
                if current is None:
                    current = list(char.bbox)
                elif char.bbox[0] - current[2] < self.MERGE_GAP:
                    current[2] = char.bbox[2]
                    current[1] = min(current[1], char.bbox[1])
                    current[3] = max(current[3], char.bbox[3])
                else:
                    rects.append(current)
                    current = list(char.bbox)

            if current:
                rects.append(current)

        return [Rect(x0, y0, x1 - x0, y1 - y0) for x0, y0, x1, y1 in rects]

    def extent(self) -> Rect:
        """Bounding box of all characters, anchored at (0, 0)."""
        if not self.characters:
            return Rect(0.0, 0.0, 0.0, 0.0)
        right = max(c.bbox[2] for c in self.characters)
        bottom = max(c.bbox[3] for c in self.characters)
        return Rect(0.0, 0.0, right, bottom)

    def __len__(self) -> int:
        return len(self.characters)
