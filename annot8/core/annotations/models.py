import json
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..document.environment import TextRange
from ..geometry.models import Rect


def new_uid() -> str:
    return uuid.uuid4().hex


@dataclass
class Annotation:
    """A tagged, optionally commented, span of document text."""

    quote: str
    anchor: Dict[str, Any]
    tag: str = ""
    comment: Optional[str] = None

    # Positional index, reassigned by the store on every mutation
    id: int = -1

    # Stable surrogate key, survives reindexing
    uid: str = field(default_factory=new_uid)

    # Transient, only populated during a draw pass
    rects: List[Rect] = field(default_factory=list, repr=False, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert annotation to dictionary for JSON serialization."""
        data = {
            'uid': self.uid,
            'quote': self.quote,
            'anchor': self.anchor,
            'tag': self.tag,
        }

        if self.comment is not None:
            data['comment'] = self.comment

        return data

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Annotation":
        """
        Create annotation from dictionary.

        The anchor may also come as a JSON string under ``range``.

        Raises:
            ValueError: If neither ``anchor`` nor ``range`` is usable
        """
        anchor = data.get('anchor')
        if anchor is None and 'range' in data:
            anchor = data['range']
            if isinstance(anchor, str):
                anchor = json.loads(anchor)

        if not isinstance(anchor, dict):
            raise ValueError(f"annotation has no usable anchor: {data!r}")

        return Annotation(
            quote=data.get('quote', ''),
            anchor=anchor,
            tag=data.get('tag') or '',
            comment=data.get('comment'),
            uid=data.get('uid') or new_uid(),
        )


@dataclass
class Selection:
    """The live text selection and the anchor derived from it."""

    text: str
    range: TextRange
    anchor: Optional[Dict[str, Any]] = None

    @property
    def is_empty(self) -> bool:
        return self.range.collapsed or not self.text
