"""
Document access: text layout and the environment capability.
"""
from .text_layer import CharacterInfo, TextLayer
from .environment import (
    DocumentEnvironment,
    Element,
    StaticDocumentEnvironment,
    TextRange,
    find_root,
)

__all__ = [
    "CharacterInfo",
    "DocumentEnvironment",
    "Element",
    "StaticDocumentEnvironment",
    "TextLayer",
    "TextRange",
    "find_root",
]
