import os

# Qt needs a platform plugin even when nothing is shown
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest

from annot8.core.anchoring import TextQuoteAnchorService
from annot8.core.document import Element, StaticDocumentEnvironment, TextLayer
from annot8.core.geometry import Rect

LINES = ["Hello brave new world", "second line here"]

# Offsets of "brave" in "Hello brave new world\nsecond line here"
BRAVE = (6, 11)


@pytest.fixture
def layer():
    return TextLayer.from_lines(LINES, char_width=8.0, line_height=16.0)


@pytest.fixture
def root(layer):
    return Element("article", layer, x=100.0, y=50.0)


@pytest.fixture
def environment(root):
    return StaticDocumentEnvironment(
        {"article": root}, canvas=Rect(80.0, 40.0, 800.0, 600.0))


@pytest.fixture
def anchor_service():
    return TextQuoteAnchorService()
