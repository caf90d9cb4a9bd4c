"""
Controllers turning user input into overlay state.
"""
from .interaction_controller import (
    MENU_CREATE,
    MENU_EDIT,
    SUB_MENU_COMMENTS,
    InteractionController,
    OverlayState,
    UiState,
)

__all__ = [
    'InteractionController',
    'MENU_CREATE',
    'MENU_EDIT',
    'OverlayState',
    'SUB_MENU_COMMENTS',
    'UiState',
]
