"""
Range <-> anchor conversion.
"""
from .anchor_service import AnchorService, TextQuoteAnchorService

__all__ = ['AnchorService', 'TextQuoteAnchorService']
