"""Job processors, one per pipeline stage."""

from .analyze import AnalyzeVodProcessor
from .base import BaseProcessor
from .extract import ExtractClipParameters, ExtractClipProcessor
from .upload import UploadClipParameters, UploadClipProcessor

__all__ = [
    "AnalyzeVodProcessor",
    "BaseProcessor",
    "ExtractClipParameters",
    "ExtractClipProcessor",
    "UploadClipParameters",
    "UploadClipProcessor",
]
