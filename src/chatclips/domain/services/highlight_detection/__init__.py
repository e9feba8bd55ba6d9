"""
Chat spike highlight detection engine.

Key Components:
- create_windows: fixed-size partitioning of a chat replay
- extract_signals: per-window engagement features
- score_window / build_reason: confidence and explanation of a window
- ChatSpikeDetector: filtering and merging into highlight moments
"""

from .chat_spike_detector import ChatDetectionConfig, ChatSpikeDetector, merge_moments
from .scoring import build_reason, score_window
from .signals import WindowSignals, extract_signals
from .windowing import DEFAULT_WINDOW_SIZE_MS, create_windows

__all__ = [
    "ChatDetectionConfig",
    "ChatSpikeDetector",
    "DEFAULT_WINDOW_SIZE_MS",
    "WindowSignals",
    "build_reason",
    "create_windows",
    "extract_signals",
    "merge_moments",
    "score_window",
]
