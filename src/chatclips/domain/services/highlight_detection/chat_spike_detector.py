"""
Chat spike highlight detection.

Splits a VOD chat replay into fixed windows, scores each window against the
stream-wide average volume, keeps the windows that clear the volume and
confidence thresholds, and merges neighbouring survivors into highlight
moments. Detection is pure and synchronous; callers on the event loop run it
through ``asyncio.to_thread``.
"""

import logging
from dataclasses import replace
from typing import Iterable, List

from pydantic import BaseModel, Field

from ...models import ChatMessage, HighlightMoment
from .scoring import build_reason, score_window
from .signals import extract_signals
from .windowing import DEFAULT_WINDOW_SIZE_MS, create_windows

logger = logging.getLogger(__name__)


class ChatDetectionConfig(BaseModel):
    """Thresholds of the chat spike detector."""

    window_size_ms: int = Field(
        default=DEFAULT_WINDOW_SIZE_MS, gt=0, description="Analysis window length"
    )
    min_messages_for_spike: int = Field(
        default=5, ge=1, description="Minimum messages for a window to score"
    )
    min_confidence_score: float = Field(
        default=0.4, ge=0.0, le=1.0, description="Minimum confidence to keep a window"
    )
    merge_gap_ms: int = Field(
        default=60_000, ge=0, description="Largest gap bridged when merging highlights"
    )
    max_top_items: int = Field(
        default=5, ge=1, description="Cap on emotes and keywords per highlight"
    )


def merge_moments(
    moments: Iterable[HighlightMoment], merge_gap_ms: int = 60_000, max_keywords: int = 5
) -> List[HighlightMoment]:
    """Combine highlights separated by at most ``merge_gap_ms``.

    Moments are scanned in chronological order whatever order they arrive in.
    A merged moment spans both inputs, sums their message counts and keeps
    the larger sender count, peak activity and confidence. Its keywords are the
    de-duplicated union of both lists. Remaining fields come from the
    earlier moment.
    """
    ordered = sorted(moments, key=lambda moment: moment.start)
    if not ordered:
        return []

    merged: List[HighlightMoment] = []
    current = ordered[0]

    for moment in ordered[1:]:
        if moment.start - current.end <= merge_gap_ms:
            keywords = list(dict.fromkeys(current.keywords + moment.keywords))
            current = replace(
                current,
                start=min(current.start, moment.start),
                end=max(current.end, moment.end),
                message_count=current.message_count + moment.message_count,
                unique_senders=max(current.unique_senders, moment.unique_senders),
                confidence_score=max(current.confidence_score, moment.confidence_score),
                peak_activity=max(current.peak_activity, moment.peak_activity),
                keywords=keywords[:max_keywords],
            )
        else:
            merged.append(current)
            current = moment

    merged.append(current)
    return merged


class ChatSpikeDetector:
    """Finds highlight moments in a chat replay from bursts of chat activity."""

    def __init__(self, config: ChatDetectionConfig | None = None):
        self.config = config or ChatDetectionConfig()

    @property
    def algorithm_name(self) -> str:
        return "ChatSpikeDetector"

    @property
    def algorithm_version(self) -> str:
        return "1.0.0"

    def detect(self, messages: Iterable[ChatMessage]) -> List[HighlightMoment]:
        """Detect highlight moments in a chat replay.

        Args:
            messages: Chat messages of one VOD, in any order

        Returns:
            Highlight moments in chronological order, empty when nothing
            stands out
        """
        config = self.config
        windows = create_windows(messages, config.window_size_ms)
        if not windows:
            return []

        baseline = sum(len(window.messages) for window in windows) / len(windows)

        candidates: List[HighlightMoment] = []
        for window in windows:
            signals = extract_signals(window.messages, config.max_top_items)
            confidence = score_window(signals, baseline, config.min_messages_for_spike)

            if (
                signals.message_count < config.min_messages_for_spike
                or confidence < config.min_confidence_score
            ):
                continue

            candidates.append(
                HighlightMoment(
                    start=window.start,
                    end=window.end,
                    message_count=signals.message_count,
                    unique_senders=signals.unique_senders,
                    avg_words_per_message=signals.avg_words_per_message,
                    sentiment_score=signals.sentiment_score,
                    top_emotes=signals.top_emotes,
                    confidence_score=confidence,
                    keywords=signals.keywords,
                    reason=build_reason(signals, config.min_messages_for_spike),
                    peak_activity=signals.peak_activity,
                    activity_pattern=signals.activity_pattern,
                )
            )

        candidates.sort(key=lambda moment: moment.confidence_score, reverse=True)
        moments = merge_moments(candidates, config.merge_gap_ms, config.max_top_items)

        logger.debug(
            f"Detected {len(moments)} highlights from {len(windows)} windows "
            f"(baseline {baseline:.1f} messages/window)"
        )
        return moments
