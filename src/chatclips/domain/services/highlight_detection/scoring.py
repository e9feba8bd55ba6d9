"""Confidence scoring of chat windows against the stream baseline."""

from .signals import WindowSignals

BASE_CONFIDENCE = 0.5
VOLUME_WEIGHT = 0.3
DIVERSITY_WEIGHT = 0.1
EMOTE_WEIGHT = 0.1

# A window at 1.5x the average volume earns the full volume bonus
SPIKE_MULTIPLIER = 1.5
EMOTE_SATURATION = 3
HIGH_EMOTE_USAGE = 3

POSITIVE_THRESHOLD = 0.5
NEGATIVE_THRESHOLD = -0.5


def score_window(
    signals: WindowSignals, baseline: float, min_messages: int = 5
) -> float:
    """Confidence in [0, 1] that a window is a genuine highlight.

    Windows with fewer than ``min_messages`` messages always score 0.

    Args:
        signals: Features of the window
        baseline: Mean message count across the stream's non-empty windows
        min_messages: Minimum volume for a window to be considered a spike
    """
    count = signals.message_count
    if count < min_messages:
        return 0.0

    score = BASE_CONFIDENCE
    if baseline > 0:
        score += VOLUME_WEIGHT * min(count / (baseline * SPIKE_MULTIPLIER), 1.0)
    score += DIVERSITY_WEIGHT * min(signals.unique_senders / count, 1.0)
    score += EMOTE_WEIGHT * min(signals.emote_count / EMOTE_SATURATION, 1.0)

    return max(0.0, min(score, 1.0))


def build_reason(signals: WindowSignals, min_messages: int = 5) -> str:
    """Human-readable explanation of why a window stood out."""
    reasons = []
    if signals.message_count >= min_messages:
        reasons.append("activity spike")
    if signals.sentiment_score > POSITIVE_THRESHOLD:
        reasons.append("positive reaction")
    elif signals.sentiment_score < NEGATIVE_THRESHOLD:
        reasons.append("dramatic moment")
    if signals.emote_count >= HIGH_EMOTE_USAGE:
        reasons.append("high emote usage")

    return ", ".join(reasons) if reasons else "general activity"
