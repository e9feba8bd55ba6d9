"""Chat domain models - messages, analysis windows and detected highlights."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ChatMessage:
    """A single chat message from a VOD chat replay.

    Attributes:
        timestamp: Milliseconds since stream start
        sender: Login of the message author
        text: Raw message text
        emotes: Emote names reported by the platform alongside the text
    """

    timestamp: int
    sender: str
    text: str
    emotes: frozenset[str] = field(default_factory=frozenset)


@dataclass
class TimeWindow:
    """A fixed-size slice of the chat stream.

    ``end`` is exclusive: a message belongs to the window when
    ``start <= timestamp < end``.
    """

    start: int
    end: int
    messages: list[ChatMessage] = field(default_factory=list)

    @property
    def duration(self) -> int:
        """Window length in milliseconds."""
        return self.end - self.start


@dataclass
class HighlightMoment:
    """A window of elevated audience engagement, candidate for clipping."""

    start: int
    end: int
    message_count: int
    unique_senders: int
    avg_words_per_message: float
    sentiment_score: float  # -1.0 to 1.0
    top_emotes: list[str]
    confidence_score: float  # 0.0 to 1.0
    keywords: list[str]
    reason: str
    peak_activity: int = 0  # most messages within one second
    activity_pattern: str = "spike"  # spike, sustained or gradual

    def __post_init__(self) -> None:
        """Validate span and score ranges.

        Raises:
            ValueError: If the span is empty or a score is out of range.

        """
        if self.end <= self.start:
            raise ValueError(
                f"Highlight end ({self.end}) must be after start ({self.start})"
            )
        if not 0.0 <= self.confidence_score <= 1.0:
            raise ValueError(
                f"Confidence must be between 0 and 1, got {self.confidence_score}"
            )
        if not -1.0 <= self.sentiment_score <= 1.0:
            raise ValueError(
                f"Sentiment must be between -1 and 1, got {self.sentiment_score}"
            )

    @property
    def duration(self) -> int:
        """Highlight length in milliseconds."""
        return self.end - self.start

    def to_metadata(self) -> dict[str, Any]:
        """Signals worth persisting next to a clip record."""
        return {
            "message_count": self.message_count,
            "unique_senders": self.unique_senders,
            "avg_words_per_message": self.avg_words_per_message,
            "sentiment_score": self.sentiment_score,
            "top_emotes": list(self.top_emotes),
            "keywords": list(self.keywords),
            "reason": self.reason,
            "peak_activity": self.peak_activity,
            "activity_pattern": self.activity_pattern,
        }
