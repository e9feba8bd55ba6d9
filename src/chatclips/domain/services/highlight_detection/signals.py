"""Per-window chat signal extraction.

Computes the engagement features the confidence score is built from:
message volume, sender diversity, message length, slang sentiment,
emote usage, recurring keywords and the shape of the activity inside
the window.
"""

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from ...models import ChatMessage

# Popular Twitch emotes grouped by the reaction they usually signal
HYPE_EMOTES = (
    "PogChamp", "Pog", "POGGERS", "PogU", "POGGIES", "HYPERS",
    "EZ", "Clap", "LETSGOOOO", "5Head", "GIGACHAD", "BASED",
)
LAUGH_EMOTES = (
    "KEKW", "LUL", "LULW", "OMEGALUL", "LMAO", "pepeLaugh",
    "KEKL", "EleGiggle", "forsenKEK", "ICANT",
)
SURPRISE_EMOTES = (
    "monkaS", "monkaW", "WutFace", "D:", "gachiHYPER",
    "WAYTOODANK", "WeirdChamp", "PauseChamp", "DansGame",
)
CELEBRATION_EMOTES = (
    "PepoDance", "pepeD", "dancePls", "PartyParrot", "pepeJAM",
    "catJAM", "vibeCheck", "ratJAM", "RAVE",
)
KNOWN_EMOTES = HYPE_EMOTES + LAUGH_EMOTES + SURPRISE_EMOTES + CELEBRATION_EMOTES

POSITIVE_TERMS = (
    "pog", "poggers", "pogchamp", "hype", "lets go", "letsgoo", "nice",
    "amazing", "incredible", "insane", "crazy", "god", "goat", "king",
    "queen", "clutch", "sick", "nasty", "fire", "lit", "banger", "ez",
    "easy", "clap", "w", "dub",
)
NEGATIVE_TERMS = (
    "rip", "f", "oof", "yikes", "bruh", "pepehands", "sadge", "notlikethis",
    "fail", "throw", "int", "grief", "bad", "terrible", "awful", "trash",
    "l", "loss",
)

STOPWORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of",
    "with", "by", "from", "is", "are", "was", "were", "been", "be", "have",
    "has", "had", "do", "does", "did", "will", "would", "could", "should",
    "may", "might", "can", "this", "that", "these", "those", "i", "you", "he",
    "she", "it", "we", "they", "what", "which", "who", "when", "where", "why",
    "how",
})

_NON_ALNUM = re.compile(r"[^a-z0-9]")
_EMOTE_PATTERN = re.compile(
    r"(?<!\w)(?:"
    + "|".join(re.escape(emote) for emote in sorted(KNOWN_EMOTES, key=len, reverse=True))
    + r")(?!\w)"
)


@dataclass
class WindowSignals:
    """Engagement features of one time window."""

    message_count: int = 0
    unique_senders: int = 0
    avg_words_per_message: float = 0.0
    sentiment_score: float = 0.0
    top_emotes: list[str] = field(default_factory=list)
    emote_count: int = 0
    keywords: list[str] = field(default_factory=list)
    peak_activity: int = 0
    activity_pattern: str = "spike"


def _top(counter: Counter, limit: int) -> list[str]:
    # sorted() is stable, so equal counts keep first-seen order
    ranked = sorted(counter.items(), key=lambda item: item[1], reverse=True)
    return [name for name, _ in ranked[:limit]]


def _term_hits(text: str, terms: Sequence[str]) -> int:
    return sum(1 for term in terms if term in text)


def average_words(messages: Sequence[ChatMessage]) -> float:
    """Mean number of whitespace-separated tokens per message."""
    if not messages:
        return 0.0
    return sum(len(message.text.split()) for message in messages) / len(messages)


def sentiment_score(messages: Iterable[ChatMessage]) -> float:
    """Slang-lexicon sentiment in [-1, 1].

    Terms match as case-insensitive substrings of the message text, so
    "w" also hits "wow". Each term counts at most once per message.
    Returns 0.0 when no term of either lexicon appears.
    """
    positive = 0
    negative = 0
    for message in messages:
        text = message.text.lower()
        positive += _term_hits(text, POSITIVE_TERMS)
        negative += _term_hits(text, NEGATIVE_TERMS)

    total = positive + negative
    if total == 0:
        return 0.0
    return (positive - negative) / total


def count_emotes(messages: Iterable[ChatMessage]) -> Counter:
    """Count known emotes in message text plus platform-reported emotes.

    Known emotes are case-sensitive and must stand alone as words.
    """
    counts: Counter = Counter()
    for message in messages:
        for match in _EMOTE_PATTERN.finditer(message.text):
            counts[match.group(0)] += 1
        for emote in sorted(message.emotes):
            counts[emote] += 1
    return counts


def extract_keywords(messages: Iterable[ChatMessage], limit: int = 5) -> list[str]:
    """Most frequent non-stopword tokens longer than two characters."""
    frequency: Counter = Counter()
    for message in messages:
        for word in message.text.lower().split():
            cleaned = _NON_ALNUM.sub("", word)
            if len(cleaned) > 2 and cleaned not in STOPWORDS:
                frequency[cleaned] += 1
    return _top(frequency, limit)


def peak_activity(messages: Iterable[ChatMessage]) -> int:
    """Largest number of messages sent within one wall-clock second."""
    per_second = Counter(message.timestamp // 1000 for message in messages)
    return max(per_second.values(), default=0)


def activity_pattern(messages: Sequence[ChatMessage]) -> str:
    """Shape of the activity inside a window.

    The span between the first and last message is cut into thirds.
    ``spike`` when one third holds more than twice the mean. Otherwise
    ``sustained`` when the first and last thirds differ by less than 30% of
    the mean, and ``gradual`` when they do not. Fewer than three messages
    count as a spike.
    """
    if len(messages) < 3:
        return "spike"

    timestamps = sorted(message.timestamp for message in messages)
    first = timestamps[0]
    third = (timestamps[-1] - first) / 3
    thirds = [0, 0, 0]
    for ts in timestamps:
        if ts < first + third:
            thirds[0] += 1
        elif ts < first + 2 * third:
            thirds[1] += 1
        else:
            thirds[2] += 1

    mean = len(timestamps) / 3
    if max(thirds) > mean * 2:
        return "spike"
    if abs(thirds[0] - thirds[2]) < mean * 0.3:
        return "sustained"
    return "gradual"


def extract_signals(messages: Sequence[ChatMessage], limit: int = 5) -> WindowSignals:
    """Compute every engagement feature of a window's messages."""
    if not messages:
        return WindowSignals()

    emotes = count_emotes(messages)
    return WindowSignals(
        message_count=len(messages),
        unique_senders=len({message.sender for message in messages}),
        avg_words_per_message=average_words(messages),
        sentiment_score=sentiment_score(messages),
        top_emotes=_top(emotes, limit),
        emote_count=len(emotes),
        keywords=extract_keywords(messages, limit),
        peak_activity=peak_activity(messages),
        activity_pattern=activity_pattern(messages),
    )
