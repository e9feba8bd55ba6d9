"""Tests for per-window chat signal extraction."""

from chatclips.domain.services.highlight_detection import WindowSignals, extract_signals
from chatclips.domain.services.highlight_detection.signals import (
    activity_pattern,
    average_words,
    count_emotes,
    extract_keywords,
    peak_activity,
    sentiment_score,
)
from tests.factories import ChatMessageFactory


def messages_with(*texts):
    return [ChatMessageFactory(text=text) for text in texts]


class TestSentimentScore:
    """Test slang-lexicon sentiment."""

    def test_no_lexicon_terms_is_neutral(self):
        assert sentiment_score(messages_with("hi chat", "good morning")) == 0.0

    def test_only_positive_terms(self):
        assert sentiment_score(messages_with("amazing", "nice shot")) == 1.0

    def test_only_negative_terms(self):
        assert sentiment_score(messages_with("yikes", "oof")) == -1.0

    def test_mixed_terms(self):
        score = sentiment_score(messages_with("amazing", "nice", "yikes"))

        assert score == (2 - 1) / 3

    def test_term_counts_once_per_message(self):
        assert sentiment_score(messages_with("amazing amazing amazing", "yikes")) == 0.0

    def test_terms_match_as_substrings(self):
        assert sentiment_score(messages_with("wow")) == 1.0
        assert sentiment_score(messages_with("lol")) == -1.0
        assert sentiment_score(messages_with("W")) == 1.0

    def test_one_message_can_hit_both_lexicons(self):
        # "clap" is positive and contains the negative "l"
        assert sentiment_score(messages_with("clap")) == 0.0

    def test_case_insensitive(self):
        assert sentiment_score(messages_with("AMAZING")) == 1.0


class TestCountEmotes:
    """Test emote detection."""

    def test_known_emotes_in_text(self):
        counts = count_emotes(messages_with("KEKW KEKW", "Clap"))

        assert counts == {"KEKW": 2, "Clap": 1}

    def test_longest_emote_name_wins(self):
        counts = count_emotes(messages_with("PogChamp"))

        assert counts == {"PogChamp": 1}

    def test_emotes_must_stand_alone(self):
        assert count_emotes(messages_with("KEKWait", "Clapping")) == {}

    def test_emote_matching_is_case_sensitive(self):
        assert count_emotes(messages_with("kekw")) == {}

    def test_platform_reported_emotes_are_counted(self):
        message = ChatMessageFactory(text="hi chat", emotes=frozenset({"catKISS"}))

        assert count_emotes([message]) == {"catKISS": 1}


class TestExtractKeywords:
    """Test keyword extraction."""

    def test_stopwords_and_short_tokens_are_dropped(self):
        keywords = extract_keywords(messages_with("the boss is down", "oh my boss"))

        assert keywords == ["boss", "down"]

    def test_punctuation_is_stripped(self):
        assert extract_keywords(messages_with("boss!!", "Boss?")) == ["boss"]

    def test_ties_keep_first_seen_order(self):
        keywords = extract_keywords(messages_with("zebra apple", "mango"), limit=2)

        assert keywords == ["zebra", "apple"]

    def test_most_frequent_first(self):
        keywords = extract_keywords(messages_with("zebra apple", "apple"))

        assert keywords[0] == "apple"


def messages_at(*timestamps):
    return [ChatMessageFactory(timestamp=ts) for ts in timestamps]


class TestActivityShape:
    """Test peak activity and activity pattern of a window."""

    def test_peak_activity_counts_busiest_second(self):
        assert peak_activity(messages_at(0, 100, 900, 1500)) == 3

    def test_peak_activity_of_nothing(self):
        assert peak_activity([]) == 0

    def test_few_messages_are_a_spike(self):
        assert activity_pattern(messages_at(0, 9000)) == "spike"

    def test_burst_in_one_third_is_a_spike(self):
        messages = messages_at(*range(0, 800, 100), 9000)

        assert activity_pattern(messages) == "spike"

    def test_even_spread_is_sustained(self):
        assert activity_pattern(messages_at(*range(0, 9000, 1000))) == "sustained"

    def test_rising_chat_is_gradual(self):
        messages = messages_at(0, 4000, 5000, 7000, 8000, 9000)

        assert activity_pattern(messages) == "gradual"


class TestExtractSignals:
    """Test the combined window features."""

    def test_empty_window(self):
        assert extract_signals([]) == WindowSignals()

    def test_features(self):
        messages = [
            ChatMessageFactory(sender="alice", text="KEKW KEKW"),
            ChatMessageFactory(sender="bob", text="Clap boss"),
            ChatMessageFactory(sender="alice", text="PogChamp"),
        ]

        signals = extract_signals(messages)

        assert signals.message_count == 3
        assert signals.unique_senders == 2
        assert signals.avg_words_per_message == average_words(messages) == 5 / 3
        assert signals.top_emotes == ["KEKW", "Clap", "PogChamp"]
        assert signals.emote_count == 3
        assert "boss" in signals.keywords
        assert signals.peak_activity == 1
        assert signals.activity_pattern == "sustained"

    def test_top_emotes_are_capped(self):
        messages = messages_with("KEKW Clap PogChamp LUL monkaS")

        signals = extract_signals(messages, limit=2)

        assert len(signals.top_emotes) == 2
        assert signals.emote_count == 5
