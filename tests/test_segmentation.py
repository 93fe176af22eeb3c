import pytest

from transcript_relay.transcription.segmentation import is_complete, merge_texts, split_into_sentences


class TestIsComplete:
    @pytest.mark.parametrize("text", [
        "Hello world.",
        "Really?",
        "Wow!",
        "こんにちは。",
        "元気ですか？",
        "すごい！",
        "Done.   ",
        "「はい。」",
        'He said "stop."',
        "(see above.)",
        "Really?!",
    ])
    def test_terminal_punctuation_is_complete(self, text):
        assert is_complete(text) is True

    @pytest.mark.parametrize("text", [
        "",
        "   ",
        None,
        "今日は天気が",
        "Hello world",
        "」",
        "Version 3.0 is",
    ])
    def test_incomplete_text(self, text):
        assert is_complete(text) is False


class TestSplitIntoSentences:
    def test_japanese_sentences(self):
        assert split_into_sentences("おはよう。今日は。") == ["おはよう。", "今日は。"]

    def test_trailing_incomplete_part_is_kept_last(self):
        assert split_into_sentences("おはよう。今日は") == ["おはよう。", "今日は"]

    def test_latin_sentences_keep_their_whitespace(self):
        assert split_into_sentences("Hi. How are you? Fine") == ["Hi.", " How are you?", " Fine"]

    def test_mixed_scripts_split_on_each_terminal(self):
        assert split_into_sentences("Hello. こんにちは。Bye!") == ["Hello.", " こんにちは。", "Bye!"]

    def test_terminal_run_is_one_boundary(self):
        assert split_into_sentences("Really?! Yes...") == ["Really?!", " Yes..."]

    def test_closing_quote_stays_with_sentence(self):
        assert split_into_sentences("「はい。」次の文") == ["「はい。」", "次の文"]

    def test_no_terminal_returns_whole_text(self):
        assert split_into_sentences("今日は天気が") == ["今日は天気が"]

    def test_whitespace_segments_are_dropped(self):
        assert split_into_sentences("Done.   ") == ["Done."]
        assert split_into_sentences("One.  Two.") == ["One.", "  Two."]

    @pytest.mark.parametrize("text", ["", "   ", "\n\t", None])
    def test_blank_input_returns_empty(self, text):
        assert split_into_sentences(text) == []

    def test_concatenation_of_parts_preserves_content(self):
        text = "A. B? C! D。E？F！G"
        assert "".join(split_into_sentences(text)) == text


class TestMergeTexts:
    def test_plain_concatenation(self):
        assert merge_texts("今日は天気が", "良いですね。") == "今日は天気が良いですね。"

    def test_no_separator_inserted(self):
        assert merge_texts("Hello", "world") == "Helloworld"

    def test_none_is_empty(self):
        assert merge_texts(None, "abc") == "abc"
        assert merge_texts("abc", None) == "abc"
