"""
Sentence boundary detection for streamed transcripts.

Works on literal punctuation only, so Latin (. ! ?) and full-width
Japanese (。！？) text can be mixed freely in one string. A run of
terminal characters ("?!", "...") counts as a single boundary, and
closing quotes/brackets right after it stay with the sentence they close.
"""

import re
from typing import List, Optional

TERMINAL_CHARS = ".!?。！？"
CLOSING_CHARS = "\"'”’」』）)］]】》〉"

_BOUNDARY_RE = re.compile(
    "[" + re.escape(TERMINAL_CHARS) + "]+[" + re.escape(CLOSING_CHARS) + "]*"
)


def is_complete(text: Optional[str]) -> bool:
    """True if the text ends with terminal punctuation, ignoring trailing
    whitespace and closing quotes/brackets."""
    if not text:
        return False

    stripped = text.rstrip().rstrip(CLOSING_CHARS)
    return bool(stripped) and stripped[-1] in TERMINAL_CHARS


def split_into_sentences(text: Optional[str]) -> List[str]:
    """
    Splits text right after every terminal punctuation run.

    Each element keeps its own punctuation and surrounding whitespace;
    whitespace-only elements are dropped. The last element may be an
    incomplete sentence that the caller should carry over.
    """
    if not text or not text.strip():
        return []

    sentences = []
    start = 0
    for match in _BOUNDARY_RE.finditer(text):
        sentences.append(text[start:match.end()])
        start = match.end()
    sentences.append(text[start:])

    return [sentence for sentence in sentences if sentence.strip()]


def merge_texts(buffered_text: Optional[str], new_text: Optional[str]) -> str:
    # Consecutive fragments abut; no separator is inserted
    return (buffered_text or "") + (new_text or "")
