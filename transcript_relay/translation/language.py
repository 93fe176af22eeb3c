import re
from abc import ABC, abstractmethod

class LanguageClassifier(ABC):
    """Decides whether a sentence is in the translator's source language."""

    @abstractmethod
    def is_translatable(self, text: str) -> bool:
        pass

class LatinScriptClassifier(LanguageClassifier):
    """
    Treats text made only of ASCII letters and basic punctuation as English.
    Conservative: any CJK character, digit or accented letter opts out.
    """
    PATTERN = re.compile(r"^[a-zA-Z\s.,!?'\"()-]+$")

    def __init__(self, pattern: str = None):
        self.pattern = re.compile(pattern) if pattern else self.PATTERN

    def is_translatable(self, text: str) -> bool:
        return bool(text) and self.pattern.match(text) is not None
