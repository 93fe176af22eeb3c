class PromptBuilder:
    """
    Constructs prompts for sentence-level LLM translation.
    """

    def build_system_prompt(self) -> str:
        return "You are a real-time translation assistant for meeting transcripts."

    def build_translation_prompt(self, sentence: str, target_lang: str = "Japanese") -> str:
        """
        Builds the prompt for translating one transcribed sentence.
        """
        return f"""Translate the following sentence into {target_lang} accurately.

Key Instruction:
- The sentence comes from automatic speech recognition and may contain small recognition errors.
- Preserve the original tone and meaning.
- Keep names, numbers and product terms as they are.

Sentence to Translate:
"{sentence}"

Output only the translation, without explanation."""
