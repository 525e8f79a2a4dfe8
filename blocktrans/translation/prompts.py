"""
Translation prompts.

Every provider receives the same instructions: translate into the named
language, keep meaning and tone, keep HTML tags, and answer with the
translation only.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Tuple


LANGUAGE_NAMES: Dict[str, str] = {
    "en": "English",
    "zh": "Chinese (Simplified)",
    "zh-TW": "Chinese (Traditional)",
    "ko": "Korean",
    "fr": "French",
    "de": "German",
    "es": "Spanish",
    "it": "Italian",
    "pt": "Portuguese",
    "ru": "Russian",
    "ja": "Japanese",
}


def get_language_name(language_code: str) -> str:
    """Display name for a language code; unknown codes are passed through."""
    return LANGUAGE_NAMES.get(language_code, language_code)


@dataclass(frozen=True)
class PromptTemplate:
    """Template for generating translation prompts."""
    name: str
    system_prompt: str
    user_prompt_template: str

    def render(self, text: str, target_language: str) -> Tuple[str, str]:
        language_name = get_language_name(target_language)
        return (
            self.system_prompt.format(language_name=language_name),
            self.user_prompt_template.format(language_name=language_name, text=text),
        )


DEFAULT_TEMPLATE = PromptTemplate(
    name="content_translator",
    system_prompt=(
        "You are a professional translator for website content.\n"
        "Translate the user's text into {language_name}.\n"
        "\n"
        "RULES:\n"
        "- Keep the meaning and tone of the original exactly\n"
        "- Produce natural, readable {language_name}\n"
        "- If the text contains HTML tags, keep every tag unchanged\n"
        "- Output ONLY the translation, with no explanations or notes"
    ),
    user_prompt_template="Translate the following text into {language_name}:\n\n{text}",
)


def build_prompt(text: str, target_language: str, template: PromptTemplate = DEFAULT_TEMPLATE) -> Tuple[str, str]:
    """
    Build the (system, user) prompt pair for one translation call.

    Args:
        text: Normalized text to translate
        target_language: Language code of the output
        template: Prompt template to render

    Returns:
        Tuple of system prompt and user prompt
    """
    return template.render(text, target_language)
