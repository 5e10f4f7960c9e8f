# -*- coding: utf-8 -*-
"""
I18N for bot texts.
Strict localization: no hardcoded UI strings in logic.

Language resolution:
- If language not in LANGUAGES → use DEFAULT_LANGUAGE (en)
- If key missing → fallback to English
- If key missing in all languages → return key (safe fallback, never crash)
"""

import logging

from . import en

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"

LANGUAGES = {
    "en": en.LANG,
}


def get_text(language: str, key: str, **kwargs) -> str:
    """
    Get localized text for key in given language.

    Args:
        language: Language code (en)
        key: Dot-separated key (e.g. cashout.success, menu.title)
        **kwargs: Format placeholders (e.g. amount="10.00" for {amount})

    Returns:
        Localized string, optionally formatted. Never raises.
    """
    lang_dict = LANGUAGES.get(language, LANGUAGES[DEFAULT_LANGUAGE])
    text = lang_dict.get(key)

    if text is None:
        en_dict = LANGUAGES.get("en", {})
        if key in en_dict:
            logger.warning("I18N fallback to EN for key=%s, lang=%s", key, language)
            text = en_dict[key]

    if text is None:
        logger.error("I18N missing key in all languages: %s", key)
        return key

    if kwargs:
        try:
            return text.format(**kwargs)
        except (KeyError, IndexError, ValueError):
            logger.error("I18N format failed for key=%s", key)
            return text
    return text


__all__ = ["get_text", "LANGUAGES", "DEFAULT_LANGUAGE"]
