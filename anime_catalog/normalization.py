#!/usr/bin/env python3
"""
Shared script checks for title selection and translation

CRITICAL: The same native-script predicate MUST be used for:
1. Picking the best title during normalization
2. Deciding whether a title needs translation
3. Accepting a provider's translation

If these differ, titles will be queued for translation forever.
"""

import re

# CJK Unified Ideographs (common range)
NATIVE_SCRIPT_PATTERN = re.compile(r"[\u4e00-\u9fa5]")

# Anything that is not a native character, whitespace or digit
TRANSLATABLE_PATTERN = re.compile(r"[^\u4e00-\u9fa5\s\d]")


def is_native_script(text: str) -> bool:
    """
    Check whether text already contains native-script characters

    Examples:
        >>> is_native_script("进击的巨人")
        True

        >>> is_native_script("Attack on Titan")
        False
    """
    return bool(text) and NATIVE_SCRIPT_PATTERN.search(text) is not None


def needs_translation(text: str) -> bool:
    """
    Decide whether a title should be sent to a translation provider

    Any non-native text that holds letters, kana or other symbols is
    translatable. Pure digits and whitespace are left alone.

    Args:
        text: Current record title

    Returns:
        True if the title should be translated
    """
    if not text:
        return False
    return not is_native_script(text) and TRANSLATABLE_PATTERN.search(text) is not None


def presentation_key(title: str, year) -> str:
    """
    Build the dedup key used when presenting query results

    Two records with the same lower-cased trimmed title and the same year
    are shown once.

    Examples:
        >>> presentation_key("  Cowboy Bebop ", 1998)
        'cowboy bebop-1998'

        >>> presentation_key("Cowboy Bebop", None)
        'cowboy bebop-'
    """
    return f"{(title or '').lower().strip()}-{year or ''}"
