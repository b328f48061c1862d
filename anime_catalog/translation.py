#!/usr/bin/env python3
"""
Translation providers for non-native titles

Providers are consulted in a fixed order (MyMemory, then Google's public
endpoint). Each returns a best-effort string or None and never raises.
A result is accepted only if it is non-empty, differs from the source text
and passes the native-script check.
"""

import logging
from typing import List, Optional, Tuple

import requests

from anime_catalog.constants import MYMEMORY_URL, GOOGLE_TRANSLATE_URL, TARGET_LANGUAGE
from anime_catalog.normalization import is_native_script

logger = logging.getLogger(__name__)


class TranslationProvider:
    """Base class: subclasses implement _query_api()"""

    name = 'base'

    def __init__(self, session: Optional[requests.Session] = None,
                 target_language: str = TARGET_LANGUAGE, timeout: float = 10):
        self.session = session or requests.Session()
        self.target_language = target_language
        self.timeout = timeout

    def translate(self, text: str) -> Optional[str]:
        """Translate text, returning None on any failure"""
        try:
            return self._query_api(text)
        except requests.exceptions.Timeout:
            logger.debug(f"{self.name} timeout for '{text}'")
            return None
        except requests.exceptions.RequestException as e:
            logger.debug(f"{self.name} request error for '{text}': {e}")
            return None
        except (ValueError, KeyError, TypeError, IndexError) as e:
            logger.debug(f"{self.name} returned unexpected payload for '{text}': {e}")
            return None

    def _query_api(self, text: str) -> Optional[str]:
        raise NotImplementedError


class MyMemoryProvider(TranslationProvider):
    """MyMemory translation memory API (primary)"""

    name = 'mymemory'

    def _query_api(self, text: str) -> Optional[str]:
        response = self.session.get(
            MYMEMORY_URL,
            params={'q': text, 'langpair': f"auto|{self.target_language}"},
            timeout=self.timeout
        )
        if not response.ok:
            return None

        data = response.json() or {}
        translated = (data.get('responseData') or {}).get('translatedText')
        if translated and is_native_script(translated):
            return translated

        # Fall back to the best native-script entry in the translation memory
        for match in data.get('matches') or []:
            candidate = (match or {}).get('translation')
            if candidate and is_native_script(candidate):
                return candidate
        return translated


class GoogleTranslateProvider(TranslationProvider):
    """Unofficial translate_a endpoint (secondary); may be rate-limited"""

    name = 'google'

    def _query_api(self, text: str) -> Optional[str]:
        response = self.session.get(
            GOOGLE_TRANSLATE_URL,
            params={
                'client': 'gtx',
                'sl': 'auto',
                'tl': self.target_language,
                'dt': 't',
                'q': text,
            },
            timeout=self.timeout
        )
        if not response.ok:
            return None

        data = response.json()
        # Shape: [[["译文", "source", ...], ...], ...]
        segments = data[0] if data else None
        translated = ''.join(
            part[0] for part in segments or []
            if isinstance(part, list) and part and isinstance(part[0], str)
        )
        return translated or None


def is_acceptable(source: str, translated: Optional[str]) -> bool:
    """Acceptance predicate applied to every provider result"""
    return bool(translated) and translated != source and is_native_script(translated)


def translate_with_fallback(text: str,
                            providers: List[TranslationProvider]) -> Tuple[Optional[str], Optional[str]]:
    """
    Try providers in order until one produces an acceptable translation

    Args:
        text: Source title
        providers: Ordered providers, primary first

    Returns:
        (translation, provider name), or (None, None) if nothing was accepted
    """
    for provider in providers:
        translated = provider.translate(text)
        if is_acceptable(text, translated):
            logger.debug(f"{provider.name}: '{text}' → '{translated}'")
            return translated, provider.name
        logger.debug(f"{provider.name}: no usable translation for '{text}'")
    return None, None


def default_providers(target_language: str = TARGET_LANGUAGE,
                      timeout: float = 10) -> List[TranslationProvider]:
    """Primary → secondary provider chain"""
    session = requests.Session()
    return [
        MyMemoryProvider(session, target_language, timeout),
        GoogleTranslateProvider(session, target_language, timeout),
    ]
