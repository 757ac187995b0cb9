"""
RR Nagar Backend — Abstract Translation Service Interface
===========================================================

What:  Contract for the secondary-language translation collaborator.
How:   Concrete implementations inherit from TranslationService and implement
       translate(), translate_batch() and health_check().
Who:   ProductService (title/description after creation) and CategoryService
       (names on every listing).

Every translation is advisory. Implementations raise TranslationError for
any failure; callers catch it and keep the original text.
"""

from abc import ABC, abstractmethod
from typing import List


class TranslationService(ABC):
    """
    Abstract interface for text translation providers.

    Contract:
        - translate() returns the translated string for one text
        - translate_batch() returns one translation per input, same order
        - Blank input is returned unchanged without a provider call
        - All provider-specific errors are wrapped in TranslationError

    Implementations:
        - GeminiTranslationService: Google Gemini (default)
    """

    @abstractmethod
    async def translate(self, text: str, target_language: str) -> str:
        """
        Translate one text into `target_language` (ISO 639-1 code, e.g. "kn").

        Raises:
            TranslationError: provider unavailable, not configured, or failed.
            CircuitBreakerOpenError: too many recent failures.
        """
        ...

    @abstractmethod
    async def translate_batch(self, texts: List[str], target_language: str) -> List[str]:
        """
        Translate many texts in a single provider call.

        Returns:
            A list with exactly len(texts) entries, in input order.

        Raises:
            TranslationError: on any failure, including a result of the wrong length.
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Lightweight reachability probe used by GET /health."""
        ...
