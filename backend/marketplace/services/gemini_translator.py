"""
RR Nagar Backend — Google Gemini Translation Service
======================================================

What:  Concrete TranslationService backed by the Google Gemini API.
How:   Sends a translation prompt per text (or one JSON-array prompt per
       batch), guarded by a circuit breaker. No call is retried.
Who:   Instantiated once at import; injected into routes through
       `get_translation_service` so tests can substitute a fake.

Failure behaviour:
    - No API key configured     → TranslationError immediately (no network)
    - API error / empty reply   → TranslationError, circuit breaker failure
    - Batch reply not a JSON array of the right length → TranslationError
    - Circuit open              → CircuitBreakerOpenError immediately
"""

import json
import logging
import time
import uuid
from typing import List, Optional

import google.generativeai as genai

from marketplace.config import settings
from marketplace.exceptions import CircuitBreakerOpenError, TranslationError
from marketplace.services.translation_base import TranslationService

logger = logging.getLogger(__name__)

LANGUAGE_NAMES = {
    "kn": "Kannada",
    "hi": "Hindi",
    "ta": "Tamil",
    "te": "Telugu",
    "en": "English",
}


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker Implementation
# ══════════════════════════════════════════════════════════════════════════

class CircuitBreaker:
    """
    Circuit breaker in front of the translation provider.

    State Machine:
        CLOSED (normal operation)
            → On failure: increment failure_count
            → When failure_count >= threshold: transition to OPEN

        OPEN (rejecting all requests)
            → All calls raise CircuitBreakerOpenError immediately
            → After recovery_timeout seconds: transition to HALF_OPEN

        HALF_OPEN (testing recovery)
            → Allow ONE request through
            → On success: transition to CLOSED (reset failure_count)
            → On failure: transition back to OPEN (reset timer)

    Not thread-safe; a single uvicorn worker shares one event loop.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time: Optional[float] = None

    def can_execute(self) -> bool:
        """
        Returns True if the call may proceed.

        Raises:
            CircuitBreakerOpenError if the circuit is OPEN and the recovery
            timeout hasn't elapsed.
        """
        if self.state == self.CLOSED:
            return True

        if self.state == self.OPEN:
            elapsed = time.time() - (self.last_failure_time or 0)
            if elapsed >= self.recovery_timeout:
                logger.info(
                    "Translation circuit breaker transitioning to HALF_OPEN after %.1fs",
                    elapsed,
                )
                self.state = self.HALF_OPEN
                return True
            remaining = int(self.recovery_timeout - elapsed)
            raise CircuitBreakerOpenError(recovery_time=remaining)

        return True

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("Translation circuit breaker transitioning to CLOSED")
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time = None

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.time()

        if self.state == self.HALF_OPEN:
            logger.warning("Translation circuit breaker returning to OPEN (test call failed)")
            self.state = self.OPEN
        elif self.failure_count >= self.failure_threshold:
            logger.warning(
                "Translation circuit breaker OPENING after %d consecutive failures",
                self.failure_count,
            )
            self.state = self.OPEN


# ══════════════════════════════════════════════════════════════════════════
# Gemini Translation Service
# ══════════════════════════════════════════════════════════════════════════

class GeminiTranslationService(TranslationService):
    """
    Google Gemini implementation of TranslationService.

    Error Handling Chain:
        API call fails → record circuit breaker failure → TranslationError
        → threshold reached → future calls rejected instantly
        → recovery timeout → one test call (HALF_OPEN)
    """

    SINGLE_PROMPT = (
        "Translate the following text into {language}. "
        "Return ONLY the translation, with no quotes, notes or transliteration.\n\n"
        "{text}"
    )

    BATCH_PROMPT = (
        "Translate each string in the following JSON array into {language}. "
        "Return ONLY a JSON array of strings with exactly {count} entries, "
        "in the same order, and nothing else.\n\n"
        "{payload}"
    )

    def __init__(self, api_key: Optional[str] = None, model_name: Optional[str] = None):
        self.api_key = settings.gemini_api_key if api_key is None else api_key
        self.model_name = model_name or settings.gemini_model

        if self.api_key:
            genai.configure(api_key=self.api_key)

        self.model = genai.GenerativeModel(self.model_name)
        self.circuit_breaker = CircuitBreaker(
            failure_threshold=settings.cb_failure_threshold,
            recovery_timeout=settings.cb_recovery_timeout,
        )

        logger.info(
            "GeminiTranslationService initialized with model=%s, configured=%s",
            self.model_name,
            bool(self.api_key),
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def translate(self, text: str, target_language: str) -> str:
        if not text or not text.strip():
            return text
        prompt = self.SINGLE_PROMPT.format(
            language=self._language_name(target_language), text=text
        )
        return await self._generate(prompt)

    async def translate_batch(self, texts: List[str], target_language: str) -> List[str]:
        if not texts:
            return []
        prompt = self.BATCH_PROMPT.format(
            language=self._language_name(target_language),
            count=len(texts),
            payload=json.dumps(texts, ensure_ascii=False),
        )
        raw = await self._generate(prompt)
        return self._parse_batch(raw, expected=len(texts))

    async def health_check(self) -> bool:
        """
        True when an API key is configured and the models endpoint answers.
        Does not consume generation quota.
        """
        if not self.is_configured:
            return False
        try:
            models = genai.list_models()
            return any(True for _ in models)
        except Exception as e:
            logger.warning("Translation health check failed: %s", str(e))
            return False

    # ── Internals ─────────────────────────────────────────────────────────

    @staticmethod
    def _language_name(code: str) -> str:
        return LANGUAGE_NAMES.get(code.lower(), code)

    async def _generate(self, prompt: str) -> str:
        """
        One provider call behind the circuit breaker.

        Flow:
            1. Refuse when no key is configured (no breaker bookkeeping)
            2. Check circuit breaker → may raise CircuitBreakerOpenError
            3. Call Gemini once; empty reply counts as failure
            4. Record success/failure in circuit breaker
        """
        if not self.is_configured:
            raise TranslationError(message="Translation service is not configured")

        call_id = str(uuid.uuid4())[:8]
        self.circuit_breaker.can_execute()

        start_time = time.time()
        try:
            response = await self.model.generate_content_async(prompt)
            result = (response.text or "").strip()
        except Exception as e:
            self.circuit_breaker.record_failure()
            logger.warning(
                "[%s] Gemini translation failed after %.0fms: %s",
                call_id,
                (time.time() - start_time) * 1000,
                str(e),
            )
            raise TranslationError(
                message="Translation request failed",
                context={"call_id": call_id, "error_type": type(e).__name__},
            ) from e

        if not result:
            self.circuit_breaker.record_failure()
            raise TranslationError(
                message="Translation service returned an empty response",
                context={"call_id": call_id},
            )

        self.circuit_breaker.record_success()
        logger.debug(
            "[%s] Gemini translation completed in %.0fms (%d chars)",
            call_id,
            (time.time() - start_time) * 1000,
            len(result),
        )
        return result

    @staticmethod
    def _parse_batch(raw: str, expected: int) -> List[str]:
        """Decode the model's JSON array reply, tolerating a ``` code fence."""
        body = raw.strip()
        if body.startswith("```"):
            body = body.strip("`").strip()
            if body.lower().startswith("json"):
                body = body[4:].strip()
        try:
            data = json.loads(body)
        except ValueError as e:
            raise TranslationError(
                message="Translation batch response was not valid JSON",
                context={"preview": raw[:120]},
            ) from e

        if not isinstance(data, list) or len(data) != expected:
            raise TranslationError(
                message="Translation batch response had the wrong shape",
                context={"expected": expected},
            )
        return ["" if item is None else str(item) for item in data]


# ── Singleton Instance ────────────────────────────────────────────────────
# Holds the circuit breaker state shared across all requests
translation_service = GeminiTranslationService()


def get_translation_service() -> TranslationService:
    """FastAPI dependency returning the process-wide translator."""
    return translation_service
