from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, TypeVar

import httpx
import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import Settings, get_settings
from app.db.repo.illustrations_repo import IllustrationsRepo
from app.game.plugins.types import IllustrationRequest

logger = structlog.get_logger("app.services.illustrations")

T = TypeVar("T")

ILLUSTRATION_MODEL = "illustration-v1"

PROMPT_TEMPLATES = {
    "en": (
        'Create a colorful, kid-appropriate educational illustration showing the concept: "{description}".\n'
        "The image should be friendly, vibrant, and help children understand the concept visually.\n"
        "Use a cartoon style with bright colors and simple, clear imagery.\n"
        "Use the most obvious and straightforward interpretation of the concept.\n"
        "Do NOT include any text, words, or numbers in the image itself."
    ),
    "ru": (
        'Создайте красочную, подходящую для детей образовательную иллюстрацию, показывающую концепцию: "{description}".\n'
        "Изображение должно быть дружелюбным, ярким и помогать детям визуально понять концепцию.\n"
        "Используйте мультяшный стиль с яркими цветами и простыми, четкими образами.\n"
        "Используйте самое очевидное и прямое определение концепции.\n"
        "НЕ включайте никакой текст, слова или цифры в само изображение."
    ),
}


@dataclass(frozen=True, slots=True)
class IllustrationResult:
    image_url: str
    cached: bool


class IllustrationGenerationError(Exception):
    pass


def build_prompt(request: IllustrationRequest) -> str:
    # the word itself stays out of the prompt: generators misspell rendered text
    template = PROMPT_TEMPLATES.get(request.language, PROMPT_TEMPLATES["en"])
    return template.format(description=request.description)


def cache_key(request: IllustrationRequest) -> tuple[str, str]:
    return request.word.lower(), request.language


class InFlightGuard:
    """Process-local de-duplication of concurrent work keyed by (word, language).

    A second caller for a key that is already running awaits the first
    caller's result instead of starting its own. The key is dropped once the
    work finishes, whether it succeeded or failed. Other processes do not see
    this state; the unique cache row is the cross-process backstop.
    """

    def __init__(self) -> None:
        self._running: dict[tuple[str, str], asyncio.Future[Any]] = {}

    def is_running(self, key: tuple[str, str]) -> bool:
        return key in self._running

    def __len__(self) -> int:
        return len(self._running)

    @staticmethod
    def _fail(future: asyncio.Future[Any], exc: BaseException) -> None:
        future.set_exception(exc)
        # retrieved so an unobserved failure does not warn at shutdown
        future.exception()

    async def run_once(self, key: tuple[str, str], work: Callable[[], Awaitable[T]]) -> T:
        existing = self._running.get(key)
        if existing is not None:
            return await asyncio.shield(existing)

        future: asyncio.Future[T] = asyncio.get_running_loop().create_future()
        self._running[key] = future
        try:
            result = await work()
        except asyncio.CancelledError:
            # waiters were not cancelled themselves; they see a plain failure
            self._fail(future, IllustrationGenerationError("generation cancelled"))
            raise
        except Exception as exc:
            self._fail(future, exc)
            raise
        else:
            future.set_result(result)
            return result
        finally:
            self._running.pop(key, None)


class IllustrationClient:
    """HTTP client for the external image generator."""

    def __init__(
        self,
        *,
        api_url: str,
        api_key: str = "",
        timeout_seconds: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_url = api_url
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> IllustrationClient:
        return cls(
            api_url=settings.illustration_api_url,
            api_key=settings.illustration_api_key,
            timeout_seconds=settings.illustration_timeout_seconds,
        )

    async def generate(self, request: IllustrationRequest, *, prompt: str) -> str:
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        body = {
            "word": request.word,
            "language": request.language,
            "description": request.description,
            "prompt": prompt,
            "model": ILLUSTRATION_MODEL,
        }
        async with httpx.AsyncClient(
            timeout=self.timeout_seconds,
            transport=self._transport,
        ) as client:
            response = await client.post(self.api_url, json=body, headers=headers)
            response.raise_for_status()
            payload = response.json()

        image_url = payload.get("url") if isinstance(payload, dict) else None
        if not isinstance(image_url, str) or not image_url:
            raise IllustrationGenerationError("generator response has no image url")
        return image_url


class IllustrationService:
    """Best-effort illustration lookup and generation.

    Nothing here raises into the caller: generation failures are logged,
    queued for the retry worker and reported as ``None``.
    """

    def __init__(
        self,
        *,
        session_factory: async_sessionmaker[AsyncSession],
        client: IllustrationClient,
        guard: InFlightGuard | None = None,
        enabled: bool = True,
    ) -> None:
        self._session_factory = session_factory
        self._client = client
        self._guard = guard or InFlightGuard()
        self._enabled = enabled
        self._background: set[asyncio.Task[Any]] = set()

    @property
    def guard(self) -> InFlightGuard:
        return self._guard

    async def get_cached(self, request: IllustrationRequest) -> IllustrationResult | None:
        async with self._session_factory() as session:
            entry = await IllustrationsRepo.get_cached(
                session,
                word=request.word,
                language=request.language,
            )
        if entry is None:
            return None
        return IllustrationResult(image_url=entry.image_url, cached=True)

    async def _generate_and_store(self, request: IllustrationRequest) -> IllustrationResult:
        prompt = build_prompt(request)
        logger.info("illustration_generation_started", word=request.word, language=request.language)
        image_url = await self._client.generate(request, prompt=prompt)
        async with self._session_factory.begin() as session:
            stored_url = await IllustrationsRepo.save_cached(
                session,
                word=request.word,
                language=request.language,
                description=request.description,
                prompt=prompt,
                image_url=image_url,
                model=ILLUSTRATION_MODEL,
                generated_at=datetime.now(timezone.utc),
            )
        logger.info("illustration_generated", word=request.word, language=request.language)
        return IllustrationResult(image_url=stored_url, cached=False)

    async def _lookup_or_generate(self, request: IllustrationRequest) -> IllustrationResult:
        cached = await self.get_cached(request)
        if cached is not None:
            return cached
        return await self._generate_and_store(request)

    async def _enqueue_retry(self, request: IllustrationRequest, error: str) -> None:
        try:
            async with self._session_factory.begin() as session:
                await IllustrationsRepo.enqueue_retry(
                    session,
                    word=request.word,
                    language=request.language,
                    description=request.description,
                    error=error,
                    now_utc=datetime.now(timezone.utc),
                )
        except Exception:
            logger.exception(
                "illustration_retry_enqueue_failed",
                word=request.word,
                language=request.language,
            )

    async def generate(self, request: IllustrationRequest) -> IllustrationResult | None:
        if not self._enabled:
            return None
        try:
            return await self._guard.run_once(
                cache_key(request),
                lambda: self._lookup_or_generate(request),
            )
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.exception(
                "illustration_generation_failed",
                word=request.word,
                language=request.language,
            )
            await self._enqueue_retry(request, f"{type(exc).__name__}: {exc}")
            return None

    def prewarm(self, request: IllustrationRequest) -> bool:
        """Schedules generation in the background; returns False when skipped."""
        if not self._enabled or self._guard.is_running(cache_key(request)):
            return False
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return False

        task = loop.create_task(self.generate(request))
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        logger.info("illustration_prewarm_scheduled", word=request.word, language=request.language)
        return True

    async def drain(self) -> None:
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def retry_pending(self, *, batch_size: int, max_attempts: int) -> dict[str, int]:
        async with self._session_factory.begin() as session:
            entries = await IllustrationsRepo.claim_pending(
                session,
                limit=batch_size,
                now_utc=datetime.now(timezone.utc),
            )
            claimed = [
                (entry.id, entry.attempts, IllustrationRequest(
                    word=entry.word,
                    language=entry.language,
                    description=entry.description,
                ))
                for entry in entries
            ]

        done_total = 0
        failed_total = 0
        for entry_id, attempts, request in claimed:
            error: str | None = None
            try:
                await self._guard.run_once(
                    cache_key(request),
                    lambda request=request: self._lookup_or_generate(request),
                )
            except Exception as exc:
                error = f"{type(exc).__name__}: {exc}"
                logger.warning(
                    "illustration_retry_failed",
                    word=request.word,
                    language=request.language,
                    attempts=attempts,
                )

            if error is None:
                status = "DONE"
                done_total += 1
            elif attempts >= max_attempts:
                status = "FAILED"
                failed_total += 1
            else:
                status = "PENDING"

            async with self._session_factory.begin() as session:
                await IllustrationsRepo.finish_attempt(
                    session,
                    entry_id=entry_id,
                    status=status,
                    error=error,
                )

        return {
            "claimed_total": len(claimed),
            "done_total": done_total,
            "failed_total": failed_total,
        }


def build_illustration_service(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    settings: Settings | None = None,
) -> IllustrationService:
    resolved = settings or get_settings()
    return IllustrationService(
        session_factory=session_factory,
        client=IllustrationClient.from_settings(resolved),
        enabled=resolved.illustrations_enabled,
    )
