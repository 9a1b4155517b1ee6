"""AsyncOnce — a single-assignment cell filled by an async factory."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Generic, TypeVar

from umbra.exceptions import InitializationError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AsyncOnce(Generic[T]):
    """Runs an expensive async initializer at most once.

    The first :meth:`get` starts the factory in its own task; every caller,
    including later ones, awaits that same task through
    :func:`asyncio.shield`.  A caller that is cancelled while waiting
    abandons only its own wait, so the load keeps running and is never
    started a second time.  If the factory raises, the error is captured
    and every later :meth:`get` raises :class:`InitializationError` chained
    to it without calling the factory again.
    """

    def __init__(self, factory: Callable[[], Awaitable[T]], *, name: str) -> None:
        self._factory = factory
        self._name = name
        self._task: asyncio.Task[None] | None = None
        self._value: T | None = None
        self._ready = False
        self._error: Exception | None = None

    async def get(self) -> T:
        """Return the initialized value, running the factory on first use."""
        if not self._ready:
            self._raise_if_failed()
            if self._task is None:
                self._task = asyncio.create_task(self._initialize())
            await asyncio.shield(self._task)
            self._raise_if_failed()
        return self._value  # type: ignore[return-value]

    async def _initialize(self) -> None:
        logger.debug("Initializing %s", self._name)
        try:
            value = await self._factory()
        except Exception as exc:
            self._error = exc
            logger.warning("Failed to initialize %s", self._name, exc_info=True)
            return
        self._value = value
        self._ready = True

    @property
    def ready(self) -> bool:
        """Whether the value has been initialized successfully."""
        return self._ready

    @property
    def failed(self) -> bool:
        """Whether initialization was attempted and failed."""
        return self._error is not None

    @property
    def error(self) -> Exception | None:
        """The captured initialization error, if any."""
        return self._error

    def _raise_if_failed(self) -> None:
        if self._error is not None:
            msg = f"{self._name} failed to initialize: {self._error}"
            raise InitializationError(msg) from self._error
