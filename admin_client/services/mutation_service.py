import asyncio
import inspect
from collections.abc import Awaitable, Callable, Hashable, Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Generic, TypeVar

import structlog
from pydantic import ValidationError

from admin_client.core.config import get_settings
from admin_client.core.constants import UNAUTHORIZED_MESSAGE, MutationOutcome
from admin_client.schemas.common import NormalizedError
from admin_client.services.error_service import (
    SEMANTIC_ERROR_KEYS,
    normalize_api_error,
    semantic_error_from_ok_response,
)

K = TypeVar("K", bound=Hashable)
E = TypeVar("E")

logger = structlog.get_logger()


class ViewContext:
    """State shared by everything rendered on one screen.

    ``alive`` is the lifecycle guard: asynchronous continuations must check it
    before writing anything back.
    """

    def __init__(self, flash_ttl: float | None = None) -> None:
        self.alive = False
        self.forbidden = False
        self.error: NormalizedError | None = None
        self.flash = FlashMessage(self, ttl=flash_ttl)

    def mount(self) -> None:
        self.alive = True

    def unmount(self) -> None:
        self.alive = False
        self.flash.cancel()

    @property
    def message(self) -> str | None:
        return self.flash.text

    def reset_messages(self) -> None:
        self.error = None
        self.flash.show(None)

    def fail(self, error: NormalizedError) -> None:
        self.error = error
        self.flash.show(None)

    def deny(self, message: str = UNAUTHORIZED_MESSAGE) -> None:
        self.forbidden = True
        self.fail(NormalizedError.local(message))


class FlashMessage:
    """Single-slot transient message; a new message restarts the one timer."""

    def __init__(self, view: ViewContext, ttl: float | None = None) -> None:
        self.view = view
        self.ttl = ttl if ttl is not None else get_settings().flash_ttl_seconds
        self.text: str | None = None
        self._handle: asyncio.TimerHandle | None = None

    def show(self, text: str | None, ttl: float | None = None) -> None:
        self.text = text
        self.cancel()
        if not text:
            return
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(ttl if ttl is not None else self.ttl, self._expire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def _expire(self) -> None:
        self._handle = None
        if not self.view.alive:
            return
        self.text = None


async def confirmed(confirm: Callable[[], bool | Awaitable[bool]] | None) -> bool:
    if confirm is None:
        return True
    approved = confirm()
    if inspect.isawaitable(approved):
        approved = await approved
    return bool(approved)


class EntityStore(Generic[K, E]):
    """Id-keyed, insertion-ordered collection with copy-on-write updates.

    The mapping held by the store is never mutated in place, so a snapshot is
    just a reference to the current mapping and restoring it is exact.
    """

    def __init__(self, key: Callable[[E], K], items: Iterable[E] = ()) -> None:
        self.key = key
        self._items: Mapping[K, E] = {key(item): item for item in items}

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def values(self) -> list[E]:
        return list(self._items.values())

    def get(self, key: K) -> E | None:
        return self._items.get(key)

    def view(self) -> Mapping[K, E]:
        return MappingProxyType(self._items)

    def snapshot(self) -> Mapping[K, E]:
        return self._items

    def restore(self, snapshot: Mapping[K, E]) -> None:
        self._items = snapshot

    def replace_all(self, items: Iterable[E]) -> None:
        self._items = {self.key(item): item for item in items}


def remove_entity(items: Mapping[K, E], key: K) -> dict[K, E]:
    return {k: v for k, v in items.items() if k != key}


def update_entity(items: Mapping[K, E], key: K, change: Callable[[E], E]) -> dict[K, E]:
    return {k: (change(v) if k == key else v) for k, v in items.items()}


@dataclass
class MutationRequest(Generic[K, E]):
    label: str
    apply: Callable[[Mapping[K, E]], Mapping[K, E]]
    commit: Callable[[], Awaitable[Any]]
    failure_message: str
    success_message: str | Callable[[Any], str] | None = None
    confirm: Callable[[], bool | Awaitable[bool]] | None = None
    to_entity: Callable[[Any], E | None] | None = None
    reconcile: Callable[[Mapping[K, E], E], Mapping[K, E]] | None = None
    semantic_keys: tuple[str, ...] = SEMANTIC_ERROR_KEYS


class MutationController(Generic[K, E]):
    def __init__(
        self,
        store: EntityStore[K, E],
        view: ViewContext,
        *,
        name: str,
        authorize: Callable[[], bool] | None = None,
    ) -> None:
        self.store = store
        self.view = view
        self.name = name
        self.authorize = authorize
        self.busy = False
        self.last_body: Any = None

    async def run(self, request: MutationRequest[K, E]) -> MutationOutcome:
        log = logger.bind(controller=self.name, action=request.label)
        if self.authorize is not None and not self.authorize():
            log.warning("mutation_unauthorized")
            self.view.deny()
            return MutationOutcome.UNAUTHORIZED
        if self.busy:
            log.debug("mutation_dropped")
            return MutationOutcome.DROPPED

        self.busy = True
        try:
            if not await confirmed(request.confirm):
                return MutationOutcome.DECLINED
            if request.confirm is not None and not self.view.alive:
                return MutationOutcome.DECLINED

            self.view.reset_messages()
            snapshot = self.store.snapshot()
            self.store.restore(request.apply(self.store.view()))

            try:
                body = await request.commit()
            except Exception as exc:
                error = normalize_api_error(exc, request.failure_message)
                log.warning("mutation_failed", status=error.status, error=error.message)
                if self.view.alive:
                    self.store.restore(snapshot)
                    self.view.fail(error)
                return MutationOutcome.FAILED

            semantic = semantic_error_from_ok_response(body, request.semantic_keys)
            if semantic:
                log.warning("mutation_semantic_error", error=semantic)
                if self.view.alive:
                    self.store.restore(snapshot)
                    self.view.fail(NormalizedError(message=semantic, messages=[semantic], raw=body))
                return MutationOutcome.FAILED

            if not self.view.alive:
                return MutationOutcome.COMMITTED

            self.last_body = body
            try:
                entity = request.to_entity(body) if request.to_entity is not None and body is not None else None
                if entity is not None:
                    reconcile = request.reconcile or self._splice
                    self.store.restore(reconcile(self.store.view(), entity))
            except ValidationError as exc:
                log.warning("mutation_invalid_payload", errors=exc.error_count())
                self.store.restore(snapshot)
                self.view.fail(normalize_api_error(exc, request.failure_message))
                return MutationOutcome.FAILED

            message = request.success_message
            if callable(message):
                message = message(body)
            self.view.flash.show(message)
            log.info("mutation_committed")
            return MutationOutcome.COMMITTED
        finally:
            self.busy = False

    def _splice(self, current: Mapping[K, E], entity: E) -> Mapping[K, E]:
        updated = dict(current)
        updated[self.store.key(entity)] = entity
        return updated
