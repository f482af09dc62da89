"""
Camada de sincronização em tempo real.

Responsabilidades:
- Assinar coleções (notas, usuários) no banco de documentos
- Sanitizar cada snapshot completo antes de entregar
- Ciclo de vida explícito das assinaturas (detach idempotente)
- Degradação graciosa: erro de leitura entrega lista vazia, sem retry
"""

import logging
import threading
from contextlib import ExitStack
from typing import Callable, Optional

from dashboard.api.store import DocumentStore, Entries
from dashboard.config import NOTES_COLLECTION, ORDER_KEY, USERS_COLLECTION
from dashboard.models.note_models import Note
from dashboard.models.user_models import UserAccount
from dashboard.services.sanitizer import sanitize_note, sanitize_user

logger = logging.getLogger(__name__)


# ─── Assinatura ───

class Subscription:
    """
    Handle de uma assinatura ativa.

    Depois de `detach()` o callback nunca mais é chamado, mesmo que o
    banco entregue um evento atrasado pela thread do listener.
    """

    def __init__(self, name: str, callback: Callable[[list], None]):
        self.name = name
        self._callback = callback
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._active = True
        self._lock = threading.RLock()

    @property
    def active(self) -> bool:
        return self._active

    def deliver(self, items: list) -> None:
        with self._lock:
            if not self._active:
                return
            self._callback(items)

    def detach(self) -> None:
        with self._lock:
            if not self._active:
                return
            self._active = False
            unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()
        logger.debug("Assinatura '%s' encerrada", self.name)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.detach()
        return False


class SubscriptionGroup:
    """Todas as assinaturas de uma view; `close()` libera todas."""

    def __init__(self):
        self._stack = ExitStack()

    def add(self, subscription: Subscription) -> Subscription:
        return self._stack.enter_context(subscription)

    def close(self) -> None:
        self._stack.close()

    def __enter__(self) -> "SubscriptionGroup":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False


def _open(
    store: DocumentStore,
    collection: str,
    callback: Callable[[list], None],
    transform: Callable[[Entries], list],
    order_by: str = None,
) -> Subscription:
    subscription = Subscription(collection, callback)

    def on_snapshot(entries: Entries) -> None:
        subscription.deliver(transform(entries or []))

    def on_error(error: Exception) -> None:
        logger.error("Erro de leitura no Firestore em '%s': %s", collection, error)
        subscription.deliver([])

    try:
        subscription._unsubscribe = store.subscribe(
            collection, on_snapshot, on_error, order_by=order_by
        )
    except Exception as e:
        on_error(e)
    return subscription


# ─── Coleções ───

def _notes_from_entries(entries: Entries) -> list[Note]:
    notes = [sanitize_note(note_id, raw) for note_id, raw in entries]
    notes = [note for note in notes if note is not None]
    # O banco entrega createdAt ascendente; a view quer as mais novas primeiro
    notes.reverse()
    return notes


def _users_from_entries(entries: Entries) -> list[UserAccount]:
    users = [sanitize_user(uid, raw) for uid, raw in entries]
    return [user for user in users if user is not None]


def subscribe_notes(
    store: DocumentStore,
    callback: Callable[[list[Note]], None],
    collection: str = NOTES_COLLECTION,
) -> Subscription:
    """Notas normalizadas, da mais recente para a mais antiga."""
    return _open(store, collection, callback, _notes_from_entries, order_by=ORDER_KEY)


def subscribe_users(
    store: DocumentStore,
    callback: Callable[[list[UserAccount]], None],
    collection: str = USERS_COLLECTION,
) -> Subscription:
    return _open(store, collection, callback, _users_from_entries)


# ─── Snapshot local ───

class LiveSnapshot:
    """Último snapshot recebido; cada entrega substitui a lista inteira."""

    def __init__(self):
        self.items: list = []
        self.loaded = False

    def __call__(self, items: list) -> None:
        self.items = list(items)
        self.loaded = True
