"""
Acesso ao banco de documentos em tempo real (Firestore).

Responsabilidades:
- Assinatura de coleções com entrega de snapshots completos
- Leitura/escrita por caminho ("colecao/id")
- Chaves geradas pelo servidor e timestamp do servidor
- Escrita em lote (importação)

O cliente é criado explicitamente e passado adiante; quem cria fecha.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Tuple

from google.api_core.exceptions import GoogleAPICallError
from google.cloud import firestore

from dashboard.config import FIRESTORE_DATABASE, FIRESTORE_PROJECT

logger = logging.getLogger(__name__)

Entries = List[Tuple[str, Any]]
SnapshotCallback = Callable[[Entries], None]
ErrorCallback = Callable[[Exception], None]
Unsubscribe = Callable[[], None]

MAX_BATCH_WRITES = 500  # limite do Firestore por WriteBatch


class DocumentStore(Protocol):
    """Contrato consumido pela camada de sincronização e pelos serviços."""

    server_timestamp: Any

    def subscribe(
        self,
        collection: str,
        callback: SnapshotCallback,
        on_error: ErrorCallback,
        order_by: Optional[str] = None,
    ) -> Unsubscribe: ...

    def get(self, path: str) -> Optional[Dict[str, Any]]: ...

    def set(self, path: str, value: Dict[str, Any]) -> None: ...

    def update(self, path: str, fields: Dict[str, Any]) -> None: ...

    def remove(self, path: str) -> None: ...

    def push(self, collection: str) -> str: ...

    def commit(self, writes: Mapping[str, Dict[str, Any]]) -> None: ...

    def close(self) -> None: ...


def _report_stream_end(watch, on_error: ErrorCallback) -> Unsubscribe:
    """
    Liga o fim do stream do Watch ao `on_error`.

    Quando o RPC de listen termina sem recuperação, o Watch chama
    `close(reason=erro)` numa thread própria e o erro só aparece como
    exceção solta nessa thread. Aqui o motivo vira `on_error` e o
    fechamento segue como intencional. Um `unsubscribe` nosso nunca
    é reportado.
    """
    state = {"detached": False, "reported": False}
    close_watch = watch.close

    def close(reason=None):
        if reason is not None and not state["detached"] and not state["reported"]:
            state["reported"] = True
            error = reason if isinstance(reason, Exception) else RuntimeError(reason)
            logger.error("Stream do Firestore encerrado: %s", error)
            close_watch()
            on_error(error)
            return
        close_watch()

    watch.close = close

    def unsubscribe() -> None:
        state["detached"] = True
        close_watch()

    return unsubscribe


class FirestoreStore:
    """DocumentStore sobre google-cloud-firestore."""

    server_timestamp = firestore.SERVER_TIMESTAMP

    def __init__(self, client: firestore.Client):
        self.client = client

    @classmethod
    def from_config(cls, project: str = None, database: str = None) -> "FirestoreStore":
        client = firestore.Client(
            project=project or FIRESTORE_PROJECT or None,
            database=database or FIRESTORE_DATABASE or None,
        )
        return cls(client)

    # ─── Tempo real ───

    def subscribe(
        self,
        collection: str,
        callback: SnapshotCallback,
        on_error: ErrorCallback,
        order_by: Optional[str] = None,
    ) -> Unsubscribe:
        """
        Escuta a coleção inteira. Cada evento entrega a lista completa
        [(id, dados)] na ordem ascendente de `order_by`.
        """
        query = self.client.collection(collection)
        if order_by:
            query = query.order_by(order_by)

        def _on_snapshot(docs, changes, read_time):
            try:
                entries = [(doc.id, doc.to_dict()) for doc in docs]
            except Exception as e:
                on_error(e)
                return
            callback(entries)

        try:
            watch = query.on_snapshot(_on_snapshot)
        except GoogleAPICallError as e:
            on_error(e)
            return lambda: None
        return _report_stream_end(watch, on_error)

    # ─── Leitura/escrita ───

    def get(self, path: str) -> Optional[Dict[str, Any]]:
        snapshot = self.client.document(path).get()
        if not snapshot.exists:
            return None
        return snapshot.to_dict() or {}

    def set(self, path: str, value: Dict[str, Any]) -> None:
        self.client.document(path).set(dict(value))

    def update(self, path: str, fields: Dict[str, Any]) -> None:
        self.client.document(path).update(dict(fields))

    def remove(self, path: str) -> None:
        self.client.document(path).delete()

    def push(self, collection: str) -> str:
        """Gera um id novo na coleção sem escrever nada."""
        return self.client.collection(collection).document().id

    def commit(self, writes: Mapping[str, Dict[str, Any]]) -> None:
        """Grava vários documentos em lotes (atômico dentro de cada lote)."""
        items = list(writes.items())
        for start in range(0, len(items), MAX_BATCH_WRITES):
            batch = self.client.batch()
            for path, value in items[start:start + MAX_BATCH_WRITES]:
                batch.set(self.client.document(path), dict(value))
            batch.commit()

    def close(self) -> None:
        self.client.close()
