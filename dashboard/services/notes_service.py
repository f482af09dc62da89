"""
Serviço de escrita de notas.

Responsabilidades:
- Validação do formulário de cadastro/edição
- Adicionar, atualizar e excluir notas (uma tentativa, sem retry)
- Importação de CSV com revalidação de cada linha
- Busca textual nas listas exibidas
"""

import csv
import logging
import math
from collections.abc import Mapping
from datetime import date, datetime, timezone
from typing import IO, Optional

import pandas as pd

from dashboard.api.store import DocumentStore
from dashboard.config import NOTES_COLLECTION
from dashboard.errors import NoValidRowsError, StoreError, ValidationError
from dashboard.models.financial_models import ImportResult
from dashboard.models.note_models import Note, NoteDraft
from dashboard.models.user_models import UserAccount, UserProfile
from dashboard.services.permissions import require_edit
from dashboard.services.sanitizer import (
    clean_text,
    normalize_plate,
    normalize_status,
    parse_amount,
    parse_amount_text,
    parse_date_text,
)

logger = logging.getLogger(__name__)

IMPORTED_CATEGORY = "Importado"


# ─── Formulário ───

def _form_date(value) -> Optional[datetime]:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    return parse_date_text(value)


def _form_amount(value) -> Optional[float]:
    """Número do campo valor; texto com vírgula segue o formato brasileiro."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    text = clean_text(value)
    if text is None:
        return None
    if "," in text:
        return parse_amount_text(text)
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def build_draft(form: Mapping) -> NoteDraft:
    """
    Valida o formulário e monta a nota. Nenhum envio parcial:
    o primeiro campo inválido levanta ValidationError.
    """
    client = clean_text(form.get("client"))
    if not client:
        raise ValidationError("Informe o cliente.", field="client")

    category = clean_text(form.get("category"))
    if not category:
        raise ValidationError("Informe a categoria.", field="category")

    raw_date = form.get("issue_date")
    if raw_date is None or (isinstance(raw_date, str) and not raw_date.strip()):
        raise ValidationError("Informe a data.", field="issue_date")
    issue_date = _form_date(raw_date)
    if issue_date is None:
        raise ValidationError("O formato da data é inválido.", field="issue_date")

    raw_amount = form.get("amount")
    if raw_amount is None or (isinstance(raw_amount, str) and not raw_amount.strip()):
        raise ValidationError("Informe o valor.", field="amount")
    amount = _form_amount(raw_amount)
    if amount is None:
        raise ValidationError("O valor informado é inválido.", field="amount")
    if amount < 0:
        raise ValidationError("O valor não pode ser negativo.", field="amount")

    return NoteDraft(
        client=client,
        category=category,
        amount=amount,
        issue_date=issue_date,
        status=normalize_status(form.get("status")),
        document_number=clean_text(form.get("document_number")),
        description=clean_text(form.get("description")),
        vehicle_plate=normalize_plate(form.get("vehicle_plate")),
    )


# ─── Escrita ───

def add_note(
    store: DocumentStore,
    caller: Optional[UserProfile],
    draft: NoteDraft,
    collection: str = NOTES_COLLECTION,
) -> str:
    """Cria a nota com createdAt do servidor e retorna o id gerado."""
    require_edit(caller)
    try:
        key = store.push(collection)
        store.set(
            f"{collection}/{key}",
            {**draft.to_document(), "createdAt": store.server_timestamp},
        )
    except Exception as e:
        logger.exception("Falha ao adicionar nota")
        raise StoreError() from e
    return key


def update_note(
    store: DocumentStore,
    caller: Optional[UserProfile],
    note_id: str,
    draft: NoteDraft,
    collection: str = NOTES_COLLECTION,
) -> None:
    """Atualização parcial: id e createdAt nunca são reescritos."""
    require_edit(caller)
    try:
        store.update(f"{collection}/{note_id}", draft.to_document(include_empty=True))
    except Exception as e:
        logger.exception("Falha ao atualizar nota %s", note_id)
        raise StoreError() from e


def delete_note(
    store: DocumentStore,
    caller: Optional[UserProfile],
    note_id: str,
    collection: str = NOTES_COLLECTION,
) -> None:
    require_edit(caller)
    try:
        store.remove(f"{collection}/{note_id}")
    except Exception as e:
        logger.exception("Falha ao excluir nota %s", note_id)
        raise StoreError("Erro ao excluir o registro.") from e


# ─── Importação CSV ───

def read_csv_rows(source: str | IO) -> list[dict]:
    """Lê o CSV como texto puro (delimitador detectado) e devolve as linhas."""
    try:
        df = pd.read_csv(
            source,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            sep=None,
            engine="python",
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError, csv.Error, UnicodeDecodeError) as e:
        logger.error("Erro ao ler CSV: %s", e)
        raise ValidationError("Erro ao ler o arquivo CSV.") from e
    return df.to_dict("records")


def _first(row: Mapping, *keys: str) -> Optional[str]:
    for key in keys:
        value = clean_text(row.get(key))
        if value:
            return value
    return None


def row_to_draft(row) -> Optional[NoteDraft]:
    """Linha do CSV → NoteDraft, ou None sem cliente, data válida ou valor."""
    if not isinstance(row, Mapping):
        return None

    client = _first(row, "Cliente", "Fornecedor")
    issue_date = parse_date_text(_first(row, "Data", "data", "Data Emissao", "dataEmissao"))
    amount = parse_amount(_first(row, "Valor", "Valor Total"))
    if not client or issue_date is None or not amount:
        return None

    return NoteDraft(
        client=client,
        category=_first(row, "Categoria") or IMPORTED_CATEGORY,
        amount=amount,
        issue_date=issue_date,
        status=normalize_status(row.get("Status")),
        document_number=_first(row, "N Nota", "nnota", "nNota"),
        description=_first(row, "Material/Serviço"),
        vehicle_plate=normalize_plate(_first(row, "Placa", "placa")),
    )


def rows_to_drafts(rows: list) -> tuple[list[NoteDraft], int]:
    """Retorna (notas válidas, quantidade de linhas descartadas)."""
    drafts = []
    skipped = 0
    for row in rows:
        draft = row_to_draft(row)
        if draft is None:
            skipped += 1
        else:
            drafts.append(draft)
    return drafts, skipped


def import_notes(
    store: DocumentStore,
    caller: Optional[UserProfile],
    rows: list,
    collection: str = NOTES_COLLECTION,
) -> ImportResult:
    """
    Grava as linhas válidas num único commit.

    Sem linhas válidas levanta NoValidRowsError sem tocar no banco.
    Não há detecção de duplicatas: reimportar o mesmo arquivo duplica.
    """
    require_edit(caller)
    drafts, skipped = rows_to_drafts(rows)
    if not drafts:
        raise NoValidRowsError()

    writes = {}
    keys = []
    try:
        for draft in drafts:
            key = store.push(collection)
            keys.append(key)
            writes[f"{collection}/{key}"] = {
                **draft.to_document(),
                "createdAt": store.server_timestamp,
            }
        store.commit(writes)
    except Exception as e:
        logger.exception("Falha na importação de %d notas", len(drafts))
        raise StoreError("Falha na importação do CSV.") from e

    logger.info("%d registros importados, %d linhas ignoradas", len(drafts), skipped)
    return ImportResult(imported=len(drafts), skipped=skipped, keys=keys)


# ─── Busca ───

def search_notes(notes: list[Note], query: str) -> list[Note]:
    """Filtra por nº da nota, cliente, categoria ou material/serviço."""
    needle = (query or "").strip().lower()
    if not needle:
        return list(notes)
    return [
        note for note in notes
        if any(
            needle in (field or "").lower()
            for field in (note.document_number, note.client, note.category, note.description)
        )
    ]


def search_users(users: list[UserAccount], query: str) -> list[UserAccount]:
    needle = (query or "").strip().lower()
    return [user for user in users if needle in (user.email or "").lower()]
