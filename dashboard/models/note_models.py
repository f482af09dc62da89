"""
Modelos de notas fiscais e veículos.
Entidades já normalizadas: só o sanitizador constrói estes objetos
a partir de documentos externos.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

# Documento bruto vindo do banco ou de uma linha de CSV (não confiável)
RawRecord = Any


# ─── Nota ───

class NoteStatus(str, Enum):
    PAID = "Paid"
    UNPAID = "Unpaid"


@dataclass(frozen=True)
class Note:
    """Registro financeiro (nota/despesa) normalizado."""
    id: str
    client: str
    category: str
    amount: float
    issue_date: datetime  # meia-noite UTC da data de emissão
    status: NoteStatus = NoteStatus.UNPAID
    created_at: float = 0.0  # timestamp do servidor em ms, chave de ordenação
    document_number: Optional[str] = None
    description: Optional[str] = None
    vehicle_plate: Optional[str] = None

    @property
    def is_paid(self) -> bool:
        return self.status is NoteStatus.PAID


@dataclass(frozen=True)
class NoteDraft:
    """Nota ainda sem id/createdAt (formulário ou importação)."""
    client: str
    category: str
    amount: float
    issue_date: datetime
    status: NoteStatus = NoteStatus.UNPAID
    document_number: Optional[str] = None
    description: Optional[str] = None
    vehicle_plate: Optional[str] = None

    def to_document(self, include_empty: bool = False) -> dict:
        """
        Layout persistido em `notas_fiscais`.

        Campos opcionais vazios são omitidos, ou gravados como "" com
        `include_empty` (edição que limpa um campo).
        """
        doc = {
            "cliente": self.client,
            "categoria": self.category,
            "valor": self.amount,
            "dataEmissao": format_timestamp(self.issue_date),
            "status": self.status.value,
        }
        optional = {
            "nNota": self.document_number,
            "materialServico": self.description,
            "veiculoPlaca": self.vehicle_plate,
        }
        for key, value in optional.items():
            if value:
                doc[key] = value
            elif include_empty:
                doc[key] = ""
        return doc


def format_timestamp(value: datetime) -> str:
    """ISO-8601 em UTC com milissegundos e sufixo Z (2024-03-05T00:00:00.000Z)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


# ─── Veículo ───

class VehicleStatus(str, Enum):
    ACTIVE = "Active"
    IN_MAINTENANCE = "InMaintenance"
    INACTIVE = "Inactive"


@dataclass(frozen=True)
class Vehicle:
    """Veículo do inventário de frota (somente leitura)."""
    id: int
    plate: str  # maiúsculas, sem espaços nas pontas
    brand: str = ""
    model: str = ""
    year: int = 0
    status: VehicleStatus = VehicleStatus.INACTIVE
