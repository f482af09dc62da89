"""
Sanitizador de registros externos.

Responsabilidades:
- Converter documentos brutos (banco, CSV, API de frota) em entidades tipadas
- Coagir valores monetários em formato brasileiro ("1.234,56")
- Datas ISO-8601 e DD/MM/AAAA sem deslocamento de fuso
- Defaults para campos obrigatórios ausentes

Nada aqui lança exceção por dado malformado: o valor é corrigido,
substituído por default ou o registro é descartado (None).
"""

import logging
import math
import re
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Optional

from dateutil import parser as date_parser

from dashboard.models.note_models import (
    Note,
    NoteStatus,
    RawRecord,
    Vehicle,
    VehicleStatus,
)
from dashboard.models.user_models import Role, UserAccount

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "Unknown Client"
UNCATEGORIZED = "Uncategorized"
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_BR_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")


# ─── Valores ───

def parse_amount_text(value: str | None) -> Optional[float]:
    """
    Converte texto monetário em número.

    "." é separador de milhar e a primeira "," vira separador decimal:
    "1.234,56" → 1234.56. Retorna None se não for um número finito.
    """
    if not value:
        return None
    cleaned = value.strip().replace("R$", "").replace(" ", "")
    cleaned = cleaned.replace(".", "").replace(",", ".", 1)
    try:
        number = float(cleaned)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number


def parse_amount(value: RawRecord) -> float:
    """Valor sempre finito e não negativo; qualquer lixo vira 0."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        number = parse_amount_text(value)
    else:
        return 0.0
    if number is None or not math.isfinite(number) or number < 0:
        return 0.0
    return number


# ─── Datas ───

def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_date_text(value: str | None) -> Optional[datetime]:
    """
    Interpreta uma data textual. Retorna None se nada funcionar.

    DD/MM/AAAA vira a data de calendário direto em UTC (sem parsing
    dependente de locale). Depois tenta ISO-8601 e, por último, o
    parser genérico do dateutil.
    """
    if not isinstance(value, str):
        return None
    cleaned = value.strip()
    if not cleaned:
        return None

    match = _BR_DATE_RE.match(cleaned)
    if match:
        day, month, year = (int(g) for g in match.groups())
        try:
            return datetime(year, month, day, tzinfo=timezone.utc)
        except ValueError:
            return None

    iso_text = cleaned[:-1] + "+00:00" if cleaned.endswith("Z") else cleaned
    try:
        return _as_utc(datetime.fromisoformat(iso_text))
    except ValueError:
        pass

    try:
        return _as_utc(date_parser.parse(cleaned))
    except (ValueError, TypeError, OverflowError):
        return None


def parse_issue_date(value: RawRecord) -> datetime:
    """Data de emissão de um documento armazenado; falha → época (1970-01-01)."""
    if isinstance(value, datetime):
        return _as_utc(value)
    parsed = parse_date_text(value)
    return parsed if parsed is not None else EPOCH


def coerce_created_at(value: RawRecord) -> float:
    """createdAt em ms: aceita número ou timestamp do Firestore."""
    if isinstance(value, datetime):
        return _as_utc(value).timestamp() * 1000
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value) if math.isfinite(value) else 0.0
    return 0.0


# ─── Texto ───

def clean_text(value: RawRecord) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def normalize_plate(value: RawRecord) -> Optional[str]:
    text = clean_text(value)
    return text.upper() if text else None


def normalize_status(value: RawRecord) -> NoteStatus:
    # Igualdade estrita: "pago", "PAID" ou vazio são "Unpaid"
    if isinstance(value, str) and value == NoteStatus.PAID.value:
        return NoteStatus.PAID
    return NoteStatus.UNPAID


# ─── Notas ───

def sanitize_note(note_id: str, raw: RawRecord) -> Optional[Note]:
    """Documento de `notas_fiscais` → Note, ou None se não for um objeto."""
    if not isinstance(raw, Mapping):
        logger.debug("Descartando registro %s: %r não é um documento", note_id, type(raw))
        return None

    return Note(
        id=str(note_id),
        document_number=clean_text(raw.get("nNota")),
        client=clean_text(raw.get("cliente")) or UNKNOWN_CLIENT,
        category=clean_text(raw.get("categoria")) or UNCATEGORIZED,
        amount=parse_amount(raw.get("valor")),
        issue_date=parse_issue_date(raw.get("dataEmissao")),
        status=normalize_status(raw.get("status")),
        description=clean_text(raw.get("materialServico")),
        vehicle_plate=normalize_plate(raw.get("veiculoPlaca")),
        created_at=coerce_created_at(raw.get("createdAt")),
    )


# ─── Veículos ───

_VEHICLE_STATUS = {
    "ativo": VehicleStatus.ACTIVE,
    "active": VehicleStatus.ACTIVE,
    "em manutenção": VehicleStatus.IN_MAINTENANCE,
    "em manutencao": VehicleStatus.IN_MAINTENANCE,
    "inmaintenance": VehicleStatus.IN_MAINTENANCE,
    "maintenance": VehicleStatus.IN_MAINTENANCE,
    "inativo": VehicleStatus.INACTIVE,
    "inactive": VehicleStatus.INACTIVE,
}


def _to_int(value: RawRecord) -> int:
    try:
        return int(value)
    except (ValueError, TypeError):
        return 0


def sanitize_vehicle(raw: RawRecord) -> Optional[Vehicle]:
    """Item do inventário de frota → Vehicle com placa normalizada."""
    if not isinstance(raw, Mapping):
        return None
    plate = normalize_plate(raw.get("placa", raw.get("plate")))
    if not plate:
        return None

    status_text = (clean_text(raw.get("status")) or "").lower()
    return Vehicle(
        id=_to_int(raw.get("id")),
        plate=plate,
        brand=clean_text(raw.get("marca", raw.get("brand"))) or "",
        model=clean_text(raw.get("modelo", raw.get("model"))) or "",
        year=_to_int(raw.get("ano", raw.get("year"))),
        status=_VEHICLE_STATUS.get(status_text, VehicleStatus.INACTIVE),
    )


# ─── Usuários ───

def sanitize_user(uid: str, raw: RawRecord) -> Optional[UserAccount]:
    """Documento de `users/{uid}` → UserAccount; função desconhecida vira viewer."""
    if not isinstance(raw, Mapping):
        return None
    try:
        role = Role(raw.get("role"))
    except ValueError:
        role = Role.VIEWER
    return UserAccount(
        uid=clean_text(raw.get("uid")) or str(uid),
        email=clean_text(raw.get("email")) or "N/A",
        role=role,
    )
