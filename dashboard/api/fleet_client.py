"""
Cliente do inventário de frota.

Responsabilidades:
- Busca única da lista de veículos (sem assinatura)
- Rate limiting e retry com backoff nas chamadas HTTP
- Inventário simulado enquanto FLEET_API_URL não está configurada
- Normalização de cada item (placa em maiúsculas)
"""

import logging
import time

import requests

from dashboard.config import (
    FLEET_API_KEY,
    FLEET_API_TOKEN,
    FLEET_API_URL,
    MAX_RETRIES,
    MIN_REQUEST_INTERVAL,
    RETRY_BACKOFF,
)
from dashboard.errors import FleetError
from dashboard.models.note_models import Vehicle
from dashboard.services.sanitizer import sanitize_vehicle

logger = logging.getLogger(__name__)

MOCK_VEHICLES = [
    {"id": 1, "placa": "BRA2E19", "modelo": "FH 540", "marca": "Volvo", "ano": 2022, "status": "Ativo"},
    {"id": 2, "placa": "XYZ1234", "modelo": "Actros 2651", "marca": "Mercedes-Benz", "ano": 2021, "status": "Em Manutenção"},
    {"id": 3, "placa": "ABC9876", "modelo": "R450", "marca": "Scania", "ano": 2023, "status": "Ativo"},
    {"id": 4, "placa": "DEF5678", "modelo": "TGS 26.480", "marca": "MAN", "ano": 2020, "status": "Inativo"},
    {"id": 5, "placa": "GHI1A23", "modelo": "FH 460", "marca": "Volvo", "ano": 2022, "status": "Ativo"},
]


class FleetClient:
    """Cliente somente leitura da API de frota."""

    def __init__(self, base_url: str = None, session: requests.Session = None):
        self.base_url = (base_url if base_url is not None else FLEET_API_URL) or ""
        self.session = session or requests.Session()
        self._last_request_time = 0.0

    # ─── HTTP primitivos ───

    def _get_headers(self) -> dict:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if FLEET_API_TOKEN:
            headers["Authorization"] = f"Bearer {FLEET_API_TOKEN}"
        if FLEET_API_KEY:
            headers["ApiKey"] = FLEET_API_KEY
        return headers

    def _throttle(self):
        elapsed = time.time() - self._last_request_time
        if elapsed < MIN_REQUEST_INTERVAL:
            time.sleep(MIN_REQUEST_INTERVAL - elapsed)
        self._last_request_time = time.time()

    def _request(self, method: str, path: str, **kwargs) -> dict | list | None:
        last_error = None
        for attempt in range(MAX_RETRIES):
            self._throttle()
            try:
                url = f"{self.base_url}{path}"
                resp = self.session.request(
                    method, url, headers=self._get_headers(), **kwargs
                )
                resp.raise_for_status()
                if resp.status_code == 204 or not resp.content:
                    return None
                return resp.json()
            except requests.exceptions.HTTPError as e:
                status = e.response.status_code if e.response is not None else 0
                # 429 / 5xx → retry com backoff
                if status in (429, 500, 502, 503, 504):
                    last_error = e
                    time.sleep(RETRY_BACKOFF * (2 ** attempt))
                    continue
                raise
            except requests.exceptions.ConnectionError as e:
                last_error = e
                time.sleep(RETRY_BACKOFF * (2 ** attempt))
                continue

        raise last_error

    # ─── Endpoints ───

    def _fetch_raw(self) -> list:
        if not self.base_url:
            return list(MOCK_VEHICLES)
        data = self._request("GET", "/veiculos")
        # A API pode retornar {"itens": [...]} ou lista direta
        if isinstance(data, dict):
            data = data.get("itens", data.get("veiculos", []))
        return data if isinstance(data, list) else []

    def list_vehicles(self) -> list[Vehicle]:
        """Retorna os veículos com placa normalizada; itens inválidos são ignorados."""
        try:
            raw_items = self._fetch_raw()
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error("Falha ao buscar inventário de frota: %s", e)
            raise FleetError() from e

        vehicles = []
        for item in raw_items:
            vehicle = sanitize_vehicle(item)
            if vehicle is not None:
                vehicles.append(vehicle)
        return vehicles
