from __future__ import annotations

from typing import Any, Dict, List, NoReturn, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the telemetry service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def send_reading(
        self,
        device_id: str,
        temperature: float,
        oxygen: Optional[float] = None,
        ph: Optional[float] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"dispositivo_id": device_id, "temperatura": temperature}
        if oxygen is not None:
            body["oxigenio"] = oxygen
        if ph is not None:
            body["ph"] = ph
        response = self._request("POST", "/leituras", json=body)
        return response.json()

    def list_readings(self, device_id: str, limit: int) -> List[Dict[str, Any]]:
        response = self._request("GET", f"/leituras/{device_id}", params={"limit": limit})
        return response.json()

    def latest_reading(self, device_id: str) -> Dict[str, Any]:
        response = self._request(
            "GET", f"/leituras/latest/{device_id}", allow_not_found=True
        )
        if response.status_code == 404:
            raise typer.BadParameter(f"No readings found for device {device_id}.")
        return response.json()

    def get_recommendation(self, device_id: str, days: Optional[int] = None) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        if days is not None:
            params["days"] = days
        response = self._request("GET", f"/recomendacoes/{device_id}", params=params)
        return response.json()

    def get_history(self, device_id: str, limit: int) -> List[Dict[str, Any]]:
        response = self._request(
            "GET", f"/recomendacoes/{device_id}/historico", params={"limit": limit}
        )
        return response.json()

    def _request(
        self, method: str, url: str, allow_not_found: bool = False, **kwargs: Any
    ) -> httpx.Response:
        try:
            response = self._client.request(method, url, **kwargs)
            if allow_not_found and response.status_code == 404:
                return response
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            typer.secho(
                f"Could not reach {self._config.base_url}: {exc}", fg=typer.colors.RED, err=True
            )
            raise typer.Exit(code=1) from exc
        return response

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> NoReturn:
        detail: Any = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
