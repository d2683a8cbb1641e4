from __future__ import annotations

import re
from typing import Any, Dict, Optional, Tuple

import httpx
import typer

from cli.config import CLIConfig
from services.exporter import export_filename

_FILENAME_RE = re.compile(r'filename="?([^";]+)"?')


class ApiClient:
    """Minimal HTTP client for the dashboard service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=30.0)

    def close(self) -> None:
        self._client.close()

    def get_state(self, include_history: bool = False) -> Dict[str, Any]:
        params = {"history": "true" if include_history else "false"}
        return self._request("GET", "/state", params=params).json()

    def start(self) -> Dict[str, Any]:
        return self._request("POST", "/control/start").json()

    def pause(self) -> Dict[str, Any]:
        return self._request("POST", "/control/pause").json()

    def reset(self) -> Dict[str, Any]:
        return self._request("POST", "/control/reset").json()

    def configure(
        self,
        mode: Optional[str] = None,
        interval_ms: Optional[int] = None,
        endpoint_url: Optional[str] = None,
    ) -> Dict[str, Any]:
        body = {
            key: value
            for key, value in (
                ("mode", mode),
                ("interval_ms", interval_ms),
                ("endpoint_url", endpoint_url),
            )
            if value is not None
        }
        return self._request("PATCH", "/control/config", json=body).json()

    def export_csv(self) -> Tuple[str, str]:
        """Return ``(filename, csv_text)`` for the current history window."""
        response = self._request("GET", "/export")
        match = _FILENAME_RE.search(response.headers.get("content-disposition", ""))
        filename = match.group(1) if match else export_filename()
        return filename, response.text

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            typer.secho(
                f"Could not reach {self._config.base_url}: {exc}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(code=1) from exc
        return response

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
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
