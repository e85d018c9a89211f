from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import httpx

from ..config import get_settings
from ..logging_config import logger
from ..models import CurrentState, Message, NarrativeResponse, SummaryResponse


class BackendAPIError(RuntimeError):
    """Raised when the game backend returns an error or cannot be reached."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, detail: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


def _headers() -> Dict[str, str]:
    return {
        "Content-Type": "application/json",
        "Accept": "application/json",
    }


def _handle_response_error(exc: httpx.HTTPStatusError) -> None:
    response = exc.response
    detail: str
    try:
        payload = response.json()
        detail = payload.get("error") or payload.get("message") or json.dumps(payload)
    except (ValueError, AttributeError):
        detail = response.text
    raise BackendAPIError(
        f"Backend request failed ({response.status_code}): {detail}",
        status_code=response.status_code,
        detail=detail,
    ) from exc


class BackendClient:
    """Thin async wrapper over the game backend's JSON endpoints."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        settings = get_settings()
        self._base_url = (base_url or settings.api_base_url).rstrip("/")
        self._timeout = timeout if timeout is not None else settings.api_timeout_seconds
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._base_url

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Issue one request and return the decoded JSON body."""

        url = f"{self._base_url}{endpoint}"
        async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
            try:
                response = await client.request(method, url, headers=_headers(), json=payload)
                try:
                    response.raise_for_status()
                except httpx.HTTPStatusError as exc:
                    _handle_response_error(exc)
                if not response.content:
                    return {}
                return response.json()
            except httpx.HTTPError as exc:
                logger.error(
                    "backend request failed",
                    extra={"method": method, "endpoint": endpoint, "error": str(exc)},
                )
                raise BackendAPIError(f"Backend request failed: {exc}") from exc
            except ValueError as exc:
                raise BackendAPIError(f"Backend returned invalid JSON for {endpoint}") from exc

    async def send_message(
        self, game_id: str, message: str, game_context: CurrentState
    ) -> NarrativeResponse:
        data = await self.request(
            "POST",
            "/api/claude/message",
            payload={
                "gameId": game_id,
                "message": message,
                "gameContext": game_context.model_dump(mode="json"),
            },
        )
        return NarrativeResponse.model_validate(data)

    async def generate_summary(
        self, game_id: str, messages: List[Message], game_state: CurrentState
    ) -> SummaryResponse:
        data = await self.request(
            "POST",
            "/api/summary/generate",
            payload={
                "gameId": game_id,
                "messages": [message.model_dump(mode="json") for message in messages],
                "gameState": game_state.model_dump(mode="json"),
            },
        )
        return SummaryResponse.model_validate(data)

    async def load_game_state(self, game_id: str) -> Dict[str, Any]:
        return await self.request("GET", f"/api/game/{game_id}")

    async def save_game_state(self, game_id: str, game_state: Dict[str, Any]) -> Dict[str, Any]:
        return await self.request("POST", f"/api/game/{game_id}", payload=game_state)

    async def get_game_list(self, player_id: str) -> List[Dict[str, Any]]:
        data = await self.request("GET", f"/api/game/list/{player_id}")
        games = data.get("games") if isinstance(data, dict) else None
        return list(games or [])

    async def create_game(self, player_id: str, game_config: Dict[str, Any]) -> str:
        data = await self.request(
            "POST",
            "/api/game/create",
            payload={"playerId": player_id, **game_config},
        )
        game_id = data.get("gameId") if isinstance(data, dict) else None
        if not game_id:
            raise BackendAPIError("Backend response missing gameId")
        return str(game_id)

    async def delete_game(self, game_id: str) -> None:
        await self.request("DELETE", f"/api/game/{game_id}")


__all__ = ["BackendAPIError", "BackendClient"]
