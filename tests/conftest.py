"""Shared fixtures: settings, fake backend and message builders."""
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List
from unittest.mock import AsyncMock

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from adventure_client.config import Settings
from adventure_client.models import (
    GameState,
    Message,
    MessageType,
    NarrativeResponse,
    SummaryResponse,
)

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_history(count: int, content: str = "ten chars!", start: int = 0) -> List[Message]:
    """Alternate user/ai messages one minute apart."""
    messages = []
    for i in range(start, start + count):
        messages.append(
            Message(
                id=f"m{i}",
                type=MessageType.USER if i % 2 == 0 else MessageType.AI,
                content=content,
                timestamp=BASE_TIME + timedelta(minutes=i),
            )
        )
    return messages


def make_state(count: int = 0, **kwargs) -> GameState:
    return GameState(
        game_id=kwargs.pop("game_id", "game_test"),
        player_id=kwargs.pop("player_id", "player_test"),
        message_history=make_history(count),
        **kwargs,
    )


class FakeBackend:
    """Stands in for BackendClient; every endpoint is an AsyncMock."""

    def __init__(self) -> None:
        self.generate_summary = AsyncMock(return_value=SummaryResponse(summary="The hero wandered the mists."))
        self.send_message = AsyncMock(return_value=NarrativeResponse(content="The mist parts before you."))
        self.save_game_state = AsyncMock(return_value={"ok": True})
        self.load_game_state = AsyncMock(return_value={})
        self.get_game_list = AsyncMock(return_value=[])
        self.create_game = AsyncMock(return_value="game_created")
        self.delete_game = AsyncMock(return_value=None)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        data_dir=tmp_path,
        summary_threshold=30,
        token_threshold=8000,
        summary_progress_reset_seconds=0.01,
    )


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()
