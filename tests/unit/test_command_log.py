"""Unit tests for the optimistic CommandLog."""

from unittest.mock import AsyncMock

import pytest

from chathub.client.commands import CommandLog, CommandStatus
from chathub.core.exceptions import ChatError


class TestCommandLog:
    async def test_commit_keeps_tentative_state(self) -> None:
        log = CommandLog()
        state = {"title": "old"}

        result = await log.execute(
            "rename",
            apply=lambda: state.update(title="new"),
            undo=lambda: state.update(title="old"),
            send=AsyncMock(return_value="ack"),
        )

        assert result == "ack"
        assert state["title"] == "new"
        assert log.commands[0].status is CommandStatus.COMMITTED
        assert log.pending == []

    async def test_failure_rolls_back_and_reraises(self) -> None:
        log = CommandLog()
        state = {"pinned": False}

        with pytest.raises(ChatError):
            await log.execute(
                "pin",
                apply=lambda: state.update(pinned=True),
                undo=lambda: state.update(pinned=False),
                send=AsyncMock(side_effect=ChatError("forbidden:chat")),
            )

        assert state["pinned"] is False
        assert log.commands[0].status is CommandStatus.ROLLED_BACK

    async def test_state_is_applied_before_send(self) -> None:
        log = CommandLog()
        state = {"value": 0}
        observed: list[int] = []

        async def send() -> None:
            observed.append(state["value"])

        await log.execute(
            "set", apply=lambda: state.update(value=1), undo=lambda: None, send=send
        )
        assert observed == [1]

    async def test_history_is_bounded(self) -> None:
        log = CommandLog(history_size=3)

        for index in range(5):
            await log.execute(
                f"cmd-{index}", apply=lambda: None, undo=lambda: None, send=AsyncMock()
            )

        assert [c.name for c in log.commands] == ["cmd-2", "cmd-3", "cmd-4"]

    async def test_evicted_command_still_rolls_back(self) -> None:
        log = CommandLog(history_size=1)
        state = {"title": "old"}

        async def send() -> None:
            await log.execute("other", apply=lambda: None, undo=lambda: None, send=AsyncMock())
            raise ChatError("bad_request:database")

        with pytest.raises(ChatError):
            await log.execute(
                "rename",
                apply=lambda: state.update(title="new"),
                undo=lambda: state.update(title="old"),
                send=send,
            )

        assert state["title"] == "old"
        assert [c.name for c in log.commands] == ["other"]
