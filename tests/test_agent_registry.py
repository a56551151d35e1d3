"""Tests for AgentRegistry."""

from pathlib import Path

import pytest

from mission_control.agents.registry import AgentRegistry
from mission_control.errors import NotFoundError


def test_list_agents(workspace: Path) -> None:
    """Test listing parses markers and defaults missing ones."""
    registry = AgentRegistry(workspace / "agents")

    agents = {agent.name: agent for agent in registry.list_agents()}

    assert set(agents) == {"olex", "ruv"}
    assert agents["olex"].state == "busy"
    assert agents["olex"].current_task == "T001 - Fix bug"
    assert agents["ruv"].state == "unknown"
    assert agents["ruv"].current_task is None


def test_list_agents_missing_directory(tmp_path: Path) -> None:
    registry = AgentRegistry(tmp_path / "nope")

    assert registry.list_agents() == []
    assert not registry.exists()


def test_list_agents_filters_by_suffix(workspace: Path) -> None:
    (workspace / "agents" / "notes.txt").write_text("**State:** busy\n")

    names = [agent.name for agent in AgentRegistry(workspace / "agents").list_agents()]

    assert "notes" not in names


def test_missing_current_task_marker_is_none(tmp_path: Path) -> None:
    """Test a card with State but no Current Task marker."""
    (tmp_path / "kai.md").write_text("# Kai\n**State:** available\n")

    agent = AgentRegistry(tmp_path).get_agent("kai")

    assert agent.state == "available"
    assert agent.current_task is None


def test_marker_value_does_not_spill_to_next_line(tmp_path: Path) -> None:
    """Test an empty marker does not capture the following line."""
    (tmp_path / "kai.md").write_text("**State:**\n**Current Task:**\nNext paragraph\n")

    agent = AgentRegistry(tmp_path).get_agent("kai")

    assert agent.state == "unknown"
    assert agent.current_task is None


def test_duplicate_markers_first_wins(tmp_path: Path) -> None:
    (tmp_path / "kai.md").write_text(
        "**State:** busy\n**Current Task:** T1\n\n**State:** offline\n**Current Task:** T2\n"
    )
    registry = AgentRegistry(tmp_path)

    agent = registry.get_agent("kai")
    assert agent.state == "busy"
    assert agent.current_task == "T1"

    registry.update_agent("kai", state="standby")
    content = (tmp_path / "kai.md").read_text()
    assert "**State:** standby" in content
    assert "**State:** offline" in content


def test_update_state_and_task(workspace: Path) -> None:
    """Test updating both markers in place keeps the rest of the card."""
    registry = AgentRegistry(workspace / "agents")

    agent = registry.update_agent(
        "olex", state="available", current_task="T002 - Docs", set_current_task=True
    )

    assert agent.state == "available"
    assert agent.current_task == "T002 - Docs"
    content = (workspace / "agents" / "olex.md").read_text()
    assert "**Role:** Backend" in content
    assert "Prefers small PRs." in content


def test_update_clear_current_task(workspace: Path) -> None:
    """Test a present-but-null task is written as none and read back as None."""
    registry = AgentRegistry(workspace / "agents")

    agent = registry.update_agent("olex", current_task=None, set_current_task=True)

    assert agent.current_task is None
    assert "**Current Task:** none" in (workspace / "agents" / "olex.md").read_text()


def test_update_task_without_marker_is_noop(workspace: Path) -> None:
    """Test the Current Task marker is never inserted."""
    path = workspace / "agents" / "ruv.md"
    before = path.read_text()
    registry = AgentRegistry(workspace / "agents")

    agent = registry.update_agent("ruv", current_task="T9", set_current_task=True)

    assert agent.current_task is None
    assert path.read_text() == before


def test_update_value_with_reserved_characters(workspace: Path) -> None:
    """Test backslashes and newlines in values are written literally on one line."""
    registry = AgentRegistry(workspace / "agents")

    agent = registry.update_agent(
        "olex", current_task="C:\\work\\1 and\nmore", set_current_task=True
    )

    assert agent.current_task == "C:\\work\\1 and more"


def test_get_missing_agent(workspace: Path) -> None:
    with pytest.raises(NotFoundError):
        AgentRegistry(workspace / "agents").get_agent("ghost")


def test_path_like_names_rejected(workspace: Path) -> None:
    (workspace / "secret.md").write_text("**State:** busy\n")

    with pytest.raises(NotFoundError):
        AgentRegistry(workspace / "agents").read_card("../secret")


def test_update_leaves_no_temp_files(workspace: Path) -> None:
    """Test the card is replaced atomically without stray temp files."""
    registry = AgentRegistry(workspace / "agents")

    registry.update_agent("olex", state="offline")

    assert sorted(p.name for p in (workspace / "agents").iterdir()) == ["olex.md", "ruv.md"]
    assert registry.get_agent("olex").state == "offline"


def test_update_keeps_crlf_card(tmp_path: Path) -> None:
    path = tmp_path / "kai.md"
    path.write_bytes(b"# Kai\r\n**State:** busy\r\n**Current Task:** T1\r\n")

    AgentRegistry(tmp_path).update_agent("kai", current_task="T2", set_current_task=True)

    assert path.read_bytes() == b"# Kai\r\n**State:** busy\r\n**Current Task:** T2\r\n"
