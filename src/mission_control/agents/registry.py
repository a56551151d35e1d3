"""Agent registry backed by one markdown card per agent."""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from mission_control.api.models import Agent
from mission_control.errors import NotFoundError
from mission_control.files import atomic_write_text, read_text_raw

logger = logging.getLogger(__name__)

# Markers are matched within a single line; the first occurrence wins
STATE_PATTERN = re.compile(r"\*\*State:\*\*[ \t]*(\w+)")
CURRENT_TASK_PATTERN = re.compile(r"\*\*Current Task:\*\*[ \t]*([^\r\n]*)")
# Write side also matches a marker with an empty value
STATE_VALUE_PATTERN = re.compile(r"\*\*State:\*\*[ \t]*\w*")
STATE_MARKER = "**State:**"
CURRENT_TASK_MARKER = "**Current Task:**"
AGENT_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")

UNKNOWN_STATE = "unknown"
EMPTY_TASK = "none"


@dataclass
class AgentCard:
    """Raw agent card document."""

    name: str
    content: str
    path: Path
    last_modified: datetime


class AgentRegistry:
    """Reads and updates agent cards in a directory.

    Every read rescans the directory. No locking: concurrent writers to the
    same card race and the last one wins.
    """

    def __init__(self, agents_dir: str | Path, suffix: str = ".md") -> None:
        """Initialize registry for a directory of agent cards."""
        self.agents_dir = Path(agents_dir)
        self.suffix = suffix

    def exists(self) -> bool:
        return self.agents_dir.is_dir()

    def list_agents(self) -> list[Agent]:
        """Parse every card in the directory, sorted by name.

        A missing directory yields an empty list.
        """
        if not self.exists():
            logger.warning(f"[AgentRegistry] Agents directory not found: {self.agents_dir}")
            return []

        agents: list[Agent] = []
        for file_path in sorted(self.agents_dir.glob(f"*{self.suffix}")):
            if not file_path.is_file():
                continue
            try:
                agents.append(parse_agent(self._load(file_path)))
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"[AgentRegistry] Failed to read {file_path.name}: {e}")
                continue
        return agents

    def get_agent(self, name: str) -> Agent:
        """Read and parse a single agent card."""
        return parse_agent(self.read_card(name))

    def read_card(self, name: str) -> AgentCard:
        """Read the raw card of an agent.

        Raises:
            NotFoundError: If no card exists for the name
        """
        return self._load(self._card_path(name))

    def update_agent(
        self,
        name: str,
        state: str | None = None,
        current_task: str | None = None,
        set_current_task: bool = False,
    ) -> Agent:
        """Rewrite the State and/or Current Task values, replacing the card atomically.

        ``current_task`` is applied only when ``set_current_task`` is true, so
        a null value can clear it (written as ``none``). A card without a
        Current Task marker is left without one.
        """
        card = self.read_card(name)
        content = card.content

        if state is not None:
            content = replace_state(content, state)

        if set_current_task:
            if CURRENT_TASK_MARKER in content:
                content = replace_current_task(content, current_task)
            else:
                logger.info(
                    f"[AgentRegistry] {name} has no Current Task marker, leaving it unchanged"
                )

        if content != card.content:
            atomic_write_text(card.path, content)
            logger.info(f"[AgentRegistry] Updated card for {name}")

        return self.get_agent(name)

    def _card_path(self, name: str) -> Path:
        if not AGENT_NAME_PATTERN.match(name):
            raise NotFoundError(f"Agent not found: {name}")
        file_path = self.agents_dir / f"{name}{self.suffix}"
        if not file_path.is_file():
            raise NotFoundError(f"Agent not found: {name}")
        return file_path

    def _load(self, file_path: Path) -> AgentCard:
        return AgentCard(
            name=file_path.name.removesuffix(self.suffix),
            content=read_text_raw(file_path, "utf-8"),
            path=file_path,
            last_modified=datetime.fromtimestamp(file_path.stat().st_mtime),
        )


def parse_agent(card: AgentCard) -> Agent:
    """Extract state and current task from a card.

    Missing State marker defaults to ``unknown``. A missing Current Task
    marker, an empty value or ``none`` gives None.
    """
    state_match = STATE_PATTERN.search(card.content)
    task_match = CURRENT_TASK_PATTERN.search(card.content)
    current_task = task_match.group(1).strip() if task_match else None
    if current_task is not None and current_task.lower() in ("", EMPTY_TASK):
        current_task = None

    return Agent(
        name=card.name,
        state=state_match.group(1) if state_match else UNKNOWN_STATE,
        current_task=current_task,
        card_path=str(card.path),
        last_modified=card.last_modified,
    )


def replace_state(content: str, state: str) -> str:
    """Replace the first State value. No-op when the marker is missing."""
    value = _single_line(state)
    return STATE_VALUE_PATTERN.sub(lambda _: f"{STATE_MARKER} {value}", content, count=1)


def replace_current_task(content: str, current_task: str | None) -> str:
    """Replace the first Current Task value, ``none`` for an empty task."""
    value = _single_line(current_task or "") or EMPTY_TASK
    return CURRENT_TASK_PATTERN.sub(lambda _: f"{CURRENT_TASK_MARKER} {value}", content, count=1)


def _single_line(value: str) -> str:
    return " ".join(value.splitlines()).strip()
