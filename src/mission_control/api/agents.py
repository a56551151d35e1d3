"""Agent API endpoints."""

import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from mission_control.agents.registry import AgentRegistry
from mission_control.api.models import (
    AgentCardResponse,
    AgentListResponse,
    AgentResponse,
    AgentUpdateRequest,
    agent_to_response,
)
from mission_control.errors import NotFoundError
from mission_control.factory import get_agent_registry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/agents", tags=["agents"])

RegistryDep = Annotated[AgentRegistry, Depends(get_agent_registry)]


@router.get("", response_model=AgentListResponse)
async def list_agents(registry: RegistryDep) -> AgentListResponse:
    """List all agents with their parsed state.

    Returns:
        Agents found in the agents directory (empty if it does not exist)
    """
    try:
        agents = await asyncio.to_thread(registry.list_agents)
    except Exception as e:
        logger.exception(f"Error listing agents: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    items = [agent_to_response(agent) for agent in agents]
    return AgentListResponse(items=items, count=len(items))


@router.get("/{name}", response_model=AgentCardResponse)
async def get_agent(name: str, registry: RegistryDep) -> AgentCardResponse:
    """Fetch the raw card of one agent."""
    try:
        card = await asyncio.to_thread(registry.read_card, name)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        logger.exception(f"Error reading agent {name}: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    return AgentCardResponse(
        name=card.name,
        card=card.content,
        card_path=str(card.path),
        last_modified=card.last_modified,
    )


@router.patch("/{name}", response_model=AgentResponse)
async def update_agent(
    name: str, request: AgentUpdateRequest, registry: RegistryDep
) -> AgentResponse:
    """Update state and/or current task in the agent card.

    Args:
        name: Agent name (card filename without suffix)
        request: Fields to write; ``current_task: null`` clears the task

    Returns:
        Agent as parsed after the write
    """
    state = request.state.value if request.state else None
    try:
        agent = await asyncio.to_thread(
            registry.update_agent,
            name,
            state=state,
            current_task=request.current_task,
            set_current_task="current_task" in request.model_fields_set,
        )
        return agent_to_response(agent)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        logger.exception(f"Error updating agent {name}: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e
