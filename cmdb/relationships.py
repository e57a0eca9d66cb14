"""
Ownership graph: users on the left, the configuration items they own fanned
out to the right of them.

Items are joined to users by name (``item_owner`` holds the user's name).
Items whose owner is not a known user are left out of the graph.
"""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from cmdb.db import get_session
from cmdb.models import ConfigurationItem, User
from cmdb.repository import TableRepository

router = APIRouter(prefix="/relationships", tags=["relationships"])

USER_X = 50
USER_Y_STEP = 250
ITEM_X = 450
ITEM_X_STEP = 280


class Position(BaseModel):
    x: int
    y: int


class GraphNode(BaseModel):
    id: str
    type: str  # userNode | ciNode
    position: Position
    data: Dict[str, Any]


class GraphEdge(BaseModel):
    id: str
    source: str
    target: str
    animated: bool = True


class Graph(BaseModel):
    nodes: List[GraphNode]
    edges: List[GraphEdge]


def join_owners(items: List[ConfigurationItem], users: List[User]) -> List[tuple[ConfigurationItem, User]]:
    users_by_name = {u.name: u for u in users}
    pairs = []
    for item in items:
        owner = users_by_name.get(item.item_owner) if item.item_owner else None
        if owner is not None:
            pairs.append((item, owner))
    return pairs


def build_graph(items: List[ConfigurationItem], users: List[User]) -> Graph:
    nodes: List[GraphNode] = []
    edges: List[GraphEdge] = []
    user_y: Dict[str, int] = {}
    placed: Dict[str, int] = {}

    for item, owner in join_owners(items, users):
        if owner.id not in user_y:
            user_y[owner.id] = len(user_y) * USER_Y_STEP
            placed[owner.id] = 0
            nodes.append(
                GraphNode(
                    id=f"user-{owner.id}",
                    type="userNode",
                    position=Position(x=USER_X, y=user_y[owner.id]),
                    data={"name": owner.name, "role": owner.role, "created_at": owner.created_at},
                )
            )

        nodes.append(
            GraphNode(
                id=f"ci-{item.id}",
                type="ciNode",
                position=Position(x=ITEM_X + placed[owner.id] * ITEM_X_STEP, y=user_y[owner.id]),
                data={
                    "name": item.name,
                    "status": item.status,
                    "created_at": item.created_at,
                    "responsible_id": owner.id,
                },
            )
        )
        placed[owner.id] += 1
        edges.append(GraphEdge(id=f"edge-{owner.id}-{item.id}", source=f"user-{owner.id}", target=f"ci-{item.id}"))

    return Graph(nodes=nodes, edges=edges)


@router.get("", response_model=Graph)
def get_graph(session: Session = Depends(get_session)) -> Graph:
    items = TableRepository(session, ConfigurationItem).select(not_null=["item_owner"])
    users = TableRepository(session, User).select()
    return build_graph(items, users)
