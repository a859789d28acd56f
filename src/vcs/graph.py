"""Node/edge projection of a repository's commits and branches for visualization."""

from dataclasses import dataclass, field

from common.constants import BRANCH_NODE_PREFIX
from store.interface import DatabaseAdapter

from .errors import storage_errors
from .models import Branch, Commit


@dataclass
class GraphNode:
    """Node in the graph visualization."""

    id: str
    type: str  # "commit" or "branch"
    label: str

    def to_dict(self) -> dict:
        return {"id": self.id, "type": self.type, "label": self.label}


@dataclass
class GraphEdge:
    """Directed edge between two nodes."""

    source: str
    target: str
    type: str  # "parent", "merge" or "head"
    label: str | None = None
    dashes: bool = False

    def to_dict(self) -> dict:
        data = {"from": self.source, "to": self.target, "type": self.type}
        if self.label is not None:
            data["label"] = self.label
        if self.dashes:
            data["dashes"] = True
        return data


@dataclass
class Graph:
    """Complete graph structure with nodes and edges."""

    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[GraphEdge] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
        }


def branch_node_id(branch_id: int) -> str:
    return f"{BRANCH_NODE_PREFIX}{branch_id}"


class GraphSerializer:
    """Builds visualization graphs from the store."""

    def __init__(self, adapter: DatabaseAdapter):
        self.adapter = adapter

    def build_graph(self, repository_id: int) -> Graph:
        """Build the commit graph of a repository.

        Returns a graph with:
        - Commit nodes, in creation order
        - Edges: first parent -> commit (parent)
        - Edges: second parent -> commit (merge, drawn dashed)
        - Branch nodes for branches with a head
        - Edges: branch -> head commit (head)

        A repository with no commits and no branches, or one that does not
        exist, yields an empty graph.
        """
        with storage_errors(f"Build graph of repository {repository_id}"):
            commit_rows = self.adapter.fetchall(
                "SELECT * FROM git_commit WHERE repository_id = ? ORDER BY id", (repository_id,)
            )
            branch_rows = self.adapter.fetchall(
                "SELECT * FROM branch WHERE repository_id = ? AND head_commit_id IS NOT NULL "
                "ORDER BY id",
                (repository_id,),
            )

        graph = Graph()

        for commit in (Commit.from_row(row) for row in commit_rows):
            commit_node_id = str(commit.id)
            graph.nodes.append(GraphNode(id=commit_node_id, type="commit", label=commit.message))
            if commit.parent_commit_id is not None:
                graph.edges.append(
                    GraphEdge(source=str(commit.parent_commit_id), target=commit_node_id, type="parent")
                )
            if commit.parent_commit_id_2 is not None:
                graph.edges.append(
                    GraphEdge(
                        source=str(commit.parent_commit_id_2),
                        target=commit_node_id,
                        type="merge",
                        dashes=True,
                    )
                )

        for branch in (Branch.from_row(row) for row in branch_rows):
            node_id = branch_node_id(branch.id)
            graph.nodes.append(GraphNode(id=node_id, type="branch", label=branch.name))
            graph.edges.append(
                GraphEdge(
                    source=node_id,
                    target=str(branch.head_commit_id),
                    type="head",
                    label=branch.name,
                )
            )

        return graph
