"""
Activation tracking for sequence diagrams.

Each participant has an activation depth >= 0. Activations nest, so a
participant can be activated several times before being deactivated.
"""

from typing import Optional

from .errors import NegativeActivation
from .events import UpdateNode


class ActivationTracker:
    """Per-participant activation depth."""

    def __init__(self):
        self._depths: dict[str, int] = {}

    def depth(self, node_id: str) -> int:
        return self._depths.get(node_id, 0)

    def active(self) -> list[str]:
        """Node ids with a depth above zero."""
        return [node_id for node_id, depth in self._depths.items() if depth > 0]

    def activate(self, node_id: str, attrs: Optional[dict[str, str]] = None) -> UpdateNode:
        depth = self.depth(node_id) + 1
        self._depths[node_id] = depth
        return UpdateNode(id=node_id, attrs={**(attrs or {}), "activation": str(depth)})

    def deactivate(self, node_id: str, line: int = 0) -> UpdateNode:
        depth = self.depth(node_id)
        if depth == 0:
            raise NegativeActivation(
                f"'{node_id}' deactivated while not active",
                line=line,
                construct="deactivate",
            )
        self._depths[node_id] = depth - 1
        return UpdateNode(id=node_id, attrs={"activation": str(depth - 1)})

    def destroy(self, node_id: str) -> UpdateNode:
        """End a participant's lifeline; any open activations are dropped."""
        self._depths[node_id] = 0
        return UpdateNode(id=node_id, attrs={"destroyed": "true", "activation": "0"})
