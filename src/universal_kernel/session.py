"""
universal_kernel/session.py - Caller-owned state for ontogenesis runs

An EvolutionSession holds everything that survives across engine calls:

    rng      - the only source of randomness (cut points, tournaments,
               mutation trigger/index/magnitude, seeding, id minting)
    history  - bounded log of self-generate/optimize/reproduce/mutate calls
    lineage  - append-only DAG of every genome ever registered, keyed by id

No module-level mutable state is used. Two sessions built with the same seed
replay the same run exactly.

Usage:
    from universal_kernel.session import create_evolution_session

    session = create_evolution_session(seed=42)
    individual = initialize(session, kernel)
    child = self_generate(session, individual)
    session.ancestors(child.id)  # [individual.id]
"""
from __future__ import annotations

import logging
import uuid
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, field

import numpy as np

from .ontogenesis_types import KernelGenome, LineageNode, OntogeneticOperation, OperationType

logger = logging.getLogger(__name__)

MAX_HISTORY = 1000
ID_PREFIX = "kernel"


# =============================================================================
# EVOLUTION SESSION
# =============================================================================

@dataclass
class EvolutionSession:
    """
    Encapsulates the mutable state of one evolution run.

    Attributes:
        rng: Seedable numpy Generator used by every stochastic operation
        history: Most recent operations, oldest evicted first
        lineage: Genome id -> LineageNode; entries are never removed except by reset()
    """

    rng: np.random.Generator = field(default_factory=np.random.default_rng)
    history: deque[OntogeneticOperation] = field(default_factory=lambda: deque(maxlen=MAX_HISTORY))
    lineage: dict[str, LineageNode] = field(default_factory=dict)

    def new_id(self) -> str:
        """Mint a genome id from the session generator (reproducible under a seed)."""
        raw = uuid.UUID(bytes=self.rng.bytes(16), version=4)
        return f"{ID_PREFIX}-{raw.hex[:16]}"

    # =========================================================================
    # HISTORY
    # =========================================================================

    def record(
        self,
        op_type: OperationType,
        inputs: Iterable[str],
        outputs: Iterable[str],
    ) -> OntogeneticOperation:
        operation = OntogeneticOperation(
            type=op_type,
            input_ids=tuple(inputs),
            output_ids=tuple(outputs),
        )
        self.history.append(operation)
        return operation

    def get_operation_history(self) -> list[OntogeneticOperation]:
        """Snapshot of the history, oldest first."""
        return list(self.history)

    # =========================================================================
    # LINEAGE DAG
    # =========================================================================

    def register(self, genome: KernelGenome) -> LineageNode:
        """Add a genome to the lineage DAG and link it under its parents.

        Registering an id twice returns the existing node unchanged.
        """
        node = self.lineage.get(genome.id)
        if node is not None:
            return node

        node = LineageNode(
            id=genome.id,
            generation=genome.generation,
            parents=list(genome.lineage),
        )
        self.lineage[genome.id] = node
        for parent_id in genome.lineage:
            parent = self.lineage.get(parent_id)
            if parent is not None and genome.id not in parent.children:
                parent.children.append(genome.id)
        return node

    def mark_alive(self, ids: Iterable[str]) -> None:
        """Flag exactly `ids` as members of the current population."""
        alive = set(ids)
        for node_id, node in self.lineage.items():
            node.alive = node_id in alive

    def ancestors(self, genome_id: str) -> list[str]:
        """All known ancestors of a genome, nearest first (breadth-first)."""
        seen: set[str] = set()
        order: list[str] = []
        node = self.lineage.get(genome_id)
        queue = deque(node.parents if node is not None else [])

        while queue:
            parent_id = queue.popleft()
            if parent_id in seen:
                continue
            seen.add(parent_id)
            order.append(parent_id)
            parent = self.lineage.get(parent_id)
            if parent is not None:
                queue.extend(parent.parents)
        return order

    def get_lineage_tree(self) -> dict[str, LineageNode]:
        """Shallow copy of the lineage map."""
        return dict(self.lineage)

    def reset(self) -> None:
        """Clear history and lineage. The generator state is kept."""
        self.history.clear()
        self.lineage.clear()
        logger.debug("Evolution session reset")


def create_evolution_session(seed: int | None = None) -> EvolutionSession:
    """
    Factory function to create a new evolution session.

    Args:
        seed: Seed for the session generator; None draws fresh OS entropy

    Returns:
        Fresh EvolutionSession with empty history and lineage
    """
    session = EvolutionSession(rng=np.random.default_rng(seed))
    logger.debug(f"Created evolution session: seed={seed}")
    return session
