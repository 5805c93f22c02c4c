"""
universal_kernel/ontogenesis_types.py - Genome, state and population types

An OntogeneticKernel wraps an immutable Kernel with two mutable records:

    genome - identity (id, generation, lineage), genes, fitness, age
    state  - development stage, maturity, reproductive capability and the
             append-only mutation and development logs

Engine operations never edit an input individual in place; they return new
individuals (see OntogeneticKernel.copy). Only update_development_stage ages
the individual it is given, and evolve only calls it on fresh copies.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from .types import BSeriesExpansion, DomainSpecification, GripMetric, Kernel, KernelMetadata, RootedTree


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS
# =============================================================================

class DevelopmentStage(StrEnum):
    """Forward-only life stages of an individual."""

    EMBRYONIC = "embryonic"
    JUVENILE = "juvenile"
    MATURE = "mature"
    SENESCENT = "senescent"


class GeneType(StrEnum):
    OPERATOR = "operator"
    COEFFICIENT = "coefficient"
    SYMMETRY = "symmetry"
    PRESERVATION = "preservation"


class DevelopmentEventType(StrEnum):
    MUTATION = "mutation"
    CROSSOVER = "crossover"
    OPTIMIZATION = "optimization"
    STAGE_TRANSITION = "stage-transition"


class OperationType(StrEnum):
    SELF_GENERATE = "self-generate"
    SELF_OPTIMIZE = "self-optimize"
    SELF_REPRODUCE = "self-reproduce"
    SELF_MUTATE = "self-mutate"


class ReproductionMethod(StrEnum):
    CROSSOVER = "crossover"
    MUTATION = "mutation"
    CLONING = "cloning"


# =============================================================================
# GENOME
# =============================================================================

@dataclass
class KernelGene:
    """One heritable unit. Only coefficient genes are mutable."""
    type: GeneType
    value: Any
    expression_strength: float
    mutable: bool


@dataclass
class KernelGenome:
    """Identity and heritable content of an individual.

    Attributes:
        id: Unique identifier, minted by the EvolutionSession
        generation: 0 for initialized kernels, parent generation + 1 for offspring
        lineage: Parent ids (append-only)
        genes: Coefficient, symmetry and preservation genes
        fitness: Last evaluated fitness
        age: Generations survived (non-decreasing)
    """
    id: str
    generation: int = 0
    lineage: list[str] = field(default_factory=list)
    genes: list[KernelGene] = field(default_factory=list)
    fitness: float = 0.0
    age: int = 0


# =============================================================================
# DEVELOPMENT STATE
# =============================================================================

@dataclass(frozen=True)
class MutationRecord:
    gene_index: int
    old_value: float
    new_value: float
    impact: float
    timestamp: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class DevelopmentEvent:
    type: DevelopmentEventType
    description: str
    fitness_change: float = 0.0
    timestamp: datetime = field(default_factory=utc_now)


@dataclass
class OntogeneticState:
    stage: DevelopmentStage = DevelopmentStage.EMBRYONIC
    maturity: float = 0.0
    reproductive_capability: float = 0.0
    mutations: list[MutationRecord] = field(default_factory=list)
    development_history: list[DevelopmentEvent] = field(default_factory=list)


# =============================================================================
# ONTOGENETIC KERNEL
# =============================================================================

@dataclass
class OntogeneticKernel:
    """A Kernel with a genome and a development state.

    The kernel's own fields are exposed read-only; replacing coefficients
    means replacing `kernel` (see Kernel.with_coefficients).
    """
    kernel: Kernel
    genome: KernelGenome
    state: OntogeneticState = field(default_factory=OntogeneticState)

    @property
    def id(self) -> str:
        return self.genome.id

    @property
    def domain(self) -> DomainSpecification:
        return self.kernel.domain

    @property
    def order(self) -> int:
        return self.kernel.order

    @property
    def trees(self) -> tuple[RootedTree, ...]:
        return self.kernel.trees

    @property
    def coefficients(self) -> tuple[float, ...]:
        return self.kernel.coefficients

    @property
    def grip(self) -> GripMetric:
        return self.kernel.grip

    @property
    def bseries(self) -> BSeriesExpansion:
        return self.kernel.bseries

    @property
    def metadata(self) -> KernelMetadata:
        return self.kernel.metadata

    def copy(self) -> OntogeneticKernel:
        """Independent copy: genome and state are deep-copied, the frozen kernel is shared."""
        return OntogeneticKernel(
            kernel=self.kernel,
            genome=copy.deepcopy(self.genome),
            state=copy.deepcopy(self.state),
        )


# =============================================================================
# POPULATION AND RESULTS
# =============================================================================

@dataclass
class KernelPopulation:
    generation: int
    individuals: list[OntogeneticKernel]
    population_size: int
    average_fitness: float
    best_fitness: float
    diversity: float


@dataclass(frozen=True)
class FitnessScores:
    grip: float
    stability: float
    efficiency: float
    novelty: float
    symmetry: float


@dataclass
class FitnessEvaluation:
    kernel: OntogeneticKernel
    scores: FitnessScores
    overall: float
    rank: int


@dataclass
class ReproductionResult:
    parents: tuple[OntogeneticKernel, OntogeneticKernel]
    offspring: list[OntogeneticKernel]
    method: ReproductionMethod


# =============================================================================
# LINEAGE AND HISTORY
# =============================================================================

@dataclass
class LineageNode:
    """Node of the lineage DAG, keyed by genome id in the session."""
    id: str
    generation: int
    parents: list[str] = field(default_factory=list)
    children: list[str] = field(default_factory=list)
    alive: bool = True


@dataclass(frozen=True)
class OntogeneticOperation:
    type: OperationType
    input_ids: tuple[str, ...]
    output_ids: tuple[str, ...]
    timestamp: datetime = field(default_factory=utc_now)
