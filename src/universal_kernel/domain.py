"""
universal_kernel/domain.py - Domain Analysis and Validation

Turns a GenerationContext into structural metadata about the problem domain:

    topology   - manifold dimension, curvature (from the optimization goal),
                 singularities (from constraints)
    symmetries - Lie groups, invariants and conserved quantities per domain
    flow       - identity vector field, integral curves, fixed points

The analysis is descriptive: it feeds logging and feature extraction but does
not change the coefficients of the generated kernel.

Cognitive tensor sizes:
    The consciousness manifold dimension is the total state count of the
    external cognitive tensor framework, 343 + 110 + 117 + 125 + 81 = 776
    (= 2**3 * 97). Only that size invariant is carried here.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from .types import DomainSpecification, GenerationContext

logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

COGNITIVE_TENSOR_STATES = {
    "gnn": 343,        # 7^3
    "das": 110,
    "esn": 117,
    "membrane": 125,   # 5^3
    "ecan": 81,        # 3^4
}

VALID_TREE_TYPES = {
    "physics": "hamiltonian",
    "chemistry": "reaction",
    "biology": "metabolic",
    "computing": "recursion",
    "consciousness": "echo",
}

MIN_ORDER = 1
MAX_ORDER = 10

MANIFOLD_DIMENSIONS = {
    "physics": 4,          # space-time
    "chemistry": 3,        # molecular space
    "biology": 2,          # network topology
    "computing": 1,        # sequential execution
    "consciousness": sum(COGNITIVE_TENSOR_STATES.values()),
}
DEFAULT_DIMENSION = 3

GOAL_CURVATURE = {
    "speed": 0.1,
    "accuracy": 0.5,
    "stability": 0.9,
    "balanced": 0.5,
}
DEFAULT_CURVATURE = 0.5

SINGULAR_CONSTRAINTS = ("singularity", "discontinuity")

# Vector fields are truncated to this side length
MAX_FIELD_SIDE = 10


# =============================================================================
# ANALYSIS TYPES
# =============================================================================

@dataclass(frozen=True)
class Singularity:
    position: tuple[Any, ...]
    type: str


@dataclass(frozen=True)
class FixedPoint:
    position: tuple[float, ...]
    stability: str


@dataclass
class TopologyAnalysis:
    manifold_dimension: int
    curvature: float
    singularities: list[Singularity] = field(default_factory=list)


@dataclass
class SymmetryAnalysis:
    lie_groups: list[str] = field(default_factory=list)
    invariants: list[str] = field(default_factory=list)
    conserved_quantities: list[str] = field(default_factory=list)


@dataclass
class FlowAnalysis:
    vector_field: np.ndarray
    integral_curves: list[list[list[float]]]
    fixed_points: list[FixedPoint]


@dataclass
class DomainAnalysis:
    """Combined topology/symmetry/flow analysis with a scalar complexity."""
    topology: TopologyAnalysis
    symmetries: SymmetryAnalysis
    flow: FlowAnalysis
    complexity: int


_SYMMETRIES: dict[str, tuple[list[str], list[str], list[str]]] = {
    "physics": (
        ["SO(3)", "SU(2)", "Lorentz"],
        ["energy", "momentum", "angular-momentum"],
        ["energy", "momentum", "charge"],
    ),
    "chemistry": (
        ["C_n", "D_n", "T_d"],
        ["mass", "charge", "equilibrium"],
        ["mass", "charge", "energy"],
    ),
    "biology": (
        ["homeostasis", "feedback"],
        ["fitness", "population", "energy-flow"],
        ["biomass", "energy", "information"],
    ),
    "computing": (
        ["Church-Rosser", "confluence"],
        ["termination", "correctness"],
        ["information", "complexity"],
    ),
    "consciousness": (
        ["self-reference", "recursion"],
        ["identity", "coherence", "awareness"],
        ["information", "coherence", "gestalt"],
    ),
}


# =============================================================================
# VALIDATION
# =============================================================================

def validate_domain(domain: DomainSpecification) -> bool:
    """True iff type is known, order is in [1, 10] and tree_type matches type."""
    expected_tree = VALID_TREE_TYPES.get(domain.type)
    if expected_tree is None:
        return False
    if domain.order < MIN_ORDER or domain.order > MAX_ORDER:
        return False
    return domain.tree_type == expected_tree


# =============================================================================
# ANALYSIS
# =============================================================================

def domain_dimension(domain_type: str) -> int:
    return MANIFOLD_DIMENSIONS.get(domain_type, DEFAULT_DIMENSION)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _analyze_topology(context: GenerationContext) -> TopologyAnalysis:
    singularities = []
    for constraint in context.constraints:
        if constraint.type in SINGULAR_CONSTRAINTS:
            value = constraint.value
            position = tuple(value) if isinstance(value, (list, tuple)) else (value,)
            singularities.append(Singularity(position=position, type=constraint.type))

    return TopologyAnalysis(
        manifold_dimension=domain_dimension(context.domain.type),
        curvature=GOAL_CURVATURE.get(context.optimization_goal, DEFAULT_CURVATURE),
        singularities=singularities,
    )


def _analyze_symmetries(context: GenerationContext) -> SymmetryAnalysis:
    entry = _SYMMETRIES.get(context.domain.type)
    if entry is None:
        return SymmetryAnalysis()
    lie_groups, invariants, conserved = entry
    return SymmetryAnalysis(
        lie_groups=list(lie_groups),
        invariants=list(invariants),
        conserved_quantities=list(conserved),
    )


def _analyze_flow(context: GenerationContext) -> FlowAnalysis:
    side = min(domain_dimension(context.domain.type), MAX_FIELD_SIDE)
    return FlowAnalysis(
        vector_field=np.eye(side),
        integral_curves=[[[0.0], [1.0], [2.0], [3.0]]],
        fixed_points=[FixedPoint(position=(0.0,), stability="stable")],
    )


def analyze_domain(context: GenerationContext) -> DomainAnalysis:
    """Analyze the context's domain.

    complexity = round(dim * (1 + curvature) + |lie groups| + |invariants|
                       + |fixed points|), halves rounding up.
    """
    topology = _analyze_topology(context)
    symmetries = _analyze_symmetries(context)
    flow = _analyze_flow(context)

    complexity = _round_half_up(
        topology.manifold_dimension * (1 + topology.curvature)
        + len(symmetries.lie_groups)
        + len(symmetries.invariants)
        + len(flow.fixed_points)
    )

    return DomainAnalysis(
        topology=topology,
        symmetries=symmetries,
        flow=flow,
        complexity=complexity,
    )


def extract_features(analysis: DomainAnalysis) -> np.ndarray:
    """8-dimensional feature vector for downstream models.

    [dimension, curvature, #singularities, #lie groups, #invariants,
     #conserved quantities, #fixed points, complexity]
    """
    return np.array([
        analysis.topology.manifold_dimension,
        analysis.topology.curvature,
        len(analysis.topology.singularities),
        len(analysis.symmetries.lie_groups),
        len(analysis.symmetries.invariants),
        len(analysis.symmetries.conserved_quantities),
        len(analysis.flow.fixed_points),
        analysis.complexity,
    ], dtype=np.float64)
