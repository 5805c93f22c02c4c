"""
universal_kernel/types.py - Core type definitions for B-series kernels

Declarations that come from callers (domain specifications, generation
contexts, grip profiles) are Pydantic v2 models so they validate on
construction and dump cleanly to JSON. Structures produced by the engine
(trees, tableaux, expansions, kernels) are frozen dataclasses.

A DomainSpecification is deliberately permissive: any type/order/tree_type
combination can be built, and `domain.validate_domain` decides whether it is
usable. That keeps "is this declaration valid?" a boolean question instead of
a construction error.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

DomainType = Literal["physics", "chemistry", "biology", "computing", "consciousness"]
TreeType = Literal["hamiltonian", "reaction", "metabolic", "recursion", "echo"]
OptimizationGoal = Literal["speed", "accuracy", "stability", "balanced"]
DifferentialOperator = Literal["chain", "product", "quotient"]
ExportFormat = Literal["json", "ggml", "scheme"]

KERNEL_VERSION = "1.0.0"


# =============================================================================
# ROOTED TREES
# =============================================================================

@dataclass(frozen=True)
class RootedTree:
    """Rooted tree (elementary differential) for B-series expansion.

    Attributes:
        order: Number of nodes
        label: Symbolic name encoding the structure, e.g. "f''(f, f)"
        children: Ordered subtrees (empty for the order-1 leaf)
    """
    order: int
    label: str
    children: tuple[RootedTree, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "order": self.order,
            "label": self.label,
            "children": [child.to_dict() for child in self.children],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RootedTree:
        return cls(
            order=int(data["order"]),
            label=str(data["label"]),
            children=tuple(cls.from_dict(c) for c in data.get("children", [])),
        )


@dataclass(frozen=True)
class ButcherTableau:
    """Runge-Kutta coefficients: strictly lower-triangular `a`, weights `b`, nodes `c`."""
    order: int
    stages: int
    a: tuple[tuple[float, ...], ...]
    b: tuple[float, ...]
    c: tuple[float, ...]


# =============================================================================
# DOMAIN DECLARATION
# =============================================================================

class DomainSpecification(BaseModel):
    """Problem domain a kernel is tuned for."""

    type: str = Field(..., description="physics | chemistry | biology | computing | consciousness")
    order: int = Field(..., description="Expansion order, valid range [1, 10]")
    tree_type: str = Field(..., description="Tree family; exactly one per domain type")
    symmetry: str = Field(default="", description="Free-text symmetry label")
    preserves: list[str] = Field(default_factory=list, description="Conserved quantities (descriptive)")

    model_config = {"frozen": True}


class Constraint(BaseModel):
    """Generation constraint, e.g. a singularity position."""
    type: str
    value: Any = None


class GenerationContext(BaseModel):
    """Everything `generate_kernel` needs to build a kernel."""

    domain: DomainSpecification
    initial_conditions: dict[str, Any] = Field(default_factory=dict)
    constraints: list[Constraint] = Field(default_factory=list)
    optimization_goal: OptimizationGoal = "balanced"
    optimizer: Literal["gradient", "conjugate_gradient"] = "gradient"

    model_config = {"frozen": True}


# =============================================================================
# GRIP
# =============================================================================

GRIP_WEIGHTS = {"contact": 0.3, "coverage": 0.3, "efficiency": 0.2, "stability": 0.2}


class GripMetric(BaseModel):
    """How well a coefficient vector fits its domain. All scores lie in [0, 1]."""

    contact: float = Field(..., ge=0.0, le=1.0, description="Alignment with domain weights")
    coverage: float = Field(..., ge=0.0, le=1.0, description="Fraction of non-negligible terms")
    efficiency: float = Field(..., ge=0.0, le=1.0, description="Sparsity and magnitude")
    stability: float = Field(..., ge=0.0, le=1.0, description="Boundedness and smoothness")
    overall: float = Field(..., ge=0.0, le=1.0)

    model_config = {"frozen": True}

    @classmethod
    def from_scores(
        cls,
        contact: float,
        coverage: float,
        efficiency: float,
        stability: float,
    ) -> GripMetric:
        """Build a metric whose overall score is the standard weighted sum."""
        overall = (
            GRIP_WEIGHTS["contact"] * contact
            + GRIP_WEIGHTS["coverage"] * coverage
            + GRIP_WEIGHTS["efficiency"] * efficiency
            + GRIP_WEIGHTS["stability"] * stability
        )
        return cls(
            contact=contact,
            coverage=coverage,
            efficiency=efficiency,
            stability=stability,
            overall=min(1.0, overall),
        )

    @classmethod
    def zero(cls) -> GripMetric:
        return cls(contact=0.0, coverage=0.0, efficiency=0.0, stability=0.0, overall=0.0)


# =============================================================================
# EXPANSIONS AND KERNELS
# =============================================================================

@dataclass(frozen=True)
class ElementaryDifferential:
    """One B-series term: a tree, its coefficient and its per-term grip."""
    tree: RootedTree
    coefficient: float
    grip: float
    order: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "tree": self.tree.to_dict(),
            "coefficient": self.coefficient,
            "grip": self.grip,
            "order": self.order,
        }


@dataclass(frozen=True)
class BSeriesExpansion:
    """Weighted sum over rooted trees for a domain."""
    domain: DomainSpecification
    terms: tuple[ElementaryDifferential, ...]
    convergence_order: int
    grip: GripMetric

    @property
    def coefficients(self) -> tuple[float, ...]:
        return tuple(t.coefficient for t in self.terms)

    @property
    def trees(self) -> tuple[RootedTree, ...]:
        return tuple(t.tree for t in self.terms)

    def with_coefficients(self, coefficients: tuple[float, ...] | list[float], grip: GripMetric) -> BSeriesExpansion:
        """Copy of this expansion whose terms carry new coefficients."""
        terms = tuple(
            ElementaryDifferential(tree=t.tree, coefficient=float(c), grip=t.grip, order=t.order)
            for t, c in zip(self.terms, coefficients)
        )
        return BSeriesExpansion(
            domain=self.domain,
            terms=terms,
            convergence_order=self.convergence_order,
            grip=grip,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "domain": self.domain.model_dump(),
            "terms": [t.to_dict() for t in self.terms],
            "convergence_order": self.convergence_order,
            "grip": self.grip.model_dump(),
        }


@dataclass(frozen=True)
class KernelMetadata:
    """Provenance of a generated kernel."""
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    version: str = KERNEL_VERSION
    optimization_iterations: int = 0


@dataclass(frozen=True)
class Kernel:
    """Generated kernel. `coefficients[i]` always belongs to `trees[i]`."""
    domain: DomainSpecification
    order: int
    trees: tuple[RootedTree, ...]
    coefficients: tuple[float, ...]
    grip: GripMetric
    bseries: BSeriesExpansion
    metadata: KernelMetadata = field(default_factory=KernelMetadata)

    def __post_init__(self):
        if len(self.trees) != len(self.coefficients):
            raise ValueError(
                f"trees and coefficients must be parallel "
                f"({len(self.trees)} != {len(self.coefficients)})"
            )

    def with_coefficients(self, coefficients, grip: GripMetric, **changes: Any) -> Kernel:
        """Copy carrying new coefficients; the expansion terms follow them."""
        coefficients = tuple(float(c) for c in coefficients)
        return replace(
            self,
            coefficients=coefficients,
            grip=grip,
            bseries=self.bseries.with_coefficients(coefficients, grip),
            **changes,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "domain": self.domain.model_dump(),
            "order": self.order,
            "trees": [t.to_dict() for t in self.trees],
            "coefficients": list(self.coefficients),
            "grip": self.grip.model_dump(),
            "bseries": self.bseries.to_dict(),
            "metadata": {
                "generated_at": self.metadata.generated_at.isoformat(),
                "version": self.metadata.version,
                "optimization_iterations": self.metadata.optimization_iterations,
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Kernel:
        domain = DomainSpecification.model_validate(data["domain"])
        bs = data["bseries"]
        bseries = BSeriesExpansion(
            domain=DomainSpecification.model_validate(bs["domain"]),
            terms=tuple(
                ElementaryDifferential(
                    tree=RootedTree.from_dict(t["tree"]),
                    coefficient=float(t["coefficient"]),
                    grip=float(t["grip"]),
                    order=int(t["order"]),
                )
                for t in bs["terms"]
            ),
            convergence_order=int(bs["convergence_order"]),
            grip=GripMetric.model_validate(bs["grip"]),
        )
        meta = data.get("metadata", {})
        metadata = KernelMetadata(
            generated_at=datetime.fromisoformat(meta["generated_at"]) if "generated_at" in meta
            else datetime.now(timezone.utc),
            version=meta.get("version", KERNEL_VERSION),
            optimization_iterations=int(meta.get("optimization_iterations", 0)),
        )
        return cls(
            domain=domain,
            order=int(data["order"]),
            trees=tuple(RootedTree.from_dict(t) for t in data["trees"]),
            coefficients=tuple(float(c) for c in data["coefficients"]),
            grip=GripMetric.model_validate(data["grip"]),
            bseries=bseries,
            metadata=metadata,
        )


@dataclass(frozen=True)
class OperatorApplication:
    """Result of applying a differential operator to two kernels."""
    operator: str
    left: Kernel
    right: Kernel
    result: Kernel
