"""
universal_kernel/generator.py - Universal Kernel Generator

Orchestrates the pipeline that turns a domain declaration into a kernel:

    1. Validate the domain (nothing is built for an invalid declaration)
    2. Analyze topology / symmetries / flow
    3. Seed a grip profile from the optimization goal
    4. Expand into a B-series over the rooted-tree forest
    5. Optimize coefficients for grip
    6. Assemble the Kernel

Also provides the five domain presets, the chain/product/quotient operators,
verification, and text export (json / ggml / scheme) with JSON import.

Usage:
    from universal_kernel.generator import generate_physics_kernel, export_kernel

    kernel = generate_physics_kernel()
    print(export_kernel(kernel, "ggml"))
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from .bseries import (
    chain_compose,
    generate_expansion,
    generate_runge_kutta_expansion,
    product_compose,
    verify_order_conditions,
)
from .domain import analyze_domain, extract_features, validate_domain
from .errors import InvalidDomainSpecification, UnknownComponent, UnknownFormat, UnknownOperator
from .grip import conjugate_gradient_optimize, is_sufficient_grip, optimize
from .trees import generate_forest
from .types import (
    BSeriesExpansion,
    DomainSpecification,
    ElementaryDifferential,
    GenerationContext,
    GripMetric,
    Kernel,
    KernelMetadata,
    OperatorApplication,
)

logger = logging.getLogger(__name__)

VERIFY_GRIP_THRESHOLD = 0.6

GOAL_GRIP = {
    "speed": (0.6, 0.7, 1.0, 0.6),
    "accuracy": (1.0, 1.0, 0.5, 0.9),
    "stability": (0.8, 0.8, 0.6, 1.0),
    "balanced": (0.8, 0.8, 0.8, 0.8),
}


# =============================================================================
# GENERATION
# =============================================================================

def goal_grip(goal: str) -> GripMetric:
    """Initial grip profile for an optimization goal; overall is the plain mean."""
    contact, coverage, efficiency, stability = GOAL_GRIP[goal]
    return GripMetric(
        contact=contact,
        coverage=coverage,
        efficiency=efficiency,
        stability=stability,
        overall=(contact + coverage + efficiency + stability) / 4,
    )


def generate_kernel(context: GenerationContext) -> Kernel:
    """Generate an optimized kernel for the context's domain.

    Raises:
        InvalidDomainSpecification: type/order/tree_type do not validate
    """
    domain = context.domain
    if not validate_domain(domain):
        raise InvalidDomainSpecification(domain.model_dump())

    analysis = analyze_domain(context)
    logger.debug(f"Domain features for {domain.type}: {extract_features(analysis).tolist()}")

    expansion = generate_expansion(domain, goal_grip(context.optimization_goal))

    if context.optimizer == "conjugate_gradient":
        result = conjugate_gradient_optimize(expansion)
    else:
        result = optimize(expansion)

    logger.info(
        f"Generated {domain.type} kernel: order={domain.order}, "
        f"terms={len(expansion.terms)}, grip={result.grip.overall:.4f}, "
        f"iterations={result.iterations}"
    )

    return Kernel(
        domain=domain,
        order=domain.order,
        trees=expansion.trees,
        coefficients=result.coefficients,
        grip=result.grip,
        bseries=expansion.with_coefficients(result.coefficients, result.grip),
        metadata=KernelMetadata(optimization_iterations=result.iterations),
    )


def _kernel_from_expansion(expansion: BSeriesExpansion, order: int) -> Kernel:
    return Kernel(
        domain=expansion.domain,
        order=order,
        trees=expansion.trees,
        coefficients=expansion.coefficients,
        grip=expansion.grip,
        bseries=expansion,
    )


def generate_runge_kutta(order: int) -> Kernel:
    """Runge-Kutta kernel straight from the tableau (no optimization)."""
    return _kernel_from_expansion(generate_runge_kutta_expansion(order), order)


# =============================================================================
# DOMAIN PRESETS
# =============================================================================

@dataclass(frozen=True)
class DomainPreset:
    tree_type: str
    symmetry: str
    preserves: tuple[str, ...]
    goal: str
    default_order: int
    initial_conditions: dict[str, Any] = field(default_factory=dict)


DOMAIN_PRESETS = {
    "physics": DomainPreset(
        tree_type="hamiltonian",
        symmetry="Noether",
        preserves=("energy", "momentum", "angular-momentum"),
        goal="stability",
        default_order=4,
        initial_conditions={"energy": 1.0},
    ),
    "chemistry": DomainPreset(
        tree_type="reaction",
        symmetry="detailed-balance",
        preserves=("mass", "charge", "equilibrium"),
        goal="accuracy",
        default_order=3,
        initial_conditions={"concentration": 1.0},
    ),
    "biology": DomainPreset(
        tree_type="metabolic",
        symmetry="homeostasis",
        preserves=("biomass", "energy", "fitness"),
        goal="balanced",
        default_order=3,
        initial_conditions={"population": 1.0},
    ),
    "computing": DomainPreset(
        tree_type="recursion",
        symmetry="Church-Rosser",
        preserves=("termination", "correctness", "complexity"),
        goal="speed",
        default_order=4,
        initial_conditions={"state": 0},
    ),
    "consciousness": DomainPreset(
        tree_type="echo",
        symmetry="self-reference",
        preserves=("identity", "coherence", "gestalt"),
        goal="balanced",
        default_order=4,
        initial_conditions={"awareness": 1.0, "depth": 776},
    ),
}


def preset_context(domain_type: str, order: int | None = None) -> GenerationContext:
    preset = DOMAIN_PRESETS.get(domain_type)
    if preset is None:
        raise UnknownComponent("preset", domain_type)

    return GenerationContext(
        domain=DomainSpecification(
            type=domain_type,
            order=preset.default_order if order is None else order,
            tree_type=preset.tree_type,
            symmetry=preset.symmetry,
            preserves=list(preset.preserves),
        ),
        initial_conditions=dict(preset.initial_conditions),
        optimization_goal=preset.goal,
    )


def generate_preset_kernel(domain_type: str, order: int | None = None) -> Kernel:
    """Generate a kernel from one of the five named presets."""
    return generate_kernel(preset_context(domain_type, order))


def generate_physics_kernel(order: int = 4) -> Kernel:
    return generate_preset_kernel("physics", order)


def generate_chemistry_kernel(order: int = 3) -> Kernel:
    return generate_preset_kernel("chemistry", order)


def generate_biology_kernel(order: int = 3) -> Kernel:
    return generate_preset_kernel("biology", order)


def generate_computing_kernel(order: int = 4) -> Kernel:
    return generate_preset_kernel("computing", order)


def generate_consciousness_kernel(order: int = 4) -> Kernel:
    return generate_preset_kernel("consciousness", order)


# =============================================================================
# DIFFERENTIAL OPERATORS
# =============================================================================

def _compose(expansion: BSeriesExpansion, order: int) -> Kernel:
    return _kernel_from_expansion(expansion, order)


def _quotient(f: Kernel, g: Kernel) -> Kernel:
    """Positional combination (l - r) / (1 + |r|) over the max-order forest.

    Coefficients are paired by index, not by tree label, unlike chain and
    product.
    """
    max_order = max(f.order, g.order)
    trees = generate_forest(max_order)

    coefficients = []
    for i in range(len(trees)):
        left = f.coefficients[i] if i < len(f.coefficients) else 0.0
        right = g.coefficients[i] if i < len(g.coefficients) else 0.0
        coefficients.append((left - right) / (1 + abs(right)))

    grip = GripMetric(
        contact=(f.grip.contact + g.grip.contact) / 2,
        coverage=min(f.grip.coverage, g.grip.coverage),
        efficiency=f.grip.efficiency * g.grip.efficiency,
        stability=min(f.grip.stability, g.grip.stability) * 0.9,
        overall=(f.grip.overall + g.grip.overall) / 2.2,
    )

    bseries = BSeriesExpansion(
        domain=f.domain,
        terms=tuple(
            ElementaryDifferential(tree=tree, coefficient=c, grip=grip.overall, order=tree.order)
            for tree, c in zip(trees, coefficients)
        ),
        convergence_order=max_order,
        grip=grip,
    )
    return _kernel_from_expansion(bseries, max_order)


def apply_operator(operator: str, left: Kernel, right: Kernel) -> OperatorApplication:
    """Combine two kernels with chain, product or quotient.

    Raises:
        UnknownOperator: for any other operator name
    """
    if operator == "chain":
        result = _compose(chain_compose(left.bseries, right.bseries), max(left.order, right.order))
    elif operator == "product":
        result = _compose(product_compose(left.bseries, right.bseries), max(left.order, right.order))
    elif operator == "quotient":
        result = _quotient(left, right)
    else:
        raise UnknownOperator(operator)

    return OperatorApplication(operator=operator, left=left, right=right, result=result)


# =============================================================================
# VERIFICATION
# =============================================================================

def verify_kernel(kernel: Kernel) -> bool:
    """Order conditions hold, grip overall >= 0.6 and the domain validates."""
    if not verify_order_conditions(kernel.bseries):
        return False
    if not is_sufficient_grip(kernel.grip, VERIFY_GRIP_THRESHOLD):
        return False
    return validate_domain(kernel.domain)


# =============================================================================
# EXPORT / IMPORT
# =============================================================================

def format_number(value: float) -> str:
    """Shortest round-trip text; integral values drop the decimal part."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def _export_ggml(kernel: Kernel) -> str:
    coefficients = ", ".join(format_number(c) for c in kernel.coefficients)
    return (
        f"GGML Kernel {kernel.domain.type}\n"
        f"Order: {kernel.order}\n"
        f"Coefficients: [{coefficients}]\n"
        f"Grip: {kernel.grip.overall:.4f}\n"
        f"Trees: {len(kernel.trees)}"
    )


def _export_scheme(kernel: Kernel) -> str:
    coefficients = " ".join(format_number(c) for c in kernel.coefficients)
    return (
        f"(define {kernel.domain.type}-kernel\n"
        f"  '((order . {kernel.order})\n"
        f"    (trees . {len(kernel.trees)})\n"
        f"    (coefficients . ({coefficients}))\n"
        f"    (grip . {kernel.grip.overall:.4f})\n"
        f"    (symmetry . \"{kernel.domain.symmetry}\")))"
    )


def export_kernel(kernel: Kernel, fmt: str) -> str:
    """Serialize a kernel as json, ggml or scheme text.

    Raises:
        UnknownFormat: for any other format name
    """
    if fmt == "json":
        return json.dumps(kernel.to_dict(), indent=2, ensure_ascii=False)
    if fmt == "ggml":
        return _export_ggml(kernel)
    if fmt == "scheme":
        return _export_scheme(kernel)
    raise UnknownFormat(fmt)


def kernel_from_json(text: str) -> Kernel:
    """Rebuild a Kernel from export_kernel(kernel, "json")."""
    return Kernel.from_dict(json.loads(text))
