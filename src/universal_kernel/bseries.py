"""
universal_kernel/bseries.py - B-Series Expansion Engine

A B-series is a weighted sum over rooted trees:

    B(a, h f) = sum_t  h^|t| / sigma(t) * a(t) * F(t)

This engine uses a simplified single-formula coefficient per tree instead of
the exact elementary-weight product of B-series theory:

    a(t) = (sum_i b_i * c_i^(k-1)) / (sigma(t) * k),    k = order of t

with (b, c) taken from the Butcher tableau for min(order, 4). The terms of an
expansion of order n run over every tree of order 1..n, so each order-p
condition (sum of order-p coefficients == 1/p!) has terms to check.

Composition:
    chain_compose   - (f o g)' : coefficient f(t) * g(t), label matched
    product_compose - (f g)'   : coefficient f(t) + g(t), label matched
"""
from __future__ import annotations

import math

from .trees import TreeArena, generate_forest, symmetry_factor, tree_balance, tree_depth
from .types import (
    BSeriesExpansion,
    ButcherTableau,
    DomainSpecification,
    ElementaryDifferential,
    GripMetric,
    RootedTree,
)

ORDER_CONDITION_TOLERANCE = 1e-10

# =============================================================================
# BUTCHER TABLEAUX
# =============================================================================

EULER = ButcherTableau(
    order=1,
    stages=1,
    a=((0.0,),),
    b=(1.0,),
    c=(0.0,),
)

MIDPOINT = ButcherTableau(
    order=2,
    stages=2,
    a=(
        (0.0, 0.0),
        (1 / 2, 0.0),
    ),
    b=(0.0, 1.0),
    c=(0.0, 1 / 2),
)

KUTTA3 = ButcherTableau(
    order=3,
    stages=3,
    a=(
        (0.0, 0.0, 0.0),
        (1 / 2, 0.0, 0.0),
        (-1.0, 2.0, 0.0),
    ),
    b=(1 / 6, 2 / 3, 1 / 6),
    c=(0.0, 1 / 2, 1.0),
)

RK4 = ButcherTableau(
    order=4,
    stages=4,
    a=(
        (0.0, 0.0, 0.0, 0.0),
        (1 / 2, 0.0, 0.0, 0.0),
        (0.0, 1 / 2, 0.0, 0.0),
        (0.0, 0.0, 1.0, 0.0),
    ),
    b=(1 / 6, 1 / 3, 1 / 3, 1 / 6),
    c=(0.0, 1 / 2, 1 / 2, 1.0),
)

_TABLEAUX = {1: EULER, 2: MIDPOINT, 3: KUTTA3, 4: RK4}


def get_butcher_tableau(order: int) -> ButcherTableau:
    """Tableau for min(order, 4); orders below 1 fall back to Euler."""
    if order < 1:
        return EULER
    return _TABLEAUX[min(order, 4)]


# =============================================================================
# EXPANSION
# =============================================================================

def _tree_coefficient(tree: RootedTree, tableau: ButcherTableau, arena: TreeArena) -> float:
    k = tree.order
    quadrature = sum(b * c ** (k - 1) for b, c in zip(tableau.b, tableau.c))
    sigma = symmetry_factor(tree, arena)
    return quadrature / (sigma * k)


def _term_grip(tree: RootedTree, grip: GripMetric) -> float:
    depth_ratio = tree_depth(tree) / tree.order
    balance_ratio = tree_balance(tree)
    return (
        grip.contact * depth_ratio
        + grip.coverage * balance_ratio
        + grip.efficiency / tree.order
        + grip.stability * 0.8
    ) / 4


def generate_expansion(domain: DomainSpecification, grip: GripMetric) -> BSeriesExpansion:
    """Build the B-series expansion of `domain` under the given grip profile."""
    tableau = get_butcher_tableau(domain.order)
    arena = TreeArena()

    terms = tuple(
        ElementaryDifferential(
            tree=tree,
            coefficient=_tree_coefficient(tree, tableau, arena),
            grip=_term_grip(tree, grip),
            order=tree.order,
        )
        for tree in generate_forest(domain.order)
    )

    return BSeriesExpansion(
        domain=domain,
        terms=terms,
        convergence_order=domain.order,
        grip=grip,
    )


def generate_runge_kutta_expansion(order: int) -> BSeriesExpansion:
    """Expansion for the fixed Runge-Kutta preset domain."""
    domain = DomainSpecification(
        type="computing",
        order=order,
        tree_type="recursion",
        symmetry="time-reversible",
        preserves=["energy", "momentum"],
    )
    grip = GripMetric(contact=1.0, coverage=1.0, efficiency=0.9, stability=1.0, overall=0.975)
    return generate_expansion(domain, grip)


# =============================================================================
# COMPOSITION
# =============================================================================

def find_coefficient(tree: RootedTree, terms: tuple[ElementaryDifferential, ...]) -> float:
    """Coefficient of the first term whose tree label matches, else 0."""
    for term in terms:
        if term.tree.label == tree.label:
            return term.coefficient
    return 0.0


def chain_compose(f: BSeriesExpansion, g: BSeriesExpansion) -> BSeriesExpansion:
    """Chain-rule composition: label-matched coefficient product.

    Grip: contact, coverage, efficiency and overall are averaged; stability
    takes the minimum.
    """
    max_order = max(f.convergence_order, g.convergence_order)
    term_grip = (f.grip.overall + g.grip.overall) / 2

    terms = tuple(
        ElementaryDifferential(
            tree=tree,
            coefficient=find_coefficient(tree, f.terms) * find_coefficient(tree, g.terms),
            grip=term_grip,
            order=tree.order,
        )
        for tree in generate_forest(max_order)
    )

    grip = GripMetric(
        contact=(f.grip.contact + g.grip.contact) / 2,
        coverage=(f.grip.coverage + g.grip.coverage) / 2,
        efficiency=(f.grip.efficiency + g.grip.efficiency) / 2,
        stability=min(f.grip.stability, g.grip.stability),
        overall=(f.grip.overall + g.grip.overall) / 2,
    )
    return BSeriesExpansion(domain=f.domain, terms=terms, convergence_order=max_order, grip=grip)


def product_compose(f: BSeriesExpansion, g: BSeriesExpansion) -> BSeriesExpansion:
    """Product-rule composition: label-matched coefficient sum.

    Grip: contact takes the maximum, coverage/efficiency/overall are averaged,
    stability takes the minimum.
    """
    max_order = max(f.convergence_order, g.convergence_order)
    term_grip = max(f.grip.overall, g.grip.overall)

    terms = tuple(
        ElementaryDifferential(
            tree=tree,
            coefficient=find_coefficient(tree, f.terms) + find_coefficient(tree, g.terms),
            grip=term_grip,
            order=tree.order,
        )
        for tree in generate_forest(max_order)
    )

    grip = GripMetric(
        contact=max(f.grip.contact, g.grip.contact),
        coverage=(f.grip.coverage + g.grip.coverage) / 2,
        efficiency=(f.grip.efficiency + g.grip.efficiency) / 2,
        stability=min(f.grip.stability, g.grip.stability),
        overall=(f.grip.overall + g.grip.overall) / 2,
    )
    return BSeriesExpansion(domain=f.domain, terms=terms, convergence_order=max_order, grip=grip)


# =============================================================================
# ORDER CONDITIONS
# =============================================================================

def verify_order_conditions(expansion: BSeriesExpansion) -> bool:
    """For p in 1..convergence_order: sum of order-p coefficients == 1/p!."""
    for p in range(1, expansion.convergence_order + 1):
        total = sum(t.coefficient for t in expansion.terms if t.order == p)
        if abs(total - 1 / math.factorial(p)) > ORDER_CONDITION_TOLERANCE:
            return False
    return True
