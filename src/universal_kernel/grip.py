"""
universal_kernel/grip.py - Grip Measurement and Optimization

Grip scores how well a coefficient vector fits its domain:

    contact    |cos(coeffs, w)| against domain weights w (common prefix)
    coverage   fraction of non-negligible coefficients
    efficiency 0.5 * sparsity + 0.5 / (1 + ||coeffs||)
    stability  mean of 1/(1 + max|c|) and 1/(1 + var(coeffs))

    overall = 0.3 contact + 0.3 coverage + 0.2 efficiency + 0.2 stability

Optimizers perform gradient ascent on `overall` using a central-difference
gradient. Degenerate inputs (empty or all-zero vectors) score 0 instead of
raising, so callers must not assume grip is always well-conditioned.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from .config import OptimizerConfig
from .types import GRIP_WEIGHTS, BSeriesExpansion, DomainSpecification, GripMetric

logger = logging.getLogger(__name__)

NEGLIGIBLE = 1e-10
DEFAULT_THRESHOLD = 0.8


@dataclass
class OptimizationResult:
    """Result from a grip optimization run."""
    coefficients: tuple[float, ...]
    grip: GripMetric
    iterations: int
    converged: bool


# =============================================================================
# DOMAIN WEIGHTS
# =============================================================================

def domain_weights(domain: DomainSpecification) -> np.ndarray:
    """Expected coefficient pattern for a domain, one weight per order index."""
    n = domain.order
    i = np.arange(max(n, 0), dtype=np.float64)

    if domain.type == "physics":
        return (-1.0) ** i / (i + 1)
    if domain.type == "chemistry":
        return np.exp(-i / 2)
    if domain.type == "biology":
        return 1 / (1 + i * i)
    if domain.type == "computing":
        return 2.0 ** -i
    if domain.type == "consciousness":
        return np.sin(i * math.pi / n)
    return 1 / (i + 1)


# =============================================================================
# MEASUREMENT
# =============================================================================

def _scores(coeffs: np.ndarray, weights: np.ndarray) -> tuple[float, float, float, float]:
    n = coeffs.size
    if n == 0:
        return 0.0, 0.0, 0.0, 0.0

    # contact
    k = min(n, weights.size)
    coeff_norm = float(np.linalg.norm(coeffs))
    weight_norm = float(np.linalg.norm(weights))
    if coeff_norm == 0.0 or weight_norm == 0.0:
        contact = 0.0
    else:
        dot = float(np.dot(coeffs[:k], weights[:k]))
        contact = min(1.0, abs(dot / (coeff_norm * weight_norm)))

    magnitudes = np.abs(coeffs)
    nonzero = int(np.count_nonzero(magnitudes > NEGLIGIBLE))
    coverage = nonzero / n

    sparsity = int(np.count_nonzero(magnitudes < NEGLIGIBLE)) / n
    efficiency = 0.5 * sparsity + 0.5 / (1 + coeff_norm)

    boundedness = 1 / (1 + float(magnitudes.max()))
    smoothness = 1 / (1 + float(np.var(coeffs)))
    stability = (boundedness + smoothness) / 2

    return contact, coverage, efficiency, stability


def _overall(coeffs: np.ndarray, weights: np.ndarray) -> float:
    contact, coverage, efficiency, stability = _scores(coeffs, weights)
    return (
        GRIP_WEIGHTS["contact"] * contact
        + GRIP_WEIGHTS["coverage"] * coverage
        + GRIP_WEIGHTS["efficiency"] * efficiency
        + GRIP_WEIGHTS["stability"] * stability
    )


def measure_grip(coeffs, domain: DomainSpecification) -> GripMetric:
    """Grip of a coefficient vector in a domain (all-zero metric when empty)."""
    vector = np.asarray(coeffs, dtype=np.float64)
    if vector.size == 0:
        return GripMetric.zero()
    contact, coverage, efficiency, stability = _scores(vector, domain_weights(domain))
    return GripMetric.from_scores(contact, coverage, efficiency, stability)


def is_sufficient_grip(grip: GripMetric, threshold: float = DEFAULT_THRESHOLD) -> bool:
    return grip.overall >= threshold


# =============================================================================
# OPTIMIZATION
# =============================================================================

def _gradient(coeffs: np.ndarray, weights: np.ndarray, epsilon: float) -> np.ndarray:
    """Central-difference gradient of overall grip."""
    gradient = np.zeros_like(coeffs)
    for i in range(coeffs.size):
        plus = coeffs.copy()
        plus[i] += epsilon
        minus = coeffs.copy()
        minus[i] -= epsilon
        gradient[i] = (_overall(plus, weights) - _overall(minus, weights)) / (2 * epsilon)
    return gradient


def optimize(
    expansion: BSeriesExpansion,
    max_iterations: int = 100,
    tolerance: float = 1e-6,
    config: OptimizerConfig | None = None,
) -> OptimizationResult:
    """Gradient ascent on overall grip.

    Step size decays as initial_rate * decay**(iteration / 10). Stops when the
    gradient norm drops below `tolerance` or iterations run out. If no step is
    taken the expansion's own grip is returned unchanged.

    Args:
        expansion: Starting point (term coefficients)
        max_iterations: Iteration cap
        tolerance: Gradient-norm convergence threshold
        config: Overrides the rate/epsilon settings (and the two limits above)

    Returns:
        OptimizationResult with final coefficients, grip and iteration count
    """
    if config is not None:
        max_iterations = config.max_iterations
        tolerance = config.tolerance
    else:
        config = OptimizerConfig(max_iterations=max_iterations, tolerance=tolerance)

    coeffs = np.array(expansion.coefficients, dtype=np.float64)
    weights = domain_weights(expansion.domain)
    grip = expansion.grip
    converged = False
    iteration = 0

    while iteration < max_iterations:
        gradient = _gradient(coeffs, weights, config.gradient_epsilon)
        if float(np.linalg.norm(gradient)) < tolerance:
            converged = True
            break

        rate = config.initial_learning_rate * config.learning_rate_decay ** (iteration / 10)
        coeffs = coeffs + rate * gradient
        grip = measure_grip(coeffs, expansion.domain)
        iteration += 1

    logger.debug(
        f"Grip optimization: {iteration} iterations, converged={converged}, "
        f"overall={grip.overall:.4f}"
    )

    return OptimizationResult(
        coefficients=tuple(float(c) for c in coeffs),
        grip=grip,
        iterations=iteration,
        converged=converged,
    )


def _line_search(
    coeffs: np.ndarray,
    direction: np.ndarray,
    weights: np.ndarray,
    steps: int,
) -> float:
    """Backtracking: halve from 1.0 until overall grip improves."""
    step = 1.0
    baseline = _overall(coeffs, weights)
    for _ in range(steps):
        if _overall(coeffs + step * direction, weights) > baseline:
            return step
        step *= 0.5
    return step


def conjugate_gradient_optimize(
    expansion: BSeriesExpansion,
    max_iterations: int = 100,
    tolerance: float = 1e-6,
    config: OptimizerConfig | None = None,
) -> OptimizationResult:
    """Polak-Ribiere conjugate gradient ascent (beta clamped at 0)."""
    if config is not None:
        max_iterations = config.max_iterations
        tolerance = config.tolerance
    else:
        config = OptimizerConfig(max_iterations=max_iterations, tolerance=tolerance)

    weights = domain_weights(expansion.domain)
    coeffs = np.array(expansion.coefficients, dtype=np.float64)
    gradient = _gradient(coeffs, weights, config.gradient_epsilon)
    direction = gradient.copy()
    converged = False
    iteration = 0

    while iteration < max_iterations:
        step = _line_search(coeffs, direction, weights, config.line_search_steps)
        new_coeffs = coeffs + step * direction
        new_gradient = _gradient(new_coeffs, weights, config.gradient_epsilon)

        if float(np.linalg.norm(new_gradient)) < tolerance:
            coeffs = new_coeffs
            converged = True
            break

        denominator = float(np.dot(gradient, gradient))
        beta = float(np.dot(new_gradient, new_gradient - gradient)) / denominator if denominator else 0.0
        direction = new_gradient + max(0.0, beta) * direction

        coeffs = new_coeffs
        gradient = new_gradient
        iteration += 1

    grip = measure_grip(coeffs, expansion.domain)
    logger.debug(
        f"Conjugate gradient: {iteration} iterations, converged={converged}, "
        f"overall={grip.overall:.4f}"
    )

    return OptimizationResult(
        coefficients=tuple(float(c) for c in coeffs),
        grip=grip,
        iterations=iteration,
        converged=converged,
    )
