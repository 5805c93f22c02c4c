"""
universal_kernel/config.py - Optimizer and evolution configuration

Tunable parameters are frozen Pydantic models with bounded fields, so a bad
rate or a negative population size fails at construction rather than deep
inside a generation loop.

Usage:
    from universal_kernel.config import EvolutionParameters, OntogenesisConfig

    params = EvolutionParameters(population_size=8, mutation_rate=0.1)
    config = OntogenesisConfig(evolution=params, seed_kernels=[kernel])
"""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, model_validator

if TYPE_CHECKING:
    from .ontogenesis_types import OntogeneticKernel
    from .types import Kernel


# =============================================================================
# GRIP OPTIMIZER
# =============================================================================

class OptimizerConfig(BaseModel):
    """Gradient-ascent settings for the grip optimizer."""

    max_iterations: int = Field(default=100, ge=0, le=100000)
    tolerance: float = Field(default=1e-6, ge=0.0, description="Gradient-norm stopping threshold")
    gradient_epsilon: float = Field(default=1e-8, gt=0.0, description="Central-difference step")
    initial_learning_rate: float = Field(default=0.1, gt=0.0)
    learning_rate_decay: float = Field(default=0.95, gt=0.0, le=1.0, description="Decay per 10 iterations")
    line_search_steps: int = Field(default=10, ge=1, le=64, description="Max step halvings (conjugate gradient)")

    model_config = {"frozen": True}


# =============================================================================
# EVOLUTION
# =============================================================================

class EvolutionParameters(BaseModel):
    """Population-level evolution settings."""

    population_size: int = Field(default=10, ge=1, le=100000)
    mutation_rate: float = Field(default=0.1, ge=0.0, le=1.0)
    crossover_rate: float = Field(default=0.8, ge=0.0, le=1.0)
    elitism_rate: float = Field(default=0.2, ge=0.0, le=1.0)
    max_generations: int = Field(default=10, ge=0)
    fitness_threshold: float = Field(default=0.95, description="Early-stop target for best fitness")
    tournament_size: int = Field(default=3, ge=1)

    model_config = {"frozen": True}


class DevelopmentSchedule(BaseModel):
    """Maturity/age thresholds of the forward-only development stage machine."""

    juvenile_maturity: float = Field(default=0.5, ge=0.0, le=1.0)
    juvenile_age: int = Field(default=3, ge=0)
    mature_maturity: float = Field(default=0.8, ge=0.0, le=1.0)
    mature_age: int = Field(default=5, ge=0)
    senescent_age: int = Field(default=20, ge=0)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_stage_order(self) -> DevelopmentSchedule:
        if self.mature_maturity < self.juvenile_maturity:
            raise ValueError("mature_maturity must be >= juvenile_maturity")
        if not self.juvenile_age <= self.mature_age <= self.senescent_age:
            raise ValueError("stage ages must satisfy juvenile <= mature <= senescent")
        return self


@dataclass
class OntogenesisConfig:
    """Inputs of a complete ontogenesis run.

    Attributes:
        evolution: Population/evolution parameters
        seed_kernels: Kernels that seed generation 0 (may be empty)
        development_schedule: Stage thresholds used when aging individuals
        fitness_function: Optional override for the default fitness formula
    """
    evolution: EvolutionParameters = field(default_factory=EvolutionParameters)
    seed_kernels: list[Kernel] = field(default_factory=list)
    development_schedule: DevelopmentSchedule = field(default_factory=DevelopmentSchedule)
    fitness_function: Callable[[OntogeneticKernel], float] | None = None
