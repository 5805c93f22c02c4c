"""
tests/test_config.py - Configuration Model Tests
"""

import pytest
from pydantic import ValidationError

from universal_kernel.config import (
    DevelopmentSchedule,
    EvolutionParameters,
    OntogenesisConfig,
    OptimizerConfig,
)


class TestEvolutionParameters:

    def test_defaults(self):
        params = EvolutionParameters()
        assert params.population_size == 10
        assert params.mutation_rate == 0.1
        assert params.crossover_rate == 0.8
        assert params.elitism_rate == 0.2
        assert params.max_generations == 10
        assert params.fitness_threshold == 0.95

    def test_population_must_be_positive(self):
        with pytest.raises(ValidationError):
            EvolutionParameters(population_size=0)

    @pytest.mark.parametrize("field", ["mutation_rate", "crossover_rate", "elitism_rate"])
    def test_rates_bounded(self, field):
        with pytest.raises(ValidationError):
            EvolutionParameters(**{field: 1.5})

    def test_frozen(self):
        params = EvolutionParameters()
        with pytest.raises(ValidationError):
            params.population_size = 3


class TestDevelopmentSchedule:

    def test_defaults(self):
        schedule = DevelopmentSchedule()
        assert (schedule.juvenile_age, schedule.mature_age, schedule.senescent_age) == (3, 5, 20)

    def test_ages_must_increase(self):
        with pytest.raises(ValidationError):
            DevelopmentSchedule(juvenile_age=6, mature_age=5)

    def test_maturity_must_increase(self):
        with pytest.raises(ValidationError):
            DevelopmentSchedule(juvenile_maturity=0.9, mature_maturity=0.5)


class TestOptimizerConfig:

    def test_defaults(self):
        config = OptimizerConfig()
        assert config.max_iterations == 100
        assert config.tolerance == 1e-6

    def test_epsilon_positive(self):
        with pytest.raises(ValidationError):
            OptimizerConfig(gradient_epsilon=0.0)


class TestOntogenesisConfig:

    def test_defaults(self):
        config = OntogenesisConfig()
        assert config.seed_kernels == []
        assert config.fitness_function is None
        assert config.evolution == EvolutionParameters()
