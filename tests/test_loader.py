"""
tests/test_loader.py - YAML Config Loader Tests
"""

import pytest
from pydantic import ValidationError

from universal_kernel.config import DevelopmentSchedule, EvolutionParameters
from universal_kernel.errors import UnknownComponent
from universal_kernel.loader import OntogenesisConfigLoader, load_ontogenesis_config

RUN_YAML = """
evolution:
  population_size: 6
  mutation_rate: 0.25
  max_generations: 4
development_schedule:
  juvenile_age: 2
seed_kernels:
  - domain: chemistry
    order: 2
  - domain: biology
    order: 1
"""


@pytest.fixture
def loader():
    return OntogenesisConfigLoader()


class TestOntogenesisConfigLoader:

    def test_sections(self, loader):
        config = loader.load_string(RUN_YAML)
        assert config.evolution.population_size == 6
        assert config.evolution.mutation_rate == 0.25
        assert config.evolution.crossover_rate == 0.8
        assert config.development_schedule.juvenile_age == 2
        assert config.development_schedule.mature_age == 5

    def test_seed_kernels_generated(self, loader):
        config = loader.load_string(RUN_YAML)
        assert [k.domain.type for k in config.seed_kernels] == ["chemistry", "biology"]
        assert [k.order for k in config.seed_kernels] == [2, 1]

    def test_empty_document_uses_defaults(self, loader):
        config = loader.load_string("")
        assert config.evolution == EvolutionParameters()
        assert config.development_schedule == DevelopmentSchedule()
        assert config.seed_kernels == []

    def test_fitness_function_passed_through(self, loader):
        def fitness(kernel):
            return 0.5

        config = loader.load_string("evolution:\n  population_size: 2\n", fitness)
        assert config.fitness_function is fitness

    def test_bounds_validated(self, loader):
        with pytest.raises(ValidationError):
            loader.load_string("evolution:\n  elitism_rate: 2.0\n")

    def test_unknown_preset(self, loader):
        with pytest.raises(UnknownComponent):
            loader.load_string("seed_kernels:\n  - alchemy\n")

    def test_non_mapping_rejected(self, loader):
        with pytest.raises(ValueError):
            loader.load_string("- 1\n- 2\n")

    def test_load_file(self, tmp_path):
        path = tmp_path / "run.yaml"
        path.write_text("evolution:\n  max_generations: 0\nseed_kernels:\n  - domain: computing\n    order: 1\n")
        config = load_ontogenesis_config(path)
        assert config.evolution.max_generations == 0
        assert config.seed_kernels[0].order == 1
