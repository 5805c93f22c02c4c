"""
universal_kernel/loader.py - YAML Configuration Loader

Loads an OntogenesisConfig from a declarative YAML file:

    evolution:
      population_size: 6
      mutation_rate: 0.2
      max_generations: 5
    development_schedule:
      juvenile_age: 2
    seed_kernels:
      - physics
      - domain: chemistry
        order: 2

Sections map onto the pydantic config models, so bounds are validated on
load. Seed kernels name one of the domain presets and are generated when the
file is parsed. A fitness function override cannot be expressed in YAML; pass
it to parse() instead.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from .config import DevelopmentSchedule, EvolutionParameters, OntogenesisConfig
from .generator import generate_preset_kernel
from .types import Kernel

logger = logging.getLogger(__name__)


class OntogenesisConfigLoader:
    """Parse ontogenesis run configurations from YAML.

    Example:
        loader = OntogenesisConfigLoader()
        config = loader.load_file("runs/physics.yaml")
        generations = run_ontogenesis(create_evolution_session(7), config)
    """

    def load_file(self, path: str | Path, fitness_function=None) -> OntogenesisConfig:
        path = Path(path)
        with open(path) as f:
            raw = yaml.safe_load(f)

        logger.debug(f"Loaded ontogenesis config from {path}")
        return self.parse(raw, fitness_function)

    def load_string(self, text: str, fitness_function=None) -> OntogenesisConfig:
        return self.parse(yaml.safe_load(text), fitness_function)

    def parse(self, raw: dict[str, Any] | None, fitness_function=None) -> OntogenesisConfig:
        """Build a config from already-parsed YAML (None means all defaults).

        Raises:
            ValueError: top level is not a mapping
            pydantic.ValidationError: a section violates its model's bounds
            UnknownComponent: a seed names an unknown preset
        """
        raw = raw or {}
        if not isinstance(raw, dict):
            raise ValueError(f"Ontogenesis config must be a mapping, got {type(raw).__name__}")

        return OntogenesisConfig(
            evolution=EvolutionParameters(**(raw.get("evolution") or {})),
            seed_kernels=[self._parse_seed(seed) for seed in raw.get("seed_kernels") or []],
            development_schedule=DevelopmentSchedule(**(raw.get("development_schedule") or {})),
            fitness_function=fitness_function,
        )

    def _parse_seed(self, seed: str | dict[str, Any]) -> Kernel:
        """A seed is a preset name, or a mapping with `domain` and optional `order`."""
        if isinstance(seed, str):
            return generate_preset_kernel(seed)
        return generate_preset_kernel(seed["domain"], seed.get("order"))


def load_ontogenesis_config(path: str | Path, fitness_function=None) -> OntogenesisConfig:
    """Convenience wrapper around OntogenesisConfigLoader().load_file()."""
    return OntogenesisConfigLoader().load_file(path, fitness_function)
