"""
universal_kernel - B-Series Kernel Generation and Ontogenesis

Generates domain-tuned "kernels" (B-series expansions over rooted trees),
composes them with chain/product/quotient operators, and evolves them as
genomes with self-generation, self-optimization and reproduction.

Quick Start:
    from universal_kernel import (
        create_evolution_session,
        generate_physics_kernel,
        export_kernel,
        initialize,
        self_generate,
    )

    # Generate a kernel from a preset
    kernel = generate_physics_kernel()
    print(export_kernel(kernel, "ggml"))

    # Evolve it
    session = create_evolution_session(seed=42)
    parent = initialize(session, kernel)
    child = self_generate(session, parent)

Modules:
    universal_kernel.trees             - Rooted tree enumeration (A000081)
    universal_kernel.domain            - Domain validation and analysis
    universal_kernel.bseries           - Butcher tableaux, expansion, composition
    universal_kernel.grip              - Grip measurement and optimization
    universal_kernel.generator         - Kernel generation, operators, export
    universal_kernel.ontogenesis       - Self-generating, evolving kernels
    universal_kernel.session           - Caller-owned RNG, history and lineage
    universal_kernel.config            - Pydantic configuration models
    universal_kernel.loader            - YAML run-configuration loading
    universal_kernel.types             - Core type definitions
    universal_kernel.ontogenesis_types - Genome, state and population types
"""

__version__ = "1.0.0"

# Trees
from .trees import (
    TreeArena,
    count_trees,
    generate_domain_specific,
    generate_forest,
    generate_trees,
    integer_partitions,
    relabel_for_domain,
    symmetry_factor,
)

# Domain analysis
from .domain import (
    COGNITIVE_TENSOR_STATES,
    DomainAnalysis,
    analyze_domain,
    extract_features,
    validate_domain,
)

# B-series
from .bseries import (
    chain_compose,
    generate_expansion,
    generate_runge_kutta_expansion,
    get_butcher_tableau,
    product_compose,
    verify_order_conditions,
)

# Grip
from .grip import (
    OptimizationResult,
    conjugate_gradient_optimize,
    is_sufficient_grip,
    measure_grip,
    optimize,
)

# Generator
from .generator import (
    DOMAIN_PRESETS,
    apply_operator,
    export_kernel,
    generate_biology_kernel,
    generate_chemistry_kernel,
    generate_computing_kernel,
    generate_consciousness_kernel,
    generate_kernel,
    generate_physics_kernel,
    generate_preset_kernel,
    generate_runge_kutta,
    kernel_from_json,
    verify_kernel,
)

# Ontogenesis
from .ontogenesis import (
    evaluate_fitness,
    evaluate_population,
    evolve,
    initialize,
    initialize_population,
    run_ontogenesis,
    self_generate,
    self_optimize,
    self_reproduce,
    update_development_stage,
)
from .session import EvolutionSession, create_evolution_session

# Config and errors
from .config import DevelopmentSchedule, EvolutionParameters, OntogenesisConfig, OptimizerConfig
from .loader import OntogenesisConfigLoader, load_ontogenesis_config
from .errors import (
    InvalidDomainSpecification,
    KernelError,
    UnknownComponent,
    UnknownFormat,
    UnknownOperator,
)

# Types
from .types import (
    BSeriesExpansion,
    ButcherTableau,
    Constraint,
    DomainSpecification,
    ElementaryDifferential,
    GenerationContext,
    GripMetric,
    Kernel,
    KernelMetadata,
    OperatorApplication,
    RootedTree,
)
from .ontogenesis_types import (
    DevelopmentStage,
    KernelGenome,
    KernelPopulation,
    LineageNode,
    OntogeneticKernel,
    OntogeneticState,
)

__all__ = [
    # Version
    "__version__",
    # Trees
    "TreeArena",
    "count_trees",
    "generate_domain_specific",
    "generate_forest",
    "generate_trees",
    "integer_partitions",
    "relabel_for_domain",
    "symmetry_factor",
    # Domain
    "COGNITIVE_TENSOR_STATES",
    "DomainAnalysis",
    "analyze_domain",
    "extract_features",
    "validate_domain",
    # B-series
    "chain_compose",
    "generate_expansion",
    "generate_runge_kutta_expansion",
    "get_butcher_tableau",
    "product_compose",
    "verify_order_conditions",
    # Grip
    "OptimizationResult",
    "conjugate_gradient_optimize",
    "is_sufficient_grip",
    "measure_grip",
    "optimize",
    # Generator
    "DOMAIN_PRESETS",
    "apply_operator",
    "export_kernel",
    "generate_biology_kernel",
    "generate_chemistry_kernel",
    "generate_computing_kernel",
    "generate_consciousness_kernel",
    "generate_kernel",
    "generate_physics_kernel",
    "generate_preset_kernel",
    "generate_runge_kutta",
    "kernel_from_json",
    "verify_kernel",
    # Ontogenesis
    "evaluate_fitness",
    "evaluate_population",
    "evolve",
    "initialize",
    "initialize_population",
    "run_ontogenesis",
    "self_generate",
    "self_optimize",
    "self_reproduce",
    "update_development_stage",
    "EvolutionSession",
    "create_evolution_session",
    # Config and errors
    "DevelopmentSchedule",
    "EvolutionParameters",
    "OntogenesisConfig",
    "OptimizerConfig",
    "OntogenesisConfigLoader",
    "load_ontogenesis_config",
    "InvalidDomainSpecification",
    "KernelError",
    "UnknownComponent",
    "UnknownFormat",
    "UnknownOperator",
    # Types
    "BSeriesExpansion",
    "ButcherTableau",
    "Constraint",
    "DomainSpecification",
    "ElementaryDifferential",
    "GenerationContext",
    "GripMetric",
    "Kernel",
    "KernelMetadata",
    "OperatorApplication",
    "RootedTree",
    "DevelopmentStage",
    "KernelGenome",
    "KernelPopulation",
    "LineageNode",
    "OntogeneticKernel",
    "OntogeneticState",
]
