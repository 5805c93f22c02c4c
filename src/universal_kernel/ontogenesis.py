"""
universal_kernel/ontogenesis.py - Self-generating, evolving kernels

Kernels are wrapped as individuals with a genome and a development state,
then transformed by four operations:

    self_generate   - compose a kernel with itself (chain/product/quotient by maturity)
    self_optimize   - repeated grip optimization, maturing the individual
    self_reproduce  - crossover, mutation or cloning of two parents
    evolve          - elitism + tournament selection + reproduction + aging

Every function takes the caller-owned EvolutionSession first; it supplies the
random generator, mints ids, and records history and lineage.

Fitness:
    0.4 grip.overall + 0.2 grip.stability + 0.2 grip.efficiency
    + 0.1 novelty + 0.1 symmetry

    novelty  = min(1, mean genetic distance to the rest of the set), 1.0 alone
    symmetry = expression strength of the symmetry gene, 0.5 if absent

Usage:
    session = create_evolution_session(seed=7)
    config = OntogenesisConfig(evolution=EvolutionParameters(population_size=6))
    generations = run_ontogenesis(session, config)
"""
from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import replace

from .config import DevelopmentSchedule, EvolutionParameters, OntogenesisConfig
from .errors import UnknownComponent
from .generator import apply_operator, generate_consciousness_kernel
from .grip import measure_grip, optimize
from .ontogenesis_types import (
    DevelopmentEvent,
    DevelopmentEventType,
    DevelopmentStage,
    FitnessEvaluation,
    FitnessScores,
    GeneType,
    KernelGene,
    KernelGenome,
    KernelPopulation,
    MutationRecord,
    OntogeneticKernel,
    OntogeneticState,
    OperationType,
    ReproductionMethod,
    ReproductionResult,
)
from .session import EvolutionSession
from .types import Kernel, KernelMetadata

logger = logging.getLogger(__name__)

FitnessFunction = Callable[[OntogeneticKernel], float]

FITNESS_WEIGHTS = {
    "grip": 0.4,
    "stability": 0.2,
    "efficiency": 0.2,
    "novelty": 0.1,
    "symmetry": 0.1,
}

COEFFICIENT_STRENGTH = 1.0
SYMMETRY_STRENGTH = 0.8
PRESERVATION_STRENGTH = 0.9

# Absolute change in [-MUTATION_SCALE / 2, MUTATION_SCALE / 2]
MUTATION_SCALE = 0.2

MATURITY_STEP = 0.1
DEFAULT_SYMMETRY_SCORE = 0.5
DEFAULT_DOMAIN_ORDER = 4

REPRODUCTIVE_CAPABILITY = {
    DevelopmentStage.EMBRYONIC: 0.0,
    DevelopmentStage.JUVENILE: 0.5,
    DevelopmentStage.MATURE: 1.0,
    DevelopmentStage.SENESCENT: 0.2,
}


# =============================================================================
# GENOME CONSTRUCTION
# =============================================================================

def _extract_genes(kernel: Kernel) -> list[KernelGene]:
    genes = [
        KernelGene(type=GeneType.COEFFICIENT, value=c, expression_strength=COEFFICIENT_STRENGTH, mutable=True)
        for c in kernel.coefficients
    ]
    genes.append(
        KernelGene(
            type=GeneType.SYMMETRY,
            value=kernel.domain.symmetry,
            expression_strength=SYMMETRY_STRENGTH,
            mutable=False,
        )
    )
    genes.extend(
        KernelGene(type=GeneType.PRESERVATION, value=p, expression_strength=PRESERVATION_STRENGTH, mutable=False)
        for p in kernel.domain.preserves
    )
    return genes


def _sync_genes(genes: list[KernelGene], coefficients: tuple[float, ...]) -> list[KernelGene]:
    """Copy of `genes` whose coefficient genes carry `coefficients`, in order."""
    synced = []
    position = 0
    for gene in genes:
        if gene.type == GeneType.COEFFICIENT and position < len(coefficients):
            gene = replace(gene, value=coefficients[position])
            position += 1
        else:
            gene = replace(gene)
        synced.append(gene)
    return synced


def _merge_genes(genes1: list[KernelGene], genes2: list[KernelGene]) -> list[KernelGene]:
    """Positional merge: shared positions average expression strength."""
    merged = []
    for i in range(max(len(genes1), len(genes2))):
        if i < len(genes1) and i < len(genes2):
            strength = (genes1[i].expression_strength + genes2[i].expression_strength) / 2
            merged.append(replace(genes1[i], expression_strength=strength))
        elif i < len(genes1):
            merged.append(replace(genes1[i]))
        else:
            merged.append(replace(genes2[i]))
    return merged


def _spawn(
    session: EvolutionSession,
    kernel: Kernel,
    generation: int,
    lineage: list[str],
    genes: list[KernelGene] | None = None,
) -> OntogeneticKernel:
    """New registered individual with a fresh embryonic state.

    Fitness starts at the kernel's grip.overall until the next evaluation.
    """
    genome = KernelGenome(
        id=session.new_id(),
        generation=generation,
        lineage=list(lineage),
        genes=genes if genes is not None else _extract_genes(kernel),
        fitness=kernel.grip.overall,
        age=0,
    )
    session.register(genome)
    return OntogeneticKernel(kernel=kernel, genome=genome, state=OntogeneticState())


def initialize(session: EvolutionSession, kernel: Kernel) -> OntogeneticKernel:
    """Wrap a kernel as a generation-0 individual.

    Genes: one mutable coefficient gene per coefficient (strength 1.0), one
    immutable symmetry gene (0.8), one immutable preservation gene per
    preserved quantity (0.9). Fitness starts at grip.overall.
    """
    return _spawn(session, kernel, generation=0, lineage=[])


# =============================================================================
# SELF-GENERATION AND SELF-OPTIMIZATION
# =============================================================================

def select_operator(individual: OntogeneticKernel) -> str:
    maturity = individual.state.maturity
    if maturity < 0.5:
        return "chain"
    if maturity < 0.8:
        return "product"
    return "quotient"


def self_generate(session: EvolutionSession, parent: OntogeneticKernel) -> OntogeneticKernel:
    """Compose the parent with itself; the result is a generation+1 child."""
    operator = select_operator(parent)
    composed = apply_operator(operator, parent.kernel, parent.kernel).result

    offspring = _spawn(
        session,
        composed,
        generation=parent.genome.generation + 1,
        lineage=[parent.id],
    )
    session.record(OperationType.SELF_GENERATE, [parent.id], [offspring.id])
    return offspring


def self_optimize(
    session: EvolutionSession,
    individual: OntogeneticKernel,
    iterations: int = 10,
) -> OntogeneticKernel:
    """Run `iterations` rounds of grip optimization on a copy of `individual`.

    Each round replaces coefficients and grip, adds 0.1 maturity (capped at 1),
    counts one optimization iteration in the metadata and logs one
    optimization event carrying that round's grip delta.
    """
    current = individual.copy()

    for i in range(iterations):
        kernel = current.kernel
        result = optimize(kernel.bseries)
        delta = result.grip.overall - kernel.grip.overall

        metadata = replace(kernel.metadata, optimization_iterations=kernel.metadata.optimization_iterations + 1)
        current.kernel = kernel.with_coefficients(result.coefficients, result.grip, metadata=metadata)
        current.genome.genes = _sync_genes(current.genome.genes, current.kernel.coefficients)

        current.state.maturity = min(1.0, current.state.maturity + MATURITY_STEP)
        current.state.development_history.append(
            DevelopmentEvent(
                type=DevelopmentEventType.OPTIMIZATION,
                description=f"Self-optimization iteration {i + 1}",
                fitness_change=delta,
            )
        )

    session.record(OperationType.SELF_OPTIMIZE, [individual.id], [current.id])
    return current


# =============================================================================
# REPRODUCTION
# =============================================================================

def _mutate(session: EvolutionSession, individual: OntogeneticKernel) -> OntogeneticKernel:
    """Copy of `individual` with one random coefficient shifted by up to +/-0.1.

    The copy keeps the individual's identity; callers that need a new
    offspring re-identify it.
    """
    mutant = individual.copy()
    coefficients = list(individual.coefficients)
    if not coefficients:
        return mutant

    index = int(session.rng.integers(0, len(coefficients)))
    change = (session.rng.random() - 0.5) * MUTATION_SCALE
    old_value = coefficients[index]
    coefficients[index] = old_value + change

    grip = measure_grip(coefficients, individual.domain)
    mutant.kernel = individual.kernel.with_coefficients(coefficients, grip)
    mutant.genome.genes = _sync_genes(mutant.genome.genes, mutant.kernel.coefficients)

    mutant.state.mutations.append(
        MutationRecord(
            gene_index=index,
            old_value=old_value,
            new_value=coefficients[index],
            impact=change,
        )
    )
    mutant.state.development_history.append(
        DevelopmentEvent(
            type=DevelopmentEventType.MUTATION,
            description=f"Coefficient {index} mutated",
            fitness_change=grip.overall - individual.grip.overall,
        )
    )
    return mutant


def _reidentify(
    session: EvolutionSession,
    individual: OntogeneticKernel,
    generation: int,
    lineage: list[str],
) -> OntogeneticKernel:
    individual.genome.id = session.new_id()
    individual.genome.generation = generation
    individual.genome.lineage = list(lineage)
    individual.genome.age = 0
    session.register(individual.genome)
    return individual


def _clone(session: EvolutionSession, parent: OntogeneticKernel) -> OntogeneticKernel:
    """Structural copy of `parent` with a new id and a reset state."""
    clone = _spawn(
        session,
        parent.kernel,
        generation=parent.genome.generation + 1,
        lineage=[parent.id],
        genes=_sync_genes(parent.genome.genes, parent.coefficients),
    )
    return clone


def _splice_child(
    session: EvolutionSession,
    template: OntogeneticKernel,
    parent1: OntogeneticKernel,
    parent2: OntogeneticKernel,
    coefficients: list[float],
    cut: int,
) -> OntogeneticKernel:
    grip = measure_grip(coefficients, template.domain)
    kernel = template.kernel.with_coefficients(coefficients, grip, metadata=KernelMetadata())
    genes = _sync_genes(_merge_genes(parent1.genome.genes, parent2.genome.genes), kernel.coefficients)

    child = _spawn(
        session,
        kernel,
        generation=max(parent1.genome.generation, parent2.genome.generation) + 1,
        lineage=[parent1.id, parent2.id],
        genes=genes,
    )
    child.state.development_history.append(
        DevelopmentEvent(
            type=DevelopmentEventType.CROSSOVER,
            description=f"Single-point crossover at index {cut}",
            fitness_change=grip.overall - (parent1.grip.overall + parent2.grip.overall) / 2,
        )
    )
    return child


def _crossover(
    session: EvolutionSession,
    parent1: OntogeneticKernel,
    parent2: OntogeneticKernel,
) -> list[OntogeneticKernel]:
    """Two complementary single-point splices of the parents' coefficients.

    Each child index holds one parent's raw value. A child takes its trees
    from the parent whose coefficient count it matches.
    """
    c1 = list(parent1.coefficients)
    c2 = list(parent2.coefficients)
    shortest = min(len(c1), len(c2))
    cut = int(session.rng.integers(0, shortest)) if shortest > 0 else 0

    first = c1[:cut] + c2[cut:]
    second = c2[:cut] + c1[cut:]

    first_template = parent1 if len(first) == len(c1) else parent2
    second_template = parent2 if len(second) == len(c2) else parent1

    return [
        _splice_child(session, first_template, parent1, parent2, first, cut),
        _splice_child(session, second_template, parent1, parent2, second, cut),
    ]


def self_reproduce(
    session: EvolutionSession,
    parent1: OntogeneticKernel,
    parent2: OntogeneticKernel,
    method: str = "crossover",
) -> ReproductionResult:
    """Produce offspring from two parents.

    Methods:
        crossover - two splices, lineage [p1, p2], generation max + 1
        mutation  - one mutant per parent, lineage [parent], generation + 1
        cloning   - one copy of parent1, lineage [parent1], generation + 1

    Raises:
        UnknownComponent: unrecognized method
    """
    try:
        method = ReproductionMethod(method)
    except ValueError as err:
        raise UnknownComponent("reproduction method", str(method)) from err

    if method is ReproductionMethod.CROSSOVER:
        offspring = _crossover(session, parent1, parent2)
    elif method is ReproductionMethod.MUTATION:
        offspring = [
            _reidentify(session, _mutate(session, parent), parent.genome.generation + 1, [parent.id])
            for parent in (parent1, parent2)
        ]
    else:
        offspring = [_clone(session, parent1)]

    session.record(
        OperationType.SELF_REPRODUCE,
        [parent1.id, parent2.id],
        [child.id for child in offspring],
    )
    return ReproductionResult(parents=(parent1, parent2), offspring=offspring, method=method)


# =============================================================================
# FITNESS
# =============================================================================

def genetic_distance(a: OntogeneticKernel, b: OntogeneticKernel) -> float:
    """Mean absolute coefficient difference over a's indices (missing in b count as 0)."""
    coeffs_a = a.coefficients
    coeffs_b = b.coefficients
    if not coeffs_a:
        return 0.0
    total = sum(
        abs(c - (coeffs_b[i] if i < len(coeffs_b) else 0.0))
        for i, c in enumerate(coeffs_a)
    )
    return total / len(coeffs_a)


def population_diversity(individuals: list[OntogeneticKernel]) -> float:
    """Mean pairwise genetic distance (0 for fewer than two individuals)."""
    distances = [
        genetic_distance(individuals[i], individuals[j])
        for i in range(len(individuals))
        for j in range(i + 1, len(individuals))
    ]
    return sum(distances) / len(distances) if distances else 0.0


def novelty(individual: OntogeneticKernel, population: list[OntogeneticKernel] | None) -> float:
    others = [k for k in (population or []) if k.id != individual.id]
    if not others:
        return 1.0
    mean = sum(genetic_distance(individual, k) for k in others) / len(others)
    return min(1.0, mean)


def symmetry_score(individual: OntogeneticKernel) -> float:
    for gene in individual.genome.genes:
        if gene.type == GeneType.SYMMETRY:
            return gene.expression_strength
    return DEFAULT_SYMMETRY_SCORE


def fitness_scores(
    individual: OntogeneticKernel,
    population: list[OntogeneticKernel] | None = None,
) -> FitnessScores:
    return FitnessScores(
        grip=individual.grip.overall,
        stability=individual.grip.stability,
        efficiency=individual.grip.efficiency,
        novelty=novelty(individual, population),
        symmetry=symmetry_score(individual),
    )


def _combine(scores: FitnessScores) -> float:
    return (
        FITNESS_WEIGHTS["grip"] * scores.grip
        + FITNESS_WEIGHTS["stability"] * scores.stability
        + FITNESS_WEIGHTS["efficiency"] * scores.efficiency
        + FITNESS_WEIGHTS["novelty"] * scores.novelty
        + FITNESS_WEIGHTS["symmetry"] * scores.symmetry
    )


def evaluate_fitness(
    individual: OntogeneticKernel,
    population: list[OntogeneticKernel] | None = None,
) -> float:
    """Weighted fitness of one individual within an optional comparison set."""
    return _combine(fitness_scores(individual, population))


def evaluate_population(
    individuals: list[OntogeneticKernel],
    fitness_function: FitnessFunction | None = None,
) -> list[FitnessEvaluation]:
    """Evaluate every individual against the others, best first (rank 1)."""
    evaluations = []
    for individual in individuals:
        scores = fitness_scores(individual, individuals)
        overall = fitness_function(individual) if fitness_function is not None else _combine(scores)
        evaluations.append(FitnessEvaluation(kernel=individual, scores=scores, overall=overall, rank=0))

    evaluations.sort(key=lambda e: e.overall, reverse=True)
    for rank, evaluation in enumerate(evaluations, start=1):
        evaluation.rank = rank
    return evaluations


# =============================================================================
# DEVELOPMENT
# =============================================================================

def _next_stage(
    stage: DevelopmentStage,
    maturity: float,
    age: int,
    schedule: DevelopmentSchedule,
) -> DevelopmentStage | None:
    if stage is DevelopmentStage.SENESCENT:
        return None
    if age >= schedule.senescent_age:
        return DevelopmentStage.SENESCENT
    if stage is DevelopmentStage.EMBRYONIC:
        if maturity >= schedule.juvenile_maturity and age >= schedule.juvenile_age:
            return DevelopmentStage.JUVENILE
    elif stage is DevelopmentStage.JUVENILE:
        if maturity >= schedule.mature_maturity and age >= schedule.mature_age:
            return DevelopmentStage.MATURE
    return None


def update_development_stage(
    individual: OntogeneticKernel,
    schedule: DevelopmentSchedule | None = None,
) -> DevelopmentStage:
    """Age `individual` by one and advance its stage in place.

    Transitions only move forward (embryonic -> juvenile -> mature), with
    senescence reachable from any stage once old enough. Each transition
    sets reproductive capability and appends a stage-transition event.
    """
    schedule = schedule or DevelopmentSchedule()
    individual.genome.age += 1
    state = individual.state

    stage = _next_stage(state.stage, state.maturity, individual.genome.age, schedule)
    while stage is not None:
        logger.debug(f"{individual.id}: {state.stage} -> {stage} (age {individual.genome.age})")
        state.stage = stage
        state.reproductive_capability = REPRODUCTIVE_CAPABILITY[stage]
        state.development_history.append(
            DevelopmentEvent(
                type=DevelopmentEventType.STAGE_TRANSITION,
                description=f"Transitioned to {stage}",
            )
        )
        stage = _next_stage(state.stage, state.maturity, individual.genome.age, schedule)

    return state.stage


# =============================================================================
# EVOLUTION
# =============================================================================

def tournament_select(
    session: EvolutionSession,
    evaluations: list[FitnessEvaluation],
    size: int = 3,
) -> FitnessEvaluation:
    """Best of `size` draws with replacement."""
    best = None
    for index in session.rng.integers(0, len(evaluations), size=size):
        candidate = evaluations[int(index)]
        if best is None or candidate.overall > best.overall:
            best = candidate
    return best


def _summarize(
    session: EvolutionSession,
    generation: int,
    individuals: list[OntogeneticKernel],
    fitness_function: FitnessFunction | None,
) -> KernelPopulation:
    evaluations = evaluate_population(individuals, fitness_function)
    for evaluation in evaluations:
        evaluation.kernel.genome.fitness = evaluation.overall

    fitness = [e.overall for e in evaluations]
    session.mark_alive(k.id for k in individuals)

    return KernelPopulation(
        generation=generation,
        individuals=individuals,
        population_size=len(individuals),
        average_fitness=sum(fitness) / len(fitness) if fitness else 0.0,
        best_fitness=max(fitness) if fitness else 0.0,
        diversity=population_diversity(individuals),
    )


def evolve(
    session: EvolutionSession,
    population: KernelPopulation,
    params: EvolutionParameters,
    schedule: DevelopmentSchedule | None = None,
    fitness_function: FitnessFunction | None = None,
) -> KernelPopulation:
    """Produce the next generation.

    Keeps floor(size * elitism_rate) elites as copies, fills the rest with
    crossover offspring or clones of tournament winners (optionally mutating
    the latest offspring), truncates to exactly `population_size`, then ages
    and stages everyone.
    """
    if not population.individuals:
        logger.warning(f"Generation {population.generation} is empty; nothing to evolve")
        return KernelPopulation(
            generation=population.generation + 1,
            individuals=[],
            population_size=0,
            average_fitness=0.0,
            best_fitness=0.0,
            diversity=0.0,
        )

    size = params.population_size
    evaluations = evaluate_population(population.individuals, fitness_function)

    elite_count = math.floor(size * params.elitism_rate)
    elites = [e.kernel.copy() for e in evaluations[:elite_count]]

    offspring: list[OntogeneticKernel] = []
    while len(elites) + len(offspring) < size:
        parent1 = tournament_select(session, evaluations, params.tournament_size)
        parent2 = tournament_select(session, evaluations, params.tournament_size)

        if session.rng.random() < params.crossover_rate:
            result = self_reproduce(session, parent1.kernel, parent2.kernel, "crossover")
            offspring.extend(result.offspring)
        else:
            offspring.append(_clone(session, parent1.kernel))

        if session.rng.random() < params.mutation_rate:
            original = offspring[-1]
            mutant = _reidentify(
                session, _mutate(session, original), original.genome.generation, original.genome.lineage
            )
            session.record(OperationType.SELF_MUTATE, [original.id], [mutant.id])
            offspring[-1] = mutant

    next_generation = (elites + offspring)[:size]
    for individual in next_generation:
        update_development_stage(individual, schedule)

    return _summarize(session, population.generation + 1, next_generation, fitness_function)


def initialize_population(session: EvolutionSession, config: OntogenesisConfig) -> KernelPopulation:
    """Generation 0: one individual per seed, the rest filled by mutation.

    With no seeds, a default consciousness kernel (order 4) starts the
    population.
    """
    size = config.evolution.population_size
    seeds = list(config.seed_kernels)
    if len(seeds) > size:
        logger.warning(f"{len(seeds)} seed kernels for population size {size}; extra seeds dropped")
        seeds = seeds[:size]

    individuals = [initialize(session, kernel) for kernel in seeds]

    while len(individuals) < size:
        if individuals:
            parent = individuals[int(session.rng.integers(0, len(individuals)))]
            variant = _reidentify(session, _mutate(session, parent), parent.genome.generation, [parent.id])
            session.record(OperationType.SELF_MUTATE, [parent.id], [variant.id])
            individuals.append(variant)
        else:
            individuals.append(initialize(session, generate_consciousness_kernel(DEFAULT_DOMAIN_ORDER)))

    return _summarize(session, 0, individuals, config.fitness_function)


def run_ontogenesis(session: EvolutionSession, config: OntogenesisConfig) -> list[KernelPopulation]:
    """Seed, then evolve up to max_generations, stopping early at the fitness threshold.

    Returns:
        Every generation in order, generation 0 included
    """
    params = config.evolution
    population = initialize_population(session, config)
    generations = [population]

    for _ in range(params.max_generations):
        population = evolve(
            session,
            population,
            params,
            schedule=config.development_schedule,
            fitness_function=config.fitness_function,
        )
        generations.append(population)

        if population.best_fitness >= params.fitness_threshold:
            logger.info(
                f"Target fitness {params.fitness_threshold} reached at generation "
                f"{population.generation} (best={population.best_fitness:.4f})"
            )
            break

    return generations
