"""
Shared pytest fixtures for universal_kernel tests.

Kernel generation runs a full grip optimization, so generated kernels are
module-scoped; they are frozen and safe to share. Sessions are seeded so
every stochastic test replays the same sequence.
"""

import pytest

from universal_kernel import (
    DomainSpecification,
    GenerationContext,
    create_evolution_session,
    generate_computing_kernel,
    generate_physics_kernel,
    initialize,
)

# =============================================================================
# DOMAIN FIXTURES
# =============================================================================


@pytest.fixture
def physics_domain() -> DomainSpecification:
    return DomainSpecification(
        type="physics",
        order=3,
        tree_type="hamiltonian",
        symmetry="Noether",
        preserves=["energy", "momentum"],
    )


@pytest.fixture
def physics_context(physics_domain) -> GenerationContext:
    return GenerationContext(domain=physics_domain, optimization_goal="stability")


# =============================================================================
# KERNEL FIXTURES
# =============================================================================


@pytest.fixture(scope="module")
def physics_kernel():
    return generate_physics_kernel()


@pytest.fixture(scope="module")
def computing_kernel():
    return generate_computing_kernel()


# =============================================================================
# SESSION FIXTURES
# =============================================================================


@pytest.fixture
def session():
    """Seeded evolution session."""
    return create_evolution_session(seed=1234)


@pytest.fixture
def individual(session, physics_kernel):
    return initialize(session, physics_kernel)


@pytest.fixture
def partner(session, computing_kernel):
    return initialize(session, computing_kernel)
