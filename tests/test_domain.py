"""
tests/test_domain.py - Domain Validation and Analysis Tests
"""

import numpy as np
import pytest

from universal_kernel.domain import (
    COGNITIVE_TENSOR_STATES,
    analyze_domain,
    extract_features,
    validate_domain,
)
from universal_kernel.types import Constraint, DomainSpecification, GenerationContext


def make_context(domain_type, tree_type, goal="balanced", order=3, constraints=()):
    return GenerationContext(
        domain=DomainSpecification(type=domain_type, order=order, tree_type=tree_type),
        constraints=list(constraints),
        optimization_goal=goal,
    )


# =============================================================================
# VALIDATION TESTS
# =============================================================================


class TestValidateDomain:

    def test_matching_tree_type(self):
        domain = DomainSpecification(type="physics", order=3, tree_type="hamiltonian")
        assert validate_domain(domain) is True

    def test_wrong_tree_type(self):
        domain = DomainSpecification(type="physics", order=3, tree_type="reaction")
        assert validate_domain(domain) is False

    @pytest.mark.parametrize("order", [0, 11, -2])
    def test_order_out_of_range(self, order):
        domain = DomainSpecification(type="biology", order=order, tree_type="metabolic")
        assert validate_domain(domain) is False

    @pytest.mark.parametrize("order", [1, 10])
    def test_order_bounds_inclusive(self, order):
        domain = DomainSpecification(type="computing", order=order, tree_type="recursion")
        assert validate_domain(domain) is True

    def test_unknown_type(self):
        domain = DomainSpecification(type="alchemy", order=3, tree_type="reaction")
        assert validate_domain(domain) is False

    @pytest.mark.parametrize(
        "domain_type,tree_type",
        [
            ("physics", "hamiltonian"),
            ("chemistry", "reaction"),
            ("biology", "metabolic"),
            ("computing", "recursion"),
            ("consciousness", "echo"),
        ],
    )
    def test_all_pairs(self, domain_type, tree_type):
        domain = DomainSpecification(type=domain_type, order=4, tree_type=tree_type)
        assert validate_domain(domain)


# =============================================================================
# ANALYSIS TESTS
# =============================================================================


class TestAnalyzeDomain:

    def test_physics_topology(self):
        analysis = analyze_domain(make_context("physics", "hamiltonian", goal="stability"))
        assert analysis.topology.manifold_dimension == 4
        assert analysis.topology.curvature == 0.9
        assert analysis.symmetries.lie_groups == ["SO(3)", "SU(2)", "Lorentz"]
        # 4 * 1.9 + 3 + 3 + 1 = 14.6
        assert analysis.complexity == 15

    def test_consciousness_dimension_is_tensor_size(self):
        analysis = analyze_domain(make_context("consciousness", "echo"))
        assert analysis.topology.manifold_dimension == 776
        assert analysis.flow.vector_field.shape == (10, 10)
        # 776 * 1.5 + 2 + 3 + 1
        assert analysis.complexity == 1170

    def test_complexity_rounds_half_up(self):
        analysis = analyze_domain(make_context("computing", "recursion", goal="accuracy"))
        # 1 * 1.5 + 2 + 2 + 1 = 6.5
        assert analysis.complexity == 7

    def test_vector_field_is_identity(self):
        analysis = analyze_domain(make_context("chemistry", "reaction"))
        np.testing.assert_array_equal(analysis.flow.vector_field, np.eye(3))
        assert analysis.flow.fixed_points[0].stability == "stable"
        assert len(analysis.flow.integral_curves) == 1

    def test_singularities_from_constraints(self):
        context = make_context(
            "physics",
            "hamiltonian",
            constraints=[
                Constraint(type="singularity", value=[0.5, 1.0]),
                Constraint(type="discontinuity", value=2.0),
                Constraint(type="boundary", value=3.0),
            ],
        )
        singularities = analyze_domain(context).topology.singularities
        assert [s.type for s in singularities] == ["singularity", "discontinuity"]
        assert singularities[0].position == (0.5, 1.0)
        assert singularities[1].position == (2.0,)

    def test_unknown_domain_has_defaults(self):
        analysis = analyze_domain(make_context("alchemy", "reaction", goal="speed"))
        assert analysis.topology.manifold_dimension == 3
        assert analysis.symmetries.lie_groups == []


class TestExtractFeatures:

    def test_eight_features(self):
        analysis = analyze_domain(make_context("biology", "metabolic"))
        features = extract_features(analysis)
        assert features.shape == (8,)
        # dim, curvature, singularities, lie groups, invariants, conserved, fixed points, complexity
        np.testing.assert_allclose(features, [2, 0.5, 0, 2, 3, 3, 1, 9])


class TestTensorInvariant:

    def test_state_sizes(self):
        assert sorted(COGNITIVE_TENSOR_STATES.values()) == [81, 110, 117, 125, 343]

    def test_total_states(self):
        total = sum(COGNITIVE_TENSOR_STATES.values())
        assert total == 343 + 110 + 117 + 125 + 81 == 776 == 2**3 * 97
