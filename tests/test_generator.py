"""
tests/test_generator.py - Kernel Generator Tests

Key Properties Tested:
    - Validation happens before anything is built
    - trees/coefficients stay parallel for every preset and operator
    - Quotient combines positionally with its own grip rules
    - verify gate (order conditions, grip >= 0.6, valid domain)
    - Export templates and the JSON round trip
"""

import json

import pytest

from universal_kernel.errors import (
    InvalidDomainSpecification,
    UnknownComponent,
    UnknownFormat,
    UnknownOperator,
)
from universal_kernel.generator import (
    DOMAIN_PRESETS,
    apply_operator,
    export_kernel,
    format_number,
    generate_chemistry_kernel,
    generate_kernel,
    generate_preset_kernel,
    generate_runge_kutta,
    goal_grip,
    kernel_from_json,
    verify_kernel,
)
from universal_kernel.types import DomainSpecification, GenerationContext

# =============================================================================
# GENERATION TESTS
# =============================================================================


class TestGenerateKernel:

    def test_generates_parallel_arrays(self, physics_context):
        kernel = generate_kernel(physics_context)
        assert len(kernel.trees) == len(kernel.coefficients)
        assert kernel.order == 3
        assert kernel.bseries.coefficients == kernel.coefficients

    def test_invalid_domain_raises(self):
        context = GenerationContext(
            domain=DomainSpecification(type="physics", order=3, tree_type="reaction"),
        )
        with pytest.raises(InvalidDomainSpecification):
            generate_kernel(context)

    def test_invalid_domain_is_value_error(self):
        context = GenerationContext(
            domain=DomainSpecification(type="physics", order=12, tree_type="hamiltonian"),
        )
        with pytest.raises(ValueError):
            generate_kernel(context)

    def test_metadata(self, physics_kernel):
        assert physics_kernel.metadata.version == "1.0.0"
        assert physics_kernel.metadata.generated_at.tzinfo is not None
        assert 0 <= physics_kernel.metadata.optimization_iterations <= 100

    def test_conjugate_gradient_optimizer(self, physics_domain):
        context = GenerationContext(domain=physics_domain, optimizer="conjugate_gradient")
        kernel = generate_kernel(context)
        assert len(kernel.trees) == len(kernel.coefficients)

    @pytest.mark.parametrize(
        "goal,expected",
        [("speed", 0.725), ("accuracy", 0.85), ("stability", 0.8), ("balanced", 0.8)],
    )
    def test_goal_grip_overall_is_mean(self, goal, expected):
        assert goal_grip(goal).overall == pytest.approx(expected)


class TestPresets:

    def test_five_presets(self):
        assert set(DOMAIN_PRESETS) == {"physics", "chemistry", "biology", "computing", "consciousness"}

    @pytest.mark.parametrize("domain_type", sorted(DOMAIN_PRESETS))
    def test_preset_kernels_valid(self, domain_type):
        kernel = generate_preset_kernel(domain_type)
        preset = DOMAIN_PRESETS[domain_type]
        assert kernel.order == preset.default_order
        assert kernel.domain.tree_type == preset.tree_type
        assert kernel.domain.symmetry == preset.symmetry
        assert len(kernel.trees) == len(kernel.coefficients)

    def test_physics_preset(self, physics_kernel):
        assert physics_kernel.domain.symmetry == "Noether"
        assert physics_kernel.domain.preserves == ["energy", "momentum", "angular-momentum"]
        assert len(physics_kernel.trees) == 9

    def test_order_override(self):
        assert generate_chemistry_kernel(order=2).order == 2

    def test_unknown_preset(self):
        with pytest.raises(UnknownComponent):
            generate_preset_kernel("alchemy")


# =============================================================================
# OPERATOR TESTS
# =============================================================================


class TestApplyOperator:

    @pytest.mark.parametrize("operator", ["chain", "product", "quotient"])
    def test_operators_keep_arrays_parallel(self, operator, physics_kernel, computing_kernel):
        application = apply_operator(operator, physics_kernel, computing_kernel)
        result = application.result
        assert application.operator == operator
        assert application.left is physics_kernel
        assert len(result.trees) == len(result.coefficients)
        assert result.domain == physics_kernel.domain

    def test_chain_squares_self(self, physics_kernel):
        result = apply_operator("chain", physics_kernel, physics_kernel).result
        expected = [c * c for c in physics_kernel.coefficients]
        assert result.coefficients == pytest.approx(expected)

    def test_quotient_is_positional(self, physics_kernel):
        chemistry = generate_chemistry_kernel()
        result = apply_operator("quotient", chemistry, physics_kernel).result
        assert result.order == 4
        assert len(result.coefficients) == 9
        for i, value in enumerate(result.coefficients):
            left = chemistry.coefficients[i] if i < len(chemistry.coefficients) else 0.0
            right = physics_kernel.coefficients[i]
            assert value == pytest.approx((left - right) / (1 + abs(right)))

    def test_quotient_grip(self, physics_kernel, computing_kernel):
        grip = apply_operator("quotient", physics_kernel, computing_kernel).result.grip
        a, b = physics_kernel.grip, computing_kernel.grip
        assert grip.coverage == pytest.approx(min(a.coverage, b.coverage))
        assert grip.efficiency == pytest.approx(a.efficiency * b.efficiency)
        assert grip.stability == pytest.approx(min(a.stability, b.stability) * 0.9)
        assert grip.overall == pytest.approx((a.overall + b.overall) / 2.2)

    def test_unknown_operator(self, physics_kernel):
        with pytest.raises(UnknownOperator):
            apply_operator("divergence", physics_kernel, physics_kernel)


# =============================================================================
# VERIFICATION TESTS
# =============================================================================


class TestVerify:

    def test_euler_kernel_verifies(self):
        assert verify_kernel(generate_runge_kutta(1))

    def test_rk4_kernel_fails_higher_order_conditions(self):
        assert not verify_kernel(generate_runge_kutta(4))

    def test_runge_kutta_kernel_unoptimized(self):
        kernel = generate_runge_kutta(4)
        assert kernel.metadata.optimization_iterations == 0
        assert kernel.grip.overall == 0.975


# =============================================================================
# EXPORT TESTS
# =============================================================================


class TestExport:

    def test_ggml_template(self):
        kernel = generate_runge_kutta(1)
        assert export_kernel(kernel, "ggml") == (
            "GGML Kernel computing\n"
            "Order: 1\n"
            "Coefficients: [1]\n"
            "Grip: 0.9750\n"
            "Trees: 1"
        )

    def test_scheme_template(self):
        kernel = generate_runge_kutta(2)
        assert export_kernel(kernel, "scheme") == (
            "(define computing-kernel\n"
            "  '((order . 2)\n"
            "    (trees . 2)\n"
            "    (coefficients . (1 0.25))\n"
            "    (grip . 0.9750)\n"
            "    (symmetry . \"time-reversible\")))"
        )

    def test_ggml_physics(self, physics_kernel):
        text = export_kernel(physics_kernel, "ggml")
        lines = text.split("\n")
        assert lines[0] == "GGML Kernel physics"
        assert lines[1] == "Order: 4"
        assert lines[3] == f"Grip: {physics_kernel.grip.overall:.4f}"
        assert lines[4] == "Trees: 9"

    @pytest.mark.parametrize("value,expected", [(2.0, "2"), (0.25, "0.25"), (-0.0, "0"), (1 / 3, repr(1 / 3))])
    def test_number_format(self, value, expected):
        assert format_number(value) == expected

    def test_json_is_indented(self, physics_kernel):
        text = export_kernel(physics_kernel, "json")
        assert text.startswith('{\n  "domain"')
        assert json.loads(text)["order"] == 4

    def test_unknown_format(self, physics_kernel):
        with pytest.raises(UnknownFormat):
            export_kernel(physics_kernel, "onnx")

    def test_json_round_trip(self, physics_kernel):
        restored = kernel_from_json(export_kernel(physics_kernel, "json"))
        assert restored.order == physics_kernel.order
        assert restored.domain.type == physics_kernel.domain.type
        assert len(restored.coefficients) == len(physics_kernel.coefficients)
        assert restored.coefficients == pytest.approx(physics_kernel.coefficients, abs=1e-9)
        assert restored.trees == physics_kernel.trees
        assert restored.grip == physics_kernel.grip
        assert restored.metadata == physics_kernel.metadata
