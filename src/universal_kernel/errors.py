"""
universal_kernel/errors.py - Exception types for kernel generation

Lookup-style dispatch (operators, export formats, presets, reproduction
methods) raises on an unrecognized key. Domain validation raises before any
partial kernel is built. All errors are also ValueErrors so callers that
only catch ValueError keep working.
"""
from __future__ import annotations


class KernelError(Exception):
    """Base class for universal_kernel errors."""


class InvalidDomainSpecification(KernelError, ValueError):
    """Raised when a domain declaration fails type/order/tree-type validation."""

    def __init__(self, domain: object, reason: str = "invalid domain specification") -> None:
        self.domain = domain
        self.reason = reason
        super().__init__(f"{reason}: {domain!r}")


class UnknownComponent(KernelError, ValueError):
    """Raised when a named component (preset, reproduction method) does not exist."""

    def __init__(self, kind: str, name: str) -> None:
        self.kind = kind
        self.name = name
        super().__init__(f"Unknown {kind}: {name}")


class UnknownOperator(UnknownComponent):
    """Raised by apply_operator for anything other than chain/product/quotient."""

    def __init__(self, name: str) -> None:
        super().__init__("operator", name)


class UnknownFormat(UnknownComponent):
    """Raised by export_kernel for an unsupported export format."""

    def __init__(self, name: str) -> None:
        super().__init__("format", name)
