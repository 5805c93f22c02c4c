"""
universal_kernel/trees.py - Rooted Tree Enumeration (A000081)

Rooted trees index the terms of a B-series: each tree is an elementary
differential, labelled with the derivative pattern it encodes.

    order 1:  f
    order 2:  f'(f)
    order 3:  f''(f, f)        f'(f'(f))
    order 4:  f'''(f, f, f)    f''(f'(f), f)    f''(f, f'(f))
              f'(f''(f, f))    f'(f'(f'(f)))

Orders 1-4 come from the fixed catalog above. Higher orders are built, one
tree per integer partition of order-1, from the first tree of each part's
order; that is a representative sample, not the full A000081 family.

Erratum:
    The order-4 catalog lists f''(f'(f), f) and f''(f, f'(f)) separately, so
    generate_trees(4) yields 5 trees while count_trees(4) reports 4. Both
    values are kept as they are; callers that need exact A000081 counts must
    use count_trees.

Structural equality is decided through a TreeArena, which interns every
distinct (order, label, children) node once and addresses it by index.
"""
from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass
from functools import lru_cache

from .types import RootedTree

# =============================================================================
# CONSTANTS
# =============================================================================

# A000081 for n = 0..14
A000081 = (0, 1, 1, 2, 4, 9, 20, 48, 115, 286, 719, 1842, 4766, 12486, 32973)

# Otter's growth constant, used past the end of the table
_OTTER_ALPHA = 2.9557652856

DOMAIN_GLYPHS = {
    "physics": "H",        # Hamiltonian
    "chemistry": "R",      # Reaction
    "biology": "M",        # Metabolic
    "computing": "λ",      # recursion
    "consciousness": "Ψ",  # echo
}

GENERIC_SYMBOL = "f"

_F = RootedTree(1, "f")
_F_F = RootedTree(2, "f'(f)", (_F,))
_F_FF = RootedTree(3, "f''(f, f)", (_F, _F))
_F_F_F = RootedTree(3, "f'(f'(f))", (_F_F,))

_CATALOG: dict[int, tuple[RootedTree, ...]] = {
    1: (_F,),
    2: (_F_F,),
    3: (_F_FF, _F_F_F),
    4: (
        RootedTree(4, "f'''(f, f, f)", (_F, _F, _F)),
        RootedTree(4, "f''(f'(f), f)", (_F_F, _F)),
        RootedTree(4, "f''(f, f'(f))", (_F, _F_F)),
        RootedTree(4, "f'(f''(f, f))", (_F_FF,)),
        RootedTree(4, "f'(f'(f'(f)))", (_F_F_F,)),
    ),
}


# =============================================================================
# TREE ARENA
# =============================================================================

@dataclass(frozen=True)
class TreeNode:
    """Arena entry: children are indices into the owning arena."""
    order: int
    label: str
    children: tuple[int, ...]


class TreeArena:
    """Interning store for rooted trees.

    Structurally equal trees map to the same index, so deep equality is an
    integer comparison and per-node results can be memoized by index.

    Example:
        arena = TreeArena()
        a = arena.intern(tree_a)
        b = arena.intern(tree_b)
        same = a == b
        sigma = arena.symmetry_factor(a)
    """

    def __init__(self) -> None:
        self.nodes: list[TreeNode] = []
        self._index: dict[TreeNode, int] = {}
        self._symmetry: dict[int, int] = {}

    def __len__(self) -> int:
        return len(self.nodes)

    def intern(self, tree: RootedTree) -> int:
        """Return the index of `tree`, adding it (and its subtrees) if new."""
        node = TreeNode(
            order=tree.order,
            label=tree.label,
            children=tuple(self.intern(child) for child in tree.children),
        )
        index = self._index.get(node)
        if index is None:
            index = len(self.nodes)
            self.nodes.append(node)
            self._index[node] = index
        return index

    def node(self, index: int) -> TreeNode:
        return self.nodes[index]

    def build(self, index: int) -> RootedTree:
        """Materialize the RootedTree stored at `index`."""
        node = self.nodes[index]
        return RootedTree(
            order=node.order,
            label=node.label,
            children=tuple(self.build(child) for child in node.children),
        )

    def same_structure(self, a: RootedTree, b: RootedTree) -> bool:
        return self.intern(a) == self.intern(b)

    def symmetry_factor(self, index: int) -> int:
        """Symmetry factor of the node at `index` (memoized)."""
        cached = self._symmetry.get(index)
        if cached is not None:
            return cached

        node = self.nodes[index]
        factor = 1
        for multiplicity in Counter(node.children).values():
            factor *= math.factorial(multiplicity)
        for child in node.children:
            factor *= self.symmetry_factor(child)

        self._symmetry[index] = factor
        return factor


# =============================================================================
# ENUMERATION
# =============================================================================

def integer_partitions(n: int, max_part: int | None = None) -> list[tuple[int, ...]]:
    """Partitions of n with parts in non-increasing order, largest first.

    integer_partitions(4) -> [(4,), (3, 1), (2, 2), (2, 1, 1), (1, 1, 1, 1)]
    """
    if n == 0:
        return [()]
    if n < 0:
        return []
    if max_part is None:
        max_part = n

    partitions = []
    for first in range(min(n, max_part), 0, -1):
        for rest in integer_partitions(n - first, first):
            partitions.append((first, *rest))
    return partitions


def tree_label(children: tuple[RootedTree, ...] | list[RootedTree], symbol: str = GENERIC_SYMBOL) -> str:
    """Label for a node with the given children: one prime per child."""
    if not children:
        return symbol
    args = ", ".join(child.label for child in children)
    return f"{symbol}{chr(39) * len(children)}({args})"


@lru_cache(maxsize=None)
def generate_trees(order: int) -> tuple[RootedTree, ...]:
    """Rooted trees of exactly `order` nodes.

    Orders 1-4 return the fixed catalog (1, 1, 2, 5 trees). Orders above 4
    return one tree per partition of order-1.
    """
    if order <= 0:
        return ()
    if order in _CATALOG:
        return _CATALOG[order]

    trees = []
    for partition in integer_partitions(order - 1):
        subtrees = []
        for part in partition:
            candidates = generate_trees(part)
            if candidates:
                subtrees.append(candidates[0])
        if subtrees:
            trees.append(RootedTree(order=order, label=tree_label(subtrees), children=tuple(subtrees)))
    return tuple(trees)


@lru_cache(maxsize=None)
def generate_forest(order: int) -> tuple[RootedTree, ...]:
    """All trees of orders 1..order, grouped by increasing order."""
    forest: list[RootedTree] = []
    for k in range(1, order + 1):
        forest.extend(generate_trees(k))
    return tuple(forest)


def count_trees(n: int) -> int:
    """Number of rooted trees with n nodes (A000081).

    Exact for n <= 14; beyond the table an asymptotic estimate is returned.
    """
    if n < 0:
        return 0
    if n < len(A000081):
        return A000081[n]
    return math.floor(math.pow(_OTTER_ALPHA, n) / math.sqrt(n))


# =============================================================================
# DOMAIN RELABELING
# =============================================================================

def relabel_for_domain(tree: RootedTree, domain: str) -> RootedTree:
    """Replace the generic symbol with the domain glyph throughout a tree."""
    glyph = DOMAIN_GLYPHS.get(domain, GENERIC_SYMBOL)
    return RootedTree(
        order=tree.order,
        label=tree.label.replace(GENERIC_SYMBOL, glyph),
        children=tuple(relabel_for_domain(child, domain) for child in tree.children),
    )


def generate_domain_specific(domain: str, order: int) -> tuple[RootedTree, ...]:
    """generate_trees(order) relabelled with the domain glyph."""
    return tuple(relabel_for_domain(tree, domain) for tree in generate_trees(order))


# =============================================================================
# STRUCTURAL MEASURES
# =============================================================================

def symmetry_factor(tree: RootedTree, arena: TreeArena | None = None) -> int:
    """Symmetry factor sigma(t).

    Leaf: 1. Otherwise the product of factorials of the multiplicities of
    structurally identical children, times each child's own factor.
    """
    arena = arena if arena is not None else TreeArena()
    return arena.symmetry_factor(arena.intern(tree))


def tree_depth(tree: RootedTree) -> int:
    if not tree.children:
        return 1
    return 1 + max(tree_depth(child) for child in tree.children)


def tree_balance(tree: RootedTree) -> float:
    """min/max depth ratio over the root's children (1.0 for a leaf)."""
    if not tree.children:
        return 1.0
    depths = [tree_depth(child) for child in tree.children]
    return min(depths) / max(depths)
