"""Union-Find (disjoint set) over Bitcoin addresses.

Path compression plus union by rank. The cluster builder records every
common-input and change link here, so the final cluster is simply the set
containing the target address.

Reference: Cormen et al., "Introduction to Algorithms" (Chapter 21)
"""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable


class UnionFind:
    """Disjoint sets of address strings.

    Example:
        >>> uf = UnionFind()
        >>> uf.union_all(["addr1", "addr2", "addr3"])
        2
        >>> uf.members("addr3")
        {'addr1', 'addr2', 'addr3'}
    """

    def __init__(self) -> None:
        self._parent: dict[str, str] = {}
        self._rank: dict[str, int] = defaultdict(int)

    def add(self, address: str) -> None:
        self._parent.setdefault(address, address)

    def find(self, address: str) -> str:
        """Root of the set containing ``address`` (added if unseen)."""
        self.add(address)
        root = address
        while self._parent[root] != root:
            root = self._parent[root]
        # Path compression
        while self._parent[address] != root:
            self._parent[address], address = root, self._parent[address]
        return root

    def union(self, a: str, b: str) -> bool:
        """Merge the sets of ``a`` and ``b``.

        Returns:
            True if two distinct sets were merged
        """
        root_a = self.find(a)
        root_b = self.find(b)
        if root_a == root_b:
            return False

        if self._rank[root_a] < self._rank[root_b]:
            root_a, root_b = root_b, root_a
        self._parent[root_b] = root_a
        if self._rank[root_a] == self._rank[root_b]:
            self._rank[root_a] += 1
        return True

    def union_all(self, addresses: Iterable[str]) -> int:
        """Link every address to the first one. Returns the number of merges."""
        addresses = list(addresses)
        if not addresses:
            return 0
        first = addresses[0]
        self.add(first)
        return sum(1 for other in addresses[1:] if self.union(first, other))

    def connected(self, a: str, b: str) -> bool:
        if a not in self._parent or b not in self._parent:
            return False
        return self.find(a) == self.find(b)

    def members(self, address: str) -> set[str]:
        """Every address in the same set as ``address``."""
        root = self.find(address)
        return {a for a in self._parent if self.find(a) == root}

    def __len__(self) -> int:
        return len(self._parent)

    def __contains__(self, address: object) -> bool:
        return address in self._parent
