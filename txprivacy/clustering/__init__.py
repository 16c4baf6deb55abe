"""
Address clustering.

Exports:
    build_first_degree_cluster: One-hop CIOH + change-following walk
    change_candidate: Unambiguous change address of a target spend
    UnionFind: Disjoint sets of addresses
"""

from txprivacy.clustering.cluster_builder import build_first_degree_cluster, change_candidate
from txprivacy.clustering.union_find import UnionFind

__all__ = ["build_first_degree_cluster", "change_candidate", "UnionFind"]
