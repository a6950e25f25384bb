"""Scoring layer: similarity between a drawing and a target image.

Public API:
    SimilarityScorer: configured compare() / get_difference_map()
    ComparisonResult: immutable comparison outcome
    color_similarity, structural_similarity, edge_map, difference_map: primitives
"""

from .similarity import (
    ComparisonResult,
    SimilarityScorer,
    color_similarity,
    difference_map,
    edge_map,
    structural_similarity,
)

__all__ = [
    'ComparisonResult',
    'SimilarityScorer',
    'color_similarity',
    'difference_map',
    'edge_map',
    'structural_similarity',
]
