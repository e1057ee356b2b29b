"""Proximity scoring for linked query terms.

A proximity group rewards documents where its terms occur close together.
The span of a group is the smallest ``max - min`` token distance over all
choices of one occurrence per present term; a finite span > 0 scales the
document score by ``1 + boost / span``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
import heapq


def get_min_span(term_positions: Mapping[str, Sequence[int]]) -> int:
    """Calculate the minimum span covering one occurrence of each present term.

    Terms with no occurrences are ignored. Returns 0 when fewer than two
    terms occur, meaning no proximity boost applies.

    The sweep keeps one cursor per sorted position list and always advances
    the smallest one, which yields the same minimum as scoring the full
    cross product of position lists.

    Args:
        term_positions: Mapping of term to its sorted token positions.

    Returns:
        Minimum ``max - min`` distance, or 0 if fewer than two terms occur.
    """
    position_lists = [sorted(positions) for positions in term_positions.values() if positions]
    if len(position_lists) < 2:
        return 0

    heap = [(positions[0], list_index, 0) for list_index, positions in enumerate(position_lists)]
    heapq.heapify(heap)
    current_max = max(entry[0] for entry in heap)
    best = current_max - heap[0][0]

    while True:
        lowest, list_index, cursor = heapq.heappop(heap)
        best = min(best, current_max - lowest)
        if best == 0:
            return 0
        next_cursor = cursor + 1
        positions = position_lists[list_index]
        if next_cursor >= len(positions):
            return best
        next_position = positions[next_cursor]
        current_max = max(current_max, next_position)
        heapq.heappush(heap, (next_position, list_index, next_cursor))


def proximity_multiplier(spans: Sequence[int], boost: float) -> float:
    """Combined score multiplier for the spans of every proximity group."""
    multiplier = 1.0
    for span in spans:
        if span > 0:
            multiplier *= 1.0 + boost / span
    return multiplier
