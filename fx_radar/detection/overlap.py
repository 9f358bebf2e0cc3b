"""Greedy de-duplication of candidate mentions whose text ranges intersect."""

from __future__ import annotations

from typing import Iterable

from fx_radar.detection.models import CurrencyMention


def ranges_overlap(first: tuple[int, int], second: tuple[int, int]) -> bool:
    return not (first[1] <= second[0] or first[0] >= second[1])


class OverlapResolver:
    """Keep the highest-confidence, earliest candidate of every overlapping group.

    Candidates are ordered by descending confidence and ascending start. The
    sort is stable, so equal candidates keep their insertion order and the
    pattern family that ran first wins a tie.
    """

    def resolve(self, candidates: Iterable[CurrencyMention]) -> list[CurrencyMention]:
        ordered = sorted(candidates, key=lambda mention: (-mention.confidence, mention.start))
        kept: list[CurrencyMention] = []
        for candidate in ordered:
            if any(ranges_overlap(candidate.range, other.range) for other in kept):
                continue
            kept.append(candidate)
        return kept


__all__ = ["OverlapResolver", "ranges_overlap"]
