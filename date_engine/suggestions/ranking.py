from __future__ import annotations

from .models import Candidate, RankedCandidate

QUALITY_WEIGHT = 0.7
DISTANCE_WEIGHT = 0.3
# Event providers give no distance or quality signal, so every event gets
# the same baseline.
EVENT_BASELINE_SCORE = 0.5


def score_candidate(candidate: Candidate) -> float:
    if candidate.kind == "event":
        return EVENT_BASELINE_SCORE
    return candidate.quality_score * QUALITY_WEIGHT - candidate.distance_km * DISTANCE_WEIGHT


def rank_candidates(
    venues: list[Candidate],
    events: list[Candidate],
) -> list[RankedCandidate]:
    """
    Merge venues and events into one list sorted by score descending.

    Ties fall back to lower distance, then arrival order (venues before
    events, provider order within each). Inputs are not modified.
    """
    merged = [*venues, *events]
    scored = [
        (index, RankedCandidate(**candidate.model_dump(), score=score_candidate(candidate)))
        for index, candidate in enumerate(merged)
    ]
    scored.sort(key=lambda pair: (-pair[1].score, pair[1].distance_km, pair[0]))
    return [ranked for _, ranked in scored]
