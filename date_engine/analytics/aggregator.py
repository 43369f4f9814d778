from __future__ import annotations

from collections import Counter
from typing import Any


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    requests = [e for e in events if e["type"] == "date_suggestions"]
    total = len(requests)

    times = [r["response_time_ms"] for r in requests if "response_time_ms" in r]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    cache_hits = sum(1 for r in requests if r.get("cache_hit"))

    degraded: Counter[str] = Counter()
    for r in requests:
        for source in r.get("failed_sources", []) or []:
            degraded[source] += 1

    failures: Counter[str] = Counter(r["failure"] for r in requests if r.get("failure"))
    completed = [r for r in requests if not r.get("failure")]

    # Top locations (rounded to 2 decimals, roughly neighbourhood level)
    loc_counter: Counter[str] = Counter()
    for r in requests:
        if r.get("latitude") is not None and r.get("longitude") is not None:
            loc_counter[f"{r['latitude']:.2f},{r['longitude']:.2f}"] += 1
    top_locations = [{"name": n, "count": c} for n, c in loc_counter.most_common(10)]

    return {
        "total_requests": total,
        "avg_response_time_ms": avg_time,
        "top_locations": top_locations,
        "cache_stats": {
            "hits": cache_hits,
            "misses": total - cache_hits,
            "hit_rate": round(cache_hits / total * 100, 1) if total else 0.0,
        },
        "degraded_sources": dict(degraded),
        "calendar_unavailable": sum(1 for r in requests if r.get("calendar_unavailable")),
        "empty_results": sum(1 for r in completed if r.get("packages_returned") == 0),
        "failures": dict(failures),
    }
