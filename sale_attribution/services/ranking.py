"""
Campaign ranking service.

Groups the events found around the estimated click by (campaign, creative),
ranks the groups by raw event count and tags each with a confidence tier.

Ranking rules:
- Events with missing labels carry the "unknown" sentinel, so they group together
- Sort is descending by count and stable: ties keep first-seen order
- Only the top 3 groups are returned
- Confidence: count > 20 is high, count > 10 is medium, otherwise low
- utm_source/utm_medium come from the first event of each group

There is no weighting by recency or by distance to the estimated click; the
event window already bounds what counts.
"""

import logging
from typing import List, Sequence

import pandas as pd

from sale_attribution.models.enums import Confidence
from sale_attribution.models.schemas import AttributionEvent, CampaignCandidate


logger = logging.getLogger(__name__)


# =============================================================================
# Ranking Configuration
# =============================================================================

# Maximum candidates reported per sale
MAX_CANDIDATES: int = 3

# Event counts strictly above these values reach the tier
HIGH_CONFIDENCE_MIN_EXCLUSIVE: int = 20
MEDIUM_CONFIDENCE_MIN_EXCLUSIVE: int = 10

GROUP_KEYS = ["campaign", "creative"]


def classify_confidence(count: int) -> Confidence:
    """
    Map an event count to a confidence tier.

    Args:
        count: Number of events observed for a campaign/creative pair.

    Returns:
        Confidence.HIGH if count > 20, Confidence.MEDIUM if count > 10,
        otherwise Confidence.LOW.
    """
    if count > HIGH_CONFIDENCE_MIN_EXCLUSIVE:
        return Confidence.HIGH
    elif count > MEDIUM_CONFIDENCE_MIN_EXCLUSIVE:
        return Confidence.MEDIUM
    return Confidence.LOW


def rank_campaigns(
    events: Sequence[AttributionEvent],
    limit: int = MAX_CANDIDATES,
) -> List[CampaignCandidate]:
    """
    Rank campaign/creative pairs by click volume.

    Args:
        events: Events found in the window around the estimated click.
        limit: Maximum number of candidates to return (default 3).

    Returns:
        Up to `limit` candidates, highest count first. Deterministic for a
        given input order.
    """
    if not events:
        return []

    df = pd.DataFrame(
        [
            {
                "campaign": event.campaign,
                "creative": event.creative,
                "source": event.source,
                "medium": event.medium,
            }
            for event in events
        ]
    )

    # sort=False keeps groups in order of first appearance
    grouped = (
        df.groupby(GROUP_KEYS, sort=False)
        .agg(
            click_count=("source", "size"),
            utm_source=("source", "first"),
            utm_medium=("medium", "first"),
        )
        .reset_index()
    )

    # Stable sort so equal counts keep first-appearance order
    ranked = grouped.sort_values("click_count", ascending=False, kind="stable").head(limit)

    candidates = [
        CampaignCandidate(
            campaign=row.campaign,
            creative=row.creative,
            utm_source=row.utm_source,
            utm_medium=row.utm_medium,
            click_count=int(row.click_count),
            confidence=classify_confidence(int(row.click_count)),
        )
        for row in ranked.itertuples(index=False)
    ]

    logger.debug(
        f"Ranked {len(grouped)} campaign groups from {len(events)} events; "
        f"returning {len(candidates)}"
    )
    return candidates
