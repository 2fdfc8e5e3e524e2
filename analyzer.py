import math
from collections import Counter
from typing import Iterable, List, Optional, Sequence

from pydantic import BaseModel

from services.provider_models import BacklinkRecord, BacklinkSummary, OnPageSummary, PageRecord

MOBILE_FRIENDLY_SCORE = 100
NOT_MOBILE_FRIENDLY_SCORE = 50


class OnPageMetrics(BaseModel):
    total_pages: int = 0
    errors_404: int = 0
    errors_5xx: int = 0
    missing_titles: int = 0
    missing_descriptions: int = 0
    duplicate_titles: int = 0
    duplicate_descriptions: int = 0
    missing_h1: int = 0
    missing_alt_text: int = 0
    avg_load_time: int = 0  # milliseconds
    mobile_score: int = 0


class BacklinkMetrics(BaseModel):
    total_backlinks: int = 0
    referring_domains: int = 0
    dofollow_links: int = 0
    nofollow_links: int = 0
    toxic_links: int = 0
    avg_domain_rank: int = 0


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def mean_rounded(values: Sequence[float]) -> int:
    if not values:
        return 0
    return round_half_up(sum(values) / len(values))


def count_duplicates(values: Iterable[Optional[str]]) -> int:
    """Number of distinct non-empty values seen more than once"""
    counts = Counter(v for v in values if v)
    return sum(1 for count in counts.values() if count > 1)


def aggregate_on_page(pages: List[PageRecord], summary: Optional[OnPageSummary]) -> OnPageMetrics:
    """Reduce crawled pages to on-page metrics"""
    titles = []
    descriptions = []
    timings = []
    metrics = OnPageMetrics(total_pages=len(pages))

    for page in pages:
        if page.status_code == 404:
            metrics.errors_404 += 1
        if page.status_code >= 500:
            metrics.errors_5xx += 1

        meta = page.meta
        title = meta.title if meta else None
        description = meta.description if meta else None

        if not title:
            metrics.missing_titles += 1
        titles.append(title)

        if not description:
            metrics.missing_descriptions += 1
        descriptions.append(description)

        if not meta or not any(meta.h1):
            metrics.missing_h1 += 1

        if meta:
            metrics.missing_alt_text += sum(1 for img in meta.images if not img.alt)

        if page.page_timing and page.page_timing.time_to_interactive is not None:
            timings.append(page.page_timing.time_to_interactive)

    metrics.duplicate_titles = count_duplicates(titles)
    metrics.duplicate_descriptions = count_duplicates(descriptions)
    metrics.avg_load_time = mean_rounded(timings)

    mobile_friendly = summary is not None and summary.checks.mobile_friendly
    metrics.mobile_score = MOBILE_FRIENDLY_SCORE if mobile_friendly else NOT_MOBILE_FRIENDLY_SCORE

    return metrics


def average_domain_rank(backlinks: List[BacklinkRecord]) -> int:
    return mean_rounded([link.rank for link in backlinks])


def aggregate_backlinks(summary: BacklinkSummary, backlinks: List[BacklinkRecord], toxic_links: int) -> BacklinkMetrics:
    return BacklinkMetrics(
        total_backlinks=summary.backlinks,
        referring_domains=summary.referring_domains,
        dofollow_links=summary.dofollow,
        nofollow_links=summary.nofollow,
        toxic_links=toxic_links,
        avg_domain_rank=average_domain_rank(backlinks)
    )
