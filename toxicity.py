from typing import Iterable

from services.provider_models import BacklinkRecord

MIN_TRUSTED_RANK = 10
TOXIC_ANCHOR_TERMS = ('viagra', 'casino', 'porn')
LOW_TRUST_TLDS = ('.xyz', '.info')


def toxicity_points(link: BacklinkRecord) -> int:
    """Spam signals raised by a single backlink (0-3)"""
    points = 0
    anchor = (link.anchor or '').lower()
    domain = (link.domain_from or '').lower()

    if link.rank < MIN_TRUSTED_RANK:
        points += 1
    if any(term in anchor for term in TOXIC_ANCHOR_TERMS):
        points += 1
    if domain.endswith(LOW_TRUST_TLDS):
        points += 1

    return points


def count_toxic_backlinks(backlinks: Iterable[BacklinkRecord]) -> int:
    return sum(toxicity_points(link) for link in backlinks)
