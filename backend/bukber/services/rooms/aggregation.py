from typing import Any, Dict, Iterable, List, Optional

from bukber.models import Round, RoomSession

NO_WINNER = 'TBD'


def _as_items(ballot) -> List[Any]:
    if isinstance(ballot, (list, tuple)):
        return list(ballot)
    if ballot is None or ballot == '':
        return []
    return [ballot]


def count_ballots(ballots: Iterable[Any]) -> Dict[Any, int]:
    """Count candidates across ballots, once per ballot.

    The returned dict preserves first-discovery order, which is what the
    tie-break relies on.
    """
    counts: Dict[Any, int] = {}
    for ballot in ballots:
        seen = set()
        for item in _as_items(ballot):
            if item in seen:
                continue
            seen.add(item)
            counts[item] = counts.get(item, 0) + 1
    return counts


def rank_candidates(ballots: Iterable[Any]) -> List[Any]:
    counts = count_ballots(ballots)
    # sorted() is stable: equal counts keep discovery order
    return sorted(counts, key=lambda c: counts[c], reverse=True)


def top_n(ballots: Iterable[Any], n: int) -> List[Any]:
    return rank_candidates(ballots)[:n]


def winner(ballots: Iterable[Any], default: str = NO_WINNER):
    ranked = rank_candidates(ballots)
    return ranked[0] if ranked else default


def compute_results(session: RoomSession) -> Dict[str, Optional[Any]]:
    """Derive the final date and venue from the round2/round4 ledgers.

    Read-only; nothing is stored on the session.
    """
    date = winner(session.votes.get(Round.ROUND2.value, {}).values())
    restaurant = winner(session.votes.get(Round.ROUND4.value, {}).values())
    return {
        'roomId': session.room_id,
        'date': date,
        'restaurant': restaurant,
        'restaurantDetail': session.restaurant_by_id(restaurant),
    }
