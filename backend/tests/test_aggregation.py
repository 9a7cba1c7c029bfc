from bukber.models import RoomSession, Round
from bukber.services.rooms.aggregation import (
    compute_results,
    count_ballots,
    rank_candidates,
    top_n,
    winner,
)


def test_counts_and_stable_tie_break():
    ballots = [['A', 'B'], ['A'], ['B'], ['C']]
    assert count_ballots(ballots) == {'A': 2, 'B': 2, 'C': 1}
    assert top_n(ballots, 2) == ['A', 'B']


def test_tie_keeps_discovery_order_even_when_later_candidate_catches_up():
    ballots = [['C'], ['B', 'A'], ['A', 'B'], ['C']]
    # C, B and A all have 2; discovery order decides
    assert rank_candidates(ballots) == ['C', 'B', 'A']


def test_higher_count_beats_discovery_order():
    assert top_n([['X'], ['Y'], ['Y']], 2) == ['Y', 'X']


def test_item_repeated_in_one_ballot_counts_once():
    assert count_ballots([['A', 'A', 'B']]) == {'A': 1, 'B': 1}


def test_empty_ballots_give_nothing():
    assert top_n([], 2) == []
    assert top_n([[], []], 2) == []


def test_winner_of_single_select_ballots():
    assert winner(['r2', 'r1', 'r1']) == 'r1'
    assert winner(['r2', 'r1']) == 'r2'
    assert winner([]) == 'TBD'


def test_compute_results_reads_round2_and_round4():
    session = RoomSession('1234', 'Bukber')
    session.round = Round.RESULTS
    session.votes['round2'] = {'a': '2026-03-20', 'b': '2026-03-21', 'c': '2026-03-21'}
    session.votes['round4'] = {'a': 'r4'}
    results = compute_results(session)
    assert results['date'] == '2026-03-21'
    assert results['restaurant'] == 'r4'
    assert results['restaurantDetail']['name'] == 'Torani'
