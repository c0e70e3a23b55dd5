from __future__ import annotations

from itertools import combinations

from gametaverns.modules.tournaments.brackets import next_slot, round_robin, single_elimination, swiss


def players(count, **fields):
    return [{"id": f"p{i + 1}", **fields} for i in range(count)]


def pairs(matches):
    return [
        frozenset((m["player1_id"], m["player2_id"]))
        for m in matches
        if m["status"] != "bye"
    ]


def test_next_slot_maps_odd_and_even_matches():
    assert next_slot(1) == (1, "player1_id")
    assert next_slot(2) == (1, "player2_id")
    assert next_slot(3) == (2, "player1_id")
    assert next_slot(4) == (2, "player2_id")


def test_single_elimination_four_players_seeds_top_against_bottom():
    matches = single_elimination("e1", players(4))

    first_round = [m for m in matches if m["round_number"] == 1]
    final = [m for m in matches if m["round_number"] == 2]
    assert [(m["player1_id"], m["player2_id"]) for m in first_round] == [("p1", "p4"), ("p2", "p3")]
    assert len(final) == 1
    assert final[0]["player1_id"] is None and final[0]["player2_id"] is None
    assert all(m["bracket_position"] == "winners" for m in matches)
    assert all(m["event_id"] == "e1" for m in matches)


def test_single_elimination_byes_advance_into_round_two():
    matches = single_elimination("e1", players(5))

    by_round = {}
    for m in matches:
        by_round.setdefault(m["round_number"], []).append(m)
    assert sorted(by_round) == [1, 2, 3]
    assert len(by_round[1]) == 4
    assert len(by_round[2]) == 2
    assert len(by_round[3]) == 1

    byes = [m for m in by_round[1] if m["status"] == "bye"]
    assert [m["winner_id"] for m in byes] == ["p1", "p2", "p3"]
    assert all(m["player2_id"] is None for m in byes)
    played = [m for m in by_round[1] if m["status"] == "pending"]
    assert [(m["player1_id"], m["player2_id"]) for m in played] == [("p4", "p5")]

    assert by_round[2][0]["player1_id"] == "p1"
    assert by_round[2][0]["player2_id"] == "p2"
    assert by_round[2][1]["player1_id"] == "p3"
    assert by_round[2][1]["player2_id"] is None


def test_single_elimination_two_players_is_just_a_final():
    matches = single_elimination("e1", players(2))

    assert len(matches) == 1
    assert (matches[0]["player1_id"], matches[0]["player2_id"]) == ("p1", "p2")


def test_single_elimination_needs_two_players():
    assert single_elimination("e1", players(1)) == []


def test_round_robin_even_field_plays_everyone_once():
    matches = round_robin("e1", players(4))

    assert len(matches) == 6
    assert sorted(pairs(matches), key=sorted) == sorted(
        (frozenset(c) for c in combinations(["p1", "p2", "p3", "p4"], 2)), key=sorted
    )
    assert sorted({m["round_number"] for m in matches}) == [1, 2, 3]
    assert [m["match_number"] for m in matches] == list(range(1, 7))


def test_round_robin_odd_field_gives_each_player_one_bye():
    matches = round_robin("e1", players(5))

    byes = [m for m in matches if m["status"] == "bye"]
    assert len(byes) == 5
    assert sorted(m["player1_id"] for m in byes) == ["p1", "p2", "p3", "p4", "p5"]
    assert len(set(pairs(matches))) == 10
    for round_number in range(1, 6):
        in_round = [m for m in matches if m["round_number"] == round_number]
        seen = [pid for m in in_round for pid in (m["player1_id"], m["player2_id"]) if pid]
        assert len(seen) == len(set(seen)) == 5


def test_swiss_pairs_by_standings():
    field = [
        {"id": "a", "points": 0, "tiebreaker_score": 0},
        {"id": "b", "points": 6, "tiebreaker_score": 1},
        {"id": "c", "points": 3, "tiebreaker_score": 0},
        {"id": "d", "points": 6, "tiebreaker_score": 4},
    ]

    matches = swiss("e1", field, 3)

    assert [(m["player1_id"], m["player2_id"]) for m in matches] == [("d", "b"), ("c", "a")]
    assert all(m["round_number"] == 3 for m in matches)


def test_swiss_odd_player_gets_bye():
    matches = swiss("e1", players(3, points=0, tiebreaker_score=0), 1)

    assert len(matches) == 2
    assert matches[-1]["status"] == "bye"
    assert matches[-1]["winner_id"] == matches[-1]["player1_id"] == "p3"
