"""
Pairing generators. Each takes player rows (dicts with at least ``id``; swiss
also reads ``points`` and ``tiebreaker_score``) and returns match rows ready
to insert into event_tournament_matches.
"""

import math
from typing import List, Optional

from gametaverns.modules.tournaments.models import MatchStatus


def _match(
    event_id: str,
    round_number: int,
    match_number: int,
    player1_id: Optional[str] = None,
    player2_id: Optional[str] = None,
    winner_id: Optional[str] = None,
    status: MatchStatus = MatchStatus.PENDING,
    bracket_position: Optional[str] = None,
) -> dict:
    return {
        "event_id": event_id,
        "round_number": round_number,
        "match_number": match_number,
        "bracket_position": bracket_position,
        "player1_id": player1_id,
        "player2_id": player2_id,
        "winner_id": winner_id,
        "player1_score": None,
        "player2_score": None,
        "status": status.value,
    }


def next_slot(match_number: int) -> tuple:
    """Where the winner of an elimination match goes: (next match number, 'player1_id' | 'player2_id')."""
    return (match_number + 1) // 2, "player1_id" if match_number % 2 == 1 else "player2_id"


def single_elimination(event_id: str, players: List[dict]) -> List[dict]:
    """Seed i meets seed size-1-i; missing opponents are byes that advance immediately."""
    n = len(players)
    if n < 2:
        return []

    bracket_size = 2 ** math.ceil(math.log2(n))
    total_rounds = int(math.log2(bracket_size))
    rounds = {}

    first_round = []
    for i in range(bracket_size // 2):
        p1 = players[i] if i < n else None
        p2 = players[bracket_size - 1 - i] if bracket_size - 1 - i < n else None
        if p1 and p2:
            first_round.append(_match(event_id, 1, i + 1, p1["id"], p2["id"], bracket_position="winners"))
        else:
            advancing = (p1 or p2 or {}).get("id")
            first_round.append(_match(
                event_id, 1, i + 1,
                player1_id=advancing,
                winner_id=advancing,
                status=MatchStatus.BYE,
                bracket_position="winners",
            ))
    rounds[1] = first_round

    matches_in_round = bracket_size // 4
    for round_number in range(2, total_rounds + 1):
        rounds[round_number] = [
            _match(event_id, round_number, i + 1, bracket_position="winners")
            for i in range(max(1, matches_in_round))
        ]
        matches_in_round //= 2

    if total_rounds >= 2:
        for match in first_round:
            if match["status"] == MatchStatus.BYE.value and match["winner_id"]:
                target, slot = next_slot(match["match_number"])
                rounds[2][target - 1][slot] = match["winner_id"]

    return [m for r in sorted(rounds) for m in rounds[r]]


def round_robin(event_id: str, players: List[dict]) -> List[dict]:
    """Circle method: the first player stays put and everyone else rotates one seat per round."""
    if len(players) < 2:
        return []

    seats: List[Optional[dict]] = list(players)
    if len(seats) % 2:
        seats.append(None)

    matches = []
    match_number = 0
    for round_index in range(len(seats) - 1):
        for i in range(len(seats) // 2):
            p1 = seats[i]
            p2 = seats[len(seats) - 1 - i]
            match_number += 1
            if p1 is None or p2 is None:
                sitting_out = (p1 or p2)["id"]
                matches.append(_match(
                    event_id, round_index + 1, match_number,
                    player1_id=sitting_out, winner_id=sitting_out, status=MatchStatus.BYE,
                ))
            else:
                matches.append(_match(event_id, round_index + 1, match_number, p1["id"], p2["id"]))
        seats.insert(1, seats.pop())
    return matches


def swiss(event_id: str, players: List[dict], round_number: int) -> List[dict]:
    """Pair neighbours in the standings; an odd player out gets a bye."""
    standings = sorted(
        players,
        key=lambda p: (p.get("points") or 0, float(p.get("tiebreaker_score") or 0)),
        reverse=True,
    )
    matches = []
    match_number = 0
    for i in range(0, len(standings) - 1, 2):
        match_number += 1
        matches.append(_match(event_id, round_number, match_number, standings[i]["id"], standings[i + 1]["id"]))

    if len(standings) % 2:
        leftover = standings[-1]["id"]
        match_number += 1
        matches.append(_match(
            event_id, round_number, match_number,
            player1_id=leftover, winner_id=leftover, status=MatchStatus.BYE,
        ))
    return matches
