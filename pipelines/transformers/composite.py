"""
Composite Ranking Transformer

Pure combination of RPI, quadrant records and adjusted ratings into the
derived scores and orderings:

    QWP  = 4 x Q1W + 2 x Q2W + 1 x Q3W + 0.5 x Q4W
    QWI  = Q1W - 0.25 Q1L + 0.6 Q2W - 0.5 Q2L + 0.3 Q3W - 0.75 Q3L + 0.1 Q4W - Q4L
    PCR  = order by overall win %, RPI, QWP (all desc), then team name
    PR   = PCR with every conference champion placed inside the field
    PI   = weighted sum of min-max normalized (0-100) components

Only league members with at least ``min_games`` in-league games receive
PCR, PR, Power Index and Adj NET ranks. QWP and QWI are computed for
every member.
"""

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from core.logging import get_logger
from pipelines.config import DEFAULT_QWI_WEIGHTS, DEFAULT_QWP_WEIGHTS, RatingOptions
from pipelines.season import SeasonDataset
from pipelines.transformers.efficiency import EfficiencyResult
from pipelines.transformers.rpi import QuadrantRecord, RPIResult, win_pct

log = get_logger("ratings.composite")


@dataclass(frozen=True)
class CompositeResult:
    """Composite scores and ranks for one team. Ranks are None when not eligible."""

    qwp: float
    qwi: float
    pcr: Optional[int] = None
    projected_rank: Optional[int] = None
    is_automatic_qualifier: bool = False
    power_index: Optional[float] = None
    power_index_rank: Optional[int] = None
    adj_net_rank: Optional[int] = None


def quad_win_points(record: QuadrantRecord, weights: Mapping[str, float] = DEFAULT_QWP_WEIGHTS) -> float:
    return sum(weights[f"q{q}"] * record.wins[q] for q in (1, 2, 3, 4))


def quality_win_index(record: QuadrantRecord, weights: Mapping[str, float] = DEFAULT_QWI_WEIGHTS) -> float:
    """Credit for wins minus penalty for losses, by quadrant."""
    return sum(
        weights[f"q{q}_win"] * record.wins[q] - weights[f"q{q}_loss"] * record.losses[q]
        for q in (1, 2, 3, 4)
    )


def overall_win_pct(dataset: SeasonDataset, team_id: str) -> float:
    """Win % over every completed game, in-league or not."""
    edges = dataset.edges(team_id)
    wins = sum(1 for e in edges if e.won)
    return win_pct(wins, len(edges) - wins)


def eligible_team_ids(dataset: SeasonDataset, min_games: int) -> list[str]:
    """League members with at least ``min_games`` in-league games, in id order."""
    return [
        tid
        for tid in dataset.member_ids
        if len(dataset.edges(tid, league_only=True)) >= min_games
    ]


def pcr_order(
    dataset: SeasonDataset,
    team_ids: Iterable[str],
    rpi: Mapping[str, RPIResult],
    qwp: Mapping[str, float],
) -> list[str]:
    """Teams sorted by overall win %, RPI, QWP (desc), then name and id."""
    return sorted(
        team_ids,
        key=lambda tid: (
            -overall_win_pct(dataset, tid),
            -rpi[tid].rpi,
            -qwp[tid],
            dataset.teams[tid].name,
            tid,
        ),
    )


def projected_order(
    order: list[str],
    champions: Mapping[str, Optional[str]],
    field_size: int,
) -> list[str]:
    """
    Apply automatic qualifiers to a PCR order.

    Conferences are processed in name order. A champion ranked outside the
    field takes the slot of the lowest-ranked non-champion inside the field,
    and that team drops to the first position after the field. With several
    promotions the displaced teams stack just after the field in PCR order,
    so a displaced team can fall more than one place. Everyone else keeps
    their relative order. Champions missing from ``order`` (not eligible)
    are ignored.

    Examples:
        With 70 teams and the 70th a champion, the champion moves to 64th
        and the former 64th becomes 65th. If the 69th is a champion too,
        the former 63rd and 64th end up 65th and 66th.
    """
    projected = list(order)
    champion_ids = {tid for tid in champions.values() if tid is not None}

    for conference in sorted(champions):
        champion = champions[conference]
        if champion is None or champion not in projected:
            continue
        position = projected.index(champion)
        if position < field_size:
            continue

        slot = None
        for i in range(min(field_size, len(projected)) - 1, -1, -1):
            if projected[i] not in champion_ids:
                slot = i
                break
        if slot is None:
            log.warning("field_full_of_champions", conference=conference, champion=champion)
            continue

        displaced = projected[slot]
        projected.pop(position)
        projected[slot] = champion
        projected.insert(field_size, displaced)
        log.debug(
            "automatic_qualifier_promoted",
            conference=conference,
            champion=champion,
            from_rank=position + 1,
            to_rank=slot + 1,
            displaced=displaced,
        )

    return projected


def min_max_normalize(values: Mapping[str, float]) -> dict[str, float]:
    """
    Scale values to 0-100 across the given teams.

    A constant column (including a single team) maps to 50.0 for everyone.
    """
    if not values:
        return {}
    low = min(values.values())
    high = max(values.values())
    if high == low:
        return {tid: 50.0 for tid in values}
    span = high - low
    return {tid: 100.0 * (value - low) / span for tid, value in values.items()}


def power_index_components(
    dataset: SeasonDataset,
    team_ids: Iterable[str],
    efficiency: EfficiencyResult,
    qwi: Mapping[str, float],
) -> dict[str, dict[str, float]]:
    """Raw (un-normalized) Power Index components keyed by weight name."""
    components: dict[str, dict[str, float]] = {
        "adj_ortg": {},
        "inv_adj_drtg": {},
        "sos": {},
        "win_pct": {},
        "qwi": {},
    }
    for tid in team_ids:
        ratings = efficiency.ratings[tid]
        components["adj_ortg"][tid] = ratings.adj_ortg
        components["inv_adj_drtg"][tid] = 2.0 * efficiency.league_avg_drtg - ratings.adj_drtg
        components["sos"][tid] = ratings.sos
        components["win_pct"][tid] = overall_win_pct(dataset, tid)
        components["qwi"][tid] = qwi[tid]
    return components


def compute_power_index(
    dataset: SeasonDataset,
    team_ids: list[str],
    efficiency: EfficiencyResult,
    qwi: Mapping[str, float],
    weights: Mapping[str, float],
) -> dict[str, float]:
    components = power_index_components(dataset, team_ids, efficiency, qwi)
    normalized = {name: min_max_normalize(column) for name, column in components.items()}
    return {
        tid: sum(weights[name] * normalized[name][tid] for name in components)
        for tid in team_ids
    }


def _ranks(order: list[str]) -> dict[str, int]:
    return {tid: rank for rank, tid in enumerate(order, start=1)}


def compute_composites(
    dataset: SeasonDataset,
    rpi: Mapping[str, RPIResult],
    quadrants: Mapping[str, QuadrantRecord],
    efficiency: EfficiencyResult,
    champions: Mapping[str, Optional[str]],
    options: RatingOptions,
) -> dict[str, CompositeResult]:
    """
    Composite scores and ranks for every league member.

    Args:
        dataset: Season dataset
        rpi: RPI results by team
        quadrants: Quadrant records by team
        efficiency: Solver output
        champions: conference -> champion team_id (or None when undecided)
        options: Weights, min_games and field_size

    Returns:
        team_id -> CompositeResult
    """
    members = dataset.member_ids
    qwp = {tid: quad_win_points(quadrants[tid], options.qwp_weights) for tid in members}
    qwi = {tid: quality_win_index(quadrants[tid], options.qwi_weights) for tid in members}

    eligible = eligible_team_ids(dataset, options.min_games)
    pcr = pcr_order(dataset, eligible, rpi, qwp)
    projected = projected_order(pcr, champions, options.field_size)

    power_index = compute_power_index(
        dataset, eligible, efficiency, qwi, options.power_index_weights
    )
    by_power = sorted(eligible, key=lambda tid: (-power_index[tid], dataset.teams[tid].name, tid))
    by_adj_net = sorted(
        eligible,
        key=lambda tid: (-efficiency.ratings[tid].adj_net, dataset.teams[tid].name, tid),
    )

    pcr_ranks = _ranks(pcr)
    projected_ranks = _ranks(projected)
    power_ranks = _ranks(by_power)
    adj_net_ranks = _ranks(by_adj_net)
    champion_ids = {tid for tid in champions.values() if tid is not None}

    results = {
        tid: CompositeResult(
            qwp=qwp[tid],
            qwi=qwi[tid],
            pcr=pcr_ranks.get(tid),
            projected_rank=projected_ranks.get(tid),
            is_automatic_qualifier=tid in champion_ids and tid in pcr_ranks,
            power_index=power_index.get(tid),
            power_index_rank=power_ranks.get(tid),
            adj_net_rank=adj_net_ranks.get(tid),
        )
        for tid in members
    }

    log.info(
        "composites_computed",
        league=dataset.scope.league,
        season=dataset.scope.season,
        members=len(members),
        ranked=len(eligible),
        automatic_qualifiers=sum(1 for r in results.values() if r.is_automatic_qualifier),
    )
    return results
