"""
Adjusted Efficiency Solver

Opponent-adjusted offensive and defensive ratings by fixed-point iteration.

Each team's Adj ORTG is the possession-weighted average, over its rated
games, of that game's ORTG scaled by how tough the opponent's defense is
relative to the league:

    adj_ortg(T) = sum(poss_g * ortg_g * avg_drtg / adj_drtg(opp_g)) / sum(poss_g)

Adj DRTG is symmetric against opponents' Adj ORTG. Every team is updated
from the previous iteration's committed values only (synchronous update),
so the result does not depend on team order. Each update is blended with
the previous value by ``damping``; without it the multiplicative update
flips between two states on schedules where the teams split into two
groups that only play each other.

Iteration stops when the largest change in any team's Adj NET falls below
the threshold. The update that met the threshold is not committed, so a
converged result used as the seed converges again in zero iterations with
identical output. Hitting the iteration cap is not an error: the last
committed values are returned with ``converged=False``.
"""

from dataclasses import dataclass
from typing import Callable, Mapping, Optional

from core.errors import RunCancelledError
from core.logging import get_logger
from pipelines.config import RatingOptions
from pipelines.season import SeasonDataset, TeamGame
from pipelines.transformers.possessions import game_ratings

log = get_logger("ratings.efficiency")


@dataclass(frozen=True)
class _Observation:
    opponent_id: str
    possessions: float
    opponent_possessions: float
    ortg: float
    drtg: float


@dataclass(frozen=True)
class AdjustedRatings:
    """Raw and opponent-adjusted efficiency for one team."""

    rated_games: int
    ortg: float
    drtg: float
    adj_ortg: float
    adj_drtg: float
    sos: float
    osos: float
    dsos: float
    nsos: float

    @property
    def net_rating(self) -> float:
        return self.ortg - self.drtg

    @property
    def adj_net(self) -> float:
        return self.adj_ortg - self.adj_drtg


@dataclass(frozen=True)
class EfficiencyResult:
    """Solver output for a whole scope."""

    ratings: dict[str, AdjustedRatings]
    league_avg_ortg: float
    league_avg_drtg: float
    iterations: int
    converged: bool
    max_delta: float

    def seed(self) -> dict[str, tuple[float, float]]:
        """Adjusted values in the shape accepted by ``solve_adjusted_ratings(seed=...)``."""
        return {tid: (r.adj_ortg, r.adj_drtg) for tid, r in self.ratings.items()}


def solver_edges(dataset: SeasonDataset, team_id: str, include_non_league: bool) -> list[TeamGame]:
    return dataset.edges(team_id, league_only=not include_non_league)


def solver_team_ids(dataset: SeasonDataset, include_non_league: bool) -> list[str]:
    """League members plus every team with a game the solver can see, in id order."""
    ids = set(dataset.member_ids)
    for team_id in dataset.teams:
        if solver_edges(dataset, team_id, include_non_league):
            ids.add(team_id)
    return sorted(ids)


def _weighted_mean(pairs: list[tuple[float, float]], fallback: float) -> float:
    """Mean of values weighted by weights, from (weight, value) pairs."""
    total_weight = sum(w for w, _ in pairs)
    if total_weight <= 0:
        return fallback
    return sum(w * v for w, v in pairs) / total_weight


def solve_adjusted_ratings(
    dataset: SeasonDataset,
    options: RatingOptions,
    seed: Optional[Mapping[str, tuple[float, float]]] = None,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> EfficiencyResult:
    """
    Run the fixed-point iteration for one scope.

    Args:
        dataset: Season dataset
        options: Iteration cap, threshold, damping and game scope
        seed: Optional warm start {team_id: (adj_ortg, adj_drtg)}; raw ratings otherwise
        should_cancel: Polled before every iteration; returning True aborts the run

    Returns:
        EfficiencyResult with per-team ratings, league averages and solver status

    Raises:
        RunCancelledError: If should_cancel() returns True between iterations
    """
    team_ids = solver_team_ids(dataset, options.include_non_league)

    observations: dict[str, list[_Observation]] = {}
    for tid in team_ids:
        obs = []
        for edge in solver_edges(dataset, tid, options.include_non_league):
            ratings = game_ratings(edge)
            if ratings is None:
                continue
            obs.append(
                _Observation(
                    opponent_id=edge.opponent_id,
                    possessions=ratings.possessions,
                    opponent_possessions=ratings.opponent_possessions,
                    ortg=ratings.ortg,
                    drtg=ratings.drtg,
                )
            )
        observations[tid] = obs

    all_obs = [o for obs in observations.values() for o in obs]
    league_avg_ortg = _weighted_mean([(o.possessions, o.ortg) for o in all_obs], 100.0)
    league_avg_drtg = _weighted_mean([(o.opponent_possessions, o.drtg) for o in all_obs], 100.0)

    raw: dict[str, tuple[float, float]] = {}
    for tid in team_ids:
        obs = observations[tid]
        raw[tid] = (
            _weighted_mean([(o.possessions, o.ortg) for o in obs], league_avg_ortg),
            _weighted_mean([(o.opponent_possessions, o.drtg) for o in obs], league_avg_drtg),
        )

    current: dict[str, tuple[float, float]] = {}
    for tid in team_ids:
        if seed is not None and tid in seed and observations[tid]:
            current[tid] = seed[tid]
        else:
            current[tid] = raw[tid]

    damping = options.damping
    iterations = 0
    converged = False
    max_delta = float("inf")

    for _ in range(options.max_iterations):
        if should_cancel is not None and should_cancel():
            raise RunCancelledError(
                f"ratings run for {dataset.scope} cancelled before iteration {iterations + 1}",
                iteration=iterations,
            )

        proposed: dict[str, tuple[float, float]] = {}
        for tid in team_ids:
            obs = observations[tid]
            cur_o, cur_d = current[tid]
            if not obs:
                proposed[tid] = (cur_o, cur_d)
                continue
            adj_o = _weighted_mean(
                [
                    (o.possessions, o.ortg * _scale(league_avg_drtg, current[o.opponent_id][1]))
                    for o in obs
                ],
                cur_o,
            )
            adj_d = _weighted_mean(
                [
                    (o.opponent_possessions, o.drtg * _scale(league_avg_ortg, current[o.opponent_id][0]))
                    for o in obs
                ],
                cur_d,
            )
            proposed[tid] = (
                damping * adj_o + (1.0 - damping) * cur_o,
                damping * adj_d + (1.0 - damping) * cur_d,
            )

        max_delta = max(
            (
                abs((proposed[tid][0] - proposed[tid][1]) - (current[tid][0] - current[tid][1]))
                for tid in team_ids
            ),
            default=0.0,
        )
        if max_delta < options.threshold:
            converged = True
            break

        current = proposed
        iterations += 1
        log.debug("solver_iteration", iteration=iterations, max_delta=round(max_delta, 6))

    if converged:
        log.info(
            "solver_converged",
            league=dataset.scope.league,
            season=dataset.scope.season,
            iterations=iterations,
            max_delta=max_delta,
        )
    else:
        log.warning(
            "solver_not_converged",
            league=dataset.scope.league,
            season=dataset.scope.season,
            iterations=iterations,
            max_delta=max_delta,
            threshold=options.threshold,
        )

    results: dict[str, AdjustedRatings] = {}
    for tid in team_ids:
        adj_o, adj_d = current[tid]
        opponents = [
            e.opponent_id for e in solver_edges(dataset, tid, options.include_non_league)
        ]
        if opponents:
            opp_o = [current[opp][0] for opp in opponents]
            opp_d = [current[opp][1] for opp in opponents]
            opp_net = [o - d for o, d in zip(opp_o, opp_d)]
            sos = sum(opp_net) / len(opp_net)
            osos = sum(opp_o) / len(opp_o)
            dsos = sum(opp_d) / len(opp_d)
        else:
            sos, osos, dsos = 0.0, league_avg_ortg, league_avg_drtg

        results[tid] = AdjustedRatings(
            rated_games=len(observations[tid]),
            ortg=raw[tid][0],
            drtg=raw[tid][1],
            adj_ortg=adj_o,
            adj_drtg=adj_d,
            sos=sos,
            osos=osos,
            dsos=dsos,
            nsos=sos,
        )

    return EfficiencyResult(
        ratings=results,
        league_avg_ortg=league_avg_ortg,
        league_avg_drtg=league_avg_drtg,
        iterations=iterations,
        converged=converged,
        max_delta=max_delta,
    )


def _scale(league_avg: float, opponent_value: float) -> float:
    """League average over the opponent's current rating; neutral for a degenerate rating."""
    if opponent_value <= 0:
        return 1.0
    return league_avg / opponent_value
