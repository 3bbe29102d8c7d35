"""
Golf Swing Simulator: Swing Parameter Optimizer
===============================================
Two-phase stochastic search over the torque profile to maximize distance
with the hands ahead at impact:

1. Global random search over the admissible parameter box
2. Hill climbing from the best phase-1 hit

Work is done in bounded batches; control returns to the caller between
batches (generator / callback), which is also where a stop request is
honoured.
"""

import logging
import time
from dataclasses import dataclass, field, replace
from typing import Callable, Iterator, List, Optional, Union

import numpy as np

from swing_config import (
    SwingConfig, SwingParams, SwingParamBounds, SearchConfig, SimulationResult, M_TO_YD,
)
from swing_model import SwingSimulator, report_simulation

logger = logging.getLogger(__name__)


def score_result(result: SimulationResult, search: SearchConfig = None) -> float:
    """
    Score a swing; higher is better.

    A miss never wins. Hands behind the ball at impact (negative lean) sits
    far below every hands-ahead hit; otherwise distance plus a lean bonus.
    """
    search = search if search is not None else SearchConfig()
    if not result.hit_ball:
        return float('-inf')
    if result.shaft_lean < 0:
        return -search.late_hands_penalty + result.shaft_lean
    return result.ball_distance + search.lean_weight * result.shaft_lean


@dataclass
class SearchProgress:
    """Snapshot handed back to the caller after each batch."""
    phase: int
    iteration: int
    budget: int
    n_evaluations: int
    n_hits: int
    best_score: float
    best_params: Optional[SwingParams]
    best_distance: float


@dataclass
class OptimizationResult:
    """Results from a search run."""
    best_params: Optional[SwingParams]
    best_result: Optional[SimulationResult]
    best_score: float
    n_evaluations: int
    n_hits: int
    phase1_evaluations: int
    phase2_evaluations: int
    convergence_history: List[float] = field(default_factory=list)
    stopped: bool = False
    optimization_time: float = 0.0

    @property
    def success(self) -> bool:
        return self.best_params is not None


class SwingOptimizer:
    """
    Random search + hill climbing optimizer for swing parameters.

    The best-so-far is held on the instance and updated only by the
    driving loop; use one instance per concurrent search.
    """

    def __init__(
        self,
        bounds: SwingParamBounds = None,
        config: SwingConfig = None,
        search: SearchConfig = None,
        rng: Union[np.random.Generator, int, None] = None,
        verbose: bool = False,
    ):
        """
        Initialize optimizer.

        Parameters
        ----------
        bounds : SwingParamBounds, optional
            Admissible parameter ranges
        config : SwingConfig, optional
            Physical constants for the simulator
        search : SearchConfig, optional
            Budgets, batch size and scoring weights
        rng : numpy Generator or int seed, optional
            Source of randomness; pass a seed for reproducible searches
        verbose : bool
            Print progress after every batch
        """
        self.bounds = bounds if bounds is not None else SwingParamBounds()
        self.config = config if config is not None else SwingConfig()
        self.search = search if search is not None else SearchConfig()
        self.rng = rng if isinstance(rng, np.random.Generator) else np.random.default_rng(rng)
        self.verbose = verbose
        self.simulator = SwingSimulator(self.config, self.bounds)

        # Tracking
        self.n_evaluations = 0
        self.n_hits = 0
        self.convergence_history = []
        self.best_score = float('-inf')
        self.best_params = None
        self.best_result = None

    def _reset(self):
        self.n_evaluations = 0
        self.n_hits = 0
        self.convergence_history = []
        self.best_score = float('-inf')
        self.best_params = None
        self.best_result = None

    def random_params(self) -> SwingParams:
        """Draw each parameter uniformly from its range."""
        return self.bounds.params_from_array(
            [self.rng.uniform(lo, hi) for lo, hi in self.bounds.get_bounds_list()]
        )

    def perturb_params(self, params: SwingParams) -> SwingParams:
        """Small independent offset per parameter, clipped back into range."""
        frac = self.search.perturb_fraction
        values = {
            name: getattr(params, name) + (self.rng.random() - 0.5) * self.bounds.span(name) * frac
            for name in self.bounds.names()
        }
        return self.bounds.clip(SwingParams(**values))

    def _evaluate(self, params: SwingParams) -> SimulationResult:
        """Simulate, score and keep the swing if it is strictly better."""
        self.n_evaluations += 1
        result = self.simulator.simulate(params)
        if result.hit_ball:
            score = score_result(result, self.search)
            if score > self.best_score:
                self.best_score = score
                self.best_params = replace(params)
                self.best_result = result
        return result

    def _progress(self, phase: int, iteration: int, budget: int) -> SearchProgress:
        return SearchProgress(
            phase=phase,
            iteration=iteration,
            budget=budget,
            n_evaluations=self.n_evaluations,
            n_hits=self.n_hits,
            best_score=self.best_score,
            best_params=self.best_params,
            best_distance=self.best_result.ball_distance if self.best_result else 0.0,
        )

    def _report(self, progress: SearchProgress):
        self.convergence_history.append(progress.best_score)
        best = f"{progress.best_distance * M_TO_YD:.0f} yds" if progress.best_params else "---"
        logger.debug("Phase %d: %d/%d | hits %d | best %s",
                     progress.phase, progress.iteration, progress.budget, progress.n_hits, best)
        if self.verbose:
            print(f"  Phase {progress.phase}: {progress.iteration}/{progress.budget} | "
                  f"Hits: {progress.n_hits} | Best: {best}")

    def iter_batches(
        self, should_stop: Callable[[], bool] = None
    ) -> Iterator[SearchProgress]:
        """
        Run the search, yielding progress after every batch.

        The generator suspends between batches so a host loop stays
        responsive. should_stop() is consulted before each batch; when it
        returns True the generator ends early.
        """
        self._reset()
        search = self.search
        batch = search.batch_size

        # Phase 1: random search
        logger.info("Phase 1: random search (%d evaluations)", search.phase1_iterations)
        iteration = 0
        while iteration < search.phase1_iterations:
            if should_stop is not None and should_stop():
                return
            for _ in range(min(batch, search.phase1_iterations - iteration)):
                # Hits are tallied over the random search only
                if self._evaluate(self.random_params()).hit_ball:
                    self.n_hits += 1
                iteration += 1
            progress = self._progress(1, iteration, search.phase1_iterations)
            self._report(progress)
            yield progress

        if self.best_params is None:
            logger.info("No valid hits found in phase 1")
            return

        # Phase 2: hill climbing
        logger.info("Phase 2: hill climbing from score %.2f (%d evaluations)",
                    self.best_score, search.phase2_iterations)
        iteration = 0
        while iteration < search.phase2_iterations:
            if should_stop is not None and should_stop():
                return
            for _ in range(min(batch, search.phase2_iterations - iteration)):
                self._evaluate(self.perturb_params(self.best_params))
                iteration += 1
            progress = self._progress(2, iteration, search.phase2_iterations)
            self._report(progress)
            yield progress

    def optimize(
        self,
        on_batch: Callable[[SearchProgress], None] = None,
        should_stop: Callable[[], bool] = None,
    ) -> OptimizationResult:
        """
        Run both phases to completion (or until should_stop() is True).

        Parameters
        ----------
        on_batch : callable, optional
            Called with a SearchProgress after every batch
        should_stop : callable, optional
            Cooperative cancellation check, consulted between batches

        Returns
        -------
        OptimizationResult
            best_params is None when phase 1 found no hit
        """
        if self.verbose:
            print("=" * 60)
            print("Swing Optimization")
            print("=" * 60)
            print(f"Phase 1 iterations: {self.search.phase1_iterations}")
            print(f"Phase 2 iterations: {self.search.phase2_iterations}")
            print(f"Batch size: {self.search.batch_size}")
            print()

        start_time = time.time()
        phase_counts = {1: 0, 2: 0}
        last_phase = 0
        for progress in self.iter_batches(should_stop):
            phase_counts[progress.phase] = progress.iteration
            last_phase = progress.phase
            if on_batch is not None:
                on_batch(progress)
        elapsed = time.time() - start_time

        expected = self.search.phase1_iterations
        if self.best_params is not None:
            expected += self.search.phase2_iterations
        stopped = phase_counts[1] + phase_counts[2] < expected

        result = OptimizationResult(
            best_params=self.best_params,
            best_result=self.best_result,
            best_score=self.best_score,
            n_evaluations=self.n_evaluations,
            n_hits=self.n_hits,
            phase1_evaluations=phase_counts[1],
            phase2_evaluations=phase_counts[2],
            convergence_history=list(self.convergence_history),
            stopped=stopped,
            optimization_time=elapsed,
        )

        if result.success:
            logger.info("Search %s after %d evaluations (phase %d): best %.1f m, lean %+.0f deg",
                        "stopped" if stopped else "complete", self.n_evaluations, last_phase,
                        self.best_result.ball_distance, self.best_result.shaft_lean)
        else:
            logger.info("Search ended without a valid hit after %d evaluations",
                        self.n_evaluations)

        if self.verbose:
            print("\n" + "=" * 60)
            print("Optimization Complete" if not stopped else "Optimization Stopped")
            print("=" * 60)
            print(f"Time: {elapsed:.1f} s")
            print(f"Evaluations: {self.n_evaluations} ({self.n_hits} hits in phase 1)")
            if result.success:
                print(f"Best score: {self.best_score:.2f}")
                report_simulation(self.best_result, self.best_params)
            else:
                print("No valid hits found in phase 1")

        return result


def run_optimization(
    search: SearchConfig = None,
    rng: Union[np.random.Generator, int, None] = None,
    bounds: SwingParamBounds = None,
    config: SwingConfig = None,
    on_batch: Callable[[SearchProgress], None] = None,
    should_stop: Callable[[], bool] = None,
    verbose: bool = False,
) -> OptimizationResult:
    """Run a two-phase search and return the best parameters and result."""
    optimizer = SwingOptimizer(bounds=bounds, config=config, search=search,
                               rng=rng, verbose=verbose)
    return optimizer.optimize(on_batch=on_batch, should_stop=should_stop)


def quick_test(seed: int = None):
    """Quick search with small budgets."""
    print("Quick optimization test (200 + 200 evaluations)...")
    search = SearchConfig(phase1_iterations=200, phase2_iterations=200, batch_size=50)
    return run_optimization(search=search, rng=seed, verbose=True)


def parameter_study(
    name: str,
    values=None,
    config: SwingConfig = None,
    bounds: SwingParamBounds = None,
    verbose: bool = True,
):
    """
    Vary one swing parameter while keeping the others at their defaults.

    Returns
    -------
    (values, distances, speeds) : tuple of ndarray
        Total distance is 0 and impact speed 0 for swings without a hit.
    """
    bounds = bounds if bounds is not None else SwingParamBounds()
    if name not in bounds.names():
        raise ValueError(f"Unknown swing parameter: {name}")
    if values is None:
        values = np.linspace(*getattr(bounds, name), 10)
    values = np.asarray(values, dtype=float)

    simulator = SwingSimulator(config, bounds)
    distances = []
    speeds = []
    for val in values:
        params = replace(SwingParams(), **{name: float(val)})
        result = simulator.simulate(params)
        distances.append(result.ball_distance)
        speeds.append(result.impact_speed)

    distances = np.array(distances)
    speeds = np.array(speeds)

    if verbose:
        print(f"\nStudying {name}...")
        for val, dist, speed in zip(values, distances, speeds):
            print(f"  {name} = {val:8.3f}: {dist * M_TO_YD:6.0f} yds, impact {speed:5.1f} m/s")
        best_idx = int(np.argmax(distances))
        print(f"  Best {name} = {values[best_idx]:.3f}, distance = {distances[best_idx]:.2f} m")

    return values, distances, speeds


def full_optimization(seed: int = 42):
    """Full-budget search."""
    print("Full optimization run...")
    return run_optimization(rng=seed, verbose=True)


if __name__ == "__main__":
    import sys

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(message)s")

    if len(sys.argv) > 1 and sys.argv[1] == '--test':
        quick_test()
    elif len(sys.argv) > 1 and sys.argv[1] == '--study':
        for param_name in SwingParamBounds().names():
            parameter_study(param_name)
    else:
        full_optimization()
