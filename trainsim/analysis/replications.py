"""Independent replications and confidence intervals.

Each replication reruns the generated workload with its own seed
(``random_seed + i``). The per-run mean time-in-system values are treated
as i.i.d. samples for a Student-t confidence interval.
"""

import copy
from typing import Dict, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy import stats
from tqdm import tqdm

from ..core.exceptions import ConfigError
from ..core.sim_config import SimulationConfig
from ..core.simulator import Simulator
from ..utils.logger import setup_logger

SUMMARY_COLUMNS = [
    'trains_served',
    'mean_time_in_system',
    'max_time_in_system',
    'mean_queue_time',
    'max_queue_length',
    'dock_idle_time',
    'dock_busy_time',
    'dock_idle_hogged_time',
    'final_time',
]


def confidence_interval(values: Sequence[float], level: float = 0.95) -> Tuple[float, float]:
    """Student-t confidence interval for the mean of ``values``.

    Args:
        values: Samples (at least two)
        level: Confidence level in (0, 1)

    Returns:
        (low, high) bounds
    """
    data = np.asarray(values, dtype=float)
    if data.size < 2:
        raise ValueError("A confidence interval needs at least two samples")
    mean = float(np.mean(data))
    sem = float(stats.sem(data))
    if sem == 0.0:
        return mean, mean
    low, high = stats.t.interval(level, data.size - 1, loc=mean, scale=sem)
    return float(low), float(high)


def run_replications(config: Dict, num_replications: int = None,
                     show_progress: bool = False) -> Dict:
    """Run several independent simulations and summarize them.

    Args:
        config: Simulation configuration (generated workload)
        num_replications: Number of runs, defaults to
            ``simulation.replications``
        show_progress: Display a progress bar

    Returns:
        Dictionary with the per-run table under ``runs``, the confidence
        interval, and pooled statistics under the keys of a single run
    """
    logger = setup_logger("Replications")
    sim_config = SimulationConfig(config)

    if num_replications is None:
        num_replications = sim_config.replications
    if num_replications < 2:
        raise ConfigError(f"Replications need at least 2 runs, got {num_replications}")
    if sim_config.workload_type != 'generated':
        raise ConfigError("Replications require a generated workload")

    base_seed = sim_config.random_seed if sim_config.random_seed is not None else 0
    rows = []
    histogram = None

    for i in tqdm(range(num_replications), desc="Replications", disable=not show_progress):
        run_config = copy.deepcopy(config)
        run_config.setdefault('simulation', {})['random_seed'] = base_seed + i
        results = Simulator(run_config).run()

        row = {'replication': i, 'seed': base_seed + i}
        row.update({key: results[key] for key in SUMMARY_COLUMNS})
        rows.append(row)

        run_histogram = np.asarray(results['hogout_histogram'])
        histogram = run_histogram if histogram is None else histogram + run_histogram

    runs = pd.DataFrame(rows).set_index('replication')
    low, high = confidence_interval(runs['mean_time_in_system'], sim_config.confidence_level)

    logger.info(
        f"{num_replications} replications: mean time-in-system "
        f"{runs['mean_time_in_system'].mean():.3f}h, "
        f"{sim_config.confidence_level:.0%} CI [{low:.3f}, {high:.3f}]"
    )

    served = int(runs['trains_served'].sum())
    weighted_mean = (
        float((runs['mean_time_in_system'] * runs['trains_served']).sum() / served)
        if served else 0.0
    )

    return {
        'runs': runs,
        'replications': num_replications,
        'confidence_level': sim_config.confidence_level,
        'ci_low': low,
        'ci_high': high,
        'mean_of_means': float(runs['mean_time_in_system'].mean()),
        'trains_served': served,
        'mean_time_in_system': weighted_mean,
        'max_time_in_system': float(runs['max_time_in_system'].max()),
        'mean_queue_time': float(
            (runs['mean_queue_time'] * runs['trains_served']).sum() / served
        ) if served else 0.0,
        'max_queue_length': int(runs['max_queue_length'].max()),
        'final_time': float(runs['final_time'].sum()),
        'dock_idle_time': float(runs['dock_idle_time'].sum()),
        'dock_busy_time': float(runs['dock_busy_time'].sum()),
        'dock_idle_hogged_time': float(runs['dock_idle_hogged_time'].sum()),
        'hogout_histogram': histogram.tolist(),
    }
