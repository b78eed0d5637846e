"""Metrics collection and aggregation."""

import numpy as np
from typing import Dict, List

from .entities import Dock, Train
from ..utils.logger import setup_logger


class MetricsCollector:
    """Collect and aggregate simulation metrics.

    Running totals are updated on every real departure. Dock times are
    accumulated by the dock itself and merged in ``compute_metrics``.
    """

    def __init__(self, config: Dict):
        """Initialize metrics collector.

        Args:
            config: Configuration dictionary
        """
        self.config = config
        self.logger = setup_logger(self.__class__.__name__)

        metrics_config = config.get('metrics', {}) or {}
        self.percentiles = metrics_config.get('percentiles', [50, 90, 95, 99])
        self.histogram_cap = int(metrics_config.get('histogram_cap', 100))

        # Running aggregates
        self.trains_served = 0
        self.sum_time_in_system = 0.0
        self.max_time_in_system = 0.0
        self.sum_queue_time = 0.0
        self.max_queue_length = 0
        # hogout_histogram[i] = trains that hogged out at least i times
        self.hogout_histogram = [0] * (self.histogram_cap + 1)
        self.head_of_line_blocks = 0

        # Per-train samples for distribution metrics
        self.times_in_system: List[float] = []
        self.queue_times: List[float] = []
        self.hogout_counts: List[int] = []

    def record_departure(self, train: Train, queue_length: int) -> None:
        """Record a train leaving the dock.

        Args:
            train: Departed train
            queue_length: Trains in the wait queue at the departure instant
        """
        time_in_system = train.time_in_system
        queue_time = train.time_in_queue

        self.trains_served += 1
        self.sum_time_in_system += time_in_system
        self.max_time_in_system = max(self.max_time_in_system, time_in_system)
        self.sum_queue_time += queue_time
        self.max_queue_length = max(self.max_queue_length, queue_length)

        capped = min(train.hogout_count, self.histogram_cap)
        for i in range(capped + 1):
            self.hogout_histogram[i] += 1

        self.times_in_system.append(time_in_system)
        self.queue_times.append(queue_time)
        self.hogout_counts.append(train.hogout_count)

    def record_head_of_line_block(self) -> None:
        """Record a departure that left the dock idle behind a hogged-out head."""
        self.head_of_line_blocks += 1

    def compute_metrics(self, dock: Dock, final_time: float) -> Dict:
        """Compute aggregate metrics from collected data.

        Args:
            dock: Dock holding the idle/busy/hogged accumulators
            final_time: Logical time of the last processed event

        Returns:
            Dictionary of computed metrics
        """
        served = self.trains_served
        results = {
            'trains_served': served,
            'sum_time_in_system': self.sum_time_in_system,
            'mean_time_in_system': self.sum_time_in_system / served if served else 0.0,
            'max_time_in_system': self.max_time_in_system,
            'sum_queue_time': self.sum_queue_time,
            'mean_queue_time': self.sum_queue_time / served if served else 0.0,
            'max_queue_length': self.max_queue_length,
            'hogout_histogram': list(self.hogout_histogram),
            'head_of_line_blocks': self.head_of_line_blocks,
            'final_time': final_time,
            'dock_idle_time': dock.idle_time,
            'dock_busy_time': dock.busy_time,
            'dock_idle_hogged_time': dock.idle_hogged_time,
        }

        for name, value in (('idle', dock.idle_time),
                            ('busy', dock.busy_time),
                            ('idle_hogged', dock.idle_hogged_time)):
            results[f'dock_{name}_fraction'] = value / final_time if final_time > 0 else 0.0

        if self.times_in_system:
            results.update(self._compute_distribution_metrics(
                'time_in_system', self.times_in_system
            ))
        if self.queue_times:
            results.update(self._compute_distribution_metrics(
                'queue_time', self.queue_times
            ))
        if self.hogout_counts:
            results['mean_hogouts_per_train'] = float(np.mean(self.hogout_counts))

        return results

    def _compute_distribution_metrics(self, name: str, values: List[float]) -> Dict:
        """Compute distribution statistics for a metric.

        Args:
            name: Metric name
            values: List of values

        Returns:
            Dictionary with median, std and percentiles
        """
        if not values:
            return {}

        results = {
            f'median_{name}': float(np.median(values)),
            f'std_{name}': float(np.std(values)),
        }

        for p in self.percentiles:
            results[f'p{p:g}_{name}'] = float(np.percentile(values, p))

        return results
