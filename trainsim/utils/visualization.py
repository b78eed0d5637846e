"""Visualization utilities for simulation results."""

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import seaborn as sns
from pathlib import Path
from typing import Dict, List

sns.set_style("whitegrid")
sns.set_palette("husl")


def plot_results(results: Dict, output_dir: Path) -> List[Path]:
    """Generate all visualization plots.

    Args:
        results: Results dictionary from simulation
        output_dir: Directory to save plots

    Returns:
        Paths of the written images
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    written = []
    if 'hogout_histogram' in results:
        path = output_dir / "hogout_histogram.png"
        plot_hogout_histogram(results, path)
        written.append(path)

    if results.get('final_time', 0) > 0:
        path = output_dir / "dock_utilization.png"
        plot_dock_utilization(results, path)
        written.append(path)

    return written


def plot_hogout_histogram(results: Dict, output_path: Path) -> None:
    """Plot the cumulative hogout histogram.

    Args:
        results: Results dictionary
        output_path: Output file path
    """
    histogram = results['hogout_histogram']
    # Trailing buckets are zero once no train hogged out that often
    last = max((i for i, count in enumerate(histogram) if count), default=0)
    buckets = list(range(last + 1))

    fig, ax = plt.subplots(figsize=(10, 6))
    ax.bar(buckets, histogram[:last + 1], color='steelblue')
    ax.set_xlabel('Hogouts (at least)')
    ax.set_ylabel('Trains')
    ax.set_title('Trains by Number of Crew Hogouts')
    ax.set_xticks(buckets)
    ax.grid(axis='y', alpha=0.3)

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close(fig)


def plot_dock_utilization(results: Dict, output_path: Path) -> None:
    """Plot how the dock's time splits between idle, busy and hogged.

    Args:
        results: Results dictionary
        output_path: Output file path
    """
    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(12, 5))

    times = [results['dock_idle_time'], results['dock_busy_time'],
             results['dock_idle_hogged_time']]
    labels = ['Idle', 'Busy', 'Idle (hogged)']

    ax1.pie(times, labels=labels, autopct='%1.1f%%', startangle=90)
    ax1.set_title('Dock Time Breakdown')

    summary = [
        f"Trains served: {results.get('trains_served', 0)}",
        f"Mean time-in-system: {results.get('mean_time_in_system', 0):.2f}h",
        f"Max time-in-system: {results.get('max_time_in_system', 0):.2f}h",
        f"Max queue length: {results.get('max_queue_length', 0)}",
        f"Simulated time: {results.get('final_time', 0):.0f}h",
    ]
    ax2.text(0.1, 0.5, '\n'.join(summary), fontsize=12,
             verticalalignment='center', family='monospace')
    ax2.axis('off')
    ax2.set_title('Summary Metrics')

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close(fig)
