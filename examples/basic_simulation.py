"""Basic simulation example."""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from trainsim.core.simulator import Simulator
from trainsim.reports import format_statistics
from trainsim.utils.logger import setup_logger
from configs import load_default_config


def main():
    """Run a generated workload on the default dock."""
    logger = setup_logger("BasicSimulation")

    logger.info("=== Basic Dock Simulation ===")

    config = load_default_config()

    # Customize for this example
    config['simulation']['horizon'] = 7200.0  # 300 days
    config['workload']['mean_interarrival'] = 6.0

    logger.info(f"Running simulation for {config['simulation']['horizon']}h")
    logger.info(f"Mean gap between trains: {config['workload']['mean_interarrival']}h")

    simulator = Simulator(config)
    results = simulator.run()

    print(format_statistics(results))

    logger.info("\n=== Distribution ===")
    logger.info(f"  Median time-in-system: {results['median_time_in_system']:.2f}h")
    logger.info(f"  P95 time-in-system: {results['p95_time_in_system']:.2f}h")
    logger.info(f"  P99 time-in-system: {results['p99_time_in_system']:.2f}h")
    logger.info(f"  Head-of-line blocks: {results['head_of_line_blocks']}")
    logger.info(f"  Mean hogouts per train: {results['mean_hogouts_per_train']:.3f}")

    logger.info("\nSimulation complete!")


if __name__ == "__main__":
    main()
