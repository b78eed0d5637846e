"""Main entry point for the TrainSim dock simulator.

Examples:
  # Generated workload: mean gap of 10h between trains for 72000h
  python -m trainsim.main --mean-interarrival 10 --horizon 72000

  # Replay pre-made schedule and crew travel times
  python -m trainsim.main --schedule data/schedule.txt --crews data/crews.txt

  # Ten replications with a confidence interval
  python -m trainsim.main --replications 10
"""

import argparse
import sys

from configs import load_config, load_default_config, merge_configs
from trainsim.core.simulator import Simulator
from trainsim.analysis.replications import run_replications
from trainsim.reports.report_generator import format_statistics, save_results
from trainsim.utils.logger import setup_logger


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="TrainSim: Train Unloading Dock Simulator with Crew Hogouts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__.split("Examples:", 1)[1],
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a configuration file layered over the defaults",
    )
    parser.add_argument(
        "--mean-interarrival",
        type=float,
        default=None,
        help="Mean hours between train arrivals (generated workload)",
    )
    parser.add_argument(
        "--horizon",
        type=float,
        default=None,
        help="Stop admitting trains after this many hours",
    )
    parser.add_argument(
        "--schedule",
        type=str,
        default=None,
        help="Pre-made train schedule file (enables replay)",
    )
    parser.add_argument(
        "--crews",
        type=str,
        default=None,
        help="Pre-made replacement crew travel times file (replay)",
    )
    parser.add_argument(
        "--absolute-times",
        action="store_true",
        help="Schedule file holds absolute arrival times instead of gaps",
    )
    parser.add_argument(
        "--replications",
        type=int,
        default=None,
        help="Number of independent runs (generated workload)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Directory to save results",
    )
    parser.add_argument(
        "--format",
        choices=["yaml", "json"],
        default="yaml",
        help="Result file format",
    )
    parser.add_argument(
        "--visualize",
        action="store_true",
        help="Generate visualization plots (requires --output-dir)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging, including the per-event trace",
    )
    return parser.parse_args(argv)


def build_config(args) -> dict:
    """Combine defaults, an optional config file and command line overrides."""
    config = load_default_config()
    if args.config:
        config = merge_configs(config, load_config(args.config))

    overrides = {'simulation': {}, 'workload': {}}
    if args.mean_interarrival is not None:
        overrides['workload']['mean_interarrival'] = args.mean_interarrival
    if args.horizon is not None:
        overrides['simulation']['horizon'] = args.horizon
    if args.seed is not None:
        overrides['simulation']['random_seed'] = args.seed
    if args.replications is not None:
        overrides['simulation']['replications'] = args.replications
    if args.schedule or args.crews:
        if not (args.schedule and args.crews):
            raise ValueError("--schedule and --crews must be given together")
        overrides['workload'].update({
            'type': 'replay',
            'schedule_path': args.schedule,
            'crew_path': args.crews,
            'absolute_arrival_times': args.absolute_times,
        })

    return merge_configs(config, overrides)


def main(argv=None):
    """Main function."""
    args = parse_args(argv)

    log_level = "DEBUG" if args.verbose else "INFO"
    logger = setup_logger("TrainSim", level=log_level)

    logger.info("=== TrainSim: Train Unloading Dock Simulator ===")

    try:
        config = build_config(args)
        logger.info(f"Workload: {config['workload']['type']}")

        replications = config['simulation'].get('replications', 1)
        if replications > 1:
            results = run_replications(config, replications, show_progress=True)
            runs = results.pop('runs')
            logger.info("Per-replication summary:\n" + runs.to_string())
        else:
            results = Simulator(config).run()

        print(format_statistics(results))

        if args.output_dir:
            results_file = save_results(results, args.output_dir, args.format)
            logger.info(f"Results saved to {results_file}")

            if args.visualize:
                from trainsim.utils.visualization import plot_results
                logger.info("Generating visualization plots...")
                plot_results(results, args.output_dir)
                logger.info(f"Plots saved to {args.output_dir}")

        return 0

    except Exception as e:
        logger.error(f"Simulation failed: {str(e)}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
