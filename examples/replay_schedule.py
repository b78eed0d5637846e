"""Replay a hand-written schedule with the per-event trace enabled."""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from trainsim.core.simulator import Simulator
from trainsim.reports import format_statistics
from trainsim.utils.logger import setup_logger
from configs import load_default_config

DATA_DIR = Path(__file__).parent / "data"


def main():
    setup_logger("ReplaySchedule", verbose=True)

    config = load_default_config()
    config['workload'].update({
        'type': 'replay',
        'schedule_path': str(DATA_DIR / "schedule.txt"),
        'crew_path': str(DATA_DIR / "crews.txt"),
    })

    results = Simulator(config).run()
    print(format_statistics(results))


if __name__ == "__main__":
    main()
