"""
Format the end-of-run statistics and write result files.
"""
from typing import Any, Dict
import json
from pathlib import Path

import yaml


def format_statistics(results: Dict[str, Any]) -> str:
    """Render results in the dock simulator's plain-text report layout.

    Args:
        results: Result dictionary from ``Simulator.run``

    Returns:
        Multi-line report
    """
    served = results.get('trains_served', 0)
    final_time = results.get('final_time', 0.0)

    def pct(key: str) -> float:
        return results.get(key, 0.0) / final_time * 100 if final_time > 0 else 0.0

    lines = [
        f"Time {final_time:.2f}: simulation ended",
        "",
        "Statistics",
        "----------",
        f"Total number of trains served: {served}",
        f"Average time-in-system per train: {results.get('mean_time_in_system', 0.0):.2f}h",
        f"Maximum time-in-system per train: {results.get('max_time_in_system', 0.0):.2f}h",
        f"Dock idle percentage: {pct('dock_idle_time'):.2f}%",
        f"Dock busy percentage: {pct('dock_busy_time'):.2f}%",
        f"Dock hogged-out percentage: {pct('dock_idle_hogged_time'):.2f}%",
        f"Time average of trains in queue: {results.get('mean_queue_time', 0.0):.3f}",
        f"Maximum number of trains in queue: {results.get('max_queue_length', 0)}",
        "Histogram of hogout count per train:",
    ]

    for i, count in enumerate(results.get('hogout_histogram', [])):
        if count:
            lines.append(f"[{i}]: {count}")

    if 'ci_low' in results:
        lines.extend([
            "",
            f"Replications: {results['replications']}",
            f"{results['confidence_level']:.0%} confidence interval of mean time-in-system: "
            f"[{results['ci_low']:.3f}, {results['ci_high']:.3f}]h",
        ])

    return "\n".join(lines)


def save_results(results: Dict[str, Any], out_dir: str, format: str = 'yaml') -> Path:
    """
    Write results to ``out_dir`` and return the file path.

    Args:
        results: Result dictionary
        out_dir: Output directory
        format: 'yaml' or 'json'

    Returns:
        Path to the written file
    """
    out_path = Path(out_dir)
    out_path.mkdir(parents=True, exist_ok=True)

    if format == 'json':
        file_path = out_path / "results.json"
        with open(file_path, 'w', encoding='utf-8') as f:
            json.dump(results, f, indent=2, default=str)
    elif format == 'yaml':
        file_path = out_path / "results.yaml"
        with open(file_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(results, f, default_flow_style=False)
    else:
        raise ValueError(f"Unsupported result format: {format}")

    return file_path
