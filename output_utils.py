# output_utils.py
"""
Output Path Management for Phase Shift Runs
===========================================

All result files (scan JSON, convergence studies) go to the `results/`
directory.

Usage
-----
    from output_utils import get_json_path, save_results

    path = get_json_path("np_yukawa", "scan")   # -> results/results_np_yukawa_scan.json
    save_results({"np_yukawa": scan.to_dict()}, path)

Notes
-----
- `results/` is created on first use.
- Paths are returned as `pathlib.Path`.
"""

import json
from pathlib import Path
from typing import Union

import numpy as np

from logging_config import get_logger

logger = get_logger(__name__)

RESULTS_DIR = "results"


def get_results_dir(base: Union[str, Path, None] = None) -> Path:
    """
    Results directory, created if missing.

    Parameters
    ----------
    base : str or Path, optional
        Parent directory; defaults to the current working directory.
    """
    results_path = Path(base) / RESULTS_DIR if base is not None else Path(RESULTS_DIR)
    results_path.mkdir(parents=True, exist_ok=True)
    return results_path


def get_output_path(filename: Union[str, Path], base: Union[str, Path, None] = None) -> Path:
    """Full path of `filename` inside the results directory."""
    return get_results_dir(base) / Path(filename).name


def get_json_path(run_name: str, calc_type: str, base: Union[str, Path, None] = None) -> Path:
    """
    Path of a results JSON file.

    Parameters
    ----------
    run_name : str
        Name of the run (e.g. "np_yukawa").
    calc_type : str
        "scan" for phase shift scans, "conv" for convergence studies.
    """
    return get_output_path(f"results_{run_name}_{calc_type}.json", base)


def _to_builtin(obj):
    # numpy scalars and arrays are not JSON serializable
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, np.generic):
        return obj.item()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def load_results(path: Union[str, Path]) -> dict:
    """
    Load a results JSON file.

    Returns an empty dict if the file does not exist. A file that exists
    but is not valid JSON is reported and treated as empty, so that a new
    run can overwrite it.
    """
    path = Path(path)
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as exc:
        logger.warning("Ignoring unreadable results file %s: %s", path, exc)
        return {}


def save_results(new_data: dict, path: Union[str, Path]) -> Path:
    """
    Merge `new_data` into the JSON file at `path` (top-level keys replace).

    Returns
    -------
    Path
        The written file.
    """
    path = Path(path)
    current = load_results(path)
    current.update(new_data)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(current, f, indent=2, default=_to_builtin)
    logger.info("Results saved to %s", path)
    return path
