# batch_runner.py
#
# Config-driven phase shift scan runner.
# Runs a K-matrix scan over on-shell momenta (and optionally a mesh
# convergence study) from a YAML file and stores the results as JSON.
#
#   kmatrix-scan run.yaml
#   kmatrix-scan --generate run.yaml
#

from __future__ import annotations
import argparse
import logging
import sys
from typing import Optional, Sequence

from config_loader import ScanConfig, load_config, generate_template_config
from driver import compute_phase_shifts, convergence_study, PhaseShiftScan
from logging_config import get_logger, set_log_level, enable_file_logging
from output_utils import get_json_path, save_results

logger = get_logger(__name__)


def print_scan(scan: PhaseShiftScan) -> None:
    print(f"{'k0 [fm^-1]':>12} {'E [MeV]':>12} {'delta [deg]':>14} {'sigma [fm^2]':>14}")
    for p in scan.points:
        if p.ok:
            print(f"{p.k0:12.5f} {p.energy_MeV:12.4f} {p.delta_deg:14.6f} {p.sigma_fm2:14.6e}")
        else:
            print(f"{p.k0:12.5f} {p.energy_MeV:12.4f} {'skipped':>14} {'':>14}")


def run(config: ScanConfig) -> dict:
    """
    Execute the scan (and convergence study, if enabled) described by `config`.

    Returns
    -------
    dict
        {"scan": ..., "convergence": ...} as stored in the results file.
    """
    mass = config.mass_fm
    method = config.mesh.build_method()
    potential = config.potential.build()
    momenta = config.momenta.build(mass)

    logger.info("Run '%s': %s, N=%d, m=%.5f fm^-1",
                config.run_name, potential, method.N, mass)

    scan = compute_phase_shifts(
        method, momenta, mass, potential, n_workers=config.mesh.n_workers
    )
    print_scan(scan)
    result = {"scan": scan.to_dict(), "convergence": None}

    conv = config.convergence
    if conv.enabled:
        study = convergence_study(conv.k0, mass, potential, conv.mesh_sizes)
        converged = study.is_converged(conv.tolerance)
        print(f"\nConvergence at k0 = {conv.k0:.5f} fm^-1:")
        for N, d in zip(study.mesh_sizes, study.phase_shifts):
            print(f"  N = {N:4d}: delta = {d:.8f} deg")
        print(f"  converged (tol {conv.tolerance:g} deg): {converged}")
        result["convergence"] = {**study.to_dict(), "converged": converged}

    if config.output.save_json:
        path = get_json_path(config.run_name, "scan", base=config.output.results_dir)
        save_results({config.run_name: result}, path)

    return result


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="K-matrix S-wave phase shift scans")
    parser.add_argument("config", nargs="?", help="YAML run configuration")
    parser.add_argument("--generate", "-g", metavar="PATH",
                        help="Write a template configuration to PATH and exit")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    parser.add_argument("--log-file", metavar="PATH", help="Also log to PATH")
    args = parser.parse_args(argv)

    if args.debug:
        set_log_level(logging.DEBUG)
    if args.log_file:
        enable_file_logging(args.log_file)

    if args.generate:
        generate_template_config(args.generate)
        print(f"Template saved to: {args.generate}")
        return 0

    if not args.config:
        parser.print_help()
        return 2

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        logger.error("Invalid configuration: %s", e)
        return 1

    run(config)
    return 0


if __name__ == "__main__":
    sys.exit(main())
