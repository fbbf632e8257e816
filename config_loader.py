# config_loader.py
"""
Configuration File Loader for Phase Shift Runs
==============================================

YAML-based configuration loading and validation for non-interactive
scans.

Usage
-----
```python
from config_loader import load_config

config = load_config("np_yukawa.yaml")
method = config.mesh.build_method()
```

Configuration Format
--------------------
See `generate_template_config` (or `python config_loader.py -g PATH`)
for a complete template.
"""

from __future__ import annotations
import yaml
from pathlib import Path
from dataclasses import dataclass, field
from typing import List, Dict, Any, Union

from config_types import (
    ConvergenceConfig,
    MeshConfig,
    MomentumConfig,
    PotentialConfig,
    POTENTIAL_KINDS,
    resolve_mass,
)
from logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class OutputConfig:
    """Output configuration."""
    save_json: bool = True
    results_dir: str = "."


@dataclass
class ScanConfig:
    """
    Complete configuration of a phase shift run.

    Everything needed to run batch_runner without prompts.
    """
    run_name: str = "kmatrix_scan"
    mass: Union[str, float] = "np"

    mesh: MeshConfig = field(default_factory=MeshConfig)
    potential: PotentialConfig = field(default_factory=PotentialConfig)
    momenta: MomentumConfig = field(default_factory=MomentumConfig)
    convergence: ConvergenceConfig = field(default_factory=ConvergenceConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    @property
    def mass_fm(self) -> float:
        """Mass in fm^-1."""
        return resolve_mass(self.mass)


def config_from_dict(raw_data: Dict[str, Any]) -> ScanConfig:
    """Build a ScanConfig from a parsed YAML mapping (missing sections use defaults)."""
    config = ScanConfig(
        mesh=MeshConfig.from_params(raw_data),
        potential=PotentialConfig.from_params(raw_data),
        momenta=MomentumConfig.from_params(raw_data),
        convergence=ConvergenceConfig.from_params(raw_data),
    )
    if 'run_name' in raw_data:
        config.run_name = str(raw_data['run_name'])
    if 'mass' in raw_data:
        config.mass = raw_data['mass']
    if 'output' in raw_data:
        out = raw_data['output'] or {}
        config.output = OutputConfig(
            save_json=out.get('save_json', True),
            results_dir=out.get('results_dir', '.'),
        )
    return config


def load_config(path: Union[str, Path]) -> ScanConfig:
    """
    Load and validate a YAML configuration file.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist.
    ValueError
        If the configuration is empty or invalid.
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.info("Loading configuration from: %s", path)

    with open(path, 'r', encoding='utf-8') as f:
        raw_data = yaml.safe_load(f)

    if raw_data is None:
        raise ValueError(f"Configuration file is empty: {path}")
    if not isinstance(raw_data, dict):
        raise ValueError(f"Configuration root must be a mapping: {path}")

    config = config_from_dict(raw_data)

    errors = validate_config(config)
    if errors:
        raise ValueError("Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors))

    logger.info("Configuration loaded successfully: run_name='%s', potential='%s', N=%s",
                config.run_name, config.potential.kind, config.mesh.mesh_size)

    return config


def validate_config(config: ScanConfig) -> List[str]:
    """
    Validate a ScanConfig and return a list of errors (empty if valid).
    """
    errors = []

    try:
        if not config.mass_fm > 0:
            errors.append(f"Mass must be > 0, got {config.mass}")
    except (TypeError, ValueError) as exc:
        errors.append(str(exc))

    # Mesh
    N = config.mesh.mesh_size
    if isinstance(N, bool) or not isinstance(N, int) or N < 1:
        errors.append(f"mesh_size must be a positive integer, got {N!r}")
    if not isinstance(config.mesh.n_workers, int) or config.mesh.n_workers < 1:
        errors.append(f"n_workers must be an integer >= 1, got {config.mesh.n_workers!r}")

    # Potential
    if config.potential.kind not in POTENTIAL_KINDS:
        errors.append(f"Invalid potential kind: '{config.potential.kind}'. Must be one of {POTENTIAL_KINDS}.")
    else:
        try:
            config.potential.build()
        except ValueError as exc:
            errors.append(str(exc))

    # Momenta
    mo = config.momenta
    if mo.type not in ("single", "linear", "list"):
        errors.append(f"Invalid momenta type: '{mo.type}'")
    if mo.unit not in ("fm^-1", "MeV"):
        errors.append(f"Invalid momenta unit: '{mo.unit}'. Must be 'fm^-1' or 'MeV'.")
    if mo.type == "list" and not mo.values:
        errors.append("Momenta type 'list' requires 'values' to be specified")
    if mo.type == "linear":
        if mo.step is None or mo.step <= 0:
            errors.append(f"Momenta step must be > 0, got {mo.step}")
        if mo.start >= mo.end:
            errors.append(f"Momenta start ({mo.start}) must be < end ({mo.end})")
    if mo.type in ("single", "linear") and mo.start <= 0:
        errors.append(f"Momenta start must be > 0, got {mo.start}")
    if mo.type == "list" and mo.values and min(mo.values) <= 0:
        errors.append("All momenta values must be > 0")

    # Convergence
    conv = config.convergence
    if conv.enabled:
        if conv.k0 <= 0:
            errors.append(f"Convergence k0 must be > 0, got {conv.k0}")
        if len(conv.mesh_sizes) < 2:
            errors.append("Convergence study needs at least two mesh sizes")
        if any((not isinstance(n, int)) or n < 1 for n in conv.mesh_sizes):
            errors.append(f"Convergence mesh sizes must be positive integers, got {conv.mesh_sizes}")
        if conv.tolerance <= 0:
            errors.append(f"Convergence tolerance must be > 0, got {conv.tolerance}")

    return errors


def config_to_params_dict(config: ScanConfig) -> Dict[str, Any]:
    """
    Convert a ScanConfig back to the YAML mapping it was loaded from.
    """
    return {
        'run_name': config.run_name,
        'mass': config.mass,
        'mesh': config.mesh.to_dict(),
        'potential': config.potential.to_dict(),
        'momenta': config.momenta.to_dict(),
        'convergence': config.convergence.to_dict(),
        'output': {
            'save_json': config.output.save_json,
            'results_dir': config.output.results_dir,
        },
    }


def generate_template_config(output_path: Union[str, Path]) -> None:
    """
    Write a commented template configuration file to `output_path`.
    """
    template = '''# K-matrix phase shift run configuration

run_name: "np_yukawa"

mass: "np"              # "np" (nucleon mass in fm^-1) or a number in fm^-1

mesh:
  mesh_size: 20         # Gauss-Legendre points before the on-shell point
  n_workers: 1          # threads for independent momenta

potential:
  kind: "yukawa"        # "yukawa", "square_well" or "pion"
  strength: -0.5        # yukawa: V(r) = strength * exp(-mu r) / r
  mu: 0.7               # inverse range [fm^-1]
  # square_well: depth [fm^-1], radius [fm]
  # pion: coupling (f^2/4pi), spin_isospin
  # regulator:
  #   cutoff: 2.5       # [fm^-1]
  #   power: 2

momenta:
  type: "linear"        # "single", "linear" or "list"
  unit: "MeV"           # "MeV" (center-of-mass energy) or "fm^-1"
  start: 1.0
  end: 50.0
  step: 1.0
  # values: [1, 5, 10, 25, 50]   # for list type only

convergence:
  enabled: true
  k0: 0.25              # [fm^-1]
  mesh_sizes: [10, 20, 40]
  tolerance: 0.001      # [degrees]

output:
  save_json: true
  results_dir: "."
'''

    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, 'w', encoding='utf-8') as f:
        f.write(template)

    logger.info("Template configuration saved to: %s", path)


# =============================================================================
# CLI UTILITIES
# =============================================================================

if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="K-matrix configuration file utilities")
    parser.add_argument("--generate", "-g", type=str, metavar="PATH",
                        help="Generate template config at PATH")
    parser.add_argument("--validate", "-v", type=str, metavar="PATH",
                        help="Validate config file at PATH")

    args = parser.parse_args()

    if args.generate:
        generate_template_config(args.generate)
        print(f"Template saved to: {args.generate}")
    elif args.validate:
        try:
            config = load_config(args.validate)
        except (FileNotFoundError, ValueError) as e:
            print(f"✗ Validation failed: {e}")
            raise SystemExit(1)
        print(f"✓ Configuration is valid: {args.validate}")
        print(f"  Run name : {config.run_name}")
        print(f"  Potential: {config.potential.kind}")
        print(f"  Mesh size: {config.mesh.mesh_size}")
    else:
        parser.print_help()
