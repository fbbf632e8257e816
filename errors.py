# errors.py
"""
Exception types raised by the K-matrix solver.

InvalidConfiguration
    Bad input detected before any computation (mesh/weight length mismatch,
    mis-sized potential matrix, non-positive mass, momentum or mesh size).
    Subclasses ValueError so callers catching ValueError keep working.

InvariantViolation
    Internal contract broken during a computation: the on-shell momentum
    coincides with a quadrature node, or the solved matrices have the wrong
    shape. Not retried; only a different N or k0 resolves it.
"""

from __future__ import annotations


class InvalidConfiguration(ValueError):
    """Invalid input to the mesh generator or the linear system builder."""


class InvariantViolation(RuntimeError):
    """A K-matrix computation broke one of its internal invariants."""
