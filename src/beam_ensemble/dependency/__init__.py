"""Assembles scorers and their collaborators from configuration.

Exports:
    make_context: Create the compute context shared by the scorers.
    make_ensemble: Build a `ScorerEnsemble` from configuration.
    make_scorers: Build the weighted scorers from configuration.
"""

from .make import make_context, make_ensemble, make_scorers

__all__ = ["make_context", "make_ensemble", "make_scorers"]
