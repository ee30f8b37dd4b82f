"""Build-constraint evaluation."""

from .constraints import evaluate_go_build, evaluate_plus_build, passes

__all__ = ["evaluate_go_build", "evaluate_plus_build", "passes"]
