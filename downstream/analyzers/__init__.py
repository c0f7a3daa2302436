"""Fork divergence analysis."""

from .divergence import BranchResult, Classification, DivergenceClassifier, ForkResult

__all__ = ["BranchResult", "Classification", "DivergenceClassifier", "ForkResult"]
