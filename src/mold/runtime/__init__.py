"""
Guard evaluation and recipe execution.
"""

from .expressions import evaluate, flatten, iter_flattened, select_branch

__all__ = ["evaluate", "flatten", "iter_flattened", "select_branch"]
