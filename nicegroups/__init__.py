import importlib.metadata

from . import abstract, bsgs, cache, families, permutations, representations

__version__ = importlib.metadata.version("nicegroups")

__all__ = [
    "__version__",
    "abstract",
    "bsgs",
    "cache",
    "families",
    "permutations",
    "representations",
]
