"""Single-parameter hyperparameter search driven by an external command."""

from .errors import HyperSearchError
from .search import SearchResult, run_search

__version__ = "0.1.0"

__all__ = ["HyperSearchError", "SearchResult", "run_search", "__version__"]
