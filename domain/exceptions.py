"""Error taxonomy shared by every layer of the search core."""
from __future__ import annotations


class SearchError(Exception):
    """Base class for failures raised by the search core."""


class CorpusUnavailable(SearchError):
    """The corpus collaborator could not deliver documents."""


class InvalidConfiguration(SearchError, ValueError):
    """Ranking weights or filter predicates are malformed."""


class EmptyQuery(SearchError, ValueError):
    """An empty query or prefix was given where one is required."""


class IndexBuildFailure(SearchError):
    """A document could not be tokenized while building the index."""


class SearchCancelled(SearchError):
    """The caller cancelled a running search."""


__all__ = [
    "SearchError",
    "CorpusUnavailable",
    "InvalidConfiguration",
    "EmptyQuery",
    "IndexBuildFailure",
    "SearchCancelled",
]
