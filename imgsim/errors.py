class ScoringError(RuntimeError):
    """The nearest-neighbor query failed; no scores were applied."""


class HashLookupError(LookupError):
    """
    Transient failure fetching a content hash.

    The candidate is then scored as a regular (non-identical) match.
    """
