"""
Term-frequency vectorization of item text.

A deliberately small encoding (not TF-IDF): lower-cased title + body split on
non-word characters, short tokens dropped, log(1 + count) per distinct token in
first-seen order. Identical text always yields the identical vector.
"""

import math
import re
from typing import Dict, List, Optional

from ..models.content import ContentItem

_NON_WORD = re.compile(r"\W+")


def term_counts(text: str, max_ignored_length: int = 2) -> Dict[str, int]:
    """Token -> count, in first-seen order; tokens of max_ignored_length or shorter are dropped."""
    counts: Dict[str, int] = {}
    for token in _NON_WORD.split((text or "").lower()):
        if len(token) > max_ignored_length:
            counts[token] = counts.get(token, 0) + 1
    return counts


def vectorize(item: ContentItem, max_ignored_length: int = 2) -> List[float]:
    """log(1 + count) for each distinct token of the item's title and body."""
    return [math.log1p(count) for count in term_counts(item.text, max_ignored_length).values()]


class VectorCache:
    """
    Item id -> vector, computed on first use and kept for the cache's lifetime.

    Published item text is immutable as far as ranking is concerned, so entries
    are never evicted; create a new cache to start over.
    """

    def __init__(self, max_ignored_length: int = 2):
        self.max_ignored_length = max_ignored_length
        self._vectors: Dict[str, List[float]] = {}

    def get_vector(self, item: ContentItem) -> List[float]:
        vector = self._vectors.get(item.id)
        if vector is None:
            vector = vectorize(item, self.max_ignored_length)
            self._vectors[item.id] = vector
        return vector

    def lookup(self, item_id: str) -> Optional[List[float]]:
        """Cached vector for item_id, or None when the item was never vectorized."""
        return self._vectors.get(item_id)

    def __contains__(self, item_id: str) -> bool:
        return item_id in self._vectors

    def __len__(self) -> int:
        return len(self._vectors)
