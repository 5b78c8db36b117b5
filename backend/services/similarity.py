"""TF-IDF similarity between résumé fragments and job descriptions."""

import logging
import re

from sklearn.feature_extraction.text import TfidfVectorizer
from sklearn.metrics.pairwise import cosine_similarity as sklearn_cosine

logger = logging.getLogger(__name__)

_WORD_RE = re.compile(r"[a-z][a-z0-9+#.-]*")


def tfidf_cosine_similarity(text_a: str, text_b: str) -> float:
    """Compute cosine similarity between two texts using TF-IDF vectors."""
    if not text_a.strip() or not text_b.strip():
        return 0.0

    vectorizer = TfidfVectorizer(
        stop_words="english",
        max_features=5000,
        sublinear_tf=True,
        ngram_range=(1, 2),
    )
    try:
        tfidf_matrix = vectorizer.fit_transform([text_a, text_b])
        score = sklearn_cosine(tfidf_matrix[0:1], tfidf_matrix[1:2])[0][0]
        return float(score)
    except ValueError:
        # empty vocabulary after stop-word removal
        return 0.0


def term_coverage(source_text: str, reference_text: str, min_length: int = 4) -> float:
    """Share of distinct reference words (longer than min_length-1) found in source.

    Used as the CV keyword density: how much of the JD vocabulary the CV repeats.
    """
    reference_words = {w for w in _WORD_RE.findall(reference_text.lower()) if len(w) >= min_length}
    if not reference_words:
        return 0.0
    source_lower = source_text.lower()
    found = sum(1 for word in reference_words if word in source_lower)
    return found / len(reference_words)
