import pytest

from services.similarity import tfidf_cosine_similarity, term_coverage


def test_tfidf_cosine_similarity_identical():
    text = "Python developer with React and Docker experience"
    score = tfidf_cosine_similarity(text, text)
    assert score == pytest.approx(1.0, abs=0.01)


def test_tfidf_cosine_similarity_different():
    a = "Python developer with React and Docker experience in web development"
    b = "Marketing manager with expertise in social media and brand strategy"
    score = tfidf_cosine_similarity(a, b)
    assert score < 0.3  # Very different texts


def test_tfidf_cosine_similarity_related():
    resume = "Senior Python developer with 5 years building REST APIs using FastAPI and Docker"
    jd = "Looking for a Python backend engineer with experience in REST API development and Docker"
    score = tfidf_cosine_similarity(resume, jd)
    assert score > 0.05  # TF-IDF on short texts is sparse


def test_tfidf_cosine_similarity_empty():
    assert tfidf_cosine_similarity("", "some text") == 0.0
    assert tfidf_cosine_similarity("some text", "") == 0.0


def test_tfidf_cosine_similarity_only_stop_words():
    assert tfidf_cosine_similarity("the and of", "is was the") == 0.0


def test_term_coverage():
    jd = "Python backend services with Django"
    assert term_coverage("I write Python and Django services", jd) == pytest.approx(0.6)
    assert term_coverage("", jd) == 0.0


def test_term_coverage_ignores_short_words():
    assert term_coverage("anything", "a an is of") == 0.0
