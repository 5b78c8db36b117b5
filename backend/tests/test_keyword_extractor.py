import pytest

from services.keyword_extractor import (
    canonicalize,
    extract_job_skills,
    match_skills,
    skill_match_ratio,
    skill_matches,
)


def test_extract_job_skills():
    jd = "We need a Python developer with experience in React and Docker."
    skills = extract_job_skills(jd)
    assert {"python", "react", "docker"} <= skills


def test_extract_job_skills_multiword_and_dotted():
    jd = "Experience with machine learning, Node.js and CI/CD pipelines."
    skills = extract_job_skills(jd)
    assert "machine learning" in skills
    assert "node.js" in skills
    assert "ci/cd" in skills


def test_extract_job_skills_resolves_synonyms():
    skills = extract_job_skills("Deploy services on K8s backed by Postgres.")
    assert "kubernetes" in skills
    assert "postgresql" in skills


def test_extract_job_skills_empty():
    assert extract_job_skills("") == set()
    assert extract_job_skills("We value kindness and curiosity.") == set()


@pytest.mark.parametrize(
    "alias, canonical",
    [("JS", "javascript"), ("k8s", "kubernetes"), ("golang", "go"), ("Python", "python")],
)
def test_canonicalize(alias, canonical):
    assert canonicalize(alias) == canonical


def test_skill_matches_containment_and_fuzzy():
    assert skill_matches("postgresql", {"postgresql 14"})
    assert skill_matches("kubernetes", {"kubernets"})
    assert not skill_matches("rust", {"python", "java"})


def test_match_skills_splits_matched_and_missing():
    matched, missing = match_skills(["Python", "AWS", "Docker"], {"python", "aws", "docker", "kubernetes"})
    assert matched == ["aws", "docker", "python"]
    assert missing == ["kubernetes"]


def test_skill_match_ratio():
    jd = "Python, Django, Docker and Kubernetes required."
    assert skill_match_ratio(["python", "docker"], jd) == pytest.approx(0.5)
    assert skill_match_ratio(["Python", "Django", "Docker", "K8s"], jd) == pytest.approx(1.0)


def test_skill_match_ratio_zero_when_either_side_empty():
    assert skill_match_ratio([], "Python and Docker") == 0.0
    assert skill_match_ratio(["python"], "Great team, flexible hours.") == 0.0
