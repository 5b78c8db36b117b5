"""Shared test configuration, pytest markers and request fixtures."""

import pytest

from config import Settings
from models.requests import (
    Education,
    Experience,
    ParsedCV,
    PersonalInfo,
    PredictionRequest,
    Project,
)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: exercises the full prediction pipeline end to end"
    )


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


SAMPLE_JD = """Senior Python Developer
We are a fast-growing fintech company looking for an engineer.

Requirements:
- 5+ years of experience with Python
- Strong knowledge of Django or FastAPI
- Experience with PostgreSQL and Redis
- Familiarity with Docker and Kubernetes
- Bachelor's degree in Computer Science or related field

Compensation: $140,000 - $170,000
"""


def make_cv(**overrides) -> ParsedCV:
    data = dict(
        personal_info=PersonalInfo(
            name="Jane Doe",
            email="jane@example.com",
            location="San Francisco, CA",
            title="Senior Software Engineer",
            summary="Backend engineer building Python services, APIs and data pipelines for fintech products.",
            desired_salary=150000,
        ),
        experience=[
            Experience(
                company="Stripe",
                position="Senior Software Engineer",
                start_date="2020-01",
                end_date="Present",
                description="Built payment APIs in Python and Django on PostgreSQL. Led a team of 4 engineers.",
                achievements=["Reduced latency by 40%", "Launched a new billing service"],
            ),
            Experience(
                company="Acme Corp",
                position="Software Engineer",
                start_date="2016-06",
                end_date="2019-12",
                description="Developed microservices with Docker and Kubernetes.",
            ),
        ],
        education=[Education(institution="Stanford", degree="Bachelor of Science", field="Computer Science")],
        skills=["Python", "Django", "PostgreSQL", "Docker", "Kubernetes", "AWS", "Redis"],
        certifications=["AWS Solutions Architect"],
        projects=[Project(name="ledger", description="Designed an open-source ledger", technologies=["Go"])],
        achievements=["Speaker at PyCon"],
    )
    data.update(overrides)
    return ParsedCV(**data)


def make_request(**overrides) -> PredictionRequest:
    data = dict(
        user_id="u1",
        job_id="j1",
        cv=make_cv(),
        job_description=SAMPLE_JD,
        target_role="Senior Python Developer",
        industry="fintech",
        location="San Francisco",
    )
    data.update(overrides)
    return PredictionRequest(**data)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def test_settings():
    """Settings isolated from the environment, with no remote credential."""
    return Settings(ml_api_key="", max_cache_size=100)


@pytest.fixture
def request_factory():
    return make_request


@pytest.fixture
def cv_factory():
    return make_cv
