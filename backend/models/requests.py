from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class PersonalInfo(BaseModel):
    name: str = ""
    email: str = ""
    location: str = ""
    title: str = ""
    summary: str = ""
    desired_salary: int | None = None


class Experience(BaseModel):
    """A single role as produced by the resume parser."""
    company: str = ""
    position: str = ""
    start_date: str = ""  # "2020-01", "Jan 2020", "2020"
    end_date: str = ""  # empty or "Present" means current role
    description: str = ""
    achievements: list[str] = []


class Education(BaseModel):
    institution: str = ""
    degree: str = ""
    field: str = ""
    graduation_date: str = ""


class Project(BaseModel):
    name: str = ""
    description: str = ""
    technologies: list[str] = []


class CategorizedSkills(BaseModel):
    technical: list[str] = []
    soft: list[str] = []
    languages: list[str] = []
    tools: list[str] = []


class ParsedCV(BaseModel):
    """Structured resume content supplied by the resume-parsing service."""
    personal_info: PersonalInfo = PersonalInfo()
    experience: list[Experience] = []
    education: list[Education] = []
    skills: list[str] | CategorizedSkills = []
    certifications: list[str] = []
    projects: list[Project] = []
    achievements: list[str] = []


class MarketContext(BaseModel):
    competition_level: Literal["low", "medium", "high"] | None = None
    urgency: Literal["low", "medium", "high"] | None = None
    seasonality: float | None = Field(default=None, ge=0.0, le=2.0)


class PredictionRequest(BaseModel):
    """One job-application event to score. Immutable once built."""
    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., min_length=1)
    job_id: str = Field(..., min_length=1)
    cv: ParsedCV
    job_description: str = Field(..., max_length=50000)
    target_role: str | None = None
    industry: str | None = None
    location: str | None = None
    market_context: MarketContext | None = None
