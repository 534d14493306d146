"""
CSV export of submitted projects.

Only the title column is quoted. Commas or quotes inside the other columns are
written as-is, so such rows will not parse back cleanly; this matches the
export format the admin tooling already consumes.
"""
from datetime import datetime
from typing import Iterable

from schemas import Project

CSV_FILENAME = "projects_export.csv"
CSV_HEADER = ["User ID", "Project Title", "GitHub Repo", "Week", "Status", "Submission Date"]


def format_date(value: datetime) -> str:
    return f"{value.month}/{value.day}/{value.year}"


def project_row(project: Project) -> str:
    return ",".join([
        project.userId,
        f'"{project.title}"',
        project.githubRepo,
        str(project.week),
        project.status,
        format_date(project.submissionDate),
    ])


def projects_to_csv(projects: Iterable[Project]) -> str:
    return "\n".join([",".join(CSV_HEADER)] + [project_row(p) for p in projects])
