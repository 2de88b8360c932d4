from __future__ import annotations

from pydantic import BaseModel


class AssignmentRecord(BaseModel):
    """One row of the team-member-to-CSP assignment table."""

    team_member: str
    team_member_email: str | None = None
    csp: str | None = None  # name or email, as entered in the table
    csp_name: str | None = None
    csp_email: str | None = None
    client_name: str | None = None
    department: str | None = None
