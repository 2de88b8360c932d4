"""CSP assignment lookups and actor authorization.

Identities coming from the assignment table, the request record and the
authenticated actor are free-form: emails may differ only by domain
(``csp@zimworx.com`` and ``csp@zimworx.org`` are the same person) and names
may be partial ("Jane" vs "Jane Doe"). All matching lives here, with an
explicit rule order.
"""

from __future__ import annotations

import enum
import logging
import re
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from leavepoint.config import get_settings
from leavepoint.schemas.assignment import AssignmentRecord

if TYPE_CHECKING:
    from collections.abc import Sequence

    from leavepoint.models.request import LeaveRequest
    from leavepoint.schemas.auth import Actor

logger = logging.getLogger(__name__)


class MatchRule(enum.StrEnum):
    """Authorization rules in priority order."""

    EXACT_EMAIL = "exact-email"
    EMAIL_LOCAL_PART = "email-local-part"
    NAME = "name"
    ASSIGNMENT_TABLE = "assignment-table"


# ---------------------------------------------------------------------------
# Assignment table provider
# ---------------------------------------------------------------------------


@runtime_checkable
class AssignmentProvider(Protocol):
    """Interface for the source of the assignment table."""

    async def list_assignments(self) -> list[AssignmentRecord]:
        """Return every team-member-to-CSP assignment."""
        ...


class InMemoryAssignmentProvider:
    """In-memory implementation for development and tests."""

    def __init__(self, records: Sequence[AssignmentRecord] = ()) -> None:
        self._records: list[AssignmentRecord] = list(records)

    def seed(self, record: AssignmentRecord) -> None:
        """Add an assignment row."""
        self._records.append(record)

    async def list_assignments(self) -> list[AssignmentRecord]:
        return list(self._records)


_assignment_provider: AssignmentProvider = InMemoryAssignmentProvider()


def get_assignment_provider() -> AssignmentProvider:
    """FastAPI dependency for the assignment table provider."""
    return _assignment_provider


def set_assignment_provider(provider: AssignmentProvider) -> None:
    """Override the provider (for testing or production wiring)."""
    global _assignment_provider
    _assignment_provider = provider


# ---------------------------------------------------------------------------
# Identity helpers
# ---------------------------------------------------------------------------


def _fold(value: str | None) -> str:
    return (value or "").strip().casefold()


def email_local_part(email: str | None) -> str:
    """Lower-cased part of an address before '@' ('' when not an address)."""
    folded = _fold(email)
    if "@" not in folded:
        return ""
    return folded.split("@", 1)[0]


def emails_equal(a: str | None, b: str | None) -> bool:
    return bool(_fold(a)) and "@" in _fold(a) and _fold(a) == _fold(b)


def local_parts_equal(a: str | None, b: str | None) -> bool:
    left = email_local_part(a)
    return bool(left) and left == email_local_part(b)


def names_match(a: str | None, b: str | None) -> bool:
    """Exact or bidirectional substring match, case-insensitive. Blank never matches."""
    left, right = _fold(a), _fold(b)
    if not left or not right:
        return False
    return left == right or left in right or right in left


def name_from_email(email: str) -> str:
    """``jane.doe@zimworx.org`` -> ``Jane Doe``."""
    local = email.split("@", 1)[0]
    return " ".join(part.capitalize() for part in re.split(r"[._]+", local) if part)


def email_from_name(name: str, domain: str) -> str:
    """``Jane Doe`` -> ``jane.doe@<domain>``."""
    local = re.sub(r"\s+", ".", name.strip().lower())
    return f"{local}@{domain}"


def normalize_record(record: AssignmentRecord, domain: str | None = None) -> AssignmentRecord:
    """Fill csp_name / csp_email from the free-form ``csp`` column."""
    if record.csp_name and record.csp_email:
        return record
    raw = (record.csp or record.csp_email or record.csp_name or "").strip()
    if not raw:
        return record
    domain = domain or get_settings().csp_email_domain
    if "@" in raw:
        csp_email = record.csp_email or raw
        csp_name = record.csp_name or name_from_email(raw)
    else:
        csp_name = record.csp_name or raw
        csp_email = record.csp_email or email_from_name(raw, domain)
    return record.model_copy(update={"csp_name": csp_name, "csp_email": csp_email})


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def _is_for_member(record: AssignmentRecord, team_member: str | None, team_member_email: str | None) -> bool:
    return (
        _fold(record.team_member) == _fold(team_member)
        or emails_equal(record.team_member_email, team_member_email)
        or emails_equal(record.team_member_email, team_member)
    )


def resolve_assignee(
    team_member: str,
    assignments: Sequence[AssignmentRecord],
    team_member_email: str | None = None,
) -> AssignmentRecord | None:
    """Find the assignment row for a team member.

    Tries exact name, then exact email, then email local part. Returns the
    row with csp_name / csp_email filled in, or None.
    """
    candidates = [email for email in (team_member_email, team_member) if email]

    def _by_name(record: AssignmentRecord) -> bool:
        return _fold(record.team_member) == _fold(team_member)

    def _by_email(record: AssignmentRecord) -> bool:
        return any(emails_equal(record.team_member_email, email) for email in candidates)

    def _by_local_part(record: AssignmentRecord) -> bool:
        return any(local_parts_equal(record.team_member_email, email) for email in candidates)

    for rule in (_by_name, _by_email, _by_local_part):
        for record in assignments:
            if rule(record):
                return normalize_record(record)
    return None


def _actor_is_csp_of(actor: Actor, record: AssignmentRecord) -> bool:
    record = normalize_record(record)
    return (
        emails_equal(actor.email, record.csp_email)
        or local_parts_equal(actor.email, record.csp_email)
        or (bool(_fold(actor.name)) and _fold(actor.name) in {_fold(record.csp_name), _fold(record.csp)})
    )


def match_rule(
    actor: Actor,
    request: LeaveRequest,
    assignments: Sequence[AssignmentRecord] = (),
) -> MatchRule | None:
    """Return the first rule under which ``actor`` may act on ``request``."""
    if emails_equal(actor.email, request.assigned_to_email):
        return MatchRule.EXACT_EMAIL
    if local_parts_equal(actor.email, request.assigned_to_email):
        return MatchRule.EMAIL_LOCAL_PART
    if names_match(actor.name, request.assigned_to):
        return MatchRule.NAME
    for record in assignments:
        if _is_for_member(record, request.team_member, request.team_member_email) and _actor_is_csp_of(
            actor, record
        ):
            return MatchRule.ASSIGNMENT_TABLE
    return None


def is_authorized(
    actor: Actor,
    request: LeaveRequest,
    assignments: Sequence[AssignmentRecord] = (),
) -> bool:
    """Whether ``actor`` is the CSP responsible for ``request``."""
    rule = match_rule(actor, request, assignments)
    if rule is None:
        logger.info("Actor %s failed every assignment rule for request %s", actor.identity, request.id)
        return False
    logger.debug("Actor %s authorized for request %s by %s", actor.identity, request.id, rule)
    return True
