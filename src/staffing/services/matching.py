"""Candidate eligibility for an assignment.

Candidates live in an external directory; this module only reads them
through the ``CandidateDirectory`` protocol.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from src.staffing.models import Assignment


@dataclass(frozen=True)
class CandidateProfile:
    """Read-only view of a candidate from the directory."""

    id: UUID
    profile_id: UUID
    seniority: str
    languages: frozenset[str] = field(default_factory=frozenset)
    expertises: frozenset[str] = field(default_factory=frozenset)
    is_available: bool = True
    base_price: Decimal | None = None


class CandidateDirectory(Protocol):
    """External candidate lookup."""

    async def get(self, candidate_id: UUID) -> CandidateProfile | None: ...

    async def list_available(self) -> list[CandidateProfile]: ...


class InMemoryCandidateDirectory:
    """Directory backed by a dict, for local runs and tests."""

    def __init__(self, candidates: Iterable[CandidateProfile] = ()):
        self._candidates = {c.id: c for c in candidates}

    def put(self, candidate: CandidateProfile) -> None:
        self._candidates[candidate.id] = candidate

    async def get(self, candidate_id: UUID) -> CandidateProfile | None:
        return self._candidates.get(candidate_id)

    async def list_available(self) -> list[CandidateProfile]:
        return [c for c in self._candidates.values() if c.is_available]


def is_eligible(assignment: Assignment, candidate: CandidateProfile) -> bool:
    """Candidate matches role, seniority, and covers every required language and expertise."""
    if not candidate.is_available:
        return False
    if candidate.profile_id != assignment.profile_id:
        return False
    if candidate.seniority != assignment.seniority:
        return False
    if not set(assignment.languages) <= set(candidate.languages):
        return False
    return set(assignment.expertises) <= set(candidate.expertises)


def find_eligible_candidates(
    assignment: Assignment,
    candidates: Iterable[CandidateProfile],
    excluded_ids: Iterable[UUID] = (),
) -> list[CandidateProfile]:
    """Filter candidates down to those who can be offered the assignment.

    Args:
        assignment: Slot to staff
        candidates: Pool to search
        excluded_ids: Candidates to skip (e.g. previous decliners)
    """
    excluded = set(excluded_ids)
    return [c for c in candidates if c.id not in excluded and is_eligible(assignment, c)]
