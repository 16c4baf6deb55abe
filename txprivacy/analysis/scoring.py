"""Score and grade computation.

score = clamp(70 + sum(score_impact), 0, 100)

Grade bands (inclusive lower bound): 90 A+, 75 B, 50 C, 25 D, else F.
"""

from __future__ import annotations

from typing import Iterable, Literal

from txprivacy.models import (
    SEVERITY_ORDER,
    Finding,
    Grade,
    ReconciledFindings,
    ScoringResult,
)

BASE_SCORE = 70
MIN_SCORE = 0
MAX_SCORE = 100

GRADE_BANDS = (
    (90, Grade.A_PLUS),
    (75, Grade.B),
    (50, Grade.C),
    (25, Grade.D),
)

Sentiment = Literal["positive", "cautious", "warning", "danger"]


def score_to_grade(score: int) -> Grade:
    for minimum, grade in GRADE_BANDS:
        if score >= minimum:
            return grade
    return Grade.F


def calculate_score(findings: Iterable[Finding]) -> ScoringResult:
    """Reduce findings to a clamped score, a grade and a sorted finding list.

    Args:
        findings: Findings to score (address path, or reconciled tx findings)

    Returns:
        ScoringResult with findings ordered most severe first (stable)
    """
    findings = list(findings)
    total = sum(f.score_impact for f in findings)
    score = max(MIN_SCORE, min(MAX_SCORE, BASE_SCORE + total))
    ordered = sorted(findings, key=lambda f: SEVERITY_ORDER[f.severity])
    return ScoringResult(score=score, grade=score_to_grade(score), findings=ordered)


def score_transaction(reconciled: ReconciledFindings) -> ScoringResult:
    """Score the transaction path; only reconciled findings are accepted."""
    if not isinstance(reconciled, ReconciledFindings):
        raise TypeError(
            f"Transaction findings must be reconciled before scoring, got {type(reconciled).__name__}"
        )
    return calculate_score(reconciled.findings)


def summary_sentiment(grade: Grade, findings: Iterable[Finding]) -> Sentiment:
    """One-word tone for presenting a result."""
    if grade == Grade.F:
        return "danger"
    if not any(f.score_impact < 0 for f in findings):
        return "positive"
    if grade in (Grade.A_PLUS, Grade.B):
        return "positive"
    if grade == Grade.C:
        return "cautious"
    return "warning"
