from __future__ import annotations

from typing import Iterable

from .models import Grade, Status, Summary, ValidationResult


def tally(results: Iterable[ValidationResult]) -> Summary:
    counts = {status: 0 for status in Status}
    for result in results:
        # KeyError on anything that is not a Status member
        counts[result.status] += 1
    return Summary(
        passed=counts[Status.PASS],
        warnings=counts[Status.WARNING],
        failed=counts[Status.FAIL],
    )


def grade_for(summary: Summary) -> Grade:
    """
    Any fail is an F; otherwise 3+ warnings C, 2 B, 1 A, none A+.
    """
    if summary.failed > 0:
        return Grade.F
    if summary.warnings >= 3:
        return Grade.C
    if summary.warnings >= 2:
        return Grade.B
    if summary.warnings >= 1:
        return Grade.A
    return Grade.A_PLUS
