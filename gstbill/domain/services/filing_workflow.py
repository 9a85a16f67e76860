# gstbill/domain/services/filing_workflow.py
"""
Status lifecycle shared by GSTR-1 and GSTR-3B filings:

  draft → filed → amended

The engine only ever creates filings in ``draft``; ``filed`` and
``amended`` are set by the external filing and correction actions.
"""

from __future__ import annotations

from gstbill.domain.exceptions import InvalidFilingTransitionError
from gstbill.domain.models.filing import FilingStatus

FILING_TRANSITIONS: dict[FilingStatus, list[FilingStatus]] = {
    FilingStatus.DRAFT: [FilingStatus.FILED],
    FilingStatus.FILED: [FilingStatus.AMENDED],
    FilingStatus.AMENDED: [],  # terminal
}


def validate_filing_transition(current_status: FilingStatus | str, new_status: FilingStatus | str) -> None:
    """Raise InvalidFilingTransitionError if the transition is not allowed."""
    try:
        current = FilingStatus(current_status)
        new = FilingStatus(new_status)
    except ValueError:
        raise InvalidFilingTransitionError(
            f"Unknown filing status in transition '{current_status}' -> '{new_status}'"
        )

    allowed = FILING_TRANSITIONS[current]
    if new not in allowed:
        raise InvalidFilingTransitionError(
            f"Cannot transition from '{current.value}' to '{new.value}'. "
            f"Allowed: {[s.value for s in allowed]}",
            {"current": current.value, "requested": new.value},
        )
