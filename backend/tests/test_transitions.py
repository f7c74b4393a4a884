"""
Unit tests for the role transition matrix.
"""

import pytest

from app.core.exceptions import IllegalTransitionError
from app.models.user import UserRole
from app.schemas.intervention import InterventionStatus as S
from app.services.status_service import allowed_transitions, ensure_transition_allowed


EXPECTED = {
    UserRole.MASTER: {
        S.ASSIGNED: {S.APPOINTMENT_SET, S.IN_PROGRESS, S.COMPLETED, S.CLOSED},
        S.APPOINTMENT_SET: {S.ASSIGNED, S.IN_PROGRESS, S.COMPLETED, S.CLOSED},
        S.IN_PROGRESS: {S.ASSIGNED, S.APPOINTMENT_SET, S.COMPLETED, S.CLOSED},
        S.COMPLETED: {S.IN_PROGRESS, S.CLOSED},
        S.CLOSED: {S.COMPLETED},
    },
    UserRole.DITTA: {
        S.ASSIGNED: {S.APPOINTMENT_SET},
        S.APPOINTMENT_SET: {S.ASSIGNED, S.IN_PROGRESS},
        S.IN_PROGRESS: {S.APPOINTMENT_SET, S.COMPLETED},
        S.COMPLETED: {S.IN_PROGRESS, S.CLOSED},
        S.CLOSED: set(),
    },
    UserRole.TECNICO: {
        S.ASSIGNED: {S.APPOINTMENT_SET},
        S.APPOINTMENT_SET: {S.IN_PROGRESS},
        S.IN_PROGRESS: {S.COMPLETED},
        S.COMPLETED: set(),
        S.CLOSED: set(),
    },
}

ALL_TRIPLES = [
    (role, current, target)
    for role in UserRole
    for current in S
    for target in S
]


class TestTransitionMatrix:
    """Ogni terna (ruolo, stato corrente, destinazione) è ammessa solo se prevista."""

    @pytest.mark.parametrize("role,current,target", ALL_TRIPLES)
    def test_every_pair_matches_table(self, role, current, target):
        allowed = target in EXPECTED[role][current]

        assert (target in allowed_transitions(role, current)) is allowed
        if allowed:
            ensure_transition_allowed(role, current, target)
        else:
            with pytest.raises(IllegalTransitionError):
                ensure_transition_allowed(role, current, target)

    @pytest.mark.parametrize("role,current", [
        (UserRole.DITTA, S.CLOSED),
        (UserRole.TECNICO, S.COMPLETED),
        (UserRole.TECNICO, S.CLOSED),
    ])
    def test_absent_entries_allow_nothing(self, role, current):
        assert allowed_transitions(role, current) == frozenset()

    def test_only_master_reopens_closed(self):
        reopeners = [role for role in UserRole if S.COMPLETED in allowed_transitions(role, S.CLOSED)]
        assert reopeners == [UserRole.MASTER]

    def test_no_self_transitions(self):
        for role in UserRole:
            for current in S:
                assert current not in allowed_transitions(role, current)

    def test_error_reports_allowed_targets(self):
        with pytest.raises(IllegalTransitionError) as exc_info:
            ensure_transition_allowed(UserRole.TECNICO, S.ASSIGNED, S.COMPLETED)

        assert exc_info.value.status_code == 403
        assert exc_info.value.error_code == "ILLEGAL_TRANSITION"
        assert exc_info.value.extra["allowed"] == ["appointment_set"]
