"""
Unit tests for the visibility and action scope rules.
"""

import uuid

import pytest

from conftest import COMPANY_ID, OTHER_COMPANY_ID, TECHNICIAN_ID, MockIntervention
from app.core.exceptions import AuthorizationError
from app.models.user import UserRole
from app.schemas.actor import Actor
from app.schemas.intervention import InterventionFilters, InterventionStatus
from app.services.visibility import can_act, can_view, ensure_can_act, scope_conditions


def _sql(conditions) -> list[str]:
    return [str(c) for c in conditions]


class TestScopeConditions:

    def test_master_without_filters_is_unrestricted(self, master):
        assert scope_conditions(master) == []

    def test_master_filters_pass_through(self, master):
        filters = InterventionFilters(
            status=InterventionStatus.IN_PROGRESS,
            company_id=OTHER_COMPANY_ID,
        )
        sql = _sql(scope_conditions(master, filters))

        assert len(sql) == 2
        assert "interventions.status" in sql[0]
        assert "interventions.company_id" in sql[1]

    def test_ditta_restricted_to_owned_company(self, ditta):
        sql = _sql(scope_conditions(ditta))

        assert len(sql) == 1
        assert "interventions.company_id" in sql[0]

    def test_ditta_filters_only_narrow(self, ditta):
        filters = InterventionFilters(company_id=OTHER_COMPANY_ID, technician_id=TECHNICIAN_ID)
        conditions = scope_conditions(ditta, filters)

        # perimetro della ditta + i due filtri, tutti in AND
        assert len(conditions) == 3

    def test_ditta_without_company_sees_nothing(self):
        actor = Actor(id=uuid.uuid4(), name="Senza ditta", role=UserRole.DITTA)
        sql = _sql(scope_conditions(actor, InterventionFilters(company_id=COMPANY_ID)))

        assert len(sql) == 1 and sql[0] in ("false", "0 = 1")

    def test_tecnico_sees_own_and_unassigned(self, tecnico):
        sql = _sql(scope_conditions(tecnico))

        assert len(sql) == 2
        assert "interventions.company_id" in sql[0]
        assert "interventions.technician_id IS NULL" in sql[1]
        assert " OR " in sql[1]

    def test_tecnico_without_company_sees_nothing(self):
        actor = Actor(id=uuid.uuid4(), name="Libero", role=UserRole.TECNICO)
        sql = _sql(scope_conditions(actor))
        assert len(sql) == 1 and sql[0] in ("false", "0 = 1")


class TestCanView:

    def test_master_sees_everything(self, master, unassigned_intervention):
        assert can_view(master, unassigned_intervention)

    def test_ditta_sees_only_own_company(self, ditta):
        assert can_view(ditta, MockIntervention(company_id=COMPANY_ID))
        assert not can_view(ditta, MockIntervention(company_id=OTHER_COMPANY_ID))
        assert not can_view(ditta, MockIntervention(company_id=None))

    def test_tecnico_visibility(self, tecnico):
        assert can_view(tecnico, MockIntervention(company_id=COMPANY_ID, technician_id=TECHNICIAN_ID))
        assert can_view(tecnico, MockIntervention(company_id=COMPANY_ID, technician_id=None))
        assert not can_view(tecnico, MockIntervention(company_id=COMPANY_ID, technician_id=uuid.uuid4()))
        assert not can_view(tecnico, MockIntervention(company_id=OTHER_COMPANY_ID))


class TestCanAct:

    def test_tecnico_cannot_act_on_unassigned_work(self, tecnico, company_intervention):
        assert can_view(tecnico, company_intervention)
        assert not can_act(tecnico, company_intervention)

    def test_tecnico_acts_on_own_assignment(self, tecnico, technician_intervention):
        assert can_act(tecnico, technician_intervention)

    def test_ditta_acts_on_own_company(self, ditta, company_intervention):
        assert can_act(ditta, company_intervention)
        assert not can_act(ditta, MockIntervention(company_id=OTHER_COMPANY_ID))

    def test_ensure_can_act_raises_forbidden(self, tecnico, company_intervention):
        with pytest.raises(AuthorizationError) as exc_info:
            ensure_can_act(tecnico, company_intervention)

        assert exc_info.value.status_code == 403
