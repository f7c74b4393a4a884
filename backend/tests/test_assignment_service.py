"""
Unit tests for AssignmentService.
"""

import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest

from conftest import (
    COMPANY_ID,
    OTHER_COMPANY_ID,
    TECHNICIAN_ID,
    MockCompany,
    MockIntervention,
    MockUser,
    scalar_result,
)
from app.core.exceptions import AuthorizationError, NotFoundError
from app.services import assignment_service as assignment_module
from app.services.assignment_service import assignment_service


def _patch_load(intervention):
    return patch.object(
        assignment_module,
        "get_intervention_or_404",
        AsyncMock(return_value=intervention),
    )


class TestAssignCompany:

    async def test_reassignment_resets_technician_and_status(self, mock_db, master):
        intervention = MockIntervention(
            status="in_progress",
            company_id=OTHER_COMPANY_ID,
            technician_id=uuid.uuid4(),
            appointment_date=datetime(2025, 2, 1, 10, 0, tzinfo=timezone.utc),
        )
        mock_db.execute.return_value = scalar_result(MockCompany(id=COMPANY_ID))

        with _patch_load(intervention):
            result = await assignment_service.assign_company(mock_db, master, intervention.id, COMPANY_ID)

        assert result.company_id == COMPANY_ID
        assert result.technician_id is None
        assert result.status == "assigned"
        assert result.assigned_by_id == master.id
        assert result.assigned_at is not None
        # L'appuntamento precedente resta sul record
        assert result.appointment_date is not None
        mock_db.flush.assert_awaited_once()

    async def test_first_assignment_keeps_assigned_status(self, mock_db, master, unassigned_intervention):
        mock_db.execute.return_value = scalar_result(MockCompany(id=COMPANY_ID))

        with _patch_load(unassigned_intervention):
            result = await assignment_service.assign_company(
                mock_db, master, unassigned_intervention.id, COMPANY_ID
            )

        assert result.status == "assigned"
        assert result.technician_id is None

    async def test_unknown_company(self, mock_db, master, unassigned_intervention):
        mock_db.execute.return_value = scalar_result(None)

        with _patch_load(unassigned_intervention):
            with pytest.raises(NotFoundError):
                await assignment_service.assign_company(
                    mock_db, master, unassigned_intervention.id, uuid.uuid4()
                )

        assert unassigned_intervention.company_id is None

    async def test_only_master(self, mock_db, ditta):
        with pytest.raises(AuthorizationError):
            await assignment_service.assign_company(mock_db, ditta, uuid.uuid4(), COMPANY_ID)


class TestAssignTechnician:

    async def test_assigns_company_technician(self, mock_db, ditta, company_intervention):
        mock_db.execute.return_value = scalar_result(MockUser(id=TECHNICIAN_ID))

        with _patch_load(company_intervention):
            result = await assignment_service.assign_technician(
                mock_db, ditta, company_intervention.id, TECHNICIAN_ID
            )

        assert result.technician_id == TECHNICIAN_ID
        assert result.status == "assigned"
        assert result.assigned_by_id == ditta.id

    async def test_status_is_not_changed(self, mock_db, ditta):
        intervention = MockIntervention(status="appointment_set", company_id=COMPANY_ID)
        mock_db.execute.return_value = scalar_result(MockUser(id=TECHNICIAN_ID))

        with _patch_load(intervention):
            result = await assignment_service.assign_technician(
                mock_db, ditta, intervention.id, TECHNICIAN_ID
            )

        assert result.status == "appointment_set"

    async def test_other_company_is_forbidden(self, mock_db, ditta):
        intervention = MockIntervention(company_id=OTHER_COMPANY_ID)

        with _patch_load(intervention):
            with pytest.raises(AuthorizationError):
                await assignment_service.assign_technician(
                    mock_db, ditta, intervention.id, TECHNICIAN_ID
                )

        mock_db.execute.assert_not_awaited()

    async def test_technician_of_other_company_not_found(self, mock_db, ditta, company_intervention):
        mock_db.execute.return_value = scalar_result(None)

        with _patch_load(company_intervention):
            with pytest.raises(NotFoundError):
                await assignment_service.assign_technician(
                    mock_db, ditta, company_intervention.id, uuid.uuid4()
                )

        assert company_intervention.technician_id is None

    async def test_null_clears_technician(self, mock_db, ditta):
        intervention = MockIntervention(
            status="in_progress", company_id=COMPANY_ID, technician_id=TECHNICIAN_ID
        )

        with _patch_load(intervention):
            result = await assignment_service.assign_technician(mock_db, ditta, intervention.id, None)

        assert result.technician_id is None
        assert result.status == "in_progress"

    async def test_only_ditta(self, mock_db, master):
        with pytest.raises(AuthorizationError):
            await assignment_service.assign_technician(mock_db, master, uuid.uuid4(), TECHNICIAN_ID)
