"""
Unit tests for CompanyService.
"""

import uuid
from unittest.mock import MagicMock

import pytest

from conftest import COMPANY_ID, OTHER_COMPANY_ID, MockCompany, MockUser, scalar_result
from app.core.exceptions import AuthorizationError, BusinessValidationError, NotFoundError
from app.schemas.company import CompanyUpdate
from app.services.company_service import company_service


def _scalars(values):
    result = MagicMock()
    result.scalars.return_value.all.return_value = values
    return result


class TestGetAll:

    async def test_counts_are_returned(self, mock_db):
        rows = MagicMock()
        rows.all.return_value = [
            (MockCompany(), 3, 12),
            (MockCompany(id=OTHER_COMPANY_ID, name="Termoidraulica Gialli"), 0, 0),
        ]
        mock_db.execute.return_value = rows

        companies = await company_service.get_all(mock_db)

        assert [c.name for c in companies] == ["Impianti Bianchi Srl", "Termoidraulica Gialli"]
        assert companies[0].technicians_count == 3
        assert companies[0].interventions_count == 12
        assert companies[1].technicians_count == 0


class TestGetDetail:

    async def test_owner_sees_own_company_with_technicians(self, mock_db, ditta):
        technicians = [MockUser(), MockUser(id=uuid.uuid4(), full_name="Paolo Neri")]
        mock_db.execute.side_effect = [scalar_result(MockCompany()), _scalars(technicians)]

        detail = await company_service.get_detail(mock_db, ditta, COMPANY_ID)

        assert detail.id == COMPANY_ID
        assert detail.technicians_count == 2
        assert [t.full_name for t in detail.technicians] == ["Luca Verdi", "Paolo Neri"]

    async def test_ditta_cannot_see_other_company(self, mock_db, ditta):
        mock_db.execute.return_value = scalar_result(MockCompany(id=OTHER_COMPANY_ID))

        with pytest.raises(AuthorizationError):
            await company_service.get_detail(mock_db, ditta, OTHER_COMPANY_ID)

    async def test_missing_company(self, mock_db, master):
        mock_db.execute.return_value = scalar_result(None)

        with pytest.raises(NotFoundError):
            await company_service.get_by_id(mock_db, master, uuid.uuid4())

    async def test_tecnico_not_allowed(self, mock_db, tecnico):
        with pytest.raises(AuthorizationError):
            await company_service.get_technicians(mock_db, tecnico, COMPANY_ID)

        mock_db.execute.assert_not_awaited()


class TestUpdate:

    async def test_owner_updates_contacts(self, mock_db, ditta):
        company = MockCompany()
        mock_db.execute.return_value = scalar_result(company)

        result = await company_service.update(
            mock_db, ditta, COMPANY_ID, CompanyUpdate(phone="011 555 1234", address="Via Po 3")
        )

        assert result.phone == "011 555 1234"
        assert result.address == "Via Po 3"
        mock_db.flush.assert_awaited_once()

    async def test_owner_cannot_deactivate(self, mock_db, ditta):
        company = MockCompany()
        mock_db.execute.return_value = scalar_result(company)

        with pytest.raises(AuthorizationError) as exc_info:
            await company_service.update(mock_db, ditta, COMPANY_ID, CompanyUpdate(is_active=False))

        assert exc_info.value.extra == {"fields": ["is_active"]}
        assert company.is_active is True
        mock_db.flush.assert_not_awaited()

    async def test_master_deactivates(self, mock_db, master):
        company = MockCompany()
        mock_db.execute.return_value = scalar_result(company)

        await company_service.update(mock_db, master, COMPANY_ID, CompanyUpdate(is_active=False))

        assert company.is_active is False

    async def test_ditta_cannot_update_other_company(self, mock_db, ditta):
        mock_db.execute.return_value = scalar_result(MockCompany(id=OTHER_COMPANY_ID))

        with pytest.raises(AuthorizationError):
            await company_service.update(mock_db, ditta, OTHER_COMPANY_ID, CompanyUpdate(name="Altra"))

    async def test_empty_update(self, mock_db, master):
        mock_db.execute.return_value = scalar_result(MockCompany())

        with pytest.raises(BusinessValidationError):
            await company_service.update(mock_db, master, COMPANY_ID, CompanyUpdate())

    async def test_name_cannot_be_emptied(self, mock_db, master):
        mock_db.execute.return_value = scalar_result(MockCompany())

        with pytest.raises(BusinessValidationError):
            await company_service.update(mock_db, master, COMPANY_ID, CompanyUpdate(name=None))

    def test_blank_name_rejected(self):
        with pytest.raises(ValueError):
            CompanyUpdate(name="   ")
