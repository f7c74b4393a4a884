"""
Unit tests for NumberingService.
"""

from datetime import datetime, timezone

from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import IntegrityError

from conftest import scalar_result
from app.schemas.intervention import InterventionCreate
from app.services.intervention_service import intervention_service
from app.services.numbering_service import format_intervention_number, numbering_service


class TestFormat:

    def test_four_digit_padding(self):
        assert format_intervention_number("INT", 2025, 1) == "INT-2025-0001"
        assert format_intervention_number("INT", 2025, 42) == "INT-2025-0042"

    def test_overflow_widens(self):
        assert format_intervention_number("INT", 2025, 12345) == "INT-2025-12345"


class TestNextNumber:

    async def test_uses_counter_value(self, mock_db):
        mock_db.execute.return_value = scalar_result(7)

        number = await numbering_service.next_number(mock_db, year=2025)

        assert number == "INT-2025-0007"
        mock_db.execute.assert_awaited_once()

    async def test_counter_is_atomic_upsert(self, mock_db):
        mock_db.execute.return_value = scalar_result(1)

        await numbering_service.next_number(mock_db, year=2026)

        stmt = mock_db.execute.call_args.args[0]
        sql = str(stmt.compile(dialect=postgresql.dialect()))
        assert "INSERT INTO intervention_counters" in sql
        assert "ON CONFLICT (year) DO UPDATE" in sql
        assert "RETURNING intervention_counters.last_value" in sql


class FakeCounterTable:
    """
    Contatori annuali in memoria con la stessa semantica dell'upsert:
    la prima chiamata dell'anno parte dagli interventi già presenti.
    """

    def __init__(self, existing=None):
        self.existing = existing or {}
        self.values = {}

    async def execute(self, stmt):
        year = stmt.compile(dialect=postgresql.dialect()).params["year"]
        if year in self.values:
            self.values[year] += 1
        else:
            self.values[year] = self.existing.get(year, 0) + 1
        return scalar_result(self.values[year])


class TestUniqueness:

    async def test_consecutive_calls_never_repeat(self, mock_db):
        mock_db.execute.side_effect = FakeCounterTable().execute

        numbers = [await numbering_service.next_number(mock_db, year=2025) for _ in range(50)]

        assert len(set(numbers)) == 50
        assert numbers[0] == "INT-2025-0001"
        assert numbers[-1] == "INT-2025-0050"

    async def test_first_call_of_year_seeds_from_existing(self, mock_db):
        mock_db.execute.side_effect = FakeCounterTable(existing={2025: 7}).execute

        assert await numbering_service.next_number(mock_db, year=2025) == "INT-2025-0008"
        assert await numbering_service.next_number(mock_db, year=2025) == "INT-2025-0009"

    async def test_years_are_independent(self, mock_db):
        mock_db.execute.side_effect = FakeCounterTable(existing={2025: 120}).execute

        assert await numbering_service.next_number(mock_db, year=2025) == "INT-2025-0121"
        assert await numbering_service.next_number(mock_db, year=2026) == "INT-2026-0001"
        assert await numbering_service.next_number(mock_db, year=2025) == "INT-2025-0122"

    async def test_creates_get_distinct_numbers_across_a_collision(self, mock_db, master):
        mock_db.execute.side_effect = FakeCounterTable().execute
        collision = IntegrityError("INSERT INTO interventions", {}, Exception(
            'duplicate key value violates unique constraint "uq_interventions_number"'
        ))
        # il primo numero è già occupato (inserito a mano)
        mock_db.flush.side_effect = [collision] + [None] * 5
        data = InterventionCreate(
            client_name="Giuseppe Neri",
            client_address="Via Roma",
            client_city="Torino",
            category="maintenance",
            description="Manutenzione caldaia",
        )

        created = [await intervention_service.create(mock_db, master, data) for _ in range(5)]

        year = datetime.now(timezone.utc).year
        assert [i.number for i in created] == [f"INT-{year}-{n:04d}" for n in range(2, 7)]
