"""
Unit tests for PushTokenService.
"""

from unittest.mock import MagicMock

from sqlalchemy.dialects import postgresql

from conftest import scalar_result
from app.schemas.push_token import PushTokenRegister
from app.services.push_token_service import push_token_service


class TestRegister:

    async def test_register_is_single_upsert(self, mock_db, tecnico):
        stored = MagicMock(token="ExponentPushToken[abc]", platform="android")
        mock_db.execute.return_value = scalar_result(stored)

        result = await push_token_service.register(
            mock_db, tecnico, PushTokenRegister(token="ExponentPushToken[abc]", platform="android")
        )

        assert result is stored
        mock_db.execute.assert_awaited_once()
        mock_db.add.assert_not_called()

        stmt = mock_db.execute.call_args.args[0]
        sql = str(stmt.compile(dialect=postgresql.dialect()))
        assert "INSERT INTO push_tokens" in sql
        assert "ON CONFLICT ON CONSTRAINT uq_push_tokens_user_token DO UPDATE" in sql
        assert "platform = " in sql


class TestRemove:

    async def test_remove_tokens_empty_list(self, mock_db):
        assert await push_token_service.remove_tokens(mock_db, []) == 0
        mock_db.execute.assert_not_awaited()

    async def test_remove_counts_deleted(self, mock_db, tecnico):
        deleted = MagicMock()
        deleted.scalars.return_value.all.return_value = [1]
        mock_db.execute.return_value = deleted

        assert await push_token_service.remove(mock_db, tecnico, "ExponentPushToken[abc]") == 1
