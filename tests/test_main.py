from __future__ import annotations

from unittest import mock

from fastapi.testclient import TestClient

from account_service import main


def test_lifespan_opens_and_closes_pool_with_timeout():
    with mock.patch.object(main, "ConnectionPool") as pool_cls, mock.patch.object(
        main, "AccountRepository"
    ) as repository_cls, mock.patch.object(main.boto3, "client"):
        with TestClient(main.app) as client:
            assert client.get("/healthz").status_code == 200
            assert main.app.state.pool is pool_cls.return_value

    pool = pool_cls.return_value
    pool.open.assert_called_once_with()
    repository_cls.return_value.ensure_schema.assert_called_once_with()
    pool.close.assert_called_once_with(timeout=10)
