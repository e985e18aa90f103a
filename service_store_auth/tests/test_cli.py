"""
Unit tests for the store-auth command line.
"""

import json

import pytest
import httpx
from unittest.mock import AsyncMock, patch

from shared.config import StoreAuthConfig
from shared.errors import RemoteExchangeError
from shared.test_helpers import RecordingHandler, create_store_id_token, create_token_response
from service_store_auth.app import main as cli
from service_store_auth.app.store_id import PURCHASE_AUDIENCE
from service_store_auth.app.tokens import audiences
from service_store_auth.app.transport import HttpTransport


@pytest.fixture
def config():
    return StoreAuthConfig(_env_file=None, tenant_id="tenant", client_id="client", client_secret="secret")


class TestIssueToken:
    """issue sub-command."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name, audience", [
        ("service", audiences.SERVICE),
        ("purchase", audiences.PURCHASE),
        ("collections", audiences.COLLECTIONS),
        ("https://example.test/custom", "https://example.test/custom"),
    ])
    async def test_audience_names(self, config, name, audience):
        handler = RecordingHandler([httpx.Response(200, json=create_token_response())])

        summary = await cli.issue_token(config, name, transport=HttpTransport(client=handler.client()))

        assert summary["audience"] == audience
        assert "access_token" not in summary

    @pytest.mark.asyncio
    async def test_show_token(self, config):
        handler = RecordingHandler([httpx.Response(200, json=create_token_response(access_token="shown"))])

        summary = await cli.issue_token(config, "service", show_token=True, transport=HttpTransport(client=handler.client()))

        assert summary["access_token"] == "shown"


class TestMain:
    """Exit codes and output."""

    def test_inspect(self, capsys):
        key = create_store_id_token(PURCHASE_AUDIENCE, "2024-01-01T00:00:00Z", "https://example/refresh")

        exit_code = cli.main(["inspect", key])

        output = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        assert output == {
            "key_type": "purchase_identity",
            "expires": "2024-01-01T00:00:00+00:00",
            "refresh_uri": "https://example/refresh",
            "expired": True,
        }

    def test_inspect_malformed(self, capsys):
        exit_code = cli.main(["inspect", "not-a-token"])

        assert exit_code == 1
        assert "inspect failed" in capsys.readouterr().err

    def test_issue_without_credentials(self, capsys, monkeypatch):
        monkeypatch.setattr(cli, "get_config", lambda: StoreAuthConfig(_env_file=None))

        exit_code = cli.main(["issue"])

        assert exit_code == 1
        assert "tenant_id required" in capsys.readouterr().err

    def test_issue_remote_failure(self, capsys, monkeypatch, config):
        monkeypatch.setattr(cli, "get_config", lambda: config)
        failure = RemoteExchangeError(target=audiences.SERVICE, message="Unable to acquire access token", status_code=401)

        with patch.object(cli.ServiceCredentialIssuer, "issue", new=AsyncMock(side_effect=failure)):
            exit_code = cli.main(["issue", "--audience", "service"])

        assert exit_code == 1
        assert "Unable to acquire access token" in capsys.readouterr().err
