from __future__ import annotations

import json

import pytest

from showcase import cli
from showcase.errors import UpstreamFetchError
from tests.conftest import FakeFetcher, make_repo


class _ClientStub(FakeFetcher):
    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return None


@pytest.fixture
def stub(monkeypatch):
    instance = _ClientStub(repos=[make_repo("b"), make_repo("a"), make_repo("zzz")])
    monkeypatch.setattr(cli, "GitHubClient", lambda *args, **kwargs: instance)
    return instance


def test_projects_prints_featured_envelope(stub, config, capsys):
    cli.cmd_projects(config)

    envelope = json.loads(capsys.readouterr().out)
    assert envelope["success"] is True
    assert envelope["data"]["type"] == "featured"
    assert [r["name"] for r in envelope["data"]["repositories"]] == ["a", "b"]


def test_projects_all_with_limit(stub, config, capsys):
    cli.cmd_projects(config, project_type="all", limit=2)

    envelope = json.loads(capsys.readouterr().out)
    assert envelope["data"]["count"] == 2


def test_projects_exits_on_upstream_failure(stub, config):
    stub.list_error = UpstreamFetchError("GitHub API error: 503", status=503)
    with pytest.raises(SystemExit) as excinfo:
        cli.cmd_projects(config)
    assert excinfo.value.code == 1
