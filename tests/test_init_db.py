import pytest

from app.registry.service import create_registry
from scripts.init_db import init_registry


@pytest.fixture()
def db_url(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path/'test.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("REGISTRY_OWNER", "0xOWNER")
    monkeypatch.setenv("REGISTRY_VERIFIERS", "0xV1,0xV2")
    return url


def test_init_registry_is_idempotent(db_url):
    init_registry()
    init_registry()

    reg = create_registry(db_url, env="test")
    assert reg.is_owner("0xOWNER")
    assert reg.is_verifier("0xV1")
    assert reg.is_verifier("0xV2")
    assert [e.action for e in reg.audit_trail()].count("registry.initialize") == 1


def test_init_registry_requires_owner(db_url, monkeypatch):
    monkeypatch.delenv("REGISTRY_OWNER")
    with pytest.raises(SystemExit):
        init_registry()


def test_init_registry_refuses_foreign_owner(db_url, monkeypatch):
    init_registry()
    monkeypatch.setenv("REGISTRY_OWNER", "0xIMPOSTOR")
    with pytest.raises(SystemExit):
        init_registry()
