import pytest

from app.registry import create_app


@pytest.fixture()
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    for k in ("REGISTRY_OWNER", "REGISTRY_VERIFIERS", "PRINCIPAL_HEADER"):
        monkeypatch.delenv(k, raising=False)

    app = create_app()
    return app.test_client()


def test_health_ok(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json["ok"] is True
    assert r.json["documents"] == 0


def test_healthz(client):
    r = client.get("/healthz")
    assert r.status_code == 200


def test_uninitialized_registry_rejects_mutations(client):
    r = client.post("/api/admins", json={"address": "0xA", "name": "A"}, headers={"X-Principal": "0xOWNER"})
    assert r.status_code == 503
    assert r.json["error"] == "not_initialized"


def test_unknown_route_is_json_404(client):
    r = client.get("/nope")
    assert r.status_code == 404
    assert r.json["error"] == "not_found"


def test_production_rejects_sqlite(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'prod.db'}")
    monkeypatch.setenv("ENV", "production")
    with pytest.raises(RuntimeError):
        create_app()


def test_missing_principal_maps_to_unauthenticated(client):
    from app.registry.errors import RegistryError, Unauthenticated

    assert issubclass(Unauthenticated, RegistryError)
    r = client.post("/api/verifiers", json={"address": "0xV"})
    assert r.status_code == Unauthenticated.status
    assert r.json["error"] == Unauthenticated.code
