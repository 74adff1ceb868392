import json

import pytest
from fastapi.testclient import TestClient

from app import config
from app.main import app, get_interceptor
from github_owners import GitHubOwnersInterceptor, InMemoryRepositoryHost, TrustComment

REPO = "acme/widgets"
HOST_DATA = {
    "files": {(REPO, "OWNERS"): "approvers: [alice]\nreviewers: [carol]\n"},
    "comments": {(REPO, 42): [TrustComment("carol", "lgtm\n/ok-to-test")]},
}


def in_memory_factory(token, enterprise_host, deadline):
    return InMemoryRepositoryHost(deadline=deadline, **HOST_DATA)


@pytest.fixture
def client():
    app.dependency_overrides[get_interceptor] = lambda: GitHubOwnersInterceptor(host_factory=in_memory_factory)
    yield TestClient(app)
    app.dependency_overrides.clear()


def interceptor_request(event, body, params=None, content_type="application/json"):
    return {
        "body": json.dumps(body),
        "header": {"X-Github-Event": [event], "Content-Type": [content_type]},
        "extensions": {},
        "interceptor_params": params or {},
        "context": {
            "event_url": "https://tekton.example.com",
            "event_id": "c9a1b6f0-0000-4000-8000-000000000001",
            "trigger_id": "namespaces/ci/triggers/github-pr",
        },
    }


def pr(sender, number=7):
    return {"number": number, "repository": {"full_name": REPO}, "sender": {"login": sender}}


def test_ready(client, monkeypatch, tmp_path):
    monkeypatch.setattr(config, "SECRET_BACKEND", "file")
    monkeypatch.setattr(config, "SECRETS_DIR", str(tmp_path))
    r = client.get("/ready")
    assert r.status_code == 200
    assert r.json()["checks"]["secrets_dir"] is True


def test_not_ready_without_secrets_dir(client, monkeypatch, tmp_path):
    monkeypatch.setattr(config, "SECRET_BACKEND", "file")
    monkeypatch.setattr(config, "SECRETS_DIR", str(tmp_path / "missing"))
    r = client.get("/ready")
    assert r.status_code == 503
    assert r.json()["failed"] == ["secrets_dir"]


def test_not_ready_with_unknown_backend(client, monkeypatch):
    monkeypatch.setattr(config, "SECRET_BACKEND", "vault")
    r = client.get("/ready")
    assert r.status_code == 503
    assert "secret_backend" in r.json()["failed"]


def test_owner_allowed(client):
    r = client.post("/", json=interceptor_request("pull_request", pr("Alice")))
    assert r.status_code == 200
    assert r.json() == {"continue": True, "status": {}}


def test_stranger_denied(client):
    r = client.post("/", json=interceptor_request("pull_request", pr("mallory")))
    assert r.status_code == 200
    assert r.json() == {"continue": False, "status": {}}


def test_ok_to_test_comment_allows(client):
    body = {"issue": {"number": 42}, "repository": {"full_name": REPO}, "sender": {"login": "bob"}}
    r = client.post("/", json=interceptor_request("issue_comment", body))
    assert r.json()["continue"] is True


def test_unsupported_event(client):
    r = client.post("/", json=interceptor_request("push", pr("alice")))
    assert r.status_code == 200
    assert r.json() == {
        "continue": False,
        "status": {"code": 9, "message": "event type push is not allowed"},
    }


def test_form_encoding_rejected(client):
    req = interceptor_request("pull_request", pr("alice"), content_type="application/x-www-form-urlencoded")
    r = client.post("/", json=req)
    assert r.json()["status"]["code"] == 3
    assert r.json()["continue"] is False


def test_bad_params(client):
    req = interceptor_request("pull_request", pr("alice"), params={"repoMemberAllowed": "yes"})
    r = client.post("/", json=req)
    assert r.json()["status"]["code"] == 3


def test_malformed_payload(client):
    req = interceptor_request("pull_request", {"repository": {"full_name": REPO}})
    r = client.post("/", json=req)
    status = r.json()["status"]
    assert status["code"] == 9
    assert status["message"].startswith("error parsing body: ")


def test_invalid_request_envelope(client):
    r = client.post("/", json={"header": "not-a-map"})
    assert r.status_code == 400


def test_non_json_request(client):
    r = client.post("/", content=b"{", headers={"Content-Type": "application/json"})
    assert r.status_code == 400
