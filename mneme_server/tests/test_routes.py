"""
Tests for the HTTP endpoints of Mneme Sync Server

Uses FastAPI's TestClient against an app with a temporary data directory.
"""

from datetime import datetime

from .conftest import headers_for


def parse(value):
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


# ==================== Health ====================

def test_health(client):
    """Test the health endpoint shape"""
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["authRequired"] is False
    assert body["version"]


# ==================== Locks ====================

def test_acquire_and_conflict(client):
    """Test that a second client gets 409 with the holder's lease"""
    first = client.post("/projects/demo/lock", headers=headers_for("A"))
    assert first.status_code == 200
    assert first.json()["success"] is True
    lock = first.json()["lock"]
    assert lock["projectId"] == "demo"
    assert lock["clientId"] == "A"
    assert parse(lock["expiresAt"]) > parse(lock["acquiredAt"])

    second = client.post("/projects/demo/lock", headers=headers_for("B"))
    assert second.status_code == 409
    assert second.json()["lock"]["clientId"] == "A"
    assert "error" in second.json()


def test_lock_requires_client_id(client):
    """Test that lock mutations without X-Client-Id are rejected"""
    assert client.post("/projects/demo/lock").status_code == 400
    assert client.delete("/projects/demo/lock").status_code == 400
    assert client.post("/projects/demo/lock/heartbeat").status_code == 400


def test_lock_status(client):
    """Test reading the lock state"""
    assert client.get("/projects/demo/lock").json() == {"locked": False, "lock": None}

    client.post("/projects/demo/lock", headers=headers_for("A"))
    body = client.get("/projects/demo/lock").json()
    assert body["locked"] is True
    assert body["lock"]["clientId"] == "A"


def test_heartbeat(client):
    """Test holder heartbeat extends expiry and non-holder gets 403"""
    acquired = client.post("/projects/demo/lock", headers=headers_for("A")).json()["lock"]

    renewed = client.post("/projects/demo/lock/heartbeat", headers=headers_for("A"))
    assert renewed.status_code == 200
    assert parse(renewed.json()["lock"]["expiresAt"]) > parse(acquired["expiresAt"])

    rejected = client.post("/projects/demo/lock/heartbeat", headers=headers_for("B"))
    assert rejected.status_code == 403


def test_release(client):
    """Test that only the holder may release"""
    client.post("/projects/demo/lock", headers=headers_for("A"))

    assert client.delete("/projects/demo/lock", headers=headers_for("B")).status_code == 403
    assert client.delete("/projects/demo/lock", headers=headers_for("A")).status_code == 200
    assert client.get("/projects/demo/lock").json()["locked"] is False
    assert client.post("/projects/demo/lock", headers=headers_for("B")).status_code == 200


# ==================== Files ====================

def test_upload_requires_lease(client):
    """Test that PUT without the lease is forbidden"""
    response = client.put("/projects/demo/files/summary.json", json={"content": "{}"},
                          headers=headers_for("A"))
    assert response.status_code == 403
    assert response.json()["error"]


def test_upload_list_download(client):
    """Test storing a file and reading it back with the same timestamp"""
    client.post("/projects/demo/lock", headers=headers_for("A"))
    content = '{"entry": 1}\n{"entry": 2}\n'

    uploaded = client.put("/projects/demo/files/log.jsonl", json={"content": content},
                          headers=headers_for("A"))
    assert uploaded.status_code == 200
    modified_at = uploaded.json()["modifiedAt"]

    listing = client.get("/projects/demo/files").json()["files"]
    assert listing == [{"name": "log.jsonl", "size": len(content.encode('utf-8')), "modifiedAt": modified_at}]

    downloaded = client.get("/projects/demo/files/log.jsonl").json()
    assert downloaded == {"content": content, "modifiedAt": modified_at}


def test_modified_at_is_monotonic(client):
    """Test that back-to-back uploads get strictly increasing timestamps"""
    client.post("/projects/demo/lock", headers=headers_for("A"))

    stamps = []
    for i in range(5):
        response = client.put("/projects/demo/files/summary.json", json={"content": str(i)},
                              headers=headers_for("A"))
        stamps.append(parse(response.json()["modifiedAt"]))

    assert all(later > earlier for earlier, later in zip(stamps, stamps[1:]))


def test_disallowed_file_names(client):
    """Test that only tracked names are accepted"""
    client.post("/projects/demo/lock", headers=headers_for("A"))

    assert client.get("/projects/demo/files/notes.txt").status_code == 400
    assert client.put("/projects/demo/files/config.json", json={"content": "x"},
                      headers=headers_for("A")).status_code == 400


def test_download_missing_file(client):
    """Test 404 for a tracked name that was never uploaded"""
    assert client.get("/projects/demo/files/entities.json").status_code == 404


def test_upload_requires_client_id(client):
    """Test that PUT without X-Client-Id is rejected"""
    assert client.put("/projects/demo/files/summary.json", json={"content": "{}"}).status_code == 400


def test_project_ids_are_sanitized_on_disk(client, tmp_path):
    """Test that unsafe project ids are stored under a safe directory name"""
    client.post("/projects/my.project/lock", headers=headers_for("A"))
    client.put("/projects/my.project/files/entities.json", json={"content": "{}"},
               headers=headers_for("A"))

    assert (tmp_path / "projects" / "my_project" / "entities.json").exists()


def test_ids_sharing_a_directory_share_the_lock(client):
    """Test that a second id mapping to the same directory is refused and cannot overwrite"""
    assert client.post("/projects/my.proj/lock", headers=headers_for("A")).status_code == 200
    assert client.put("/projects/my.proj/files/entities.json", json={"content": "from A"},
                      headers=headers_for("A")).status_code == 200

    refused = client.post("/projects/my_proj/lock", headers=headers_for("B"))
    assert refused.status_code == 409
    assert refused.json()["lock"]["clientId"] == "A"

    upload = client.put("/projects/my_proj/files/entities.json", json={"content": "from B"},
                        headers=headers_for("B"))
    assert upload.status_code == 403
    assert client.get("/projects/my.proj/files/entities.json").json()["content"] == "from A"


def test_oversized_body_rejected(client):
    """Test that a declared body above the cap is rejected with 413"""
    response = client.put("/projects/demo/files/summary.json", content=b"{}",
                          headers={"X-Client-Id": "A", "Content-Type": "application/json",
                                   "Content-Length": str(11 * 1024 * 1024)})
    assert response.status_code == 413


def test_chunked_body_over_cap_rejected(client):
    """Test that a body without Content-Length is cut off once it passes the cap"""
    def chunks():
        yield b'{"content": "'
        for _ in range(11):
            yield b"x" * (1024 * 1024)
        yield b'"}'

    response = client.put("/projects/demo/files/summary.json", content=chunks(),
                          headers={"X-Client-Id": "A", "Content-Type": "application/json"})

    assert response.status_code == 413
    assert response.json() == {"error": "Request body too large"}


# ==================== Auth, rate limit, CORS ====================

def test_api_key_enforced(make_client):
    """Test 401 without a key, 403 with a wrong key, 200 with a valid key"""
    with make_client(api_keys=["first-key", "second-key"]) as client:
        assert client.get("/health").json()["authRequired"] is True

        assert client.get("/projects/demo/lock").status_code == 401
        wrong = client.get("/projects/demo/lock", headers={"Authorization": "Bearer nope"})
        assert wrong.status_code == 403
        ok = client.get("/projects/demo/lock", headers={"Authorization": "Bearer second-key"})
        assert ok.status_code == 200


def test_rate_limit(make_client):
    """Test that requests beyond the per-minute limit get 429"""
    with make_client(rate_limit_per_minute=3) as client:
        statuses = [client.get("/health").status_code for _ in range(4)]

    assert statuses == [200, 200, 200, 429]


def test_cors_only_when_configured(make_client):
    """Test that CORS headers appear only for allowed origins"""
    with make_client(allowed_origins=["http://dashboard.local"]) as client:
        allowed = client.get("/health", headers={"Origin": "http://dashboard.local"})
        assert allowed.headers.get("access-control-allow-origin") == "http://dashboard.local"

    with make_client() as client:
        plain = client.get("/health", headers={"Origin": "http://dashboard.local"})
        assert "access-control-allow-origin" not in plain.headers
