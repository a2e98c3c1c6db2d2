from urllib.parse import parse_qs, urlsplit

from sqlalchemy.exc import OperationalError

from shortlinks import crud


def assert_not_found_redirect(response, code):
    assert response.status_code == 302
    location = urlsplit(response.headers["location"])
    assert location.path == "/link-not-found"
    assert parse_qs(location.query) == {"code": [code]}


def test_link_lifecycle(client, auth_header):
    alice = auth_header("alice")

    created = client.post("/links", json={"target_url": "https://example.com/a", "code": "my-link"}, headers=alice)
    assert created.status_code == 201
    body = created.json()
    assert body["success"] is True
    assert body["data"]["short_code"] == "my-link"
    link_id = body["data"]["id"]

    again = client.post("/links", json={"target_url": "https://example.com/a", "code": "my-link"}, headers=alice)
    assert again.status_code == 409
    assert again.json()["kind"] == "code_taken"

    res = client.get("/l/my-link", follow_redirects=False)
    assert res.status_code == 302
    assert res.headers["location"] == "https://example.com/a"

    edited = client.put(f"/links/{link_id}", json={"target_url": "https://example.com/b", "code": "my-link2"}, headers=alice)
    assert edited.status_code == 200
    assert edited.json()["data"]["short_code"] == "my-link2"

    assert_not_found_redirect(client.get("/l/my-link", follow_redirects=False), "my-link")
    res = client.get("/l/my-link2", follow_redirects=False)
    assert res.status_code == 302
    assert res.headers["location"] == "https://example.com/b"

    deleted = client.delete(f"/links/{link_id}", headers=alice)
    assert deleted.status_code == 200
    assert deleted.json() == {"success": True, "data": None, "error": None, "kind": None}

    assert_not_found_redirect(client.get("/l/my-link2", follow_redirects=False), "my-link2")


def test_create_generates_code(client, auth_header):
    res = client.post("/links", json={"target_url": "https://example.com/x"}, headers=auth_header("alice"))
    assert res.status_code == 201
    code = res.json()["data"]["short_code"]
    assert len(code) == 6 and code.isalnum()


def test_create_validation_errors_are_per_field(client, auth_header):
    res = client.post("/links", json={"target_url": "nope", "code": "white space"}, headers=auth_header("alice"))
    assert res.status_code == 422
    body = res.json()
    assert body["kind"] == "validation"
    assert set(body["error"]) == {"target_url", "code"}


def test_mutations_need_identity(client):
    res = client.post("/links", json={"target_url": "https://example.com/x"})
    assert res.status_code == 401
    assert res.json()["kind"] == "unauthorized"

    res = client.delete("/links/anything")
    assert res.status_code == 401


def test_invalid_token_is_unauthenticated(client):
    res = client.post(
        "/links",
        json={"target_url": "https://example.com/x"},
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert res.status_code == 401


def test_foreign_and_missing_links_look_the_same(client, auth_header):
    created = client.post("/links", json={"target_url": "https://example.com/a", "code": "alices"}, headers=auth_header("alice"))
    link_id = created.json()["data"]["id"]
    bob = auth_header("bob")

    foreign = client.put(f"/links/{link_id}", json={"target_url": "https://example.com/b", "code": "x"}, headers=bob)
    missing = client.put("/links/does-not-exist", json={"target_url": "https://example.com/b", "code": "x"}, headers=bob)
    assert foreign.status_code == missing.status_code == 404
    assert foreign.json() == missing.json()

    foreign = client.delete(f"/links/{link_id}", headers=bob)
    missing = client.delete("/links/does-not-exist", headers=bob)
    assert foreign.status_code == missing.status_code == 404
    assert foreign.json() == missing.json()


def test_list_links_only_shows_own_newest_first(client, auth_header):
    alice, bob = auth_header("alice"), auth_header("bob")
    for code in ("first", "second"):
        client.post("/links", json={"target_url": f"https://example.com/{code}", "code": code}, headers=alice)
    client.post("/links", json={"target_url": "https://example.com/bob", "code": "bobs"}, headers=bob)

    res = client.get("/links", headers=alice)
    assert res.status_code == 200
    body = res.json()
    assert body["total"] == 2
    assert [item["short_code"] for item in body["items"]] == ["second", "first"]

    res = client.get("/links", params={"skip": 1, "limit": 1}, headers=alice)
    assert [item["short_code"] for item in res.json()["items"]] == ["first"]


def test_list_links_requires_login(client):
    assert client.get("/links").status_code == 401


def test_not_found_page_escapes_code(client):
    res = client.get("/link-not-found", params={"code": "<script>"})
    assert res.status_code == 404
    assert "&lt;script&gt;" in res.text
    assert "<script>" not in res.text


def test_unknown_code_with_odd_characters(client):
    assert_not_found_redirect(client.get("/l/what%20ever", follow_redirects=False), "what ever")


def test_health_and_config(client):
    assert client.get("/health").json() == {"status": "ok", "env": "dev"}
    assert client.get("/config").json() == {"public_base_url": "http://testserver"}


def test_malformed_bodies_answer_with_action_result(client, auth_header):
    alice = auth_header("alice")

    res = client.post("/links", json={"target_url": None}, headers=alice)
    assert res.status_code == 422
    assert res.json()["kind"] == "validation"
    assert set(res.json()["error"]) == {"target_url"}

    res = client.put("/links/whatever", json={"target_url": "https://example.com", "code": None}, headers=alice)
    assert res.status_code == 404
    assert res.json()["kind"] == "not_found"

    res = client.post("/links", json=["not", "an", "object"], headers=alice)
    assert res.status_code == 422
    body = res.json()
    assert body["success"] is False
    assert body["kind"] == "validation"
    assert set(body["error"]) == {"body"}


def test_malformed_body_without_identity_is_unauthorized(client):
    res = client.post("/links", json={"target_url": 5})
    assert res.status_code == 401
    assert res.json()["kind"] == "unauthorized"

    res = client.post("/links", json=["x"])
    assert res.status_code == 401
    assert res.json()["kind"] == "unauthorized"


def test_edit_with_null_code_on_own_link(client, auth_header):
    alice = auth_header("alice")
    created = client.post("/links", json={"target_url": "https://example.com/a", "code": "nullable"}, headers=alice)
    link_id = created.json()["data"]["id"]

    res = client.put(f"/links/{link_id}", json={"target_url": "https://example.com/a", "code": None}, headers=alice)
    assert res.status_code == 422
    assert res.json()["error"] == {"code": "Short code is required"}


def test_scheme_without_slashes_is_never_stored(client, auth_header):
    res = client.post("/links", json={"target_url": "http:example.com", "code": "rel"}, headers=auth_header("alice"))
    assert res.status_code == 422
    assert res.json()["error"] == {"target_url": "Please enter a valid URL"}
    assert_not_found_redirect(client.get("/l/rel", follow_redirects=False), "rel")


def test_redirect_storage_fault_is_generic_500(client, monkeypatch):
    def broken_lookup(*args):
        raise OperationalError("SELECT", {}, Exception("connection reset"))

    monkeypatch.setattr(crud, "get_link_by_code", broken_lookup)
    res = client.get("/l/abc", follow_redirects=False)
    assert res.status_code == 500
    assert "connection reset" not in res.text
