from .conftest import client, create_tree, make_user_with_role, unique_species


def test_approve_sets_review_fields_only(client):
    tree = create_tree(client, species=unique_species(), notes="by the school gate")
    resp = client.patch(
        f"/api/trees/{tree['id']}/review",
        json={"status": "approved", "notes": "looks right"},
    )
    assert resp.status_code == 200
    reviewed = resp.json()
    assert reviewed["status"] == "approved"
    assert reviewed["reviewedBy"] == "temp_reviewer"
    assert reviewed["reviewedAt"] is not None
    assert reviewed["reviewNotes"] == "looks right"

    untouched = {k: v for k, v in tree.items() if k not in ("status", "reviewedBy", "reviewedAt", "reviewNotes")}
    assert {k: reviewed[k] for k in untouched} == untouched


def test_reject_removes_from_pending_queue(client):
    tree = create_tree(client, species=unique_species())
    resp = client.patch(f"/api/trees/{tree['id']}/review", json={"status": "rejected"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "rejected"
    assert resp.json()["reviewNotes"] is None

    pending_ids = [t["id"] for t in client.get("/api/trees/pending").json()]
    assert tree["id"] not in pending_ids
    rejected = client.get("/api/trees", params={"species": tree["species"], "status": "rejected"})
    assert [t["id"] for t in rejected.json()] == [tree["id"]]


def test_invalid_review_status(client):
    tree = create_tree(client, species=unique_species())
    for status in ("pending", "deleted", ""):
        resp = client.patch(f"/api/trees/{tree['id']}/review", json={"status": status})
        assert resp.status_code == 400
    assert client.get(f"/api/trees/{tree['id']}").json()["status"] == "pending"


def test_review_unknown_tree(client):
    resp = client.patch("/api/trees/99999999/review", json={"status": "approved"})
    assert resp.status_code == 404


def test_second_review_conflicts(client):
    tree = create_tree(client, species=unique_species())
    first = client.patch(f"/api/trees/{tree['id']}/review", json={"status": "approved"})
    assert first.status_code == 200
    second = client.patch(f"/api/trees/{tree['id']}/review", json={"status": "rejected"})
    assert second.status_code == 409
    assert client.get(f"/api/trees/{tree['id']}").json()["status"] == "approved"


def test_signed_in_reviewer_is_recorded(client):
    tree = create_tree(client, species=unique_species())
    supervisor = make_user_with_role(client, "supervisor")
    resp = client.patch(f"/api/trees/{tree['id']}/review", json={"status": "approved"})
    assert resp.status_code == 200
    assert resp.json()["reviewedBy"] == supervisor
