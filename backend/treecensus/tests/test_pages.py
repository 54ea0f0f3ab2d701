import uuid
from datetime import datetime

from treecensus import models, presentation, schemas

from .conftest import client, create_tree, unique_species


def _approve(client, tree_id):
    assert client.patch(f"/api/trees/{tree_id}/review", json={"status": "approved"}).status_code == 200


def test_home_page(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert "text/html" in resp.headers["content-type"]
    assert "우리 동네 나무 세기" in resp.text


def test_add_tree_form_lists_species(client):
    resp = client.get("/add-tree")
    assert resp.status_code == 200
    assert '<option value="은행나무">' in resp.text


def test_add_tree_form_submission(client):
    species = unique_species()
    resp = client.post(
        "/add-tree",
        data={
            "species": species,
            "condition": "fair",
            "latitude": "37.55",
            "longitude": "126.97",
            "heightFloors": "",
            "damaged": "true",
        },
        follow_redirects=False,
    )
    assert resp.status_code == 303
    assert resp.headers["location"] == "/?notice=submitted"

    trees = client.get("/api/trees", params={"species": species}).json()
    assert len(trees) == 1
    assert trees[0]["status"] == "pending"
    assert trees[0]["damaged"] is True
    assert trees[0]["photoUrl"] is None

    notice = client.get(resp.headers["location"])
    assert presentation.NOTICES["submitted"] in notice.text


def test_add_tree_form_shows_errors(client):
    species = unique_species()
    resp = client.post(
        "/add-tree",
        data={"species": species, "condition": "fair", "latitude": "95", "longitude": "126.97"},
    )
    assert resp.status_code == 400
    assert 'class="error"' in resp.text
    assert f'value="{species}"' in resp.text
    assert client.get("/api/trees", params={"species": species}).json() == []


def test_tree_list_page_filters(client):
    species = unique_species()
    create_tree(client, species=species, notes="corner of the market")
    resp = client.get("/trees", params={"species": species})
    assert resp.status_code == 200
    assert species in resp.text
    assert "corner of the market" in resp.text


def test_map_shows_only_approved_trees(client):
    approved_species = unique_species()
    pending_species = unique_species()
    tree = create_tree(client, species=approved_species, condition="poor")
    create_tree(client, species=pending_species)
    _approve(client, tree["id"])

    resp = client.get("/map")
    assert resp.status_code == 200
    assert approved_species in resp.text
    assert pending_species not in resp.text
    assert "#ef4444" in resp.text


def test_statistics_page(client):
    species = unique_species()
    tree = create_tree(client, species=species)
    _approve(client, tree["id"])
    resp = client.get("/statistics")
    assert resp.status_code == 200
    assert "%" in resp.text


def test_login_form_and_my_page(client):
    email = f"form-{uuid.uuid4().hex[:8]}@example.com"
    resp = client.post("/login", data={"email": email, "password": "pw"}, follow_redirects=False)
    assert resp.status_code == 303
    assert resp.headers["location"] == "/my-page?notice=signed-in"
    assert "token=" in resp.headers["set-cookie"]

    page = client.get("/my-page")
    assert page.status_code == 200
    assert email in page.text


def test_login_form_rejects_bad_email(client):
    resp = client.post("/login", data={"email": "nope", "password": "pw"})
    assert resp.status_code == 400
    assert 'action="/login"' in resp.text


def test_my_page_in_open_mode_uses_placeholder(client):
    resp = client.get("/my-page")
    assert resp.status_code == 200
    assert "temp_user" in resp.text


def test_my_page_redirects_when_roles_enforced(client, monkeypatch):
    monkeypatch.setenv("ENFORCE_ROLES", "1")
    resp = client.get("/my-page", follow_redirects=False)
    assert resp.status_code == 303
    assert resp.headers["location"] == "/login"


def test_review_page_flow(client):
    tree = create_tree(client, species=unique_species())
    page = client.get("/review")
    assert page.status_code == 200
    assert f'action="/review/{tree["id"]}"' in page.text

    resp = client.post(
        f"/review/{tree['id']}", data={"status": "approved", "notes": ""}, follow_redirects=False
    )
    assert resp.status_code == 303
    reviewed = client.get(f"/api/trees/{tree['id']}").json()
    assert reviewed["status"] == "approved"
    assert reviewed["reviewNotes"] is None

    again = client.post(f"/review/{tree['id']}", data={"status": "rejected"})
    assert again.status_code == 409


def _tree(**overrides):
    fields = dict(
        id=1,
        species="벚나무",
        condition="fair",
        latitude=37.0,
        longitude=127.0,
        contributor_id="someone",
        status="approved",
        created_at=datetime(2024, 4, 5, 9, 30),
    )
    fields.update(overrides)
    return models.Tree(**fields)


def test_tree_marker():
    marker = presentation.tree_marker(_tree(height_floors=3, circumference_manual=82.5))
    assert marker["color"] == "#f59e0b"
    assert marker["lat"] == 37.0 and marker["lng"] == 127.0
    assert marker["title"] == "벚나무 나무"
    assert marker["height"] == "3층 높이"
    assert marker["circumference"] == "82.5 cm"
    assert marker["created"] == "2024-04-05"

    assert presentation.condition_color("excellent") == "#10b981"
    assert presentation.condition_color("poor") == "#ef4444"


def test_measurement_text_prefers_manual_values():
    tree = _tree(height_floors=2, height_manual=6.5, circumference_hands=3)
    assert presentation.height_text(tree) == "6.5 m"
    assert presentation.circumference_text(tree) == "3 뼘"
    assert presentation.height_text(_tree()) is None


def test_map_center():
    assert presentation.map_center([]) == presentation.DEFAULT_MAP_CENTER
    trees = [_tree(latitude=10.0, longitude=20.0), _tree(latitude=20.0, longitude=40.0)]
    assert presentation.map_center(trees) == (15.0, 30.0)


def test_species_bars_and_condition_rows():
    stats = schemas.TreeStats(
        total_trees=10,
        species=3,
        contributors=2,
        healthy_percentage=50,
        species_distribution={"a": 1, "b": 4, "c": 3},
        condition_distribution={"excellent": 4, "poor": 4},
        recent_trees=[],
    )
    bars = presentation.species_bars(stats, limit=2)
    assert [(b["species"], b["percentage"]) for b in bars] == [("b", 40.0), ("c", 30.0)]

    rows = {row["condition"]: row for row in presentation.condition_rows(stats)}
    assert rows["excellent"]["percentage"] == 50
    assert rows["fair"]["count"] == 0


def test_form_errors_keeps_first_message_per_field():
    errors = [
        {"loc": ("body", "latitude"), "msg": "too big"},
        {"loc": ("latitude",), "msg": "second"},
        {"loc": (), "msg": "whole form"},
    ]
    assert presentation.form_errors(errors) == {"latitude": "too big", "__all__": "whole form"}
