"""
Lookup table routes: categories, brands, units and paper sizes.
"""

import pytest


@pytest.mark.parametrize("slug,payload", [
    ("categories", {"name": "Dresses", "description": "Day and evening"}),
    ("brands", {"name": "Atelier Nord"}),
    ("units", {"name": "Pair", "short_name": "pr"}),
    ("paper-sizes", {"name": "Label 40x30", "width_mm": 40, "height_mm": 30}),
])
def test_crud_round(client, admin_headers, slug, payload):
    resp = client.post(f"/api/{slug}", json=payload, headers=admin_headers)
    assert resp.status_code == 201
    entry_id = resp.get_json()["id"]

    resp = client.patch(f"/api/{slug}/{entry_id}", json={"name": "Renamed"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.get_json()["name"] == "Renamed"

    listed = client.get(f"/api/{slug}", headers=admin_headers).get_json()
    assert [e["id"] for e in listed] == [entry_id]

    assert client.delete(f"/api/{slug}/{entry_id}", headers=admin_headers).status_code == 204
    assert client.get(f"/api/{slug}/{entry_id}", headers=admin_headers).status_code == 404


def test_duplicate_category_is_409(client, admin_headers):
    client.post("/api/categories", json={"name": "Shoes"}, headers=admin_headers)
    resp = client.post("/api/categories", json={"name": "Shoes"}, headers=admin_headers)
    assert resp.status_code == 409


def test_paper_size_dimensions_must_be_positive(client, admin_headers):
    resp = client.post(
        "/api/paper-sizes", json={"name": "Broken", "width_mm": 0, "height_mm": 30}, headers=admin_headers,
    )
    assert resp.status_code == 400


def test_unit_requires_short_name(client, admin_headers):
    assert client.post("/api/units", json={"name": "Set"}, headers=admin_headers).status_code == 400


def test_cashier_reads_but_cannot_write(client, cashier_headers):
    assert client.get("/api/categories", headers=cashier_headers).status_code == 200
    assert client.post("/api/categories", json={"name": "Hats"}, headers=cashier_headers).status_code == 403
