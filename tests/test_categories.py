import pytest

from conftest import API, auth
from marketplace.services.category_service import normalize_name, normalize_slug

CATEGORIES = f"{API}/categories"


def create(client, admin, **payload) -> dict:
    resp = client.post(CATEGORIES, json=payload, headers=auth(admin))
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_normalizers():
    assert normalize_name("  Home   &  Garden ") == "Home & Garden"
    assert normalize_slug("  Home & Garden ") == "home-garden"
    assert normalize_slug("--") == ""


def test_create_derives_slug(client, admin):
    category = create(client, admin, name=" Home  & Garden ")

    assert category["name"] == "Home & Garden"
    assert category["slug"] == "home-garden"


def test_only_admin_manages_categories(client, seller):
    resp = client.post(CATEGORIES, json={"name": "Toys"}, headers=auth(seller))

    assert resp.status_code == 403


@pytest.mark.parametrize(
    "payload, detail",
    [
        ({"name": "TOYS", "slug": "toy-box"}, "Category name already exists"),
        ({"name": "Games", "slug": "TOYS"}, "Category slug already exists"),
    ],
)
def test_duplicates_conflict(client, admin, payload, detail):
    create(client, admin, name="Toys")

    resp = client.post(CATEGORIES, json=payload, headers=auth(admin))

    assert resp.status_code == 409
    assert resp.json()["detail"] == detail


def test_blank_name_rejected(client, admin):
    resp = client.post(CATEGORIES, json={"name": "   "}, headers=auth(admin))

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Category name is required"


def test_public_list_sorted_by_name(client, admin):
    create(client, admin, name="Toys")
    create(client, admin, name="Books")

    resp = client.get(CATEGORIES)

    assert [c["name"] for c in resp.json()] == ["Books", "Toys"]


def test_admin_search_paginates(client, admin):
    for name in ("Books", "Board games", "Toys"):
        create(client, admin, name=name)

    resp = client.get(
        f"{CATEGORIES}/admin", params={"search": "bo", "limit": 1}, headers=auth(admin)
    )

    body = resp.json()
    assert len(body["data"]) == 1
    assert body["pagination"] == {"page": 1, "limit": 1, "total": 2, "pages": 2}


def test_update_rename(client, admin):
    category = create(client, admin, name="Toys")

    resp = client.patch(
        f"{CATEGORIES}/{category['id']}",
        json={"name": "Kids toys", "slug": "kids toys"},
        headers=auth(admin),
    )

    assert resp.status_code == 200
    assert resp.json()["slug"] == "kids-toys"
    assert client.get(f"{CATEGORIES}/{category['id']}").json()["name"] == "Kids toys"


def test_update_requires_fields(client, admin):
    category = create(client, admin, name="Toys")

    resp = client.patch(f"{CATEGORIES}/{category['id']}", json={}, headers=auth(admin))

    assert resp.status_code == 400
    assert resp.json()["detail"] == "No fields to update"


def test_delete_refused_while_in_use(client, admin, seller):
    category = create(client, admin, name="Toys")
    client.post(
        f"{API}/products",
        json={"title": "Kite", "price": 9, "quantity": 1, "category_id": category["id"]},
        headers=auth(seller),
    )

    resp = client.delete(f"{CATEGORIES}/{category['id']}", headers=auth(admin))

    assert resp.status_code == 409
    assert resp.json()["detail"] == "Cannot delete category because 1 product(s) still use it"


def test_delete_unused(client, admin):
    category = create(client, admin, name="Toys")

    resp = client.delete(f"{CATEGORIES}/{category['id']}", headers=auth(admin))

    assert resp.status_code == 204
    assert client.get(f"{CATEGORIES}/{category['id']}").status_code == 404
