from conftest import API, auth

SHIRT = {
    "title": "  Linen shirt ",
    "price": 25,
    "quantity": 99,
    "variants": [
        {"name": "Size", "options": [{"value": "S"}, {"value": "M"}]},
    ],
    "variant_combinations": [
        {"selections": [{"name": "Size", "value": "S"}], "quantity": 2},
        {"selections": [{"name": "Size", "value": "M"}], "quantity": 3, "price": 27},
        {"selections": [{"name": "Size", "value": "M"}], "quantity": 1},
    ],
}


def test_create_product_sums_combination_stock(client, seller):
    resp = client.post(f"{API}/products", json=SHIRT, headers=auth(seller))

    assert resp.status_code == 201
    body = resp.json()
    assert body["title"] == "Linen shirt"
    assert body["quantity"] == 6
    assert body["stock"] == 6
    assert {c["key"]: c["quantity"] for c in body["variant_combinations"]} == {
        "Size:S": 2,
        "Size:M": 4,
    }


def test_buyer_cannot_create_product(client, buyer):
    resp = client.post(f"{API}/products", json=SHIRT, headers=auth(buyer))

    assert resp.status_code == 403


def test_update_flat_quantity(client, seller, make_product):
    product = make_product(seller, quantity=1)

    resp = client.patch(
        f"{API}/products/{product.id}",
        json={"quantity": 8, "price": 11.5},
        headers=auth(seller),
    )

    assert resp.status_code == 200
    assert resp.json()["stock"] == 8
    assert resp.json()["price"] == 11.5


def test_only_owner_updates(client, make_user, seller, make_product):
    product = make_product(seller)
    other = make_user("seller")

    resp = client.patch(f"{API}/products/{product.id}", json={"price": 1}, headers=auth(other))

    assert resp.status_code == 403


def test_soft_delete_hides_listing(client, seller, make_product):
    product = make_product(seller)

    resp = client.delete(f"{API}/products/{product.id}", headers=auth(seller))
    assert resp.status_code == 204

    assert client.get(f"{API}/products/{product.id}").status_code == 404
    assert client.get(f"{API}/products").json() == []
    mine = client.get(f"{API}/products/seller/mine", headers=auth(seller)).json()
    assert [p["is_active"] for p in mine] == [False]


def test_search_by_title(client, seller, make_product):
    make_product(seller, title="Blue mug")
    make_product(seller, title="Red plate")

    resp = client.get(f"{API}/products?q=mug")

    assert [p["title"] for p in resp.json()] == ["Blue mug"]


def test_combinations_without_variant_groups_rejected(client, seller):
    payload = {**SHIRT, "variants": []}

    resp = client.post(f"{API}/products", json=payload, headers=auth(seller))

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Variant combinations require variant groups"
    assert client.get(f"{API}/products").json() == []


def test_combination_with_unknown_option_rejected(client, seller):
    payload = {
        **SHIRT,
        "variant_combinations": [
            {"selections": [{"name": "Size", "value": "XL"}], "quantity": 2},
        ],
    }

    resp = client.post(f"{API}/products", json=payload, headers=auth(seller))

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Combination Size:XL does not match the product variants"


def test_update_dropping_groups_keeps_combinations_consistent(client, session, seller, shirt):
    resp = client.patch(
        f"{API}/products/{shirt.id}",
        json={"variants": []},
        headers=auth(seller),
    )

    assert resp.status_code == 400
    session.refresh(shirt)
    assert [g["name"] for g in shirt.variants] == ["Size"]


def test_product_in_category(client, seller, admin):
    category = client.post(
        f"{API}/categories", json={"name": "Home"}, headers=auth(admin)
    ).json()
    payload = {"title": "Lamp", "price": 30, "quantity": 2, "category_id": category["id"]}

    created = client.post(f"{API}/products", json=payload, headers=auth(seller))
    client.post(f"{API}/products", json={"title": "Pen", "price": 1, "quantity": 5}, headers=auth(seller))

    assert created.status_code == 201
    listed = client.get(f"{API}/products", params={"category_id": category["id"]}).json()
    assert [p["title"] for p in listed] == ["Lamp"]


def test_product_with_unknown_category(client, seller):
    payload = {
        "title": "Lamp",
        "price": 30,
        "quantity": 2,
        "category_id": "00000000-0000-0000-0000-000000000000",
    }

    resp = client.post(f"{API}/products", json=payload, headers=auth(seller))

    assert resp.status_code == 404
    assert resp.json()["detail"] == "Category not found"
