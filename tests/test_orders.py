import pytest

from conftest import API, auth

CONFIRM = f"{API}/orders/checkout/confirm"


@pytest.fixture
def order_id(client, buyer, seller, make_product) -> str:
    product = make_product(seller, price=9.99, quantity=4)
    resp = client.post(
        CONFIRM,
        json={"source": "buy_now", "items": [{"productId": str(product.id), "quantity": 2}]},
        headers=auth(buyer),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["orders"][0]["_id"]


def set_status(client, user, order_id, status, note=None):
    payload = {"status": status}
    if note:
        payload["note"] = note
    return client.patch(f"{API}/orders/{order_id}/status", json=payload, headers=auth(user))


def test_buyer_and_seller_see_order(client, buyer, seller, order_id):
    for user in (buyer, seller):
        resp = client.get(f"{API}/orders/{order_id}", headers=auth(user))
        assert resp.status_code == 200

    body = resp.json()
    assert body["total_amount"] == 19.98
    assert body["items"][0]["title"] == "Widget"
    assert body["items"][0]["line_total"] == 19.98


def test_stranger_cannot_see_order(client, make_user, order_id):
    stranger = make_user("buyer")

    resp = client.get(f"{API}/orders/{order_id}", headers=auth(stranger))

    assert resp.status_code == 403


def test_admin_can_see_any_order(client, admin, order_id):
    assert client.get(f"{API}/orders/{order_id}", headers=auth(admin)).status_code == 200
    listed = client.get(f"{API}/orders", headers=auth(admin)).json()
    assert [o["id"] for o in listed] == [order_id]


def test_list_my_orders_by_role(client, buyer, seller, order_id):
    bought = client.get(f"{API}/orders/me?role=buyer", headers=auth(buyer)).json()
    sold = client.get(f"{API}/orders/me?role=seller", headers=auth(seller)).json()
    seller_purchases = client.get(f"{API}/orders/me?role=buyer", headers=auth(seller)).json()

    assert [o["id"] for o in bought] == [order_id]
    assert [o["id"] for o in sold] == [order_id]
    assert seller_purchases == []


def test_seller_walks_order_through_lifecycle(client, buyer, seller, order_id):
    for status in ("processing", "shipped", "delivered"):
        resp = set_status(client, seller, order_id, status)
        assert resp.status_code == 200
        assert resp.json()["status"] == status

    history = client.get(f"{API}/orders/{order_id}/history", headers=auth(buyer)).json()
    assert [h["status"] for h in history] == ["created", "paid", "processing", "shipped", "delivered"]


def test_history_keeps_notes(client, seller, order_id):
    set_status(client, seller, order_id, "cancelled", note="Buyer asked to cancel")

    history = client.get(f"{API}/orders/{order_id}/history", headers=auth(seller)).json()

    assert history[-1]["status"] == "cancelled"
    assert history[-1]["note"] == "Buyer asked to cancel"


@pytest.mark.parametrize(
    "steps, illegal",
    [
        ([], "shipped"),
        (["cancelled"], "processing"),
        (["processing", "shipped"], "cancelled"),
        (["processing", "shipped", "returned"], "delivered"),
    ],
)
def test_illegal_transitions_are_rejected(client, seller, order_id, steps, illegal):
    for status in steps:
        assert set_status(client, seller, order_id, status).status_code == 200

    resp = set_status(client, seller, order_id, illegal)

    assert resp.status_code == 400
    assert resp.json()["detail"].startswith("Invalid status transition:")


def test_only_order_seller_changes_status(client, make_user, order_id):
    other_seller = make_user("seller")

    resp = set_status(client, other_seller, order_id, "processing")

    assert resp.status_code == 403


def test_buyer_cannot_change_status(client, buyer, order_id):
    resp = set_status(client, buyer, order_id, "processing")

    assert resp.status_code == 403
    assert resp.json()["detail"] == "Seller access required"


def test_seller_sets_tracking(client, buyer, seller, order_id):
    resp = client.patch(
        f"{API}/orders/{order_id}/tracking",
        json={"tracking_number": " TRK-1 ", "estimated_delivery": "2030-01-05T10:00:00Z"},
        headers=auth(seller),
    )

    assert resp.status_code == 200
    assert resp.json()["tracking_number"] == "TRK-1"
    assert resp.json()["estimated_delivery"].startswith("2030-01-05")


def test_buyer_updates_shipping_address_partially(client, buyer, order_id):
    client.patch(
        f"{API}/orders/{order_id}/shipping-address",
        json={"street": "1 Main St", "city": "Springfield", "country": "US"},
        headers=auth(buyer),
    )
    resp = client.patch(
        f"{API}/orders/{order_id}/shipping-address",
        json={"city": "Shelbyville"},
        headers=auth(buyer),
    )

    assert resp.status_code == 200
    assert resp.json()["shipping_address"] == {
        "street": "1 Main St",
        "city": "Shelbyville",
        "country": "US",
    }


def test_shipping_address_locked_after_shipping(client, buyer, seller, order_id):
    set_status(client, seller, order_id, "processing")
    set_status(client, seller, order_id, "shipped")

    resp = client.patch(
        f"{API}/orders/{order_id}/shipping-address",
        json={"city": "Elsewhere"},
        headers=auth(buyer),
    )

    assert resp.status_code == 400


def test_seller_cannot_change_shipping_address(client, seller, order_id):
    resp = client.patch(
        f"{API}/orders/{order_id}/shipping-address",
        json={"city": "Elsewhere"},
        headers=auth(seller),
    )

    assert resp.status_code == 403


def test_unknown_order(client, buyer):
    resp = client.get(f"{API}/orders/00000000-0000-0000-0000-000000000000", headers=auth(buyer))

    assert resp.status_code == 404
