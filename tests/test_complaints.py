import pytest

from conftest import API, auth


@pytest.fixture
def order_id(client, buyer, seller, make_product) -> str:
    product = make_product(seller, quantity=3)
    resp = client.post(
        f"{API}/orders/checkout/confirm",
        json={"source": "buy_now", "items": [{"productId": str(product.id), "quantity": 1}]},
        headers=auth(buyer),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["orders"][0]["_id"]


@pytest.fixture
def complaint(client, buyer, order_id) -> dict:
    resp = client.post(
        f"{API}/complaints",
        json={"order_id": order_id, "reason": "late", "content": "Still waiting"},
        headers=auth(buyer),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_create_complaint_takes_seller_from_order(complaint, seller):
    assert complaint["seller_id"] == str(seller.id)
    assert complaint["status"] == "open"
    assert [h["action"] for h in complaint["history"]] == ["created"]


def test_one_open_complaint_per_order(client, buyer, order_id, complaint):
    resp = client.post(
        f"{API}/complaints",
        json={"order_id": order_id, "reason": "fraud", "content": "Again"},
        headers=auth(buyer),
    )

    assert resp.status_code == 409


def test_only_order_buyer_can_complain(client, make_user, order_id):
    stranger = make_user("buyer")

    resp = client.post(
        f"{API}/complaints",
        json={"order_id": order_id, "reason": "question", "content": "Hi"},
        headers=auth(stranger),
    )

    assert resp.status_code == 403


def test_visibility(client, buyer, seller, admin, make_user, complaint):
    url = f"{API}/complaints/{complaint['id']}"

    for user in (buyer, seller, admin):
        assert client.get(url, headers=auth(user)).status_code == 200
    assert client.get(url, headers=auth(make_user("buyer"))).status_code == 403


def test_list_mine_by_role(client, buyer, seller, complaint):
    filed = client.get(f"{API}/complaints/mine", headers=auth(buyer)).json()
    received = client.get(f"{API}/complaints/mine?role=seller", headers=auth(seller)).json()

    assert [c["id"] for c in filed] == [complaint["id"]]
    assert [c["id"] for c in received] == [complaint["id"]]


def test_seller_agrees(client, seller, complaint):
    resp = client.post(
        f"{API}/complaints/{complaint['id']}/respond",
        json={"action": "agreed", "note": "Refunding"},
        headers=auth(seller),
    )

    assert resp.status_code == 200
    assert resp.json()["status"] == "agreed"
    assert resp.json()["history"][-1]["note"] == "Refunding"


def test_rejected_complaint_escalates_to_admin(client, buyer, seller, admin, complaint):
    url = f"{API}/complaints/{complaint['id']}"
    client.post(f"{url}/respond", json={"action": "rejected"}, headers=auth(seller))

    resp = client.post(f"{url}/escalate", json={"note": "Seller refuses"}, headers=auth(buyer))
    assert resp.json()["status"] == "sent_to_admin"

    escalated = client.get(f"{API}/complaints/escalated", headers=auth(admin)).json()
    assert [c["id"] for c in escalated] == [complaint["id"]]

    resp = client.post(f"{url}/resolve", json={"resolution": "approved"}, headers=auth(admin))
    body = resp.json()
    assert body["status"] == "agreed"
    assert body["resolution"] == "approved"
    assert body["resolved_by"] == str(admin.id)

    again = client.post(f"{url}/resolve", json={"resolution": "rejected"}, headers=auth(admin))
    assert again.status_code == 400
    assert again.json()["detail"] == "Complaint already resolved"


def test_agreed_complaint_is_terminal(client, buyer, seller, complaint):
    url = f"{API}/complaints/{complaint['id']}"
    client.post(f"{url}/respond", json={"action": "agreed"}, headers=auth(seller))

    resp = client.post(f"{url}/escalate", headers=auth(buyer))

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid complaint transition: agreed -> sent_to_admin"


def test_only_complaint_seller_responds(client, make_user, complaint):
    other = make_user("seller")

    resp = client.post(
        f"{API}/complaints/{complaint['id']}/respond",
        json={"action": "agreed"},
        headers=auth(other),
    )

    assert resp.status_code == 403


def test_seller_cannot_escalate(client, seller, complaint):
    resp = client.post(f"{API}/complaints/{complaint['id']}/escalate", headers=auth(seller))

    assert resp.status_code == 403


def test_new_complaint_allowed_after_resolution(client, buyer, seller, order_id, complaint):
    client.post(
        f"{API}/complaints/{complaint['id']}/respond",
        json={"action": "agreed"},
        headers=auth(seller),
    )

    resp = client.post(
        f"{API}/complaints",
        json={"order_id": order_id, "reason": "return", "content": "Broken on arrival"},
        headers=auth(buyer),
    )

    assert resp.status_code == 201
