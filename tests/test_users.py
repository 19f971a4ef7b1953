import uuid

from conftest import API, auth
from marketplace.models.user import User


def test_first_request_provisions_buyer(client, session):
    ghost = User(id=uuid.uuid4(), email="new.person@gmail.com", name="", role="buyer")

    resp = client.get(f"{API}/users/me", headers=auth(ghost))

    assert resp.status_code == 200
    assert resp.json()["role"] == "buyer"
    assert resp.json()["name"] == "new.person"
    assert session.get(User, ghost.id) is not None


def test_invalid_token(client):
    resp = client.get(f"{API}/users/me", headers={"Authorization": "Bearer nope"})

    assert resp.status_code == 401


def test_update_name_and_email_cross_check(client, buyer):
    resp = client.patch(f"{API}/users/me", json={"name": "  Ana "}, headers=auth(buyer))
    assert resp.json()["name"] == "Ana"

    resp = client.patch(
        f"{API}/users/me", json={"email": "someone@else.com"}, headers=auth(buyer)
    )
    assert resp.status_code == 400


def test_admin_promotes_buyer_to_seller(client, admin, buyer):
    resp = client.patch(
        f"{API}/users/{buyer.id}/role", json={"role": "seller"}, headers=auth(admin)
    )

    assert resp.status_code == 200
    assert resp.json()["role"] == "seller"
    sellers = client.get(f"{API}/users?role=seller", headers=auth(admin)).json()
    assert [u["id"] for u in sellers] == [str(buyer.id)]


def test_admin_cannot_demote_self(client, admin):
    resp = client.patch(
        f"{API}/users/{admin.id}/role", json={"role": "buyer"}, headers=auth(admin)
    )

    assert resp.status_code == 400


def test_non_admin_cannot_list_users(client, buyer):
    assert client.get(f"{API}/users", headers=auth(buyer)).status_code == 403
