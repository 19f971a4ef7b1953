import pytest

from conftest import API, auth
from marketplace.services.review_service import review_type_for

REVIEWS = f"{API}/reviews"


def checkout(client, buyer, product, simulation="success") -> str:
    resp = client.post(
        f"{API}/orders/checkout/confirm",
        json={
            "source": "buy_now",
            "items": [{"productId": str(product.id), "quantity": 1}],
            "paymentSimulation": simulation,
        },
        headers=auth(buyer),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["orders"][0]["_id"]


def review_payload(order_id, product, rating=5, **kwargs) -> dict:
    payload = {
        "order_id": order_id,
        "product_id": str(product.id),
        "rating": rating,
        "rating1": rating,
        "rating2": 4,
        "rating3": 3,
        "comment": " Great ",
    }
    payload.update(kwargs)
    return payload


@pytest.fixture
def mug(seller, make_product):
    return make_product(seller, title="Mug", quantity=10)


@pytest.fixture
def review(client, buyer, mug) -> dict:
    order_id = checkout(client, buyer, mug)
    resp = client.post(REVIEWS, json=review_payload(order_id, mug), headers=auth(buyer))
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.parametrize("rating, expected", [(5, "positive"), (4, "positive"), (3, "neutral"), (1, "negative")])
def test_review_type_for(rating, expected):
    assert review_type_for(rating) == expected


def test_create_review_updates_ratings(client, session, review, mug, seller):
    assert review["type"] == "positive"
    assert review["comment"] == "Great"
    assert review["seller_id"] == str(seller.id)

    session.refresh(mug)
    session.refresh(seller)
    assert mug.average_rating == 5
    assert mug.rating_count == 1
    assert seller.reputation_score == 5


def test_one_review_per_order_and_product(client, buyer, mug, review):
    resp = client.post(
        REVIEWS, json=review_payload(review["order_id"], mug), headers=auth(buyer)
    )

    assert resp.status_code == 409
    assert resp.json()["detail"] == "Review already exists for this product/order by you"


def test_only_the_buyer_reviews(client, buyer, make_user, mug):
    order_id = checkout(client, buyer, mug)
    stranger = make_user("buyer")

    resp = client.post(REVIEWS, json=review_payload(order_id, mug), headers=auth(stranger))

    assert resp.status_code == 403


def test_product_must_be_in_order(client, buyer, seller, mug, make_product):
    order_id = checkout(client, buyer, mug)
    other = make_product(seller, title="Plate")

    resp = client.post(REVIEWS, json=review_payload(order_id, other), headers=auth(buyer))

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Product not found in the given order"


def test_unpaid_order_cannot_be_reviewed(client, buyer, mug):
    order_id = checkout(client, buyer, mug, simulation="failed")

    resp = client.post(REVIEWS, json=review_payload(order_id, mug), headers=auth(buyer))

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Cannot review a failed order"


def test_rating_out_of_range(client, buyer, mug):
    order_id = checkout(client, buyer, mug)

    resp = client.post(REVIEWS, json=review_payload(order_id, mug, rating=6), headers=auth(buyer))

    assert resp.status_code == 422


def test_seller_listing_summary(client, make_user, seller, mug, review):
    other = make_user("buyer")
    order_id = checkout(client, other, mug)
    client.post(REVIEWS, json=review_payload(order_id, mug, rating=2), headers=auth(other))

    body = client.get(f"{REVIEWS}/seller/{seller.id}").json()

    assert body["pagination"]["total"] == 2
    assert body["summary"] == {
        "average_rating": 3.5,
        "average_rating1": 3.5,
        "average_rating2": 4.0,
        "average_rating3": 3.0,
        "rating_count": 2,
        "positive_count": 1,
        "positive_rate": 50.0,
    }


def test_product_listing(client, mug, review):
    body = client.get(f"{REVIEWS}/product/{mug.id}").json()

    assert [r["id"] for r in body["data"]] == [review["id"]]
    assert body["summary"]["rating_count"] == 1
    assert body["summary"]["positive_rate"] is None


def test_flag_once_per_user(client, make_user, review):
    reporter = make_user("buyer")
    url = f"{REVIEWS}/{review['id']}/flag"

    first = client.post(url, json={"reason": "spam"}, headers=auth(reporter))
    second = client.post(url, json={"reason": "spam"}, headers=auth(reporter))

    assert first.json() == {"id": review["id"], "flagged": True, "flag_count": 1}
    assert second.status_code == 400
    assert second.json()["detail"] == "You already flagged this review"


def test_seller_response_marks_edits(client, seller, review):
    url = f"{REVIEWS}/{review['id']}/response"

    first = client.post(url, json={"response": "Thanks!"}, headers=auth(seller))
    second = client.post(url, json={"response": "Thanks again"}, headers=auth(seller))

    assert first.json()["seller_response_edited"] is False
    assert second.json()["seller_response"] == "Thanks again"
    assert second.json()["seller_response_edited"] is True


def test_other_seller_cannot_respond(client, make_user, review):
    other = make_user("seller")

    resp = client.post(
        f"{REVIEWS}/{review['id']}/response", json={"response": "Hi"}, headers=auth(other)
    )

    assert resp.status_code == 403


def test_admin_soft_delete_recomputes_ratings(client, session, admin, mug, review):
    resp = client.delete(f"{REVIEWS}/{review['id']}", headers=auth(admin))

    assert resp.status_code == 200
    assert resp.json()["deleted_by"] == str(admin.id)
    assert client.get(f"{REVIEWS}/{review['id']}").status_code == 404
    assert client.get(f"{REVIEWS}/product/{mug.id}").json()["data"] == []

    session.refresh(mug)
    assert mug.rating_count == 0
    assert mug.average_rating == 0


def test_admin_filters(client, admin, make_user, review):
    reporter = make_user("buyer")
    client.post(f"{REVIEWS}/{review['id']}/flag", json={"reason": "rude"}, headers=auth(reporter))

    flagged = client.get(f"{REVIEWS}/admin/all?filter=flagged", headers=auth(admin)).json()
    assert [(r["id"], r["flag_count"]) for r in flagged["data"]] == [(review["id"], 1)]

    client.delete(f"{REVIEWS}/{review['id']}", headers=auth(admin))

    flagged = client.get(f"{REVIEWS}/admin/all?filter=flagged", headers=auth(admin)).json()
    deleted = client.get(f"{REVIEWS}/admin/all?filter=deleted", headers=auth(admin)).json()
    assert flagged["data"] == []
    assert [r["id"] for r in deleted["data"]] == [review["id"]]


def test_admin_listing_requires_admin(client, buyer):
    assert client.get(f"{REVIEWS}/admin/all", headers=auth(buyer)).status_code == 403
