from datetime import datetime, timedelta, timezone

import pytest

from conftest import API, auth
from marketplace.services.promotion_service import (
    calculate_discount_percent,
    check_outlet_eligibility,
    validate_deal_parameters,
)

REQUESTS = f"{API}/promotions/requests"
NOW = datetime.now(timezone.utc)


def deal_payload(product, **kwargs) -> dict:
    payload = {
        "product_id": str(product.id),
        "discounted_price": 60,
        "start_date": (NOW + timedelta(days=1)).isoformat(),
        "end_date": (NOW + timedelta(days=2)).isoformat(),
        "quantity_limit": 20,
    }
    payload.update(kwargs)
    return payload


@pytest.fixture
def jacket(seller, make_product):
    return make_product(seller, title="Jacket", price=100.0, quantity=30)


@pytest.fixture
def outlet_request(client, seller, jacket) -> dict:
    resp = client.post(
        f"{REQUESTS}/outlet",
        json={"product_id": str(jacket.id), "discounted_price": 65},
        headers=auth(seller),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


# -------- Rules --------


@pytest.mark.parametrize(
    "original, discounted, expected",
    [(100, 65, 35), (80, 60, 25), (3, 2, 33), (100, 100, 0), (0, 5, 0)],
)
def test_calculate_discount_percent(original, discounted, expected):
    assert calculate_discount_percent(original, discounted) == expected


def test_outlet_eligibility(seller, make_product):
    product = make_product(seller)
    product.created_at = NOW - timedelta(days=61)

    assert check_outlet_eligibility(product, 30, now=NOW) == {
        "listing_age_days": 61,
        "listing_age_met": True,
        "discount_met": True,
        "all_passed": True,
    }
    assert check_outlet_eligibility(product, 29, now=NOW)["all_passed"] is False


def test_validate_deal_parameters_lists_every_problem():
    errors = validate_deal_parameters(
        start_date=NOW - timedelta(days=1),
        end_date=NOW - timedelta(days=2),
        quantity_limit=0,
        discount_percent=95,
        now=NOW,
    )

    assert errors == [
        "Start date must be before end date",
        "End date must be in the future",
        "Quantity limit must be greater than 0",
        "Discount must be between 10% and 90%",
    ]


# -------- Seller requests --------


def test_outlet_request_records_eligibility(outlet_request):
    assert outlet_request["status"] == "pending"
    assert outlet_request["original_price"] == 100
    assert outlet_request["discount_percent"] == 35
    checks = outlet_request["eligibility_checks"]
    assert checks["listing_age_met"] is False
    assert checks["discount_met"] is True
    assert checks["all_passed"] is False


@pytest.mark.parametrize(
    "price, detail",
    [
        (100, "Discounted price must be lower than original price"),
        (0, "Discounted price must be greater than 0"),
    ],
)
def test_outlet_price_rules(client, seller, jacket, price, detail):
    resp = client.post(
        f"{REQUESTS}/outlet",
        json={"product_id": str(jacket.id), "discounted_price": price},
        headers=auth(seller),
    )

    assert resp.status_code == 400
    assert resp.json()["detail"] == detail


def test_cannot_promote_someone_elses_product(client, make_user, jacket):
    other = make_user("seller")

    resp = client.post(
        f"{REQUESTS}/outlet",
        json={"product_id": str(jacket.id), "discounted_price": 50},
        headers=auth(other),
    )

    assert resp.status_code == 403
    assert resp.json()["detail"] == "You do not own this product"


def test_inactive_product_cannot_be_promoted(client, seller, make_product):
    hidden = make_product(seller, is_active=False)

    resp = client.post(
        f"{REQUESTS}/outlet",
        json={"product_id": str(hidden.id), "discounted_price": 5},
        headers=auth(seller),
    )

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Product must be active to request promotion"


def test_daily_deal_request(client, seller, jacket):
    resp = client.post(f"{REQUESTS}/daily-deal", json=deal_payload(jacket), headers=auth(seller))

    assert resp.status_code == 201
    body = resp.json()
    assert body["request_type"] == "daily_deal"
    assert body["discount_percent"] == 40
    assert body["quantity_limit"] == 20


def test_invalid_daily_deal_reports_errors(client, seller, jacket):
    resp = client.post(
        f"{REQUESTS}/daily-deal",
        json=deal_payload(jacket, discounted_price=95, quantity_limit=0),
        headers=auth(seller),
    )

    assert resp.status_code == 400
    assert resp.json()["detail"] == {
        "message": "Invalid deal parameters",
        "errors": [
            "Quantity limit must be greater than 0",
            "Discount must be between 10% and 90%",
        ],
    }


def test_list_and_cancel_my_requests(client, seller, outlet_request):
    url = f"{REQUESTS}/{outlet_request['id']}/cancel"

    first = client.post(url, headers=auth(seller))
    second = client.post(url, headers=auth(seller))

    assert first.json()["status"] == "cancelled"
    assert second.status_code == 400
    assert second.json()["detail"] == "Can only cancel pending requests"

    mine = client.get(f"{REQUESTS}/mine?status=cancelled", headers=auth(seller)).json()
    assert [r["id"] for r in mine] == [outlet_request["id"]]


# -------- Admin review --------


def test_admin_queue_filters_by_type(client, admin, seller, outlet_request, make_product):
    boots = make_product(seller, title="Boots", price=100.0)
    client.post(f"{REQUESTS}/daily-deal", json=deal_payload(boots), headers=auth(seller))

    resp = client.get(f"{REQUESTS}?type=outlet", headers=auth(admin))

    body = resp.json()
    assert [r["id"] for r in body["data"]] == [outlet_request["id"]]
    assert body["pagination"]["total"] == 1


def test_approve_applies_price(client, session, admin, jacket, outlet_request):
    resp = client.post(f"{REQUESTS}/{outlet_request['id']}/approve", headers=auth(admin))

    assert resp.status_code == 200
    body = resp.json()
    assert body["request"]["status"] == "approved"
    assert body["request"]["reviewed_by"] == str(admin.id)
    assert body["product"]["price"] == 65
    assert body["product"]["original_price"] == 100
    assert body["product"]["promotion_type"] == "outlet"

    session.refresh(jacket)
    assert jacket.discount_percent == 35


def test_second_promotion_blocked_after_approval(client, admin, seller, jacket, outlet_request):
    client.post(f"{REQUESTS}/{outlet_request['id']}/approve", headers=auth(admin))

    resp = client.post(f"{REQUESTS}/daily-deal", json=deal_payload(jacket), headers=auth(seller))

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Product already has an active promotion"


def test_approve_daily_deal_sets_deal_window(client, session, admin, seller, jacket):
    request = client.post(
        f"{REQUESTS}/daily-deal", json=deal_payload(jacket), headers=auth(seller)
    ).json()

    client.post(f"{REQUESTS}/{request['id']}/approve", headers=auth(admin))

    session.refresh(jacket)
    assert jacket.promotion_type == "daily_deal"
    assert jacket.price == 60
    assert jacket.deal_quantity_limit == 20
    assert jacket.deal_end_date is not None


def test_reject_requires_reason(client, admin, outlet_request):
    url = f"{REQUESTS}/{outlet_request['id']}/reject"

    missing = client.post(url, json={"rejection_reason": " "}, headers=auth(admin))
    rejected = client.post(url, json={"rejection_reason": "Too small"}, headers=auth(admin))
    again = client.post(url, json={"rejection_reason": "Too small"}, headers=auth(admin))

    assert missing.status_code == 422
    assert rejected.json()["status"] == "rejected"
    assert rejected.json()["rejection_reason"] == "Too small"
    assert again.status_code == 400
    assert again.json()["detail"] == "Only pending requests can be rejected"


def test_seller_cannot_review_requests(client, seller, outlet_request):
    resp = client.post(f"{REQUESTS}/{outlet_request['id']}/approve", headers=auth(seller))

    assert resp.status_code == 403
