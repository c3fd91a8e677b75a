import pytest

from conftest import auth_headers

API = "/api/v1"

ADDRESS = {
    "receiver_name": "Priya",
    "phone_number": "9876543210",
    "full_address": "12 MG Road",
    "city": "Pune",
    "pincode": "411001",
}


@pytest.fixture
def filled_cart(client, customer, make_product, make_coupon):
    make_coupon("SAVE10", type="percent", value=10)
    cake = make_product("Plum Cake", price_per_pc=400.0)
    headers = auth_headers(customer)
    client.post(
        f"{API}/cart/items", json={"product_id": str(cake.id), "quantity": 2}, headers=headers
    )
    client.post(f"{API}/cart/apply-coupon", json={"code": "SAVE10"}, headers=headers)
    return headers


def test_checkout_requires_login(client):
    r = client.post(f"{API}/orders/checkout", json=ADDRESS)
    assert r.status_code == 401


def test_checkout_empty_cart(client, customer):
    r = client.post(f"{API}/orders/checkout", json=ADDRESS, headers=auth_headers(customer))
    assert r.status_code == 400


def test_checkout_snapshots_cart(client, filled_cart):
    r = client.post(f"{API}/orders/checkout", json=ADDRESS, headers=filled_cart)
    assert r.status_code == 201
    order = r.json()
    assert order["status"] == "pending"
    assert order["payment_status"] == "pending"
    assert order["subtotal"] == 800.0
    assert order["discount_amount"] == 80.0
    assert order["coupon_code"] == "SAVE10"
    assert order["delivery_fee"] == 50.0
    assert order["grand_total"] == 770.0
    assert order["items"][0]["quantity"] == 2
    assert order["items"][0]["line_total"] == 800.0

    cart = client.get(f"{API}/cart", headers=filled_cart).json()
    assert cart["items"] == []
    assert cart["coupon_code"] is None


def test_coupon_usage_is_counted(client, filled_cart, admin):
    client.post(f"{API}/orders/checkout", json=ADDRESS, headers=filled_cart)
    coupons = client.get(f"{API}/admin/coupons", headers=auth_headers(admin)).json()
    assert coupons[0]["used_count"] == 1


def test_my_orders(client, filled_cart, customer, admin):
    order_id = client.post(
        f"{API}/orders/checkout", json=ADDRESS, headers=filled_cart
    ).json()["id"]

    r = client.get(f"{API}/orders/me", headers=filled_cart)
    assert [o["id"] for o in r.json()] == [order_id]

    r = client.get(f"{API}/orders/me/{order_id}", headers=filled_cart)
    assert r.status_code == 200
    assert len(r.json()["items"]) == 1

    # someone else's order looks missing
    r = client.get(f"{API}/orders/me/{order_id}", headers=auth_headers(admin))
    assert r.status_code == 404


def test_cancel_order(client, filled_cart, admin):
    order_id = client.post(
        f"{API}/orders/checkout", json=ADDRESS, headers=filled_cart
    ).json()["id"]

    r = client.post(f"{API}/orders/me/{order_id}/cancel", headers=filled_cart)
    assert r.status_code == 200
    assert r.json()["status"] == "cancelled"

    r = client.post(f"{API}/orders/me/{order_id}/cancel", headers=filled_cart)
    assert r.status_code == 400


def test_admin_status_transitions(client, filled_cart, admin):
    order_id = client.post(
        f"{API}/orders/checkout", json=ADDRESS, headers=filled_cart
    ).json()["id"]
    headers = auth_headers(admin)
    url = f"{API}/orders/{order_id}/status"

    r = client.patch(url, json={"status": "delivered"}, headers=headers)
    assert r.status_code == 400

    for status in ("processing", "shipped", "delivered"):
        r = client.patch(url, json={"status": status}, headers=headers)
        assert r.status_code == 200
        assert r.json()["status"] == status

    r = client.patch(url, json={"payment_status": "paid"}, headers=headers)
    assert r.json()["payment_status"] == "paid"

    r = client.post(f"{API}/orders/me/{order_id}/cancel", headers=filled_cart)
    assert r.status_code == 400


def test_admin_lists_orders(client, filled_cart, customer, admin):
    client.post(f"{API}/orders/checkout", json=ADDRESS, headers=filled_cart)

    assert client.get(f"{API}/orders", headers=filled_cart).status_code == 403
    r = client.get(f"{API}/orders", headers=auth_headers(admin))
    assert len(r.json()) == 1
    assert r.json()[0]["user_id"] == str(customer.id)

    r = client.get(f"{API}/orders", params={"status": "shipped"}, headers=auth_headers(admin))
    assert r.json() == []
