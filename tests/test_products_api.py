from conftest import auth_headers

API = "/api/v1/products"


def _create(client, admin, **payload):
    payload.setdefault("name", "Butter Croissant")
    return client.post(API, json=payload, headers=auth_headers(admin))


def test_admin_creates_product_with_options(client, admin):
    r = _create(
        client,
        admin,
        name="Kaju Katli",
        category="sweets",
        unit="variant",
        price_per_100g=120.0,
        unit_options=[
            {"label": "250g box", "grams": 250, "price": 280.0},
            {"label": "500g box", "grams": 500, "price": 540.0},
        ],
    )
    assert r.status_code == 201
    body = r.json()
    assert body["slug"] == "kaju-katli"
    assert [o["label"] for o in body["unit_options"]] == ["250g box", "500g box"]


def test_slugs_are_unique(client, admin):
    assert _create(client, admin).json()["slug"] == "butter-croissant"
    assert _create(client, admin).json()["slug"] == "butter-croissant-2"


def test_customer_cannot_create(client, customer):
    r = client.post(API, json={"name": "Rusk"}, headers=auth_headers(customer))
    assert r.status_code == 403


def test_public_list_hides_inactive(client, make_product):
    make_product("Rusk", category="tea-time")
    make_product("Old Cake", is_active=False)

    r = client.get(API)
    assert [p["name"] for p in r.json()] == ["Rusk"]

    r = client.get(API, params={"only_active": False})
    assert len(r.json()) == 2

    r = client.get(API, params={"category": "cakes"})
    assert r.json() == []


def test_get_missing_product(client):
    r = client.get(f"{API}/00000000-0000-0000-0000-000000000000")
    assert r.status_code == 404


def test_update_product(client, admin, make_product):
    product = make_product("Rusk", price_per_pc=20.0)
    r = client.patch(
        f"{API}/{product.id}",
        json={"price_per_pc": 25.0, "slug": "Tea Rusk"},
        headers=auth_headers(admin),
    )
    assert r.status_code == 200
    assert r.json()["price_per_pc"] == 25.0
    assert r.json()["slug"] == "tea-rusk"


def test_price_change_keeps_cart_snapshot(client, admin, make_product):
    product = make_product("Rusk", price_per_pc=20.0)
    cart_id = client.post(
        "/api/v1/cart/items", json={"product_id": str(product.id)}
    ).headers["x-cart-id"]

    client.patch(f"{API}/{product.id}", json={"price_per_pc": 30.0}, headers=auth_headers(admin))

    r = client.get("/api/v1/cart", headers={"x-cart-id": cart_id})
    assert r.json()["items"][0]["unit_price"] == 20.0


def test_replace_options(client, admin, make_product, make_option):
    product = make_product("Dry Fruit Box")
    make_option(product, "old", 100.0)

    r = client.put(
        f"{API}/{product.id}/options",
        json=[{"label": "1kg tin", "grams": 1000, "price": 1500.0}],
        headers=auth_headers(admin),
    )
    assert r.status_code == 200
    assert [o["label"] for o in r.json()] == ["1kg tin"]

    r = client.put(
        f"{API}/{product.id}/options",
        json=[{"label": "a", "price": 1.0}, {"label": "a", "price": 2.0}],
        headers=auth_headers(admin),
    )
    assert r.status_code == 400


def test_delete_product_retires_it(client, admin, make_product):
    product = make_product("Rusk")
    r = client.delete(f"{API}/{product.id}", headers=auth_headers(admin))
    assert r.status_code == 204
    assert client.get(f"{API}/{product.id}").status_code == 404
    assert client.get(API).json() == []

    hidden = client.get(API, params={"only_active": False}).json()
    assert [p["id"] for p in hidden] == [str(product.id)]
    assert hidden[0]["is_active"] is False


def test_delete_product_in_a_cart(client, admin, make_product):
    product = make_product("Rusk", price_per_pc=60.0)
    r = client.post("/api/v1/cart/items", json={"product_id": str(product.id), "quantity": 2})
    cart_headers = {"x-cart-id": r.headers["x-cart-id"]}

    r = client.delete(f"{API}/{product.id}", headers=auth_headers(admin))
    assert r.status_code == 204

    r = client.get("/api/v1/cart", headers=cart_headers)
    assert r.status_code == 200
    assert r.json()["items"][0]["product_name"] == "Rusk"
    assert r.json()["subtotal"] == 120.0

    r = client.post(
        "/api/v1/cart/items",
        json={"product_id": str(product.id)},
        headers=cart_headers,
    )
    assert r.status_code == 404
