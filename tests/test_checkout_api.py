import re

import pytest

from tests.conftest import auth


@pytest.fixture
def customer(seed):
    user = seed.user()
    return user, seed.address(user)


@pytest.fixture
def products(seed):
    category = seed.category()
    return seed.product(category, price="500.00"), seed.product(category, price="50.00")


def _checkout_body(address):
    return {
        "shippingAddressId": address.id,
        "billingAddressId": address.id,
        "paymentMethod": "card",
    }


def test_cart_requires_identity(client):
    res = client.get("/api/cart")

    assert res.status_code == 401
    assert res.json() == {"success": False, "message": "Not authorized to access this route"}


def test_unknown_or_inactive_user_is_rejected(client, seed):
    inactive = seed.user(is_active=False)

    assert client.get("/api/cart", headers={"X-User-Id": "999"}).status_code == 401
    assert client.get("/api/cart", headers=auth(inactive)).status_code == 401


@pytest.mark.parametrize("user_id", ["abc", "1.5", "", "-1", "0", "99999999999999999999"])
def test_malformed_user_id_is_unauthorized(client, seed, user_id):
    seed.user()

    res = client.get("/api/cart", headers={"X-User-Id": user_id})

    assert res.status_code == 401
    assert res.json() == {"success": False, "message": "Not authorized to access this route"}


def test_cart_flow(client, customer, products):
    user, _ = customer
    lamp, bulb = products

    added = client.post("/api/cart/add", json={"productId": lamp.id, "quantity": 2}, headers=auth(user))
    assert added.status_code == 200
    assert added.json()["message"] == "Item added to cart"
    item = added.json()["data"]
    assert item["unitPrice"] == 500.0
    assert item["lineTotal"] == 1000.0

    client.post("/api/cart/add", json={"productId": bulb.id}, headers=auth(user))
    client.post("/api/cart/add", json={"productId": lamp.id, "quantity": 1}, headers=auth(user))

    cart = client.get("/api/cart", headers=auth(user)).json()["data"]
    assert [(i["productId"], i["quantity"]) for i in cart["items"]] == [(lamp.id, 3), (bulb.id, 1)]
    assert cart["subtotal"] == 1550.0
    assert cart["totalItems"] == 4

    updated = client.put(f"/api/cart/{item['id']}", json={"quantity": 1}, headers=auth(user))
    assert updated.json()["data"]["quantity"] == 1

    removed = client.delete(f"/api/cart/{item['id']}", headers=auth(user))
    assert removed.json()["message"] == "Item removed from cart"

    cleared = client.delete("/api/cart", headers=auth(user))
    assert cleared.json()["message"] == "Cart cleared"
    assert client.get("/api/cart", headers=auth(user)).json()["data"]["items"] == []


def test_cart_quantity_zero_is_rejected(client, customer, products):
    user, _ = customer
    item = client.post("/api/cart/add", json={"productId": products[0].id}, headers=auth(user)).json()["data"]

    res = client.put(f"/api/cart/{item['id']}", json={"quantity": 0}, headers=auth(user))

    assert res.status_code == 400
    assert res.json()["success"] is False


def test_cart_add_unknown_product(client, customer):
    user, _ = customer

    res = client.post("/api/cart/add", json={"productId": 12345}, headers=auth(user))

    assert res.status_code == 404


def test_cart_add_missing_product_id_is_a_validation_error(client, customer):
    user, _ = customer

    res = client.post("/api/cart/add", json={"quantity": 1}, headers=auth(user))

    assert res.status_code == 400
    body = res.json()
    assert body["message"] == "Validation error"
    assert body["errors"][0]["field"] == "productId"


def test_checkout_creates_order_and_empties_cart(client, customer, products):
    user, address = customer
    lamp, bulb = products
    client.post("/api/cart/add", json={"productId": lamp.id, "quantity": 2}, headers=auth(user))
    client.post("/api/cart/add", json={"productId": bulb.id}, headers=auth(user))

    res = client.post("/api/orders", json=_checkout_body(address), headers=auth(user))

    assert res.status_code == 201
    body = res.json()
    assert body["message"] == "Order created successfully"
    order = body["data"]
    assert re.fullmatch(r"CH\d+[A-Z0-9]{4}", order["orderNumber"])
    assert order["status"] == "PENDING"
    assert order["paymentStatus"] == "PENDING"
    assert (order["subtotal"], order["tax"], order["shipping"], order["total"]) == (1050.0, 105.0, 300.0, 1455.0)
    assert order["shippingAddress"]["id"] == address.id
    assert len(order["items"]) == 2

    assert client.get("/api/cart", headers=auth(user)).json()["data"]["items"] == []

    listed = client.get("/api/orders", headers=auth(user)).json()
    assert [o["id"] for o in listed["data"]] == [order["id"]]
    assert listed["pagination"]["total"] == 1


def test_checkout_with_empty_cart(client, customer):
    user, address = customer

    res = client.post("/api/orders", json=_checkout_body(address), headers=auth(user))

    assert res.status_code == 400
    assert res.json()["message"] == "Cart is empty"
    assert client.get("/api/orders", headers=auth(user)).json()["data"] == []


def test_cancel_order_twice(client, customer, products):
    user, address = customer
    client.post("/api/cart/add", json={"productId": products[1].id}, headers=auth(user))
    order = client.post("/api/orders", json=_checkout_body(address), headers=auth(user)).json()["data"]

    first = client.put(f"/api/orders/{order['id']}/cancel", headers=auth(user))
    second = client.put(f"/api/orders/{order['id']}/cancel", headers=auth(user))

    assert first.status_code == 200
    assert first.json()["data"]["status"] == "CANCELLED"
    assert second.status_code == 400
    assert second.json()["message"] == "Order is already cancelled"


def test_other_users_order_is_not_found(client, seed, customer):
    user, _ = customer
    order = seed.order(seed.user())

    assert client.get(f"/api/orders/{order.id}", headers=auth(user)).status_code == 404
    assert client.put(f"/api/orders/{order.id}/cancel", headers=auth(user)).status_code == 404


def test_status_update_is_admin_only(client, seed, customer):
    user, _ = customer
    admin = seed.admin()
    order = seed.order(user)

    forbidden = client.put(f"/api/orders/{order.id}/status", json={"status": "SHIPPED"}, headers=auth(user))
    assert forbidden.status_code == 403
    assert forbidden.json()["message"] == "User role CUSTOMER is not authorized to access this route"

    ok = client.put(
        f"/api/orders/{order.id}/status",
        json={"status": "SHIPPED", "paymentStatus": "PAID"},
        headers=auth(admin),
    )
    assert ok.status_code == 200
    assert ok.json()["data"]["status"] == "SHIPPED"
    assert ok.json()["data"]["paymentStatus"] == "PAID"

    cancel = client.put(f"/api/orders/{order.id}/cancel", headers=auth(user))
    assert cancel.status_code == 400
    assert cancel.json()["message"] == "Cannot cancel shipped or delivered order"


def test_status_update_rejects_unknown_status(client, seed):
    admin = seed.admin()
    order = seed.order(seed.user())

    res = client.put(f"/api/orders/{order.id}/status", json={"status": "LOST"}, headers=auth(admin))

    assert res.status_code == 400
