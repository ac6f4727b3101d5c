"""API tests for the order endpoints.

They cover creation and validation codes, the PATCH status progression,
updates that only touch description and fee, the paid-order delete guard,
and the soft-delete visibility rules, all through the HTTP surface.
"""
from datetime import timedelta

import pytest
from apps.orders.models import CartModel, OrderModel
from django.utils import timezone

ORDERS_URL = "/api/orders/"


@pytest.fixture
def cart(db):
    return CartModel.objects.create(user_id=1)


def make_order(cart, status="CREATED", **kw):
    return OrderModel.objects.create(
        cart=cart,
        order_date=kw.pop("order_date", timezone.now() - timedelta(days=2)),
        order_desc=kw.pop("order_desc", "Test order"),
        order_fee=kw.pop("order_fee", 100.0),
        status=status,
        **kw,
    )


def post_order(client, payload):
    return client.post(ORDERS_URL, data=payload, content_type="application/json")


@pytest.mark.django_db
def test_create_order(client, cart):
    """POST returns 201 with a CREATED order pointing at its cart."""
    r = post_order(client, {"orderDesc": "First order", "orderFee": 99.99, "cart": {"cartId": cart.cart_id}})
    assert r.status_code == 201
    body = r.json()
    assert body["orderStatus"] == "CREATED"
    assert body["orderFee"] == 99.99
    assert body["cart"] == {"cartId": cart.cart_id}
    assert body["orderDate"]

    stored = OrderModel.objects.get(order_id=body["orderId"])
    assert stored.status == "CREATED" and stored.is_active is True


@pytest.mark.django_db
def test_create_order_ignores_client_status_and_date(client, cart):
    payload = {
        "orderId": 55,
        "orderStatus": "IN_PAYMENT",
        "orderDate": "2001-01-01T00:00:00Z",
        "orderDesc": "x",
        "orderFee": 1,
        "cart": {"cartId": cart.cart_id},
    }
    body = post_order(client, payload).json()
    assert body["orderStatus"] == "CREATED"
    assert not body["orderDate"].startswith("2001")


@pytest.mark.django_db
@pytest.mark.parametrize(
    "payload, code",
    [
        ({"orderDesc": "x", "orderFee": 1}, "MISSING_CART"),
        ({"orderDesc": "x", "orderFee": 1, "cart": {}}, "MISSING_CART"),
        ({"orderDesc": "", "orderFee": 1, "cart": {"cartId": 1}}, "EMPTY_DESCRIPTION"),
        ({"orderDesc": "x", "orderFee": -1, "cart": {"cartId": 1}}, "INVALID_FEE"),
        ({"orderDesc": "x", "cart": {"cartId": 1}}, "INVALID_FEE"),
        ({"orderDesc": "x", "orderFee": "NaN", "cart": {"cartId": 1}}, "INVALID_FEE"),
        ({"orderDesc": "x", "orderFee": "Infinity", "cart": {"cartId": 1}}, "INVALID_FEE"),
        ({"orderDesc": "d" * 256, "orderFee": 1, "cart": {"cartId": 1}}, "DESCRIPTION_TOO_LONG"),
    ],
)
def test_create_order_validation(client, payload, code):
    r = post_order(client, payload)
    assert r.status_code == 400
    assert r.json()["detail"] == code
    assert OrderModel.objects.count() == 0


@pytest.mark.django_db
def test_create_order_unknown_cart(client):
    r = post_order(client, {"orderDesc": "x", "orderFee": 1, "cart": {"cartId": 4242}})
    assert r.status_code == 404
    assert r.json()["detail"] == "CART_NOT_FOUND"


@pytest.mark.django_db
def test_create_order_null_body(client):
    r = client.post(ORDERS_URL, data="null", content_type="application/json")
    assert r.status_code == 400
    assert r.json()["detail"] == "INVALID_PAYLOAD"


@pytest.mark.django_db
def test_list_orders_hides_soft_deleted(client, cart):
    live = make_order(cart)
    make_order(cart, is_active=False)
    r = client.get(ORDERS_URL)
    assert r.status_code == 200
    assert [o["orderId"] for o in r.json()["collection"]] == [live.order_id]


@pytest.mark.django_db
def test_get_order(client, cart):
    order = make_order(cart, status="ORDERED")
    body = client.get(f"{ORDERS_URL}{order.order_id}/").json()
    assert body["orderId"] == order.order_id
    assert body["orderStatus"] == "ORDERED"
    assert body["cart"] == {"cartId": cart.cart_id}


@pytest.mark.django_db
def test_get_order_not_found(client):
    r = client.get(f"{ORDERS_URL}999/")
    assert r.status_code == 404
    assert r.json()["detail"] == "ORDER_NOT_FOUND"


@pytest.mark.django_db
def test_patch_status_walks_sequence(client, cart):
    order = make_order(cart)
    url = f"{ORDERS_URL}{order.order_id}/status/"

    assert client.patch(url).json()["orderStatus"] == "ORDERED"
    assert client.patch(url).json()["orderStatus"] == "IN_PAYMENT"

    r = client.patch(url)
    assert r.status_code == 400
    assert r.json()["detail"] == "ORDER_IN_TERMINAL_STATE"
    order.refresh_from_db()
    assert order.status == "IN_PAYMENT"


@pytest.mark.django_db
def test_patch_status_unknown_stored_value(client, cart):
    order = make_order(cart, status="SHIPPED")
    r = client.patch(f"{ORDERS_URL}{order.order_id}/status/")
    assert r.status_code == 500
    assert r.json()["detail"] == "UNKNOWN_ORDER_STATUS"
    order.refresh_from_db()
    assert order.status == "SHIPPED"


@pytest.mark.django_db
def test_patch_status_of_deleted_order(client, cart):
    order = make_order(cart, is_active=False)
    assert client.patch(f"{ORDERS_URL}{order.order_id}/status/").status_code == 404


@pytest.mark.django_db
def test_put_updates_only_description_and_fee(client, cart):
    other = CartModel.objects.create(user_id=2)
    order = make_order(cart, status="ORDERED")
    payload = {
        "orderDesc": "Updated description",
        "orderFee": 150.0,
        "orderStatus": "CREATED",
        "orderDate": "2030-01-01T00:00:00Z",
        "cart": {"cartId": other.cart_id},
    }
    r = client.put(f"{ORDERS_URL}{order.order_id}/", data=payload, content_type="application/json")
    assert r.status_code == 200
    body = r.json()
    assert body["orderDesc"] == "Updated description"
    assert body["orderFee"] == 150.0
    assert body["orderStatus"] == "ORDERED"
    assert body["cart"] == {"cartId": cart.cart_id}

    stored = OrderModel.objects.get(order_id=order.order_id)
    assert stored.cart_id == cart.cart_id
    assert stored.order_date == order.order_date


@pytest.mark.django_db
def test_put_missing_order(client):
    r = client.put(f"{ORDERS_URL}31337/", data={"orderDesc": "x", "orderFee": 1}, content_type="application/json")
    assert r.status_code == 404


@pytest.mark.django_db
def test_delete_order_is_soft(client, cart):
    order = make_order(cart)
    r = client.delete(f"{ORDERS_URL}{order.order_id}/")
    assert r.status_code == 200
    assert r.json() is True

    order.refresh_from_db()
    assert order.is_active is False
    assert client.get(f"{ORDERS_URL}{order.order_id}/").status_code == 404
    assert client.get(f"/api/carts/{cart.cart_id}/").json()["orders"] == []


@pytest.mark.django_db
def test_delete_paid_order_is_rejected(client, cart):
    order = make_order(cart, status="IN_PAYMENT")
    r = client.delete(f"{ORDERS_URL}{order.order_id}/")
    assert r.status_code == 400
    assert r.json()["detail"] == "CANNOT_DELETE_PAID_ORDER"
    order.refresh_from_db()
    assert order.is_active is True


@pytest.mark.django_db
def test_get_order_with_unknown_stored_status(client, cart):
    order = make_order(cart, status="SHIPPED")
    r = client.get(f"{ORDERS_URL}{order.order_id}/")
    assert r.status_code == 500
    assert r.json()["detail"] == "UNKNOWN_ORDER_STATUS"


@pytest.mark.django_db
@pytest.mark.parametrize("fee", ["NaN", "Infinity", "-Infinity"])
def test_put_rejects_non_finite_fee(client, cart, fee):
    order = make_order(cart)
    r = client.put(
        f"{ORDERS_URL}{order.order_id}/",
        data={"orderDesc": "x", "orderFee": fee},
        content_type="application/json",
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "INVALID_FEE"
    order.refresh_from_db()
    assert order.order_fee == 100.0
    assert client.get(ORDERS_URL).status_code == 200


@pytest.mark.django_db
def test_unrecognised_output_fields_are_ignored(client, cart):
    """Values the service discards never turn a request into a 400."""
    payload = {"orderDesc": "x", "orderFee": 1, "orderStatus": "PAID", "cart": {"cartId": cart.cart_id}}
    r = post_order(client, payload)
    assert r.status_code == 201
    assert r.json()["orderStatus"] == "CREATED"

    r = client.put(
        f"{ORDERS_URL}{r.json()['orderId']}/",
        data={"orderDesc": "y", "orderFee": 2, "orderStatus": 42},
        content_type="application/json",
    )
    assert r.status_code == 200
    assert r.json()["orderStatus"] == "CREATED"
