USER = "test-user"

def _order(store, user_id=USER, status="Paid", product_id=None):
    return store.create_order({
        "user_id": user_id,
        "items": [{"product_id": product_id or "gone", "quantity": 1, "price": 12.5}],
        "total_amount": 19.49,
        "status": status,
        "provider_order_id": f"order_{len(store.orders) + 1}",
    })

def test_list_orders_populates_current_product(client, store):
    p = store.add_product(name="Mug", price=99.0)
    _order(store, product_id=p["id"])
    _order(store, user_id="other-user")

    res = client.get("/api/orders")

    assert res.status_code == 200
    orders = res.json()
    assert len(orders) == 1
    item = orders[0]["items"][0]
    assert item["price"] == 12.5
    assert item["product"]["name"] == "Mug"

def test_get_order_of_another_user_is_404(client, store):
    other = _order(store, user_id="other-user")
    assert client.get(f"/api/orders/{other['id']}").status_code == 404

def test_cancel_paid_order(client, store):
    order = _order(store)
    res = client.put(f"/api/orders/{order['id']}/cancel")
    assert res.status_code == 200
    assert res.json()["status"] == "Cancelled"

def test_cancel_shipped_order_is_400(client, store):
    order = _order(store, status="Shipped")
    res = client.put(f"/api/orders/{order['id']}/cancel")
    assert res.status_code == 400
    assert res.json()["code"] == "invalid_transition"

def test_admin_status_update(client, store, as_admin):
    order = _order(store)
    res = client.put(f"/api/orders/{order['id']}/status", json={"status": "Shipped"})
    assert res.status_code == 200
    assert res.json()["status"] == "Shipped"

    res = client.put(f"/api/orders/{order['id']}/status", json={"status": "Paid"})
    assert res.status_code == 400

def test_status_update_requires_admin(client, store):
    order = _order(store)
    assert client.put(f"/api/orders/{order['id']}/status", json={"status": "Shipped"}).status_code == 403

def test_orders_responses_are_not_cached(client, store):
    res = client.get("/api/orders")
    assert "no-store" in res.headers["Cache-Control"]
