"""Parcours complet: panier -> intention -> vérification -> commande, via l'API."""

USER = "test-user"

SHIPPING = {
    "fullName": "Jane Doe",
    "street": "12 MG Road",
    "city": "Pune",
    "zipCode": "411001",
    "country": "IN",
}

def test_full_checkout_with_last_unit_in_stock(client, store, gateway, current_user):
    lamp = store.add_product(name="Desk Lamp", price=34.50, stock=1)
    mug = store.add_product(name="Mug", price=8.0, stock=10)

    # dernier exemplaire: un second ajout dépasse le stock
    assert client.post("/api/cart/add", json={"productId": lamp["id"], "quantity": 1}).status_code == 200
    res = client.post("/api/cart/add", json={"productId": lamp["id"], "quantity": 1})
    assert res.status_code == 400
    assert res.json()["code"] == "out_of_stock"
    assert client.post("/api/cart/add", json={"productId": mug["id"], "quantity": 2}).status_code == 200

    # 34.50 + 16.00 = 50.50 > 50 -> livraison offerte, taxe 4.04
    intent = client.post("/api/payment/create-order", json={"amount": 54.54}).json()
    assert intent["totals"] == {"subtotal": 50.5, "shipping": 0.0, "tax": 4.04, "total": 54.54}
    assert intent["amount"] == 5454

    order_id = intent["orderId"]
    res = client.post("/api/payment/verify", json={
        "razorpay_order_id": order_id,
        "razorpay_payment_id": "pay_42",
        "razorpay_signature": gateway.sign(order_id, "pay_42"),
        "orderData": {"shippingAddress": SHIPPING},
    })
    assert res.status_code == 201
    order = res.json()["order"]
    assert order["total_amount"] == 54.54

    assert client.get("/api/cart").json() == []

    # une modification de prix ultérieure ne touche pas la commande
    current_user["role"] = "admin"
    assert client.put(f"/api/products/{lamp['id']}", json={"price": 99.0}).status_code == 200
    current_user["role"] = "user"

    orders = client.get("/api/orders").json()
    assert len(orders) == 1
    lines = {i["product_id"]: i for i in orders[0]["items"]}
    assert lines[lamp["id"]]["price"] == 34.5
    assert lines[lamp["id"]]["product"]["price"] == 99.0
    assert orders[0]["total_amount"] == 54.54

    # l'utilisateur peut encore annuler une commande payée
    res = client.put(f"/api/orders/{order['id']}/cancel")
    assert res.json()["status"] == "Cancelled"

def _verify(client, gateway, order_id, payment_id="pay_1"):
    return client.post("/api/payment/verify", json={
        "razorpay_order_id": order_id,
        "razorpay_payment_id": payment_id,
        "razorpay_signature": gateway.sign(order_id, payment_id),
        "orderData": {"shippingAddress": SHIPPING},
    })

def test_price_change_between_intent_and_verify_keeps_charged_price(client, store, gateway):
    p = store.add_product(name="Book", price=10.0, stock=5)
    client.post("/api/cart/add", json={"productId": p["id"], "quantity": 1})
    intent = client.post("/api/payment/create-order", json={}).json()

    store.products[p["id"]]["price"] = 12.0

    res = _verify(client, gateway, intent["orderId"])
    assert res.status_code == 201
    order = res.json()["order"]
    assert order["items"][0]["price"] == 10.0
    assert round(order["total_amount"] * 100) == intent["amount"]

def test_items_added_after_intent_are_not_in_the_paid_order(client, store, gateway):
    p = store.add_product(name="Pencil", price=10.0, stock=20)
    client.post("/api/cart/add", json={"productId": p["id"], "quantity": 1})
    intent = client.post("/api/payment/create-order", json={}).json()
    assert intent["amount"] == 1679

    client.post("/api/cart/add", json={"productId": p["id"], "quantity": 9})
    res = _verify(client, gateway, intent["orderId"])

    assert res.status_code == 201
    order = res.json()["order"]
    assert order["items"][0]["quantity"] == 1
    assert order["total_amount"] == 16.79

def test_deleted_product_is_dropped_from_checkout(client, store, gateway):
    keep = store.add_product(name="Pen", price=2.0, stock=5)
    gone = store.add_product(name="Old", price=100.0, stock=5)
    client.post("/api/cart/add", json={"productId": keep["id"], "quantity": 1})
    client.post("/api/cart/add", json={"productId": gone["id"], "quantity": 1})
    del store.products[gone["id"]]

    intent = client.post("/api/payment/create-order", json={}).json()

    # 2.00 + 5.99 + 0.16
    assert intent["totals"]["total"] == 8.15
