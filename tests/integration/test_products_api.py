def test_list_products_public_with_filters(client, store):
    store.add_product(name="Wireless Headphones", category="electronics", price=199.99)
    store.add_product(name="Coffee Maker", category="home appliances", price=89.99)

    res = client.get("/api/products", params={"category": "Electronics"})
    assert res.status_code == 200
    assert [p["name"] for p in res.json()] == ["Wireless Headphones"]

    res = client.get("/api/products", params={"price_min": 50, "price_max": 100})
    assert [p["name"] for p in res.json()] == ["Coffee Maker"]

def test_inverted_price_range_is_400(client, store):
    res = client.get("/api/products", params={"price_min": 100, "price_max": 10})
    assert res.status_code == 400
    assert res.json()["code"] == "validation_error"

def test_get_product_404(client, store):
    res = client.get("/api/products/missing")
    assert res.status_code == 404
    assert res.json() == {"detail": "Produit introuvable", "code": "not_found"}

def test_admin_crud(client, store, as_admin):
    res = client.post("/api/products", json={"name": "Desk Lamp", "price": 34.5, "category": "Home", "stock": 3})
    assert res.status_code == 201
    product = res.json()
    assert product["category"] == "home"

    res = client.put(f"/api/products/{product['id']}", json={"price": 29.99})
    assert res.status_code == 200
    assert res.json()["price"] == 29.99
    assert res.json()["stock"] == 3

    res = client.delete(f"/api/products/{product['id']}")
    assert res.status_code == 200
    assert client.get(f"/api/products/{product['id']}").status_code == 404

def test_create_product_forbidden_for_regular_user(client, store):
    res = client.post("/api/products", json={"name": "x", "price": 1, "category": "c"})
    assert res.status_code == 403

def test_create_product_rejects_negative_price(client, store, as_admin):
    res = client.post("/api/products", json={"name": "x", "price": -1, "category": "c"})
    assert res.status_code == 400
