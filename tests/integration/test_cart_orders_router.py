from marketplace.orders import service as orders_service


def test_get_cart_snapshot(client, fake_cart_repo):
    res = client.get("/api/v1/cart")
    assert res.status_code == 200
    body = res.json()
    assert body["total"] == 5000.0
    assert body["item_count"] == 3
    assert [i["line_total"] for i in body["items"]] == [3000.0, 2000.0]

def test_cart_mutations(client, fake_cart_repo):
    assert client.patch("/api/v1/cart/items/p1", json={"quantity": 1}).json()["total"] == 3500.0
    assert client.delete("/api/v1/cart/items/p2").json()["total"] == 1500.0
    assert client.post("/api/v1/cart/items", json={"product_id": "p1", "quantity": 4}).json()["item_count"] == 4
    assert client.delete("/api/v1/cart").json() == {"items": [], "total": 0.0, "item_count": 0}
    assert fake_cart_repo.rows == []

def test_cart_rejects_zero_quantity(client, fake_cart_repo):
    res = client.patch("/api/v1/cart/items/p1", json={"quantity": 0})
    assert res.status_code == 400
    assert res.json() == {"error": "Quantity must be at least 1"}

def test_orders_are_listed_and_private(client, order_store, pending_payload):
    mine = orders_service.create_cod_order(pending_payload)
    other = orders_service.create_cod_order(pending_payload.model_copy(update={"customer_id": "someone-else"}))

    res = client.get("/api/v1/orders")
    assert res.status_code == 200
    assert [o["id"] for o in res.json()["orders"]] == [mine.id]
    assert "no-store" in res.headers["cache-control"]

    detail = client.get(f"/api/v1/orders/{mine.id}").json()
    assert len(detail["items"]) == 2

    res = client.get(f"/api/v1/orders/{other.id}")
    assert res.status_code == 404
    assert res.json() == {"detail": "Commande introuvable"}

def test_health(client):
    assert client.get("/health").json() == {"ok": True}
    assert client.get("/health/supabase").json() == {"connect_ok": True}
    assert client.get("/health/rate-limit").json()["enabled"] is False
