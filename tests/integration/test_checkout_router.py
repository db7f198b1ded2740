def test_cod_checkout(client, fake_cart_repo, order_store, checkout_form_data):
    res = client.post("/api/v1/checkout", json={"paymentMethod": "cod", "formData": checkout_form_data})
    assert res.status_code == 200
    assert res.json() == {"payment_method": "cod", "order_id": "order-1", "redirect_to": "/orders"}
    assert order_store.orders["order-1"]["payment_status"] == "pending"
    assert fake_cart_repo.rows == []

def test_checkout_form_errors_are_400(client, fake_cart_repo, order_store, checkout_form_data):
    checkout_form_data["phone"] = "123"
    res = client.post("/api/v1/checkout", json={"paymentMethod": "cod", "formData": checkout_form_data})
    assert res.status_code == 400
    assert res.json() == {
        "error": "Invalid checkout form",
        "details": {"phone": "Phone number must be at least 10 digits"},
    }
    assert order_store.orders == {}

def test_checkout_with_empty_cart(client, fake_cart_repo, checkout_form_data):
    fake_cart_repo.rows = []
    res = client.post("/api/v1/checkout", json={"payment_method": "cod", "form": checkout_form_data})
    assert res.status_code == 400
    assert res.json() == {"error": "Cart is empty"}

def test_checkout_item_failure_is_500(client, fake_cart_repo, order_store, checkout_form_data):
    order_store.fail_items = True
    res = client.post("/api/v1/checkout", json={"paymentMethod": "cod", "formData": checkout_form_data})
    assert res.status_code == 500
    assert res.json()["error"] == "Failed to create order items"
    assert order_store.orders == {}
    assert len(fake_cart_repo.rows) == 2
