"""HTTP API tests via TestClient."""
from fastapi.testclient import TestClient

import config
from models import Product
from services.payment import Receipt


def create_product(client, **overrides):
    body = {
        "name": "Chocolate Croissant",
        "description": "Buttery croissant filled with rich chocolate.",
        "price": 3.50,
        "quantity": 5,
        "category": "Pastries",
    }
    body.update(overrides)
    response = client.post("/api/products", json=body)
    assert response.status_code == 200, response.text
    return response.json()


def order_body(product_id, quantity, **overrides):
    body = {
        "customer_name": "Ada Lovelace",
        "customer_email": "ada@example.com",
        "items": [{"product_id": product_id, "quantity": quantity, "price": 3.50}],
        "total_amount": 3.50 * quantity,
    }
    body.update(overrides)
    return body


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_product_crud(client):
    product = create_product(client)
    assert product["price"] == 3.5
    assert product["quantity"] == 5

    listed = client.get("/api/products").json()
    assert [p["id"] for p in listed] == [product["id"]]

    response = client.put(f"/api/products/{product['id']}", json={"quantity": 12})
    assert response.status_code == 200
    assert response.json()["quantity"] == 12
    assert response.json()["name"] == "Chocolate Croissant"

    response = client.delete(f"/api/products/{product['id']}")
    assert response.json() == {"message": "Product deleted successfully"}

    response = client.get(f"/api/products/{product['id']}")
    assert response.status_code == 404
    assert "error" in response.json()


def test_product_validation_errors_are_400(client):
    response = client.post("/api/products", json={"name": "Pie", "price": -1, "quantity": 1})

    assert response.status_code == 400
    assert "price" in response.json()["error"]


def test_update_missing_product_is_400(client):
    response = client.put("/api/products/missing", json={"quantity": 1})

    assert response.status_code == 400
    assert response.json() == {"error": "Product missing not found"}


def test_place_order_and_reject_oversell(client):
    product = create_product(client)

    response = client.post("/api/orders", json=order_body(product["id"], 2))
    assert response.status_code == 200, response.text
    order = response.json()
    assert order["status"] == "pending"
    assert order["total_amount"] == 7.0
    assert order["items"][0]["subtotal"] == 7.0
    assert order["payment_method"] == "cash"

    assert client.get(f"/api/products/{product['id']}").json()["quantity"] == 3

    response = client.post("/api/orders", json=order_body(product["id"], 4))
    assert response.status_code == 400
    assert "Insufficient stock" in response.json()["error"]
    assert client.get(f"/api/products/{product['id']}").json()["quantity"] == 3


class SellOutPaymentStrategy:
    """Empties a product's stock while the payment is in flight."""
    name = "sell_out"

    def __init__(self, session_factory, product_id):
        self.session_factory = session_factory
        self.product_id = product_id

    async def process_payment(self, amount, details):
        session = self.session_factory()
        try:
            session.get(Product, self.product_id).quantity = 0
            session.commit()
        finally:
            session.close()
        return Receipt(success=True, transaction_id="SOLD-1", method=self.name, amount=amount)


def test_stock_gone_after_payment_returns_payment_reference(client, app):
    product = create_product(client)
    app.state.order_service.set_payment_strategy(
        SellOutPaymentStrategy(app.state.session_factory, product["id"])
    )

    response = client.post("/api/orders", json=order_body(product["id"], 2))

    assert response.status_code == 400
    error = response.json()["error"]
    assert "Insufficient stock" in error
    assert "Payment reference: SOLD-1" in error
    assert client.get("/api/orders").json() == []


def test_order_for_unknown_product_is_400(client):
    response = client.post("/api/orders", json=order_body("missing", 1))

    assert response.status_code == 400
    assert "not found" in response.json()["error"]


def test_order_without_items_is_400(client):
    response = client.post("/api/orders", json=order_body("x", 1, items=[]))

    assert response.status_code == 400


def test_credit_card_without_cvv_is_rejected(client):
    product = create_product(client)
    assert client.put("/api/payment-method", json={"method": "credit_card"}).json() == {"method": "credit_card"}

    response = client.post("/api/orders", json=order_body(
        product["id"], 1,
        payment_details={"card_number": "4242424242424242", "expiry_date": "12/99"}
    ))

    assert response.status_code == 400
    assert "cvv" in response.json()["error"]
    assert client.get("/api/orders").json() == []
    assert client.get(f"/api/products/{product['id']}").json()["quantity"] == 5


def test_credit_card_order(client):
    product = create_product(client)
    client.put("/api/payment-method", json={"method": "credit_card"})

    response = client.post("/api/orders", json=order_body(
        product["id"], 1,
        payment_details={"card_number": "4242424242424242", "cvv": "123", "expiry_date": "12/99"}
    ))

    assert response.status_code == 200, response.text
    assert response.json()["payment_method"] == "credit_card"
    assert client.get("/api/payment-method").json() == {"method": "credit_card"}


def test_unknown_payment_method_is_400(client):
    response = client.put("/api/payment-method", json={"method": "barter"})

    assert response.status_code == 400
    assert client.get("/api/payment-method").json() == {"method": "cash"}


def test_orders_list_and_status_update(client):
    product = create_product(client)
    order = client.post("/api/orders", json=order_body(product["id"], 1)).json()

    orders = client.get("/api/orders").json()
    assert [o["id"] for o in orders] == [order["id"]]
    assert orders[0]["items"][0]["product_id"] == product["id"]

    response = client.put(f"/api/orders/{order['id']}/status", json={"status": "completed"})
    assert response.json() == {"id": order["id"], "status": "completed"}
    assert client.get("/api/orders").json()[0]["status"] == "completed"


def test_status_update_errors(client):
    response = client.put("/api/orders/missing/status", json={"status": "completed"})
    assert response.status_code == 400
    assert "not found" in response.json()["error"]

    response = client.put("/api/orders/missing/status", json={"status": "shipped"})
    assert response.status_code == 400


def test_deleting_product_keeps_order_history(client):
    product = create_product(client)
    order = client.post("/api/orders", json=order_body(product["id"], 2)).json()

    client.delete(f"/api/products/{product['id']}")

    stored = client.get("/api/orders").json()[0]
    assert stored["id"] == order["id"]
    assert stored["total_amount"] == 7.0
    assert stored["items"][0]["product_id"] == product["id"]


def test_register_and_login(client):
    response = client.post("/api/register", json={"username": "baker", "password": "croissant"})
    assert response.status_code == 200
    assert response.json()["success"] is True

    response = client.post("/api/login", json={"username": "baker", "password": "croissant"})
    assert response.json() == {"success": True, "username": "baker", "role": "user"}

    response = client.post("/api/login", json={"username": "baker", "password": "wrong"})
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid username or password"}


def test_register_admin_is_refused(client):
    response = client.post("/api/register", json={"username": "Admin", "password": "x"})

    assert response.status_code == 400
    assert response.json() == {"error": "Cannot register as admin"}


def test_seeded_catalog_and_admin(database_url):
    from main import create_app

    with TestClient(create_app(database_url=database_url, seed=True)) as client:
        products = client.get("/api/products").json()
        assert len(products) == 8
        assert {"Chocolate Croissant", "Cheesecake"} <= {p["name"] for p in products}

        response = client.post("/api/login", json={
            "username": config.ADMIN_USERNAME,
            "password": config.ADMIN_PASSWORD,
        })
        assert response.json()["role"] == "admin"
