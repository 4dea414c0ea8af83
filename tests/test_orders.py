"""Order API: manual entry, listing, edits and deletion."""

from fastapi import status

from order_dashboard.services.order_service import calculate_order_totals, generate_order_ref


def test_requests_without_api_key_are_rejected(app):
    from fastapi.testclient import TestClient

    with TestClient(app) as anonymous:
        assert anonymous.get("/api/orders").status_code == status.HTTP_401_UNAUTHORIZED
        wrong = anonymous.get("/api/orders", headers={"X-API-Key": "nope"})
        assert wrong.status_code == status.HTTP_401_UNAUTHORIZED
        assert wrong.json() == {"error": "Invalid API key"}
        # Health stays public
        assert anonymous.get("/health").status_code == status.HTTP_200_OK


def test_api_unavailable_when_dashboard_key_not_configured(settings, fake_shopify, fake_mailer):
    from fastapi.testclient import TestClient

    from order_dashboard.server.app import create_app

    settings.dashboard_api_key = None
    with TestClient(create_app(settings)) as test_client:
        response = test_client.get("/api/orders", headers={"X-API-Key": "anything"})
    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE


def test_created_manual_order_is_retrievable_by_id(client):
    payload = {
        "buyer": "Harbor Goods",
        "email": "buyer@harbor.example",
        "country": "Norway",
        "products": [
            {"title": "Ceramic Bowl", "quantity": 4, "price": 25},
            {"title": "Linen Towel", "quantity": 2, "price": "12.50"},
        ],
        "shipping": 30,
        "vat_amt": 20,
    }
    created = client.post("/api/orders", json=payload)
    assert created.status_code == status.HTTP_201_CREATED
    body = created.json()

    assert body["order_ref"].startswith("ORD-")
    assert body["source"] == "Manual"
    assert body["total_qty"] == 6
    assert body["value"] == 125.0
    assert body["total_topay"] == 175.0
    assert body["deposit_25"] == 43.75
    assert body["payment_status"] == "No Payment Received"
    assert body["ship_status"] == "Not Shipped"

    fetched = client.get(f"/api/orders/{body['id']}")
    assert fetched.status_code == status.HTTP_200_OK
    order = fetched.json()
    assert order["order_ref"] == body["order_ref"]
    assert order["products"][0]["title"] == "Ceramic Bowl"
    assert order["payment_summary"]["next_payment_due"] == 43.75

    listing = client.get("/api/orders").json()
    assert listing["pagination"]["totalCount"] == 1
    assert [o["id"] for o in listing["data"]] == [body["id"]]


def test_create_requires_buyer_and_rejects_unknown_fields(client):
    missing_buyer = client.post("/api/orders", json={"total_topay": 10})
    assert missing_buyer.status_code == status.HTTP_400_BAD_REQUEST
    assert missing_buyer.json()["error"] == "Buyer is required"

    unknown = client.post("/api/orders", json={"buyer": "X", "colour": "red"})
    assert unknown.status_code == status.HTTP_400_BAD_REQUEST
    assert "error" in unknown.json()


def test_duplicate_order_ref_is_rejected(client, create_order):
    create_order(order_ref="ORD-000123")
    duplicate = client.post("/api/orders", json={"buyer": "Other", "order_ref": "ORD-000123"})
    assert duplicate.status_code == status.HTTP_400_BAD_REQUEST
    assert "already exists" in duplicate.json()["error"]


def test_order_linked_to_buyer_copies_buyer_details(client):
    buyer = client.post(
        "/api/buyers",
        json={"name": "Nordic Home", "email": "orders@nordic.example", "city": "Oslo", "country": "Norway"},
    ).json()

    order = client.post("/api/orders", json={"buyer_id": buyer["id"], "total_topay": 200}).json()
    assert order["buyer"] == "Nordic Home"
    assert order["email"] == "orders@nordic.example"
    assert order["city"] == "Oslo"

    unknown = client.post("/api/orders", json={"buyer_id": 999})
    assert unknown.status_code == status.HTTP_400_BAD_REQUEST


def test_list_orders_paginates_sorts_and_filters(client, create_order):
    create_order(order_ref="A-1", buyer="Alpha Trading", total_topay=300, ship_status="In Production")
    create_order(order_ref="B-2", buyer="Beta Imports", total_topay=100, ship_status="In Production")
    create_order(order_ref="C-3", buyer="Gamma Alpha", total_topay=200, ship_status="Shipped")

    page = client.get("/api/orders", params={"orderBy": "total_topay", "order": "asc", "pageSize": 2})
    body = page.json()
    assert [o["order_ref"] for o in body["data"]] == ["B-2", "C-3"]
    assert body["pagination"] == {"page": 1, "pageSize": 2, "totalCount": 3, "totalPages": 2}

    second = client.get(
        "/api/orders", params={"orderBy": "total_topay", "order": "asc", "pageSize": 2, "page": 2}
    ).json()
    assert [o["order_ref"] for o in second["data"]] == ["A-1"]

    searched = client.get("/api/orders", params={"search": "alpha", "orderBy": "order_ref", "order": "asc"})
    assert [o["order_ref"] for o in searched.json()["data"]] == ["A-1", "C-3"]

    # Filters combine with search
    narrowed = client.get("/api/orders", params={"search": "alpha", "ship_status": "Shipped"})
    assert [o["order_ref"] for o in narrowed.json()["data"]] == ["C-3"]


def test_search_treats_wildcards_literally(client, create_order):
    create_order(order_ref="W-1", buyer="100% Cotton Co")
    create_order(order_ref="W-2", buyer="Alpha Trading")
    create_order(order_ref="W_3", buyer="Beta Imports")

    percent = client.get("/api/orders", params={"search": "%"}).json()
    assert [o["order_ref"] for o in percent["data"]] == ["W-1"]

    underscore = client.get("/api/orders", params={"search": "W_"}).json()
    assert [o["order_ref"] for o in underscore["data"]] == ["W_3"]


def test_list_orders_rejects_unknown_sort_column(client):
    response = client.get("/api/orders", params={"orderBy": "password"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "Invalid sort column" in response.json()["error"]


def test_patch_updates_fields_and_recomputes_totals(client, create_order):
    order = create_order()

    response = client.patch(
        "/api/orders",
        json={
            "id": order["id"],
            "ship_status": "Ready to Ship",
            "products": [{"title": "Vase", "quantity": 2, "price": 60}],
        },
    )
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["ship_status"] == "Ready to Ship"
    assert body["total_qty"] == 2
    assert body["total_topay"] == 120.0
    assert body["buyer"] == "Harbor Goods"


def test_patch_requires_existing_id(client):
    assert client.patch("/api/orders", json={"notes": "x"}).status_code == status.HTTP_400_BAD_REQUEST
    assert client.patch("/api/orders", json={"id": 404, "notes": "x"}).status_code == status.HTTP_404_NOT_FOUND


def test_patch_rejects_null_for_required_fields(client, create_order):
    order = create_order()

    response = client.patch("/api/orders", json={"id": order["id"], "buyer": None, "total_topay": None})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"error": "Fields cannot be null: buyer, total_topay"}

    # Nullable columns can still be cleared
    cleared = client.patch("/api/orders", json={"id": order["id"], "notes": None, "email": None})
    assert cleared.status_code == status.HTTP_200_OK
    assert client.get(f"/api/orders/{order['id']}").json()["buyer"] == "Harbor Goods"


def test_patch_linking_buyer_keeps_existing_details(client, create_order):
    buyer = client.post(
        "/api/buyers",
        json={"name": "Nordic Home", "email": "orders@nordic.example", "city": "Oslo"},
    ).json()
    order = create_order(buyer="Harbor Goods", email="buyer@harbor.example")

    response = client.patch("/api/orders", json={"id": order["id"], "buyer_id": buyer["id"]})
    body = response.json()
    assert body["buyer_id"] == buyer["id"]
    assert body["buyer"] == "Harbor Goods"
    assert body["email"] == "buyer@harbor.example"
    assert body["city"] == "Oslo"


def test_patch_rejects_payments_above_total(client, create_order):
    order = create_order(total_topay=100)
    response = client.patch("/api/orders", json={"id": order["id"], "payment_1": 150})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "exceeds" in response.json()["error"]


def test_delete_order(client, create_order):
    order = create_order()

    assert client.delete("/api/orders").status_code == status.HTTP_400_BAD_REQUEST
    response = client.delete("/api/orders", params={"id": order["id"]})
    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert client.get(f"/api/orders/{order['id']}").status_code == status.HTTP_404_NOT_FOUND
    assert client.delete("/api/orders", params={"id": order["id"]}).status_code == status.HTTP_404_NOT_FOUND


def test_shipping_summary_splits_ready_orders_by_payment(client, create_order):
    create_order(order_ref="P-1", ship_status="In Production")
    create_order(order_ref="R-1", ship_status="Ready to Ship")
    create_order(order_ref="R-2", ship_status="Ready to Ship", payment_1=1000)
    create_order(order_ref="S-1", ship_status="Shipped", payment_1=1000)

    summary = client.get("/api/orders/shipping-summary").json()
    assert summary == {"inProduction": 1, "awaitingPayment": 1, "readyToDispatch": 1, "shipped": 1}


def test_calculate_order_totals():
    totals = calculate_order_totals(
        [{"quantity": 3, "price": "10.00"}, {"quantity": "2", "price": 5}],
        shipping=7.5,
        vat=2.5,
    )
    assert totals == {
        "total_qty": 5,
        "value": 40.0,
        "total_amt": 50.0,
        "total_topay": 50.0,
        "deposit_25": 12.5,
    }


def test_generate_order_ref_format():
    ref = generate_order_ref()
    assert ref.startswith("ORD-")
    assert len(ref) == 10
    assert ref[4:].isdigit()
