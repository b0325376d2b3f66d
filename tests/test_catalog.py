from conftest import auth, run, seed_product, seed_user


def _admin_setup(client, db):
    run(seed_user(db, "admin1", is_admin=True))
    run(seed_user(db, "seller1"))
    admin = auth("admin1", True)

    r = client.post("/api/categories", json={"name": "Electronics"}, headers=admin)
    assert r.status_code == 200
    category_id = r.json()["category"]["id"]

    r = client.post("/api/categories", json={"name": "Fans", "parent_id": category_id}, headers=admin)
    sub_id = r.json()["category"]["id"]
    return admin, category_id, sub_id


def test_category_tree_and_commissions(client, db):
    admin, category_id, sub_id = _admin_setup(client, db)
    assert category_id == "electronics"

    tree = client.get("/api/categories").json()
    assert tree == [{
        "id": "electronics",
        "name": "Electronics",
        "sub_categories": [{"id": sub_id, "name": "Fans", "parent_id": "electronics"}],
    }]

    r = client.put(
        "/api/commissions",
        json={"commissions": [{"category_id": "electronics", "percentage": 8}]},
        headers=admin,
    )
    assert r.status_code == 200
    assert client.get("/api/commissions").json() == [
        {"category_id": "electronics", "category_name": "Electronics", "percentage": 8.0}
    ]

    r = client.put(
        "/api/commissions",
        json={"commissions": [{"category_id": "electronics", "percentage": 120}]},
        headers=admin,
    )
    assert r.status_code == 400

    # the category still has a sub-category
    assert client.delete("/api/categories/electronics", headers=admin).status_code == 400


def test_product_review_flow_and_listing(client, db):
    admin, category_id, sub_id = _admin_setup(client, db)
    client.put(
        "/api/commissions",
        json={"commissions": [{"category_id": category_id, "percentage": 8}]},
        headers=admin,
    )

    r = client.post("/api/products", json={
        "name": "Table Fan",
        "price": 1500,
        "stock": 3,
        "category_id": category_id,
        "sub_category_id": sub_id,
    }, headers=auth("seller1"))
    assert r.status_code == 200
    product = r.json()["product"]
    assert product["status"] == "pending"
    assert product["commission_percent"] == 8
    product_id = product["id"]

    assert client.get("/api/products").json() == []

    r = client.post(f"/api/admin/products/{product_id}/review", json={"action": "approve"}, headers=auth("seller1"))
    assert r.status_code == 403

    r = client.post(f"/api/admin/products/{product_id}/review", json={"action": "approve"}, headers=admin)
    assert r.json()["status"] == "approved"
    assert [p["id"] for p in client.get("/api/products").json()] == [product_id]

    # restocking keeps approval, content edits go back to review
    r = client.put(f"/api/products/{product_id}", json={"stock": 0}, headers=auth("seller1"))
    assert r.json()["product"]["status"] == "approved"
    assert client.get("/api/products").json() == []

    mine = client.get("/api/products/mine", headers=auth("seller1")).json()
    assert mine[0]["is_sold_out"] is True

    r = client.put(f"/api/products/{product_id}", json={"name": "Ceiling Fan"}, headers=auth("seller1"))
    assert r.json()["product"]["status"] == "pending"

    r = client.put(f"/api/products/{product_id}", json={"status": "approved"}, headers=auth("seller1"))
    assert r.status_code == 403

    # in use by a product now
    assert client.delete(f"/api/categories/{sub_id}", headers=admin).status_code == 400


def test_unknown_category_rejected(client, db):
    run(seed_user(db, "seller1"))
    r = client.post("/api/products", json={
        "name": "Mystery",
        "price": 10,
        "stock": 1,
        "category_id": "nowhere",
    }, headers=auth("seller1"))
    assert r.status_code == 400


def test_update_rejects_null_for_required_fields(client, db):
    run(seed_user(db, "seller1"))
    run(seed_product(db, "prod-a", price=300, stock=4))
    seller = auth("seller1")

    r = client.put("/api/products/prod-a", json={"stock": None}, headers=seller)
    assert r.status_code == 400
    assert r.json()["error"] == "Fields cannot be null: stock"

    r = client.put("/api/products/prod-a", json={"category_id": None, "price": None}, headers=seller)
    assert r.status_code == 400
    assert r.json()["error"] == "Fields cannot be null: category_id, price"

    stored = run(db.products.find_one({"_id": "prod-a"}))
    assert stored["stock"] == 4
    assert stored["price"] == 300
    assert stored["category_id"] == "electronics"
    assert stored["status"] == "approved"

    # optional fields can still be cleared
    r = client.put("/api/products/prod-a", json={"description": None, "weight_kg": None}, headers=seller)
    assert r.status_code == 200
    assert r.json()["product"]["stock"] == 4


def test_listing_filters_and_sort(client, db):
    run(seed_product(db, "prod-a", price=300))
    run(seed_product(db, "prod-b", price=100, category_id="books"))
    run(seed_product(db, "prod-c", price=200))
    run(seed_product(db, "prod-d", price=50, status="rejected"))

    r = client.get("/api/products", params={"sort_by": "price_asc"})
    assert [p["id"] for p in r.json()] == ["prod-b", "prod-c", "prod-a"]

    r = client.get("/api/products", params={"category_id": "electronics", "max_price": 250})
    assert [p["id"] for p in r.json()] == ["prod-c"]

    r = client.get("/api/products", params={"search": "prod a"})
    assert [p["id"] for p in r.json()] == ["prod-a"]


def test_only_owner_or_admin_deletes_product(client, db):
    run(seed_user(db, "seller1"))
    run(seed_user(db, "seller2"))
    run(seed_product(db, "prod-a"))

    assert client.delete("/api/products/prod-a", headers=auth("seller2")).status_code == 403
    assert client.delete("/api/products/prod-a", headers=auth("seller1")).status_code == 200
    assert client.get("/api/products/prod-a").status_code == 404


def test_admin_dashboard(client, db):
    run(seed_user(db, "admin1", is_admin=True))
    run(seed_product(db, "prod-a"))
    run(db.orders.insert_one({
        "_id": "ORD-1",
        "user_id": "buyer1",
        "status": "delivered",
        "payment_status": "paid",
        "total_amount": 330,
        "items": [{
            "product_id": "prod-a", "seller_id": "seller1", "price": 100,
            "quantity": 2, "commission_percent": 8,
        }],
    }))
    run(db.withdrawal_requests.insert_one(
        {"_id": "WR-1", "user_id": "seller1", "amount": 10, "status": "approved"}
    ))

    r = client.get("/api/admin/dashboard", headers=auth("admin1", True))
    assert r.status_code == 200
    stats = r.json()
    assert stats["total_orders"] == 1
    assert stats["delivered_orders"] == 1
    assert stats["approved_products"] == 1
    assert stats["total_revenue"] == 330
    assert stats["commission_earned"] == 16
    assert stats["cash_in_hand"] == 6
