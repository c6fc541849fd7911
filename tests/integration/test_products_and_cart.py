from decimal import Decimal

from conftest import create_product


def test_admin_creates_and_public_lists_products(client, admin_headers):
    first = create_product(client, admin_headers, name="Training Tee")
    second = create_product(client, admin_headers, name="Gym Shorts", discount=10, price="500.00", bestseller=True)

    listed = client.get("/products")
    bestsellers = client.get("/products", params={"bestseller": True})
    single = client.get(f"/products/{first['id']}")

    assert listed.status_code == 200
    assert {product["id"] for product in listed.json()} == {first["id"], second["id"]}
    assert [product["id"] for product in bestsellers.json()] == [second["id"]]
    assert Decimal(second["effective_price"]) == Decimal("450")
    assert single.json()["name"] == "Training Tee"


def test_product_sizes_are_cleaned(client, admin_headers):
    product = create_product(client, admin_headers, sizes=[" M", "M", "L ", ""])
    assert product["sizes"] == ["M", "L"]


def test_product_write_requires_admin(client, customer_headers):
    payload = {
        "name": "Tee",
        "description": "d",
        "price": "10.00",
        "category": "Men",
        "sub_category": "Topwear",
        "sizes": ["M"],
    }
    assert client.post("/products", json=payload).status_code == 401
    assert client.post("/products", headers=customer_headers, json=payload).status_code == 403


def test_update_and_delete_product(client, admin_headers):
    product = create_product(client, admin_headers)

    updated = client.patch(f"/products/{product['id']}", headers=admin_headers, json={"discount": 20})
    deleted = client.delete(f"/products/{product['id']}", headers=admin_headers)

    assert updated.status_code == 200
    assert updated.json()["discount"] == 20
    assert updated.json()["name"] == product["name"]
    assert deleted.status_code == 204
    assert client.get(f"/products/{product['id']}").status_code == 404


def test_upload_media_appends_urls(client, admin_headers, media_uploader):
    product = create_product(client, admin_headers)

    response = client.post(
        f"/products/{product['id']}/media",
        headers=admin_headers,
        files=[("files", ("front.jpg", b"jpeg-bytes", "image/jpeg")), ("files", ("back.jpg", b"jpeg", "image/jpeg"))],
    )

    assert response.status_code == 200
    assert response.json()["image_urls"] == [
        "https://cdn.example.com/image/front.jpg",
        "https://cdn.example.com/image/back.jpg",
    ]
    assert media_uploader.uploads == [("front.jpg", "image"), ("back.jpg", "image")]


def test_upload_media_failure_is_bad_gateway(client, admin_headers, media_uploader):
    product = create_product(client, admin_headers)
    media_uploader.fail = True

    response = client.post(
        f"/products/{product['id']}/media?kind=video",
        headers=admin_headers,
        files=[("files", ("clip.mp4", b"mp4", "video/mp4"))],
    )

    assert response.status_code == 502
    assert client.get(f"/products/{product['id']}").json()["video_urls"] == []


def test_cart_add_update_and_clear(client, admin_headers, customer_headers):
    product = create_product(client, admin_headers)
    key = str(product["id"])

    client.post("/cart/items", headers=customer_headers, json={"product_id": product["id"], "size": "M"})
    added = client.post("/cart/items", headers=customer_headers, json={"product_id": product["id"], "size": "M"})
    assert added.json()["cart_data"] == {key: {"M": 2}}

    updated = client.put(
        "/cart/items",
        headers=customer_headers,
        json={"product_id": product["id"], "size": "L", "quantity": 3},
    )
    assert updated.json()["cart_data"] == {key: {"M": 2, "L": 3}}

    removed = client.put(
        "/cart/items",
        headers=customer_headers,
        json={"product_id": product["id"], "size": "M", "quantity": 0},
    )
    assert removed.json()["cart_data"] == {key: {"L": 3}}
    assert client.get("/cart", headers=customer_headers).json()["cart_data"] == {key: {"L": 3}}

    cleared = client.delete("/cart", headers=customer_headers)
    assert cleared.json()["cart_data"] == {}


def test_cart_rejects_unknown_size_and_product(client, admin_headers, customer_headers):
    product = create_product(client, admin_headers)

    bad_size = client.post("/cart/items", headers=customer_headers, json={"product_id": product["id"], "size": "XS"})
    missing = client.post("/cart/items", headers=customer_headers, json={"product_id": 9999, "size": "M"})

    assert bad_size.status_code == 400
    assert missing.status_code == 404
    assert client.get("/cart", headers=customer_headers).json()["cart_data"] == {}
