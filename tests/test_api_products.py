from __future__ import annotations

API = "/api/v1"


def test_list_and_get_product(client, make_product):
    make_product("Saga Vol. 1", id="B000000001", minutes=1)
    make_product("Saga Vol. 2", id="B000000002", minutes=2)

    response = client.get(f"{API}/products", params={"limit": 1})
    body = response.json()
    assert response.status_code == 200
    assert body["message"] == "Retrieved 1 products"
    assert body["data"]["data"][0]["id"] == "B000000002"
    assert body["data"]["pagination"]["totalPages"] == 2

    response = client.get(f"{API}/products/B000000001")
    assert response.json()["message"] == "Product retrieved successfully"
    assert response.json()["data"]["title"] == "Saga Vol. 1"

    response = client.get(f"{API}/products/B404")
    assert response.status_code == 404
    assert response.json()["error"] == "Product not found"


def test_pagination_and_price_validation(client):
    checks = [
        ({"page": 0}, "Page must be greater than 0"),
        ({"limit": 101}, "Limit must be between 1 and 100"),
        ({"minPrice": -1}, "Min price must be greater than or equal to 0"),
        ({"maxPrice": -1}, "Max price must be greater than or equal to 0"),
        ({"minPrice": 10, "maxPrice": 5}, "Min price cannot be greater than max price"),
    ]
    for params, message in checks:
        response = client.get(f"{API}/products/search", params=params)
        assert response.status_code == 400, params
        assert response.json()["error"] == message

    response = client.get(f"{API}/products/search", params={"minPrice": "cheap"})
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_search_endpoint(client, make_product):
    make_product("Batman Ano Um", price=25, minutes=1)
    make_product("O Retorno do Batman", price=40, minutes=2)
    make_product("Sandman", price=30, minutes=3)

    response = client.get(f"{API}/products/search", params={"q": "batman", "maxPrice": 30})
    body = response.json()
    assert body["message"] == "Found 1 products"
    assert [p["title"] for p in body["data"]["data"]] == ["Batman Ano Um"]


def test_promotions_and_related_endpoints(client, auth, make_product):
    _, headers = auth
    make_product("Half Off", price=25, full_price=50, minutes=1, publisher="Panini", contributors=["Neil Gaiman"])
    make_product("No Discount", price=50, full_price=50, minutes=2)

    response = client.get(f"{API}/products/promotions", params={"sortBy": "price-low"})
    assert [p["title"] for p in response.json()["data"]["data"]] == ["Half Off"]

    response = client.get(f"{API}/products/promotions", params={"sortBy": "cheapest"})
    assert response.status_code == 400

    response = client.get(f"{API}/products/promotions", params={"onlyMyProducts": "true"})
    assert response.status_code == 401

    response = client.get(f"{API}/products/promotions", params={"onlyMyProducts": "true"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["data"]["data"] == []

    response = client.get(f"{API}/products/filter-options")
    assert response.json()["data"]["publishers"] == ["Panini"]
    assert response.json()["data"]["contributors"] == ["Neil Gaiman"]

    response = client.get(f"{API}/products/latest-promotions")
    assert [p["title"] for p in response.json()["data"]] == ["Half Off"]


def test_monitoring_endpoints(client, auth, make_product):
    _, headers = auth
    product = make_product("Saga")
    url = f"{API}/products/{product.id}"

    assert client.get(f"{url}/monitoring-status", headers=headers).json()["data"] == {"isMonitoring": False}
    response = client.post(f"{url}/monitor", json={"desired_price": 19.9}, headers=headers)
    assert response.status_code == 201
    assert client.get(f"{url}/monitoring-status", headers=headers).json()["data"] == {"isMonitoring": True}

    response = client.post(f"{url}/monitor", json={}, headers=headers)
    assert response.status_code == 409
    assert response.json()["error"] == "Você já está monitorando este produto"

    response = client.post(f"{API}/products/B404/monitor", json={}, headers=headers)
    assert response.status_code == 404

    response = client.post(f"{url}/monitor", json={"desired_price": "barato"}, headers=headers)
    assert response.status_code == 400

    assert client.delete(f"{url}/monitor", headers=headers).status_code == 200
    assert client.delete(f"{url}/monitor", headers=headers).status_code == 200
    assert client.get(f"{url}/monitoring-status").status_code == 401


def test_stats_endpoint(client, make_product):
    product = make_product("Saga")
    response = client.get(f"{API}/products/{product.id}/stats", params={"period": 7})
    assert response.status_code == 200
    assert response.json()["data"] == []
    assert client.get(f"{API}/products/{product.id}/stats", params={"period": 0}).status_code == 400


def test_cache_endpoints(client, auth, make_product):
    _, headers = auth
    make_product("Saga")
    client.get(f"{API}/products")

    assert client.get(f"{API}/products/cache/stats").status_code == 401
    response = client.get(f"{API}/products/cache/stats", headers=headers)
    assert response.json()["message"] == "Cache statistics retrieved"
    assert response.json()["data"] == {"size": 1, "keys": ["list:1:20"]}

    response = client.delete(f"{API}/products/cache", params={"key": "list:1:20"}, headers=headers)
    assert response.json()["message"] == "Cache cleared for key: list:1:20"
    response = client.delete(f"{API}/products/cache", headers=headers)
    assert response.json()["message"] == "All cache cleared"


def test_product_actions_endpoints(client, auth):
    _, headers = auth
    response = client.post(
        f"{API}/products/add",
        json={"url": "https://www.amazon.com.br/dp/B0ABCDEFGH"},
        headers=headers,
    )
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["action_id"].startswith("add-")
    assert data["estimated_time"] == "O produto será analisado em até 5 minutos"

    response = client.post(f"{API}/products/add", json={}, headers=headers)
    assert response.json()["error"] == "URL é obrigatória"
    assert client.post(f"{API}/products/add", json={"url": "https://amzn.to/x"}).status_code == 401

    checks = [
        ({"urls": "https://amzn.to/x"}, "URLs deve ser um array"),
        ({"urls": []}, "Lista de URLs não pode estar vazia"),
        ({"urls": ["https://amzn.to/x"] * 11}, "Máximo de 10 URLs por vez"),
        ({"urls": ["https://amzn.to/x", 5]}, "Todas as URLs devem ser strings válidas"),
    ]
    for payload, message in checks:
        response = client.post(f"{API}/products/add-multiple", json=payload, headers=headers)
        assert response.status_code == 400
        assert response.json()["error"] == message

    response = client.post(
        f"{API}/products/add-multiple",
        json={"urls": ["https://amzn.to/x", "https://example.com"]},
        headers=headers,
    )
    assert response.status_code == 201
    assert response.json()["data"]["failed_urls"] == ["https://example.com"]

    response = client.post(f"{API}/products/validate-url", json={"url": "https://example.com"})
    assert response.status_code == 200
    assert response.json()["data"] == {"valid": False, "message": "URL não é da Amazon"}
