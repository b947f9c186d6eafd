from fastapi.testclient import TestClient


def test_prefill_fields(client: TestClient):
    response = client.post(
        "/api/v1/prefill",
        json={
            "contextKey": "prop-1",
            "fields": [
                {
                    "id": "email",
                    "field_type": "email",
                    "prefill_config": {"enabled": True, "source": "internal", "key": "user.email"},
                },
                {
                    "id": "color",
                    "field_type": "select",
                    "prefill_config": {"enabled": True, "source": "lookup", "key": "colors"},
                },
                {
                    "id": "role",
                    "field_type": "select",
                    "prefill_config": {"enabled": True, "source": "lookup", "key": "user_roles", "fallbackValue": "Appraiser"},
                },
                {"id": "plain", "field_type": "text"},
            ],
        },
    )

    assert response.status_code == 200
    results = response.json()["results"]
    assert list(results) == ["email", "color", "role"]
    assert results["email"]["value"] == "appraiser@example.com"
    assert results["color"]["value"] == ["red", "green"]
    # lookup tables from the config file replace the defaults
    assert results["role"]["source"] == "lookup_fallback"


def test_cache_stats_and_clear(client: TestClient):
    cache = client.app.state.prefill_service.cache
    cache.set("api__/users/:id_1", {"n": 1}, ttl=60)
    cache.set("api__/orders/:id_1", {"n": 2}, ttl=60)

    response = client.get("/api/v1/prefill/cache")
    assert response.status_code == 200
    assert response.json()["size"] == 2

    response = client.delete("/api/v1/prefill/cache", params={"pattern": "/users/"})
    assert response.json() == {"success": True, "removed": 1}

    response = client.delete("/api/v1/prefill/cache")
    assert response.json() == {"success": True, "removed": 1}
    assert client.get("/api/v1/prefill/cache").json() == {"size": 0, "keys": []}
