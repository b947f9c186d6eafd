from fastapi.testclient import TestClient


def test_get_settings(client: TestClient):
    response = client.get("/api/v1/settings")

    assert response.status_code == 200
    data = response.json()
    assert data["app_name"] == "Project Bobcat"
    assert data["email_notifications_enabled"] is False


def test_update_settings(client: TestClient):
    response = client.put(
        "/api/v1/settings",
        json={"company_name": "Acme Appraisals", "push_notifications_enabled": True},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["company_name"] == "Acme Appraisals"
    assert data["push_notifications_enabled"] is True

    stored = {r.key: r.value for r in client.app.state.settings_service.get_settings_from_store()}
    assert stored["push_notifications_enabled"] == "true"


def test_update_settings_failure(client: TestClient, monkeypatch):
    monkeypatch.setattr(client.app.state.settings_service, "update_settings", lambda updates: False)

    response = client.put("/api/v1/settings", json={"app_name": "x"})

    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to update settings"
