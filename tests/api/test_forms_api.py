from fastapi.testclient import TestClient


def test_validate_valid_form(client: TestClient, valid_form):
    response = client.post("/api/v1/forms/validate", json=valid_form)

    assert response.status_code == 200
    data = response.json()
    assert data["valid"] is True
    assert data["errors"] == []
    assert data["data"]["formType"] == "UAD_3_6"


def test_validate_invalid_form(client: TestClient, valid_form):
    valid_form["formType"] = "bogus"

    response = client.post("/api/v1/forms/validate", json=valid_form)

    assert response.status_code == 200
    data = response.json()
    assert data["valid"] is False
    assert data["data"] is None
    assert data["errors"] == ["formType - Form type must be one of: UAD_3_6, UAD_2_6, BPO, Other"]


def test_diagnostics(client: TestClient, make_form):
    form = make_form({"id": "choice", "field_type": "select", "label": "Choice", "options": []})

    response = client.post("/api/v1/forms/diagnostics", json=form)

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "failed"
    assert data["fieldCount"] == 1
    render_errors = [e for e in data["errors"] if e["type"] == "RenderError"]
    assert render_errors[0]["fieldId"] == "choice"
    assert render_errors[0]["sectionTitle"] == "Property"


def test_visibility(client: TestClient, valid_form):
    response = client.post(
        "/api/v1/forms/visibility",
        json={"form": valid_form, "values": {"property_type": "sfr"}},
    )

    assert response.status_code == 200
    assert "hoa_fee" not in response.json()["visibleFieldIds"]


def test_calculate(client: TestClient, valid_form):
    response = client.post(
        "/api/v1/forms/calculate",
        json={"form": valid_form, "values": {"price": "$300,000", "gla": "2000"}},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["calculated"] == {"price_per_sqft": 150.0}
    assert data["values"]["price_per_sqft"] == 150.0
    assert data["values"]["price"] == "$300,000"


def test_calculate_applies_carryforward(client: TestClient, make_form):
    form = make_form(
        {"id": "subject_gla", "field_type": "number", "label": "Subject GLA"},
        {
            "id": "report_gla",
            "field_type": "number",
            "label": "Report GLA",
            "carryforward_config": {"enabled": True, "source": "subject_gla", "mode": "mirror"},
        },
    )

    response = client.post("/api/v1/forms/calculate", json={"form": form, "values": {"subject_gla": 1800}})

    assert response.json()["values"]["report_gla"] == 1800


def test_validate_submission(client: TestClient, valid_form):
    response = client.post(
        "/api/v1/forms/submissions/validate",
        json={"form": valid_form, "values": {"property_type": "condo", "hoa_fee": -1}},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["valid"] is False
    assert [(e["fieldId"], e["rule"]) for e in data["errors"]] == [("address", "required"), ("hoa_fee", "min")]


def test_request_validation_error(client: TestClient):
    response = client.post("/api/v1/forms/visibility", json={"values": {}})

    assert response.status_code == 422
