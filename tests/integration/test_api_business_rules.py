# 2024-06-07 is a Friday and 2024-06-09 a Sunday.


def test_hours_need_no_identity(client):
    body = client.get("/business-rules/hours?at=2024-06-09T10:00:00").json()
    assert body["is_open"] is False
    assert body["next_opening"] == "Segunda-feira às 08:00"
    assert body["hours_text"].startswith("Segunda a sexta")


def test_order_summary_fee(client):
    body = client.get(
        "/business-rules/order-summary?delivery_type=delivery_gurupi&total_value=80&at=2024-06-07T10:00:00"
    ).json()
    assert body["total_fee"] == 10.0
    assert body["can_proceed"] is True
    assert body["business_hours"]["is_open"] is True

    outside = client.get(
        "/business-rules/order-summary?delivery_type=delivery_outside&package_count=60&at=2024-06-07T10:00:00"
    ).json()
    assert outside["total_fee"] == 0.0

    assert client.get("/business-rules/order-summary?delivery_type=drone").status_code == 400


def test_pickup_on_sunday_is_invalid(client):
    body = client.get(
        "/business-rules/dates?delivery_type=pickup&selected_date=2024-06-09&at=2024-06-07T10:00:00"
    ).json()
    assert body["min_date"] == "2024-06-07"
    assert body["max_date"] == "2024-07-07"
    assert body["is_valid"] is False
    assert "A loja não abre aos domingos." in body["warnings"]
    assert client.get("/business-rules/dates?delivery_type=drone").status_code == 400
