"""HTTP tests through the FastAPI app."""

from datetime import timedelta, date

from app.utils.datetime_utils import utc_now


def _discount_payload(**overrides):
    now = utc_now()
    data = {
        "name": "Ten percent off",
        "code": "save10",
        "discount_type": "percentage",
        "percentage": "10",
        "start_date": (now - timedelta(days=1)).isoformat(),
        "end_date": (now + timedelta(days=1)).isoformat(),
    }
    data.update(overrides)
    return data


def _receipt_payload(**overrides):
    data = {
        "table_number": 2,
        "items": [
            {"item_id": 1, "item_name": "Pho", "quantity": 2, "unit_price": "35.00"},
            {"item_id": 2, "item_name": "Iced tea", "quantity": 1, "unit_price": "30.00"},
        ],
    }
    data.update(overrides)
    return data


async def _create_receipt(client, **overrides):
    resp = await client.post("/receipts/", json=_receipt_payload(**overrides))
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]


async def test_health(client):
    resp = await client.get("/")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


async def test_discount_flow(client):
    created = await client.post("/discounts/", json=_discount_payload(), headers={"X-Actor-Name": "Ana"})
    assert created.status_code == 200, created.text
    body = created.json()
    assert body["success"] is True
    assert body["data"]["code"] == "SAVE10"
    discount_id = body["data"]["id"]

    receipt = await _create_receipt(client)
    assert receipt["subtotal"] == "100.00"
    assert receipt["order_status"] == "pending"

    applied = await client.post("/discounts/apply", json={"code": "Save10", "receipt_id": receipt["id"]})
    assert applied.status_code == 200, applied.text
    data = applied.json()["data"]
    assert data["discount_applied"]["code"] == "SAVE10"
    assert data["discount_applied"]["type"] == "percentage"
    assert data["discount_applied"]["discount_amount"] == "10.00"
    assert data["subtotal"] == "100.00"
    assert data["total_discount"] == "10.00"
    assert data["new_total"] == "90.00"

    again = await client.post("/discounts/apply", json={"code": "SAVE10", "receipt_id": receipt["id"]})
    assert again.status_code == 409
    assert again.json()["error_code"] == "DISCOUNT_ALREADY_APPLIED"

    status = await client.get(f"/discounts/{discount_id}/status")
    assert status.json()["data"]["usage_count"] == 1

    detail = await client.get(f"/receipts/{receipt['id']}")
    assert detail.json()["data"]["total"] == "90.00"

    report = await client.get(
        "/reports/discounts/usage",
        params={"start_date": str(date.today() - timedelta(days=1))},
    )
    assert report.status_code == 200
    (row,) = report.json()["data"]["items"]
    assert row["code"] == "SAVE10"
    assert row["times_used"] == 1
    assert row["total_discount_amount"] == "10.00"
    assert row["total_revenue"] == "90.00"
    assert row["average_order_value"] == "90.00"


async def test_ineligible_code_is_400_with_reason(client):
    receipt = await _create_receipt(client)
    resp = await client.post("/discounts/apply", json={"code": "MISSING", "receipt_id": receipt["id"]})
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["error_code"] == "DISCOUNT_NOT_ELIGIBLE"
    assert body["details"] == {"reason": "unknown_code"}


async def test_validation_error_envelope(client):
    resp = await client.post("/receipts/", json={"items": []})
    assert resp.status_code == 422
    assert resp.json()["error_code"] == "VALIDATION_ERROR"


async def test_item_status_flow(client):
    receipt = await _create_receipt(client)
    first, second = (i["id"] for i in receipt["items"])
    base = f"/receipts/{receipt['id']}/items"

    resp = await client.put(f"{base}/{first}/status", json={"status": "preparing"})
    assert resp.status_code == 200
    assert resp.json()["data"]["order_status"] == "preparing"

    resp = await client.put(f"{base}/{first}/status", json={"status": "preparing"})
    assert resp.json()["data"]["changed"] is False

    resp = await client.put(f"{base}/{first}/status", json={"status": "pending"})
    assert resp.status_code == 400
    assert resp.json()["error_code"] == "ITEM_INVALID_TRANSITION"

    pending = await client.get("/kitchen/pending")
    assert {p["id"] for p in pending.json()["data"]} == {first, second}

    for item_id in (first, second):
        await client.put(f"{base}/{item_id}/status", json={"status": "done"})

    detail = await client.get(f"/receipts/{receipt['id']}")
    assert detail.json()["data"]["order_status"] == "done"

    by_table = await client.get("/kitchen/by-table")
    assert by_table.json()["data"] == []

    done = await client.put(f"/receipts/{receipt['id']}/complete")
    assert done.status_code == 200
    assert done.json()["data"]["order_status"] == "completed"

    twice = await client.put(f"/receipts/{receipt['id']}/complete")
    assert twice.status_code == 409
    assert twice.json()["error_code"] == "RECEIPT_INVALID_STATE"


async def test_unknown_receipt_is_404(client):
    resp = await client.get("/receipts/999")
    assert resp.status_code == 404
    assert resp.json()["error_code"] == "RECEIPT_NOT_FOUND"


async def test_toggle_and_delete(client):
    created = await client.post("/discounts/", json=_discount_payload())
    discount_id = created.json()["data"]["id"]

    toggled = await client.patch(f"/discounts/{discount_id}/toggle-active")
    assert toggled.json()["data"]["status"] == "inactive"

    deleted = await client.delete(f"/discounts/{discount_id}")
    assert deleted.status_code == 200
    assert (await client.get(f"/discounts/{discount_id}")).status_code == 404


async def test_report_rejects_reversed_range(client):
    resp = await client.get(
        "/reports/discounts/usage",
        params={"start_date": "2026-10-10", "end_date": "2026-10-01"},
    )
    assert resp.status_code == 400


async def test_activity_log_endpoints(client):
    await client.post("/discounts/", json=_discount_payload(), headers={"X-Actor-Name": "Ana"})
    receipt = await _create_receipt(client)
    await client.post(
        "/discounts/apply",
        json={"code": "SAVE10", "receipt_id": receipt["id"]},
        headers={"X-Actor-Name": "Bao"},
    )

    everything = await client.get("/activities/", params={"page_size": 2})
    assert everything.status_code == 200, everything.text
    data = everything.json()["data"]
    assert data["total"] == 3
    assert len(data["items"]) == 2

    applied = await client.get("/activities/", params={"code": "APPLY_DISCOUNT"})
    items = applied.json()["data"]["items"]
    assert [a["actor_name"] for a in items] == ["Bao"]
    assert items[0]["receipt_id"] == receipt["id"]

    for_receipt = await client.get(f"/activities/receipts/{receipt['id']}")
    assert {a["code"] for a in for_receipt.json()["data"]["items"]} == {
        "CREATE_RECEIPT",
        "APPLY_DISCOUNT",
    }

    bad_sort = await client.get("/activities/", params={"sort_by": "message"})
    assert bad_sort.status_code == 400


async def test_update_rejects_null_for_required_fields(client):
    created = await client.post("/discounts/", json=_discount_payload())
    discount_id = created.json()["data"]["id"]

    for field in ("name", "code", "discount_type", "start_date", "end_date"):
        resp = await client.put(f"/discounts/{discount_id}", json={field: None})
        assert resp.status_code == 422, field
        assert resp.json()["error_code"] == "VALIDATION_ERROR"

    # nullable fields may still be cleared
    cleared = await client.put(f"/discounts/{discount_id}", json={"max_receipts": None, "note": None})
    assert cleared.status_code == 200, cleared.text


async def test_money_fields_reject_extra_decimal_places(client):
    resp = await client.post("/discounts/", json=_discount_payload(percentage="12.345"))
    assert resp.status_code == 422

    resp = await client.post(
        "/discounts/",
        json=_discount_payload(discount_type="amount", percentage=None, amount="5.001"),
    )
    assert resp.status_code == 422

    ok = await client.post("/discounts/", json=_discount_payload(percentage="12.50"))
    assert ok.status_code == 200, ok.text


async def test_deleted_code_can_be_reused(client):
    created = await client.post("/discounts/", json=_discount_payload())
    await client.delete(f"/discounts/{created.json()['data']['id']}")

    again = await client.post("/discounts/", json=_discount_payload())
    assert again.status_code == 200, again.text

    clash = await client.post("/discounts/", json=_discount_payload(name="Other"))
    assert clash.status_code == 409
    assert clash.json()["error_code"] == "DISCOUNT_CODE_EXISTS"
