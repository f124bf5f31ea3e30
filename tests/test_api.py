# tests/test_api.py
#
# End-to-end checks through the FastAPI app: wire format (camelCase)
# and the mapping of domain errors to status codes.

from decimal import Decimal

import settings
from ledger.routes_import import SAMPLE_CSV, SAMPLE_QIF


def _create_account(client, name, type_):
    resp = client.post("/api/accounts", json={"name": name, "type": type_})
    assert resp.status_code == 201, resp.text
    return resp.json()["id"]


def _setup_accounts(client):
    return {
        "checking": _create_account(client, "Checking", "asset_bank"),
        "groceries": _create_account(client, "Groceries", "expense"),
    }


def _post_transaction(client, ids, amount="100.00", **extra):
    body = {
        "date": "2024-12-01",
        "amount": amount,
        "description": "Weekly shop",
        "debitAccountId": ids["groceries"],
        "creditAccountId": ids["checking"],
    }
    body.update(extra)
    return client.post("/api/transactions", json=body)


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_accounts_endpoints(client):
    account_id = _create_account(client, "Checking", "asset_bank")

    resp = client.get(f"/api/accounts/{account_id}")
    body = resp.json()
    assert body["name"] == "Checking"
    assert Decimal(body["balance"]) == 0
    assert "createdAt" in body

    resp = client.put(f"/api/accounts/{account_id}", json={"description": "Main"})
    assert resp.json()["description"] == "Main"

    resp = client.delete(f"/api/accounts/{account_id}")
    assert resp.status_code == 200
    assert client.get("/api/accounts").json() == []
    assert len(client.get("/api/accounts", params={"includeInactive": "true"}).json()) == 1


def test_duplicate_account_is_400(client):
    _create_account(client, "Checking", "asset_bank")
    resp = client.post("/api/accounts", json={"name": "Checking", "type": "asset_bank"})
    assert resp.status_code == 400
    assert "already exists" in resp.json()["error"]


def test_categories_endpoints(client):
    resp = client.post("/api/categories", json={"name": "Food", "type": "expense", "color": "#00aa00"})
    assert resp.status_code == 201
    food_id = resp.json()["id"]

    resp = client.post("/api/categories", json={"name": "Takeout", "type": "expense", "parentId": food_id})
    assert resp.json()["parentId"] == food_id

    assert len(client.get("/api/categories", params={"type": "expense"}).json()) == 2
    assert client.get("/api/categories", params={"type": "income"}).json() == []
    assert client.get("/api/categories/999").status_code == 404


def test_transaction_lifecycle(client):
    ids = _setup_accounts(client)

    resp = _post_transaction(client, ids)
    assert resp.status_code == 201, resp.text
    tx = resp.json()
    assert tx["status"] == "pending"
    assert tx["debitAccountId"] == ids["groceries"]

    resp = client.get(f"/api/transactions/account/{ids['checking']}/balance")
    assert resp.json()["accountId"] == ids["checking"]
    assert Decimal(resp.json()["balance"]) == Decimal("-100")

    resp = client.put(f"/api/transactions/{tx['id']}", json={"amount": "80.00", "status": "cleared"})
    assert resp.status_code == 200, resp.text
    assert resp.json()["status"] == "cleared"
    balance = client.get(f"/api/transactions/account/{ids['groceries']}/balance").json()["balance"]
    assert Decimal(balance) == Decimal("80")

    resp = client.delete(f"/api/transactions/{tx['id']}")
    assert resp.status_code == 200
    assert client.get(f"/api/transactions/{tx['id']}").status_code == 404
    balance = client.get(f"/api/transactions/account/{ids['groceries']}/balance").json()["balance"]
    assert Decimal(balance) == 0


def test_list_transactions_with_pagination(client):
    ids = _setup_accounts(client)
    for day in ("2024-12-01", "2024-12-02", "2024-12-03"):
        _post_transaction(client, ids, date=day)

    resp = client.get("/api/transactions", params={"accountId": ids["checking"], "limit": 2})
    body = resp.json()
    assert [t["date"] for t in body["transactions"]] == ["2024-12-03", "2024-12-02"]
    assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "hasMore": True}


def test_error_status_codes(client):
    ids = _setup_accounts(client)

    resp = _post_transaction(client, ids, creditAccountId=ids["groceries"])
    assert resp.status_code == 400
    assert resp.json()["error"] == "Debit and credit accounts must be different"

    resp = _post_transaction(client, ids, creditAccountId=999)
    assert resp.status_code == 404

    resp = client.get("/api/transactions/999")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Transaction not found", "details": None}

    resp = client.post("/api/transactions", json={"description": "no amount"})
    assert resp.status_code == 422

    resp = client.get("/api/transactions/account/999/balance")
    assert resp.status_code == 404


def test_bulk_endpoints(client):
    ids = _setup_accounts(client)
    tx_ids = [_post_transaction(client, ids, amount=a).json()["id"] for a in ("10.00", "20.00", "30.00")]

    resp = client.post(
        "/api/transactions/bulk-update",
        json={"transactionIds": tx_ids[:2], "updates": {"amount": "1.00"}},
    )
    assert resp.status_code == 400
    assert "Bulk update cannot change amount" in resp.json()["error"]

    resp = client.post(
        "/api/transactions/bulk-update",
        json={"transactionIds": tx_ids[:2], "updates": {"status": "cleared"}},
    )
    assert resp.json()["updated"] == 2

    resp = client.post("/api/transactions/bulk-delete", json={"transactionIds": tx_ids[1:]})
    assert resp.json()["deleted"] == 2
    balance = client.get(f"/api/transactions/account/{ids['checking']}/balance").json()["balance"]
    assert Decimal(balance) == Decimal("-10")

    resp = client.post("/api/transactions/bulk-delete", json={"transactionIds": []})
    assert resp.status_code == 422


def test_qif_import_flow(client):
    checking = _create_account(client, "Checking", "asset_bank")

    resp = client.post(
        "/api/import/preview-qif",
        files={"file": ("sample.qif", SAMPLE_QIF.encode(), "text/plain")},
        data={"accountId": str(checking)},
    )
    assert resp.status_code == 200, resp.text
    preview = resp.json()
    assert preview["errors"] == []
    assert preview["candidates"][0]["isDebit"] is True
    assert preview["candidates"][0]["originalIndex"] == 0

    resp = client.post("/api/import/execute", json={"preview": preview, "accountId": checking})
    assert resp.status_code == 200, resp.text
    result = resp.json()
    assert result["successCount"] == 3
    assert result["errors"] == []
    assert result["importBatch"].startswith("import_")
    assert result["message"] == "Import completed: 3 transactions imported"

    balance = client.get(f"/api/transactions/account/{checking}/balance").json()["balance"]
    assert Decimal(balance) == Decimal("2425")


def test_csv_preview_endpoint(client):
    checking = _create_account(client, "Checking", "asset_bank")

    resp = client.post(
        "/api/import/preview-csv",
        files={"file": ("sample.csv", SAMPLE_CSV.encode(), "text/csv")},
        data={
            "accountId": str(checking),
            "dateField": "Date",
            "amountField": "Amount",
            "descriptionField": "Description",
            "categoryField": "Category",
        },
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert len(body["candidates"]) == 4
    assert body["mappings"]["referenceField"] is None
    assert body["candidates"][3]["amount"] == "75.50"


def test_upload_limits(client, monkeypatch):
    checking = _create_account(client, "Checking", "asset_bank")

    resp = client.post(
        "/api/import/preview-qif",
        files={"file": ("empty.qif", b"", "text/plain")},
        data={"accountId": str(checking)},
    )
    assert resp.status_code == 400

    monkeypatch.setattr(settings, "IMPORT_MAX_UPLOAD_BYTES", 16)
    resp = client.post(
        "/api/import/preview-qif",
        files={"file": ("big.qif", SAMPLE_QIF.encode(), "text/plain")},
        data={"accountId": str(checking)},
    )
    assert resp.status_code == 413


def test_samples_and_suggestions(client):
    resp = client.get("/api/import/sample-csv")
    assert resp.headers["content-type"].startswith("text/csv")
    assert resp.text.startswith("Date,Description,Amount,Category,Reference")

    resp = client.get("/api/import/sample-qif")
    assert resp.text.startswith("!Type:Bank")

    assert "Date" in client.get("/api/import/field-suggestions").json()["dateFields"]


def test_reconcile_endpoint(client):
    ids = _setup_accounts(client)
    _post_transaction(client, ids, amount="12.34")

    resp = client.get(f"/api/transactions/account/{ids['checking']}/reconcile")
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["accountId"] == ids["checking"]
    assert Decimal(body["storedBalance"]) == Decimal("-12.34")
    assert Decimal(body["computedBalance"]) == Decimal("-12.34")
    assert Decimal(body["difference"]) == 0
    assert body["inBalance"] is True

    assert client.get("/api/transactions/account/999/reconcile").status_code == 404


def test_report_endpoints(client):
    ids = _setup_accounts(client)
    _post_transaction(client, ids, amount="100.00")

    sheet = client.get("/api/reports/balance-sheet").json()
    assert sheet["assets"]["bank"][0]["name"] == "Checking"
    assert Decimal(sheet["assets"]["total"]) == Decimal("-100")
    assert sheet["liabilities"]["creditCard"] == []
    assert Decimal(sheet["equity"]["total"]) == Decimal("-100")

    resp = client.get("/api/reports/income-statement", params={"dateFrom": "2024-01-01", "dateTo": "2024-12-31"})
    assert resp.status_code == 200, resp.text
    statement = resp.json()
    assert statement["period"] == {"from": "2024-01-01", "to": "2024-12-31"}
    assert Decimal(statement["expenses"]["categories"]["Uncategorized"]) == Decimal("100")
    assert Decimal(statement["netIncome"]) == Decimal("-100")

    resp = client.get(
        "/api/reports/category-analysis",
        params={"type": "expense", "dateFrom": "2024-12-01", "dateTo": "2024-12-31"},
    )
    analysis = resp.json()
    assert analysis["type"] == "expense"
    assert analysis["categories"] == {}
    assert Decimal(analysis["uncategorized"]) == Decimal("100")

    trend = client.get("/api/reports/monthly-trend", params={"months": 3}).json()
    assert len(trend) == 3
    assert set(trend[0]) == {"month", "income", "expenses", "net"}


def test_report_errors(client):
    resp = client.get("/api/reports/category-analysis", params={"type": "transfer"})
    assert resp.status_code == 400

    resp = client.get("/api/reports/income-statement", params={"dateFrom": "2024-12-31", "dateTo": "2024-01-01"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "dateFrom must not be after dateTo"

    assert client.get("/api/reports/monthly-trend", params={"months": 0}).status_code == 422
