import asyncio
import pytest
from bson.decimal128 import Decimal128


@pytest.fixture
def parties(register):
    """Two registered users; returns (alice headers, alice, bob headers, bob)."""
    alice_headers, alice = register("alice")
    bob_headers, bob = register("bob")
    return alice_headers, alice, bob_headers, bob


def charge(client, headers, debtor_id, amount="50", description="Pizza"):
    return client.post(
        "/api/v1/debts",
        json={"debtor_id": debtor_id, "amount": amount, "description": description},
        headers=headers
    )


def test_create_debt_updates_both_totals(client, parties):
    alice_headers, alice, bob_headers, bob = parties

    response = charge(client, alice_headers, bob["id"])
    assert response.status_code == 201
    debt_id = response.json()["debt_id"]

    receivable = client.get("/api/v1/debts/receivable", headers=alice_headers).json()
    assert [debt["id"] for debt in receivable] == [debt_id]
    assert receivable[0]["amount"] == "50.00"
    assert receivable[0]["creditor_id"] == alice["id"]
    assert receivable[0]["paid"] is False

    payable = client.get("/api/v1/debts/payable", headers=bob_headers).json()
    assert [debt["id"] for debt in payable] == [debt_id]

    assert client.get("/api/v1/users/me", headers=alice_headers).json()["total_to_receive"] == "50.00"
    assert client.get("/api/v1/users/me", headers=bob_headers).json()["total_to_pay"] == "50.00"


@pytest.mark.parametrize("amount", ["0", "-5", "0.001", "abc", "1e30"])
def test_create_debt_rejects_bad_amount(client, parties, amount):
    alice_headers, _, _, bob = parties

    response = charge(client, alice_headers, bob["id"], amount=amount)

    assert response.status_code in (400, 422)
    assert client.get("/api/v1/debts/receivable", headers=alice_headers).json() == []


def test_create_debt_rejects_self_debt(client, parties):
    alice_headers, alice, _, _ = parties

    response = charge(client, alice_headers, alice["id"])

    assert response.status_code == 400
    assert response.json()["error"]["type"] == "InvalidArgument"


def test_create_debt_unknown_debtor(client, parties):
    alice_headers, _, _, _ = parties

    response = charge(client, alice_headers, "ghost")

    assert response.status_code == 404
    assert response.json()["error"]["type"] == "NotFound"


def test_pay_debt_twice(client, parties):
    alice_headers, _, bob_headers, bob = parties
    debt_id = charge(client, alice_headers, bob["id"], amount="12.34").json()["debt_id"]

    first = client.post(f"/api/v1/debts/{debt_id}/pay", headers=bob_headers)
    assert first.status_code == 200
    assert first.json() == {"debt_id": debt_id, "paid": True, "already_paid": False}

    second = client.post(f"/api/v1/debts/{debt_id}/pay", headers=alice_headers)
    assert second.status_code == 200
    assert second.json()["already_paid"] is True

    assert client.get("/api/v1/debts/payable", headers=bob_headers).json() == []
    assert client.get(f"/api/v1/debts/{debt_id}", headers=bob_headers).json()["paid"] is True
    assert client.get("/api/v1/users/me", headers=alice_headers).json()["total_to_receive"] == "0.00"
    assert client.get("/api/v1/users/me", headers=bob_headers).json()["total_to_pay"] == "0.00"


def test_outsiders_cannot_see_or_pay_debt(client, parties, register):
    alice_headers, _, _, bob = parties
    carol_headers, _ = register("carol")
    debt_id = charge(client, alice_headers, bob["id"]).json()["debt_id"]

    assert client.get(f"/api/v1/debts/{debt_id}", headers=carol_headers).status_code == 403
    assert client.post(f"/api/v1/debts/{debt_id}/pay", headers=carol_headers).status_code == 403
    assert client.get("/api/v1/debts/payable", headers=carol_headers).json() == []


def test_pay_unknown_debt(client, parties):
    alice_headers, _, _, _ = parties

    response = client.post("/api/v1/debts/ghost/pay", headers=alice_headers)

    assert response.status_code == 404


def test_summary_includes_counterparties(client, parties):
    alice_headers, alice, bob_headers, bob = parties
    charge(client, alice_headers, bob["id"], amount="10", description="Lunch")
    charge(client, bob_headers, alice["id"], amount="2.50", description="Coffee")

    summary = client.get("/api/v1/debts/summary", headers=alice_headers).json()

    assert summary["reconciled"] is True
    assert summary["totals"] == {"total_to_receive": "10.00", "total_to_pay": "2.50"}
    assert summary["receivable"][0]["counterparty"]["username"] == "bob"
    assert summary["payable"][0]["counterparty"]["id"] == bob["id"]
    assert summary["payable"][0]["description"] == "Coffee"


def test_reconcile_repairs_drift(client, store, parties):
    alice_headers, alice, _, bob = parties
    charge(client, alice_headers, bob["id"], amount="20")
    asyncio.run(store.update("users", alice["id"], {"totalToReceive": Decimal128("999.00")}))

    response = client.post("/api/v1/debts/reconcile", headers=alice_headers)

    assert response.status_code == 200
    assert response.json() == {"total_to_receive": "20.00", "total_to_pay": "0.00"}
    assert client.get("/api/v1/users/me", headers=alice_headers).json()["total_to_receive"] == "20.00"


def test_summary_rewrites_drifted_totals(client, store, parties):
    alice_headers, alice, _, bob = parties
    charge(client, alice_headers, bob["id"], amount="20")
    asyncio.run(store.update("users", alice["id"], {"totalToReceive": Decimal128("999.00")}))

    summary = client.get("/api/v1/debts/summary", headers=alice_headers).json()

    assert summary["totals"]["total_to_receive"] == "20.00"
    assert client.get("/api/v1/users/me", headers=alice_headers).json()["total_to_receive"] == "20.00"
