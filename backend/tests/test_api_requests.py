import pytest

from models.log import Log
from services import stock as ledger


@pytest.fixture
def caderno(db_session, make_material, supplier, dispatcher):
    material = make_material("Caderno universitário", min_stock=5)
    ledger.create_entry(
        db_session, {"material_id": material.id, "supplier_id": supplier.id, "quantity": 10}, actor=dispatcher
    )
    db_session.commit()
    return material


def create(client, auth, material, quantity, **extra):
    res = client.post(
        "/api/requests",
        json={"items": [{"material_id": material.id, "quantity": quantity}], **extra},
        headers=auth,
    )
    assert res.status_code == 201, res.text
    return res.json()["id"]


def item_ids(client, auth, request_id):
    return [it["id"] for it in client.get(f"/api/requests/{request_id}", headers=auth).json()["items"]]


def test_full_flow(client, requester, dispatcher, caderno, headers):
    mine, staff = headers(requester), headers(dispatcher)
    request_id = create(client, mine, caderno, 15, priority="alta", notes="Turma do 5º ano")

    detail = client.get(f"/api/requests/{request_id}", headers=mine).json()
    assert detail["status"] == "pendente"
    assert detail["priority"] == "alta"
    assert detail["requester_name"] == "Ana"
    assert detail["school"] == "EM Centro"
    [item] = detail["items"]
    assert item["material_name"] == "Caderno universitário"
    assert item["requested_quantity"] == 15
    assert item["approved_quantity"] is None

    res = client.put(
        f"/api/requests/{request_id}/approve",
        json={"approved_by": 999, "approved_quantities": [{"item_id": item["id"], "quantity": 8}]},
        headers=staff,
    )
    assert res.status_code == 200, res.text

    res = client.put(f"/api/requests/{request_id}/dispatch", json={}, headers=staff)
    assert res.status_code == 200, res.text

    detail = client.get(f"/api/requests/{request_id}", headers=mine).json()
    assert detail["status"] == "despachado"
    # The acting user comes from the token, not from the body
    assert detail["approved_by"] == dispatcher.id
    assert detail["approver_name"] == "Carla"
    assert detail["dispatched_by"] == dispatcher.id
    assert detail["items"][0]["approved_quantity"] == 8
    assert detail["items"][0]["dispatched_quantity"] == 8

    material = client.get(f"/api/materials/{caderno.id}", headers=mine).json()
    assert material["current_stock"] == 2
    assert material["stock_status"] == "baixo"

    moves = client.get("/api/stock-movements", params={"reference_type": "request"}, headers=staff).json()
    assert moves["total"] == 1
    assert moves["items"][0]["quantity"] == 8
    assert moves["items"][0]["type"] == "saida"
    assert moves["items"][0]["user_name"] == "Carla"


def test_approval_over_stock_lists_the_materials(client, requester, other_requester, dispatcher, caderno, headers):
    staff = headers(dispatcher)
    first = create(client, headers(requester), caderno, 6)
    second = create(client, headers(other_requester), caderno, 6)

    for request_id, expected in ((first, 200), (second, 400)):
        [item_id] = item_ids(client, staff, request_id)
        res = client.put(
            f"/api/requests/{request_id}/approve",
            json={"approved_quantities": [{"item_id": item_id, "quantity": 6}]},
            headers=staff,
        )
        assert res.status_code == expected

    body = res.json()
    assert body["error"].startswith("Estoque insuficiente")
    assert body["materials"] == [
        {"material_id": caderno.id, "name": "Caderno universitário", "available": 4, "required": 6}
    ]
    assert client.get(f"/api/requests/{second}", headers=staff).json()["status"] == "pendente"


def test_workflow_endpoints_are_staff_only(client, requester, caderno, headers):
    mine = headers(requester)
    request_id = create(client, mine, caderno, 2)
    [item_id] = item_ids(client, mine, request_id)

    calls = [
        ("approve", {"approved_quantities": [{"item_id": item_id, "quantity": 2}]}),
        ("dispatch", {}),
        ("reject", {"reason": "não"}),
    ]
    for action, body in calls:
        res = client.put(f"/api/requests/{request_id}/{action}", json=body, headers=mine)
        assert res.status_code == 403
        assert res.json() == {"error": "Acesso negado"}


def test_invalid_transition_is_a_400(client, requester, dispatcher, caderno, headers):
    request_id = create(client, headers(requester), caderno, 2)

    res = client.put(f"/api/requests/{request_id}/dispatch", headers=headers(dispatcher))

    assert res.status_code == 400
    assert "pendente" in res.json()["error"]


def test_reject_needs_a_reason(client, requester, dispatcher, caderno, headers):
    staff = headers(dispatcher)
    request_id = create(client, headers(requester), caderno, 2)

    assert client.put(f"/api/requests/{request_id}/reject", json={}, headers=staff).status_code == 400

    res = client.put(f"/api/requests/{request_id}/reject", json={"reason": "Fora do período"}, headers=staff)
    assert res.status_code == 200
    detail = client.get(f"/api/requests/{request_id}", headers=staff).json()
    assert detail["status"] == "rejeitado"
    assert "Fora do período" in detail["notes"]


def test_owner_cancels_without_body(client, requester, other_requester, caderno, headers):
    request_id = create(client, headers(requester), caderno, 2)

    assert client.put(f"/api/requests/{request_id}/cancel", headers=headers(other_requester)).status_code == 403

    res = client.put(f"/api/requests/{request_id}/cancel", headers=headers(requester))
    assert res.status_code == 200
    assert client.get(f"/api/requests/{request_id}", headers=headers(requester)).json()["status"] == "cancelado"


def test_requesters_only_see_their_own(client, requester, other_requester, dispatcher, caderno, headers):
    mine = create(client, headers(requester), caderno, 1)
    theirs = create(client, headers(other_requester), caderno, 2)

    listed = client.get("/api/requests", headers=headers(requester)).json()
    assert listed["total"] == 1
    assert [r["id"] for r in listed["items"]] == [mine]
    assert listed["items"][0]["items_count"] == 1
    assert listed["items"][0]["total_requested"] == 1

    # requester_id is ignored for requesters
    listed = client.get("/api/requests", params={"requester_id": other_requester.id}, headers=headers(requester)).json()
    assert listed["total"] == 1

    res = client.get(f"/api/requests/{theirs}", headers=headers(requester))
    assert res.status_code == 403

    staff = client.get("/api/requests", headers=headers(dispatcher)).json()
    assert staff["total"] == 2
    filtered = client.get(
        "/api/requests", params={"requester_id": other_requester.id, "status": ["pendente"]}, headers=headers(dispatcher)
    ).json()
    assert [r["id"] for r in filtered["items"]] == [theirs]


def test_edit_pending_request(client, requester, caderno, make_material, headers):
    mine = headers(requester)
    giz = make_material("Giz de cera")
    request_id = create(client, mine, caderno, 1)

    res = client.put(
        f"/api/requests/{request_id}",
        json={"priority": "baixa", "items": [{"material_id": giz.id, "requested_quantity": 4}]},
        headers=mine,
    )
    assert res.status_code == 200, res.text

    detail = client.get(f"/api/requests/{request_id}", headers=mine).json()
    assert detail["priority"] == "baixa"
    assert [(it["material_id"], it["requested_quantity"]) for it in detail["items"]] == [(giz.id, 4)]


def test_bad_payloads(client, requester, caderno, headers):
    mine = headers(requester)

    res = client.post("/api/requests", json={"items": []}, headers=mine)
    assert res.status_code == 400
    assert "error" in res.json()

    res = client.post("/api/requests", json={"items": [{"material_id": caderno.id, "quantity": 0}]}, headers=mine)
    assert res.status_code == 400

    res = client.post("/api/requests", json={"items": [{"material_id": 9999, "quantity": 1}]}, headers=mine)
    assert res.status_code == 400
    assert "9999" in res.json()["error"]

    res = client.post("/api/requests", json={"items": [{"material_id": caderno.id, "quantity": 1}], "priority": "urgente"},
                      headers=mine)
    assert res.status_code == 400


def test_unknown_request_is_404(client, dispatcher, caderno, headers):
    res = client.get("/api/requests/4242", headers=headers(dispatcher))

    assert res.status_code == 404
    assert res.json() == {"error": "Solicitação não encontrada"}


def test_workflow_is_audited(client, db_session, requester, dispatcher, caderno, headers):
    request_id = create(client, headers(requester), caderno, 2)
    [item_id] = item_ids(client, headers(dispatcher), request_id)
    client.put(
        f"/api/requests/{request_id}/approve",
        json={"approved_quantities": [{"item_id": item_id, "quantity": 2}]},
        headers=headers(dispatcher),
    )

    actions = [
        log.action for log in db_session.query(Log).filter(Log.resource_id == request_id).order_by(Log.id)
        if log.resource == "requests"
    ]
    assert actions == ["REQUEST_CREATE", "REQUEST_APPROVE"]
