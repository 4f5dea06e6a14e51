from models.users import User

PASSWORD = "secret123"


# =========================
# MATERIALS
# =========================
def test_material_crud(client, db_session, requester, dispatcher, headers):
    staff = headers(dispatcher)
    payload = {"name": "Cola branca 90g", "category": "Artes", "unit": "unidade", "min_stock": 40}

    assert client.post("/api/materials", json=payload, headers=headers(requester)).status_code == 403

    res = client.post("/api/materials", json={**payload, "current_stock": 500}, headers=staff)
    assert res.status_code == 201
    material_id = res.json()["id"]

    material = client.get(f"/api/materials/{material_id}", headers=headers(requester)).json()
    # Stock never comes from the catalog form
    assert material["current_stock"] == 0
    assert material["stock_status"] == "sem_estoque"

    res = client.put(f"/api/materials/{material_id}", json={**payload, "min_stock": 10}, headers=staff)
    assert res.status_code == 200
    assert client.get(f"/api/materials/{material_id}", headers=staff).json()["min_stock"] == 10

    assert client.delete(f"/api/materials/{material_id}", headers=staff).status_code == 200
    res = client.get(f"/api/materials/{material_id}", headers=staff)
    assert res.status_code == 404
    assert res.json() == {"error": "Material não encontrado"}


def test_material_validation(client, db_session, dispatcher, headers):
    res = client.post(
        "/api/materials", json={"name": "", "category": "Artes", "unit": "unidade"}, headers=headers(dispatcher)
    )
    assert res.status_code == 400

    res = client.post(
        "/api/materials",
        json={"name": "Giz", "category": "Artes", "unit": "caixa", "min_stock": -1},
        headers=headers(dispatcher),
    )
    assert res.status_code == 400
    assert res.json()["error"].startswith("min_stock")


def test_material_list_filters(client, db_session, requester, dispatcher, make_material, supplier, headers):
    make_material("Caderno", min_stock=5, category="Papelaria")
    lapis = make_material("Lápis", min_stock=5, category="Escrita")
    caneta = make_material("Caneta azul", min_stock=5, category="Escrita")
    client.post(
        "/api/stock-entries",
        json={"material_id": caneta.id, "supplier_id": supplier.id, "quantity": 50},
        headers=headers(dispatcher),
    )

    mine = headers(requester)
    listed = client.get("/api/materials", headers=mine).json()
    assert listed["total"] == 3
    assert [m["name"] for m in listed["items"]] == ["Caderno", "Caneta azul", "Lápis"]

    listed = client.get("/api/materials", params={"category": "escrita"}, headers=mine).json()
    assert listed["total"] == 2

    low = client.get("/api/materials", params={"low_stock": True}, headers=mine).json()
    assert sorted(m["name"] for m in low["items"]) == ["Caderno", "Lápis"]

    found = client.get("/api/materials/search", params={"q": "lápi"}, headers=mine).json()
    assert [m["id"] for m in found] == [lapis.id]


def test_material_with_history_cannot_be_deleted(client, db_session, dispatcher, make_material, supplier, headers):
    staff = headers(dispatcher)
    cola = make_material("Cola")
    client.post(
        "/api/stock-entries", json={"material_id": cola.id, "supplier_id": supplier.id, "quantity": 5}, headers=staff
    )

    res = client.delete(f"/api/materials/{cola.id}", headers=staff)
    assert res.status_code == 400
    assert "histórico" in res.json()["error"]


# =========================
# SUPPLIERS
# =========================
def test_supplier_crud(client, db_session, requester, dispatcher, make_material, headers):
    staff = headers(dispatcher)

    assert client.get("/api/suppliers", headers=headers(requester)).status_code == 403

    res = client.post("/api/suppliers", json={"name": "Distribuidora Escolar", "phone": "(11) 4444-0000"}, headers=staff)
    assert res.status_code == 201
    supplier_id = res.json()["id"]

    res = client.put(
        f"/api/suppliers/{supplier_id}",
        json={"name": "Distribuidora Escolar Ltda", "email": "contato@distescolar.com.br"},
        headers=staff,
    )
    assert res.status_code == 200
    listed = client.get("/api/suppliers", params={"q": "ltda"}, headers=staff).json()
    assert [s["email"] for s in listed["items"]] == ["contato@distescolar.com.br"]

    # Referenced by a stock entry: kept
    cola = make_material("Cola")
    client.post(
        "/api/stock-entries", json={"material_id": cola.id, "supplier_id": supplier_id, "quantity": 1}, headers=staff
    )
    assert client.delete(f"/api/suppliers/{supplier_id}", headers=staff).status_code == 400

    res = client.post("/api/suppliers", json={"name": "Sem uso"}, headers=staff)
    assert client.delete(f"/api/suppliers/{res.json()['id']}", headers=staff).status_code == 200


def test_supplier_email_is_validated(client, db_session, dispatcher, headers):
    res = client.post("/api/suppliers", json={"name": "X", "email": "nope"}, headers=headers(dispatcher))
    assert res.status_code == 400


# =========================
# STOCK ENTRIES
# =========================
def test_stock_entry_endpoints(client, db_session, dispatcher, admin, make_material, supplier, headers):
    staff, adm = headers(dispatcher), headers(admin)
    papel = make_material("Papel A4", min_stock=30)

    res = client.post(
        "/api/stock-entries",
        json={"material_id": papel.id, "supplier_id": supplier.id, "quantity": 20,
              "unit_price": 22.9, "batch": "L-7", "expiry_date": "2027-12-31"},
        headers=staff,
    )
    assert res.status_code == 201
    entry_id = res.json()["id"]

    entry = client.get(f"/api/stock-entries/{entry_id}", headers=staff).json()
    assert entry["material_name"] == "Papel A4"
    assert entry["supplier_name"] == "Papelaria Central"
    assert entry["created_by_name"] == "Carla"
    assert entry["total_price"] == 458.0

    listed = client.get("/api/stock-entries", params={"material_id": papel.id}, headers=staff).json()
    assert listed["total"] == 1

    # Edits and deletes are administrative
    assert client.put(f"/api/stock-entries/{entry_id}", json={"quantity": 5}, headers=staff).status_code == 403
    assert client.delete(f"/api/stock-entries/{entry_id}", headers=staff).status_code == 403

    assert client.put(f"/api/stock-entries/{entry_id}", json={"quantity": 35}, headers=adm).status_code == 200
    assert client.get(f"/api/materials/{papel.id}", headers=staff).json()["current_stock"] == 35

    assert client.delete(f"/api/stock-entries/{entry_id}", headers=adm).status_code == 200
    assert client.get(f"/api/materials/{papel.id}", headers=staff).json()["current_stock"] == 0
    assert client.get(f"/api/stock-entries/{entry_id}", headers=staff).status_code == 404


def test_stock_entry_rejects_unknown_references(client, db_session, dispatcher, make_material, supplier, headers):
    staff = headers(dispatcher)
    cola = make_material("Cola")

    res = client.post("/api/stock-entries", json={"material_id": cola.id, "supplier_id": 999, "quantity": 1}, headers=staff)
    assert res.status_code == 400

    res = client.post(
        "/api/stock-entries", json={"material_id": cola.id, "supplier_id": supplier.id, "quantity": -3}, headers=staff
    )
    assert res.status_code == 400
    assert client.get(f"/api/materials/{cola.id}", headers=staff).json()["current_stock"] == 0


# =========================
# USERS
# =========================
def test_user_management_is_admin_only(client, db_session, dispatcher, headers):
    assert client.get("/api/users", headers=headers(dispatcher)).status_code == 403


def test_user_crud(client, db_session, admin, headers):
    adm = headers(admin)
    res = client.post(
        "/api/users",
        json={"name": "Diego", "email": "Diego@Escola.com.br", "password": "abc12345",
              "role": "solicitante", "school": "EM Sul"},
        headers=adm,
    )
    assert res.status_code == 201
    user_id = res.json()["id"]

    res = client.post(
        "/api/users", json={"name": "Outro", "email": "diego@escola.com.br", "password": "abc12345"}, headers=adm
    )
    assert res.status_code == 400
    assert res.json() == {"error": "E-mail já cadastrado"}

    login = client.post("/api/auth/login", json={"email": "diego@escola.com.br", "password": "abc12345"})
    assert login.status_code == 200

    res = client.put(f"/api/users/{user_id}", json={"role": "despachante"}, headers=adm)
    assert res.status_code == 200
    assert client.get(f"/api/users/{user_id}", headers=adm).json()["role"] == "despachante"

    listed = client.get("/api/users", params={"role": "despachante"}, headers=adm).json()
    assert [u["email"] for u in listed["items"]] == ["diego@escola.com.br"]

    assert client.delete(f"/api/users/{user_id}", headers=adm).status_code == 200
    db_session.expire_all()
    assert db_session.get(User, user_id) is None


def test_user_rules(client, db_session, admin, requester, make_material, headers):
    adm = headers(admin)

    assert client.post(
        "/api/users", json={"name": "Curta", "email": "curta@escola.com.br", "password": "123"}, headers=adm
    ).status_code == 400
    assert client.put(f"/api/users/{admin.id}", json={"role": "solicitante"}, headers=adm).status_code == 400
    assert client.delete(f"/api/users/{admin.id}", headers=adm).status_code == 400

    cola = make_material("Cola")
    client.post("/api/requests", json={"items": [{"material_id": cola.id, "quantity": 1}]}, headers=headers(requester))
    res = client.delete(f"/api/users/{requester.id}", headers=adm)
    assert res.status_code == 400
    assert client.get("/api/users/9999", headers=adm).status_code == 404


# =========================
# DASHBOARD / LOGS
# =========================
def test_dashboard_counters_depend_on_role(client, db_session, requester, other_requester, dispatcher, admin,
                                           make_material, headers):
    cola = make_material("Cola", min_stock=5)
    make_material("Giz", min_stock=0)
    for user in (requester, requester, other_requester):
        client.post("/api/requests", json={"items": [{"material_id": cola.id, "quantity": 1}]}, headers=headers(user))

    mine = client.get("/api/dashboard/stats", headers=headers(requester)).json()
    assert mine["total_materials"] == 2
    assert mine["pending_requests"] == 2
    assert mine["low_stock_items"] == 0
    assert mine["total_users"] == 0

    staff = client.get("/api/dashboard/stats", headers=headers(dispatcher)).json()
    assert staff["pending_requests"] == 3
    assert staff["low_stock_items"] == 2
    assert staff["total_users"] == 0

    adm = client.get("/api/dashboard/stats", headers=headers(admin)).json()
    assert adm["total_users"] == 4


def test_logs_are_admin_only(client, db_session, admin, dispatcher, headers):
    client.post("/api/suppliers", json={"name": "Papelaria Norte"}, headers=headers(dispatcher))

    assert client.get("/api/logs", headers=headers(dispatcher)).status_code == 403

    logs = client.get("/api/logs", params={"resource": "suppliers"}, headers=headers(admin)).json()
    assert logs["total"] == 1
    assert logs["items"][0]["action"] == "SUPPLIER_CREATE"
    assert logs["items"][0]["user_id"] == dispatcher.id
