def _create(client, **body):
    res = client.post("/api/sessions", json=body)
    assert res.status_code == 201
    return res.json()


def _place(client, session_id, device_type, x=0, y=0):
    res = client.post(f"/api/sessions/{session_id}/devices", json={"type": device_type, "x": x, "y": y})
    assert res.status_code == 200
    return res.json()["devices"][-1]


def test_health(client_ctx):
    res = client_ctx["client"].get("/")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"


def test_mission_catalogue(client_ctx):
    res = client_ctx["client"].get("/api/missions")
    assert res.status_code == 200
    ids = [s["id"] for s in res.json()]
    assert ids == ["basic_course", "ip_master_course", "soho_course", "server_course"]


def test_create_free_session(client_ctx):
    data = _create(client_ctx["client"])
    assert data["mode"] == "free"
    assert data["currentMission"] is None
    assert len(client_ctx["sessions"]) == 1


def test_create_mission_session_errors(client_ctx):
    client = client_ctx["client"]
    assert client.post("/api/sessions", json={"mode": "mission"}).status_code == 422
    assert client.post("/api/sessions", json={"mode": "mission", "missionSetId": "nope"}).status_code == 404
    assert client.post("/api/sessions", json={"mode": "quiz"}).status_code == 422


def test_unknown_session_is_404(client_ctx):
    client = client_ctx["client"]
    assert client.get("/api/sessions/missing").status_code == 404
    assert client.post("/api/sessions/missing/tick", json={"count": 1}).status_code == 404
    assert client.delete("/api/sessions/missing").status_code == 404


def test_invalid_device_type_is_rejected(client_ctx):
    client = client_ctx["client"]
    sid = _create(client)["id"]
    res = client.post(f"/api/sessions/{sid}/devices", json={"type": "TOASTER"})
    assert res.status_code == 422


def test_build_ping_and_tick_flow(client_ctx):
    client = client_ctx["client"]
    sid = _create(client)["id"]
    pc = _place(client, sid, "PC")
    sw = _place(client, sid, "SWITCH")
    router = _place(client, sid, "ROUTER")
    assert (pc["name"], sw["name"], router["name"]) == ("PC-1", "SW-1", "Router-1")

    client.patch(f"/api/sessions/{sid}/devices/{pc['id']}", json={"ip": "192.168.1.2"})
    client.patch(f"/api/sessions/{sid}/devices/{router['id']}", json={"ip": "192.168.1.1"})
    client.post(f"/api/sessions/{sid}/connections", json={"sourceId": pc["id"], "targetId": sw["id"]})
    data = client.post(f"/api/sessions/{sid}/connections",
                       json={"sourceId": sw["id"], "targetId": router["id"]}).json()
    assert len(data["connections"]) == 2

    data = client.post(f"/api/sessions/{sid}/ping", json={"fromId": pc["id"], "toId": router["id"]}).json()
    assert data["packets"][0]["path"] == [pc["id"], sw["id"], router["id"]]

    data = client.post(f"/api/sessions/{sid}/tick", json={"count": 100}).json()
    assert data["packets"] == []
    assert data["flags"]["pingSuccess"] is True
    assert data["tickCounter"] == 100


def test_tick_count_must_be_positive(client_ctx):
    client = client_ctx["client"]
    sid = _create(client)["id"]
    assert client.post(f"/api/sessions/{sid}/tick", json={"count": 0}).status_code == 422


def test_click_protocol_and_deletes(client_ctx):
    client = client_ctx["client"]
    sid = _create(client)["id"]
    pc = _place(client, sid, "PC")
    sw = _place(client, sid, "SWITCH")

    client.post(f"/api/sessions/{sid}/connection-mode")
    client.post(f"/api/sessions/{sid}/devices/{pc['id']}/click")
    data = client.post(f"/api/sessions/{sid}/devices/{sw['id']}/click").json()
    assert len(data["connections"]) == 1
    conn_id = data["connections"][0]["id"]

    data = client.post(f"/api/sessions/{sid}/devices/{pc['id']}/move", json={"x": 40, "y": 60}).json()
    assert data["devices"][0]["position"] == {"x": 40, "y": 60}

    data = client.delete(f"/api/sessions/{sid}/connections/{conn_id}").json()
    assert data["connections"] == []

    data = client.delete(f"/api/sessions/{sid}/devices/{pc['id']}").json()
    assert [d["id"] for d in data["devices"]] == [sw["id"]]

    data = client.delete(f"/api/sessions/{sid}/devices/ghost")
    assert data.status_code == 200


def test_mission_check_and_advance(client_ctx):
    client = client_ctx["client"]
    sid = _create(client, mode="mission", missionSetId="basic_course")["id"]

    res = client.post(f"/api/sessions/{sid}/mission/check").json()
    assert res == {"passed": False, "missionError": "The conditions are not met yet. Check the hint."}
    res = client.post(f"/api/sessions/{sid}/mission/advance").json()
    assert res["advanced"] is False
    assert res["missionIndex"] == 0

    _place(client, sid, "PC")
    _place(client, sid, "ROUTER")
    res = client.post(f"/api/sessions/{sid}/mission/check").json()
    assert res == {"passed": True, "missionError": None}
    res = client.post(f"/api/sessions/{sid}/mission/advance").json()
    assert res == {"advanced": True, "missionIndex": 1, "courseComplete": False}

    data = client.get(f"/api/sessions/{sid}").json()
    assert data["currentMission"]["kind"] == "SWITCH_BETWEEN_PC_AND_ROUTER"


def test_encryption_toggle_and_reset(client_ctx):
    client = client_ctx["client"]
    sid = _create(client)["id"]
    pc = _place(client, sid, "PC")
    sw = _place(client, sid, "SWITCH")
    client.post(f"/api/sessions/{sid}/connections", json={"sourceId": pc["id"], "targetId": sw["id"]})

    data = client.post(f"/api/sessions/{sid}/encryption/toggle").json()
    assert data["isEncrypted"] is True
    assert data["handshakes"][0]["phase"] == "HANDSHAKE_SENT"

    data = client.post(f"/api/sessions/{sid}/reset").json()
    assert data["devices"] == []
    assert data["isEncrypted"] is False
    assert data["logs"][0]["message"] == "Simulation reset"


def test_delete_session(client_ctx):
    client = client_ctx["client"]
    sid = _create(client)["id"]
    assert client.delete(f"/api/sessions/{sid}").status_code == 204
    assert client.get(f"/api/sessions/{sid}").status_code == 404
