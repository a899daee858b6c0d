"""Real-time channel over the /ws endpoint, driven through the test client."""


def test_every_connected_client_receives_created_event(client, widget):
    with client.websocket_connect("/ws") as first, client.websocket_connect("/ws") as second:
        response = client.post("/api/products", json=widget)

        expected = {"event": "product_created", "data": response.json()}
        assert first.receive_json() == expected
        assert second.receive_json() == expected


def test_events_match_api_responses_in_order(client, widget):
    with client.websocket_connect("/ws") as ws:
        created = client.post("/api/products", json=widget).json()
        updated = client.put(
            f"/api/products/{created['id']}",
            json={"name": "Widget v2", "price": 11, "status": "new", "description": None},
        ).json()
        status_changed = client.patch(f"/api/products/{created['id']}/status", json={"status": "shipped"}).json()
        client.delete(f"/api/products/{created['id']}")

        assert ws.receive_json() == {"event": "product_created", "data": created}
        assert ws.receive_json() == {"event": "product_updated", "data": updated}
        assert ws.receive_json() == {"event": "product_status_updated", "data": status_changed}
        assert ws.receive_json() == {"event": "product_deleted", "data": {"id": created["id"]}}


def test_deleting_unknown_id_broadcasts_anyway(client):
    with client.websocket_connect("/ws") as ws:
        assert client.delete("/api/products/77").status_code == 200
        assert ws.receive_json() == {"event": "product_deleted", "data": {"id": 77}}


def test_not_found_update_sends_no_event(client, widget):
    with client.websocket_connect("/ws") as ws:
        assert client.patch("/api/products/5/status", json={"status": "sold"}).status_code == 404
        created = client.post("/api/products", json=widget).json()

        # The first message is the create; the failed patch produced nothing.
        assert ws.receive_json() == {"event": "product_created", "data": created}


def test_disconnect_unregisters_client(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_text("hello")
        assert client.get("/health").json()["connected_clients"] == 1
    # Disconnect is processed on the server loop; a following request observes it.
    assert client.get("/health").json()["connected_clients"] == 0
