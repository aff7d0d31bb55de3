"""
Integration test: WebSocket protocol (flight:update / round:start /
guess:result / game:end and the register control message).

This test verifies:
1. Per-session events reach the connection bound to that session
2. Every message validates against its contract
3. The live feed never carries route data
"""

import json

from backend import main
from contracts.validation import (
    validate_flight_update_message,
    validate_game_end_message,
    validate_guess_result_message,
    validate_round_start_message,
)
from tests.helpers import wait_for

VALIDATORS = {
    "flight:update": validate_flight_update_message,
    "round:start": validate_round_start_message,
    "guess:result": validate_guess_result_message,
    "game:end": validate_game_end_message,
}


def receive_event(ws, message_type):
    """Next message of the given type, skipping live feed snapshots."""
    while True:
        message = ws.receive_json()
        is_valid, _, error = VALIDATORS[message["type"]](message)
        assert is_valid, f"{message['type']} failed validation: {error}"
        if message["type"] == message_type:
            return message


def start_game(client, username="wendy", difficulty="easy"):
    response = client.post("/api/game/start", json={"username": username, "difficulty": difficulty})
    assert response.status_code == 200, response.text
    return response.json()["session_id"]


def guess_correctly(client, session_id, index):
    code = main.sessions.get(session_id).rounds[index].actual_arrival
    response = client.post("/api/game/guess", json={"session_id": session_id, "airport_iata": code})
    assert response.status_code == 200, response.text
    return response.json()


class TestWebSocketProtocol:

    def test_session_events_in_order(self, app_client):
        session_id = start_game(app_client)

        with app_client.websocket_connect(f"/ws?sessionId={session_id}") as ws:
            wait_for(lambda: main.hub.connection_count == 1)

            result = guess_correctly(app_client, session_id, 0)

            guess_msg = receive_event(ws, "guess:result")
            assert guess_msg["payload"]["session_id"] == session_id
            assert guess_msg["payload"]["round_number"] == 1
            assert guess_msg["payload"]["total_score"] == result["total_score"]

            round_msg = receive_event(ws, "round:start")
            assert round_msg["payload"]["round_number"] == 2
            assert round_msg["payload"]["flight"]["arrival"]["iata"] == "???"

            app_client.post("/api/game/end", json={"session_id": session_id})

            end_msg = receive_event(ws, "game:end")
            assert end_msg["payload"]["total_score"] == result["total_score"]
            assert end_msg["payload"]["rank"] == 1

    def test_register_message_binds_session(self, app_client):
        session_id = start_game(app_client)

        with app_client.websocket_connect("/ws") as ws:
            wait_for(lambda: main.hub.connection_count == 1)
            ws.send_text(json.dumps({"type": "register", "payload": {"sessionId": session_id}}))
            wait_for(lambda: {c.session_id for c in main.hub._connections} == {session_id})

            guess_correctly(app_client, session_id, 0)

            assert receive_event(ws, "guess:result")["payload"]["session_id"] == session_id

    def test_other_sessions_events_not_delivered(self, app_client):
        mine = start_game(app_client, username="xena")
        theirs = start_game(app_client, username="yuri")

        with app_client.websocket_connect(f"/ws?sessionId={mine}") as ws:
            wait_for(lambda: main.hub.connection_count == 1)

            guess_correctly(app_client, theirs, 0)
            guess_correctly(app_client, mine, 0)

            message = receive_event(ws, "guess:result")
            assert message["payload"]["session_id"] == mine

    def test_flight_update_has_no_routes(self, app_client):
        with app_client.websocket_connect("/ws") as ws:
            wait_for(lambda: main.hub.connection_count == 1)
            main.hub.broadcast_flights(main.catalog.get_all())

            # An earlier poller snapshot may arrive first
            message = receive_event(ws, "flight:update")
            while len(message["payload"]["flights"]) != 9:
                message = receive_event(ws, "flight:update")
            for flight in message["payload"]["flights"]:
                assert "arrival" not in flight
                assert "departure" not in flight

    def test_disconnect_unregisters(self, app_client):
        with app_client.websocket_connect("/ws"):
            wait_for(lambda: main.hub.connection_count == 1)

        wait_for(lambda: main.hub.connection_count == 0)

    def test_repeated_connect_and_disconnect(self, app_client):
        session_id = start_game(app_client)

        for _ in range(10):
            with app_client.websocket_connect(f"/ws?sessionId={session_id}") as ws:
                wait_for(lambda: main.hub.connection_count == 1)
                ws.send_text(json.dumps({"type": "register", "payload": {"sessionId": session_id}}))
            wait_for(lambda: main.hub.connection_count == 0)
