"""
Contract tests for backend service.

Validates that backend WebSocket messages match schema contracts.
These tests run independently (no full stack required).
"""

import json
import pytest
from pathlib import Path

from contracts.constants import (
    MASKED_IATA,
    MatchType,
    WS_MESSAGE_TYPE_FLIGHT_UPDATE,
    WS_MESSAGE_TYPE_ROUND_START,
    WS_MESSAGE_TYPE_GUESS_RESULT,
    WS_MESSAGE_TYPE_GAME_END,
)
from contracts.validation import (
    Flight,
    FlightUpdateMessage,
    FlightUpdatePayload,
    FlightPosition,
    GameEndMessage,
    GuessResultMessage,
    RoundStartMessage,
    validate_flight_update_message,
    validate_round_start_message,
    validate_guess_result_message,
    validate_game_end_message,
    validate_register_message,
)


def load_example(filename: str) -> dict:
    """Load example JSON file."""
    example_path = Path(__file__).parent.parent.parent / "contracts" / "examples" / filename
    with open(example_path) as f:
        return json.load(f)


class TestBackendContract:
    """Test that backend WebSocket messages match schemas."""

    def test_flight_update_example_validates(self):
        example = load_example("websocket_flight_update.json")
        is_valid, message, error = validate_flight_update_message(example)

        assert is_valid, f"Example should validate: {error}"
        assert message.type == "flight:update"
        assert len(message.payload.flights) > 0

    def test_round_start_example_validates(self):
        example = load_example("websocket_round_start.json")
        is_valid, message, error = validate_round_start_message(example)

        assert is_valid, f"Example should validate: {error}"
        assert message.type == "round:start"
        assert message.payload.round_number == 1
        assert message.payload.flight.arrival.iata == MASKED_IATA

    def test_guess_result_example_validates(self):
        example = load_example("websocket_guess_result.json")
        is_valid, message, error = validate_guess_result_message(example)

        assert is_valid, f"Example should validate: {error}"
        assert message.type == "guess:result"
        assert message.payload.score.match_type == MatchType.FAMILY

    def test_game_end_example_validates(self):
        example = load_example("websocket_game_end.json")
        is_valid, message, error = validate_game_end_message(example)

        assert is_valid, f"Example should validate: {error}"
        assert message.type == "game:end"
        assert message.payload.rank == 3

    def test_register_example_validates(self):
        example = load_example("websocket_register.json")
        is_valid, message, error = validate_register_message(example)

        assert is_valid, f"Example should validate: {error}"
        assert message.payload.session_id == "5f0c8a1e-2d4b-4c61-9a57-3b8e2f6d9c10"

    def test_register_accepts_snake_case_session_id(self):
        is_valid, message, error = validate_register_message(
            {"type": "register", "payload": {"session_id": "abc"}}
        )
        assert is_valid, error
        assert message.payload.session_id == "abc"

    def test_register_missing_session_id(self):
        is_valid, _, error = validate_register_message({"type": "register", "payload": {}})
        assert not is_valid, "Should fail without a session id"

    def test_flight_update_missing_flights(self):
        example = load_example("websocket_flight_update.json")
        del example["payload"]["flights"]

        is_valid, _, error = validate_flight_update_message(example)
        assert not is_valid, "Should fail without flights array"

    def test_flight_update_wrong_type(self):
        example = load_example("websocket_flight_update.json")
        example["type"] = "snapshot"

        is_valid, _, error = validate_flight_update_message(example)
        assert not is_valid, "Should fail with wrong message type"

    def test_guess_result_invalid_match_type(self):
        example = load_example("websocket_guess_result.json")
        example["payload"]["score"]["match_type"] = "close"

        is_valid, _, error = validate_guess_result_message(example)
        assert not is_valid, "Should fail with unknown match type"

    def test_round_start_round_number_must_be_positive(self):
        example = load_example("websocket_round_start.json")
        example["payload"]["round_number"] = 0

        is_valid, _, error = validate_round_start_message(example)
        assert not is_valid, "Should fail with round number 0"

    def test_flight_update_positions_carry_no_route(self):
        """Live feed entries never include departure or arrival data."""
        flight = Flight(id="abc123", latitude=1.0, longitude=2.0)
        message = FlightUpdateMessage(
            payload=FlightUpdatePayload(flights=[FlightPosition.from_flight(flight)])
        )
        dumped = json.loads(message.model_dump_json())

        entry = dumped["payload"]["flights"][0]
        assert "arrival" not in entry
        assert "departure" not in entry
        assert entry["id"] == "abc123"

    @pytest.mark.parametrize("filename,validator", [
        ("websocket_flight_update.json", validate_flight_update_message),
        ("websocket_round_start.json", validate_round_start_message),
        ("websocket_guess_result.json", validate_guess_result_message),
        ("websocket_game_end.json", validate_game_end_message),
    ])
    def test_server_messages_require_payload(self, filename, validator):
        example = load_example(filename)
        del example["payload"]

        is_valid, _, error = validator(example)
        assert not is_valid

    @pytest.mark.parametrize("model,expected", [
        (FlightUpdateMessage, WS_MESSAGE_TYPE_FLIGHT_UPDATE),
        (RoundStartMessage, WS_MESSAGE_TYPE_ROUND_START),
        (GuessResultMessage, WS_MESSAGE_TYPE_GUESS_RESULT),
        (GameEndMessage, WS_MESSAGE_TYPE_GAME_END),
    ])
    def test_message_type_matches_constant(self, model, expected):
        assert model.model_fields["type"].default == expected
