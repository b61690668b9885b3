"""
Tests for the Flask JSON API.

Uses the Flask test client against an in-memory store; the background
ticker is disabled so the clock only moves when a test ticks a session.
"""
import unittest
from unittest.mock import patch

from sideline.ui.web_app import WebAppState, create_app

TEAM = {
    "team_id": "t1",
    "players": [{"player_id": f"p{n}", "number": n, "first_name": f"Kid{n}"} for n in range(1, 7)],
    "positions": [{"position_id": f"pos-{n}", "name": f"Spot {n}", "sort_order": n} for n in range(1, 5)],
    "config": {"half_length_minutes": 20, "max_players_on_field": 4, "rotation_interval_minutes": 5},
}


class TestWebApp(unittest.TestCase):
    """Test the API endpoints."""

    def setUp(self) -> None:
        patcher = patch("sideline.services.game_session.now_ts", return_value=1000.0)
        patcher.start()
        self.addCleanup(patcher.stop)

        self.state = WebAppState()
        self.addCleanup(self.state.shutdown)
        self.app = create_app(self.state)
        self.client = self.app.test_client()

        self.assertEqual(self.client.post("/api/teams", json=TEAM).status_code, 200)
        response = self.client.post("/api/games", json={"team_id": "t1", "game_id": "g1", "opponent": "Rovers"})
        self.assertEqual(response.status_code, 201)

    def command(self, name, **payload):
        return self.client.post(f"/api/games/g1/commands/{name}", json=payload)

    def start_game(self):
        starting = [{"player_id": f"p{n}", "position_id": f"pos-{n}"} for n in range(1, 5)]
        self.assertEqual(self.command("create-plan", starting_lineup=starting).status_code, 200)
        return self.command("start")

    def test_health_and_game_list(self) -> None:
        self.assertTrue(self.client.get("/api/health").get_json()["success"])
        games = self.client.get("/api/games").get_json()["games"]
        self.assertEqual([g["game_id"] for g in games], ["g1"])
        self.assertEqual(games[0]["status"], "scheduled")

    def test_team_and_game_validation(self) -> None:
        bad_config = dict(TEAM, config={"max_players_on_field": 2})
        response = self.client.post("/api/teams", json=bad_config)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["kind"], "invalid_input")

        self.assertEqual(self.client.post("/api/teams", json={}).status_code, 400)
        self.assertEqual(self.client.post("/api/games", json={"team_id": "nope"}).status_code, 404)

    def test_plan_and_start(self) -> None:
        response = self.start_game()
        body = response.get_json()
        self.assertTrue(body["success"])
        self.assertEqual(body["message"], "Start game")
        self.assertEqual(body["state"]["clock"]["status"], "in-progress")
        self.assertEqual(len(body["state"]["lineup"]), 4)

        state = self.client.get("/api/games/g1/state").get_json()["state"]
        self.assertTrue(state["clock"]["running"])
        self.assertEqual(state["next_rotation"]["game_minute"], 5)

    def test_substitution_and_history(self) -> None:
        self.start_game()
        session = self.state.session_for("g1")
        for _ in range(120):
            session.tick()

        response = self.command("substitute", player_out_id="p2", player_in_id="p5", position_id="pos-2")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["result"]["game_seconds"], 120)

        history = self.client.get("/api/games/g1/history").get_json()
        self.assertEqual(history["history"][-1], "Substitute p5 for p2 at pos-2")
        self.assertEqual(history["substitutions"][0]["player_in_id"], "p5")

    def test_error_responses(self) -> None:
        response = self.client.get("/api/games/missing/state")
        self.assertEqual(response.status_code, 404)
        self.assertFalse(response.get_json()["success"])

        self.assertEqual(self.command("kickoff").status_code, 404)

        response = self.command("substitute", player_out_id="p1")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["kind"], "invalid_input")

        response = self.command("pause")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.get_json()["kind"], "invalid_transition")

        self.start_game()
        self.assertEqual(self.command("end").status_code, 200)
        response = self.command("end")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.get_json()["kind"], "stale_operation")

    def test_persistence_failure_is_500(self) -> None:
        self.start_game()
        with patch.object(self.state.store, "save_game", side_effect=RuntimeError("offline")):
            response = self.command("pause")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.get_json()["kind"], "persistence_error")

    def test_conflicts_endpoint(self) -> None:
        self.start_game()
        self.command("mark-injured", player_id="p3")
        conflicts = self.client.get("/api/games/g1/conflicts").get_json()["conflicts"]
        self.assertEqual(conflicts[0]["player_id"], "p3")
        self.assertEqual(conflicts[0]["status"], "injured")
        self.assertNotIn("pos-3", self.client.get("/api/games/g1/state").get_json()["state"]["lineup"])

    def test_save_and_load(self) -> None:
        self.start_game()
        data = self.client.post("/api/save").get_json()["data"]
        self.assertEqual(len(data["play_time_records"]), 4)

        fresh = create_app(WebAppState()).test_client()
        response = fresh.post("/api/load", json={"data": data})
        self.assertEqual(response.get_json()["games"], 1)
        self.assertEqual(fresh.post("/api/load", json={}).status_code, 400)
        self.assertEqual(fresh.post("/api/load", json={"data": {"games": [{}]}}).status_code, 400)


if __name__ == "__main__":
    unittest.main()
