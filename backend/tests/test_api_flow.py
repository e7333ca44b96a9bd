"""
End-to-end API flow: registries, tournament setup, fixture generation,
result entry, standings, playoffs and leaderboards.
"""

from fastapi.testclient import TestClient


def _create_teams(client: TestClient, count: int):
    ids = []
    for i in range(1, count + 1):
        response = client.post("/api/teams", json={"name": f"Side {i}", "short_name": f"S{i}"})
        assert response.status_code == 201
        ids.append(response.json()["id"])
    return ids


def _tournament(client: TestClient, team_ids, **fields):
    venue = client.post("/api/venues", json={"name": "Eden Gardens", "city": "Kolkata"}).json()
    body = {"name": "Spring League", "start_date": "2026-01-03", "end_date": "2026-03-31", **fields}
    tournament = client.post("/api/tournaments", json=body)
    assert tournament.status_code == 201
    tournament_id = tournament.json()["id"]
    for team_id in team_ids:
        assert client.post(f"/api/tournaments/{tournament_id}/teams", json={"team_id": team_id}).status_code == 201
    return tournament_id, venue["id"]


def _complete(client: TestClient, tournament_id: int, link_id: int, **body):
    payload = {"status": "completed", "result": "home_win", **body}
    return client.patch(f"/api/tournaments/{tournament_id}/runtime/matches/{link_id}", json=payload)


class TestRegistries:
    def test_health(self, client: TestClient):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_duplicate_team_name(self, client: TestClient):
        _create_teams(client, 1)
        response = client.post("/api/teams", json={"name": "Side 1"})
        assert response.status_code == 409

    def test_blank_team_name_rejected(self, client: TestClient):
        assert client.post("/api/teams", json={"name": "  "}).status_code == 422

    def test_list_teams_and_venues(self, client: TestClient):
        _create_teams(client, 2)
        client.post("/api/venues", json={"name": "Chepauk"})
        assert [t["name"] for t in client.get("/api/teams").json()] == ["Side 1", "Side 2"]
        assert client.get("/api/venues").json()[0]["name"] == "Chepauk"


class TestTournamentSetup:
    def test_unknown_tournament(self, client: TestClient):
        assert client.get("/api/tournaments/999").status_code == 404

    def test_invalid_format(self, client: TestClient):
        response = client.post("/api/tournaments", json={"name": "X", "format": "swiss"})
        assert response.status_code == 422

    def test_inverted_dates(self, client: TestClient):
        response = client.post(
            "/api/tournaments", json={"name": "X", "start_date": "2026-02-01", "end_date": "2026-01-01"}
        )
        assert response.status_code == 422

    def test_registration_errors(self, client: TestClient):
        team_ids = _create_teams(client, 2)
        tournament_id, _ = _tournament(client, team_ids)

        again = client.post(f"/api/tournaments/{tournament_id}/teams", json={"team_id": team_ids[0]})
        assert again.status_code == 409
        missing = client.post(f"/api/tournaments/{tournament_id}/teams", json={"team_id": 999})
        assert missing.status_code == 404
        listed = client.get(f"/api/tournaments/{tournament_id}/teams").json()
        assert [entry["team_name"] for entry in listed] == ["Side 1", "Side 2"]

    def test_generate_without_dates_is_bad_request(self, client: TestClient):
        team_ids = _create_teams(client, 2)
        client.post("/api/venues", json={"name": "Chepauk"})
        tournament_id = client.post("/api/tournaments", json={"name": "Undated"}).json()["id"]
        for team_id in team_ids:
            client.post(f"/api/tournaments/{tournament_id}/teams", json={"team_id": team_id})

        response = client.post(f"/api/tournaments/{tournament_id}/fixtures/generate")
        assert response.status_code == 400


class TestLeagueFlow:
    def test_result_updates_standings(self, client: TestClient):
        team_ids = _create_teams(client, 4)
        tournament_id, venue_id = _tournament(client, team_ids)

        generated = client.post(f"/api/tournaments/{tournament_id}/fixtures/generate", json={"seed": 1})
        assert generated.status_code == 201
        assert generated.json()["fixtures_created"] == 6

        fixtures = client.get(f"/api/tournaments/{tournament_id}/fixtures").json()
        assert [f["match_number"] for f in fixtures] == [1, 2, 3, 4, 5, 6]
        assert all(f["venue_id"] == venue_id for f in fixtures)

        first = fixtures[0]
        response = _complete(client, tournament_id, first["id"], home_score="180/4 (20.0)", away_score="150/8 (20.0)")
        assert response.status_code == 200
        body = response.json()
        assert body["match"]["status"] == "completed"
        assert body["processing"]["standings_updated"] == 2

        table = client.get(f"/api/tournaments/{tournament_id}/standings").json()
        assert table[0]["team_id"] == first["home_team_id"]
        assert table[0]["points"] == 2
        assert table[0]["net_run_rate"] == 1.5
        assert table[0]["form"] == ["W"]
        assert table[-1]["team_id"] == first["away_team_id"]
        assert table[-1]["net_run_rate"] == -1.5

    def test_finished_match_cannot_change(self, client: TestClient):
        team_ids = _create_teams(client, 2)
        tournament_id, _ = _tournament(client, team_ids)
        client.post(f"/api/tournaments/{tournament_id}/fixtures/generate")
        link_id = client.get(f"/api/tournaments/{tournament_id}/fixtures").json()[0]["id"]

        assert _complete(client, tournament_id, link_id).status_code == 200
        response = client.patch(
            f"/api/tournaments/{tournament_id}/runtime/matches/{link_id}", json={"status": "live"}
        )
        assert response.status_code == 409

    def test_invalid_payloads(self, client: TestClient):
        team_ids = _create_teams(client, 2)
        tournament_id, _ = _tournament(client, team_ids)
        client.post(f"/api/tournaments/{tournament_id}/fixtures/generate")
        link_id = client.get(f"/api/tournaments/{tournament_id}/fixtures").json()[0]["id"]
        url = f"/api/tournaments/{tournament_id}/runtime/matches/{link_id}"

        assert client.patch(url, json={"status": "postponed"}).status_code == 422
        assert client.patch(url, json={"home_score": "lots"}).status_code == 422
        assert client.patch(f"/api/tournaments/{tournament_id}/runtime/matches/999", json={}).status_code == 404

    def test_recalculate(self, client: TestClient):
        team_ids = _create_teams(client, 3)
        tournament_id, _ = _tournament(client, team_ids)
        client.post(f"/api/tournaments/{tournament_id}/fixtures/generate")
        link_id = client.get(f"/api/tournaments/{tournament_id}/fixtures").json()[0]["id"]
        _complete(client, tournament_id, link_id, result="tie")

        response = client.post(f"/api/tournaments/{tournament_id}/standings/recalculate")
        assert response.status_code == 200
        assert response.json()["standings_updated"] == 3
        assert sorted(row["points"] for row in response.json()["standings"]) == [0, 1, 1]

    def test_recalculate_knockout_conflict(self, client: TestClient):
        team_ids = _create_teams(client, 4)
        tournament_id, _ = _tournament(client, team_ids, format="knockout")
        client.post(f"/api/tournaments/{tournament_id}/fixtures/generate")
        assert client.post(f"/api/tournaments/{tournament_id}/standings/recalculate").status_code == 409


class TestPlayoffFlow:
    def test_ipl_league_then_playoffs(self, client: TestClient):
        team_ids = _create_teams(client, 4)
        tournament_id, _ = _tournament(client, team_ids, ipl_format=True)
        assert client.post(f"/api/tournaments/{tournament_id}/fixtures/generate").status_code == 201

        fixtures = client.get(f"/api/tournaments/{tournament_id}/fixtures").json()
        league = [f for f in fixtures if not f["is_playoff"]]
        playoffs = {f["stage"]: f for f in fixtures if f["is_playoff"]}
        assert set(playoffs) == {"qualifier-1", "eliminator", "qualifier-2", "final"}
        assert playoffs["qualifier-1"]["home_placeholder"] == "League 1st"

        for fixture in league:
            assert _complete(client, tournament_id, fixture["id"]).status_code == 200

        fixtures = {f["stage"]: f for f in client.get(f"/api/tournaments/{tournament_id}/fixtures").json() if f["is_playoff"]}
        qualifier_1 = fixtures["qualifier-1"]
        assert qualifier_1["home_team_id"] and qualifier_1["away_team_id"]
        assert fixtures["eliminator"]["home_team_id"] and fixtures["eliminator"]["away_team_id"]

        response = _complete(client, tournament_id, qualifier_1["id"], result="away_win")
        assert response.status_code == 200
        filled = {(s["side"], s["team_id"]) for s in response.json()["processing"]["slots_filled"]}
        assert filled == {("home", qualifier_1["away_team_id"]), ("home", qualifier_1["home_team_id"])}

        final = client.get(
            f"/api/tournaments/{tournament_id}/runtime/matches/{fixtures['final']['id']}"
        ).json()
        assert final["home_team_id"] == qualifier_1["away_team_id"]

        repeat = client.post(f"/api/tournaments/{tournament_id}/runtime/matches/{qualifier_1['id']}/advance")
        assert repeat.status_code == 200
        assert repeat.json()["advanced_count"] == 0


class TestPlayerStats:
    def test_leaderboard_from_performances(self, client: TestClient):
        team_ids = _create_teams(client, 2)
        tournament_id, _ = _tournament(client, team_ids)
        client.post(f"/api/tournaments/{tournament_id}/fixtures/generate")
        fixture = client.get(f"/api/tournaments/{tournament_id}/fixtures").json()[0]

        response = _complete(
            client,
            tournament_id,
            fixture["id"],
            performances=[
                {"user_id": 1, "team_id": fixture["home_team_id"], "player_name": "Opener", "runs": 72, "balls_faced": 48},
                {"user_id": 2, "team_id": fixture["away_team_id"], "player_name": "Quick", "wickets": 4, "overs_bowled": "4"},
            ],
        )
        assert response.json()["processing"]["players_updated"] == 2

        top = client.get(f"/api/tournaments/{tournament_id}/stats/top", params={"category": "orange_cap"}).json()
        assert top["category"] == "runs"
        assert top["leaders"][0]["player_name"] == "Opener"

        player = client.get(f"/api/tournaments/{tournament_id}/stats/players/2").json()
        assert player["wickets"] == 4
        assert player["mvp_score"] == 80

        assert client.get(f"/api/tournaments/{tournament_id}/stats/players/42").status_code == 404

    def test_performances_need_completed_match(self, client: TestClient):
        team_ids = _create_teams(client, 2)
        tournament_id, _ = _tournament(client, team_ids)
        client.post(f"/api/tournaments/{tournament_id}/fixtures/generate")
        link_id = client.get(f"/api/tournaments/{tournament_id}/fixtures").json()[0]["id"]

        response = client.patch(
            f"/api/tournaments/{tournament_id}/runtime/matches/{link_id}",
            json={"status": "live", "performances": [{"user_id": 1, "runs": 10}]},
        )
        assert response.status_code == 409

    def test_summary_and_head_to_head(self, client: TestClient):
        team_ids = _create_teams(client, 3)
        tournament_id, _ = _tournament(client, team_ids)
        client.post(f"/api/tournaments/{tournament_id}/fixtures/generate")
        fixture = client.get(f"/api/tournaments/{tournament_id}/fixtures").json()[0]
        home, away = fixture["home_team_id"], fixture["away_team_id"]
        _complete(
            client,
            tournament_id,
            fixture["id"],
            home_score="171/5 (20.0)",
            away_score="160/9 (20.0)",
            performances=[{"user_id": 1, "team_id": home, "player_name": "Opener", "runs": 88, "sixes": 5}],
        )

        summary = client.get(f"/api/tournaments/{tournament_id}/stats/summary").json()
        assert summary["tournament_name"] == "Spring League"
        assert (summary["total_matches"], summary["completed_matches"], summary["upcoming_matches"]) == (3, 1, 2)
        assert summary["boundaries"]["sixes"] == 5
        assert summary["orange_cap"]["player_name"] == "Opener"

        url = f"/api/tournaments/{tournament_id}/head-to-head"
        record = client.get(url, params={"team1": away, "team2": home}).json()
        assert record["matches"] == 1
        assert (record["team1"]["wins"], record["team2"]["wins"]) == (0, 1)
        assert (record["team2"]["name"], record["team2"]["highest_score"]) == (f"Side {team_ids.index(home) + 1}", 171)

        assert client.get(url, params={"team1": home, "team2": home}).status_code == 400
        assert client.get(url, params={"team1": home, "team2": 999}).status_code == 404
        assert client.get("/api/tournaments/999/stats/summary").status_code == 404
