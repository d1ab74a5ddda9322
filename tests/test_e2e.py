# tests/test_e2e.py
from conftest import as_user


def test_tie_eliminates_before_reconcile(client, schedule, make_user, make_league):
    # 1) league: one strike, everyone from week 1, single picks
    u = make_user("Solo")
    league = make_league(u, name="Tiebreak League", max_strikes=1, start_week=1)
    lid = league["id"]
    schedule.add_game(1, "12", "3")
    schedule.add_game(2, "7", "8")

    # 2) week 1: Team 12 wins 20-17
    r = client.post("/picks/", json={"league_id": lid, "week": 1, "team_id": "12"}, headers=as_user(u))
    assert r.status_code == 200, r.text
    schedule.finish(1, "12", 20, 17)

    schedule.week = 1
    row = client.get(f"/standings/{lid}", headers=as_user(u)).json()["standings"][0]
    assert row["weeks"][0]["picks"][0]["effective_result"] == "win"
    assert row["effective_strikes"] == 0
    assert row["effective_status"] == "active"

    # 3) week 2: Team 7 ties 14-14
    r = client.post("/picks/", json={"league_id": lid, "week": 2, "team_id": "7"}, headers=as_user(u))
    assert r.status_code == 200, r.text
    schedule.finish(2, "7", 14, 14)

    schedule.week = 2
    row = client.get(f"/standings/{lid}", headers=as_user(u)).json()["standings"][0]
    assert row["weeks"][1]["picks"][0]["effective_result"] == "loss"
    assert row["effective_strikes"] == 1
    assert row["effective_status"] == "eliminated"
    # nothing persisted yet
    assert row["strikes"] == 0 and row["status"] == "active"

    # 4) reconcile persists it; standings do not double count
    assert client.post("/picks/update-results").json()["updated"] == 2
    row = client.get(f"/standings/{lid}", headers=as_user(u)).json()["standings"][0]
    assert row["strikes"] == 1 and row["effective_strikes"] == 1
    assert row["status"] == "eliminated"

    # 5) eliminated members cannot pick again
    schedule.add_game(3, "20", "21")
    r = client.post("/picks/", json={"league_id": lid, "week": 3, "team_id": "20"}, headers=as_user(u))
    assert r.status_code == 403


def test_double_pick_week_rejects_same_team(client, schedule, make_user, make_league):
    u = make_user("Twice")
    league = make_league(u, name="Week Ten League", double_pick_weeks=[10])
    lid = league["id"]
    schedule.add_game(10, "5", "6")
    schedule.add_game(10, "9", "11")

    def submit(team, n):
        return client.post(
            "/picks/",
            json={"league_id": lid, "week": 10, "team_id": team, "pick_number": n},
            headers=as_user(u),
        )

    assert submit("5", 1).status_code == 200
    r = submit("5", 2)
    assert r.status_code == 409
    assert r.json()["detail"] == "Cannot pick the same team twice in one week"
    assert submit("9", 2).status_code == 200

    schedule.week = 10
    js = client.get(f"/standings/{lid}", headers=as_user(u)).json()
    week10 = js["standings"][0]["weeks"][-1]
    assert week10["is_double_pick"] is True
    assert [p["team_id"] for p in week10["picks"]] == ["5", "9"]
