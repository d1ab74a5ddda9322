from conftest import as_user


def test_create_and_read_user(client):
    r = client.post("/users/", json={"display_name": "  Casey  ", "email": "Casey@Example.com"})
    assert r.status_code == 200
    js = r.json()
    assert js["display_name"] == "Casey"
    assert js["email"] == "casey@example.com"

    me = client.get("/users/me", headers=as_user(js["id"])).json()
    assert me["id"] == js["id"]

    dup = client.post("/users/", json={"display_name": "Other", "email": "casey@example.com"})
    assert dup.status_code == 400


def test_blank_display_name_rejected(client):
    assert client.post("/users/", json={"display_name": "   "}).status_code == 400


def test_my_leagues_empty(client, make_user):
    u = make_user("Loner")
    assert client.get("/users/me/leagues", headers=as_user(u)).json() == []


def test_nfl_season_and_schedule(client, schedule):
    schedule.week = 3
    schedule.add_game(20, "1", "2")
    js = client.get("/nfl/season").json()
    assert js["season"] == schedule.season and js["week"] == 3

    r = client.get("/nfl/schedule/20")
    assert r.status_code == 200
    js = r.json()
    assert js["label"] == "Divisional" and js["season_type"] == 3
    assert [g["home_team_id"] for g in js["games"]] == ["1"]
    assert client.get("/nfl/schedule/0").status_code == 400


def _pick(client, user_id, league_id, week, team, pick_number=1):
    r = client.post(
        "/picks/",
        json={"league_id": league_id, "week": week, "team_id": team, "pick_number": pick_number},
        headers=as_user(user_id),
    )
    assert r.status_code == 200, r.text


def test_update_display_name_and_email(client, make_user):
    u = make_user("Renamer")
    client.post("/users/", json={"display_name": "Holder", "email": "taken@example.com"})

    r = client.put("/users/display-name", json={"display_name": " J "}, headers=as_user(u))
    assert r.status_code == 400
    assert r.json()["detail"] == "Display name must be at least 2 characters"
    r = client.put("/users/display-name", json={"display_name": "  Jordan  "}, headers=as_user(u))
    assert r.status_code == 200
    assert r.json()["display_name"] == "Jordan"

    r = client.put("/users/email", json={"email": "not-an-email"}, headers=as_user(u))
    assert r.status_code == 400
    assert r.json()["detail"] == "Please enter a valid email address"
    r = client.put("/users/email", json={"email": "TAKEN@example.com"}, headers=as_user(u))
    assert r.status_code == 400
    r = client.put("/users/email", json={"email": " Jordan@Example.com "}, headers=as_user(u))
    assert r.status_code == 200
    assert r.json()["email"] == "jordan@example.com"
    # keeping your own address is not a clash
    r = client.put("/users/email", json={"email": "jordan@example.com"}, headers=as_user(u))
    assert r.status_code == 200

    me = client.get("/users/me", headers=as_user(u)).json()
    assert me["display_name"] == "Jordan" and me["email"] == "jordan@example.com"
    assert client.put("/users/email", json={"email": "x@y.z"}).status_code == 401


def test_pending_picks_lists_leagues_still_owed(client, schedule, make_user, make_league, join):
    u = make_user("Owes")
    boss = make_user("Owed Boss")
    schedule.week = 4
    schedule.add_game(4, "1", "2")
    schedule.add_game(4, "3", "4")
    done = make_league(u, name="Alpha Done")
    owed = make_league(u, name="Bravo Owed")
    double = make_league(u, name="Charlie Double", double_pick_weeks=[4])
    make_league(u, name="Delta Later", start_week=9)
    out = make_league(boss, name="Echo Out")
    join(out, u)

    _pick(client, u, done["id"], 4, "1")
    _pick(client, u, double["id"], 4, "1")
    members = client.get(f"/leagues/{out['id']}", headers=as_user(boss)).json()["members"]
    mid = next(m["id"] for m in members if m["user_id"] == u)
    r = client.post(
        f"/leagues/{out['id']}/members/{mid}/strikes", json={"action": "add"}, headers=as_user(boss)
    )
    assert r.json()["status"] == "eliminated"

    js = client.get("/users/pending-picks", headers=as_user(u)).json()
    assert js["current_week"] == 4
    assert [(p["league_name"], p["picks_made"], p["picks_required"]) for p in js["pending_picks"]] == [
        ("Bravo Owed", 0, 1),
        ("Charlie Double", 1, 2),
    ]
    assert js["pending_picks"][0]["league_id"] == owed["id"]


def test_history_and_stats(client, schedule, make_user, make_league):
    u = make_user("Veteran")
    first = make_league(u, name="Zulu League", max_strikes=2)
    second = make_league(u, name="Yankee League", max_strikes=1)
    schedule.add_game(1, "1", "2")
    schedule.add_game(1, "3", "4")
    schedule.add_game(2, "5", "6")

    _pick(client, u, first["id"], 1, "1")
    _pick(client, u, second["id"], 1, "3")
    _pick(client, u, first["id"], 2, "5")
    schedule.finish(1, "1", 27, 3)
    schedule.finish(1, "3", 0, 7)
    assert client.post("/picks/update-results").json()["updated"] == 2

    history = client.get("/users/history", headers=as_user(u)).json()
    assert [h["league_name"] for h in history] == ["Zulu League", "Yankee League"]
    assert [(p["week"], p["team_id"], p["result"]) for p in history[0]["picks"]] == [
        (2, "5", "pending"),
        (1, "1", "win"),
    ]
    assert [(p["week"], p["result"]) for p in history[1]["picks"]] == [(1, "loss")]

    stats = client.get("/users/stats", headers=as_user(u)).json()
    assert stats == {
        "leagues_joined": 2,
        "total_picks": 3,
        "wins": 1,
        "losses": 1,
        "active_leagues": 1,
        "eliminated_leagues": 1,
        "win_rate": 50.0,
    }


def test_stats_for_new_user_are_zero(client, make_user):
    u = make_user("Rookie")
    stats = client.get("/users/stats", headers=as_user(u)).json()
    assert stats["total_picks"] == 0 and stats["win_rate"] == 0.0
    assert client.get("/users/history", headers=as_user(u)).json() == []
