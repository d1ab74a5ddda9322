# tests/test_leagues_api.py
from conftest import as_user


def test_create_league_makes_commissioner_a_member(client, schedule, make_user, make_league):
    boss = make_user("Boss")
    league = make_league(boss, name="Create Check", max_strikes=2, double_pick_weeks=[4, 4, 30])
    assert league["season"] == schedule.season
    assert league["double_pick_weeks"] == [4]
    assert len(league["invite_code"]) == 6

    r = client.get("/users/me/leagues", headers=as_user(boss))
    assert r.status_code == 200
    mine = [l for l in r.json() if l["id"] == league["id"]]
    assert mine and mine[0]["is_commissioner"] is True and mine[0]["member_count"] == 1


def test_create_league_validation(client, make_user):
    boss = make_user("Validator")
    cases = [
        ({"name": "ab", "password": "hunter2"}, "League name must be at least 3 characters"),
        ({"name": "Valid", "password": "abc"}, "Password must be at least 4 characters"),
        ({"name": "Valid", "password": "hunter2", "max_strikes": 6}, "Max strikes must be between 1 and 5"),
        ({"name": "Valid", "password": "hunter2", "start_week": 19}, "Start week must be between 1 and 18"),
    ]
    for body, detail in cases:
        r = client.post("/leagues/", json=body, headers=as_user(boss))
        assert r.status_code == 400
        assert r.json()["detail"] == detail


def test_missing_or_unknown_user_header(client):
    assert client.get("/users/me").status_code == 401
    assert client.get("/users/me", headers=as_user(999999)).status_code == 404


def test_join_with_password_and_invite_preview(client, make_user, make_league):
    boss = make_user("Host")
    guest = make_user("Guest")
    league = make_league(boss, name="Invite Only")

    r = client.get(f"/leagues/invite/{league['invite_code'].lower()}")
    assert r.status_code == 200
    assert r.json()["commissioner_name"] == "Host"
    assert client.get("/leagues/invite/ZZZZZZ").status_code == 404

    r = client.post(f"/leagues/{league['id']}/join", json={"password": "nope"}, headers=as_user(guest))
    assert r.status_code == 400 and r.json()["detail"] == "Incorrect password"

    r = client.post(f"/leagues/{league['id']}/join", json={"password": "hunter2"}, headers=as_user(guest))
    assert r.status_code == 200
    assert r.json()["display_name"] == "Guest"

    r = client.post(f"/leagues/{league['id']}/join", json={"password": "hunter2"}, headers=as_user(guest))
    assert r.status_code == 400
    assert r.json()["detail"] == "You are already a member of this league"


def test_available_and_search(client, make_user, make_league):
    boss = make_user("Lister")
    other = make_user("Browser")
    league = make_league(boss, name="Findable Gridiron Club")

    ids = [l["id"] for l in client.get("/leagues/available", headers=as_user(other)).json()]
    assert league["id"] in ids
    ids = [l["id"] for l in client.get("/leagues/available", headers=as_user(boss)).json()]
    assert league["id"] not in ids

    r = client.get("/leagues/search", params={"query": "gridiron"}, headers=as_user(other))
    assert r.status_code == 200
    assert league["id"] in [l["id"] for l in r.json()]
    assert client.get("/leagues/search", params={"query": "g"}, headers=as_user(other)).status_code == 400


def test_league_detail_requires_membership(client, make_user, make_league, join):
    boss = make_user("Owner")
    fan = make_user("Fan")
    outsider = make_user("Outsider")
    league = make_league(boss, name="Detail League", entry_fee=25)
    join(league, fan)

    r = client.get(f"/leagues/{league['id']}", headers=as_user(outsider))
    assert r.status_code == 403
    assert r.json() == {"detail": "You are not a member of this league", "error": "forbidden"}

    r = client.get(f"/leagues/{league['id']}", headers=as_user(fan))
    assert r.status_code == 200
    js = r.json()
    assert js["is_commissioner"] is False
    assert js["commissioner_name"] == "Owner"
    assert [m["display_name"] for m in js["members"]] == ["Owner", "Fan"]
    assert js["prize_pot"] == 0.0

    assert client.get("/leagues/999999", headers=as_user(fan)).status_code == 404


def test_payment_and_prize_pot(client, make_user, make_league, join):
    boss = make_user("Treasurer")
    fan = make_user("Payer")
    league = make_league(boss, name="Money League", entry_fee=20)
    member = join(league, fan)

    r = client.patch(
        f"/leagues/{league['id']}/members/{member['id']}/payment",
        json={"has_paid": True},
        headers=as_user(boss),
    )
    assert r.status_code == 200 and r.json()["has_paid"] is True

    r = client.patch(
        f"/leagues/{league['id']}/members/{member['id']}/payment",
        json={"has_paid": False},
        headers=as_user(fan),
    )
    assert r.status_code == 403

    js = client.get(f"/leagues/{league['id']}", headers=as_user(boss)).json()
    assert js["paid_count"] == 1
    assert js["prize_pot"] == 20.0


def test_settings_update_and_action_log(client, make_user, make_league, join):
    boss = make_user("Settler")
    fan = make_user("Watcher")
    league = make_league(boss, name="Settings League")
    join(league, fan)
    url = f"/leagues/{league['id']}/settings"

    r = client.put(url, json={"max_strikes": 3}, headers=as_user(fan))
    assert r.status_code == 403

    r = client.put(url, json={"max_strikes": 9}, headers=as_user(boss))
    assert r.status_code == 400

    r = client.put(url, json={"max_strikes": 3, "double_pick_weeks": [6, 2]}, headers=as_user(boss))
    assert r.status_code == 200
    assert "Max strikes: 1 → 3" in r.json()["message"]

    r = client.put(url, json={"max_strikes": 3}, headers=as_user(boss))
    assert r.json()["message"] == "No changes"

    js = client.get(f"/leagues/{league['id']}", headers=as_user(boss)).json()
    assert js["max_strikes"] == 3 and js["double_pick_weeks"] == [2, 6]

    log = client.get(f"/leagues/{league['id']}/action-log", headers=as_user(boss)).json()
    assert len(log) == 1
    assert log[0]["action"] == "settings_changed"
    assert log[0]["performed_by"] == "Settler"
    assert "Double pick weeks: 2, 6" in log[0]["reason"]
    assert client.get(f"/leagues/{league['id']}/action-log", headers=as_user(fan)).status_code == 403


def test_regenerate_invite(client, make_user, make_league):
    boss = make_user("Rotator")
    league = make_league(boss, name="Rotating Codes")
    r = client.post(f"/leagues/{league['id']}/regenerate-invite", headers=as_user(boss))
    assert r.status_code == 200
    code = r.json()["invite_code"]
    assert client.get(f"/leagues/invite/{code}").status_code == 200


def test_pool_rules_endpoint(client):
    r = client.get("/leagues/rules")
    assert r.status_code == 200
    assert r.json()["start_week_range"] == [1, 18]
