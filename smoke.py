# smoke.py: end-to-end run against a live Survivor Pool API
import requests

BASE = "http://127.0.0.1:8000"


def call(method, path, user_id=None, **kw):
    headers = kw.pop("headers", {})
    if user_id is not None:
        headers["X-User-Id"] = str(user_id)
    r = requests.request(method, BASE + path, headers=headers, timeout=15, **kw)
    r.raise_for_status()
    return r.json()


print("=== 1) users ===")
alice = call("POST", "/users/", json={"display_name": "Alice"})
bob = call("POST", "/users/", json={"display_name": "Bob"})
print(alice, bob)

print("=== 2) league ===")
league = call(
    "POST",
    "/leagues/",
    alice["id"],
    json={"name": "Smoke League", "password": "smoke123", "max_strikes": 2},
)
print(league)
print(call("GET", f"/leagues/invite/{league['invite_code']}"))
call("POST", f"/leagues/{league['id']}/join", bob["id"], json={"password": "smoke123"})

print("=== 3) season + available teams ===")
season = call("GET", "/nfl/season")
print(season)
week = max(season["week"], league["start_week"])
available = call("GET", f"/picks/available/{league['id']}/{week}", alice["id"])
open_teams = [t for t in available["teams"] if not t["is_locked"] and not t["is_used"]]
print(f"{len(open_teams)} open teams in week {week}")

if open_teams:
    print("=== 4) pick ===")
    print(call("POST", "/picks/", alice["id"], json={"league_id": league["id"], "week": week, "team_id": open_teams[0]["team_id"]}))

print("=== 5) standings (as Bob) ===")
for row in call("GET", f"/standings/{league['id']}", bob["id"])["standings"]:
    print(row["display_name"], row["effective_strikes"], row["effective_status"], [w["status"] for w in row["weeks"]])

print("=== 6) reconcile ===")
print(call("POST", "/picks/update-results"))
