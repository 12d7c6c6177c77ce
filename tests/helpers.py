"""Helpers shared by the test modules."""

PASSWORD = "Secret123"


def pick(players, role, count, most_expensive=False):
    chosen = sorted(
        (p for p in players if p.role == role),
        key=lambda p: (p.value, p.name),
        reverse=most_expensive,
    )
    return chosen[:count]


def cheapest_roster(players):
    """Valid 15-player roster: the cheapest players of each role (total 80)."""
    return (
        pick(players, "GK", 2)
        + pick(players, "DEF", 5)
        + pick(players, "MID", 5)
        + pick(players, "ATT", 3)
    )


def ids(players):
    return [str(p.player_id) for p in players]


def signup_and_login(client, email="luca@example.com", password=PASSWORD):
    resp = client.post("/auth/signup", json={
        "email": email,
        "password": password,
        "first_name": "Luca",
        "last_name": "Bianchi",
    })
    assert resp.status_code == 201, resp.text
    resp = client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}
