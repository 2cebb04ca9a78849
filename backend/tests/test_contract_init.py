"""Contract tests for /init."""
from fastapi.testclient import TestClient

from skate_roulette.main import app

client = TestClient(app)

PLAYER_ID = "test-player-123"


def test_init_requires_player_id():
    """GET /init without X-Player-Id must return INVALID_REQUEST (400)."""
    response = client.get("/init")
    assert response.status_code == 400
    data = response.json()
    assert data["protocolVersion"] == "1.0"
    assert data["error"]["code"] == "INVALID_REQUEST"
    assert data["error"]["recoverable"] is False


def test_init_rejects_blank_player_id():
    response = client.get("/init", headers={"X-Player-Id": "   "})
    assert response.status_code == 400


def test_init_returns_200():
    response = client.get("/init", headers={"X-Player-Id": PLAYER_ID})
    assert response.status_code == 200
    assert response.json()["protocolVersion"] == "1.0"


def test_init_returns_configuration():
    response = client.get("/init", headers={"X-Player-Id": PLAYER_ID})
    config = response.json()["configuration"]

    assert config["difficulties"] == ["easy", "medium", "hard", "custom"]
    assert config["modes"] == ["flatground", "ledge"]
    assert config["minSpinDurationMs"] == 2500
    assert config["itemExtent"] == 80
    assert len(config["catalogHash"]) == 16


def test_init_catalog_lists_every_category():
    response = client.get("/init", headers={"X-Player-Id": PLAYER_ID})
    catalog = {entry["category"]: entry for entry in response.json()["configuration"]["catalog"]}

    assert set(catalog) == {"stance", "rotation", "degree", "trick", "grind", "tries"}
    assert catalog["tries"]["toggleable"] is False
    assert catalog["grind"]["toggleable"] is True
    assert len(catalog["grind"]["options"]) == 10
    assert catalog["rotation"]["options"][2] == {"label": "X", "value": ""}
    assert catalog["tries"]["options"][3] == {"label": "UNTIL\nLANDED", "value": "Until Landed"}


def test_init_returns_default_settings_and_display_text():
    """A new player starts on medium flatground with nothing rolled yet."""
    response = client.get("/init", headers={"X-Player-Id": PLAYER_ID})
    data = response.json()

    assert data["settings"]["difficulty"] == "medium"
    assert data["settings"]["mode"] == "flatground"
    assert data["settings"]["customConfig"]["stances"] == []
    assert data["displayText"] == "SKATER'S CHOICE"


def test_init_restores_saved_settings(client_with_mock_redis, mock_redis):
    mock_redis._store["settings:player:returning"] = (
        '{"difficulty": "easy", "mode": "ledge", "customConfig": {"grinds": ["Feeble"]}}'
    )
    response = client_with_mock_redis.get("/init", headers={"X-Player-Id": "returning"})
    settings = response.json()["settings"]

    assert settings["difficulty"] == "easy"
    assert settings["mode"] == "ledge"
    assert settings["customConfig"]["grinds"] == ["Feeble"]


def test_init_survives_redis_outage(client_with_failing_redis, failing_redis):
    response = client_with_failing_redis.get("/init", headers={"X-Player-Id": PLAYER_ID})
    assert response.status_code == 200
    assert response.json()["settings"]["mode"] == "flatground"
    assert failing_redis.calls > 0


def test_init_lists_toggleable_options():
    """Blank faces and the tries reel have no individual switch."""
    response = client.get("/init", headers={"X-Player-Id": PLAYER_ID})
    catalog = {entry["category"]: entry for entry in response.json()["configuration"]["catalog"]}

    assert [option["value"] for option in catalog["rotation"]["toggleableOptions"]] == [
        "Backside",
        "Frontside",
    ]
    assert len(catalog["grind"]["toggleableOptions"]) == 10
    assert catalog["tries"]["toggleableOptions"] == []
