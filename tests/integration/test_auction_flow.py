"""End-to-end auction flow against a live database.

Seeds a small catalog, opens an auction, bids, sells, and checks the
ledger from both the manager's and the admin's side.
"""

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio(loop_scope="session")

_TEAM = {"id": 990, "name": "Integration United", "short_name": "ITU"}
_PLAYERS = [
    {"id": 990001, "first_name": "Ian", "second_name": "Keeper", "web_name": "Keeper",
     "position": "GK", "list_price": 9, "team_id": 990},
    {"id": 990002, "first_name": "Dan", "second_name": "Back", "web_name": "Back",
     "position": "DEF", "list_price": 11, "team_id": 990},
]


async def _me(client: AsyncClient) -> dict:
    return (await client.get("/api/v1/managers/me/budget")).json()["data"]


class TestAuctionFlow:
    async def test_non_admin_cannot_start(self, auth_client: AsyncClient) -> None:
        resp = await auth_client.post("/api/v1/admin/auction/start", json={"phase": 1})
        assert resp.status_code == 403
        assert resp.json()["code"] == 1006

    async def test_full_sale(self, admin_client: AsyncClient, auth_client: AsyncClient) -> None:
        # Wipe auctions, squads and budgets left by a previous run
        resp = await admin_client.post("/api/v1/admin/reset")
        assert resp.status_code == 200

        resp = await admin_client.put(
            "/api/v1/admin/catalog", json={"teams": [_TEAM], "players": _PLAYERS}
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["players_upserted"] == 2

        resp = await admin_client.post("/api/v1/admin/auction/start", json={"phase": 1})
        assert resp.status_code == 201
        started = resp.json()["data"]
        assert started["status"] == "OPEN"
        assert started["lots_created"] >= 2
        assert len(started["lots"]) == started["lots_created"]

        state = (await auth_client.get("/api/v1/auction/current")).json()["data"]
        ours = {lot["player_id"]: lot for lot in state["lots"]}
        lot = ours[990002]

        resp = await auth_client.post(
            f"/api/v1/auction/lots/{lot['lot_id']}/bids", json={"amount": 12}
        )
        assert resp.status_code == 201

        low = await auth_client.post(
            f"/api/v1/auction/lots/{lot['lot_id']}/bids", json={"amount": 12}
        )
        assert low.status_code == 422
        assert low.json()["code"] == 4003

        resp = await admin_client.post(f"/api/v1/admin/auction/lots/{lot['lot_id']}/sell")
        assert resp.status_code == 200
        sale = resp.json()["data"]
        assert sale["sold"] is True
        assert sale["price"] == 12

        budget = await _me(auth_client)
        assert budget["spent"] == 12
        assert budget["remaining"] == budget["starting"] - 12

        owner = await auth_client.get("/api/v1/players/990002/owner?phase=1")
        assert owner.json()["data"]["owner_id"] == budget["manager_id"]

        squad = await auth_client.get(f"/api/v1/managers/{budget['manager_id']}/squads/1")
        assert squad.json()["data"]["position_counts"]["DEF"] == 1

        resp = await admin_client.post(f"/api/v1/admin/auction/lots/{lot['lot_id']}/sell")
        assert resp.json()["code"] == 4002

        invariants = (await admin_client.get("/api/v1/admin/invariants")).json()["data"]
        assert invariants["ok"] is True

        resp = await admin_client.post("/api/v1/admin/auction/end")
        assert resp.status_code == 200
        assert resp.json()["data"]["status"] == "CLOSED"
