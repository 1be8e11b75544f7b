from decimal import Decimal

import pytest

from conftest import ad_payload, bearer, make_ad, make_user, register


async def _create(client, token, **overrides):
    resp = await client.post("/api/ads", json=ad_payload(**overrides), headers=bearer(token))
    assert resp.status_code == 201, resp.text
    return resp.json()


async def _balance(client, token):
    resp = await client.get("/api/auth/me", headers=bearer(token))
    assert resp.status_code == 200
    return Decimal(str(resp.json()["balance"]))


@pytest.mark.asyncio
async def test_end_to_end_billing_flow(client):
    token, user = await register(client, "alice")
    assert Decimal(str(user["balance"])) == Decimal("100")

    ad = await _create(client, token, price=30)
    assert ad["status"] == "Active"
    assert ad["policy_override"] is None

    balances = []
    for _ in range(3):
        resp = await client.post(f"/api/ads/{ad['id']}/clicks")
        assert resp.status_code == 200, resp.text
        balances.append(await _balance(client, token))
    assert balances == [Decimal("70"), Decimal("40"), Decimal("10")]

    resp = await client.post(f"/api/ads/{ad['id']}/clicks")
    assert resp.status_code == 402
    body = resp.json()
    assert body["code"] == "insufficient_funds"
    assert body["ad_id"] == ad["id"]

    detail = (await client.get(f"/api/ads/{ad['id']}")).json()
    assert detail["status"] == "Paused"
    assert detail["clicks"] == 3

    txs = (await client.get("/api/auth/transactions", headers=bearer(token))).json()
    charges = [t for t in txs if t["type"] == "ad-charge"]
    assert len(charges) == 3
    assert all(Decimal(str(t["amount"])) == Decimal("-30") for t in charges)
    assert any(t["type"] == "signup-bonus" and Decimal(str(t["amount"])) == Decimal("100") for t in txs)


@pytest.mark.asyncio
async def test_click_on_missing_ad_is_404(client):
    resp = await client.post("/api/ads/424242/clicks")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_create_requires_login(client):
    resp = await client.post("/api/ads", json=ad_payload())
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_create_validates_required_fields(client):
    token, _ = await register(client)
    resp = await client.post("/api/ads", json=ad_payload(image_urls=[]), headers=bearer(token))
    assert resp.status_code == 400
    resp = await client.post("/api/ads", json=ad_payload(title=""), headers=bearer(token))
    assert resp.status_code == 400
    resp = await client.post("/api/ads", json=ad_payload(price=None), headers=bearer(token))
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_create_unaffordable_ad_starts_paused(client):
    token, _ = await register(client)
    ad = await _create(client, token, price=150)
    assert ad["status"] == "Paused"
    assert ad["policy_override"] == "insufficient_balance"


@pytest.mark.asyncio
async def test_create_anonymous_hides_author_except_for_admin(client):
    token, _ = await register(client, "bob")
    admin_token, admin = await register(client, "admin")
    assert admin["role"] == "admin"

    ad = await _create(client, token, is_anonymous=True)
    assert ad["author"] == "Anonymous"

    public = (await client.get(f"/api/ads/{ad['id']}")).json()
    assert public["author"] == "Anonymous"
    as_admin = (await client.get(f"/api/ads/{ad['id']}", headers=bearer(admin_token))).json()
    assert as_admin["author"] == "bob (Anonymous)"


@pytest.mark.asyncio
async def test_update_price_above_balance_forces_pause(client):
    token, _ = await register(client)
    ad = await _create(client, token, price=30)

    resp = await client.put(f"/api/ads/{ad['id']}", json={"price": 500}, headers=bearer(token))
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "Paused"
    assert body["policy_override"] == "insufficient_balance"
    assert Decimal(str(body["price"])) == Decimal("500")


@pytest.mark.asyncio
async def test_update_other_fields_keeps_status(client):
    token, _ = await register(client)
    ad = await _create(client, token, price=30)

    resp = await client.put(
        f"/api/ads/{ad['id']}",
        json={"title": "Renamed", "is_anonymous": True},
        headers=bearer(token),
    )
    body = resp.json()
    assert body["title"] == "Renamed"
    assert body["author"] == "Anonymous"
    assert body["status"] == "Active"

    resp = await client.put(f"/api/ads/{ad['id']}", json={"is_anonymous": False}, headers=bearer(token))
    assert resp.json()["author"] == "alice"


@pytest.mark.asyncio
async def test_update_by_stranger_is_forbidden(client):
    token, _ = await register(client, "alice")
    other, _ = await register(client, "mallory")
    ad = await _create(client, token)

    resp = await client.put(f"/api/ads/{ad['id']}", json={"title": "x"}, headers=bearer(other))
    assert resp.status_code == 403
    resp = await client.delete(f"/api/ads/{ad['id']}", headers=bearer(other))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_admin_may_edit_any_ad(client):
    token, _ = await register(client, "alice")
    admin_token, _ = await register(client, "admin")
    ad = await _create(client, token)

    resp = await client.put(f"/api/ads/{ad['id']}", json={"status": "Rejected"}, headers=bearer(admin_token))
    assert resp.status_code == 200
    assert resp.json()["status"] == "Rejected"


@pytest.mark.asyncio
async def test_update_missing_ad_is_404(client):
    token, _ = await register(client)
    resp = await client.put("/api/ads/999", json={"title": "x"}, headers=bearer(token))
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_activation_toggle_reports_override(client):
    token, _ = await register(client)
    ad = await _create(client, token, price=80)

    # spend down to 20
    await client.post(f"/api/ads/{ad['id']}/clicks")
    paused = await client.patch(f"/api/ads/{ad['id']}/status", json={"active": False}, headers=bearer(token))
    assert paused.json()["status"] == "Paused"

    resp = await client.patch(f"/api/ads/{ad['id']}/status", json={"active": True}, headers=bearer(token))
    assert resp.status_code == 200
    assert resp.json()["status"] == "Paused"
    assert resp.json()["policy_override"] == "insufficient_balance"

    await client.post("/api/auth/topup", json={"amount": 100}, headers=bearer(token))
    resp = await client.patch(f"/api/ads/{ad['id']}/status", json={"active": True}, headers=bearer(token))
    assert resp.json()["status"] == "Active"
    assert resp.json()["policy_override"] is None


@pytest.mark.asyncio
async def test_top_up_does_not_reactivate(client):
    token, _ = await register(client)
    ad = await _create(client, token, price=150)
    assert ad["status"] == "Paused"

    await client.post("/api/auth/topup", json={"amount": 100}, headers=bearer(token))
    detail = (await client.get(f"/api/ads/{ad['id']}")).json()
    assert detail["status"] == "Paused"


@pytest.mark.asyncio
async def test_list_filters_and_sorting(client):
    token, _ = await register(client, "alice")
    other, _ = await register(client, "bob")
    await _create(client, token, title="Laptop deal", price=10, category="Tech")
    gaming = await _create(client, other, title="Arcade night", price=5, category="Gaming")
    await _create(client, token, title="Yoga class", price=20, category="Lifestyle")

    for _ in range(4):
        await client.post(f"/api/ads/{gaming['id']}/clicks")

    all_ads = (await client.get("/api/ads")).json()
    assert len(all_ads) == 3

    by_price = (await client.get("/api/ads", params={"sort_by": "price"})).json()
    assert [a["title"] for a in by_price] == ["Yoga class", "Laptop deal", "Arcade night"]

    # Arcade: 5 + 5*4*0.42 = 13.4, beats Laptop (10) but not Yoga (20)
    by_bid = (await client.get("/api/ads", params={"sort_by": "bid"})).json()
    assert [a["title"] for a in by_bid] == ["Yoga class", "Arcade night", "Laptop deal"]

    tech = (await client.get("/api/ads", params={"category": "Tech"})).json()
    assert [a["title"] for a in tech] == ["Laptop deal"]

    found = (await client.get("/api/ads", params={"search": "bob"})).json()
    assert [a["title"] for a in found] == ["Arcade night"]

    mine = (await client.get("/api/ads", params={"mine": "true"}, headers=bearer(token))).json()
    assert {a["title"] for a in mine} == {"Laptop deal", "Yoga class"}

    active = (await client.get("/api/ads", params={"status": "Paused"})).json()
    assert active == []


@pytest.mark.asyncio
async def test_list_mine_requires_login(client):
    resp = await client.get("/api/ads", params={"mine": "true"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_admin_target_user_filter(client):
    token, _ = await register(client, "alice")
    other, _ = await register(client, "bob")
    admin_token, _ = await register(client, "admin")
    await _create(client, token, title="From alice")
    await _create(client, other, title="From bob")

    resp = await client.get("/api/ads", params={"target_user": "bob"}, headers=bearer(admin_token))
    assert [a["title"] for a in resp.json()] == ["From bob"]
    resp = await client.get("/api/ads", params={"target_user": "All"}, headers=bearer(admin_token))
    assert len(resp.json()) == 2


@pytest.mark.asyncio
async def test_like_counts_up(client):
    token, _ = await register(client)
    ad = await _create(client, token)

    await client.post(f"/api/ads/{ad['id']}/likes")
    resp = await client.post(f"/api/ads/{ad['id']}/likes")
    assert resp.json() == {"success": True, "likes": 2}
    assert (await client.post("/api/ads/777/likes")).status_code == 404


@pytest.mark.asyncio
async def test_delete_ad(client):
    token, _ = await register(client)
    ad = await _create(client, token)

    resp = await client.delete(f"/api/ads/{ad['id']}", headers=bearer(token))
    assert resp.status_code == 200
    assert (await client.get(f"/api/ads/{ad['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_stats(client):
    token, _ = await register(client, "alice")
    other, _ = await register(client, "bob")
    a = await _create(client, token, title="A", price=10, category="Tech")
    await _create(client, token, title="B", price=20, category="Tech")
    await _create(client, other, title="C", price=30, category="Gaming")

    await client.post(f"/api/ads/{a['id']}/clicks")
    await client.post(f"/api/ads/{a['id']}/likes")

    stats = (await client.get("/api/ads/stats")).json()
    assert stats["total"] == 3
    assert stats["active"] == 3
    assert stats["total_clicks"] == 1
    assert stats["total_likes"] == 1
    assert stats["avg_price"] == pytest.approx(20)
    assert stats["trend"][0] == {"title": "A", "clicks": 1}
    assert stats["category_stats"] == [{"name": "Tech", "value": 2}, {"name": "Gaming", "value": 1}]

    mine = (await client.get("/api/ads/stats", params={"mine": "true"}, headers=bearer(other))).json()
    assert mine["total"] == 1


@pytest.mark.asyncio
async def test_authors_is_admin_only(client):
    token, _ = await register(client, "alice")
    admin_token, _ = await register(client, "admin")

    assert (await client.get("/api/ads/authors", headers=bearer(token))).status_code == 403
    resp = await client.get("/api/ads/authors", headers=bearer(admin_token))
    assert {a["username"] for a in resp.json()} == {"alice", "admin"}


@pytest.mark.asyncio
async def test_list_mine_with_target_user_still_requires_login(client):
    resp = await client.get("/api/ads", params={"mine": "true", "target_user": "bob"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_create_cannot_start_rejected(client):
    token, _ = await register(client)
    resp = await client.post("/api/ads", json=ad_payload(status="Rejected"), headers=bearer(token))
    assert resp.status_code == 422

    draft = await _create(client, token, status="Draft")
    assert draft["status"] == "Draft"


@pytest.mark.asyncio
async def test_admin_mutations_show_owner_behind_anonymous(client):
    token, _ = await register(client, "bob")
    admin_token, _ = await register(client, "admin")
    ad = await _create(client, token, is_anonymous=True)

    edited = await client.put(f"/api/ads/{ad['id']}", json={"title": "Moderated"}, headers=bearer(admin_token))
    assert edited.json()["author"] == "bob (Anonymous)"

    toggled = await client.patch(
        f"/api/ads/{ad['id']}/status", json={"active": False}, headers=bearer(admin_token)
    )
    assert toggled.json()["author"] == "bob (Anonymous)"

    own = await client.put(f"/api/ads/{ad['id']}", json={"title": "Mine"}, headers=bearer(token))
    assert own.json()["author"] == "Anonymous"


@pytest.mark.asyncio
async def test_ten_cent_ad_bills_through_the_api(client, session):
    owner = await make_user(session, username="penny", balance="0.30")
    ad = await make_ad(session, owner.id, price="0.10")

    for _ in range(3):
        resp = await client.post(f"/api/ads/{ad.id}/clicks")
        assert resp.status_code == 200, resp.text
        assert Decimal(str(resp.json()["price"])) == Decimal("0.10")

    resp = await client.post(f"/api/ads/{ad.id}/clicks")
    assert resp.status_code == 402
    assert resp.json()["balance"] == "0.00"
    assert resp.json()["price"] == "0.10"
