import pytest

from config.settings import settings
from main import on_startup

PASSWORD = "secret123"

ONBOARDING = {
    "business_type": "LLC",
    "industry": "Consulting",
    "company_size": "6-10",
    "annual_revenue": "$100K+",
    "business_goals": ["Increase Revenue", "Improve Marketing"],
    "pain_points": ["Manual bookkeeping"],
    "current_tools": ["Slack"],
    "budget_range": "$500-$1000",
    "timeline": "Immediate (within 1 month)",
}


async def signup(client, email="founder@example.com"):
    response = await client.post("/register", json={
        "email": email,
        "password": PASSWORD,
        "full_name": "Pat Founder",
        "business_name": "Founder Co",
    })
    assert response.status_code == 201, response.text
    return response.json()


async def signin(client, email="founder@example.com", password=PASSWORD):
    response = await client.post("/login", auth=(email, password))
    assert response.status_code == 200, response.text
    body = response.json()
    return {"Authorization": f"Bearer {body['access_token']}"}, body


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_signup_signin_and_profile(client):
    created = await signup(client)
    assert created["email"] == "founder@example.com"
    assert created["is_admin"] is False

    headers, body = await signin(client)
    assert body["token_type"] == "bearer"
    assert body["onboarding_completed"] is False
    assert body["next"] == "onboarding"

    me = await client.get("/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["business_name"] == "Founder Co"


@pytest.mark.asyncio
async def test_duplicate_signup_conflicts(client):
    await signup(client)
    response = await client.post("/register", json={
        "email": "FOUNDER@example.com", "password": PASSWORD, "full_name": "Again", "business_name": "Again Co",
    })
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_bad_credentials_and_missing_token(client):
    await signup(client)
    response = await client.post("/login", auth=("founder@example.com", "nope-nope"))
    assert response.status_code == 401

    assert (await client.get("/me")).status_code == 401
    bad = await client.get("/me", headers={"Authorization": "Bearer not-a-token"})
    assert bad.status_code == 401


@pytest.mark.asyncio
async def test_logout_revokes_session(client):
    await signup(client)
    headers, _ = await signin(client)

    assert (await client.post("/logout", headers=headers)).status_code == 204
    assert (await client.get("/me", headers=headers)).status_code == 401


@pytest.mark.asyncio
async def test_onboarding_and_insights(client):
    await signup(client)
    headers, _ = await signin(client)

    assert (await client.get("/insights", headers=headers)).status_code == 404

    options = await client.get("/onboarding/options")
    assert "1-5" in options.json()["company_size"]

    saved = await client.post("/onboarding", json=ONBOARDING, headers=headers)
    assert saved.status_code == 200, saved.text
    assert saved.json()["onboarding_completed"] is True

    insights = (await client.get("/insights", headers=headers)).json()
    assert insights["overall_score"] == 50 + 15 + 5 + 6 + 2 + 5
    assert "Strong revenue foundation" in insights["strengths"]
    assert insights["lagging_areas"][0]["area"] == "Financial Management"

    _, body = await signin(client)
    assert body["next"] == "dashboard"


@pytest.mark.asyncio
async def test_onboarding_validation(client):
    await signup(client)
    headers, _ = await signin(client)
    response = await client.post("/onboarding", json={**ONBOARDING, "pain_points": []}, headers=headers)
    assert response.status_code == 422
    assert response.json()["detail"] == "Please select at least one pain point!"


@pytest.mark.asyncio
async def test_wallet_and_activation_flow(client, webhook):
    await signup(client)
    headers, _ = await signin(client)

    wallet = (await client.get("/wallet", headers=headers)).json()
    assert wallet["balance"] == 75
    assert wallet["tier_name"] == "Founder's Suite"

    activated = await client.post(
        "/automations/bookkeeping/activate", json={"configuration": {"books": "QuickBooks"}}, headers=headers,
    )
    assert activated.status_code == 200, activated.text
    assert activated.json()["balance"] == 55
    assert activated.json()["charged"] == 20

    txs = (await client.get("/wallet/transactions", headers=headers)).json()
    assert txs[0]["direction"] == "debit"
    assert txs[0]["amount"] == 20
    assert txs[0]["balance_after"] == 55

    services = (await client.get("/automations/services", headers=headers)).json()
    assert {s["key"]: s["active"] for s in services}["bookkeeping"] is True

    history = (await client.get("/automations/history", headers=headers)).json()
    assert history[0]["configuration"] == {"books": "QuickBooks"}

    reconcile = (await client.get("/wallet/reconcile", headers=headers)).json()
    assert reconcile["consistent"] is True


@pytest.mark.asyncio
async def test_activation_error_statuses(client, webhook):
    await signup(client)
    headers, _ = await signin(client)

    webhook.status_code = 500
    failed = await client.post("/automations/taxPrep/activate", headers=headers)
    assert failed.status_code == 502
    assert (await client.get("/wallet", headers=headers)).json()["balance"] == 75

    webhook.status_code = 200
    for _ in range(2):
        assert (await client.post("/automations/taxPrep/activate", headers=headers)).status_code == 200
    broke = await client.post("/automations/taxPrep/activate", headers=headers)
    assert broke.status_code == 402

    unknown = await client.post("/automations/warpDrive/activate", headers=headers)
    assert unknown.status_code == 422


@pytest.mark.asyncio
async def test_request_composer_and_drafts(client, webhook):
    await signup(client)
    headers, _ = await signin(client)

    draft = await client.put("/drafts/request-composer", json={"request_type": "Tax"}, headers=headers)
    assert draft.json()["requestType"] == "Tax"
    assert (await client.get("/drafts/request-composer", headers=headers)).json()["requestType"] == "Tax"

    submitted = await client.post(
        "/requests", json={"request_type": "Tax", "details": "Quarterly estimate"}, headers=headers,
    )
    assert submitted.status_code == 201
    assert (await client.get("/drafts/request-composer", headers=headers)).json() == {}

    recent = (await client.get("/activity", headers=headers)).json()
    assert recent["submissions"][0]["request_details"] == "Quarterly estimate"


@pytest.mark.asyncio
async def test_plans_subscription_and_purchase(client):
    await signup(client)
    headers, _ = await signin(client)

    plans = (await client.get("/plans")).json()
    assert [p["tier"] for p in plans["plans"]] == ["founder", "growth", "scale"]

    subscribed = await client.post("/subscribe", json={"tier": "Growth"}, headers=headers)
    assert subscribed.status_code == 200, subscribed.text
    assert subscribed.json()["balance"] == 150

    bought = await client.post("/credits/purchase", json={"package_ixp": 100}, headers=headers)
    assert bought.json()["balance"] == 260

    invalid = await client.post("/subscribe", json={"tier": "gold"}, headers=headers)
    assert invalid.status_code == 422

    history = (await client.get("/payments", headers=headers)).json()
    assert [p["amount_usd"] for p in history] == [89, 597]


@pytest.mark.asyncio
async def test_admin_routes(client, users, make_user):
    make_user(role="admin", email="admin@example.com")
    await signup(client, email="member@example.com")
    member_headers, _ = await signin(client, email="member@example.com")
    admin_headers, _ = await signin(client, email="admin@example.com")

    assert (await client.get("/admin/stats", headers=member_headers)).status_code == 403

    stats = (await client.get("/admin/stats", headers=admin_headers)).json()
    assert stats["total_users"] == 2

    member = users.get_by_email("member@example.com")
    patched = await client.patch(f"/admin/users/{member.id}", json={"status": "suspended"}, headers=admin_headers)
    assert patched.json()["status"] == "suspended"

    # сессия приостановленного пользователя больше не действует
    assert (await client.get("/me", headers=member_headers)).status_code == 401

    actions = (await client.get("/admin/actions", headers=admin_headers)).json()
    assert actions[0]["action"] == "update_user"

    deleted = await client.delete(f"/admin/users/{member.id}", headers=admin_headers)
    assert deleted.status_code == 204
    assert (await client.get(f"/admin/users/{member.id}", headers=admin_headers)).status_code == 404


@pytest.mark.asyncio
async def test_chat(client):
    reply = await client.post("/chat", json={"message": "What does it cost?"})
    assert reply.status_code == 200
    assert reply.json()["reply"].startswith("Our pricing is based on IXP credits")

    assert (await client.post("/chat", json={"message": ""})).status_code == 422

    quick = (await client.get("/chat/quick-actions")).json()
    assert len(quick["actions"]) == 4


@pytest.mark.asyncio
async def test_startup_seeds_admin(client, db_path, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_EMAIL", "admin@r1ai.com")
    monkeypatch.setattr(settings, "ADMIN_PASSWORD", "admin123")
    on_startup()
    on_startup()

    headers, _ = await signin(client, email="admin@r1ai.com", password="admin123")
    stats = await client.get("/admin/stats", headers=headers)
    assert stats.status_code == 200
    assert stats.json()["total_users"] == 1
