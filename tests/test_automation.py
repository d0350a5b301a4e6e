import httpx
import pytest

from core.errors import InsufficientBalanceError, RemoteFailureError, ValidationFailureError
from core.use_cases import automation_use_cases as automations
from infrastructure.automation.webhook_client import WebhookAutomationDispatcher


@pytest.mark.asyncio
async def test_activation_debits_cost_and_records_interaction(ledger, activity, dispatcher, webhook, make_user):
    user = make_user()

    result = await automations.activate_service(
        ledger, activity, dispatcher, user, "bookkeeping", configuration={"frequency": "weekly"},
    )

    assert result.charged == 20
    assert result.wallet.balance == 55
    assert result.interaction.status == "success"
    assert result.interaction.action == "Automation Configured: Bookkeeping"
    assert result.interaction.response_data["status"] == "active"

    url, payload = webhook.calls[0]
    assert url.endswith("/bookkeeping")
    assert payload == {"trigger": "now", "details": {"frequency": "weekly"}, "user": user.email}

    debit = ledger.list_transactions(user.id, limit=1)[0]
    assert debit.direction == "debit"
    assert debit.amount == 20
    assert debit.description == "Service Activation: Bookkeeping"
    assert debit.service_tag == "bookkeeping"


@pytest.mark.asyncio
async def test_insufficient_balance_skips_webhook(ledger, activity, dispatcher, webhook, make_user):
    user = make_user()
    await automations.activate_service(ledger, activity, dispatcher, user, "taxPrep")
    await automations.activate_service(ledger, activity, dispatcher, user, "taxPrep")

    with pytest.raises(InsufficientBalanceError):
        await automations.activate_service(ledger, activity, dispatcher, user, "taxPrep")

    assert len(webhook.calls) == 2
    assert ledger.get_wallet(user.id).balance == 15
    assert len(activity.list_interactions(user.id)) == 2


@pytest.mark.asyncio
async def test_failed_webhook_refunds_debit(ledger, activity, dispatcher, webhook, make_user):
    user = make_user()
    webhook.status_code = 500

    with pytest.raises(RemoteFailureError) as exc:
        await automations.activate_service(ledger, activity, dispatcher, user, "payroll", title="Payroll")

    assert exc.value.status_code == 500
    wallet = ledger.get_wallet(user.id)
    assert wallet.balance == 75
    assert wallet.total_spent == 25

    kinds = [t.kind for t in ledger.list_transactions(user.id)]
    assert kinds == ["refund", "service-debit", "allowance"]
    assert ledger.reconcile(user.id).consistent

    interaction = activity.list_interactions(user.id)[0]
    assert interaction.status == "error"
    assert "HTTP error: 500" in interaction.response_data["error"]
    assert automations.automation_history(activity, user.id) == []


@pytest.mark.asyncio
async def test_malformed_webhook_url_refunds_debit(ledger, activity, dispatcher, webhook, make_user, monkeypatch):
    user = make_user()
    monkeypatch.setenv("WEBHOOK_URL_BOOKKEEPING", "http://exa mple.com:bad/hook")

    with pytest.raises(RemoteFailureError):
        await automations.activate_service(ledger, activity, dispatcher, user, "bookkeeping")

    assert webhook.calls == []
    wallet = ledger.get_wallet(user.id)
    assert wallet.balance == 75
    assert ledger.reconcile(user.id).consistent

    interactions = activity.list_interactions(user.id)
    assert len(interactions) == 1
    assert interactions[0].status == "error"
    assert "could not be sent" in interactions[0].response_data["error"]


@pytest.mark.asyncio
async def test_trigger_with_malformed_webhook_url_records_error(activity, dispatcher, make_user, monkeypatch):
    user = make_user()
    monkeypatch.setenv("WEBHOOK_URL_SEO", "http://exa mple.com:bad/hook")

    with pytest.raises(RemoteFailureError):
        await automations.trigger_service(activity, dispatcher, user, "seo")

    assert activity.list_interactions(user.id)[0].status == "error"


@pytest.mark.asyncio
async def test_unknown_service_is_rejected_before_debit(ledger, activity, dispatcher, webhook, make_user):
    user = make_user()
    with pytest.raises(ValidationFailureError):
        await automations.activate_service(ledger, activity, dispatcher, user, "teleportation")
    assert webhook.calls == []
    assert ledger.wallets.get_by_user(user.id) is None


@pytest.mark.asyncio
async def test_history_and_active_services(ledger, activity, dispatcher, make_user):
    user = make_user()
    await automations.activate_service(ledger, activity, dispatcher, user, "seo")
    await automations.activate_service(ledger, activity, dispatcher, user, "marketing", title="Spring promo")
    await automations.activate_service(ledger, activity, dispatcher, user, "seo")

    history = automations.automation_history(activity, user.id)
    assert [h["service"] for h in history] == ["seo", "marketing", "seo"]
    assert history[1]["title"] == "Spring promo"
    assert automations.active_services(activity, user.id) == ["seo", "marketing"]


@pytest.mark.asyncio
async def test_trigger_is_free(ledger, activity, dispatcher, webhook, make_user):
    user = make_user()
    ledger.get_or_create_wallet(user.id)

    interaction = await automations.trigger_service(activity, dispatcher, user, "expenseTracking")

    assert interaction.status == "success"
    assert webhook.calls[0][0].endswith("/expense-tracking")
    assert webhook.calls[0][1] == {"trigger": "now", "user": user.email}
    assert ledger.get_wallet(user.id).balance == 75


@pytest.mark.asyncio
async def test_request_composer_clears_draft_on_success(activity, dispatcher, webhook, make_user):
    user = make_user()
    automations.save_draft(activity, user.id, "Bookkeeping", "Reconcile March")
    assert automations.load_draft(activity, user.id)["requestDetails"] == "Reconcile March"

    submission = await automations.submit_request(
        activity, activity, dispatcher, user, "Bookkeeping", "Reconcile March",
    )

    assert submission.status == "success"
    assert submission.service == "request_composer"
    assert webhook.calls[0][0].endswith("/request-composer")
    assert webhook.calls[0][1] == {"type": "Bookkeeping", "details": "Reconcile March", "user": user.email}
    assert automations.load_draft(activity, user.id) == {}


@pytest.mark.asyncio
async def test_request_composer_keeps_draft_on_failure(activity, dispatcher, webhook, make_user):
    user = make_user()
    automations.save_draft(activity, user.id, "Payroll", "Run payroll")
    webhook.status_code = 503

    with pytest.raises(RemoteFailureError):
        await automations.submit_request(activity, activity, dispatcher, user, "Payroll", "Run payroll")

    assert automations.load_draft(activity, user.id)["requestType"] == "Payroll"
    assert activity.list_submissions(user.id)[0].status == "error"


@pytest.mark.asyncio
async def test_request_composer_requires_type_and_details(activity, dispatcher, webhook, make_user):
    user = make_user()
    with pytest.raises(ValidationFailureError):
        await automations.submit_request(activity, activity, dispatcher, user, "Bookkeeping", "  ")
    assert webhook.calls == []


def test_draft_overwrite_and_clear(activity, make_user):
    user = make_user()
    automations.save_draft(activity, user.id, "Tax", "first")
    saved = automations.save_draft(activity, user.id, "Tax", "second")

    assert saved["requestDetails"] == "second"
    assert "lastUpdated" in saved
    assert automations.load_draft(activity, user.id)["requestDetails"] == "second"

    automations.clear_draft(activity, user.id)
    assert automations.load_draft(activity, user.id) == {}


def test_catalogue_lists_all_services():
    catalogue = {s["key"]: s["cost"] for s in automations.service_catalogue()}
    assert catalogue == {
        "expenseTracking": 15, "bookkeeping": 20, "payroll": 25, "taxPrep": 30,
        "marketing": 10, "socialMedia": 8, "emailCampaign": 12, "seo": 15,
    }


# вебхук-клиент

@pytest.mark.asyncio
async def test_webhook_wraps_non_object_json():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=["queued"]))
    client = WebhookAutomationDispatcher(transport=transport)
    assert await client.dispatch("seo", {}) == {"result": ["queued"]}


@pytest.mark.asyncio
async def test_webhook_invalid_json():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>ok</html>"))
    client = WebhookAutomationDispatcher(transport=transport)
    with pytest.raises(RemoteFailureError):
        await client.dispatch("seo", {})


@pytest.mark.asyncio
async def test_webhook_network_error():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = WebhookAutomationDispatcher(transport=httpx.MockTransport(refuse))
    with pytest.raises(RemoteFailureError) as exc:
        await client.dispatch("seo", {})
    assert exc.value.status_code is None


def test_webhook_url_override(monkeypatch):
    monkeypatch.setenv("WEBHOOK_URL_SEO", "https://hooks.example.com/custom-seo")
    client = WebhookAutomationDispatcher()
    assert client.url_for("seo") == "https://hooks.example.com/custom-seo"
    assert client.url_for("taxPrep").endswith("/tax")
