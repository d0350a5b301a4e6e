import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from core.entities.activity import Interaction, Submission
from core.entities.automation import REQUEST_COMPOSER, SERVICES, get_service
from core.entities.transaction import Direction, TransactionKind
from core.entities.user import User
from core.entities.wallet import Wallet
from core.errors import RemoteFailureError, ValidationFailureError
from core.repositories.activity_repository import ActivityRepository, DraftRepository
from core.services.automation_dispatcher import AutomationDispatcher
from core.use_cases.wallet_use_cases import WalletLedger

logger = logging.getLogger(__name__)

CONFIGURED_PREFIX = "Automation Configured: "
DRAFT_NAME = "request_composer"


@dataclass
class ActivationResult:
    interaction: Interaction
    wallet: Wallet
    charged: int
    response: Dict[str, Any]


def _known_service(service: str):
    svc = get_service(service)
    if svc is None:
        raise ValidationFailureError(f"Unknown service: {service}", field="service")
    return svc


async def activate_service(ledger: WalletLedger, activity: ActivityRepository, dispatcher: AutomationDispatcher,
                           user: User, service: str, configuration: Optional[Dict[str, Any]] = None,
                           title: Optional[str] = None) -> ActivationResult:
    """Списывает стоимость сервиса, вызывает вебхук и записывает взаимодействие.

    Нехватка IXP останавливает всё до вызова вебхука. Если вебхук упал,
    списание компенсируется начислением refund, взаимодействие пишется
    со статусом error и ошибка пробрасывается дальше.
    """
    svc = _known_service(service)
    title = (title or "").strip() or svc.title
    configuration = configuration or {}

    ledger.get_or_create_wallet(user.id)
    wallet, _ = ledger.adjust_balance(
        user.id, svc.cost, Direction.DEBIT, f"Service Activation: {title}",
        service_tag=svc.key, kind=TransactionKind.SERVICE_DEBIT,
    )

    timestamp = datetime.now(timezone.utc).isoformat()
    request_data = {
        "configuration": configuration,
        "webhookUrl": dispatcher.url_for(svc.key),
        "timestamp": timestamp,
    }
    payload = {"trigger": "now", "details": configuration, "user": user.email}
    try:
        response = await dispatcher.dispatch(svc.key, payload)
    except RemoteFailureError as e:
        wallet, _ = ledger.adjust_balance(
            user.id, svc.cost, Direction.CREDIT, f"Refund: {title} activation failed",
            service_tag=svc.key, kind=TransactionKind.REFUND,
        )
        activity.add_interaction(
            user.id, CONFIGURED_PREFIX + title, svc.key, request_data, {"error": str(e)}, "error",
        )
        logger.warning("activation failed user=%s service=%s refunded=%s", user.id, svc.key, svc.cost)
        raise

    interaction = activity.add_interaction(
        user.id, CONFIGURED_PREFIX + title, svc.key, request_data,
        {**response, "status": "active"}, "success",
    )
    logger.info("service activated user=%s service=%s cost=%s", user.id, svc.key, svc.cost)
    return ActivationResult(interaction=interaction, wallet=wallet, charged=svc.cost, response=response)


async def trigger_service(activity: ActivityRepository, dispatcher: AutomationDispatcher, user: User,
                          service: str) -> Interaction:
    svc = _known_service(service)
    payload = {"trigger": "now", "user": user.email}
    action = f"Triggered: {svc.title}"
    try:
        response = await dispatcher.dispatch(svc.key, payload)
    except RemoteFailureError as e:
        activity.add_interaction(user.id, action, svc.key, payload, {"error": str(e)}, "error")
        raise
    return activity.add_interaction(user.id, action, svc.key, payload, response, "success")


async def submit_request(activity: ActivityRepository, drafts: DraftRepository, dispatcher: AutomationDispatcher,
                         user: User, request_type: str, details: str) -> Submission:
    request_type = (request_type or "").strip()
    details = (details or "").strip()
    if not request_type or not details:
        raise ValidationFailureError(
            "Please select type and provide details.", field="request_type" if not request_type else "details"
        )

    payload = {"type": request_type, "details": details, "user": user.email}
    try:
        response = await dispatcher.dispatch(REQUEST_COMPOSER, payload)
    except RemoteFailureError as e:
        activity.add_submission(user.id, request_type, details, "request_composer", {"error": str(e)}, "error")
        raise

    submission = activity.add_submission(user.id, request_type, details, "request_composer", response, "success")
    drafts.clear_draft(user.id, DRAFT_NAME)
    return submission


def automation_history(activity: ActivityRepository, user_id: int) -> List[Dict[str, Any]]:
    history = []
    for item in activity.list_interactions(user_id):
        if item.status != "success" or not item.action.startswith(CONFIGURED_PREFIX):
            continue
        request = item.request_data or {}
        history.append({
            "id": item.id,
            "service": item.service,
            "title": item.action[len(CONFIGURED_PREFIX):],
            "timestamp": item.created_at,
            "configuration": request.get("configuration"),
        })
    return history


def active_services(activity: ActivityRepository, user_id: int) -> List[str]:
    seen: List[str] = []
    for item in reversed(automation_history(activity, user_id)):
        if item["service"] not in seen:
            seen.append(item["service"])
    return seen


def service_catalogue() -> List[Dict[str, Any]]:
    return [
        {"key": s.key, "title": s.title, "category": s.category, "cost": s.cost}
        for s in SERVICES.values()
    ]


# черновик Request Composer
def save_draft(drafts: DraftRepository, user_id: int, request_type: Optional[str],
               request_details: Optional[str]) -> Dict[str, Any]:
    return drafts.save_draft(user_id, DRAFT_NAME, {
        "requestType": request_type or "",
        "requestDetails": request_details or "",
    })


def load_draft(drafts: DraftRepository, user_id: int) -> Dict[str, Any]:
    return drafts.load_draft(user_id, DRAFT_NAME) or {}


def clear_draft(drafts: DraftRepository, user_id: int) -> None:
    drafts.clear_draft(user_id, DRAFT_NAME)


def list_activity(activity: ActivityRepository, user_id: int, limit: int = 50) -> Dict[str, list]:
    return {
        "submissions": activity.list_submissions(user_id, limit=limit),
        "interactions": activity.list_interactions(user_id, limit=limit),
    }
