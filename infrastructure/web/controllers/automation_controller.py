from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from core.entities.activity import Interaction, Submission
from core.entities.user import User
from core.errors import DomainError
from core.services.automation_dispatcher import AutomationDispatcher
from core.use_cases import automation_use_cases as automations
from core.use_cases.wallet_use_cases import WalletLedger
from infrastructure.db.repositories import StoreActivityRepository
from infrastructure.web.dependencies import (
    get_activity_repo, get_current_user, get_dispatcher, get_ledger, http_error,
)

router = APIRouter(prefix="", tags=["automations"])


class ServiceItem(BaseModel):
    key: str
    title: str
    category: str
    cost: int
    active: bool = False


class ActivateRequest(BaseModel):
    configuration: Dict[str, Any] = Field(default_factory=dict)
    title: Optional[str] = None


class InteractionItem(BaseModel):
    id: int
    action: str
    service: str
    request_data: Optional[Dict[str, Any]] = None
    response_data: Optional[Dict[str, Any]] = None
    status: str
    created_at: str


class SubmissionItem(BaseModel):
    id: int
    request_type: str
    request_details: str
    service: str
    response_data: Optional[Dict[str, Any]] = None
    status: str
    created_at: str


class ActivationResponse(BaseModel):
    service: str
    charged: int
    balance: int
    interaction: InteractionItem
    response: Dict[str, Any]


class ComposerRequest(BaseModel):
    request_type: str
    details: str


class HistoryItem(BaseModel):
    id: int
    service: str
    title: str
    timestamp: str
    configuration: Optional[Dict[str, Any]] = None


class ActivityResponse(BaseModel):
    submissions: List[SubmissionItem]
    interactions: List[InteractionItem]


class DraftRequest(BaseModel):
    request_type: Optional[str] = None
    request_details: Optional[str] = None


def interaction_item(item: Interaction) -> InteractionItem:
    return InteractionItem(
        id=item.id,
        action=item.action,
        service=item.service,
        request_data=item.request_data,
        response_data=item.response_data,
        status=item.status,
        created_at=item.created_at,
    )


def submission_item(item: Submission) -> SubmissionItem:
    return SubmissionItem(
        id=item.id,
        request_type=item.request_type,
        request_details=item.request_details,
        service=item.service,
        response_data=item.response_data,
        status=item.status,
        created_at=item.created_at,
    )


@router.get("/automations/services", response_model=List[ServiceItem])
def list_services(
    current_user: User = Depends(get_current_user),
    activity: StoreActivityRepository = Depends(get_activity_repo),
):
    active = set(automations.active_services(activity, current_user.id))
    return [ServiceItem(**svc, active=svc["key"] in active) for svc in automations.service_catalogue()]


@router.post("/automations/{service}/activate", response_model=ActivationResponse)
async def activate(
    service: str,
    payload: Optional[ActivateRequest] = None,
    current_user: User = Depends(get_current_user),
    ledger: WalletLedger = Depends(get_ledger),
    activity: StoreActivityRepository = Depends(get_activity_repo),
    dispatcher: AutomationDispatcher = Depends(get_dispatcher),
):
    payload = payload or ActivateRequest()
    try:
        result = await automations.activate_service(
            ledger=ledger,
            activity=activity,
            dispatcher=dispatcher,
            user=current_user,
            service=service,
            configuration=payload.configuration,
            title=payload.title,
        )
    except DomainError as e:
        raise http_error(e)
    return ActivationResponse(
        service=service,
        charged=result.charged,
        balance=result.wallet.balance,
        interaction=interaction_item(result.interaction),
        response=result.response,
    )


@router.post("/automations/{service}/trigger", response_model=InteractionItem)
async def trigger(
    service: str,
    current_user: User = Depends(get_current_user),
    activity: StoreActivityRepository = Depends(get_activity_repo),
    dispatcher: AutomationDispatcher = Depends(get_dispatcher),
):
    try:
        item = await automations.trigger_service(activity, dispatcher, current_user, service)
    except DomainError as e:
        raise http_error(e)
    return interaction_item(item)


@router.post("/requests", response_model=SubmissionItem, status_code=201)
async def submit_request(
    payload: ComposerRequest,
    current_user: User = Depends(get_current_user),
    activity: StoreActivityRepository = Depends(get_activity_repo),
    dispatcher: AutomationDispatcher = Depends(get_dispatcher),
):
    try:
        submission = await automations.submit_request(
            activity, activity, dispatcher, current_user, payload.request_type, payload.details,
        )
    except DomainError as e:
        raise http_error(e)
    return submission_item(submission)


@router.get("/automations/history", response_model=List[HistoryItem])
def history(
    current_user: User = Depends(get_current_user),
    activity: StoreActivityRepository = Depends(get_activity_repo),
):
    return [HistoryItem(**item) for item in automations.automation_history(activity, current_user.id)]


@router.get("/activity", response_model=ActivityResponse)
def recent_activity(
    limit: int = 50,
    current_user: User = Depends(get_current_user),
    activity: StoreActivityRepository = Depends(get_activity_repo),
):
    data = automations.list_activity(activity, current_user.id, limit=max(1, min(100, int(limit))))
    return ActivityResponse(
        submissions=[submission_item(s) for s in data["submissions"]],
        interactions=[interaction_item(i) for i in data["interactions"]],
    )


# черновик Request Composer
@router.get("/drafts/request-composer", response_model=Dict[str, Any])
def read_draft(
    current_user: User = Depends(get_current_user),
    activity: StoreActivityRepository = Depends(get_activity_repo),
):
    return automations.load_draft(activity, current_user.id)


@router.put("/drafts/request-composer", response_model=Dict[str, Any])
def write_draft(
    payload: DraftRequest,
    current_user: User = Depends(get_current_user),
    activity: StoreActivityRepository = Depends(get_activity_repo),
):
    return automations.save_draft(activity, current_user.id, payload.request_type, payload.request_details)


@router.delete("/drafts/request-composer", status_code=204)
def delete_draft(
    current_user: User = Depends(get_current_user),
    activity: StoreActivityRepository = Depends(get_activity_repo),
):
    automations.clear_draft(activity, current_user.id)
