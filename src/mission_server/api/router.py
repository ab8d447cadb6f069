from __future__ import annotations

from fastapi import APIRouter, Query, Request, Response

from mission_sim.service import DeploymentService
from mission_server.api import mappers, schemas

router = APIRouter(prefix="/api")


def _service(request: Request) -> DeploymentService:
    return request.app.state.service


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/missions", response_model=schemas.MissionBoardResponse)
def list_missions(request: Request, account_id: str = Query(..., alias="accountId", min_length=1)):
    board = _service(request).list_missions(account_id)
    return mappers.build_board(account_id, board)


@router.get("/missions/{mission_id}", response_model=schemas.MissionDetail)
def get_mission(mission_id: str, request: Request):
    return mappers.build_mission_detail(_service(request).get_mission(mission_id))


@router.get(
    "/missions/{mission_id}/compatibility/{operative_id}",
    response_model=schemas.CompatibilityResponse,
)
def preview_compatibility(mission_id: str, operative_id: str, request: Request):
    breakdown = _service(request).preview_compatibility(operative_id, mission_id)
    return mappers.build_compatibility(operative_id, mission_id, breakdown)


@router.post("/missions/{mission_id}/deploy", response_model=schemas.DeployResponse, status_code=201)
def deploy(mission_id: str, payload: schemas.DeployRequest, request: Request):
    receipt = _service(request).deploy(payload.operative_id, mission_id, payload.approach)
    return mappers.build_deploy_response(receipt)


@router.get("/deployments/{deployment_id}/status", response_model=schemas.DeploymentStatusResponse)
def get_status(deployment_id: str, request: Request):
    return mappers.build_status_response(_service(request).get_status(deployment_id))


@router.get("/operatives/{operative_id}", response_model=schemas.OperativeResponse)
def get_operative(operative_id: str, request: Request):
    return mappers.build_operative(_service(request).get_operative(operative_id))


@router.get("/accounts/{account_id}", response_model=schemas.AccountResponse)
def get_account(account_id: str, request: Request):
    return mappers.build_account(_service(request).directory.get_account(account_id))


# Administrative overrides; not part of the player-facing contract.


@router.post("/dev/deployments/{deployment_id}/abandon", response_model=schemas.DeploymentStatusResponse)
def abandon(deployment_id: str, request: Request):
    return mappers.build_status_response(_service(request).abandon(deployment_id))


@router.post(
    "/dev/deployments/{deployment_id}/force-complete",
    response_model=schemas.DeploymentStatusResponse,
)
def force_complete(deployment_id: str, request: Request):
    return mappers.build_status_response(_service(request).force_complete(deployment_id))


@router.delete("/dev/deployments/{deployment_id}", status_code=204)
def clear(deployment_id: str, request: Request):
    _service(request).clear(deployment_id)
    return Response(status_code=204)
