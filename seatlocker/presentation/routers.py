from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from seatlocker.core.errors import (
    AlreadyInProgressError,
    AuthRequiredError,
    BackendError,
    DismissNotAllowedError,
    MalformedResponseError,
    NoIdentityError,
    TransportError,
    ValidationError,
    WorkflowDisposedError,
)
from seatlocker.schemas.models import (
    CurrentUserOut,
    IdentityEvent,
    NotificationOut,
    ProfilePatch,
    SeatAssignmentOut,
    SeatStatus,
    SubmitSeatBlock,
    WorkflowStatus,
)
from seatlocker.services.seat_locker_service import (
    SeatLockerServices,
    apply_identity_event_service,
    clear_seat_service,
    dismiss_notification_service,
    dismiss_workflow_service,
    get_current_notification_service,
    get_current_user_service,
    get_seat_status_service,
    get_workflow_status_service,
    refresh_profile_service,
    submit_seat_block_service,
    update_profile_service,
)

router = APIRouter()


def get_services(request: Request) -> SeatLockerServices:
    return request.app.state.services


@router.get("/seat", response_model=SeatStatus)
async def get_seat(services: SeatLockerServices = Depends(get_services)) -> SeatStatus:
    """
    Current seat/locker assignment (survives restarts)
    """
    return get_seat_status_service(services)


@router.delete("/seat", status_code=204, response_class=Response)
async def delete_seat(services: SeatLockerServices = Depends(get_services)) -> Response:
    clear_seat_service(services)
    return Response(status_code=204)


@router.post("/seat/assign", response_model=SeatAssignmentOut, status_code=201)
async def post_seat_assign(
        body: SubmitSeatBlock,
        services: SeatLockerServices = Depends(get_services),
) -> SeatAssignmentOut:
    """
    Request the nearest locker for a seat block

    Returns:
      - 201 with the stored assignment
      - 401 when no user is signed in
      - 409 while another request is in flight
      - 422 on a blank seat block
      - 502 when the locker service fails or answers unexpectedly
    """
    try:
        return await submit_seat_block_service(body, services)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.message)
    except AuthRequiredError as e:
        raise HTTPException(status_code=401, detail=e.message)
    except AlreadyInProgressError as e:
        raise HTTPException(status_code=409, detail=e.message)
    except (TransportError, MalformedResponseError) as e:
        raise HTTPException(status_code=502, detail=e.message)
    except WorkflowDisposedError as e:
        raise HTTPException(status_code=410, detail=e.message)


@router.post("/seat/dismiss", status_code=204, response_class=Response)
async def post_seat_dismiss(services: SeatLockerServices = Depends(get_services)) -> Response:
    try:
        dismiss_workflow_service(services)
    except DismissNotAllowedError as e:
        raise HTTPException(status_code=409, detail=e.message)
    except WorkflowDisposedError as e:
        raise HTTPException(status_code=410, detail=e.message)
    return Response(status_code=204)


@router.get("/seat/workflow", response_model=WorkflowStatus)
async def get_seat_workflow(services: SeatLockerServices = Depends(get_services)) -> WorkflowStatus:
    return get_workflow_status_service(services)


@router.get("/notifications/current", response_model=NotificationOut | None)
async def get_notification(services: SeatLockerServices = Depends(get_services)) -> NotificationOut | None:
    return get_current_notification_service(services)


@router.delete("/notifications/current", status_code=204, response_class=Response)
async def delete_notification(services: SeatLockerServices = Depends(get_services)) -> Response:
    dismiss_notification_service(services)
    return Response(status_code=204)


@router.put("/session/identity", response_model=CurrentUserOut)
async def put_session_identity(
        body: IdentityEvent,
        services: SeatLockerServices = Depends(get_services),
) -> CurrentUserOut:
    """
    Identity-provider event: a signed-in identity, null on sign-out
    """
    return apply_identity_event_service(body, services)


@router.get("/session/me", response_model=CurrentUserOut)
async def get_session_me(services: SeatLockerServices = Depends(get_services)) -> CurrentUserOut:
    return get_current_user_service(services)


@router.post("/session/profile/refresh", response_model=CurrentUserOut)
async def post_profile_refresh(services: SeatLockerServices = Depends(get_services)) -> CurrentUserOut:
    try:
        return await refresh_profile_service(services)
    except NoIdentityError as e:
        raise HTTPException(status_code=401, detail=e.message)
    except BackendError as e:
        raise HTTPException(status_code=502, detail=e.message)


@router.patch("/session/profile", response_model=CurrentUserOut)
async def patch_profile(
        body: ProfilePatch,
        services: SeatLockerServices = Depends(get_services),
) -> CurrentUserOut:
    try:
        return await update_profile_service(body, services)
    except NoIdentityError as e:
        raise HTTPException(status_code=401, detail=e.message)
    except BackendError as e:
        raise HTTPException(status_code=502, detail=e.message)
