"""Account management endpoints (server-side identity operations)."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from sampler.accounts.schemas import (
    CreateUserRequest,
    DeleteAccountRequest,
    ResetPasswordRequest,
    UpdateUserStatusRequest,
    UserByEmailRequest,
)
from sampler.accounts.service import AccountService
from sampler.dependencies import get_account_service
from sampler.errors import DomainError
from sampler.responses import failure, success

router = APIRouter(tags=["Accounts"])


@router.post("/create-user")
async def create_user(
    body: CreateUserRequest,
    accounts: AccountService = Depends(get_account_service),  # noqa: B008
) -> JSONResponse:
    """Create an identity and its profile; the identity is removed if the profile write fails."""
    result = await accounts.create_user(body.to_new_user())
    if isinstance(result, DomainError):
        return failure(result)
    return success(**result)


@router.post("/delete-account")
async def delete_account(
    body: DeleteAccountRequest,
    accounts: AccountService = Depends(get_account_service),  # noqa: B008
) -> JSONResponse:
    result = await accounts.delete_account(body.user_id)
    if isinstance(result, DomainError):
        return failure(result)
    return success(message=result)


@router.post("/update-user-status")
async def update_user_status(
    body: UpdateUserStatusRequest,
    accounts: AccountService = Depends(get_account_service),  # noqa: B008
) -> JSONResponse:
    """Block or unblock a user in both the identity provider and the profile."""
    result = await accounts.update_status(body.user_id, body.block)
    if isinstance(result, DomainError):
        return failure(result)
    return success(message=result)


@router.post("/get-user-by-email")
async def user_by_email(
    body: UserByEmailRequest,
    accounts: AccountService = Depends(get_account_service),  # noqa: B008
) -> JSONResponse:
    result = await accounts.find_by_email(body.email)
    if isinstance(result, DomainError):
        return failure(result)
    return success(**result)


@router.post("/reset-password-after-otp")
async def reset_password(
    body: ResetPasswordRequest,
    accounts: AccountService = Depends(get_account_service),  # noqa: B008
) -> JSONResponse:
    result = await accounts.reset_password(body.user_id, body.new_password)
    if isinstance(result, DomainError):
        return failure(result)
    return success(message=result)
