from fastapi import APIRouter, Depends, HTTPException, status
import uuid

from identity.core.dependencies import get_account_service, get_current_user
from identity.core.errors import AccountError, Result
from identity.models.users import User
from identity.schemas.user import (
    CreateAccountInput, LoginInput, EditProfileInput, VerifyEmailInput,
    CoreOutput, LoginOutput, UserResponse, UserProfileOutput,
)
from identity.services.accounts import AccountService

router = APIRouter()

ERROR_STATUS = {
    AccountError.DUPLICATE_EMAIL: status.HTTP_400_BAD_REQUEST,
    AccountError.USER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    AccountError.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    AccountError.VERIFICATION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
}


def raise_for_result(result: Result) -> None:
    if result.ok:
        return
    raise HTTPException(
        status_code=ERROR_STATUS.get(result.error, status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail={"error": result.error.value, "message": result.message},
    )


@router.post("/create-account", response_model=CoreOutput, status_code=status.HTTP_201_CREATED)
async def create_account(
        account_in: CreateAccountInput,
        service: AccountService = Depends(get_account_service),
):
    result = await service.create_account(account_in.email, account_in.password, account_in.role)
    raise_for_result(result)
    return CoreOutput(ok=True)


@router.post("/login", response_model=LoginOutput)
async def login(
        login_in: LoginInput,
        service: AccountService = Depends(get_account_service),
):
    result = await service.login(login_in.email, login_in.password)
    raise_for_result(result)
    return LoginOutput(ok=True, token=result.payload)


@router.post("/verify-email", response_model=CoreOutput)
async def verify_email(
        verification_in: VerifyEmailInput,
        service: AccountService = Depends(get_account_service),
):
    result = await service.verify_email(verification_in.code)
    raise_for_result(result)
    return CoreOutput(ok=True)


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.patch("/me", response_model=CoreOutput)
async def edit_profile(
        profile_in: EditProfileInput,
        current_user: User = Depends(get_current_user),
        service: AccountService = Depends(get_account_service),
):
    result = await service.edit_profile(
        current_user.id,
        email=profile_in.email,
        password=profile_in.password,
    )
    raise_for_result(result)
    return CoreOutput(ok=True)


@router.get("/users/{user_id}", response_model=UserProfileOutput)
async def user_profile(
        user_id: uuid.UUID,
        current_user: User = Depends(get_current_user),
        service: AccountService = Depends(get_account_service),
):
    result = await service.user_profile(user_id)
    raise_for_result(result)
    return UserProfileOutput(ok=True, user=UserResponse.model_validate(result.payload))
