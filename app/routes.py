"""
API routes.

Every handler is glue: pull the user id and token out of the bearer
credentials, call one service method, and translate the ServiceResult.
`_raise_for_failure` is the only place that knows about status codes.
"""

from dataclasses import dataclass
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.schemas import LoginRequest, RegisterRequest, TransactionRequest
from expense_ledger.models.results import ErrorKind, ServiceResult, TokenClaims
from expense_ledger.orchestrator import AppComponents

router = APIRouter()

bearer_scheme = HTTPBearer(auto_error=False)

STATUS_BY_ERROR = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_KIND: status.HTTP_400_BAD_REQUEST,
    ErrorKind.DUPLICATE_EMAIL: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@dataclass
class CurrentUser:
    claims: TokenClaims
    token: str

    @property
    def user_id(self) -> int:
        return self.claims.user_id


def _raise_for_failure(result: ServiceResult) -> None:
    code = STATUS_BY_ERROR.get(result.error, status.HTTP_500_INTERNAL_SERVER_ERROR)
    headers = {"WWW-Authenticate": "Bearer"} if code == status.HTTP_401_UNAUTHORIZED else None
    raise HTTPException(
        status_code=code,
        detail={
            "error": result.error.value if result.error else None,
            "message": result.message,
            "issues": [issue.model_dump() for issue in result.issues],
        },
        headers=headers,
    )


def _respond(result: ServiceResult) -> dict[str, Any]:
    if not result.success:
        _raise_for_failure(result)
    return result.model_dump(mode="json", include={"message", "data", "warnings"})


def get_components(request: Request) -> AppComponents:
    return request.app.state.components


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    components: AppComponents = Depends(get_components),
) -> CurrentUser:
    """Resolve the bearer token into claims; 401 on any failure."""
    token = credentials.credentials if credentials else ""
    result = await components.auth.authenticate(token)
    if not result.success:
        _raise_for_failure(result)
    return CurrentUser(claims=result.data, token=token)


# =============================================================================
# AUTH
# =============================================================================

@router.post("/auth/register", status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    components: AppComponents = Depends(get_components),
):
    result = await components.auth.register(
        email=body.email,
        full_name=body.full_name,
        password=body.password,
        confirm_password=body.confirm_password,
    )
    return _respond(result)


@router.post("/auth/login")
async def login(
    body: LoginRequest,
    components: AppComponents = Depends(get_components),
):
    result = await components.auth.login(body.email, body.password)
    return _respond(result)


@router.post("/auth/logout")
async def logout(
    current: CurrentUser = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    result = await components.auth.logout(current.user_id, current.token)
    return _respond(result)


@router.get("/auth/validate")
async def validate(
    current: CurrentUser = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    """Bearer-protected session check; an unusable token is rejected with 401."""
    return {"valid": await components.auth.validate_token(current.token)}


# =============================================================================
# TRANSACTIONS
# =============================================================================

@router.get("/transactions")
async def list_transactions(
    current: CurrentUser = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    result = await components.ledger.list_transactions(current.user_id)
    return _respond(result)


@router.post("/transactions", status_code=status.HTTP_201_CREATED)
async def add_transaction(
    body: TransactionRequest,
    current: CurrentUser = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    result = await components.ledger.add_transaction(
        user_id=current.user_id,
        description=body.description,
        amount=body.amount,
        kind=body.kind,
        transaction_date=body.transaction_date,
    )
    return _respond(result)


@router.get("/transactions/balance")
async def get_balance(
    current: CurrentUser = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    result = await components.ledger.compute_balance(current.user_id)
    return _respond(result)


@router.put("/transactions/{transaction_id}")
async def update_transaction(
    transaction_id: int,
    body: TransactionRequest,
    current: CurrentUser = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    result = await components.ledger.update_transaction(
        user_id=current.user_id,
        transaction_id=transaction_id,
        description=body.description,
        amount=body.amount,
        kind=body.kind,
        transaction_date=body.transaction_date,
    )
    return _respond(result)


@router.delete("/transactions/{transaction_id}")
async def delete_transaction(
    transaction_id: int,
    current: CurrentUser = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    result = await components.ledger.delete_transaction(current.user_id, transaction_id)
    return _respond(result)
