"""
api/routes/v1/auth.py -- Register, login and admin-check endpoints.

Routes:
  POST /api/v1/auth/register                 -- create account; 201 {user_id}
  POST /api/v1/auth/login                    -- credentials + app_id; 200 {token}
  GET  /api/v1/auth/users/{user_id}/is-admin -- 200 {is_admin}

Handlers are plain `def` so FastAPI runs them in its threadpool: bcrypt and
the SQL store both block. AuthError subclasses raised by the service are
turned into the error envelope by the handler in api/main.py; nothing here
catches them.

Security:
  Unknown email and wrong password both come back as 401 invalid_credentials.
  Login responses carry Cache-Control: no-store.
"""

from __future__ import annotations

from fastapi import APIRouter, Path, Request, Response

from api.models import IsAdminResponse, LoginRequest, LoginResponse, RegisterRequest, RegisterResponse
from auth.service import AuthService

router = APIRouter()


def _service(request: Request) -> tuple[AuthService, float]:
    state = request.app.state
    return state.auth_service, state.storage_timeout


@router.post("/auth/register", response_model=RegisterResponse, status_code=201)
def register(request: Request, body: RegisterRequest) -> RegisterResponse:
    """Register a new account and return its id."""
    service, timeout = _service(request)
    user_id = service.register_new_user(body.email, body.password, timeout=timeout)
    return RegisterResponse(user_id=user_id)


@router.post("/auth/login", response_model=LoginResponse)
def login(request: Request, response: Response, body: LoginRequest) -> LoginResponse:
    """Authenticate and return an access token signed for body.app_id."""
    service, timeout = _service(request)
    token = service.login(body.email, body.password, body.app_id, timeout=timeout)
    response.headers["Cache-Control"] = "no-store"
    return LoginResponse(token=token)


@router.get("/auth/users/{user_id}/is-admin", response_model=IsAdminResponse)
def is_admin(request: Request, user_id: int = Path(gt=0)) -> IsAdminResponse:
    """Report whether user_id holds the admin flag."""
    service, timeout = _service(request)
    return IsAdminResponse(is_admin=service.is_admin(user_id, timeout=timeout))
