"""Authentication endpoints: login, logout, current user and phone verification"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ecolimpio.app import EcoLimpioApp
from ecolimpio.auth.passwords import verify_password
from ecolimpio.auth.roles import home_path
from ecolimpio.auth.session_hash import build_hash_url
from ecolimpio.models.user import User
from ecolimpio.services.captcha import SEND_CODE_ACTION
from ecolimpio.utils.exceptions import AccountLockedError, AuthenticationError, ValidationError
from ecolimpio.utils.logger import get_logger
from ecolimpio.utils.validation import normalize_phone, require_code, require_email

from ..auth_deps import get_current_user, get_ecolimpio, get_session_token, rate_limit
from ..models import LoginRequest, SendCodeRequest, VerifyCodeRequest

logger = get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

login_rate_limit = rate_limit(
    "login",
    "Demasiados intentos de inicio de sesión. Intenta de nuevo en {retry_after} segundos.",
)


def _locked(minutes: int) -> AccountLockedError:
    return AccountLockedError(
        f"Cuenta bloqueada temporalmente. Intenta de nuevo en {minutes} minutos.",
        lockout_minutes=minutes,
    )


@router.post("/login", dependencies=[Depends(login_rate_limit)])
def login(login_data: LoginRequest, ecolimpio: EcoLimpioApp = Depends(get_ecolimpio)):
    """Login with email and password; issues a session cookie and its access hash"""
    if not login_data.email or not login_data.password:
        raise ValidationError("Email y contraseña son obligatorios")
    email = require_email(login_data.email)

    lockout = ecolimpio.login_lockout
    status = lockout.is_locked(email)
    if status.locked:
        raise _locked(status.lockout_minutes)

    user = ecolimpio.storage.users.get_by_email(email)
    if user is None or not verify_password(login_data.password, user.password_hash):
        # Unknown emails count as failures too, so responses do not reveal which exist
        status = lockout.record_attempt(email, success=False)
        if status.locked:
            raise _locked(status.lockout_minutes)
        logger.info("Login failed", attempts_remaining=status.attempts_remaining)
        raise AuthenticationError(
            "Credenciales inválidas", attemptsRemaining=status.attempts_remaining
        )

    lockout.record_attempt(email, success=True)
    session = ecolimpio.sessions.create_session(user)

    settings = ecolimpio.settings
    redirect_url = build_hash_url(settings.app.base_url, session.access_hash, home_path(user.role))
    response = JSONResponse({
        "success": True,
        "redirectUrl": redirect_url,
        "user": user.to_public(),
    })
    response.set_cookie(
        key=settings.session.cookie_name,
        value=session.token,
        max_age=settings.session.expiry_days * 24 * 60 * 60,
        httponly=True,
        secure=settings.app.is_production,
        samesite="lax",
        path="/",
        domain=settings.app.cookie_domain,
    )
    logger.info("Login succeeded", user_id=user.id, role=user.role.value)
    return response


@router.post("/logout")
def logout(request: Request, ecolimpio: EcoLimpioApp = Depends(get_ecolimpio)):
    """Logout and clear session"""
    ecolimpio.sessions.revoke(get_session_token(request))

    settings = ecolimpio.settings
    response = JSONResponse({"success": True, "message": "Sesión cerrada correctamente"})
    response.delete_cookie(
        settings.session.cookie_name,
        path="/",
        domain=settings.app.cookie_domain,
    )
    return response


@router.get("/me")
def me(current_user: User = Depends(get_current_user)):
    return {"success": True, "user": current_user.to_public()}


@router.post("/send-code", dependencies=[Depends(rate_limit("sms-code"))])
def send_code(body: SendCodeRequest, ecolimpio: EcoLimpioApp = Depends(get_ecolimpio)):
    """Issue a phone verification code after a CAPTCHA check"""
    if not body.phone:
        raise ValidationError("El número de teléfono es obligatorio")
    phone = normalize_phone(body.phone)

    if not body.captcha_token:
        raise ValidationError("Verificación de seguridad requerida")
    if not ecolimpio.captcha.verify(body.captcha_token, expected_action=SEND_CODE_ACTION):
        raise ValidationError("Verificación de seguridad fallida. Recarga la página.")

    ecolimpio.verification.issue_code(phone)
    # The code itself never goes back to the client
    return {"success": True, "message": "Código enviado correctamente"}


@router.post("/verify-code", dependencies=[Depends(rate_limit("sms-code"))])
def verify_code(body: VerifyCodeRequest, ecolimpio: EcoLimpioApp = Depends(get_ecolimpio)):
    if not body.phone or not body.code:
        raise ValidationError("Teléfono y código son obligatorios")
    phone = normalize_phone(body.phone)
    code = require_code(body.code.strip())

    ecolimpio.verification.check_code(phone, code)
    return {"success": True, "message": "Teléfono verificado correctamente"}
