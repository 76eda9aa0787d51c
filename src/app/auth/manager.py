"""Auth Manager: tokens do gateway por subject.

Fluxo de renovação:
    1. Assina asserção HS256 (python-jose) com o signing secret
    2. POST no endpoint de emissão do gateway
    3. Troca atômica do AuthToken no Credential Store

Chamadas concorrentes de get_token para o mesmo subject compartilham
a mesma renovação (single-flight: uma Task por subject).
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

import httpx
from jose import JWTError, jwt

from app.domain.auth_token import SYSTEM_SUBJECT, AuthToken
from app.domain.clock import parse_datetime, utc_now
from app.protocols.lifecycle import LifecycleAware
from utils.errors import CredentialRejected, TokenRefreshUnavailable

if TYPE_CHECKING:
    from app.domain.clock import Clock
    from app.protocols.credential_store import CredentialStoreProtocol
    from config.settings import GatewaySettings

logger = logging.getLogger(__name__)

# 48 bytes → 64 caracteres url-safe
SIGNING_SECRET_BYTES = 48

# Asserções enviadas ao gateway nunca valem como bearer de entrada
ASSERTION_TYPE = "gateway_assertion"


def generate_signing_secret() -> str:
    return secrets.token_urlsafe(SIGNING_SECRET_BYTES)


class AuthManager(LifecycleAware):
    """Emite, guarda e renova AuthTokens.

    Args:
        settings: GatewaySettings (endpoint, algoritmo, margens)
        credential_store: Store do signing secret e dos tokens
        http_client: httpx.AsyncClient para o endpoint de token (opcional)
        clock: Relógio UTC injetável
        seed_secret: Secret inicial vindo do ambiente (opcional)
    """

    lifecycle_name = "auth_manager"

    def __init__(
        self,
        settings: GatewaySettings,
        credential_store: CredentialStoreProtocol,
        http_client: httpx.AsyncClient | None = None,
        clock: Clock = utc_now,
        seed_secret: str | None = None,
    ) -> None:
        self._settings = settings
        self._store = credential_store
        self._http = http_client
        self._owns_http = http_client is None
        self._clock = clock
        self._seed_secret = seed_secret or settings.signing_secret or None
        self._inflight: dict[str, asyncio.Task[AuthToken]] = {}

    # ──────────────────────────────────────────────────────────────
    # Tokens
    # ──────────────────────────────────────────────────────────────

    async def get_token(self, subject: str = SYSTEM_SUBJECT) -> str:
        """Retorna token válido do subject, renovando se necessário.

        Raises:
            CredentialRejected: Secret ausente/inválido ou recusado pelo gateway
            TokenRefreshUnavailable: Endpoint de token inacessível
        """
        task = self._inflight.get(subject)
        if task is None:
            # Task própria: cancelar um chamador não cancela a renovação
            task = asyncio.ensure_future(self._load_or_refresh(subject))
            self._inflight[subject] = task
            task.add_done_callback(lambda done: self._settle(subject, done))
        token = await asyncio.shield(task)
        return token.value

    def _settle(self, subject: str, task: asyncio.Task[AuthToken]) -> None:
        if self._inflight.get(subject) is task:
            del self._inflight[subject]
        if not task.cancelled():
            # Consome a exceção mesmo sem waiters restantes
            task.exception()

    async def invalidate(self, subject: str = SYSTEM_SUBJECT) -> None:
        """Força renovação na próxima chamada de get_token."""
        deleted = await self._store.delete_token_async(subject)
        logger.info("token_invalidated", extra={"subject": subject, "existed": deleted})

    async def _load_or_refresh(self, subject: str) -> AuthToken:
        cached = await self._store.load_token_async(subject)
        now = self._clock()
        if cached is not None and not cached.needs_refresh(
            now, self._settings.token_safety_margin_seconds
        ):
            return cached
        return await self._refresh(subject)

    async def _refresh(self, subject: str) -> AuthToken:
        secret = await self._store.get_signing_secret_async()
        if not secret:
            raise CredentialRejected("Signing secret não configurado")

        now = self._clock()
        assertion = jwt.encode(
            await self._build_claims(subject, now),
            secret,
            algorithm=self._settings.jwt_algorithm,
        )
        body = await self._request_token(subject, assertion)
        token = self._parse_token(subject, body, now)
        await self._store.save_token_async(token)
        logger.info("token_refreshed", extra=token.to_log_dict())
        return token

    async def _build_claims(self, subject: str, now: datetime) -> dict[str, Any]:
        claims: dict[str, Any] = {
            "typ": ASSERTION_TYPE,
            "sub": subject,
            "iat": int(now.timestamp()),
            "exp": int(
                (now + timedelta(seconds=self._settings.assertion_ttl_seconds)).timestamp()
            ),
        }
        if self._settings.issuer:
            claims["iss"] = self._settings.issuer
        if subject != SYSTEM_SUBJECT:
            claims["vendor_id"] = subject
            credentials = await self._store.get_vendor_credentials_async(subject) or {}
            if credentials.get("store_name"):
                claims["store_name"] = credentials["store_name"]
        return claims

    async def _request_token(self, subject: str, assertion: str) -> dict[str, Any]:
        url = self._settings.build_url(self._settings.token_endpoint)
        try:
            response = await self._get_http().post(
                url,
                json={"assertion": assertion, "subject": subject},
                timeout=self._settings.request_timeout_seconds,
            )
        except httpx.TimeoutException as exc:
            logger.warning("token_refresh_timeout", extra={"subject": subject})
            raise TokenRefreshUnavailable("Tempo esgotado ao renovar token") from exc
        except httpx.TransportError as exc:
            logger.warning("token_refresh_unreachable", extra={"subject": subject})
            raise TokenRefreshUnavailable("Endpoint de token inacessível") from exc

        status = response.status_code
        if status == 429 or status >= 500:
            logger.warning(
                "token_refresh_unavailable",
                extra={"subject": subject, "status_code": status},
            )
            raise TokenRefreshUnavailable(
                "Endpoint de token indisponível", status_code=status
            )
        if status >= 400:
            logger.warning(
                "token_refresh_rejected",
                extra={"subject": subject, "status_code": status},
            )
            raise CredentialRejected("Credenciais recusadas pelo gateway", status_code=status)

        try:
            data = response.json()
        except ValueError as exc:
            raise CredentialRejected("Resposta inválida do endpoint de token") from exc
        if not isinstance(data, dict):
            raise CredentialRejected("Resposta inválida do endpoint de token")
        return data

    def _parse_token(self, subject: str, body: dict[str, Any], now: datetime) -> AuthToken:
        value = body.get("token") or body.get("access_token")
        if not value:
            raise CredentialRejected("Resposta do endpoint de token sem token")

        expires_at: datetime | None = None
        if body.get("expires_in") is not None:
            expires_at = now + timedelta(seconds=float(body["expires_in"]))
        elif body.get("expires_at") is not None:
            raw = body["expires_at"]
            if isinstance(raw, int | float):
                expires_at = datetime.fromtimestamp(raw, tz=now.tzinfo)
            else:
                expires_at = parse_datetime(str(raw))
        if expires_at is None:
            raise CredentialRejected("Resposta do endpoint de token sem expiração")
        if expires_at <= now:
            logger.warning(
                "token_refresh_already_expired",
                extra={"subject": subject, "expires_at": expires_at.isoformat()},
            )
            raise CredentialRejected("Endpoint de token devolveu token já expirado")

        return AuthToken(subject=subject, value=str(value), issued_at=now, expires_at=expires_at)

    def _get_http(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(timeout=self._settings.request_timeout_seconds)
            self._owns_http = True
        return self._http

    # ──────────────────────────────────────────────────────────────
    # Signing secret
    # ──────────────────────────────────────────────────────────────

    async def ensure_signing_secret(self) -> bool:
        """Garante que existe signing secret; gera se ausente.

        Returns:
            True se um secret foi criado agora.
        """
        if await self._store.get_signing_secret_async():
            return False
        secret = self._seed_secret or generate_signing_secret()
        await self._store.set_signing_secret_async(secret)
        logger.info(
            "signing_secret_created",
            extra={"source": "env" if self._seed_secret else "generated"},
        )
        return True

    async def rotate_signing_secret(self) -> dict[str, Any]:
        """Substitui o signing secret e descarta tokens em cache."""
        await self._store.set_signing_secret_async(generate_signing_secret())
        dropped = await self._store.clear_tokens_async()
        logger.info("signing_secret_rotated", extra={"tokens_dropped": dropped})
        return {"rotated": True, "tokens_dropped": dropped}

    async def validate_token(self, token: str) -> dict[str, Any] | None:
        """Valida bearer token assinado com o signing secret.

        Returns:
            Claims se assinatura e expiração forem válidas e o token não
            for uma asserção de saída; None caso contrário.
        """
        secret = await self._store.get_signing_secret_async()
        if not secret or not token:
            return None
        options = {"verify_iss": bool(self._settings.issuer), "require_exp": True}
        try:
            claims = jwt.decode(
                token,
                secret,
                algorithms=[self._settings.jwt_algorithm],
                issuer=self._settings.issuer or None,
                options=options,
            )
        except JWTError:
            logger.info("token_validation_failed")
            return None
        if claims.get("typ") == ASSERTION_TYPE:
            logger.info("token_validation_rejected_assertion")
            return None
        return claims

    # ──────────────────────────────────────────────────────────────
    # Ciclo de vida
    # ──────────────────────────────────────────────────────────────

    async def on_activate(self) -> None:
        await self.ensure_signing_secret()

    async def on_deactivate(self) -> None:
        if self._owns_http and self._http is not None:
            await self._http.aclose()
            self._http = None
