"""API Dependencies — per-request wiring of store, services and the caller's session.

Invariants:
    - Shared objects (key-value store, upload storage, round locks) live on app.state,
      created once in the lifespan; services are cheap per-request wrappers
    - CurrentSession resolves the `session` cookie and is None when absent or invalid
    - The session cookie is HttpOnly, SameSite=Lax, Path=/, max-age = round TTL
"""

from typing import Annotated

from fastapi import Depends, Request, Response

from soundround.config import Settings, get_settings
from soundround.core.join_codes import normalize_join_code
from soundround.core.repository_protocols import KeyValueStore
from soundround.infrastructure.file_storage import UploadStorage
from soundround.models.session import Session
from soundround.services.export_bundler import ExportBundler
from soundround.services.round_lifecycle import RoundLifecycle
from soundround.services.round_store import RoundLocks, RoundStore
from soundround.services.session_auth import SessionAuthenticator
from soundround.services.submissions import SubmissionService

SESSION_COOKIE = "session"

SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_store(request: Request) -> KeyValueStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise RuntimeError("Store not initialized")
    return store


def get_upload_storage(request: Request) -> UploadStorage:
    return request.app.state.upload_storage


def get_round_locks(request: Request) -> RoundLocks:
    return request.app.state.round_locks


StoreDep = Annotated[KeyValueStore, Depends(get_store)]


def get_round_store(
    store: StoreDep,
    settings: SettingsDep,
    locks: Annotated[RoundLocks, Depends(get_round_locks)],
) -> RoundStore:
    return RoundStore(store, settings.round_ttl_seconds, locks)


def get_authenticator(store: StoreDep, settings: SettingsDep) -> SessionAuthenticator:
    return SessionAuthenticator(store, settings.round_ttl_seconds)


RoundStoreDep = Annotated[RoundStore, Depends(get_round_store)]
AuthenticatorDep = Annotated[SessionAuthenticator, Depends(get_authenticator)]
UploadStorageDep = Annotated[UploadStorage, Depends(get_upload_storage)]


async def get_current_session(
    request: Request, authenticator: AuthenticatorDep,
) -> Session | None:
    return await authenticator.resolve(request.cookies.get(SESSION_COOKIE))


CurrentSession = Annotated[Session | None, Depends(get_current_session)]


def get_lifecycle(
    rounds: RoundStoreDep,
    authenticator: AuthenticatorDep,
    files: UploadStorageDep,
    settings: SettingsDep,
) -> RoundLifecycle:
    return RoundLifecycle(rounds, authenticator, files, settings)


def get_submissions(
    rounds: RoundStoreDep, files: UploadStorageDep, settings: SettingsDep,
) -> SubmissionService:
    return SubmissionService(rounds, files, settings)


def get_bundler(rounds: RoundStoreDep, files: UploadStorageDep) -> ExportBundler:
    return ExportBundler(rounds, files)


LifecycleDep = Annotated[RoundLifecycle, Depends(get_lifecycle)]
SubmissionsDep = Annotated[SubmissionService, Depends(get_submissions)]
BundlerDep = Annotated[ExportBundler, Depends(get_bundler)]


def round_code(code: str) -> str:
    """Path parameter {code}, normalized like typed join codes."""
    return normalize_join_code(code)


RoundCode = Annotated[str, Depends(round_code)]


def set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        SESSION_COOKIE,
        token,
        max_age=settings.round_ttl_seconds,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        SESSION_COOKIE, path="/", httponly=True, samesite="lax",
        secure=settings.cookie_secure,
    )
