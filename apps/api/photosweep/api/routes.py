import logging

from fastapi import APIRouter, HTTPException, Request, status

from photosweep.engine.cleanup import CleanupStatus
from photosweep.engine.errors import AuthorizationDenied, CommitFailed, ContactSheetFailed
from photosweep.engine.scan import build_scan_result
from photosweep.engine.schemas import (
    CleanupRequest,
    CleanupResult,
    ScanRequest,
    ScanResult,
    SessionStatus,
)
from photosweep.engine.session import CleanerSession, SessionState

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "phase": "sweep"}


@router.get("/api/session", response_model=SessionStatus)
async def session_status(request: Request) -> SessionStatus:
    return _session_status(_session(request))


@router.post("/api/scan", response_model=ScanResult)
async def scan(payload: ScanRequest, request: Request) -> ScanResult:
    session = _session(request)
    if session.state is SessionState.SCANNING:
        raise HTTPException(status.HTTP_409_CONFLICT, detail="A scan is already running.")
    if request.app.state.cleanup_lock.locked():
        raise HTTPException(status.HTTP_409_CONFLICT, detail="A cleanup is in progress.")
    try:
        result = await session.scan(
            older_than_days=payload.older_than_days,
            generate_contact_sheet=payload.generate_contact_sheet,
            protected_album_names=payload.protected_album_names,
        )
    except AuthorizationDenied as exc:
        raise HTTPException(status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    return build_scan_result(result)


@router.post("/api/cleanup", response_model=CleanupResult)
async def cleanup(payload: CleanupRequest, request: Request) -> CleanupResult:
    session = _session(request)
    if not payload.consent_confirmed:
        raise HTTPException(
            status.HTTP_400_BAD_REQUEST,
            detail="Cleanup requires consentConfirmed=true.",
        )
    lock = request.app.state.cleanup_lock
    if lock.locked():
        raise HTTPException(status.HTTP_409_CONFLICT, detail="A cleanup is already running.")
    async with lock:
        current = session.scan_result
        if session.state is not SessionState.READY or current is None:
            raise HTTPException(
                status.HTTP_409_CONFLICT,
                detail=f"Session is not ready for cleanup (state: {session.state}).",
            )
        if current.run_id != payload.run_id:
            raise HTTPException(
                status.HTTP_409_CONFLICT,
                detail="Scan is stale; rescan before cleaning up.",
            )
        try:
            outcome = await session.execute_cleanup()
        except CommitFailed as exc:
            raise HTTPException(status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
        except ContactSheetFailed as exc:
            raise HTTPException(status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
        if outcome is None:
            raise HTTPException(status.HTTP_409_CONFLICT, detail="Session is not ready for cleanup.")

    if outcome.status is CleanupStatus.CANCELLED:
        logger.info("Cleanup for run %s was cancelled at confirmation", payload.run_id)
    return CleanupResult(
        status=outcome.status.value,
        state=session.state.value,
        deletedCount=outcome.deleted_count,
        freedBytes=outcome.freed_bytes,
        sheetsSaved=outcome.sheets_saved,
    )


@router.post("/api/reset", response_model=SessionStatus)
async def reset(request: Request) -> SessionStatus:
    session = _session(request)
    if request.app.state.cleanup_lock.locked():
        raise HTTPException(status.HTTP_409_CONFLICT, detail="A cleanup is in progress.")
    session.reset()
    return _session_status(session)


def _session(request: Request) -> CleanerSession:
    return request.app.state.session


def _session_status(session: CleanerSession) -> SessionStatus:
    completed = session.state is SessionState.COMPLETED
    return SessionStatus(
        state=session.state.value,
        runId=session.scan_result.run_id if session.scan_result else None,
        deletionCount=session.deletion_count,
        isActionEnabled=session.is_action_enabled,
        deletedCount=session.deleted_count if completed else None,
        freedBytes=session.freed_bytes if completed else None,
        error=session.error,
    )
