"""
Credential Routes

GET /credentials - List keys (masked) and the active position
PUT /credentials - Replace the whole ordered list
POST /credentials - Append a key
DELETE /credentials/{index} - Remove the key at a position
"""

from fastapi import APIRouter, HTTPException, Depends

from app.services.session import AnalysisSession, get_session
from app.schemas.schemas import CredentialAdd, CredentialList, CredentialReplace

router = APIRouter(prefix="/credentials", tags=["Credentials"])


def _listing(session: AnalysisSession) -> CredentialList:
    keys = session.masked_credentials()
    return CredentialList(keys=keys, active_index=session.pool.index, total=len(keys))


@router.get("", response_model=CredentialList)
async def list_credentials(session: AnalysisSession = Depends(get_session)):
    """Keys are never returned in full."""
    return _listing(session)


@router.put("", response_model=CredentialList)
async def replace_credentials(data: CredentialReplace, session: AnalysisSession = Depends(get_session)):
    """Replace all keys. Order matters: keys are tried first to last."""
    if session.is_busy:
        raise HTTPException(status_code=409, detail="Cannot replace keys while an analysis run is active")
    session.set_credentials(data.api_keys)
    return _listing(session)


@router.post("", response_model=CredentialList, status_code=201)
async def add_credential(data: CredentialAdd, session: AnalysisSession = Depends(get_session)):
    """Append a key at the end of the rotation order."""
    session.add_credential(data.api_key.strip())
    return _listing(session)


@router.delete("/{index}", response_model=CredentialList)
async def remove_credential(index: int, session: AnalysisSession = Depends(get_session)):
    if session.is_busy:
        raise HTTPException(status_code=409, detail="Cannot remove keys while an analysis run is active")
    try:
        session.remove_credential(index)
    except IndexError:
        raise HTTPException(status_code=404, detail=f"No credential at position {index}")
    return _listing(session)
