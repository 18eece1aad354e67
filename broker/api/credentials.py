"""CRUD API for stored service credentials (owner-scoped, secrets never returned)."""

from fastapi import APIRouter, Depends, HTTPException

from broker.api.deps import get_current_user, get_vault
from broker.models.user import User
from broker.schemas.credential import (
    CredentialCreate,
    CredentialRead,
    CredentialTestResult,
    CredentialUpdate,
    ServiceTypesRead,
)
from broker.services.vault import CredentialVault

router = APIRouter(prefix="/api/credentials", tags=["credentials"])


@router.get("", response_model=list[CredentialRead])
def list_credentials(
    user: User = Depends(get_current_user),
    vault: CredentialVault = Depends(get_vault),
):
    return vault.list(user.id)


@router.get("/service-types", response_model=ServiceTypesRead)
def list_service_types():
    return ServiceTypesRead()


@router.post("", response_model=CredentialRead, status_code=201)
def create_credential(
    data: CredentialCreate,
    user: User = Depends(get_current_user),
    vault: CredentialVault = Depends(get_vault),
):
    return vault.create(
        user.id,
        name=data.name,
        service_type=data.service_type,
        payload=data.data,
        description=data.description,
    )


@router.get("/{cred_id}", response_model=CredentialRead)
def get_credential(
    cred_id: int,
    user: User = Depends(get_current_user),
    vault: CredentialVault = Depends(get_vault),
):
    return vault.get(cred_id, user.id)


@router.put("/{cred_id}", response_model=CredentialRead)
def update_credential(
    cred_id: int,
    data: CredentialUpdate,
    user: User = Depends(get_current_user),
    vault: CredentialVault = Depends(get_vault),
):
    try:
        return vault.update(cred_id, user.id, data.model_dump(exclude_unset=True))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{cred_id}", status_code=204)
def delete_credential(
    cred_id: int,
    user: User = Depends(get_current_user),
    vault: CredentialVault = Depends(get_vault),
):
    vault.delete(cred_id, user.id)


@router.post("/{cred_id}/test", response_model=CredentialTestResult)
def test_credential(
    cred_id: int,
    user: User = Depends(get_current_user),
    vault: CredentialVault = Depends(get_vault),
):
    """Check the stored payload has the fields its service type needs."""
    valid, message, service_type = vault.check_format(cred_id, user.id)
    return CredentialTestResult(valid=valid, message=message, service_type=service_type)
