"""Namespace API endpoints."""

from fastapi import APIRouter, Depends

from ..services import NamespaceService
from .dependencies import get_namespace_service

router = APIRouter()


@router.get("", response_model=list[str])
def list_namespaces(
    namespaces: NamespaceService = Depends(get_namespace_service),
) -> list[str]:
    """List all namespaces."""
    return namespaces.list_namespaces()
