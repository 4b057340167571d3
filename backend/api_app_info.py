from fastapi import APIRouter, Depends, HTTPException, Response
from typing import List

from dependencies import get_app_info_repository
from models import AppInfo, AppInfoCreateRequest, AppInfoUpdateRequest
from services_app_info import AppInfoRepository

router = APIRouter(prefix="/api/app-info", tags=["app-info"])


@router.get("/", response_model=List[AppInfo])
def list_app_info_endpoint(repo: AppInfoRepository = Depends(get_app_info_repository)):
    return repo.list_app_info()


@router.post("/", response_model=AppInfo, status_code=201)
def create_app_info_endpoint(payload: AppInfoCreateRequest, repo: AppInfoRepository = Depends(get_app_info_repository)):
    name = payload.name.strip()
    info = repo.create_app_info(name, payload.version.strip())
    if info is None:
        raise HTTPException(status_code=409, detail=f"App info for {name} already exists")
    return info


@router.get("/{name}", response_model=AppInfo)
def get_app_info_endpoint(name: str, repo: AppInfoRepository = Depends(get_app_info_repository)):
    info = repo.get_app_info(name)
    if info is None:
        raise HTTPException(status_code=404, detail="App info not found")
    return info


@router.put("/{name}", response_model=AppInfo)
def update_app_info_endpoint(name: str, payload: AppInfoUpdateRequest, repo: AppInfoRepository = Depends(get_app_info_repository)):
    info = repo.update_app_info(name, payload.version.strip())
    if info is None:
        raise HTTPException(status_code=404, detail="App info not found")
    return info


@router.delete("/{name}", status_code=204)
def delete_app_info_endpoint(name: str, repo: AppInfoRepository = Depends(get_app_info_repository)):
    if not repo.delete_app_info(name):
        raise HTTPException(status_code=404, detail="App info not found")
    return Response(status_code=204)
