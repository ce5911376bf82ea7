#!/usr/bin/env python3
"""
PodFS - Main Entry Point

Thin HTTP layer over the filesystem module:
1. Loads configuration
2. Initializes modules
3. Exposes the six filesystem operations

All filesystem logic lives in the modules. Every operation answers with
the {success, data | error} envelope; remote failures are not HTTP errors.
"""

import logging
from contextlib import asynccontextmanager
from typing import List, Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware

from podfs import __version__
from podfs.config.provider import ConfigProvider, get_config_provider
from podfs.logging_config import configure_logging, get_logging_config
from podfs.modules.api import (
    DeleteRequest,
    FileContent,
    FileEntry,
    FileStat,
    OperationResult,
    UploadRequest,
)
from podfs.modules.auth import AuthModule
from podfs.modules.executor import KubectlGateway, PodTarget
from podfs.modules.filesystem import PodFilesystem

logger = logging.getLogger("podfs.main")

FS_PREFIX = (
    "/api/v1/clusters/{cluster_id}/namespaces/{namespace}"
    "/pods/{pod}/containers/{container}/fs"
)


# Dependency injection helpers
async def verify_api_key(
    request: Request,
    x_api_key: Optional[str] = Header(None, description="API key for authentication"),
) -> str:
    """Verify API key (when keys are configured) and return the caller identity."""
    auth: AuthModule = request.app.state.auth
    result = auth.verify_api_key(x_api_key)
    if not result.ok:
        raise HTTPException(401, result.error)
    return result.identity


def get_filesystem(request: Request) -> PodFilesystem:
    return request.app.state.filesystem


def get_target(cluster_id: str, namespace: str, pod: str, container: str) -> PodTarget:
    return PodTarget(cluster_id=cluster_id, namespace=namespace, pod=pod, container=container)


router = APIRouter(prefix=FS_PREFIX, dependencies=[Depends(verify_api_key)], tags=["filesystem"])


@router.get("/list", response_model=OperationResult[List[FileEntry]], response_model_exclude_none=True)
async def list_dir(
    path: str = Query("/", description="Directory to list"),
    target: PodTarget = Depends(get_target),
    fs: PodFilesystem = Depends(get_filesystem),
):
    return await fs.list_dir(target, path)


@router.get("/read", response_model=OperationResult[FileContent], response_model_exclude_none=True)
async def read_file(
    path: str = Query(..., min_length=1),
    max_size: Optional[int] = Query(None, ge=1, description="Maximum bytes of content to return"),
    target: PodTarget = Depends(get_target),
    fs: PodFilesystem = Depends(get_filesystem),
):
    return await fs.read_file(target, path, max_size)


@router.get("/stat", response_model=OperationResult[FileStat], response_model_exclude_none=True)
async def stat_path(
    path: str = Query(..., min_length=1),
    target: PodTarget = Depends(get_target),
    fs: PodFilesystem = Depends(get_filesystem),
):
    return await fs.stat_path(target, path)


@router.get("/download", response_model=OperationResult[str], response_model_exclude_none=True)
async def download_file(
    path: str = Query(..., min_length=1),
    target: PodTarget = Depends(get_target),
    fs: PodFilesystem = Depends(get_filesystem),
):
    return await fs.download_file(target, path)


@router.post("/delete", response_model=OperationResult[None], response_model_exclude_none=True)
async def delete_path(
    payload: DeleteRequest,
    target: PodTarget = Depends(get_target),
    fs: PodFilesystem = Depends(get_filesystem),
):
    return await fs.delete_path(target, payload.path, payload.is_directory)


@router.post("/upload", response_model=OperationResult[None], response_model_exclude_none=True)
async def upload_file(
    payload: UploadRequest,
    target: PodTarget = Depends(get_target),
    fs: PodFilesystem = Depends(get_filesystem),
):
    return await fs.upload_file(target, payload.path, payload.content)


def create_app(config_provider: Optional[ConfigProvider] = None) -> FastAPI:
    """Build the FastAPI application with its modules attached to app.state."""
    config_provider = config_provider or get_config_provider()
    bridge_config = config_provider.get_bridge_config()
    api_config = config_provider.get_api_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting PodFS API (kubectl: {bridge_config.kubectl_path})")
        if not app.state.auth.enabled:
            logger.warning("No API_KEYS configured - API is unauthenticated")
        yield
        logger.info("PodFS API shutdown complete")

    app = FastAPI(
        title="PodFS API",
        description="PodFS - Container filesystems over kubectl exec",
        version=__version__,
        debug=api_config.debug,
        lifespan=lifespan,
    )

    app.state.filesystem = PodFilesystem(KubectlGateway(bridge_config))
    app.state.auth = AuthModule(config_provider.get_auth_config())

    if api_config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=api_config.cors_origins,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    @app.get("/health")
    async def health():
        return {"status": "healthy", "version": __version__}

    app.include_router(router)
    return app


def main():
    """Main entry point."""
    configure_logging()
    provider = get_config_provider()
    api_config = provider.get_api_config()

    uvicorn.run(
        create_app(provider),
        host=api_config.host,
        port=api_config.port,
        log_config=get_logging_config(),
        reload=False,
    )


if __name__ == "__main__":
    main()
