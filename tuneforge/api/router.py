# Copyright (c) US Inc. All rights reserved.
"""API router - combines all endpoints"""

from fastapi import APIRouter
from .endpoints import documents, logs, playground

api_router = APIRouter()

api_router.include_router(documents.router, prefix="/documents", tags=["Documents"])
api_router.include_router(playground.router, prefix="/playground", tags=["Playground"])
api_router.include_router(logs.router, prefix="/logs", tags=["Logs"])
