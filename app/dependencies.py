# app/dependencies.py
# Purpose: FastAPI dependencies exposing the objects create_app() stores on app.state.

from fastapi import Request

from app.config import ConfigResolver
from app.services.chat import RagService


def get_service(request: Request) -> RagService:
    return request.app.state.service


def get_resolver(request: Request) -> ConfigResolver:
    return request.app.state.resolver
