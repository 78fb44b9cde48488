"""FastAPI dependencies - resources owned by the app, handed to routes"""
from fastapi import Request
from fastapi.templating import Jinja2Templates

from lib.db import Database
from lib.settings import Settings


def get_db(request: Request) -> Database:
    return request.app.state.db


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_templates(request: Request) -> Jinja2Templates:
    return request.app.state.templates
