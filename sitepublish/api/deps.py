from functools import lru_cache

from fastapi import Depends

from sitepublish.app_shell.config import Settings
from sitepublish.components.dispatch import PublishDispatchComponent
from sitepublish.context import ServiceContext
from sitepublish.rules.loader import load_rules
from sitepublish.rules.models import Rules


# --- Settings ---
@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules() -> Rules:
    return load_rules(get_settings().rules_path)


# --- Context ---
@lru_cache
def get_context() -> ServiceContext:
    settings = get_settings()
    return ServiceContext.create(settings.db_path, get_rules())


# --- Components ---
def get_dispatch(ctx: ServiceContext = Depends(get_context)) -> PublishDispatchComponent:
    return ctx.dispatch
