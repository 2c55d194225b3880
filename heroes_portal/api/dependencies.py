"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from fastapi import Depends, Request

from heroes_portal.adapters.database import Database
from heroes_portal.adapters.repository import (
    PostgresAccountRepository,
    PostgresRegistryLookup,
    PostgresTokenStore,
)
from heroes_portal.config.settings import Settings, get_settings
from heroes_portal.domain.login import LoginService
from heroes_portal.domain.password_policy import PasswordPolicy
from heroes_portal.domain.profile import ProfileService
from heroes_portal.domain.signup import SignupService


def get_database(request: Request) -> Database:
    """
    Get the persistence gateway from app state.

    The gateway is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.database


def get_account_repository(request: Request) -> PostgresAccountRepository:
    return PostgresAccountRepository(get_database(request))


def get_signup_service(
    request: Request, settings: Settings = Depends(get_settings)
) -> SignupService:
    """
    Create signup service with injected dependencies.

    Wires together the registry, token store and account repository.
    """
    database = get_database(request)
    return SignupService(
        registry=PostgresRegistryLookup(database),
        tokens=PostgresTokenStore(database),
        accounts=PostgresAccountRepository(database),
        step1_ttl_seconds=settings.step1_token_ttl_seconds,
        step2_ttl_seconds=settings.step2_token_ttl_seconds,
        bcrypt_cost=settings.bcrypt_cost,
        password_policy=PasswordPolicy(
            min_length=settings.password_min_length,
            max_length=settings.password_max_length,
        ),
    )


def get_login_service(request: Request) -> LoginService:
    return LoginService(accounts=get_account_repository(request))


def get_profile_service(request: Request) -> ProfileService:
    return ProfileService(accounts=get_account_repository(request))
