"""
API dependency injection module.

Services are built per request from the request session, the shared session
factory (for coordinator transactions) and the application logger stored on
``app.state`` at startup.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.async_session import get_async_db, get_session_factory
from app.db.transaction import TransactionCoordinator
from app.services.async_event import AsyncEventService
from app.services.async_follow import AsyncFollowService
from app.services.async_group import AsyncGroupService
from app.services.async_nutrition import AsyncNutritionService
from app.services.async_program import AsyncProgramService
from app.services.async_user import AsyncUserService
from app.services.async_user_profile import AsyncUserProfileService
from app.services.email import EmailService
from app.utils.logger import AppLogger


def get_logger(request: Request) -> AppLogger:
    return request.app.state.logger


def get_email_service() -> EmailService:
    return EmailService()


def get_transaction_coordinator(
    session_factory: async_sessionmaker = Depends(get_session_factory),
    logger: AppLogger = Depends(get_logger),
) -> TransactionCoordinator:
    return TransactionCoordinator(session_factory, logger)


def get_user_service(
    db: AsyncSession = Depends(get_async_db),
    transactions: TransactionCoordinator = Depends(get_transaction_coordinator),
    logger: AppLogger = Depends(get_logger),
    email_service: EmailService = Depends(get_email_service),
) -> AsyncUserService:
    return AsyncUserService(db, transactions, logger, email_service)


def get_user_profile_service(
    db: AsyncSession = Depends(get_async_db),
    logger: AppLogger = Depends(get_logger),
) -> AsyncUserProfileService:
    return AsyncUserProfileService(db, logger)


def get_follow_service(
    db: AsyncSession = Depends(get_async_db),
    transactions: TransactionCoordinator = Depends(get_transaction_coordinator),
    logger: AppLogger = Depends(get_logger),
) -> AsyncFollowService:
    return AsyncFollowService(db, transactions, logger)


def get_group_service(
    db: AsyncSession = Depends(get_async_db),
    transactions: TransactionCoordinator = Depends(get_transaction_coordinator),
    logger: AppLogger = Depends(get_logger),
) -> AsyncGroupService:
    return AsyncGroupService(db, transactions, logger)


def get_event_service(
    db: AsyncSession = Depends(get_async_db),
    transactions: TransactionCoordinator = Depends(get_transaction_coordinator),
    logger: AppLogger = Depends(get_logger),
) -> AsyncEventService:
    return AsyncEventService(db, transactions, logger)


def get_program_service(
    db: AsyncSession = Depends(get_async_db),
    transactions: TransactionCoordinator = Depends(get_transaction_coordinator),
    logger: AppLogger = Depends(get_logger),
) -> AsyncProgramService:
    return AsyncProgramService(db, transactions, logger)


def get_nutrition_service(
    db: AsyncSession = Depends(get_async_db),
    logger: AppLogger = Depends(get_logger),
) -> AsyncNutritionService:
    return AsyncNutritionService(db, logger)
