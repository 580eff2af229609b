from __future__ import annotations

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass

from app.assistant import AssistantService
from app.budget_planning import BudgetPlanner
from app.financial_cycle import FinancialCycleService
from app.record_service import (
    BudgetService,
    SavingGoalService,
    SpecialDateService,
    TransactionService,
)
from app.services import OllamaClient
from app.settings_service import SettingsService
from backup import backup_if_due
from config import (
    BUDGETS_FILE,
    DATA_DIR,
    SAVING_GOALS_FILE,
    SETTINGS_PATH,
    SPECIAL_DATES_FILE,
    TRANSACTIONS_FILE,
)
from domain.classifier import TransactionClassifier
from infrastructure.repositories import FileRecordRepository
from storage import RecordCodec, create_storage
from storage.codecs import BudgetCodec, SavingGoalCodec, SpecialDateCodec, TransactionCodec

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    settings: SettingsService
    transactions: TransactionService
    special_dates: SpecialDateService
    budgets: BudgetService
    saving_goals: SavingGoalService
    planner: BudgetPlanner
    cycle: FinancialCycleService
    assistant: AssistantService

    def collection_paths(self) -> list[str]:
        return [
            self.transactions.repository.file_path,
            self.special_dates.repository.file_path,
            self.budgets.repository.file_path,
            self.saving_goals.repository.file_path,
        ]

    def sync_settings_snapshots(self) -> bool:
        return self.settings.refresh_snapshots(
            self.special_dates.get_all(), self.saving_goals.get_all()
        )


def _resolve_data_dir(settings_path: str, configured: str) -> str:
    if os.path.isabs(configured):
        return configured
    if configured:
        return os.path.join(os.path.dirname(os.path.abspath(settings_path)), configured)
    return DATA_DIR


def _repository(backend: str, codec: RecordCodec, data_dir: str, name: str) -> FileRecordRepository:
    path = os.path.join(data_dir, f"{name}.{backend}")
    return FileRecordRepository(create_storage(backend, codec), path)


def bootstrap_services(
    settings_path: str | None = None,
    generate: Callable[[str], str] | None = None,
    classifier: TransactionClassifier | None = None,
) -> ServiceContainer:
    """Load settings and wire every service on the configured backend."""
    settings_service = SettingsService(settings_path or SETTINGS_PATH)
    if not settings_service.load():
        logger.warning("Settings could not be loaded cleanly; running with defaults")
    settings = settings_service.settings
    backend = settings.storage_backend
    data_dir = _resolve_data_dir(settings_service.settings_path, settings.data_storage_path)
    logger.info("Storage selected: %s under %s", backend.upper(), data_dir)

    transactions = TransactionService(
        _repository(backend, TransactionCodec(), data_dir, TRANSACTIONS_FILE), classifier
    )
    special_dates = SpecialDateService(
        _repository(backend, SpecialDateCodec(), data_dir, SPECIAL_DATES_FILE)
    )
    budgets = BudgetService(_repository(backend, BudgetCodec(), data_dir, BUDGETS_FILE))
    saving_goals = SavingGoalService(
        _repository(backend, SavingGoalCodec(), data_dir, SAVING_GOALS_FILE)
    )
    planner = BudgetPlanner(transactions, special_dates, settings_service)
    container = ServiceContainer(
        settings=settings_service,
        transactions=transactions,
        special_dates=special_dates,
        budgets=budgets,
        saving_goals=saving_goals,
        planner=planner,
        cycle=FinancialCycleService(transactions, saving_goals, settings_service, planner),
        assistant=AssistantService(transactions, settings_service, generate or OllamaClient()),
    )

    if settings.auto_backup_enabled:
        for path in container.collection_paths():
            backup_if_due(path, settings.backup_frequency_days)
    return container
