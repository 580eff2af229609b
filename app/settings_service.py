from __future__ import annotations

import logging
from collections.abc import Iterable

from domain.records import SavingGoal, SpecialDate
from domain.settings import Settings
from storage import JsonStorage
from storage.codecs import SettingsCodec

logger = logging.getLogger(__name__)


class SettingsService:
    """Owns the single `Settings` instance and its JSON file."""

    def __init__(self, settings_path: str, storage: JsonStorage | None = None) -> None:
        self._settings_path = settings_path
        self._storage = storage or JsonStorage(SettingsCodec())
        self._settings: Settings | None = None
        self._loaded_cleanly = False

    @property
    def settings_path(self) -> str:
        return self._settings_path

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self.load()
        return self._settings

    @property
    def loaded_cleanly(self) -> bool:
        return self._loaded_cleanly

    def load(self) -> bool:
        """Read settings once; defaults are written on first run.

        Returns False when an existing file could not be read, in which case
        defaults are used and the broken file is left untouched.
        """
        if not self._storage.exists(self._settings_path):
            self._settings = Settings()
            self._loaded_cleanly = self.save()
            logger.info("Settings file created with defaults: %s", self._settings_path)
            return self._loaded_cleanly
        loaded = self._storage.load_item(self._settings_path)
        if loaded is None:
            logger.warning("Settings file unreadable, using defaults: %s", self._settings_path)
            self._settings = Settings()
            self._loaded_cleanly = False
            return False
        self._settings = loaded
        self._loaded_cleanly = True
        return True

    def save(self) -> bool:
        ok = self._storage.save_item(self.settings, self._settings_path)
        if not ok:
            logger.warning("Failed to persist settings to %s", self._settings_path)
        return ok

    def reset_to_default(self) -> bool:
        self.settings.reset_to_default()
        return self.save()

    def add_category(self, name: str, is_expense: bool = True) -> bool:
        if not (name or "").strip():
            return False
        if is_expense:
            added = self.settings.add_expense_category(name)
        else:
            added = self.settings.add_income_category(name)
        return added and self.save()

    def remove_category(self, name: str, is_expense: bool = True) -> bool:
        if not (name or "").strip():
            return False
        if is_expense:
            removed = self.settings.remove_expense_category(name)
        else:
            removed = self.settings.remove_income_category(name)
        return removed and self.save()

    def set_monthly_budget(self, amount: float) -> bool:
        if amount < 0:
            return False
        self.settings.set_monthly_budget(amount)
        return self.save()

    def set_budget_start_day(self, day: int) -> bool:
        if not 1 <= day <= 28:
            return False
        self.settings.set_budget_start_day(day)
        return self.save()

    def set_month_start_day(self, day: int) -> bool:
        if not 1 <= day <= 31:
            return False
        self.settings.set_month_start_day(day)
        return self.save()

    def set_storage_backend(self, backend: str) -> bool:
        try:
            self.settings.set_storage_backend(backend)
        except ValueError as exc:
            logger.warning("%s", exc)
            return False
        return self.save()

    def refresh_snapshots(
        self, special_dates: Iterable[SpecialDate], saving_goals: Iterable[SavingGoal]
    ) -> bool:
        """Overwrite the display copies from the owning services."""
        self.settings.special_dates = list(special_dates)
        self.settings.saving_goals = list(saving_goals)
        return self.save()
