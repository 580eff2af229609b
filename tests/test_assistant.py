import threading
from datetime import date

import pytest

from app.assistant import (
    CLOSING_INSTRUCTION,
    DISABLED_MESSAGE,
    SCOPE_ALL,
    AssistantService,
    build_snapshot,
    compose_prompt,
)
from app.record_service import TransactionService
from app.settings_service import SettingsService
from domain.records import Transaction
from infrastructure.repositories import FileRecordRepository
from storage import create_storage
from storage.codecs import TransactionCodec


class RecordingGenerator:
    def __init__(self, answer: str = "Spend less on food."):
        self.answer = answer
        self.prompts: list[str] = []

    def __call__(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.answer


@pytest.fixture
def services(tmp_path):
    transactions = TransactionService(
        FileRecordRepository(
            create_storage("csv", TransactionCodec()), str(tmp_path / "transactions.csv")
        )
    )
    transactions.add(Transaction(date="2024-05-01", amount=3000.0, category="Salary", is_expense=False))
    transactions.add(Transaction(date="2024-05-03", amount=50.0, category="Food"))
    transactions.add(Transaction(date="2024-04-20", amount=70.0, category="Housing"))
    settings = SettingsService(str(tmp_path / "settings.json"))
    return transactions, settings


def test_compose_prompt_contains_brief_question_and_instruction() -> None:
    snapshot = build_snapshot(
        [
            Transaction(date="2024-05-01", amount=3000.0, category="Salary", is_expense=False),
            Transaction(date="2024-05-03", amount=50.0, category="Food"),
        ],
        "Current month",
    )
    prompt = compose_prompt(snapshot, "  How am I doing?  ")
    assert "- Total income: 3000.00" in prompt
    assert "- Total expense: 50.00" in prompt
    assert "- Net balance: 2950.00" in prompt
    assert "- Food: 50.00 (100.0%)" in prompt
    assert "User question: How am I doing?\n" in prompt
    assert prompt.endswith(CLOSING_INSTRUCTION)


def test_ask_uses_current_financial_month(services) -> None:
    transactions, settings = services
    generate = RecordingGenerator()
    assistant = AssistantService(transactions, settings, generate, timeout=5)
    answer = assistant.ask("Where does my money go?", today=date(2024, 5, 20))
    assert answer == "Spend less on food."
    prompt = generate.prompts[0]
    assert "Current month (2024-05-01 to 2024-05-31)" in prompt
    assert "Food: 50.00 (100.0%)" in prompt
    assert "Housing" not in prompt
    assert "User question: Where does my money go?" in prompt


def test_ask_all_time_scope(services) -> None:
    transactions, settings = services
    generate = RecordingGenerator()
    assistant = AssistantService(transactions, settings, generate, timeout=5)
    assistant.ask("Overall?", scope=SCOPE_ALL)
    assert "All-time totals" in generate.prompts[0]
    assert "Housing: 70.00" in generate.prompts[0]


def test_disabled_assistant_never_calls_backend(services) -> None:
    transactions, settings = services
    settings.settings.ai_assistance_enabled = False
    generate = RecordingGenerator()
    assistant = AssistantService(transactions, settings, generate, timeout=5)
    assert assistant.ask("Hi") == DISABLED_MESSAGE
    assert generate.prompts == []


def test_backend_failure_becomes_message(services) -> None:
    transactions, settings = services

    def broken(prompt: str) -> str:
        raise ConnectionError("connection refused")

    assistant = AssistantService(transactions, settings, broken, timeout=5)
    answer = assistant.ask("Hi", today=date(2024, 5, 20))
    assert "connection refused" in answer


def test_slow_backend_times_out(services) -> None:
    transactions, settings = services
    release = threading.Event()

    def slow(prompt: str) -> str:
        release.wait(5)
        return "too late"

    assistant = AssistantService(transactions, settings, slow, timeout=0.1)
    try:
        answer = assistant.ask("Hi", today=date(2024, 5, 20))
    finally:
        release.set()
    assert "did not answer" in answer


def test_unknown_scope_is_reported(services) -> None:
    transactions, settings = services
    generate = RecordingGenerator()
    assistant = AssistantService(transactions, settings, generate, timeout=5)
    assert "Unknown assistant scope" in assistant.ask("Hi", scope="week")
    assert generate.prompts == []


def test_monthly_analysis_and_budget_prompts(services) -> None:
    transactions, settings = services
    generate = RecordingGenerator()
    assistant = AssistantService(transactions, settings, generate, timeout=5)
    assistant.monthly_analysis(today=date(2024, 5, 20))
    assistant.next_month_budget(today=date(2024, 5, 20))
    analysis, budget = generate.prompts
    assert "Income by category:" in analysis
    assert "- Salary: 3000.00 (100.0%)" in analysis
    assert "Current monthly budget: 5000.00" in budget
    assert "2024-06" in budget


def test_analyze_transaction_uses_classifier(services) -> None:
    transactions, settings = services
    assistant = AssistantService(transactions, settings, RecordingGenerator(), timeout=5)
    result = assistant.analyze_transaction("Taxi home", 30)
    assert result.category == "Transportation"
    assert result.is_expense


def test_missing_question_still_prompts(services) -> None:
    transactions, settings = services
    generate = RecordingGenerator()
    assistant = AssistantService(transactions, settings, generate, timeout=5)
    assert assistant.ask(None, scope=SCOPE_ALL) == "Spend less on food."
    assert "User question: \n" in generate.prompts[0]
