from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent

# Relative data paths in settings resolve against the settings file's folder.
SETTINGS_PATH = str(PROJECT_ROOT / "settings.json")
DATA_DIR = str(PROJECT_ROOT / "data")

TRANSACTIONS_FILE = "transactions"
SPECIAL_DATES_FILE = "special_dates"
BUDGETS_FILE = "budgets"
SAVING_GOALS_FILE = "saving_goals"

OLLAMA_URL = "http://localhost:11434/api/generate"
OLLAMA_MODEL = "llama3"
ASSISTANT_TIMEOUT_SECONDS = 60.0
