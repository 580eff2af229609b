from __future__ import annotations

import csv
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

logger = logging.getLogger(__name__)

FALLBACK_CATEGORY = "Other"


@dataclass(frozen=True)
class ClassificationRule:
    keywords: tuple[str, ...]
    category: str
    is_expense: bool

    def __post_init__(self) -> None:
        cleaned = tuple(k.strip().lower() for k in self.keywords if k and k.strip())
        if not cleaned:
            raise ValueError("Classification rule needs at least one keyword")
        object.__setattr__(self, "keywords", cleaned)

    def matches(self, text: str) -> bool:
        return any(keyword in text for keyword in self.keywords)


@dataclass(frozen=True)
class Classification:
    category: str
    is_expense: bool
    matched: bool


# Income rules come first so "salary refund" style descriptions stay income.
# Refund precedes Investment: "refund" contains the keyword "fund".
DEFAULT_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule(("工资", "薪水", "salary", "payroll"), "Salary", False),
    ClassificationRule(("奖金", "bonus"), "Bonus", False),
    ClassificationRule(("退款", "报销", "refund", "reimbursement"), "Refund", False),
    ClassificationRule(("投资", "股票", "基金", "invest", "stock", "fund", "dividend"), "Investment", False),
    ClassificationRule(("利息", "interest"), "Interest", False),
    ClassificationRule(
        ("餐", "饭", "超市", "food", "restaurant", "meal", "supermarket", "grocery", "cafe"),
        "Food",
        True,
    ),
    ClassificationRule(
        ("交通", "公交", "地铁", "出租", "高铁", "transport", "bus", "subway", "taxi", "train", "metro"),
        "Transportation",
        True,
    ),
    ClassificationRule(("房租", "酒店", "宿舍", "house", "rent", "hotel"), "Housing", True),
    ClassificationRule(
        ("水费", "电费", "宽带", "话费", "utility", "water", "electricity", "gas", "internet", "phone"),
        "Utilities",
        True,
    ),
    ClassificationRule(
        ("娱乐", "游戏", "电影", "演唱会", "entertainment", "game", "movie", "concert", "ktv"),
        "Entertainment",
        True,
    ),
    ClassificationRule(("衣", "鞋", "cloth", "shoe", "bag", "wear", "fashion"), "Shopping", True),
    ClassificationRule(
        ("医", "药", "medical", "medicine", "hospital", "health", "pharmacy"), "Healthcare", True
    ),
    ClassificationRule(
        ("教育", "培训", "学费", "education", "school", "course", "book", "training", "tuition"),
        "Education",
        True,
    ),
)


class TransactionClassifier:
    """Suggest a category and direction for a free-text description.

    Rules are tried in order and the first keyword hit wins. Without a hit the
    fallback category is used and the direction follows the amount sign:
    with ``positive_is_expense`` a positive amount is an expense.
    """

    def __init__(
        self,
        rules: Sequence[ClassificationRule] = DEFAULT_RULES,
        fallback_category: str = FALLBACK_CATEGORY,
        positive_is_expense: bool = True,
    ) -> None:
        self._rules = tuple(rules)
        self._fallback_category = fallback_category
        self._positive_is_expense = positive_is_expense

    @property
    def rules(self) -> tuple[ClassificationRule, ...]:
        return self._rules

    def classify(self, description: str | None, amount: float = 0.0) -> Classification:
        text = (description or "").lower()
        if text:
            for rule in self._rules:
                if rule.matches(text):
                    return Classification(rule.category, rule.is_expense, True)
        positive = float(amount) > 0
        is_expense = positive if self._positive_is_expense else not positive
        return Classification(self._fallback_category, is_expense, False)

    def suggest_category(self, description: str | None) -> str:
        return self.classify(description).category

    def with_rules(self, extra: Iterable[ClassificationRule]) -> TransactionClassifier:
        """New classifier trying `extra` before the current rules."""
        return TransactionClassifier(
            (*extra, *self._rules),
            fallback_category=self._fallback_category,
            positive_is_expense=self._positive_is_expense,
        )


def load_rules(path: str) -> list[ClassificationRule]:
    """Read rules from a CSV with `keywords` (``|``-separated), `category`, `is_expense`."""
    rules: list[ClassificationRule] = []
    try:
        with open(path, newline="", encoding="utf-8") as f:
            reader = csv.DictReader(f)
            for index, row in enumerate(reader, start=2):
                try:
                    keywords = tuple(str(row.get("keywords") or "").split("|"))
                    category = str(row.get("category") or "").strip()
                    if not category:
                        raise ValueError("missing category")
                    flag = str(row.get("is_expense") or "true").strip().lower()
                    rules.append(
                        ClassificationRule(keywords, category, flag in {"1", "true", "yes"})
                    )
                except ValueError as exc:
                    logger.warning("Skipping invalid classifier rule at row %s: %s", index, exc)
    except FileNotFoundError:
        logger.warning("Classifier rules file not found: %s", path)
    return rules
