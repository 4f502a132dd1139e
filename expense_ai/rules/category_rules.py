"""
Keyword category classifier.

Offline fallback for category suggestion. Matching is a lowercase
substring test; the first category whose keyword list matches wins, so
list order is significant.
"""

from expense_ai.models.expense import ExpenseCategory


CATEGORY_KEYWORDS: tuple[tuple[ExpenseCategory, tuple[str, ...]], ...] = (
    (ExpenseCategory.FOOD, (
        "coffee", "food", "restaurant", "lunch", "dinner", "breakfast",
        "pizza", "burger", "meal", "snack", "grocery", "market",
    )),
    (ExpenseCategory.TRANSPORTATION, (
        "uber", "taxi", "bus", "train", "metro", "fuel", "gas", "petrol",
        "parking", "flight", "car",
    )),
    (ExpenseCategory.SHOPPING, (
        "shop", "buy", "purchase", "store", "mall", "online", "amazon",
        "flipkart", "clothes", "shoes",
    )),
    (ExpenseCategory.ENTERTAINMENT, (
        "movie", "cinema", "netflix", "spotify", "game", "concert", "show",
        "party", "club",
    )),
    (ExpenseCategory.BILLS, (
        "bill", "electricity", "water", "internet", "phone", "rent", "emi",
        "subscription", "insurance",
    )),
    (ExpenseCategory.HEALTHCARE, (
        "doctor", "hospital", "medicine", "pharmacy", "medical", "health",
        "clinic", "dentist",
    )),
)


def classify_category(description: str) -> ExpenseCategory:
    """Best keyword match for a description, or Other."""
    text = (description or "").strip().lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return category
    return ExpenseCategory.OTHER
