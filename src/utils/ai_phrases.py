"""Vocabulary commonly produced by chat assistants."""

AI_PHRASES: tuple[str, ...] = (
    # Generic assistant boilerplate
    "as an ai language model", "regenerate response", "language model",
    # Academic connectors
    "it is important to note", "in summary", "in conclusion", "moreover", "furthermore",
    "consequently", "on the other hand", "additionally", "however", "thus", "therefore",
    "significantly", "notably", "crucial to", "essential to", "paramount importance",
    "delves into", "underscore", "emphasize", "comprehensive", "landscape of", "realm of",
    "tapestry", "nuanced", "multifaceted", "pivotal role", "key aspects", "worth noting",
    "by and large", "in essence",
)


def find_ai_phrases(text: str, phrases: tuple[str, ...] = AI_PHRASES) -> list[str]:
    """Return the distinct phrases contained in ``text``, in list order.

    Matching is a case-insensitive substring test, so "thus" also matches
    inside longer words.
    """
    lower = text.lower()
    return [p for p in phrases if p.lower() in lower]
