"""Client side search and grouping over the cached documents."""

from shared.models.document import Document

ALL_CATEGORIES = "all"


def filter_documents(documents: list[Document], search_term: str = "", category: str = ALL_CATEGORIES) -> list[Document]:
    """Filter documents by a search term and a category.

    Args:
        documents (list[Document]): The cached documents, in display order.
        search_term (str): Case-insensitive substring matched against title, content and author.
            The content of locked documents is not searched.
        category (str): A category name, or "all".

    Returns:
        list[Document]: The matching documents in their original order.
    """
    term = (search_term or "").strip().lower()
    selected = category or ALL_CATEGORIES
    matches = []
    for document in documents:
        if selected != ALL_CATEGORIES and document.category != selected:
            continue
        if term and not any(term in (value or "").lower() for value in _searchable_fields(document)):
            continue
        matches.append(document)
    return matches


def _searchable_fields(document: Document) -> tuple[str, ...]:
    # locked content must not be confirmable by guessing search terms
    if document.is_locked:
        return (document.title, document.author)
    return (document.title, document.content, document.author)


def group_by_category(documents: list[Document]) -> dict[str, list[Document]]:
    """Group documents by category name, categories in order of first appearance."""
    groups: dict[str, list[Document]] = {}
    for document in documents:
        groups.setdefault(document.category, []).append(document)
    return groups
