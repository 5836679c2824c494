from shared.models.document import Document
from services.archive.DocumentFilter import ALL_CATEGORIES, filter_documents, group_by_category


def _documents() -> list[Document]:
    return [
        Document(id="1", title="Quarterly Report", content="Revenue grew", category="Business", author="Ada"),
        Document(id="2", title="Style guide", content="Use the REPORT template", category="Design", author="Bob"),
        Document(id="3", title="Runbook", content="Restart the worker", category="Operations", author="Carol Reporter"),
        Document(id="4", title="Pitch deck", content="Slides", category="Business", author="Bob"),
    ]


def test_empty_filter_returns_everything_in_order():
    assert [d.id for d in filter_documents(_documents())] == ["1", "2", "3", "4"]


def test_search_matches_title_content_and_author_case_insensitively():
    assert [d.id for d in filter_documents(_documents(), search_term="report")] == ["1", "2", "3"]


def test_search_term_is_trimmed():
    assert [d.id for d in filter_documents(_documents(), search_term="  slides ")] == ["4"]


def test_category_filter():
    assert [d.id for d in filter_documents(_documents(), category="Business")] == ["1", "4"]


def test_search_and_category_combine():
    assert [d.id for d in filter_documents(_documents(), search_term="bob", category="Business")] == ["4"]


def test_all_categories_sentinel():
    assert len(filter_documents(_documents(), category=ALL_CATEGORIES)) == 4
    assert filter_documents(_documents(), category="Legal") == []


def test_group_by_category_keeps_first_appearance_order():
    groups = group_by_category(_documents())
    assert list(groups) == ["Business", "Design", "Operations"]
    assert [d.id for d in groups["Business"]] == ["1", "4"]


def test_locked_content_is_not_searched():
    documents = [
        Document(id="1", title="Vault", content="pin 4711", category="Personal", author="Ada", is_locked=True, password="pw"),
        Document(id="2", title="Notes", content="pin 4711", category="Personal", author="Ada"),
    ]
    assert [d.id for d in filter_documents(documents, search_term="4711")] == ["2"]
    assert [d.id for d in filter_documents(documents, search_term="vault")] == ["1"]
    assert [d.id for d in filter_documents(documents, search_term="ada")] == ["1", "2"]
