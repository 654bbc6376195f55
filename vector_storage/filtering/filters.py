"""Include/exclude filtering of documents before scoring."""

from collections.abc import Iterable

from vector_storage.documents.models import Document, FilterCriteria, FilterOptions

_MISSING = object()


def matches_criteria(document: Document, criteria: FilterCriteria) -> bool:
    """Check whether a document satisfies a filter predicate.

    Every metadata pair must be equal on the document (AND), and when
    texts are given the document text must be one of them (OR).

    Args:
        document: Document to test.
        criteria: Predicate to evaluate.

    Returns:
        True if the document satisfies the predicate.
    """
    if criteria.metadata:
        for key, expected in criteria.metadata.items():
            if document.metadata.get(key, _MISSING) != expected:
                return False

    if criteria.text is not None:
        texts = [criteria.text] if isinstance(criteria.text, str) else criteria.text
        if document.text not in texts:
            return False

    return True


def filter_documents(
    documents: Iterable[Document],
    filter_options: FilterOptions | None = None,
) -> list[Document]:
    """Narrow documents to those passing the include and exclude filters.

    Args:
        documents: Candidate documents, in collection order.
        filter_options: Optional include/exclude predicates.

    Returns:
        Documents that satisfy ``include`` (if any) and do not satisfy
        ``exclude`` (if any), in their original order.
    """
    candidates = list(documents)
    if filter_options is None:
        return candidates

    if filter_options.include is not None:
        include = filter_options.include
        candidates = [doc for doc in candidates if matches_criteria(doc, include)]

    if filter_options.exclude is not None:
        exclude = filter_options.exclude
        candidates = [doc for doc in candidates if not matches_criteria(doc, exclude)]

    return candidates
