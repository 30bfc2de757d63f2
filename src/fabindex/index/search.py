"""Term search over an archived index."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from fabindex.index.storage import IndexReader
from fabindex.utils.text import tokenize


@dataclass(slots=True)
class SearchResult:
    document_id: int
    score: float
    matched_fields: List[str]
    fields: Dict[str, List[str]]


class Searcher:
    """High-level API to query an index built by a crawl.

    Tokenized fields match on query terms; untokenized ("string") fields
    match only when the whole query equals the stored value, ignoring case.
    """

    def __init__(self, reader: IndexReader) -> None:
        self.reader = reader

    def search(
        self,
        query: str,
        *,
        fields: Optional[Sequence[str]] = None,
        top_k: int = 10,
    ) -> List[SearchResult]:
        terms = tokenize(query)
        if not terms:
            return []
        whole_query = query.strip().lower()
        schema = self.reader.schema()
        searched = set(fields) if fields else set(schema.fields)

        results: List[SearchResult] = []
        for document in self.reader.documents():
            score = 0.0
            matched: List[str] = []
            for name, values in sorted(document["fields"].items()):
                schema_field = schema.get(name)
                if name not in searched or schema_field is None:
                    continue
                field_score = 0.0
                for value in values:
                    if schema_field.tokenized:
                        tokens = tokenize(value)
                        field_score += sum(tokens.count(term) for term in terms)
                    elif value.strip().lower() == whole_query:
                        field_score += len(terms)
                if field_score:
                    score += field_score
                    matched.append(name)
            if score:
                results.append(
                    SearchResult(
                        document_id=document["id"],
                        score=score,
                        matched_fields=matched,
                        fields=document["fields"],
                    )
                )

        results.sort(key=lambda result: (-result.score, result.document_id))
        return results[:top_k]
