from typing import Dict, Any, Iterator, List, Literal, Optional, Tuple
import json
import logging

from pydantic import BaseModel, ValidationError

from typeahead.search_models import SearchResult, normalize_query

logger = logging.getLogger(__name__)

TYPE_LABELS = {
    "film": "Film",
    "television": "Television",
    "video_game": "Video game",
}


class CatalogItem(BaseModel):
    """One row of the seed catalogue"""
    id: int
    title: str
    year: Optional[int] = None
    type: Literal["film", "television", "video_game"]
    role: Optional[str] = None

    class Config:
        extra = "ignore"


def load_jsonl(file_path: str) -> Iterator[Dict[str, Any]]:
    """Load JSONL file line by line, skipping blank and invalid lines"""
    with open(file_path, 'r', encoding='utf-8', errors='replace') as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError:
                logger.warning(
                    f"Skipping invalid JSON on line {line_no} of {file_path}")
                continue


def sanitize_item(doc: Dict[str, Any], item_id: int) -> Optional[CatalogItem]:
    try:
        title = str(doc.get('title') or '').strip()[:255]
        if not title:
            return None
        role = doc.get('role')
        return CatalogItem(
            id=item_id,
            title=title,
            year=doc.get('year'),
            type=str(doc.get('type') or '').strip(),
            role=str(role).strip() if role else None,
        )
    except ValidationError as e:
        logger.warning(
            f"Skipping seed item {doc.get('title', 'N/A')!r}: {str(e)}")
        return None


def load_catalog(file_path: str) -> List[CatalogItem]:
    """Read the seed file, numbering valid items from 1 like a SERIAL column"""
    items: List[CatalogItem] = []
    for doc in load_jsonl(file_path):
        if not isinstance(doc, dict):
            logger.warning(f"Skipping non-object line in {file_path}")
            continue
        item = sanitize_item(doc, len(items) + 1)
        if item:
            items.append(item)
    logger.info(f"Loaded {len(items)} catalogue items from {file_path}")
    return items


def describe_item(item: CatalogItem) -> str:
    parts = [TYPE_LABELS[item.type]]
    if item.year:
        parts[0] = f"{parts[0]} ({item.year})"
    if item.role:
        parts.append(item.role)
    return " - ".join(parts)


def to_search_result(item: CatalogItem) -> SearchResult:
    return SearchResult(
        id=str(item.id), title=item.title, description=describe_item(item))


def _match_weight(item: CatalogItem, terms: List[str]) -> int:
    """2 if every term is in the title, 1 if every term is in title or role, else 0"""
    title = item.title.casefold()
    role = (item.role or "").casefold()
    if all(term in title for term in terms):
        return 2
    if all(term in title or term in role for term in terms):
        return 1
    return 0


def search_catalog(
    items: List[CatalogItem], query: str, limit: int = 10, page: int = 1
) -> Tuple[List[CatalogItem], int]:
    """
    Search the catalogue
    Returns: (items on the requested page, total_count)
    """
    terms = normalize_query(query).split()
    if not terms:
        return [], 0

    scored = []
    for item in items:
        weight = _match_weight(item, terms)
        if weight:
            scored.append((weight, item))

    scored.sort(key=lambda pair: (-pair[0], -(pair[1].year or 0), pair[1].title))
    from_idx = (page - 1) * limit
    hits = [item for _, item in scored[from_idx:from_idx + limit]]
    return hits, len(scored)
