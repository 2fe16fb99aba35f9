# catalog_api/normalize.py
import re
from typing import List, Optional
from urllib.parse import unquote

_CTRL = ''.join(map(chr, list(range(0, 32)) + [127]))
_CTRL_TABLE = str.maketrans('', '', _CTRL)
_RE_WS = re.compile(r"\s+")
_RE_TOKEN = re.compile(r"\w+", re.UNICODE)


def clean_text(s: Optional[str]) -> str:
    """Collapse whitespace and drop zero-width characters."""
    if not s:
        return ""
    s = s.replace('\u200b', '').replace('\ufeff', '')
    return _RE_WS.sub(" ", s).strip()


def tokenize(query: Optional[str]) -> List[str]:
    return _RE_TOKEN.findall(clean_text(query).lower())


def fts_match_expression(query: Optional[str]) -> str:
    """
    Turn free text into an FTS5 MATCH expression:
      - every word token is quoted (no operator injection)
      - tokens are ANDed implicitly
      - the last token is a prefix match, so "caneca az" finds "Caneca Azul"
    Returns "" when the query holds no tokens.
    """
    tokens = tokenize(query)
    if not tokens:
        return ""
    quoted = [f'"{t}"' for t in tokens]
    quoted[-1] += "*"
    return " ".join(quoted)


def like_pattern(query: str) -> str:
    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def parse_vector_id(raw) -> int:
    """
    Vector ids are product ids stored as strings. Strip whitespace, quotes,
    encoded newlines and control chars before converting.
    Raises ValueError when nothing numeric is left.
    """
    if raw is None:
        raise ValueError("empty vector id")
    s = re.sub(r'(?:%0A|%0D)+$', '', str(raw).strip(), flags=re.IGNORECASE)
    s = unquote(s)
    s = s.replace('\u200b', '').replace('\ufeff', '')
    s = s.translate(_CTRL_TABLE).strip().strip('"').strip("'").strip()
    return int(s)


def embedding_text(name: Optional[str], category: Optional[str], description: Optional[str]) -> str:
    """Text embedded for a catalog item; the query side embeds raw user text."""
    name = clean_text(name)
    return (
        f"Nome do produto: {name}. "
        f"Categoria: {clean_text(category)}. "
        f"Descrição: {clean_text(description)}. "
        f"Sobre o produto: {name}."
    )
