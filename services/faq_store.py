import logging
from datetime import datetime, timezone
from typing import List, Optional
from supabase import Client

from models import FAQ, SimilarityLogEntry

FAQ_TABLE = "faqs"
SIMILARITY_LOG_TABLE = "doubt_similarity_log"
INCREMENT_ASK_COUNT_FN = "increment_faq_ask_count"

logger = logging.getLogger("faq_store")

# Store calls raise on failure; callers own the fallback policy.

def escape_like(text: str) -> str:
    """
    Build an ilike pattern body that matches at least every row containing ``text``.

    ``%``, ``_`` and ``\\`` are escaped. PostgREST turns every ``*`` into ``%``
    and has no escape for it, so ``*`` becomes the one-character wildcard ``_``;
    callers re-check candidates with ``contains_text``.
    """
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return escaped.replace("*", "_")

def contains_text(haystack: Optional[str], needle: str) -> bool:
    return needle.lower() in (haystack or "").lower()

def fetch_all_faqs(supabase: Client) -> List[FAQ]:
    response = supabase.table(FAQ_TABLE).select("*").execute()
    return [FAQ(**row) for row in (response.data or [])]

def update_ask_count(supabase: Client, faq: FAQ, atomic: bool = False) -> None:
    if atomic:
        supabase.rpc(INCREMENT_ASK_COUNT_FN, {"faq_id": faq.id}).execute()
        return
    # Read-then-write: concurrent matches on the same FAQ can lose an increment.
    supabase.table(FAQ_TABLE).update({"ask_count": faq.ask_count + 1}).eq("id", faq.id).execute()

def insert_faq(supabase: Client, question: str, answer: str, ask_count: int = 0) -> Optional[FAQ]:
    response = supabase.table(FAQ_TABLE).insert({
        "question": question,
        "answer": answer,
        "ask_count": ask_count,
    }).execute()
    if not response.data:
        logger.warning(f"FAQ insert returned no row for question: '{question}'")
        return None
    return FAQ(**response.data[0])

def update_faq(supabase: Client, faq_id, question: Optional[str] = None, answer: Optional[str] = None) -> Optional[FAQ]:
    """Edit an FAQ's text. Returns None when no FAQ has ``faq_id``."""
    changes = {"updated_at": datetime.now(timezone.utc).isoformat()}
    if question is not None:
        changes["question"] = question
    if answer is not None:
        changes["answer"] = answer
    response = supabase.table(FAQ_TABLE).update(changes).eq("id", faq_id).execute()
    if not response.data:
        return None
    return FAQ(**response.data[0])

def delete_faq(supabase: Client, faq_id) -> bool:
    response = supabase.table(FAQ_TABLE).delete().eq("id", faq_id).execute()
    return bool(response.data)

def insert_similarity_log(supabase: Client, question: str, matched_faq_id=None) -> None:
    supabase.table(SIMILARITY_LOG_TABLE).insert({
        "doubt_question": question,
        "matched_faq_id": matched_faq_id,
    }).execute()

def find_logs_containing(supabase: Client, text: str) -> List[SimilarityLogEntry]:
    response = supabase.table(SIMILARITY_LOG_TABLE) \
        .select("doubt_question") \
        .ilike("doubt_question", f"%{escape_like(text)}%") \
        .execute()
    return [
        SimilarityLogEntry(**row) for row in (response.data or [])
        if contains_text(row.get("doubt_question"), text)
    ]

def list_faqs(supabase: Client) -> List[FAQ]:
    response = supabase.table(FAQ_TABLE).select("*").order("ask_count", desc=True).execute()
    return [FAQ(**row) for row in (response.data or [])]

def search_faqs(supabase: Client, query: str, limit: Optional[int] = None) -> List[FAQ]:
    response = supabase.table(FAQ_TABLE) \
        .select("*") \
        .ilike("question", f"%{escape_like(query)}%") \
        .order("ask_count", desc=True) \
        .execute()
    faqs = [FAQ(**row) for row in (response.data or []) if contains_text(row.get("question"), query)]
    return faqs[:limit] if limit else faqs
