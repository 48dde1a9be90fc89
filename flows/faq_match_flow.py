# flows/faq_match_flow.py

import logging
from supabase import Client

from models import FAQ, MatchResult
from flows.fuzzy_utils import calculate_similarity, SIMILARITY_THRESHOLD
from services import faq_store

# A question seen this many times before (plus the current ask) becomes an FAQ.
PROMOTION_MIN_PRIOR_OCCURRENCES = 2
PROMOTED_FAQ_ASK_COUNT = 3
PROMOTED_FAQ_ANSWER = "This question is frequently asked. A teacher will provide a detailed answer soon."

logger = logging.getLogger("faq_match_flow")


class InvalidQuestionError(ValueError):
    """Raised when the incoming question is missing or blank."""


def validate_question(question: str | None) -> str:
    if not question or not question.strip():
        raise InvalidQuestionError("Question is required")
    return question


def find_best_match(question: str, faqs: list[FAQ]) -> tuple[FAQ | None, float]:
    """Highest-scoring FAQ strictly above the threshold; on ties the first one seen wins."""
    best_match = None
    best_similarity = 0.0
    for faq in faqs:
        similarity = calculate_similarity(question, faq.question)
        if similarity > best_similarity and similarity > SIMILARITY_THRESHOLD:
            best_similarity = similarity
            best_match = faq
    return best_match, best_similarity


def handle_check_faq(question: str, supabase_client: Client, atomic_increment: bool = False) -> MatchResult:
    """
    Decides whether an incoming question duplicates an existing FAQ.

    Args:
        question: The raw question text as typed by the student.
        supabase_client: The initialized Supabase client instance.
        atomic_increment: Bump ask_count through the database function instead of read-then-write.

    Returns:
        A MatchResult. Store failures degrade to a plain no-match result.

    Raises:
        InvalidQuestionError: if the question is missing or blank.
    """
    validate_question(question)

    try:
        return _match_or_promote(question, supabase_client, atomic_increment)
    except Exception as e:
        logger.error(f"[FAQ_MATCH] Store error while matching '{question}': {e}")
        return MatchResult(matched=False, faq=None)


def _match_or_promote(question: str, supabase_client: Client, atomic_increment: bool) -> MatchResult:
    # --- Step 1: Score the question against every FAQ ---
    faqs = faq_store.fetch_all_faqs(supabase_client)
    best_match, best_similarity = find_best_match(question, faqs)

    if best_match:
        logger.info(f"[FAQ_MATCH] '{question}' matched FAQ {best_match.id} with score {best_similarity:.3f}")
        faq_store.insert_similarity_log(supabase_client, question, matched_faq_id=best_match.id)
        faq_store.update_ask_count(supabase_client, best_match, atomic=atomic_increment)
        return MatchResult(matched=True, faq=best_match, similarity=best_similarity)

    # --- Step 2: Promote questions that keep coming back unanswered ---
    try:
        prior_logs = faq_store.find_logs_containing(supabase_client, question)
    except Exception as e:
        # Skip promotion but still record this ask below.
        logger.error(f"[FAQ_MATCH] Log lookup failed for '{question}': {e}")
        prior_logs = []
    if len(prior_logs) >= PROMOTION_MIN_PRIOR_OCCURRENCES:
        new_faq = faq_store.insert_faq(
            supabase_client,
            question,
            PROMOTED_FAQ_ANSWER,
            ask_count=PROMOTED_FAQ_ASK_COUNT,
        )
        if new_faq:
            logger.info(f"[FAQ_MATCH] Promoted '{question}' to FAQ {new_faq.id} after {len(prior_logs)} prior asks")
            return MatchResult(matched=True, faq=new_faq, newly_created=True)

    # --- Step 3: Nothing matched; remember the question for future promotion ---
    logger.info(f"[FAQ_MATCH] No match for '{question}' ({len(faqs)} FAQs, {len(prior_logs)} prior asks)")
    faq_store.insert_similarity_log(supabase_client, question, matched_faq_id=None)
    return MatchResult(matched=False, faq=None)
