import logging
from supabase import Client

from models import ChatbotResponseType
from flows.faq_match_flow import handle_check_faq
from flows.utils import RELATED_FAQ_LIMIT, format_related_faqs, get_post_doubt_prompt, get_trouble_message
from services import faq_store

logger = logging.getLogger("chatbot_flow")


def handle_chatbot_message(message: str, supabase_client: Client, atomic_increment: bool = False) -> dict:
    """
    Answers a chatbot message from the FAQ list.

    Tries the similarity matcher first, then a plain keyword search over FAQ
    questions, and finally suggests posting the question as a doubt.
    InvalidQuestionError from the matcher is left to the caller.
    """
    result = handle_check_faq(message, supabase_client, atomic_increment=atomic_increment)
    if result.matched and result.faq:
        return {
            "response": result.faq.answer,
            "faq": result.faq.model_dump(),
            "meta": {
                "type": ChatbotResponseType.FAQ_MATCH.value,
                "similarity": result.similarity,
                "newFaq": result.newly_created,
            },
        }

    try:
        related = faq_store.search_faqs(supabase_client, message, limit=RELATED_FAQ_LIMIT)
    except Exception as e:
        logger.error(f"[CHATBOT] Keyword search failed for '{message}': {e}")
        return {"response": get_trouble_message(), "faq": None, "meta": {"type": ChatbotResponseType.ERROR.value}}

    if related:
        return {
            "response": format_related_faqs(related),
            "faq": None,
            "meta": {
                "type": ChatbotResponseType.FAQ_SUGGESTIONS.value,
                "faq_ids": [faq.id for faq in related],
            },
        }

    return {"response": get_post_doubt_prompt(), "faq": None, "meta": {"type": ChatbotResponseType.POST_DOUBT.value}}
