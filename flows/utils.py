from models import FAQ

RELATED_FAQ_LIMIT = 3


def format_related_faqs(faqs: list[FAQ]) -> str:
    listing = "\n\n".join(
        f"{idx}. {faq.question}\n   {faq.answer}" for idx, faq in enumerate(faqs[:RELATED_FAQ_LIMIT], start=1)
    )
    return f"I found some related FAQs that might help:\n\n{listing}"


def get_post_doubt_prompt() -> str:
    return "I couldn't find an exact match for your question. You can post it as a doubt, and a teacher will answer it!"


def get_trouble_message() -> str:
    return ("I'm having trouble processing your question right now. "
            "Please try again later or post your doubt directly.")
