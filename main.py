from fastapi import Depends, FastAPI, HTTPException, Query, Request, Response
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from supabase import create_client, Client
import os
import logging
from dotenv import load_dotenv
from uuid import uuid4
from typing import Optional

# --- 1. SETUP & CONFIGURATION ---
load_dotenv()

def env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")

FAQ_ATOMIC_INCREMENT = env_flag("FAQ_ATOMIC_INCREMENT")
CORS_ALLOW_ORIGINS = [o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()]

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger("main")

app = FastAPI()

# --- 2. IMPORTS (Models & Flows) ---
from models import FAQCheckQuery, FAQCreate, FAQUpdate, ChatbotQuery, ChatbotResponseType, MatchResult
from flows.faq_match_flow import InvalidQuestionError, handle_check_faq, validate_question
from flows.chatbot_flow import handle_chatbot_message
from flows.utils import get_trouble_message
from services import faq_store

# --- 3. SUPABASE CLIENT ---
_supabase: Optional[Client] = None

def get_supabase() -> Optional[Client]:
    """Shared Supabase client, created on first use. None when credentials are missing."""
    global _supabase
    if _supabase is None:
        supabase_url = os.getenv("SUPABASE_URL")
        supabase_key = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
        if not supabase_url or not supabase_key:
            logger.error("SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY not set; store is unavailable.")
            return None
        try:
            _supabase = create_client(supabase_url, supabase_key)
        except Exception as e:
            logger.error(f"Could not create Supabase client: {e}")
            return None
    return _supabase

# --- 4. MIDDLEWARE, CORS & ERROR HANDLERS ---
QUESTION_PATHS = {"/check-faq", "/chat"}

@app.options("/check-faq")
async def check_faq_options():
    return Response(status_code=200)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Client-Info", "Apikey"],
)

@app.exception_handler(InvalidQuestionError)
async def invalid_question_handler(request: Request, exc: InvalidQuestionError):
    return JSONResponse(status_code=400, content={"error": str(exc)})

@app.exception_handler(RequestValidationError)
async def validation_handler(request: Request, exc: RequestValidationError):
    # Malformed bodies on the question endpoints are the same input error as a blank question.
    if request.url.path in QUESTION_PATHS:
        return JSONResponse(status_code=400, content={"error": "Question is required"})
    return await request_validation_exception_handler(request, exc)

# --- 5. ENDPOINTS ---

@app.get("/")
def read_root():
    return {"message": "Doubt desk FAQ API is running"}

@app.get("/health")
def health():
    return {"status": "ok", "version": os.getenv("RELEASE", "local"), "environment": os.getenv("ENVIRONMENT", "dev")}

@app.post("/check-faq")
def check_faq(query: FAQCheckQuery, supabase: Optional[Client] = Depends(get_supabase)):
    trace_id = str(uuid4())
    question = validate_question(query.question)
    print(f"[trace:{trace_id}] /check-faq question='{question}'", flush=True)

    if supabase is None:
        print(f"[trace:{trace_id}] [WARN] Store unavailable, returning no match.")
        return MatchResult(matched=False, faq=None).to_response()

    result = handle_check_faq(question, supabase, atomic_increment=FAQ_ATOMIC_INCREMENT)
    print(f"[trace:{trace_id}] matched={result.matched} newFaq={result.newly_created} similarity={result.similarity}")
    return result.to_response()

@app.post("/chat")
def chat(query: ChatbotQuery, supabase: Optional[Client] = Depends(get_supabase)):
    trace_id = str(uuid4())
    message = validate_question(query.message)
    print(f"[trace:{trace_id}] /chat message='{message}'", flush=True)

    if supabase is None:
        print(f"[trace:{trace_id}] [WARN] Store unavailable, asking user to post a doubt.")
        return {"response": get_trouble_message(), "faq": None, "meta": {"type": ChatbotResponseType.ERROR.value}}

    response_data = handle_chatbot_message(message, supabase, atomic_increment=FAQ_ATOMIC_INCREMENT)
    print(f"[trace:{trace_id}] chatbot response type={response_data['meta']['type']}")
    return response_data

@app.get("/faqs")
def get_faqs(supabase: Optional[Client] = Depends(get_supabase)):
    if supabase is None:
        raise HTTPException(status_code=503, detail="FAQ store is not configured.")
    try:
        return [faq.model_dump() for faq in faq_store.list_faqs(supabase)]
    except Exception as e:
        logging.error(f"Error listing FAQs: {e}")
        raise HTTPException(status_code=500, detail="Could not load FAQs.")

@app.get("/faqs/search")
def search_faqs(q: str = Query(..., min_length=1), supabase: Optional[Client] = Depends(get_supabase)):
    if supabase is None:
        raise HTTPException(status_code=503, detail="FAQ store is not configured.")
    try:
        return [faq.model_dump() for faq in faq_store.search_faqs(supabase, q)]
    except Exception as e:
        logging.error(f"Error searching FAQs for '{q}': {e}")
        raise HTTPException(status_code=500, detail="Could not search FAQs.")

@app.post("/faqs", status_code=201)
def create_faq(faq: FAQCreate, supabase: Optional[Client] = Depends(get_supabase)):
    if supabase is None:
        raise HTTPException(status_code=503, detail="FAQ store is not configured.")
    if not faq.question.strip() or not faq.answer.strip():
        raise HTTPException(status_code=400, detail="Question and answer are required.")
    try:
        created = faq_store.insert_faq(supabase, faq.question.strip(), faq.answer.strip())
    except Exception as e:
        logging.error(f"Error creating FAQ '{faq.question}': {e}")
        raise HTTPException(status_code=500, detail="Could not create FAQ.")
    if not created:
        raise HTTPException(status_code=500, detail="Could not create FAQ.")
    return created.model_dump()

@app.patch("/faqs/{faq_id}")
def edit_faq(faq_id: str, changes: FAQUpdate, supabase: Optional[Client] = Depends(get_supabase)):
    question = changes.question.strip() if changes.question is not None else None
    answer = changes.answer.strip() if changes.answer is not None else None
    if not question and not answer:
        raise HTTPException(status_code=400, detail="Nothing to update; send a question or an answer.")
    if supabase is None:
        raise HTTPException(status_code=503, detail="FAQ store is not configured.")
    try:
        updated = faq_store.update_faq(supabase, faq_id, question=question or None, answer=answer or None)
    except Exception as e:
        logging.error(f"Error updating FAQ {faq_id}: {e}")
        raise HTTPException(status_code=500, detail="Could not update FAQ.")
    if not updated:
        raise HTTPException(status_code=404, detail="FAQ not found.")
    return updated.model_dump()

@app.delete("/faqs/{faq_id}", status_code=204)
def remove_faq(faq_id: str, supabase: Optional[Client] = Depends(get_supabase)):
    if supabase is None:
        raise HTTPException(status_code=503, detail="FAQ store is not configured.")
    try:
        deleted = faq_store.delete_faq(supabase, faq_id)
    except Exception as e:
        logging.error(f"Error deleting FAQ {faq_id}: {e}")
        raise HTTPException(status_code=500, detail="Could not delete FAQ.")
    if not deleted:
        raise HTTPException(status_code=404, detail="FAQ not found.")
    return Response(status_code=204)
