from pydantic import BaseModel, Field
from enum import Enum
from typing import Optional, Union

class FAQ(BaseModel):
    id: Union[str, int]
    question: str
    answer: str
    ask_count: int = Field(default=0, ge=0)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

class SimilarityLogEntry(BaseModel):
    doubt_question: str
    matched_faq_id: Optional[Union[str, int]] = None
    created_at: Optional[str] = None

class MatchResult(BaseModel):
    matched: bool = False
    faq: Optional[FAQ] = None
    similarity: Optional[float] = None
    newly_created: bool = False

    def to_response(self) -> dict:
        """Wire shape of /check-faq: similarity only for scored matches, newFaq only for promotions."""
        body = {"matched": self.matched, "faq": self.faq.model_dump() if self.faq else None}
        if self.similarity is not None:
            body["similarity"] = self.similarity
        if self.newly_created:
            body["newFaq"] = True
        return body

class FAQCheckQuery(BaseModel):
    question: Optional[str] = Field(default=None)

class FAQCreate(BaseModel):
    question: str = Field(min_length=1)
    answer: str = Field(min_length=1)

class FAQUpdate(BaseModel):
    question: Optional[str] = Field(default=None, min_length=1)
    answer: Optional[str] = Field(default=None, min_length=1)

class ChatbotQuery(BaseModel):
    message: Optional[str] = Field(default=None)

class ChatbotResponseType(str, Enum):
    FAQ_MATCH = "faq_match"
    FAQ_SUGGESTIONS = "faq_suggestions"
    POST_DOUBT = "post_doubt"
    ERROR = "error"
