import logging
from dataclasses import dataclass, field
from typing import List, Optional

from docqa.core.config import settings
from docqa.models.data_models import ConversationTurn, RetrievedContent
from docqa.services.knowledge.llm_interface import ChatModel, generate_reply
from docqa.services.knowledge.search import Retriever
from docqa.services.memory import ConversationSession

logger = logging.getLogger(__name__)

CONTEXT_SEPARATOR = "\n\n"

@dataclass
class Answer:
    text: str
    grounded: bool
    sources: List[str] = field(default_factory=list)

def format_context(contents: List[RetrievedContent]) -> str:
    return CONTEXT_SEPARATOR.join(c.segment.text for c in contents)

def build_prompt(user_message: str, context: str) -> str:
    return f"{user_message}{CONTEXT_SEPARATOR}Context: {context}"

class AnswerComposer:
    """
    Answers one message of a conversation.

    With no confident retrieval the fixed fallback text is returned and the model is
    not called. Otherwise the retrieved passages are appended to the message, the
    model answers with the conversation window as history, and the exchange is
    remembered. Retrieval and generation failures propagate and leave the
    conversation as it was.
    """

    def __init__(self, retriever: Retriever, chat_model: ChatModel,
                 fallback_message: str = settings.FALLBACK_MESSAGE,
                 system_instruction: str = settings.SYSTEM_INSTRUCTION,
                 generation_timeout: Optional[float] = None,
                 remember_fallback: bool = False):
        self.retriever = retriever
        self.chat_model = chat_model
        self.fallback_message = fallback_message
        self.system_instruction = system_instruction
        self.generation_timeout = generation_timeout
        self.remember_fallback = remember_fallback

    async def answer(self, user_message: str, session: ConversationSession) -> Answer:
        async with session.lock:
            contents = await self.retriever.retrieve(user_message)

            if not contents:
                logger.info("[Assistant] No relevant context found, returning fallback message.")
                if self.remember_fallback:
                    session.extend([
                        ConversationTurn(role="user", text=user_message),
                        ConversationTurn(role="assistant", text=self.fallback_message),
                    ])
                return Answer(text=self.fallback_message, grounded=False)

            prompt = build_prompt(user_message, format_context(contents))
            reply = await generate_reply(self.chat_model, prompt, session.turns(),
                                         self.system_instruction, self.generation_timeout)

            session.extend([
                ConversationTurn(role="user", text=user_message),
                ConversationTurn(role="assistant", text=reply),
            ])
            sources = sorted({c.segment.source for c in contents})
            logger.info("[Assistant] Answered from %d passages (%s).", len(contents), ", ".join(sources))
            return Answer(text=reply, grounded=True, sources=sources)
