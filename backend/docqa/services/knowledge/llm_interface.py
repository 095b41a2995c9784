import google.generativeai as genai
from typing import List, Optional, Protocol, Sequence
import asyncio
import logging

from docqa.core.errors import GenerationFailed
from docqa.models.data_models import ConversationTurn

logger = logging.getLogger(__name__)

class ChatModel(Protocol):
    """Generation collaborator: blocking, called from an executor thread."""

    def generate(self, prompt: str, history: Sequence[ConversationTurn], system_instruction: str) -> str: ...

def to_gemini_contents(prompt: str, history: Sequence[ConversationTurn]) -> List[dict]:
    """Gemini names the assistant role 'model'."""
    contents = [{"role": "user" if turn.role == "user" else "model", "parts": [turn.text]} for turn in history]
    contents.append({"role": "user", "parts": [prompt]})
    return contents

class GeminiChatModel:
    def __init__(self, api_key: Optional[str], model_name: str, temperature: float = 0.2):
        self.api_key = api_key
        self.model_name = model_name
        self.temperature = temperature
        self._configured = False
        if not api_key: logger.warning("[LLM Service] GEMINI_API_KEY is not set. LLM calls will fail.")

    def _configure(self) -> None:
        if self._configured: return
        if not self.api_key: raise RuntimeError("GEMINI_API_KEY is not set")
        genai.configure(api_key=self.api_key)
        self._configured = True
        logger.info("[LLM Service] Gemini client OK for model: %s", self.model_name)

    def generate(self, prompt: str, history: Sequence[ConversationTurn], system_instruction: str) -> str:
        self._configure()
        model = genai.GenerativeModel(self.model_name, system_instruction=system_instruction)
        logger.info("[LLM Service] Calling Gemini API (Model: %s), prompt length %d chars, %d history turns",
                    self.model_name, len(prompt), len(history))
        response = model.generate_content(
            to_gemini_contents(prompt, history),
            generation_config=genai.types.GenerationConfig(temperature=self.temperature),
        )
        if getattr(response, "prompt_feedback", None) and response.prompt_feedback.block_reason:
            raise ValueError(f"Blocked: {response.prompt_feedback.block_reason}")
        if not response.candidates or not response.candidates[0].content.parts:
            reason = response.candidates[0].finish_reason if response.candidates else "Unknown"
            raise ValueError(f"No valid candidate. Reason: {reason}")
        answer = response.text.strip()
        if not answer: raise ValueError("LLM returned empty answer.")
        return answer

async def generate_reply(model: ChatModel, prompt: str, history: Sequence[ConversationTurn],
                         system_instruction: str, timeout: Optional[float] = None) -> str:
    """Runs the blocking model call off the event loop; every failure becomes GenerationFailed."""
    loop = asyncio.get_running_loop()
    try:
        return await asyncio.wait_for(
            loop.run_in_executor(None, lambda: model.generate(prompt, list(history), system_instruction)),
            timeout=timeout,
        )
    except asyncio.TimeoutError as e:
        raise GenerationFailed(f"Generation model timed out after {timeout}s") from e
    except Exception as e:
        raise GenerationFailed(f"Generation model failed: {e}") from e
