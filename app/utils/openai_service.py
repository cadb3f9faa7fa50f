import logging
from typing import Optional

from openai import OpenAI
import tiktoken
from tenacity import retry, wait_exponential, stop_after_attempt

logger = logging.getLogger(__name__)


class OpenAIService:
    """Service for handling OpenAI API interactions for reply generation"""

    def __init__(
        self,
        api_key: str,
        llm_model: str = "gpt-4o-mini",
        client: Optional[OpenAI] = None
    ):
        """
        Initialize OpenAI service

        Args:
            api_key: OpenAI API key
            llm_model: Model for text generation
            client: Pre-built client (tests pass a stub)
        """
        self.client = client or OpenAI(api_key=api_key)
        self.llm_model = llm_model
        self._encoding = None
        logger.info(f"OpenAI service initialized - LLM: {llm_model}")

    @property
    def encoding(self):
        if self._encoding is None:
            self._encoding = tiktoken.get_encoding("o200k_base")
        return self._encoding

    def count_tokens(self, text: str) -> int:
        """
        Count tokens in text

        Args:
            text: Text to count tokens for

        Returns:
            Number of tokens
        """
        try:
            tokens = self.encoding.encode(text)
            return len(tokens)
        except Exception as e:
            logger.error(f"Error counting tokens: {str(e)}")
            return len(text.split())  # Fallback to word count

    @retry(wait=wait_exponential(multiplier=1, min=2, max=10), stop=stop_after_attempt(3), reraise=True)
    def generate_text(
        self,
        prompt: str,
        system_message: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 1000
    ) -> str:
        """
        Generate text with the configured chat model

        Args:
            prompt: User prompt
            system_message: System message for context
            temperature: Temperature for generation
            max_tokens: Maximum tokens to generate

        Returns:
            Generated text

        Raises:
            ValueError: If the model returned no content
        """
        try:
            messages = []

            if system_message:
                messages.append({"role": "system", "content": system_message})

            messages.append({"role": "user", "content": prompt})

            response = self.client.chat.completions.create(
                model=self.llm_model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens
            )

            generated_text = response.choices[0].message.content
            if not generated_text:
                raise ValueError("Model returned an empty response")

            logger.info(f"Generated text with {response.usage.completion_tokens} tokens")
            return generated_text.strip()
        except Exception as e:
            logger.error(f"Error generating text: {str(e)}")
            raise


_openai_service: Optional[OpenAIService] = None


def get_openai_service() -> OpenAIService:
    """Get or create the OpenAI service singleton"""
    global _openai_service
    if _openai_service is None:
        from app.config import settings
        _openai_service = OpenAIService(
            api_key=settings.OPENAI_API_KEY,
            llm_model=settings.OPENAI_LLM_MODEL
        )
    return _openai_service
