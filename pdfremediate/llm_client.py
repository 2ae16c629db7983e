"""
LLM Client abstraction layer supporting multiple providers (OpenAI, Gemini, etc.)
"""
import os
import logging
import time
import asyncio
from openai import OpenAI, AsyncOpenAI
from dotenv import load_dotenv

from .errors import ClassifierError

load_dotenv()

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


class LLMClient:
    """Unified LLM client supporting multiple providers"""

    def __init__(self, provider=None, api_key=None, model=None):
        """
        Initialize LLM client

        Args:
            provider: 'openai' or 'gemini'. If None, auto-detect from env vars
            api_key: API key for the provider. If None, read from env
            model: Default model to use
        """
        self.provider = provider or self._detect_provider()
        self.api_key = api_key or self._get_api_key()
        self.default_model = model
        self.logger = logging.getLogger(__name__)

        if self.provider == 'gemini':
            self.client = OpenAI(api_key=self.api_key, base_url=GEMINI_BASE_URL)
            self.async_client = AsyncOpenAI(api_key=self.api_key, base_url=GEMINI_BASE_URL)
        else:  # openai
            self.client = OpenAI(api_key=self.api_key)
            self.async_client = AsyncOpenAI(api_key=self.api_key)

    def _detect_provider(self):
        """Auto-detect provider from environment variables"""
        if os.getenv("GEMINI_API_KEY"):
            return 'gemini'
        return 'openai'

    def _get_api_key(self):
        """Get API key based on provider"""
        if self.provider == 'gemini':
            key = os.getenv("GEMINI_API_KEY")
            if not key:
                raise ClassifierError("GEMINI_API_KEY not found in environment variables")
            return key
        key = os.getenv("CHATGPT_API_KEY") or os.getenv("OPENAI_API_KEY")
        if not key:
            raise ClassifierError("CHATGPT_API_KEY or OPENAI_API_KEY not found in environment variables")
        return key

    @staticmethod
    def _build_messages(prompt, system_prompt=None, chat_history=None):
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        if chat_history:
            messages.extend(chat_history)
        messages.append({"role": "user", "content": prompt})
        return messages

    def chat_completion(self, model, prompt, system_prompt=None, chat_history=None, temperature=0, max_retries=10):
        """
        Synchronous chat completion

        Args:
            model: Model name to use
            prompt: User prompt
            system_prompt: Optional system instructions
            chat_history: Optional list of previous messages
            temperature: Sampling temperature
            max_retries: Maximum number of retry attempts

        Returns:
            Response content string, or "Error" once retries are exhausted
        """
        messages = self._build_messages(prompt, system_prompt, chat_history)
        model = model or self.default_model

        for i in range(max_retries):
            try:
                response = self.client.chat.completions.create(
                    model=model,
                    messages=messages,
                    temperature=temperature,
                )
                return response.choices[0].message.content
            except Exception as e:
                self.logger.error(f"Error: {e}")
                if i < max_retries - 1:
                    self.logger.warning(f"Retrying ({i + 1}/{max_retries})")
                    time.sleep(1)
                else:
                    self.logger.error(f'Max retries reached for prompt: {prompt[:100]}...')
                    return "Error"

    async def chat_completion_async(self, model, prompt, system_prompt=None, temperature=0, max_retries=10):
        """
        Asynchronous chat completion

        Args:
            model: Model name to use
            prompt: User prompt
            system_prompt: Optional system instructions
            temperature: Sampling temperature
            max_retries: Maximum number of retry attempts

        Returns:
            Response content string, or "Error" once retries are exhausted
        """
        messages = self._build_messages(prompt, system_prompt)
        model = model or self.default_model

        for i in range(max_retries):
            try:
                response = await self.async_client.chat.completions.create(
                    model=model,
                    messages=messages,
                    temperature=temperature,
                )
                return response.choices[0].message.content
            except Exception as e:
                self.logger.error(f"Error: {e}")
                if i < max_retries - 1:
                    self.logger.warning(f"Retrying ({i + 1}/{max_retries})")
                    await asyncio.sleep(1)
                else:
                    self.logger.error(f'Max retries reached for prompt: {prompt[:100]}...')
                    return "Error"

    def describe_image(self, model, prompt, image_b64, system_prompt=None, max_retries=3):
        """
        Ask a vision-capable model about a PNG image.

        Args:
            model: Vision model name
            prompt: Instruction for the model
            image_b64: Base64-encoded PNG bytes
            system_prompt: Optional system instructions
            max_retries: Maximum number of retry attempts

        Returns:
            Response content string

        Raises:
            RuntimeError: if every attempt fails
        """
        content = [
            {"type": "text", "text": prompt},
            {"type": "image_url", "image_url": {"url": f"data:image/png;base64,{image_b64}"}},
        ]
        messages = self._build_messages(content, system_prompt)

        last_error = None
        for attempt in range(max_retries):
            try:
                response = self.client.chat.completions.create(
                    model=model or self.default_model,
                    messages=messages,
                    temperature=0,
                )
                return (response.choices[0].message.content or "").strip()
            except Exception as e:
                last_error = e
                wait_time = 2 ** attempt
                self.logger.warning(f"Vision request failed (attempt {attempt + 1}/{max_retries}): {e}")
                if attempt < max_retries - 1:
                    time.sleep(wait_time)
        raise RuntimeError(f"Vision request failed after {max_retries} attempts: {last_error}")


# Global client instance
_global_client = None


def get_llm_client(provider=None, api_key=None, model=None):
    """
    Get or create global LLM client instance

    Args:
        provider: 'openai' or 'gemini'. If None, auto-detect
        api_key: API key. If None, read from env
        model: Default model

    Returns:
        LLMClient instance
    """
    global _global_client
    if _global_client is None:
        _global_client = LLMClient(provider=provider, api_key=api_key, model=model)
    return _global_client


def set_llm_provider(provider, api_key=None):
    """
    Set the LLM provider globally

    Args:
        provider: 'openai' or 'gemini'
        api_key: Optional API key (will use env var if not provided)
    """
    global _global_client
    _global_client = LLMClient(provider=provider, api_key=api_key)
