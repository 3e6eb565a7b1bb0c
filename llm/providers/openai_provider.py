"""
OpenAI LLM Provider.
"""

import logging
from typing import List, Dict, Any, Optional

from openai import OpenAI

logger = logging.getLogger(__name__)


class OpenAIProvider:
    """
    OpenAI chat-completions provider.

    Used for JSON-mode sentiment analysis and for the tool-calling
    recommendation agent.
    """

    DEFAULT_MODEL = "gpt-4o-mini"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_id: str = DEFAULT_MODEL,
        temperature: float = 0.2,
        client: Optional[Any] = None,
    ):
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model_id: Model ID
            temperature: Generation temperature
            client: Pre-built client (tests inject a fake here)
        """
        if client is not None:
            self._client = client
        else:
            self._client = OpenAI(api_key=api_key) if api_key else OpenAI()

        self.model_id = model_id
        self.temperature = temperature

        logger.info(f"OpenAI provider initialized: {model_id}")

    def generate_json(
        self,
        prompt: str,
        system: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> Optional[str]:
        """
        Generate a JSON-object response.

        Args:
            prompt: User prompt
            system: System prompt
            temperature: Override temperature

        Returns:
            Raw message content (None if the model returned nothing)
        """
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        try:
            response = self._client.chat.completions.create(
                model=self.model_id,
                messages=messages,
                response_format={"type": "json_object"},
                temperature=temperature if temperature is not None else self.temperature,
            )
        except Exception as e:
            logger.error(f"OpenAI JSON generation failed: {e}")
            raise

        if not response.choices:
            return None
        return response.choices[0].message.content

    def complete_with_tools(
        self,
        messages: List[Dict[str, Any]],
        tools: List[Dict[str, Any]],
    ) -> Any:
        """
        Run one tool-calling completion round.

        Args:
            messages: Conversation so far, including tool results
            tools: Tool definitions in OpenAI function format

        Returns:
            The first choice's message (may carry ``tool_calls``), or None
        """
        try:
            response = self._client.chat.completions.create(
                model=self.model_id,
                messages=messages,
                tools=tools,
                tool_choice="auto",
            )
        except Exception as e:
            logger.error(f"OpenAI tool completion failed: {e}")
            raise

        if not response.choices:
            return None
        return response.choices[0].message
