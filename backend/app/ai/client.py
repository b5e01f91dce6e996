import logging
import os
import json
from typing import Optional, Dict, Any

import litellm

from app.config import settings
from app.exceptions import DependencyError

logger = logging.getLogger(__name__)

litellm.drop_params = True

# provider -> (model prefix, settings attribute holding the key, env var litellm reads)
PROVIDERS = {
    "openrouter": ("openrouter/", "openrouter_api_key", "OPENROUTER_API_KEY"),
    "ollama": ("ollama/", None, None),
    "anthropic": ("", "anthropic_api_key", "ANTHROPIC_API_KEY"),
    "openai": ("", "openai_api_key", "OPENAI_API_KEY"),
}


class AIClient:

    def __init__(self):
        self.provider = settings.ai_provider
        self.model = self._get_model_string()
        self._configure_provider()

    def _get_model_string(self) -> str:
        model = settings.ai_model
        prefix = PROVIDERS.get(self.provider, ("", None, None))[0]
        if prefix and not model.startswith(prefix):
            return f"{prefix}{model}"
        return model

    def _api_key(self) -> Optional[str]:
        key_attr = PROVIDERS.get(self.provider, ("", None, None))[1]
        return getattr(settings, key_attr) if key_attr else None

    def _configure_provider(self):
        if self.provider == "openrouter":
            litellm.api_key = settings.openrouter_api_key
            litellm.api_base = "https://openrouter.ai/api/v1"
        elif self.provider == "ollama":
            litellm.api_base = settings.ai_base_url or "http://localhost:11434"
        elif self._api_key():
            litellm.api_key = self._api_key()

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.1,
        max_tokens: int = 1000,
        json_mode: bool = False
    ) -> str:
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt}
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        env_var = PROVIDERS.get(self.provider, ("", None, None))[2]
        env_key = self._api_key() if env_var else None

        try:
            if env_key:
                os.environ[env_var] = env_key
            response = await litellm.acompletion(**kwargs)
            return response.choices[0].message.content
        except Exception as e:
            logger.error(f"AI completion error: {e}")
            raise DependencyError(f"AI provider {self.provider} failed") from e
        finally:
            if env_key:
                os.environ.pop(env_var, None)

    async def complete_json(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.1,
        max_tokens: int = 1000
    ) -> Dict[str, Any]:
        response = await self.complete(
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            temperature=temperature,
            max_tokens=max_tokens,
            json_mode=True
        )

        cleaned = response.strip()
        if cleaned.startswith("```json"):
            cleaned = cleaned[7:]
        if cleaned.startswith("```"):
            cleaned = cleaned[3:]
        if cleaned.endswith("```"):
            cleaned = cleaned[:-3]

        try:
            return json.loads(cleaned.strip())
        except json.JSONDecodeError as e:
            logger.error(f"AI returned invalid JSON: {e}")
            raise DependencyError("AI provider returned invalid JSON") from e


_ai_client: Optional[AIClient] = None

def get_ai_client() -> AIClient:
    global _ai_client
    if _ai_client is None:
        _ai_client = AIClient()
    return _ai_client
