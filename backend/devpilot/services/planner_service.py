"""
Assistente di pianificazione progetti (LLM via OpenRouter)
Progetto: DevPilot (Gestionale Freelance)

Trasforma una breve idea di progetto in un piano strutturato in JSON.
Il client OpenAI punta all'endpoint compatibile di OpenRouter.
Nessun retry: un errore del modello o una risposta non JSON vengono
propagati al chiamante.
"""

import json
import logging
from typing import Any, Optional

from openai import AsyncOpenAI, OpenAIError

from devpilot.core.config import Settings, settings as default_settings
from devpilot.core.exceptions import AppException

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are DevPilot Assistant. When given a short project idea, produce a structured "
    "project plan for a software developer. Output strict JSON only with fields: "
    "project_name, summary, estimated_weeks, phases. Each phase must have: name, "
    "description, tasks (array of {title, description, estimate_hours, priority}). "
    "Keep JSON valid."
)


class PlannerError(AppException):
    """Generazione del piano non riuscita."""
    status_code = 500
    error_code = "PLAN_GENERATION_FAILED"
    default_detail = "Failed to generate project plan"


class PlannerNotConfiguredError(PlannerError):
    error_code = "PLANNER_NOT_CONFIGURED"
    default_detail = "OpenRouter API key not configured"


def parse_plan(content: Optional[str]) -> dict[str, Any]:
    """
    Interpreta la risposta del modello come JSON.

    La forma del piano non viene validata oltre il parse.

    Raises:
        PlannerError: Risposta vuota o non JSON
    """
    if not content:
        raise PlannerError("No response from the language model")
    try:
        plan = json.loads(content)
    except json.JSONDecodeError as e:
        logger.warning("Risposta del modello non JSON: %s", e)
        raise PlannerError("Failed to parse model response as JSON")
    if not isinstance(plan, dict):
        raise PlannerError("Failed to parse model response as JSON")
    return plan


class PlannerService:
    """Genera piani di progetto tramite chat completion."""

    def __init__(
        self,
        app_settings: Optional[Settings] = None,
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        self.settings = app_settings or default_settings
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.settings.openrouter_api_key:
                raise PlannerNotConfiguredError()
            self._client = AsyncOpenAI(
                api_key=self.settings.openrouter_api_key,
                base_url=self.settings.llm_base_url,
                default_headers={"HTTP-Referer": self.settings.public_app_url},
            )
        return self._client

    async def generate_plan(self, idea: str) -> dict[str, Any]:
        """
        Genera il piano per un'idea.

        Args:
            idea: Descrizione breve del progetto

        Returns:
            dict: project_name, summary, estimated_weeks, phases

        Raises:
            PlannerNotConfiguredError: Chiave OpenRouter mancante
            PlannerError: Errore del modello o risposta non JSON
        """
        client = self.client

        try:
            completion = await client.chat.completions.create(
                model=self.settings.llm_model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": idea},
                ],
                temperature=self.settings.llm_temperature,
            )
        except OpenAIError as e:
            logger.error("Errore chiamata LLM: %s", e)
            raise PlannerError()

        content = completion.choices[0].message.content if completion.choices else None
        plan = parse_plan(content)
        logger.info("Piano generato: %s (%s fasi)", plan.get("project_name"), len(plan.get("phases") or []))
        return plan


def get_planner_service() -> PlannerService:
    """Dependency FastAPI per l'assistente."""
    return PlannerService()
