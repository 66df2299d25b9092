"""OpenAI-compatible client for narrative insights over school data."""

import json
import logging

from openai import OpenAI

from smartschool.config import Config
from smartschool.insights.prompts import (
    ENROLLMENT_INSIGHTS_PROMPT,
    EXAM_ANALYSIS_PROMPT,
    SYSTEM_PROMPT,
    TRANSFER_LETTER_PROMPT,
)

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "AI Insights unavailable: endpoint not configured."
ERROR_MESSAGE = "Error fetching insights from AI."


class InsightClient:
    """Turns a JSON-serializable summary plus an instruction into prose.

    Never raises: an unconfigured endpoint or a failed request yields a
    placeholder string so callers can render the result directly.
    """

    def __init__(self, client: OpenAI | None = None):
        if client is None and Config.LM_STUDIO_BASE_URL:
            client = OpenAI(
                base_url=Config.LM_STUDIO_BASE_URL,
                api_key=Config.LM_STUDIO_API_KEY,
                timeout=Config.LM_STUDIO_TIMEOUT,
            )
        self.client = client

    def generate(self, summary, instruction: str,
                 temperature: float = 0.7) -> str:
        if self.client is None:
            return UNAVAILABLE_MESSAGE

        content = f"{instruction}\n\n{json.dumps(summary, default=str)}"
        try:
            response = self.client.chat.completions.create(
                model=Config.LM_STUDIO_MODEL,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": content},
                ],
                temperature=temperature,
            )
        except Exception as e:
            logger.error(f"Insight generation failed: {e}")
            return ERROR_MESSAGE

        return response.choices[0].message.content or ""

    def enrollment_insights(self, students: list[dict]) -> str:
        return self.generate(students, ENROLLMENT_INSIGHTS_PROMPT)

    def exam_performance_analysis(self, exam_data) -> str:
        return self.generate(exam_data, EXAM_ANALYSIS_PROMPT, temperature=0.8)

    def transfer_letter(self, student_name: str, student_class: str) -> str:
        return self.generate(
            {"studentName": student_name, "studentClass": student_class},
            TRANSFER_LETTER_PROMPT,
        )

    def is_connected(self) -> bool:
        """Check if the endpoint is reachable."""
        if self.client is None:
            return False
        try:
            self.client.models.list()
            return True
        except Exception:
            return False
