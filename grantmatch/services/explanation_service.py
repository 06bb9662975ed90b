"""
Match Explanation Service
=========================
Optional LLM polish on top of the rule-based explanation generator.

The rule-based explanation is always computed first; an OpenAI chat model is
then asked to rewrite it as natural, formal Korean without changing any facts.
Whenever the model is unavailable or returns something unusable the rule-based
explanation is returned unchanged.
"""

import json
import logging
from collections import OrderedDict
from datetime import datetime
from typing import Optional

from dotenv import load_dotenv
from openai import OpenAI, OpenAIError

from ..config import MatchingSettings, get_settings
from ..matching_engine.data_models import FundingProgram, MatchExplanation, MatchScore, Organization
from ..matching_engine.dates import days_until
from ..matching_engine.explainer import ExplanationGenerator

load_dotenv()

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an assistant for Korean government R&D funding consultants. "
    "Rewrite match explanations in polite, formal Korean. Never add, remove or change facts, "
    "numbers, dates or warnings. Respond with a JSON object only."
)


class ExplanationService:
    """
    Explanation service with LLM rewriting and rule-based fallback.

    Successful rewrites are memoized per organization, program, score and days to
    deadline, keeping at most `cache_size` entries (least recently used evicted first).
    """

    def __init__(self, client: Optional[OpenAI] = None, settings: Optional[MatchingSettings] = None,
                 generator: Optional[ExplanationGenerator] = None, cache_size: int = 256):
        """
        Initialize the service.

        Args:
            client: OpenAI client; built from OPENAI_API_KEY when omitted
            settings: Matching settings (model name, API key)
            generator: Rule-based explanation generator
            cache_size: Maximum number of memoized rewrites
        """
        self.settings = settings or get_settings()
        self.model = self.settings.openai_model
        self.generator = generator or ExplanationGenerator()

        if client is None and self.settings.openai_api_key:
            client = OpenAI(api_key=self.settings.openai_api_key)
        self.client = client
        if self.client is None:
            logger.info("OPENAI_API_KEY not set; using rule-based explanations only")

        self.cache_size = cache_size
        self._cache: "OrderedDict[tuple, MatchExplanation]" = OrderedDict()

    def _build_prompt(self, draft: MatchExplanation, organization: Organization,
                      program: FundingProgram) -> str:
        return f"""다음은 연구개발 지원사업 매칭 결과에 대한 설명 초안입니다.

지원 기관: {organization.name or organization.id}
지원사업: {program.title}

초안 (JSON):
{json.dumps(draft.to_dict(), ensure_ascii=False, indent=2)}

초안의 사실, 수치, 날짜, 경고를 그대로 유지하면서 문장을 자연스럽게 다듬어 주세요.
반드시 다음 키를 가진 JSON 객체로만 응답하세요:
"summary" (문자열), "reasons", "warnings", "recommendations" (문자열 배열).
"""

    def _rewrite(self, draft: MatchExplanation, organization: Organization,
                 program: FundingProgram) -> MatchExplanation:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": self._build_prompt(draft, organization, program)},
            ],
            temperature=0.2,
            response_format={"type": "json_object"},
        )
        result = json.loads(response.choices[0].message.content)
        if not isinstance(result, dict) or not isinstance(result.get("summary"), str) \
                or not result["summary"].strip():
            raise ValueError("response is missing a summary")
        for key in ("reasons", "warnings", "recommendations"):
            value = result.get(key, [])
            if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
                raise ValueError(f"response field '{key}' is not a list of strings")
        return MatchExplanation.from_dict(result)

    def explain(self, match: MatchScore, organization: Organization, program: FundingProgram,
                now: Optional[datetime] = None) -> MatchExplanation:
        """
        Explain a match, rewritten by the LLM when available.

        Args:
            match: Scored match
            organization: Applicant profile
            program: Matched program
            now: Reference time for deadline wording

        Returns:
            MatchExplanation (rule-based when the LLM is unavailable or fails)
        """
        key = (organization.id, program.id, match.score, days_until(program.deadline, now))
        if key in self._cache:
            self._cache.move_to_end(key)
            return self._cache[key]

        draft = self.generator.generate(match, organization, program, now)
        if self.client is None:
            return draft

        try:
            explanation = self._rewrite(draft, organization, program)
        except (OpenAIError, ValueError, TypeError, AttributeError, IndexError) as e:
            logger.warning("LLM explanation failed for %s/%s, using rule-based text: %s",
                           organization.id, program.id, e)
            return draft

        # Failures are not cached
        self._cache[key] = explanation
        if len(self._cache) > self.cache_size:
            self._cache.popitem(last=False)
        return explanation

    def clear_cache(self) -> None:
        self._cache.clear()
