"""Chat completion client for the goal-creation assistant.

Wraps the OpenAI chat completions API with the four call shapes the
goal flows use: the next conversational reply, structured goal
extraction, a short acknowledgement of a guided answer, and candidate
answers for a guided question.
"""
import logging
from typing import Sequence

from openai import AsyncOpenAI, OpenAIError

from lifegoals.config import settings
from lifegoals.models.conversation import Message

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a supportive and knowledgeable AI assistant helping users create meaningful goals.

Key guidelines:
1. Keep responses short and focused (2-3 sentences max)
2. Ask one question at a time
3. Listen and acknowledge user input before proceeding
4. Provide specific suggestions only when asked
5. Keep the conversation natural and flowing

When discussing goals:
- Focus on understanding the user's specific situation first
- Ask about timeframes and priorities
- Consider both immediate and long-term needs
- Break down goals into actionable components
- Help identify potential obstacles and resources needed

Remember:
- Keep responses brief and conversational
- Don't overwhelm with information
- Let the user guide the conversation
- Ask clarifying questions when needed"""

EXTRACTION_PROMPT = """Extract comprehensive goal information from the conversation, including all actionable items. Structure the response to include:

1. Core Goal Information:
   - Title - Clear, concise goal name
   - Description - Detailed goal description
   - Domain - Life domain (financial, health, family, personal, community, home, work)
   - Target Date - Goal completion date (YYYY-MM-DD)

2. Implementation Details:
   - Milestones - Key checkpoints with target dates and frequencies
   - Metrics - Specific measurable indicators with targets and units
   - Weekly Actions - Regular tasks to maintain progress
   - Daily Habits - Recurring behaviors to develop
   - Routines - Structured sequences of actions with frequencies

3. Support Elements:
   - Resources Needed - Tools, materials, or support required
   - Potential Obstacles - Anticipated challenges
   - Success Criteria - How to measure achievement

Format as a JSON object with these nested fields. Only include what the conversation supports; leave out anything not yet discussed.

Example format:
{
  "title": "Family Financial Security Plan",
  "description": "Comprehensive financial plan covering retirement savings, college funds, and current lifestyle needs",
  "domain": "financial",
  "targetDate": "2025-12-31",
  "milestones": [
    {"title": "Emergency Fund Complete", "description": "Save 6 months of expenses", "targetDate": "2025-03-31", "frequency": "once"}
  ],
  "metrics": [
    {"name": "Monthly Savings Rate", "type": "number", "target": 2500, "unit": "USD", "frequency": "monthly"}
  ],
  "weeklyActions": ["Review spending vs budget"],
  "dailyHabits": ["Log all expenses"],
  "routines": [
    {"name": "Monthly Financial Review", "description": "Review of financial status", "frequency": "monthly", "steps": ["Review all account balances", "Update budget tracking"]}
  ],
  "resources": ["Budgeting software"],
  "obstacles": ["Unexpected expenses"],
  "successCriteria": ["Emergency fund reaches target"]
}"""

ACKNOWLEDGE_FALLBACK = "I understand. Let's move on to the next step."
SUGGESTION_FALLBACK = "Could not generate suggestions at this time"


def render_transcript(messages: Sequence[Message]) -> str:
    """Render messages as ``role: content`` lines."""
    return "\n".join(f"{m.role}: {m.content}" for m in messages)


class CompletionClient:
    """Async client for the assistant's completion calls."""

    def __init__(self, client: AsyncOpenAI, model: str):
        """Initialize with an OpenAI client and the chat model to use."""
        self.client = client
        self.model = model

    async def reply(self, messages: Sequence[Message]) -> str:
        """
        Get the assistant's next conversational turn.

        Raises:
            OpenAIError: If the API call fails
        """
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                *({"role": m.role, "content": m.content} for m in messages),
            ],
            temperature=0.7,
            max_tokens=150,
        )
        return response.choices[0].message.content or ""

    async def extract(self, messages: Sequence[Message]) -> str:
        """
        Ask for the goal fields supported by the conversation so far.

        Returns:
            The raw response text, expected to be a JSON object

        Raises:
            OpenAIError: If the API call fails
        """
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": EXTRACTION_PROMPT},
                {
                    "role": "user",
                    "content": (
                        "Extract comprehensive goal information from this conversation:\n\n"
                        + render_transcript(messages)
                    ),
                },
            ],
            temperature=0.1,
            max_tokens=1000,
            response_format={"type": "json_object"},
        )
        return response.choices[0].message.content or ""

    async def acknowledge(
        self,
        answer: str,
        question: str,
        messages: Sequence[Message],
    ) -> str:
        """Briefly acknowledge a guided-flow answer. Never raises."""
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {
                        "role": "system",
                        "content": (
                            f"{SYSTEM_PROMPT}\n\nProvide a brief, natural response that "
                            "acknowledges the user's input and asks one relevant follow-up question."
                        ),
                    },
                    {
                        "role": "user",
                        "content": (
                            f"Context:\n{render_transcript(messages)}\n\n"
                            f"Current question: {question}\nUser response: {answer}\n\n"
                            "Provide a brief, conversational response."
                        ),
                    },
                ],
                temperature=0.7,
                max_tokens=100,
            )
        except OpenAIError:
            logger.exception("Error getting acknowledgement")
            return ACKNOWLEDGE_FALLBACK
        return response.choices[0].message.content or "Let's continue with the next step."

    async def suggest(
        self,
        question: str,
        previous: Sequence[tuple[str, str]],
        count: int = 3,
    ) -> list[str]:
        """
        Generate candidate answers for a guided question. Never raises.

        Args:
            question: The question currently being asked
            previous: (question, answer) pairs answered so far
            count: Number of candidates to request
        """
        context = "\n\n".join(f"{q}\nAnswer: {a}" for q, a in previous)
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {
                        "role": "system",
                        "content": (
                            f"{SYSTEM_PROMPT}\n\nProvide one brief, specific suggestion "
                            "based on the context."
                        ),
                    },
                    {
                        "role": "user",
                        "content": (
                            f"Context:\n{context}\n\nCurrent question: {question}\n\n"
                            "Provide a specific suggestion that builds on the previous responses."
                        ),
                    },
                ],
                temperature=0.8,
                max_tokens=100,
                n=count,
            )
        except OpenAIError:
            logger.exception("Error generating suggestions")
            return [SUGGESTION_FALLBACK]
        return [
            (choice.message.content or "").strip() or "No suggestion available"
            for choice in response.choices
        ]


_client: CompletionClient | None = None


async def get_completion_client() -> CompletionClient:
    """Dependency to get the shared completion client."""
    global _client
    if _client is None:
        _client = CompletionClient(
            AsyncOpenAI(api_key=settings.openai_api_key),
            settings.openai_model,
        )
    return _client
