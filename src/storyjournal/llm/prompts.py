"""Story analysis prompts."""

from storyjournal.llm.base import Message

# Roughly 2000 tokens of story, leaves room for the reply
MAX_STORY_LENGTH = 8000
TRUNCATION_MARKER = "..."

UNCLEAR = "Unclear"

SYSTEM_PROMPT = (
    "You are a helpful storytelling coach who extracts key story elements. "
    "Always respond with valid JSON."
)

STORY_ANALYSIS_PROMPT = """You are a storytelling coach. Analyze this story and extract the key elements.

Rules:
- Do not invent facts. Only extract what's explicitly in the story.
- If a field is unclear or missing, respond with "Unclear" (not an empty string).
- Keep language conversational, not academic.
- Be concise - each field should be 1-2 sentences max.
- Return valid JSON only, no markdown.

Story:
{STORY_TEXT}

Respond with JSON only:
{
  "characters": ["name1", "name2"],
  "hook": "...",
  "beginning": "...",
  "middle": "...",
  "end": "...",
  "outcome": "...",
  "lesson_or_takeaway": "...",
  "turning_point": "..."
}"""


def truncate_story(story_text: str) -> str:
    """Cut the story to MAX_STORY_LENGTH characters, marking the cut."""
    if len(story_text) > MAX_STORY_LENGTH:
        return story_text[:MAX_STORY_LENGTH] + TRUNCATION_MARKER
    return story_text


def format_story_prompt(story_text: str) -> str:
    """Build the analysis prompt for a story."""
    # Plain replace: the template holds literal JSON braces
    return STORY_ANALYSIS_PROMPT.replace("{STORY_TEXT}", truncate_story(story_text))


def build_messages(story_text: str) -> list[Message]:
    """Build the chat messages for one analysis request."""
    return [
        Message(role="system", content=SYSTEM_PROMPT),
        Message(role="user", content=format_story_prompt(story_text)),
    ]
