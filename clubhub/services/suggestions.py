"""Club suggestions and leader ideas.

Both operations try the generative model first and fall back to a
deterministic local answer on any failure, so callers always get a result.
"""

from __future__ import annotations

import datetime
import logging
import re
import zlib
from typing import Protocol, Sequence

from pydantic import BaseModel, Field, ValidationError

from .exceptions import InvalidInput, NoClubsAvailable, UpstreamFailure
from ..models import ClubSummary, Suggestion

logger = logging.getLogger(__name__)

NO_MATCH_NAME = "No strong match"

# interest keyword -> categories a matching club is likely to mention
INTEREST_CATEGORIES: dict[str, list[str]] = {
    "cybersecurity": ["technology", "security", "cyber", "ethical hacking"],
    "security": ["technology", "security", "cyber"],
    "hacking": ["technology", "security", "cyber", "ethical hacking"],
    "programming": ["technology", "programming", "coding", "software", "development"],
    "coding": ["technology", "programming", "coding", "software", "development"],
    "software": ["technology", "programming", "software", "development"],
    "tech": ["technology", "programming", "software", "innovation"],
    "ai": ["technology", "artificial intelligence", "machine learning", "data science"],
    "ml": ["technology", "machine learning", "data science", "artificial intelligence"],
    "data science": ["technology", "data science", "analytics", "machine learning"],
    "web dev": ["technology", "web development", "programming"],
    "mobile": ["technology", "mobile development", "app development", "programming"],
    "business": ["business", "entrepreneurship", "management", "finance"],
    "entrepreneur": ["entrepreneurship", "business", "startup", "innovation"],
    "startup": ["entrepreneurship", "business", "startup", "innovation"],
    "finance": ["business", "finance", "accounting", "economics"],
    "marketing": ["business", "marketing", "branding"],
    "photography": ["arts", "photography", "visual arts", "creative"],
    "photo": ["arts", "photography", "visual arts"],
    "art": ["arts", "visual arts", "creative", "painting", "drawing"],
    "music": ["music", "arts", "performance", "creative"],
    "dance": ["arts", "dance", "performance", "cultural"],
    "theater": ["arts", "theater", "drama", "performance"],
    "creative": ["arts", "creative", "design"],
    "design": ["arts", "design", "creative", "visual arts"],
    "sports": ["sports", "athletics", "fitness", "recreation"],
    "fitness": ["sports", "fitness", "health", "wellness"],
    "basketball": ["sports", "basketball", "athletics"],
    "football": ["sports", "football", "athletics"],
    "cricket": ["sports", "cricket", "athletics"],
    "badminton": ["sports", "badminton", "athletics"],
    "academic": ["academic", "education", "research", "study"],
    "research": ["academic", "research", "innovation", "science"],
    "engineering": ["technology", "engineering", "innovation", "academic"],
    "robotics": ["technology", "robotics", "engineering", "electronics"],
    "volunteer": ["social service", "community", "volunteer", "service"],
    "community": ["community", "social service", "cultural", "volunteer"],
    "cultural": ["cultural", "arts", "community", "heritage"],
    "gaming": ["gaming", "esports", "entertainment", "technology"],
    "esports": ["gaming", "esports", "competitive gaming", "technology"],
    "games": ["gaming", "entertainment", "recreation"],
    "debate": ["academic", "communication", "public speaking", "debate"],
    "environment": ["environmental", "sustainability", "green", "conservation"],
    "leadership": ["leadership", "professional development", "management"],
}

PHRASE_SCORE = 50
CATEGORY_SCORE = 30
EXACT_CATEGORY_SCORE = 20
NAME_WORD_SCORE = 15
CATEGORY_WORD_SCORE = 12
DESCRIPTION_WORD_SCORE = 10
TAG_WORD_SCORE = 8

IDEAS: dict[str, list[str]] = {
    "event": [
        "Host a themed trivia night with prizes for different categories",
        "Organize a collaborative art project where members contribute pieces",
        "Plan a skills-sharing workshop where members teach each other",
        "Organize a friendly tournament related to your club theme",
    ],
    "announcement": [
        "Lead with a clear headline and put the date, time and place in the first line",
        "Share a short success story from a past event to build interest",
        "End with a single call to action and a deadline",
    ],
    "workshop": [
        "Break the topic into short hands-on modules",
        "Offer beginner and advanced tracks so everyone can take part",
        "Finish with a small project participants can show off",
    ],
    "meeting": [
        "Open with a five minute icebreaker",
        "Keep a shared agenda and end with action items that each have an owner",
        "Rotate the facilitator role to grow new leaders",
    ],
    "fundraising": [
        "Host a talent show with entry fees and donations",
        "Run a themed bake sale",
        "Design and sell club merchandise",
    ],
}


class AIClient(Protocol):
    def generate_json(self, prompt: str) -> dict: ...


class _ModelSuggestion(BaseModel):
    clubName: str = Field(min_length=1)
    reason: str = Field(min_length=1)
    matchScore: int = 5


class _ModelIdea(BaseModel):
    suggestion: str = Field(min_length=1)


def _normalize_interest(interest) -> str:
    if not isinstance(interest, str) or not interest.strip():
        raise InvalidInput("Interest is required and must be a string")
    return interest.strip()


def _mentions(term: str, text: str) -> bool:
    # whole words only, "art" must not hit "startup"
    return bool(term) and re.search(rf"(?<!\w){re.escape(term)}(?!\w)", text) is not None


def related_categories(interest: str) -> list[str]:
    """Return the categories associated with keywords found in ``interest``."""
    text = interest.lower()
    found: list[str] = []
    for key, categories in INTEREST_CATEGORIES.items():
        if _mentions(key, text) or (len(text) > 2 and key.startswith(text)):
            for category in categories:
                if category not in found:
                    found.append(category)
    return found


def score_club(interest: str, club: ClubSummary) -> tuple[int, list[str]]:
    """Score how well ``club`` matches ``interest``.

    Returns the score together with the related categories the club hit.
    """
    phrase = interest.lower()
    name = club.name.lower()
    description = (club.description or "").lower()
    category = (club.category or "").lower()
    tags = [t.lower() for t in club.tags or []]

    score = 0
    if _mentions(phrase, name) or _mentions(phrase, description):
        score += PHRASE_SCORE

    hits = []
    for related in related_categories(phrase):
        if _mentions(related, name) or _mentions(related, description) or _mentions(related, category):
            score += CATEGORY_SCORE
            hits.append(related)
        if category and category == related:
            score += EXACT_CATEGORY_SCORE

    for word in re.split(r"[\s,]+", phrase):
        if len(word) <= 2:
            continue
        if _mentions(word, name):
            score += NAME_WORD_SCORE
        if _mentions(word, description):
            score += DESCRIPTION_WORD_SCORE
        if _mentions(word, category):
            score += CATEGORY_WORD_SCORE
        if any(_mentions(word, tag) for tag in tags):
            score += TAG_WORD_SCORE
    return score, hits


def fallback_suggestion(interest: str, clubs: Sequence[ClubSummary]) -> Suggestion:
    """Pick the best club by keyword overlap.

    Ties go to the club created first, then to the earlier position in
    ``clubs``. When nothing scores above zero the no-match sentinel is
    returned.
    """
    interest = _normalize_interest(interest)
    if not clubs:
        raise NoClubsAvailable()

    scored = []
    for index, club in enumerate(clubs):
        score, hits = score_club(interest, club)
        scored.append((score, hits, index, club))

    def order(item):
        score, _, index, club = item
        return (-score, club.created_at or datetime.datetime.max, index)

    score, hits, _, best = min(scored, key=order)
    if score <= 0:
        return Suggestion(
            club_name=NO_MATCH_NAME,
            reason=(
                f'None of the current clubs closely matches "{interest}". '
                "Browse all clubs or consider starting one of your own."
            ),
        )

    reason = f'Great match for "{interest}"! '
    if hits:
        reason += f"This club aligns with your interest in {' and '.join(hits[:2])}. "
    if best.description:
        snippet = best.description[:120]
        reason += snippet + ("..." if len(best.description) > 120 else "")
    return Suggestion(
        club_name=best.name,
        reason=reason.strip(),
        club_id=best.club_id,
        match_score=min(max(round(score / 10), 1), 10),
    )


def build_prompt(interest: str, clubs: Sequence[ClubSummary]) -> str:
    lines = [
        "You are an expert student advisor. A student has expressed an interest in "
        f'"{interest}".',
        "Suggest the single most relevant club from the list below. Prefer clubs whose "
        "domain matches the interest and never suggest an unrelated club when a related "
        "one exists. If nothing fits well, pick the closest club with a matchScore of 1-3.",
        "",
        "Available clubs:",
    ]
    for club in clubs:
        lines.append(f"- Name: {club.name}")
        lines.append(f"  Description: {club.description or 'None'}")
        lines.append(f"  Category: {club.category or 'None'}")
        lines.append(f"  Tags: {', '.join(club.tags) if club.tags else 'None'}")
        lines.append(f"  Members: {club.member_count}")
        lines.append(f"  Upcoming events: {club.event_count}")
    lines.append("")
    lines.append(
        'Reply with a JSON object {"clubName": string, "reason": string, '
        '"matchScore": integer 1-10}. clubName must be copied exactly from the list.'
    )
    return "\n".join(lines)


def ai_suggestion(client: AIClient, interest: str, clubs: Sequence[ClubSummary]) -> Suggestion:
    """Ask the model for a suggestion; raise ``UpstreamFailure`` on unusable output."""
    payload = client.generate_json(build_prompt(interest, clubs))
    try:
        parsed = _ModelSuggestion.model_validate(payload)
    except ValidationError as exc:
        raise UpstreamFailure("Generative model output has the wrong shape") from exc

    wanted = parsed.clubName.strip().lower()
    for club in clubs:
        if club.name.strip().lower() == wanted:
            return Suggestion(
                club_name=club.name,
                reason=parsed.reason,
                club_id=club.club_id,
                match_score=min(max(parsed.matchScore, 1), 10),
            )
    raise UpstreamFailure(f"Generative model suggested an unknown club: {parsed.clubName!r}")


def resolve(interest, clubs: Sequence[ClubSummary], client: AIClient | None = None) -> Suggestion:
    """Return a club suggestion for ``interest``.

    Raises :class:`InvalidInput` for a blank interest and
    :class:`NoClubsAvailable` for an empty club list; nothing else escapes.
    """
    interest = _normalize_interest(interest)
    if not clubs:
        raise NoClubsAvailable()
    if client is not None:
        try:
            return ai_suggestion(client, interest, clubs)
        except Exception as exc:
            logger.warning("AI club suggestion failed, using fallback: %s", exc)
    return fallback_suggestion(interest, clubs)


def fallback_idea(topic: str) -> str:
    """Return a canned idea for the first known keyword in ``topic``."""
    lowered = topic.lower()
    for key, ideas in IDEAS.items():
        if key in lowered:
            return ideas[zlib.crc32(lowered.encode()) % len(ideas)]
    return (
        f'For "{topic}", plan a collaborative activity that brings members together, '
        "invites participation and fits your club's core mission."
    )


def generate_idea(topic, client: AIClient | None = None) -> str:
    """Suggest something a club leader could do about ``topic``."""
    if not isinstance(topic, str) or not topic.strip():
        raise InvalidInput("Topic is required and must be a string")
    topic = topic.strip()
    if client is not None:
        prompt = (
            "You are an expert in student club management. A club leader needs a "
            f'suggestion for "{topic}". Reply with a JSON object {{"suggestion": string}} '
            "holding one creative, engaging and concrete suggestion."
        )
        try:
            return _ModelIdea.model_validate(client.generate_json(prompt)).suggestion
        except Exception as exc:
            logger.warning("AI idea generation failed, using fallback: %s", exc)
    return fallback_idea(topic)
