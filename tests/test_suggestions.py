import datetime

import pytest

from clubhub.models import ClubSummary
from clubhub.services.exceptions import InvalidInput, NoClubsAvailable, UpstreamFailure
from clubhub.services.suggestions import (
    NO_MATCH_NAME,
    fallback_idea,
    fallback_suggestion,
    generate_idea,
    related_categories,
    resolve,
    score_club,
)
from conftest import StubAIClient


SHUTTER = ClubSummary(name="Shutter Club", description="photography and editing", club_id="s")
CHESS = ClubSummary(name="Chess Club", description="strategy games", club_id="c")


def test_photography_picks_shutter_club():
    result = resolve("photography", [SHUTTER, CHESS])
    assert result.club_name == "Shutter Club"
    assert result.club_id == "s"
    # phrase 50 + related category 30 + description word 10
    assert result.match_score == 9
    assert "photography" in result.reason


def test_input_order_does_not_matter_for_clear_winner():
    assert resolve("photography", [CHESS, SHUTTER]).club_name == "Shutter Club"


def test_no_match_returns_sentinel():
    result = fallback_suggestion("underwater basket weaving", [CHESS])
    assert result.club_name == NO_MATCH_NAME
    assert result.club_id is None
    assert result.match_score == 1


def test_ties_prefer_oldest_club_then_input_order():
    newer = ClubSummary(name="Lens A", description="photography", created_at=datetime.datetime(2024, 2, 1))
    older = ClubSummary(name="Lens B", description="photography", created_at=datetime.datetime(2024, 1, 1))
    assert fallback_suggestion("photography", [newer, older]).club_name == "Lens B"

    first = ClubSummary(name="Lens A", description="photography")
    second = ClubSummary(name="Lens B", description="photography")
    assert fallback_suggestion("photography", [first, second]).club_name == "Lens A"


def test_score_components():
    club = ClubSummary(
        name="Robotics Society",
        description="build robots",
        category="engineering",
        tags=["electronics"],
    )
    score, hits = score_club("robotics", club)
    # phrase in name 50, related "robotics" in name 30, "engineering" in
    # category 30 + exact 20, word in name 15
    assert score == 145
    assert hits == ["robotics", "engineering"]
    assert fallback_suggestion("robotics", [club]).match_score == 10


def test_related_categories_match_whole_keywords_and_prefixes():
    assert "arts" in related_categories("I like art")
    assert "arts" not in related_categories("startup")
    assert "photography" in related_categories("photog")
    assert related_categories("xy") == []


def test_short_interest_does_not_match_inside_other_words():
    startup = ClubSummary(name="Startup Hub", description="founders and pitch nights", tags=["smartphones"], club_id="h")
    assert score_club("art", startup) == (0, [])
    result = resolve("art", [startup, CHESS])
    assert result.club_name == NO_MATCH_NAME
    assert result.club_id is None

    gallery = ClubSummary(name="Gallery Club", description="art walks and sketching", club_id="g")
    assert resolve("art", [startup, gallery]).club_name == "Gallery Club"


@pytest.mark.parametrize("interest", ["", "   ", None, 42])
def test_blank_interest_rejected(interest):
    with pytest.raises(InvalidInput):
        resolve(interest, [SHUTTER])


def test_empty_club_list_is_an_error():
    with pytest.raises(NoClubsAvailable) as exc:
        resolve("photography", [])
    assert exc.value.status_code == 404
    assert exc.value.message == "No clubs available to suggest"


def test_ai_answer_is_used_when_valid():
    client = StubAIClient({"clubName": "chess club", "reason": "Thinking games", "matchScore": 12})
    result = resolve("board games", [SHUTTER, CHESS], client)
    assert result.club_name == "Chess Club"
    assert result.club_id == "c"
    assert result.reason == "Thinking games"
    assert result.match_score == 10
    prompt = client.prompts[0]
    assert '"board games"' in prompt
    assert "Shutter Club" in prompt and "strategy games" in prompt


@pytest.mark.parametrize(
    "client",
    [
        StubAIClient(error=UpstreamFailure("timed out")),
        StubAIClient(error=RuntimeError("boom")),
        StubAIClient({"clubName": "Knitting Circle", "reason": "?", "matchScore": 5}),
        StubAIClient({"club": "Shutter Club"}),
        StubAIClient({"clubName": "", "reason": "", "matchScore": 5}),
    ],
)
def test_ai_failures_fall_back(client):
    result = resolve("photography", [CHESS, SHUTTER], client)
    assert result.club_name == "Shutter Club"
    assert len(client.prompts) == 1


def test_generate_idea_fallback_is_stable():
    first = fallback_idea("Fundraising for a trip")
    assert first == fallback_idea("Fundraising for a trip")
    assert first in (
        "Host a talent show with entry fees and donations",
        "Run a themed bake sale",
        "Design and sell club merchandise",
    )
    assert '"knitting"' in fallback_idea("knitting")


def test_generate_idea_uses_ai_and_validates_topic():
    client = StubAIClient({"suggestion": "Run a photo walk"})
    assert generate_idea("event", client) == "Run a photo walk"
    assert generate_idea("event", StubAIClient(error=UpstreamFailure("down"))) == fallback_idea("event")
    with pytest.raises(InvalidInput):
        generate_idea("  ")
