"""Tests for the freeform conversation flow."""
import json

import httpx
import pytest
from openai import APIConnectionError


def _connection_error():
    return APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1"))


class TestParseExtraction:
    """Tests for reading the extraction response."""

    def test_camel_case_keys(self):
        from lifegoals.flows.freeform import parse_extraction

        draft = parse_extraction(
            json.dumps(
                {
                    "title": "Save for a house",
                    "targetDate": "2025-12-31",
                    "weeklyActions": ["Review budget"],
                    "successCriteria": ["Deposit saved"],
                }
            )
        )

        assert draft.title == "Save for a house"
        assert draft.target_date.year == 2025
        assert draft.target_date.tzinfo is not None
        assert draft.weekly_actions == ["Review budget"]
        assert draft.success_criteria == ["Deposit saved"]

    def test_unknown_domain_is_dropped(self):
        from lifegoals.flows.freeform import parse_extraction

        draft = parse_extraction(json.dumps({"title": "x", "domain": "Spiritual"}))

        assert draft.title == "x"
        assert draft.domain is None

    def test_domain_is_case_insensitive(self):
        from lifegoals.flows.freeform import parse_extraction

        assert parse_extraction(json.dumps({"domain": "Health"})).domain == "health"

    def test_bad_date_is_dropped(self):
        from lifegoals.flows.freeform import parse_extraction

        draft = parse_extraction(json.dumps({"targetDate": "next spring"}))

        assert draft.target_date is None

    def test_invalid_json(self):
        from lifegoals.flows.freeform import parse_extraction

        assert parse_extraction("not json at all") is None

    def test_non_object_json(self):
        from lifegoals.flows.freeform import parse_extraction

        assert parse_extraction("[1, 2, 3]") is None

    def test_wrong_shape(self):
        from lifegoals.flows.freeform import parse_extraction

        assert parse_extraction(json.dumps({"milestones": "run more"})) is None


class TestMergeExtraction:
    """Tests for folding extractions into the draft."""

    def test_scalars_overwrite(self):
        from lifegoals.flows.freeform import merge_extraction
        from lifegoals.models.extraction import ExtractedGoal

        merged = merge_extraction(
            ExtractedGoal(title="Old", description="Keep me"),
            ExtractedGoal(title="New"),
        )

        assert merged.title == "New"
        assert merged.description == "Keep me"

    def test_empty_collection_does_not_erase(self):
        from lifegoals.flows.freeform import merge_extraction
        from lifegoals.models.extraction import ExtractedGoal

        merged = merge_extraction(
            ExtractedGoal(resources=["Gym membership"]),
            ExtractedGoal(resources=[]),
        )

        assert merged.resources == ["Gym membership"]

    def test_collections_replace_rather_than_append(self):
        from lifegoals.flows.freeform import merge_extraction
        from lifegoals.models.extraction import ExtractedGoal

        merged = merge_extraction(
            ExtractedGoal(obstacles=["Time"]),
            ExtractedGoal(obstacles=["Money", "Energy"]),
        )

        assert merged.obstacles == ["Money", "Energy"]

    def test_draft_is_not_mutated(self):
        from lifegoals.flows.freeform import merge_extraction
        from lifegoals.models.extraction import ExtractedGoal

        draft = ExtractedGoal(title="Old")
        merge_extraction(draft, ExtractedGoal(title="New"))

        assert draft.title == "Old"


class TestIsComplete:
    """Tests for the completion check."""

    def test_requires_title_description_and_domain(self):
        from lifegoals.flows.freeform import is_complete
        from lifegoals.models.extraction import ExtractedGoal

        assert not is_complete(ExtractedGoal(title="a", description="b"))
        assert not is_complete(ExtractedGoal(title="a", description="  ", domain="work"))
        assert is_complete(ExtractedGoal(title="a", description="b", domain="work"))


class TestParseTranscript:
    """Tests for splitting pasted transcripts."""

    def test_alternates_roles(self):
        from lifegoals.flows.freeform import parse_transcript

        messages = parse_transcript("A\nB")

        assert [(m.role, m.content) for m in messages] == [("assistant", "A"), ("user", "B")]

    def test_skips_blank_lines(self):
        from lifegoals.flows.freeform import parse_transcript

        messages = parse_transcript("\n  Hello  \n\n\nHi there\r\nThird\n")

        assert [m.content for m in messages] == ["Hello", "Hi there", "Third"]
        assert [m.role for m in messages] == ["assistant", "user", "assistant"]

    def test_blank_transcript(self):
        from lifegoals.flows.freeform import parse_transcript

        assert parse_transcript("\n   \n") == []


@pytest.mark.asyncio
class TestConversationFlow:
    """Tests for conversation turns."""

    async def test_starts_with_greeting(self):
        from lifegoals.flows.freeform import GREETING, ConversationFlow

        flow = ConversationFlow()

        assert [m.content for m in flow.messages] == [GREETING]
        assert flow.complete is False
        assert flow.review is False

    async def test_send_appends_reply_and_merges(self, completion_stub):
        from lifegoals.flows.freeform import ConversationFlow

        completion = completion_stub
        completion.replies.append("When would you like to finish?")
        completion.queue_extraction({"title": "Learn Spanish"})
        flow = ConversationFlow()

        await flow.send("I want to learn Spanish", completion)

        assert [m.role for m in flow.messages] == ["assistant", "user", "assistant"]
        assert flow.messages[-1].content == "When would you like to finish?"
        assert flow.draft.title == "Learn Spanish"
        assert flow.review is False
        # Both calls see the whole transcript including the new turn
        assert completion.reply_calls[0][-1].content == "I want to learn Spanish"
        assert completion.extract_calls[0][-1].content == "I want to learn Spanish"

    async def test_completion_across_turns(self, completion_stub):
        """Test that fields extracted in separate turns add up to a complete draft."""
        from lifegoals.flows.freeform import ConversationFlow

        completion = completion_stub
        completion.queue_extraction({"title": "Learn Spanish", "domain": "personal"})
        completion.queue_extraction({"description": "Hold a conversation by summer"})
        flow = ConversationFlow()

        await flow.send("I want to learn Spanish", completion)
        assert flow.review is False

        await flow.send("So I can talk to my in-laws", completion)

        assert flow.complete is True
        assert flow.review is True
        assert flow.draft.title == "Learn Spanish"

    async def test_malformed_extraction_keeps_draft(self, completion_stub):
        from lifegoals.flows.freeform import ConversationFlow

        completion = completion_stub
        completion.queue_extraction({"title": "Learn Spanish"})
        completion.extractions.append("{oops")
        flow = ConversationFlow()

        await flow.send("first", completion)
        await flow.send("second", completion)

        assert flow.draft.title == "Learn Spanish"
        assert flow.messages[-1].content == "Tell me more."

    async def test_api_failure_apologises(self, completion_stub):
        from lifegoals.flows.freeform import TROUBLE_MESSAGE, ConversationFlow

        completion = completion_stub
        completion.error = _connection_error()
        flow = ConversationFlow()

        await flow.send("hello", completion)

        assert [m.content for m in flow.messages[1:]] == ["hello", TROUBLE_MESSAGE]
        assert flow.draft.title is None

    async def test_import_transcript(self, completion_stub):
        from lifegoals.flows.freeform import ConversationFlow

        completion = completion_stub
        completion.queue_extraction({"title": "Run a 5k"})
        flow = ConversationFlow()

        await flow.import_transcript("A\nB", completion)

        assert [(m.role, m.content) for m in flow.messages] == [("assistant", "A"), ("user", "B")]
        assert flow.draft.title == "Run a 5k"
        # Review even though the draft is incomplete
        assert flow.review is True
        assert completion.reply_calls == []

    async def test_import_transcript_survives_api_failure(self, completion_stub):
        from lifegoals.flows.freeform import ConversationFlow

        completion = completion_stub
        completion.error = _connection_error()
        flow = ConversationFlow()

        await flow.import_transcript("A\nB", completion)

        assert flow.review is True
        assert flow.draft.title is None

    async def test_import_empty_transcript(self, completion_stub):
        from lifegoals.flows.freeform import ConversationFlow

        flow = ConversationFlow()

        with pytest.raises(ValueError, match="Transcript is empty"):
            await flow.import_transcript("  \n\n", completion_stub)
        assert len(flow.messages) == 1

    async def test_override_only_changes_sent_fields(self):
        from lifegoals.flows.freeform import ConversationFlow
        from lifegoals.models.extraction import ExtractedGoal

        flow = ConversationFlow()
        flow.draft = ExtractedGoal(title="Old", description="Keep")

        flow.override(ExtractedGoal.model_validate({"title": "New", "domain": "home"}))

        assert flow.draft.title == "New"
        assert flow.draft.description == "Keep"
        assert flow.draft.domain == "home"
