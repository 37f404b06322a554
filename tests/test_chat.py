"""AI analyst chat: keyword matching, online fallback, POST /v1/ai-analyst-chat."""

from unittest.mock import AsyncMock, patch

import pytest

from eia_analyst.core.config import get_settings
from eia_analyst.core.errors import UpstreamError
from eia_analyst.core.flags import get_flags
from eia_analyst.models import Document
from eia_analyst.services.chat import (
    NO_RESPONSE_TEXT,
    answer_question,
    build_chat_prompt,
    extract_keyword,
    match_documents,
)
from eia_analyst.services.personas import GENERAL_CHAT_PROMPT

GEMINI_TEXT = "eia_analyst.services.llm.gemini_text"
PERPLEXITY = "eia_analyst.services.llm.perplexity_chat"


class TestKeyword:
    def test_first_word_longer_than_three(self):
        assert extract_keyword("Is the Caribou herd affected?") == "caribou"

    def test_no_long_word(self):
        assert extract_keyword("is it ok to go") is None

    def test_no_keyword_never_matches(self):
        docs = [Document(title="a", content="is it ok to go")]
        assert match_documents(docs, extract_keyword("is it ok")) == []

    def test_match_is_case_insensitive(self):
        docs = [
            Document(title="hit", content="CARIBOU migration corridors"),
            Document(title="miss", content="fish spawning"),
            Document(title="empty", content=None),
        ]
        assert [d.title for d in match_documents(docs, "caribou")] == ["hit"]


class TestBuildChatPrompt:
    def test_document_context_wins_over_online(self):
        prompt = build_chat_prompt("SYS", "q?", [], document_context="DOC", online_context="WEB")
        assert "RELEVANT UPLOADED DOCUMENTS:\nDOC" in prompt
        assert "ONLINE RESEARCH CONTEXT" not in prompt

    def test_history_is_rendered(self):
        history = [{"role": "user", "content": "hi"}, {"role": "assistant", "content": "hello"}]
        prompt = build_chat_prompt("SYS", "q?", history)
        assert "CONVERSATION HISTORY:\nuser: hi\nassistant: hello" in prompt
        assert prompt.startswith("SYS")
        assert "USER QUESTION: q?" in prompt


class TestAnswerQuestion:
    async def test_matching_document_is_used_as_context(self, db_session, make_document):
        await make_document(title="Caribou Study", content="caribou calving grounds")

        with patch(GEMINI_TEXT, new=AsyncMock(return_value="Answer")) as gemini:
            reply = await answer_question(db_session, "caribou impacts?")

        assert reply.response == "Answer"
        assert reply.sources == ["Caribou Study"]
        assert reply.is_online_search is False
        prompt = gemini.await_args.args[0]
        assert "Document: Caribou Study" in prompt
        assert prompt.startswith(GENERAL_CHAT_PROMPT)

    async def test_only_last_five_history_messages(self, db_session):
        history = [{"role": "user", "content": f"message-{i}"} for i in range(8)]

        with patch(GEMINI_TEXT, new=AsyncMock(return_value="ok")) as gemini:
            await answer_question(db_session, "what now", conversation_history=history)

        prompt = gemini.await_args.args[0]
        assert "message-2" not in prompt
        assert "message-3" in prompt and "message-7" in prompt

    async def test_online_search_when_no_document_matches(self, db_session, monkeypatch):
        monkeypatch.setattr(get_flags(), "use_online_search", True)
        monkeypatch.setattr(get_settings(), "perplexity_api_key", "pplx-test")

        with patch(PERPLEXITY, new=AsyncMock(return_value="Research notes")), \
                patch(GEMINI_TEXT, new=AsyncMock(return_value="ok")) as gemini:
            reply = await answer_question(db_session, "wetland regulations?")

        assert reply.is_online_search is True
        assert reply.sources == []
        assert "ONLINE RESEARCH CONTEXT:\nResearch notes" in gemini.await_args.args[0]

    async def test_online_search_failure_is_ignored(self, db_session, monkeypatch):
        monkeypatch.setattr(get_flags(), "use_online_search", True)
        monkeypatch.setattr(get_settings(), "perplexity_api_key", "pplx-test")

        with patch(PERPLEXITY, new=AsyncMock(side_effect=UpstreamError("Perplexity API error"))), \
                patch(GEMINI_TEXT, new=AsyncMock(return_value="ok")):
            reply = await answer_question(db_session, "wetland regulations?")

        assert reply.is_online_search is False
        assert reply.response == "ok"

    async def test_online_search_skipped_without_key(self, db_session, monkeypatch):
        monkeypatch.setattr(get_flags(), "use_online_search", True)

        with patch(PERPLEXITY, new=AsyncMock()) as perplexity, \
                patch(GEMINI_TEXT, new=AsyncMock(return_value="ok")):
            reply = await answer_question(db_session, "wetland regulations?")

        perplexity.assert_not_awaited()
        assert reply.is_online_search is False

    async def test_empty_model_reply_gets_apology(self, db_session):
        with patch(GEMINI_TEXT, new=AsyncMock(return_value="")):
            reply = await answer_question(db_session, "anything")

        assert reply.response == NO_RESPONSE_TEXT

    async def test_gemini_failure_propagates(self, db_session):
        with patch(GEMINI_TEXT, new=AsyncMock(side_effect=UpstreamError("Gemini API error: 500"))):
            with pytest.raises(UpstreamError):
                await answer_question(db_session, "anything")


class TestChatEndpoint:
    async def test_response_shape(self, client, make_document, make_persona):
        await make_document(title="Fish Report", content="salmon spawning beds")
        persona = await make_persona()

        with patch(GEMINI_TEXT, new=AsyncMock(return_value="Salmon are at risk.")) as gemini:
            r = await client.post(
                "/v1/ai-analyst-chat",
                json={
                    "message": "salmon impacts?",
                    "persona_id": persona.id,
                    "conversationHistory": [{"role": "user", "content": "hello"}],
                },
            )

        assert r.status_code == 200
        assert r.json() == {
            "response": "Salmon are at risk.",
            "sources": ["Fish Report"],
            "isOnlineSearch": False,
            "success": True,
        }
        assert gemini.await_args.args[0].startswith(persona.system_prompt)

    async def test_upstream_failure_is_500(self, client):
        with patch(GEMINI_TEXT, new=AsyncMock(side_effect=UpstreamError("Gemini API error: 503"))):
            r = await client.post("/v1/ai-analyst-chat", json={"message": "hello there"})

        assert r.status_code == 500
        assert r.json() == {"success": False, "error": "Gemini API error: 503"}

    async def test_missing_message_is_500(self, client):
        r = await client.post("/v1/ai-analyst-chat", json={})
        assert r.status_code == 500
        assert r.json()["error"] == "Missing required fields: message"
