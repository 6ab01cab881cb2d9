"""Flow router - guided and freeform goal creation sessions."""
from fastapi import APIRouter, Depends, HTTPException, status

from lifegoals.completion import CompletionClient, get_completion_client
from lifegoals.database import get_store
from lifegoals.models.conversation import (
    AnswerRequest,
    ConversationState,
    GuidedAnswerResult,
    GuidedSessionState,
    SuggestionsResponse,
    TranscriptImport,
)
from lifegoals.models.extraction import ExtractedGoal
from lifegoals.models.goal import Goal
from lifegoals.routers.auth import get_current_user_id
from lifegoals.services.conversation_service import ConversationService
from lifegoals.services.goal_service import GoalService
from lifegoals.services.guided_service import GuidedFlowService
from lifegoals.sessions import FlowSessions, get_flow_sessions
from lifegoals.store import DocumentStore


router = APIRouter(prefix="/flows", tags=["flows"])


async def get_guided_service(
    sessions: FlowSessions = Depends(get_flow_sessions),
    completion: CompletionClient = Depends(get_completion_client),
    store: DocumentStore = Depends(get_store),
) -> GuidedFlowService:
    """Dependency wiring the guided flow service."""
    return GuidedFlowService(sessions, completion, GoalService(store))


async def get_conversation_service(
    sessions: FlowSessions = Depends(get_flow_sessions),
    completion: CompletionClient = Depends(get_completion_client),
    store: DocumentStore = Depends(get_store),
) -> ConversationService:
    """Dependency wiring the freeform conversation service."""
    return ConversationService(sessions, completion, GoalService(store))


# Guided questionnaire


@router.post(
    "/guided",
    response_model=GuidedSessionState,
    status_code=status.HTTP_201_CREATED,
)
async def start_guided(
    user_id: str = Depends(get_current_user_id),
    service: GuidedFlowService = Depends(get_guided_service),
):
    """Start a guided interview at the first question."""
    return service.start(user_id)


@router.get("/guided/{session_id}", response_model=GuidedSessionState)
async def get_guided(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    service: GuidedFlowService = Depends(get_guided_service),
):
    """Current question and transcript of a guided interview."""
    try:
        return service.get_state(user_id, session_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/guided/{session_id}/answers", response_model=GuidedAnswerResult)
async def answer_guided(
    session_id: str,
    body: AnswerRequest,
    user_id: str = Depends(get_current_user_id),
    service: GuidedFlowService = Depends(get_guided_service),
):
    """
    Answer the current question.

    - An invalid domain or timeframe repeats the question with a hint
    - The last answer creates the goal and ends the session
    """
    try:
        return await service.answer(user_id, session_id, body.content)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/guided/{session_id}/suggestions", response_model=SuggestionsResponse)
async def suggest_guided(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    service: GuidedFlowService = Depends(get_guided_service),
):
    """Candidate answers for the current question. Does not advance."""
    try:
        suggestions = await service.suggest(user_id, session_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return SuggestionsResponse(suggestions=suggestions)


@router.delete("/guided/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_guided(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    service: GuidedFlowService = Depends(get_guided_service),
):
    """Abandon a guided interview."""
    try:
        service.cancel(user_id, session_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


# Freeform conversation


@router.post(
    "/freeform",
    response_model=ConversationState,
    status_code=status.HTTP_201_CREATED,
)
async def start_freeform(
    user_id: str = Depends(get_current_user_id),
    service: ConversationService = Depends(get_conversation_service),
):
    """Start a freeform conversation with the assistant's greeting."""
    return service.start(user_id)


@router.get("/freeform/{session_id}", response_model=ConversationState)
async def get_freeform(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    service: ConversationService = Depends(get_conversation_service),
):
    """Transcript and draft of a freeform conversation."""
    try:
        return service.get_state(user_id, session_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/freeform/{session_id}/messages", response_model=ConversationState)
async def send_freeform(
    session_id: str,
    body: AnswerRequest,
    user_id: str = Depends(get_current_user_id),
    service: ConversationService = Depends(get_conversation_service),
):
    """
    Send a message.

    - The draft picks up whatever goal fields the conversation now supports
    - ``review`` turns true once title, description and domain are known
    """
    try:
        return await service.send(user_id, session_id, body.content)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/freeform/{session_id}/transcript", response_model=ConversationState)
async def import_freeform_transcript(
    session_id: str,
    body: TranscriptImport,
    user_id: str = Depends(get_current_user_id),
    service: ConversationService = Depends(get_conversation_service),
):
    """
    Replace the conversation with a pasted transcript.

    - Lines alternate assistant, user, starting with the assistant
    - Goes straight to review
    """
    try:
        service.get_state(user_id, session_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    try:
        return await service.import_transcript(user_id, session_id, body.transcript)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/freeform/{session_id}/draft", response_model=ConversationState)
async def override_freeform_draft(
    session_id: str,
    changes: ExtractedGoal,
    user_id: str = Depends(get_current_user_id),
    service: ConversationService = Depends(get_conversation_service),
):
    """Manually edit draft fields before saving."""
    try:
        return service.override(user_id, session_id, changes)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post(
    "/freeform/{session_id}/save",
    response_model=Goal,
    status_code=status.HTTP_201_CREATED,
)
async def save_freeform(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    service: ConversationService = Depends(get_conversation_service),
):
    """Create the goal from the draft and end the session."""
    try:
        return await service.save(user_id, session_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/freeform/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_freeform(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    service: ConversationService = Depends(get_conversation_service),
):
    """Abandon a freeform conversation."""
    try:
        service.cancel(user_id, session_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
