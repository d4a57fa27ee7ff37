"""Search API — semantic resume search and retrieval-augmented answers."""

from fastapi import APIRouter, Depends

from resume_rag.application.schemas.search import (
    AnswerRequest,
    AnswerResponse,
    ChunkMatchSchema,
    CitationSchema,
    SearchRequest,
    SearchResponse,
    SearchResultSchema,
)
from resume_rag.application.services.rag_service import RAGService
from resume_rag.application.services.search_service import SearchService
from resume_rag.domain.exceptions import ResumeRagError
from resume_rag.infrastructure.dependencies import get_rag_service, get_search_service
from resume_rag.presentation.api.errors import to_http_exception

router = APIRouter(tags=["search"])


@router.post("/search", response_model=SearchResponse)
async def search_resumes(
    body: SearchRequest,
    service: SearchService = Depends(get_search_service),
):
    """Rank resume passages by similarity to the query, within the filters."""
    try:
        results = await service.search(body.query, body.filters, body.top_k)
    except ResumeRagError as e:
        raise to_http_exception(e)

    return SearchResponse(
        results=[
            SearchResultSchema(
                text=r.text,
                document_id=r.document_id,
                score=r.score,
                metadata=r.metadata,
                matches=[ChunkMatchSchema(text=m.text, score=m.score) for m in r.matches],
            )
            for r in results
        ],
        total=len(results),
    )


@router.post("/answer", response_model=AnswerResponse)
async def answer_question(
    body: AnswerRequest,
    service: RAGService = Depends(get_rag_service),
):
    """Answer a question from the indexed resumes, with citations."""
    try:
        response = await service.answer(body.query, body.filters)
    except ResumeRagError as e:
        raise to_http_exception(e)

    return AnswerResponse(
        answer=response.answer,
        citations=[
            CitationSchema(text=c.text, document_id=c.document_id, score=c.score)
            for c in response.citations
        ],
        confidence=response.confidence,
    )
