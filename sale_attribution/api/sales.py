"""
FastAPI router module for sale analysis and history.

Key Endpoints:
- POST /api/analyze-sale - Attribute a sale notification to a campaign/creative
- GET /api/history - List analyzed sales, most recent first
- GET /api/search - Search analyzed sales by campaign, creative or client id

Response shapes:
- POST /api/analyze-sale: AnalysisResult (sale_data, estimated_click_time,
  analysis, top_result, events_found, saved, registration)
- GET /api/history and /api/search: { data: [...] }

Error mapping:
- Missing message, IncompleteSaleData, MalformedTimestamp -> 400
- InternalError or any other unexpected error -> 500 with a generic detail
- Collaborator failures are reported inside the response body, not as errors
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from sale_attribution.core.dependencies import (
    OrchestratorDep,
    RepositoryDep,
    verify_auth_password,
)
from sale_attribution.core.exceptions import (
    IncompleteSaleData,
    InternalError,
    MalformedTimestamp,
)
from sale_attribution.models.schemas import (
    AnalysisResult,
    AnalyzeSaleRequest,
    HistoryResponse,
)


logger = logging.getLogger(__name__)


router = APIRouter(dependencies=[Depends(verify_auth_password)])


# =============================================================================
# POST /api/analyze-sale
# =============================================================================


@router.post("/analyze-sale", response_model=AnalysisResult)
async def analyze_sale(
    request: AnalyzeSaleRequest,
    orchestrator: OrchestratorDep,
) -> AnalysisResult:
    """
    Attribute a sale notification to the most likely campaign/creative.

    Example Request:
        POST /api/analyze-sale
        {
            "message": "🆔 ID Cliente: 123456\\n💎 Plano Mensal - R$ 29,90\\n..."
        }

    Raises:
        HTTPException 400: If the message is missing, lacks the purchase
            date/time or conversion time, or has an invalid purchase date/time.
        HTTPException 500: On unexpected errors.
    """
    if not request.message or not request.message.strip():
        logger.warning("POST /api/analyze-sale rejected: missing message")
        raise HTTPException(status_code=400, detail="Message not provided")

    try:
        return await orchestrator.analyze(request.message)
    except (IncompleteSaleData, MalformedTimestamp) as e:
        logger.warning(f"POST /api/analyze-sale rejected: {e.message}")
        raise HTTPException(status_code=400, detail=e.message)
    except InternalError as e:
        logger.error(f"POST /api/analyze-sale failed: {e.message}")
        raise HTTPException(status_code=500, detail=f"Internal error: {e.message}")
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Error analyzing sale")
        raise HTTPException(status_code=500, detail=f"Internal error: {type(e).__name__}")


# =============================================================================
# GET /api/history
# =============================================================================


@router.get("/history", response_model=HistoryResponse)
async def list_history(repository: RepositoryDep) -> HistoryResponse:
    """Return every analyzed sale, most recent first."""
    try:
        records = await repository.history()
    except Exception:
        logger.exception("Error fetching sales history")
        raise HTTPException(status_code=500, detail="Failed to fetch history")

    return HistoryResponse(data=records)


# =============================================================================
# GET /api/search
# =============================================================================


@router.get("/search", response_model=HistoryResponse)
async def search_history(
    repository: RepositoryDep,
    q: Optional[str] = Query(default=None, description="Campaign, creative or client id"),
) -> HistoryResponse:
    """
    Search analyzed sales.

    Matches campaign or creative case-insensitively, or client id by substring.
    An empty query returns no results.
    """
    if not q:
        return HistoryResponse(data=[])

    try:
        records = await repository.search(q)
    except Exception:
        logger.exception(f"Error searching sales history for {q!r}")
        raise HTTPException(status_code=500, detail="Search failed")

    return HistoryResponse(data=records)
