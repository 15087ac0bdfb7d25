"""Training data endpoints."""

from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from leadcapture_common.logging import setup_logging

from dependencies import get_base_extraction_prompt, get_llm_service, get_training_repository
from domain.models import TrainingExample, TrainingStats
from domain.prompt_builder import MAX_PROMPT_EXAMPLES, build_enhanced_prompt
from exceptions import TrainingDataNotFoundError
from infrastructure.interfaces import LLMService
from repositories.training_repository import TrainingRepository
from response_models import MessageResponse, TrainingExportResponse, UpdatePromptResponse

logger = setup_logging()

router = APIRouter(prefix="/api/training", tags=["training"])

RepositoryDep = Annotated[TrainingRepository, Depends(get_training_repository)]
LLMDep = Annotated[LLMService, Depends(get_llm_service)]
BasePromptDep = Annotated[str, Depends(get_base_extraction_prompt)]


@router.post("/save", response_model=MessageResponse)
def save_training_data(example: TrainingExample, repo: RepositoryDep):
    """Saves the marked fields for a recording."""
    try:
        repo.save(example)
    except OSError as e:
        logger.error(f"Error saving training data: {e}")
        raise HTTPException(status_code=500, detail="Failed to save training data")
    return MessageResponse(message="Training data saved successfully")


@router.get("/export", response_model=TrainingExportResponse)
def export_training_data(repo: RepositoryDep):
    """Returns every saved training example."""
    examples = repo.list_all()
    return TrainingExportResponse(
        export_date=datetime.now(timezone.utc),
        total_recordings=len(examples),
        data=[e.model_dump(mode="json", by_alias=True) for e in examples],
    )


@router.get("/stats", response_model=TrainingStats)
def training_stats(repo: RepositoryDep):
    """Returns counts of annotated recordings and marked fields."""
    return repo.stats()


@router.post("/update-prompt", response_model=UpdatePromptResponse)
def update_prompt(repo: RepositoryDep, llm: LLMDep, base_prompt: BasePromptDep):
    """Rebuilds the extraction prompt from the newest training examples and applies it."""
    examples = repo.list_all()[:MAX_PROMPT_EXAMPLES]
    prompt = build_enhanced_prompt(base_prompt, examples)
    repo.save_prompt(prompt)
    llm.use_extraction_prompt(prompt)

    logger.info("Extraction prompt updated", extra={"examples_used": len(examples)})
    return UpdatePromptResponse(
        message=f"AI prompt updated with {len(examples)} training examples",
        examples_used=len(examples),
    )


@router.get("/{recording_id}", response_model=TrainingExample)
def get_training_data(recording_id: str, repo: RepositoryDep):
    """Returns the training data saved for a recording."""
    try:
        return repo.get(recording_id)
    except TrainingDataNotFoundError:
        raise HTTPException(status_code=404, detail="No training data found")


@router.delete("/{recording_id}", response_model=MessageResponse)
def delete_training_data(recording_id: str, repo: RepositoryDep):
    """Deletes the training data saved for a recording."""
    try:
        repo.delete(recording_id)
    except TrainingDataNotFoundError:
        raise HTTPException(status_code=404, detail="No training data found")
    return MessageResponse(message="Training data deleted successfully")
