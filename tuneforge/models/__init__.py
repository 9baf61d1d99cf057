# Copyright (c) US Inc. All rights reserved.
from .schemas import (
    BatchRequest,
    BatchResult,
    BatchStatus,
    CompetencyRequest,
    CompetencyResult,
    DatasetAnalysis,
    DispatchResult,
    DocumentFormat,
    DocumentInfo,
    DocumentStatus,
    FeedbackInfo,
    FeedbackRequest,
    FeedbackType,
    FineTuningStatus,
    GenerationLogInfo,
    GenerationStats,
    NormalizationRequest,
    NormalizationResult,
)

from .db_models import Document, Feedback, GenerationLog
